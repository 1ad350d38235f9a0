"""
Inventory — Service Layer Tests

Tests for InventoryLedger, DonationIntakeService and
InventoryReportService.

@file inventory/tests/test_services.py
"""

import uuid
from decimal import Decimal

import pytest

from core.exceptions import (
    BusinessRuleViolation,
    InsufficientStockError,
    ResourceNotFoundError,
    UnknownInventoryItemError,
)
from core.models import AuditLog
from inventory import ledger
from inventory.models import InventoryRecord, LedgerEntry
from inventory.services import (
    DonationIntakeService,
    InventoryLedger,
    InventoryReportService,
    _write_position,
)
from tests.factories import (
    InventoryRecordFactory,
    ItemCategoryFactory,
    ItemTypeFactory,
    StaffUserFactory,
)


@pytest.mark.django_db
class TestInventoryLedger:
    def test_consume_deducts_value_and_journals(self):
        record = InventoryRecordFactory(quantity_available=30, total_value=Decimal('100.00'))
        actor = StaffUserFactory()
        result = InventoryLedger.consume(
            inventory_id=record.pk, quantity=10, actor=actor,
            reference_type='Manual', reference_id='adj-1',
        )
        assert result.quantity_available == 20
        assert result.total_value == Decimal('66.67')

        entry = LedgerEntry.objects.get(record=record)
        assert entry.entry_type == LedgerEntry.EntryType.CONSUME
        assert entry.quantity == 10
        assert entry.value == Decimal('33.33')
        assert entry.quantity_after == 20
        assert entry.created_by == actor
        assert AuditLog.objects.filter(
            model_name='InventoryRecord', object_id=str(record.pk), action='LEDGER',
        ).exists()

    def test_shortfall_leaves_record_untouched(self):
        record = InventoryRecordFactory(quantity_available=4)
        with pytest.raises(InsufficientStockError) as exc_info:
            InventoryLedger.consume(inventory_id=record.pk, quantity=5)
        assert exc_info.value.available == 4
        assert exc_info.value.item_name == record.item_type.name
        record.refresh_from_db()
        assert record.quantity_available == 4
        assert not LedgerEntry.objects.filter(record=record).exists()

    def test_unknown_record(self):
        with pytest.raises(UnknownInventoryItemError):
            InventoryLedger.consume(inventory_id=uuid.uuid4(), quantity=1)

    def test_malformed_record_id(self):
        with pytest.raises(UnknownInventoryItemError):
            InventoryLedger.reserve(inventory_id='not-a-uuid', quantity=1)

    def test_reserve_and_release(self):
        record = InventoryRecordFactory(quantity_available=30, total_value=Decimal('90.00'))
        InventoryLedger.reserve(inventory_id=record.pk, quantity=12)
        record.refresh_from_db()
        assert record.quantity_available == 18
        assert record.quantity_held == 12
        assert record.held_value == Decimal('36.00')

        InventoryLedger.release(inventory_id=record.pk, quantity=12)
        record.refresh_from_db()
        assert record.quantity_available == 30
        assert record.quantity_held == 0
        assert record.total_value == Decimal('90.00')
        assert LedgerEntry.objects.filter(record=record).count() == 2

    def test_stale_write_is_refused(self):
        record = InventoryRecordFactory(quantity_available=10)
        stale = InventoryRecord.objects.select_related('item_type').get(pk=record.pk)
        InventoryRecord.objects.filter(pk=record.pk).update(quantity_available=2)

        position = ledger.apply_consume(stale.position(), 5)
        with pytest.raises(InsufficientStockError):
            _write_position(stale, position, entry_type=LedgerEntry.EntryType.CONSUME, quantity=5, value=Decimal('0'))
        record.refresh_from_db()
        assert record.quantity_available == 2

    def test_credit_creates_record_at_fmv(self):
        item_type = ItemTypeFactory(fmv_value=Decimal('45.50'))
        record = InventoryLedger.credit(item_type_id=item_type.pk, quantity=4)
        assert record.location == 'LASAC Warehouse'
        assert record.quantity_available == 4
        assert record.total_value == Decimal('182.00')
        assert record.status == InventoryRecord.Status.LOW_STOCK

    def test_credit_accumulates_on_existing_record(self):
        record = InventoryRecordFactory(quantity_available=10, total_value=Decimal('100.00'))
        InventoryLedger.credit(
            item_type_id=record.item_type_id, quantity=10, value=Decimal('300.00'),
            location=record.location,
        )
        record.refresh_from_db()
        assert record.quantity_available == 20
        assert record.total_value == Decimal('400.00')
        assert record.unit_value == Decimal('20.00')

    def test_credit_rejects_unknown_status(self):
        item_type = ItemTypeFactory()
        with pytest.raises(BusinessRuleViolation):
            InventoryLedger.credit(item_type_id=item_type.pk, quantity=1, status='Lost')

    def test_ledger_entries_are_insert_only(self):
        record = InventoryRecordFactory()
        InventoryLedger.consume(inventory_id=record.pk, quantity=1)
        entry = LedgerEntry.objects.get(record=record)
        with pytest.raises(NotImplementedError):
            entry.save()
        with pytest.raises(NotImplementedError):
            entry.delete()


@pytest.mark.django_db
class TestDonationIntake:
    def test_unreceived_donation_is_pinned_reserved(self):
        item_type = ItemTypeFactory(fmv_value=Decimal('10.00'))
        records = DonationIntakeService.record_donation(
            donation_id='DON-1',
            items=[{'item_type_id': item_type.pk, 'quantity': 50}],
        )
        assert len(records) == 1
        assert records[0].status == InventoryRecord.Status.RESERVED
        assert records[0].total_value == Decimal('500.00')

    def test_declared_value_wins_over_fmv(self):
        item_type = ItemTypeFactory(fmv_value=Decimal('10.00'))
        records = DonationIntakeService.record_donation(
            donation_id='DON-2',
            items=[{'item_type_id': item_type.pk, 'quantity': 5, 'declared_value': '75.00'}],
            received=True,
        )
        assert records[0].total_value == Decimal('75.00')
        assert records[0].status == InventoryRecord.Status.LOW_STOCK

    def test_replayed_donation_changes_nothing(self):
        item_type = ItemTypeFactory()
        items = [{'item_type_id': item_type.pk, 'quantity': 20}]
        DonationIntakeService.record_donation(donation_id='DON-3', items=items, received=True)
        again = DonationIntakeService.record_donation(donation_id='DON-3', items=items, received=True)

        record = InventoryRecord.objects.get(item_type=item_type)
        assert record.quantity_available == 20
        assert [r.pk for r in again] == [record.pk]
        assert LedgerEntry.objects.filter(reference_id='DON-3').count() == 1

    def test_mark_received_clears_pin(self):
        item_type = ItemTypeFactory()
        DonationIntakeService.record_donation(
            donation_id='DON-4', items=[{'item_type_id': item_type.pk, 'quantity': 30}],
        )
        records = DonationIntakeService.mark_received(donation_id='DON-4')
        assert records[0].status == InventoryRecord.Status.AVAILABLE
        assert AuditLog.objects.filter(action='STATUS_CHANGE', model_name='InventoryRecord').exists()

    def test_mark_received_unknown_donation(self):
        with pytest.raises(ResourceNotFoundError):
            DonationIntakeService.mark_received(donation_id='DON-404')

    def test_empty_donation_rejected(self):
        with pytest.raises(BusinessRuleViolation):
            DonationIntakeService.record_donation(donation_id='DON-5', items=[])


@pytest.mark.django_db
class TestInventoryReports:
    def test_stats(self):
        food = ItemCategoryFactory(name='Food')
        hygiene = ItemCategoryFactory(name='Hygiene')
        InventoryRecordFactory(item_type=ItemTypeFactory(category=food, name='Rice'),
                               quantity_available=100, total_value=Decimal('1000.00'))
        InventoryRecordFactory(item_type=ItemTypeFactory(category=hygiene, name='Soap'),
                               quantity_available=40, total_value=Decimal('200.00'))
        InventoryRecordFactory(item_type=ItemTypeFactory(category=hygiene, name='Shampoo'),
                               quantity_available=0, total_value=Decimal('0.00'),
                               status=InventoryRecord.Status.NO_STOCK)

        stats = InventoryReportService.stats()
        assert stats['total_categories'] == 2
        assert stats['total_products'] == 2
        assert stats['total_quantity'] == 140
        assert stats['total_value'] == Decimal('1200.00')
        assert stats['top_item'] == {'item_name': 'Rice', 'quantity_available': 100}
        assert stats['stocks_by_category'][0]['category_name'] == 'Food'
        assert stats['stocks_by_category'][1]['total_value'] == Decimal('200.00')

    def test_low_stock(self):
        low = InventoryRecordFactory(quantity_available=3)
        InventoryRecordFactory(quantity_available=0, total_value=Decimal('0'))
        InventoryRecordFactory(quantity_available=50)
        assert list(InventoryReportService.low_stock()) == [low]
        assert InventoryReportService.low_stock(threshold=60).count() == 2
