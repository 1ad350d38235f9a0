"""
Inventory — Service Layer

InventoryLedger: reserve, release, consume, consume_held and credit on a
single inventory record. Every call locks the row, recomputes the
position with inventory.ledger and writes it back with a conditional
update so a concurrent writer can never be overwritten silently.

DonationIntakeService credits received donations; InventoryReportService
serves the dashboard figures.

@file inventory/services.py
"""

import logging
from decimal import Decimal
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from core.constants import AUDIT_ACTION_LEDGER, AUDIT_ACTION_STATUS_CHANGE
from core.exceptions import (
    BusinessRuleViolation,
    InsufficientStockError,
    ResourceNotFoundError,
    UnknownInventoryItemError,
)
from core.services import AuditService

from . import ledger
from .models import InventoryRecord, ItemCategory, ItemType, LedgerEntry

logger = logging.getLogger('malasackit')

DONATION_REFERENCE = 'Donation'


def _lock_record(inventory_id) -> InventoryRecord:
    try:
        return (
            InventoryRecord.objects
            .select_for_update()
            .select_related('item_type')
            .get(pk=inventory_id)
        )
    except (InventoryRecord.DoesNotExist, ValidationError):
        raise UnknownInventoryItemError(
            detail=f'Inventory item {inventory_id} not found.',
        )


def _write_position(
    record: InventoryRecord,
    position: ledger.LedgerPosition,
    *,
    entry_type: str,
    quantity: int,
    value: Decimal,
    actor=None,
    reference_type: str = '',
    reference_id: str = '',
) -> InventoryRecord:
    """
    Compare-and-swap the new position onto the row, then journal it.

    The update only matches while the row still holds the quantities it
    was read with; zero rows updated means another writer got there first.
    """
    old_values = {
        'quantity_available': record.quantity_available,
        'total_value': record.total_value,
        'quantity_held': record.quantity_held,
        'held_value': record.held_value,
        'status': record.status,
    }
    now = timezone.now()
    updated = InventoryRecord.objects.filter(
        pk=record.pk,
        quantity_available=record.quantity_available,
        quantity_held=record.quantity_held,
    ).update(
        quantity_available=position.quantity_available,
        total_value=position.total_value,
        quantity_held=position.quantity_held,
        held_value=position.held_value,
        status=position.status,
        last_updated=now,
        updated_by=actor,
    )
    if not updated:
        raise InsufficientStockError(
            inventory_id=record.pk,
            item_name=record.item_type.name,
            available=record.quantity_available,
            requested=quantity,
        )

    record.quantity_available = position.quantity_available
    record.total_value = position.total_value
    record.quantity_held = position.quantity_held
    record.held_value = position.held_value
    record.status = position.status
    record.last_updated = now

    entry = LedgerEntry.objects.create(
        record=record,
        entry_type=entry_type,
        quantity=quantity,
        value=value,
        quantity_after=position.quantity_available,
        value_after=position.total_value,
        reference_type=reference_type or '',
        reference_id=str(reference_id or ''),
        created_by=actor,
    )
    AuditService.log(
        actor=actor,
        action=AUDIT_ACTION_LEDGER,
        model_name='InventoryRecord',
        object_id=str(record.pk),
        old_values=old_values,
        new_values={
            'entry_type': entry_type,
            'quantity': quantity,
            'value': value,
            'quantity_available': position.quantity_available,
            'total_value': position.total_value,
            'quantity_held': position.quantity_held,
            'held_value': position.held_value,
            'status': position.status,
        },
    )
    logger.info(
        'Ledger %s %s qty=%s value=%s record=%s -> available=%s status=%s',
        entry_type, entry.pk, quantity, value, record.pk,
        position.quantity_available, position.status,
    )
    return record


def _apply(record: InventoryRecord, operation, quantity: int) -> ledger.LedgerPosition:
    """Run a ledger operation, naming the record in any shortfall."""
    try:
        return operation(record.position(), quantity)
    except InsufficientStockError as exc:
        raise InsufficientStockError(
            inventory_id=record.pk,
            item_name=record.item_type.name,
            available=exc.available,
            requested=exc.requested,
        ) from exc


class InventoryLedger:
    """All-or-nothing mutations of one inventory record."""

    @staticmethod
    @transaction.atomic
    def reserve(
        *,
        inventory_id: UUID,
        quantity: int,
        actor=None,
        reference_type: str = '',
        reference_id: str = '',
    ) -> InventoryRecord:
        """Hold ``quantity`` units out of available stock."""
        record = _lock_record(inventory_id)
        before_value = record.total_value
        position = _apply(record, ledger.apply_reserve, quantity)
        return _write_position(
            record, position,
            entry_type=LedgerEntry.EntryType.RESERVE,
            quantity=quantity,
            value=ledger.quantize_money(before_value - position.total_value),
            actor=actor,
            reference_type=reference_type,
            reference_id=reference_id,
        )

    @staticmethod
    @transaction.atomic
    def release(
        *,
        inventory_id: UUID,
        quantity: int,
        actor=None,
        reference_type: str = '',
        reference_id: str = '',
    ) -> InventoryRecord:
        """Return ``quantity`` held units to available stock."""
        record = _lock_record(inventory_id)
        before_value = record.total_value
        position = _apply(record, ledger.apply_release, quantity)
        return _write_position(
            record, position,
            entry_type=LedgerEntry.EntryType.RELEASE,
            quantity=quantity,
            value=ledger.quantize_money(position.total_value - before_value),
            actor=actor,
            reference_type=reference_type,
            reference_id=reference_id,
        )

    @staticmethod
    @transaction.atomic
    def consume(
        *,
        inventory_id: UUID,
        quantity: int,
        actor=None,
        reference_type: str = '',
        reference_id: str = '',
    ) -> InventoryRecord:
        """Remove ``quantity`` units from available stock, value-weighted."""
        record = _lock_record(inventory_id)
        before_value = record.total_value
        position = _apply(record, ledger.apply_consume, quantity)
        return _write_position(
            record, position,
            entry_type=LedgerEntry.EntryType.CONSUME,
            quantity=quantity,
            value=ledger.quantize_money(before_value - position.total_value),
            actor=actor,
            reference_type=reference_type,
            reference_id=reference_id,
        )

    @staticmethod
    @transaction.atomic
    def consume_held(
        *,
        inventory_id: UUID,
        quantity: int,
        actor=None,
        reference_type: str = '',
        reference_id: str = '',
    ) -> InventoryRecord:
        """Remove ``quantity`` units from the held pool."""
        record = _lock_record(inventory_id)
        before_held = record.held_value
        position = _apply(record, ledger.apply_consume_held, quantity)
        return _write_position(
            record, position,
            entry_type=LedgerEntry.EntryType.CONSUME,
            quantity=quantity,
            value=ledger.quantize_money(before_held - position.held_value),
            actor=actor,
            reference_type=reference_type,
            reference_id=reference_id,
        )

    @staticmethod
    @transaction.atomic
    def credit(
        *,
        item_type_id: UUID,
        quantity: int,
        value: Decimal | None = None,
        location: str | None = None,
        status: str | None = None,
        actor=None,
        reference_type: str = '',
        reference_id: str = '',
    ) -> InventoryRecord:
        """
        Add donated stock to the (item type, location) record, creating it
        on first use. ``value`` defaults to fmv_value × quantity.
        """
        if status is not None and status not in InventoryRecord.Status.values:
            raise BusinessRuleViolation(detail=f'Invalid inventory status: {status}')
        try:
            item_type = ItemType.objects.get(pk=item_type_id)
        except (ItemType.DoesNotExist, ValidationError):
            raise ResourceNotFoundError(detail=f'Item type {item_type_id} not found.')

        if value is None:
            value = item_type.fmv_value * quantity if isinstance(quantity, int) else 0
        value = ledger.quantize_money(value)

        record, created = (
            InventoryRecord.objects
            .select_for_update()
            .get_or_create(
                item_type=item_type,
                location=location or settings.DEFAULT_INVENTORY_LOCATION,
                defaults={'created_by': actor},
            )
        )
        if created:
            logger.info('InventoryRecord %s created for %s @ %s', record.pk, item_type, record.location)
        record.item_type = item_type

        position = ledger.apply_credit(record.position(), quantity, value, status)
        return _write_position(
            record, position,
            entry_type=LedgerEntry.EntryType.CREDIT,
            quantity=quantity,
            value=value,
            actor=actor,
            reference_type=reference_type,
            reference_id=reference_id,
        )

    @staticmethod
    @transaction.atomic
    def clear_pinned_status(*, inventory_id: UUID, actor=None) -> InventoryRecord:
        """Re-derive status from quantity, dropping Reserved/Bazaar."""
        record = _lock_record(inventory_id)
        position = ledger.unpin(record.position())
        if position.status == record.status:
            return record

        old_status = record.status
        updated = InventoryRecord.objects.filter(
            pk=record.pk, quantity_available=record.quantity_available,
        ).update(status=position.status, last_updated=timezone.now(), updated_by=actor)
        if not updated:
            raise InsufficientStockError(
                detail='Inventory record changed while its status was updated.',
            )
        record.status = position.status

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_STATUS_CHANGE,
            model_name='InventoryRecord',
            object_id=str(record.pk),
            old_values={'status': old_status},
            new_values={'status': record.status},
        )
        logger.info('InventoryRecord %s status %s -> %s', record.pk, old_status, record.status)
        return record


class DonationIntakeService:
    """Credits the ledger from the donation workflow."""

    @staticmethod
    @transaction.atomic
    def record_donation(
        *,
        donation_id: str,
        items: list[dict],
        received: bool = False,
        location: str | None = None,
        actor=None,
    ) -> list[InventoryRecord]:
        """
        Credit every item of a donation.

        Items are dicts with ``item_type_id``, ``quantity`` and an optional
        ``declared_value``; without a declared value the item type's FMV
        is used. Stock of a donation not yet received is pinned Reserved.
        Replaying a donation id already credited changes nothing.
        """
        if not items:
            raise BusinessRuleViolation(detail='A donation must contain at least one item.')

        reference_id = str(donation_id)
        already = LedgerEntry.objects.filter(
            reference_type=DONATION_REFERENCE,
            reference_id=reference_id,
            entry_type=LedgerEntry.EntryType.CREDIT,
        )
        if already.exists():
            logger.info('Donation %s already credited; skipping', reference_id)
            return list(
                InventoryRecord.objects
                .filter(ledger_entries__in=already)
                .select_related('item_type')
                .distinct()
            )

        records = []
        for item in items:
            quantity = item.get('quantity')
            declared = item.get('declared_value')
            record = InventoryLedger.credit(
                item_type_id=item.get('item_type_id'),
                quantity=quantity,
                value=Decimal(str(declared)) if declared else None,
                location=location,
                status=None if received else InventoryRecord.Status.RESERVED,
                actor=actor,
                reference_type=DONATION_REFERENCE,
                reference_id=reference_id,
            )
            records.append(record)

        logger.info('Donation %s credited: %s item(s)', reference_id, len(records))
        return records

    @staticmethod
    @transaction.atomic
    def mark_received(*, donation_id: str, actor=None) -> list[InventoryRecord]:
        """Release the Reserved pin on every record a donation credited."""
        record_ids = list(
            LedgerEntry.objects.filter(
                reference_type=DONATION_REFERENCE,
                reference_id=str(donation_id),
                entry_type=LedgerEntry.EntryType.CREDIT,
            ).values_list('record_id', flat=True).distinct()
        )
        if not record_ids:
            raise ResourceNotFoundError(detail=f'No inventory was credited for donation {donation_id}.')

        records = []
        for record_id in sorted(record_ids, key=str):
            record = InventoryRecord.objects.get(pk=record_id)
            if record.status == InventoryRecord.Status.RESERVED:
                record = InventoryLedger.clear_pinned_status(inventory_id=record_id, actor=actor)
            records.append(record)
        return records


class InventoryReportService:
    """Read-only dashboard figures."""

    @staticmethod
    def stats() -> dict:
        in_stock = InventoryRecord.objects.filter(quantity_available__gt=0)
        totals = in_stock.aggregate(
            total_quantity=Sum('quantity_available'),
            total_value=Sum('total_value'),
            total_products=Count('id'),
        )
        top = in_stock.select_related('item_type').order_by('-quantity_available').first()

        by_category = (
            ItemCategory.objects
            .annotate(
                total_stock=Sum(
                    'item_types__inventory_records__quantity_available',
                    filter=Q(item_types__inventory_records__quantity_available__gt=0),
                ),
                total_value=Sum(
                    'item_types__inventory_records__total_value',
                    filter=Q(item_types__inventory_records__quantity_available__gt=0),
                ),
            )
            .filter(total_stock__gt=0)
            .order_by('-total_stock', 'name')
        )

        return {
            'total_categories': len(by_category),
            'total_products': totals['total_products'] or 0,
            'total_quantity': totals['total_quantity'] or 0,
            'total_value': ledger.quantize_money(totals['total_value'] or 0),
            'top_item': (
                {'item_name': top.item_type.name, 'quantity_available': top.quantity_available}
                if top else None
            ),
            'stocks_by_category': [
                {
                    'category_name': category.name,
                    'total_stock': category.total_stock,
                    'total_value': ledger.quantize_money(category.total_value or 0),
                }
                for category in by_category
            ],
        }

    @staticmethod
    def low_stock(threshold: int | None = None):
        """Records with 0 < quantity ≤ threshold, scarcest first."""
        if threshold is None:
            threshold = settings.DEFAULT_LOW_STOCK_THRESHOLD
        return (
            InventoryRecord.objects
            .filter(quantity_available__gt=0, quantity_available__lte=threshold)
            .select_related('item_type__category')
            .order_by('quantity_available', 'item_type__name')
        )
