"""
Inventory — API Integration Tests

@file inventory/tests/test_views.py
"""

from decimal import Decimal

import pytest
from django.urls import reverse
from rest_framework import status

from inventory.models import InventoryRecord, LedgerEntry
from tests.factories import InventoryRecordFactory, ItemTypeFactory


@pytest.mark.django_db
class TestInventoryRecordEndpoints:
    def test_list_filters_by_status(self, staff_client):
        InventoryRecordFactory()
        InventoryRecordFactory(status=InventoryRecord.Status.BAZAAR)
        response = staff_client.get(
            reverse('api-v1:inventory:record-list'), {'status': 'Bazaar'},
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data['meta']['count'] == 1
        assert data['data'][0]['status'] == 'Bazaar'

    def test_stats(self, staff_client):
        InventoryRecordFactory(quantity_available=12, total_value=Decimal('120.00'))
        response = staff_client.get(reverse('api-v1:inventory:record-stats'))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['total_quantity'] == 12

    def test_low_stock_threshold(self, staff_client):
        InventoryRecordFactory(quantity_available=15)
        url = reverse('api-v1:inventory:record-low-stock')
        assert staff_client.get(url).json()['data'] == []
        assert len(staff_client.get(url, {'threshold': 20}).json()['data']) == 1

    def test_manual_consume_requires_executive_admin(self, staff_client):
        record = InventoryRecordFactory()
        response = staff_client.post(
            reverse('api-v1:inventory:record-consume', args=[record.pk]),
            {'quantity': 1}, format='json',
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_manual_consume(self, admin_client):
        record = InventoryRecordFactory(quantity_available=20)
        response = admin_client.post(
            reverse('api-v1:inventory:record-consume', args=[record.pk]),
            {'quantity': 5, 'reference_id': 'spoilage'}, format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['quantity_available'] == 15
        entry = LedgerEntry.objects.get(record=record)
        assert entry.reference_type == 'Manual'
        assert entry.reference_id == 'spoilage'

    def test_manual_consume_shortfall(self, admin_client):
        record = InventoryRecordFactory(quantity_available=2)
        response = admin_client.post(
            reverse('api-v1:inventory:record-consume', args=[record.pk]),
            {'quantity': 5}, format='json',
        )
        assert response.status_code == status.HTTP_409_CONFLICT
        body = response.json()
        assert body['code'] == 'INSUFFICIENT_STOCK'
        assert body['errors']['available'] == 2

    def test_record_ledger(self, admin_client):
        record = InventoryRecordFactory(quantity_available=20)
        admin_client.post(
            reverse('api-v1:inventory:record-reserve', args=[record.pk]),
            {'quantity': 5}, format='json',
        )
        response = admin_client.get(reverse('api-v1:inventory:record-ledger', args=[record.pk]))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data'][0]['entry_type'] == 'RESERVE'


@pytest.mark.django_db
class TestDonationEndpoints:
    def test_credit_then_receive(self, staff_client):
        item_type = ItemTypeFactory(fmv_value=Decimal('8.00'))
        response = staff_client.post(
            reverse('api-v1:inventory:donation-credit'),
            {
                'donation_id': 'DON-77',
                'items': [{'item_type_id': str(item_type.pk), 'quantity': 25}],
            },
            format='json',
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()['data'][0]['status'] == 'Reserved'

        response = staff_client.post(
            reverse('api-v1:inventory:donation-receive'),
            {'donation_id': 'DON-77'}, format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data'][0]['status'] == 'Available'

    def test_credit_requires_items(self, staff_client):
        response = staff_client.post(
            reverse('api-v1:inventory:donation-credit'),
            {'donation_id': 'DON-78', 'items': []}, format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
