"""
Distribution — API Integration Tests

@file distribution/tests/test_views.py
"""

from decimal import Decimal

import pytest
from django.urls import reverse
from rest_framework import status

from beneficiaries.models import BeneficiaryRequest
from distribution.models import DistributionPlan
from tests.factories import (
    BeneficiaryRequestFactory,
    DistributionPlanFactory,
    DistributionPlanItemFactory,
    InventoryRecordFactory,
)


def plan_payload(request, record, quantity):
    return {
        'request_id': str(request.pk),
        'items': [{'inventory_id': str(record.pk), 'quantity': quantity}],
    }


@pytest.mark.django_db
class TestPlanEndpoints:
    def test_create_plan(self, staff_client):
        record = InventoryRecordFactory(quantity_available=40, total_value=Decimal('400.00'))
        response = staff_client.post(
            reverse('api-v1:distribution:plan-list'),
            plan_payload(BeneficiaryRequestFactory(), record, 4),
            format='json',
        )
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()['data']
        assert data['status'] == 'Draft'
        assert data['is_existing'] is False
        assert data['total_value'] == 40.0
        assert data['items'][0]['quantity'] == 4

    def test_create_plan_twice_returns_existing(self, staff_client):
        record = InventoryRecordFactory()
        request = BeneficiaryRequestFactory()
        url = reverse('api-v1:distribution:plan-list')
        first = staff_client.post(url, plan_payload(request, record, 4), format='json')
        second = staff_client.post(url, plan_payload(request, record, 4), format='json')
        assert second.status_code == status.HTTP_200_OK
        assert second.json()['data']['id'] == first.json()['data']['id']
        assert second.json()['data']['is_existing'] is True

    def test_create_plan_shortfall(self, staff_client):
        record = InventoryRecordFactory(quantity_available=3)
        response = staff_client.post(
            reverse('api-v1:distribution:plan-list'),
            plan_payload(BeneficiaryRequestFactory(), record, 4),
            format='json',
        )
        assert response.status_code == status.HTTP_409_CONFLICT
        body = response.json()
        assert body['success'] is False
        assert body['errors']['available'] == 3
        assert body['errors']['requested'] == 4

    def test_create_plan_for_pending_request(self, staff_client):
        request = BeneficiaryRequestFactory(status=BeneficiaryRequest.Status.PENDING)
        response = staff_client.post(
            reverse('api-v1:distribution:plan-list'),
            plan_payload(request, InventoryRecordFactory(), 1),
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['code'] == 'REQUEST_NOT_APPROVED'

    def test_create_plan_without_items(self, staff_client):
        response = staff_client.post(
            reverse('api-v1:distribution:plan-list'),
            {'request_id': str(BeneficiaryRequestFactory().pk), 'items': []},
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_full_workflow(self, staff_client):
        record = InventoryRecordFactory(quantity_available=40, total_value=Decimal('400.00'))
        created = staff_client.post(
            reverse('api-v1:distribution:plan-list'),
            plan_payload(BeneficiaryRequestFactory(), record, 4),
            format='json',
        ).json()['data']

        approved = staff_client.post(reverse('api-v1:distribution:plan-approve', args=[created['id']]))
        assert approved.status_code == status.HTTP_200_OK
        assert approved.json()['data']['status'] == 'Approved'

        executed = staff_client.post(
            reverse('api-v1:distribution:plan-execute', args=[created['id']]),
            {'remarks': 'Released at the parish hall'}, format='json',
        )
        assert executed.status_code == status.HTTP_200_OK
        assert executed.json()['data']['status'] == 'Completed'

        logs = staff_client.get(reverse('api-v1:distribution:plan-logs', args=[created['id']]))
        assert logs.json()['data'][0]['quantity_distributed'] == 4
        record.refresh_from_db()
        assert record.quantity_available == 36

    def test_reject_requires_reason(self, staff_client):
        plan = DistributionPlanItemFactory().plan
        response = staff_client.post(
            reverse('api-v1:distribution:plan-reject', args=[plan.pk]), {}, format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_cancel(self, staff_client):
        plan = DistributionPlanItemFactory().plan
        response = staff_client.post(
            reverse('api-v1:distribution:plan-cancel', args=[plan.pk]),
            {'reason': 'Beneficiary relocated'}, format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['status'] == 'Cancelled'

    def test_replan_after_cancel(self, staff_client):
        record = InventoryRecordFactory()
        request = BeneficiaryRequestFactory()
        url = reverse('api-v1:distribution:plan-list')
        first = staff_client.post(url, plan_payload(request, record, 4), format='json').json()['data']
        staff_client.post(reverse('api-v1:distribution:plan-cancel', args=[first['id']]), {}, format='json')

        second = staff_client.post(url, plan_payload(request, record, 2), format='json')

        assert second.status_code == status.HTTP_201_CREATED
        assert second.json()['data']['id'] != first['id']
        assert second.json()['data']['status'] == 'Draft'

    def test_execute_draft_plan(self, staff_client):
        plan = DistributionPlanItemFactory().plan
        response = staff_client.post(reverse('api-v1:distribution:plan-execute', args=[plan.pk]))
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['code'] == 'INVALID_STATE_TRANSITION'

    def test_list_filters_by_status(self, staff_client):
        DistributionPlanFactory()
        DistributionPlanFactory(status=DistributionPlan.Status.APPROVED)
        response = staff_client.get(reverse('api-v1:distribution:plan-list'), {'status': 'Approved'})
        assert response.json()['meta']['count'] == 1


@pytest.mark.django_db
class TestPlanningEndpoints:
    def test_validate(self, staff_client):
        record = InventoryRecordFactory(quantity_available=10)
        response = staff_client.post(
            reverse('api-v1:distribution:plan-validate'),
            {'items': [{'inventory_id': str(record.pk), 'quantity': 9}]},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body['data']['is_valid'] is True
        assert 'HIGH_ALLOCATION_WARNING' in [w['code'] for w in body['meta']['warnings']]

    def test_recommendations(self, staff_client):
        BeneficiaryRequestFactory()
        response = staff_client.post(reverse('api-v1:distribution:plan-recommendations'), {}, format='json')
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['summary']['total_requests'] == 1

    def test_optimize(self, staff_client):
        record = InventoryRecordFactory(quantity_available=5)
        response = staff_client.post(
            reverse('api-v1:distribution:plan-optimize'),
            {'candidates': [
                {'inventory_id': str(record.pk), 'quantity': 4, 'urgency': 'High', 'beneficiary_type': 'Family'},
                {'inventory_id': str(record.pk), 'quantity': 4, 'urgency': 'Medium'},
            ]},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()['data']
        assert data['feasible'] is False
        assert sum(a['adjusted_quantity'] for a in data['adjustments'][0]['adjusted_allocations']) == 5

    def test_statistics(self, staff_client):
        response = staff_client.get(reverse('api-v1:distribution:plan-statistics'), {'period': 7})
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['period_days'] == 7

    def test_statistics_huge_period_is_clamped(self, staff_client):
        response = staff_client.get(
            reverse('api-v1:distribution:plan-statistics'), {'period': '99999999999999'},
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['period_days'] == 3650

    def test_summary(self, staff_client):
        request = BeneficiaryRequestFactory(individuals_served=6)
        plan = DistributionPlanFactory(request=request)
        DistributionPlanItemFactory(plan=plan, quantity=3)
        DistributionPlanFactory(status=DistributionPlan.Status.CANCELLED)

        response = staff_client.get(reverse('api-v1:distribution:plan-summary'), {'status': 'Draft'})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()['data']
        assert data['total_plans'] == 1
        assert data['draft_count'] == 1
        assert data['cancelled_count'] == 0
        assert data['total_individuals_served'] == 6
        assert data['total_items'] == 3

    def test_summary_rejects_bad_month(self, staff_client):
        response = staff_client.get(reverse('api-v1:distribution:plan-summary'), {'month': 13})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['success'] is False

    def test_distribution_log_list(self, staff_client):
        response = staff_client.get(reverse('api-v1:distribution:log-list'))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data'] == []
