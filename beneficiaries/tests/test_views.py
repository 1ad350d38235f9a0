"""
Beneficiaries — API Integration Tests

@file beneficiaries/tests/test_views.py
"""

import pytest
from django.urls import reverse
from rest_framework import status

from beneficiaries.models import Beneficiary, BeneficiaryRequest
from core.models import AuditLog
from distribution.models import DistributionPlan
from tests.factories import BeneficiaryFactory, BeneficiaryRequestFactory, DistributionPlanFactory


@pytest.mark.django_db
class TestBeneficiaryEndpoints:
    def test_create_beneficiary(self, staff_client, staff_user):
        response = staff_client.post(
            reverse('api-v1:beneficiaries:beneficiary-list'),
            {'name': 'Barangay 12 Daycare', 'beneficiary_type': 'Institution'},
            format='json',
        )
        assert response.status_code == status.HTTP_201_CREATED
        beneficiary = Beneficiary.objects.get(name='Barangay 12 Daycare')
        assert beneficiary.created_by == staff_user

    def test_list_beneficiaries(self, staff_client):
        BeneficiaryFactory.create_batch(3)
        response = staff_client.get(reverse('api-v1:beneficiaries:beneficiary-list'))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['meta']['count'] == 3

    def test_update_beneficiary_is_audited(self, staff_client, staff_user):
        beneficiary = BeneficiaryFactory(phone='0917 000 0000')
        response = staff_client.patch(
            reverse('api-v1:beneficiaries:beneficiary-detail', args=[beneficiary.pk]),
            {'phone': '0917 111 1111'},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        entry = AuditLog.objects.get(model_name='Beneficiary', object_id=str(beneficiary.pk))
        assert entry.action == AuditLog.ActionChoices.UPDATE
        assert entry.actor == staff_user
        assert entry.old_values == {'phone': '0917 000 0000'}
        assert entry.new_values == {'phone': '0917 111 1111'}


@pytest.mark.django_db
class TestBeneficiaryRequestEndpoints:
    def test_submit_request(self, staff_client):
        beneficiary = BeneficiaryFactory()
        response = staff_client.post(
            reverse('api-v1:beneficiaries:request-list'),
            {'beneficiary_id': str(beneficiary.pk), 'purpose': 'School supplies', 'urgency': 'Low'},
            format='json',
        )
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()['data']
        assert data['purpose_category'] == 'Education'
        assert data['status'] == 'Pending'
        assert data['has_plan'] is False

    def test_review_request(self, staff_client):
        request = BeneficiaryRequestFactory(status=BeneficiaryRequest.Status.PENDING)
        response = staff_client.post(
            reverse('api-v1:beneficiaries:request-review', args=[request.pk]),
            {'approve': True}, format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['status'] == 'Approved'

    def test_review_twice_is_rejected(self, staff_client):
        request = BeneficiaryRequestFactory(status=BeneficiaryRequest.Status.REJECTED)
        response = staff_client.post(
            reverse('api-v1:beneficiaries:request-review', args=[request.pk]),
            {'approve': True}, format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['code'] == 'INVALID_STATE_TRANSITION'

    def test_filter_by_status(self, staff_client):
        BeneficiaryRequestFactory(status=BeneficiaryRequest.Status.PENDING)
        BeneficiaryRequestFactory(status=BeneficiaryRequest.Status.APPROVED)
        response = staff_client.get(
            reverse('api-v1:beneficiaries:request-list'), {'status': 'Pending'},
        )
        assert response.json()['meta']['count'] == 1

    def test_cancelled_plan_does_not_count_as_planned(self, staff_client):
        request = BeneficiaryRequestFactory()
        DistributionPlanFactory(request=request, status=DistributionPlan.Status.CANCELLED)
        url = reverse('api-v1:beneficiaries:request-detail', args=[request.pk])
        assert staff_client.get(url).json()['data']['has_plan'] is False

        DistributionPlanFactory(request=request)
        assert staff_client.get(url).json()['data']['has_plan'] is True
