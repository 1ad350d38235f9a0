"""
Beneficiaries — Service Layer

Request intake (purpose category derived once from the free-text
purpose), review (approve / reject) and fulfilment. Status transitions
are audited.

@file beneficiaries/services.py
"""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_STATUS_CHANGE
from core.exceptions import (
    BusinessRuleViolation,
    InvalidStateTransition,
    ResourceNotFoundError,
    UnknownRequestError,
)
from core.services import AuditService

from .models import Beneficiary, BeneficiaryRequest

logger = logging.getLogger('malasackit')

Purpose = BeneficiaryRequest.Purpose
RequestStatus = BeneficiaryRequest.Status

# Checked in order; the first category with a matching keyword wins.
PURPOSE_KEYWORDS = (
    (Purpose.FOOD, ('food', 'meal', 'nutrition')),
    (Purpose.HYGIENE, ('hygiene', 'cleaning', 'sanitation')),
    (Purpose.CLOTHING, ('clothing', 'apparel')),
    (Purpose.EDUCATION, ('school', 'education', 'student')),
    (Purpose.MEDICAL, ('medical', 'health', 'emergency')),
)

REQUEST_STATUS_TRANSITIONS = {
    RequestStatus.PENDING: {RequestStatus.APPROVED, RequestStatus.REJECTED},
    RequestStatus.APPROVED: {RequestStatus.FULFILLED, RequestStatus.REJECTED},
    RequestStatus.FULFILLED: set(),
    RequestStatus.REJECTED: set(),
}


def derive_purpose(purpose_text: str) -> str:
    """Map a free-text purpose onto a Purpose category (Other when nothing matches)."""
    text = (purpose_text or '').lower()
    for category, keywords in PURPOSE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return category
    return Purpose.OTHER


def _assert_transition(request: BeneficiaryRequest, new_status: str) -> None:
    allowed = REQUEST_STATUS_TRANSITIONS.get(request.status, set())
    if new_status not in allowed:
        raise InvalidStateTransition(
            detail=f'Cannot move request from {request.status} to {new_status}.',
        )


def _lock_request(request_id) -> BeneficiaryRequest:
    try:
        return (
            BeneficiaryRequest.objects
            .select_for_update()
            .select_related('beneficiary')
            .get(pk=request_id)
        )
    except (BeneficiaryRequest.DoesNotExist, ValidationError):
        raise UnknownRequestError(detail=f'Beneficiary request {request_id} not found.')


class BeneficiaryRequestService:
    """Intake and review of beneficiary requests."""

    @staticmethod
    @transaction.atomic
    def submit_request(
        *,
        beneficiary_id,
        purpose: str,
        urgency: str = BeneficiaryRequest.Urgency.MEDIUM,
        individuals_served: int = 1,
        notes: str = '',
        approve: bool = False,
        actor=None,
    ) -> BeneficiaryRequest:
        """
        Take in a request. ``approve`` skips review for pre-verified
        beneficiaries.
        """
        if not (purpose or '').strip():
            raise BusinessRuleViolation(detail='Purpose is required.')
        if urgency not in BeneficiaryRequest.Urgency.values:
            raise BusinessRuleViolation(detail=f'Invalid urgency: {urgency}')
        try:
            beneficiary = Beneficiary.objects.get(pk=beneficiary_id)
        except (Beneficiary.DoesNotExist, ValidationError):
            raise ResourceNotFoundError(detail='Beneficiary not found.')

        request = BeneficiaryRequest.objects.create(
            beneficiary=beneficiary,
            purpose=purpose.strip(),
            purpose_category=derive_purpose(purpose),
            urgency=urgency,
            status=RequestStatus.APPROVED if approve else RequestStatus.PENDING,
            individuals_served=individuals_served,
            notes=notes or '',
            created_by=actor,
        )
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_CREATE,
            model_name='BeneficiaryRequest',
            object_id=str(request.pk),
            new_values={
                'beneficiary_id': str(beneficiary.pk),
                'purpose_category': request.purpose_category,
                'urgency': request.urgency,
                'status': request.status,
            },
        )
        logger.info(
            'BeneficiaryRequest %s submitted for %s (%s, %s)',
            request.pk, beneficiary, request.purpose_category, request.status,
        )
        return request

    @staticmethod
    @transaction.atomic
    def review_request(
        *,
        request_id,
        approve: bool,
        notes: str = '',
        actor=None,
    ) -> BeneficiaryRequest:
        """Approve or reject a Pending request."""
        request = _lock_request(request_id)
        new_status = RequestStatus.APPROVED if approve else RequestStatus.REJECTED
        if request.status != RequestStatus.PENDING:
            raise InvalidStateTransition(
                detail=f'Only pending requests can be reviewed (status is {request.status}).',
            )
        return BeneficiaryRequestService._set_status(request, new_status, notes=notes, actor=actor)

    @staticmethod
    @transaction.atomic
    def mark_fulfilled(*, request_id, actor=None) -> BeneficiaryRequest:
        request = _lock_request(request_id)
        return BeneficiaryRequestService._set_status(request, RequestStatus.FULFILLED, actor=actor)

    @staticmethod
    def _set_status(request: BeneficiaryRequest, new_status: str, *, notes: str = '', actor=None):
        _assert_transition(request, new_status)
        old_status = request.status
        request.status = new_status
        if notes:
            request.notes = notes
        request.updated_by = actor
        request.save(update_fields=['status', 'notes', 'updated_by', 'updated_at'])

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_STATUS_CHANGE,
            model_name='BeneficiaryRequest',
            object_id=str(request.pk),
            old_values={'status': old_status},
            new_values={'status': new_status},
        )
        logger.info('BeneficiaryRequest %s %s -> %s', request.pk, old_status, new_status)
        return request
