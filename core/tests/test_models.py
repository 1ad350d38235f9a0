"""
Core — Model Tests

Tests for AuditLog, the audit service and the API envelopes.

@file core/tests/test_models.py
"""

import uuid
from decimal import Decimal

import pytest
from django.utils import timezone

from core.exceptions import InsufficientStockError, UnknownRequestError, standard_exception_handler
from core.models import AuditLog
from core.services import AuditService
from tests.factories import AuditLogFactory, UserFactory


@pytest.mark.django_db
class TestAuditLog:
    def test_create_audit_log(self):
        user = UserFactory()
        log = AuditService.log(
            actor=user,
            action=AuditLog.ActionChoices.CREATE,
            model_name='TestModel',
            object_id='test-123',
            new_values={'key': 'value'},
        )
        assert log.pk is not None
        assert log.action == 'CREATE'
        assert log.model_name == 'TestModel'
        assert log.new_values == {'key': 'value'}

    def test_audit_log_via_factory(self):
        log = AuditLogFactory()
        assert log.pk is not None
        assert log.actor is not None

    def test_audit_log_is_insert_only(self):
        log = AuditLogFactory()
        log.model_name = 'Changed'
        with pytest.raises(NotImplementedError):
            log.save()
        with pytest.raises(NotImplementedError):
            log.delete()

    def test_values_are_made_json_safe(self):
        object_id = uuid.uuid4()
        log = AuditService.log(
            actor=None,
            action=AuditLog.ActionChoices.LEDGER,
            model_name='InventoryRecord',
            object_id=object_id,
            old_values={'total_value': Decimal('12.50')},
            new_values={'when': timezone.now(), 'id': object_id},
        )
        log.refresh_from_db()
        assert log.object_id == str(object_id)
        assert log.old_values == {'total_value': '12.50'}
        assert log.new_values['id'] == str(object_id)
        assert isinstance(log.new_values['when'], str)


@pytest.mark.django_db
class TestExceptionEnvelope:
    def test_insufficient_stock_carries_numbers(self):
        exc = InsufficientStockError(inventory_id='abc', item_name='Rice', available=3, requested=5)
        response = standard_exception_handler(exc, {})
        assert response.status_code == 409
        assert response.data['success'] is False
        assert response.data['code'] == 'INSUFFICIENT_STOCK'
        assert response.data['errors']['available'] == 3
        assert response.data['errors']['requested'] == 5

    def test_not_found_code(self):
        response = standard_exception_handler(UnknownRequestError(), {})
        assert response.status_code == 404
        assert response.data['code'] == 'UNKNOWN_REQUEST'
