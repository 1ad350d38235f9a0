"""
Core — Exception Handling

Domain exceptions for the distribution engine and the DRF exception
handler producing consistent API error envelopes.

@file core/exceptions.py
"""

import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger('malasackit')


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class BusinessRuleViolation(APIException):
    """Raised when a business rule is violated at the service layer."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Business rule violation.'
    default_code = 'BUSINESS_RULE_VIOLATION'


class RequestNotApprovedError(BusinessRuleViolation):
    """Distribution plans can only be created for APPROVED beneficiary requests."""
    default_detail = 'Can only create distribution plans for approved requests.'
    default_code = 'REQUEST_NOT_APPROVED'


class InventoryUnavailableError(BusinessRuleViolation):
    """Inventory record exists but its status does not allow allocation."""
    default_detail = 'Inventory item is not available.'
    default_code = 'INVENTORY_UNAVAILABLE'


class InvalidStateTransition(BusinessRuleViolation):
    """Raised when a state machine transition is not allowed."""
    default_detail = 'Invalid state transition.'
    default_code = 'INVALID_STATE_TRANSITION'


class InsufficientStockError(APIException):
    """
    Requested quantity exceeds what the ledger holds.

    Carries the numbers the caller needs to correct the request:
    ``inventory_id``, ``item_name``, ``available`` and ``requested``.
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Insufficient stock for this operation.'
    default_code = 'INSUFFICIENT_STOCK'

    def __init__(self, detail=None, code=None, *, inventory_id=None,
                 item_name='', available=None, requested=None):
        self.inventory_id = inventory_id
        self.item_name = item_name
        self.available = available
        self.requested = requested
        numbers = detail is None and requested is not None
        if numbers:
            label = item_name or inventory_id
            detail = {
                'detail': (
                    f'Insufficient stock for {label}. '
                    f'Available: {available}, Requested: {requested}.'
                ),
                'item_name': item_name,
            }
        super().__init__(detail, code)
        if numbers:
            # Kept raw; APIException would stringify them.
            self.detail.update({
                'inventory_id': str(inventory_id) if inventory_id else None,
                'available': available,
                'requested': requested,
            })


class InsufficientInventoryError(InsufficientStockError):
    """Stock consumed elsewhere between plan approval and execution."""
    default_detail = 'Insufficient inventory to execute the distribution plan.'
    default_code = 'INSUFFICIENT_INVENTORY'


class ResourceNotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'RESOURCE_NOT_FOUND'


class UnknownInventoryItemError(ResourceNotFoundError):
    default_detail = 'Inventory item not found.'
    default_code = 'UNKNOWN_INVENTORY_ITEM'


class UnknownRequestError(ResourceNotFoundError):
    default_detail = 'Beneficiary request not found.'
    default_code = 'UNKNOWN_REQUEST'


# ---------------------------------------------------------------------------
# Standard exception handler
# ---------------------------------------------------------------------------

def standard_exception_handler(exc, context):
    """
    Wraps every error response in the standard envelope:
      { "success": false, "errors": {...}, "code": "ERROR_CODE" }
    """
    if isinstance(exc, Http404):
        exc = ResourceNotFoundError()
    elif isinstance(exc, PermissionDenied):
        exc = APIException(detail='Permission denied.', code='PERMISSION_DENIED')
        exc.status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, ValidationError):
        data = {
            'success': False,
            'errors': exc.message_dict if hasattr(exc, 'message_dict') else {'detail': exc.messages},
            'code': 'VALIDATION_ERROR',
        }
        return Response(data, status=status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)

    if response is not None:
        errors = {}
        code = getattr(exc, 'default_code', 'ERROR')

        if isinstance(response.data, dict):
            errors = response.data
            code = response.data.pop('code', code) if 'code' in response.data else code
        elif isinstance(response.data, list):
            errors = {'detail': response.data}
        else:
            errors = {'detail': [str(response.data)]}

        response.data = {
            'success': False,
            'errors': errors,
            'code': code,
        }

    if response is None:
        logger.exception('Unhandled exception in view: %s', exc)
        return Response(
            {'success': False, 'errors': {'detail': ['Internal server error.']}, 'code': 'INTERNAL_ERROR'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return response
