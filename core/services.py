"""
Core — Audit Service

Writes audit log entries on behalf of every service module.

@file core/services.py
"""

import logging
import uuid
from decimal import Decimal
from typing import Any

from core.models import AuditLog

logger = logging.getLogger('malasackit')


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


class AuditService:
    """Centralised audit logging for every write operation."""

    @staticmethod
    def log(
        *,
        actor,
        action: str,
        model_name: str,
        object_id: str,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> AuditLog:
        return AuditLog.objects.create(
            actor=actor,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            old_values=AuditService.clean(old_values),
            new_values=AuditService.clean(new_values),
        )

    @staticmethod
    def clean(values: dict[str, Any] | None) -> dict[str, Any] | None:
        """Make a values dict JSON-safe: Decimals, dates and UUIDs become strings."""
        if values is None:
            return None
        return {key: _jsonable(value) for key, value in values.items()}
