"""
Distribution — Plan Validation

Pure checks of candidate plan items against a ledger snapshot, plus the
date rules for planning and executing a distribution. Errors block a
plan; warnings are for staff review only.

@file distribution/validators.py
"""

from dataclasses import asdict, dataclass, field
from datetime import date, timedelta

from core.constants import LOW_REMAINING_STOCK
from inventory.ledger import STATUS_AVAILABLE

UNKNOWN_INVENTORY_ITEM = 'UNKNOWN_INVENTORY_ITEM'
INVENTORY_UNAVAILABLE = 'INVENTORY_UNAVAILABLE'
INSUFFICIENT_QUANTITY = 'INSUFFICIENT_QUANTITY'
INVALID_QUANTITY = 'INVALID_QUANTITY'
HIGH_ALLOCATION_WARNING = 'HIGH_ALLOCATION_WARNING'
LOW_REMAINING_STOCK_WARNING = 'LOW_REMAINING_STOCK_WARNING'
LARGE_QUANTITY_WARNING = 'LARGE_QUANTITY_WARNING'

PLANNED_DATE_IN_PAST = 'PLANNED_DATE_IN_PAST'
PLANNED_DATE_FAR_AHEAD = 'PLANNED_DATE_FAR_AHEAD'
DISTRIBUTION_DATE_IN_FUTURE = 'DISTRIBUTION_DATE_IN_FUTURE'

LARGE_QUANTITY = 10000
PLANNING_HORIZON = timedelta(days=31)


@dataclass(frozen=True)
class PlanLine:
    inventory_id: str
    quantity: int


@dataclass(frozen=True)
class RecordState:
    inventory_id: str
    item_name: str
    status: str
    quantity_available: int


@dataclass
class ItemValidation:
    inventory_id: str
    quantity: int
    item_name: str = ''
    is_valid: bool = True
    errors: list = field(default_factory=list)
    warnings: list = field(default_factory=list)

    def error(self, code: str, message: str) -> None:
        self.is_valid = False
        self.errors.append({'code': code, 'inventory_id': self.inventory_id, 'message': message})

    def warn(self, code: str, message: str) -> None:
        self.warnings.append({'code': code, 'inventory_id': self.inventory_id, 'message': message})


def validate_item(
    line: PlanLine,
    record: RecordState | None,
    *,
    high_allocation_percent: int = 80,
) -> ItemValidation:
    result = ItemValidation(inventory_id=str(line.inventory_id), quantity=line.quantity)

    if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity <= 0:
        result.error(INVALID_QUANTITY, 'Quantity must be a positive whole number.')
        return result

    if record is None:
        result.error(UNKNOWN_INVENTORY_ITEM, f'Inventory item {line.inventory_id} not found.')
        return result
    result.item_name = record.item_name

    if record.status != STATUS_AVAILABLE:
        result.error(
            INVENTORY_UNAVAILABLE,
            f'{record.item_name} is not available (status: {record.status}).',
        )

    if line.quantity > record.quantity_available:
        result.error(
            INSUFFICIENT_QUANTITY,
            f'Insufficient quantity for {record.item_name}. '
            f'Available: {record.quantity_available}, Requested: {line.quantity}.',
        )
    elif record.quantity_available > 0:
        percentage = line.quantity / record.quantity_available * 100
        if percentage > high_allocation_percent:
            result.warn(
                HIGH_ALLOCATION_WARNING,
                f'High allocation: {percentage:.1f}% of available stock of {record.item_name}.',
            )
        remaining = record.quantity_available - line.quantity
        if remaining <= LOW_REMAINING_STOCK:
            result.warn(
                LOW_REMAINING_STOCK_WARNING,
                f'Only {remaining} unit(s) of {record.item_name} would remain.',
            )

    if line.quantity > LARGE_QUANTITY:
        result.warn(LARGE_QUANTITY_WARNING, f'Very large quantity ({line.quantity}). Please verify.')

    return result


def validate_plan_items(
    lines: list[PlanLine],
    records: dict,
    *,
    high_allocation_percent: int = 80,
) -> dict:
    """
    Validate every line against ``records`` (inventory_id → RecordState).

    Lines naming the same record are also checked together, since the
    plan draws them from one balance.
    """
    item_validations = [
        validate_item(line, records.get(str(line.inventory_id)), high_allocation_percent=high_allocation_percent)
        for line in lines
    ]
    errors = [e for v in item_validations for e in v.errors]
    warnings = [w for v in item_validations for w in v.warnings]

    demand = {}
    for v in item_validations:
        if v.is_valid:
            demand[v.inventory_id] = demand.get(v.inventory_id, 0) + v.quantity
    for inventory_id, total in demand.items():
        record = records[inventory_id]
        if total > record.quantity_available:
            errors.append({
                'code': INSUFFICIENT_QUANTITY,
                'inventory_id': inventory_id,
                'message': (
                    f'Combined quantity for {record.item_name} exceeds stock. '
                    f'Available: {record.quantity_available}, Requested: {total}.'
                ),
            })

    return {
        'is_valid': not errors,
        'errors': errors,
        'warnings': warnings,
        'item_validations': [asdict(v) for v in item_validations],
        'summary': {
            'total_items': len(lines),
            'valid_items': sum(1 for v in item_validations if v.is_valid),
            'total_quantity': sum(v.quantity for v in item_validations if v.is_valid),
            'error_count': len(errors),
            'warning_count': len(warnings),
        },
    }


def check_planned_date(planned_date: date | None, today: date) -> tuple[list, list]:
    """A plan cannot be dated in the past; more than a month ahead is flagged."""
    errors, warnings = [], []
    if planned_date is None:
        return errors, warnings
    if planned_date < today:
        errors.append({'code': PLANNED_DATE_IN_PAST, 'message': 'Planned date cannot be in the past.'})
    elif planned_date > today + PLANNING_HORIZON:
        warnings.append({
            'code': PLANNED_DATE_FAR_AHEAD,
            'message': 'Planned date is more than one month in the future.',
        })
    return errors, warnings


def check_distribution_date(distribution_date, now) -> list:
    if distribution_date is not None and distribution_date > now:
        return [{'code': DISTRIBUTION_DATE_IN_FUTURE, 'message': 'Distribution date cannot be in the future.'}]
    return []
