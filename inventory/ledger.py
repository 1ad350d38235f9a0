"""
Inventory — Ledger Arithmetic

Pure position arithmetic for one inventory record. No ORM access:
services read a LedgerPosition from the locked row, apply one of the
functions below and write the returned position back.

Value is carried as a value-weighted average: taking ``n`` units out of
a record removes ``total_value * n / quantity`` (half-up to 0.01), and
taking every unit removes the whole value so no rounding residue is
left behind.

@file inventory/ledger.py
"""

from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal

from core.constants import LOW_STOCK_MAX_QUANTITY, MONEY_QUANTUM
from core.exceptions import BusinessRuleViolation, InsufficientStockError

ZERO = Decimal('0.00')

STATUS_AVAILABLE = 'Available'
STATUS_LOW_STOCK = 'Low Stock'
STATUS_NO_STOCK = 'No Stock'
STATUS_RESERVED = 'Reserved'
STATUS_BAZAAR = 'Bazaar'

# Statuses set by a caller rather than derived from quantity.
PINNED_STATUSES = frozenset({STATUS_RESERVED, STATUS_BAZAAR})


@dataclass(frozen=True)
class LedgerPosition:
    quantity_available: int
    total_value: Decimal = ZERO
    quantity_held: int = 0
    held_value: Decimal = ZERO
    status: str = STATUS_NO_STOCK


def quantize_money(value) -> Decimal:
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def derive_status(quantity: int, current: str | None = None) -> str:
    """
    Status for a record holding ``quantity`` units.

    A pinned status (Reserved, Bazaar) is kept while any stock remains;
    an empty record is always No Stock.
    """
    if quantity <= 0:
        return STATUS_NO_STOCK
    if current in PINNED_STATUSES:
        return current
    if quantity <= LOW_STOCK_MAX_QUANTITY:
        return STATUS_LOW_STOCK
    return STATUS_AVAILABLE


def unit_value(quantity: int, total_value: Decimal) -> Decimal:
    """Average value of one unit, unrounded. Zero for an empty record."""
    if quantity <= 0:
        return ZERO
    return Decimal(total_value) / Decimal(quantity)


def value_of(quantity: int, pool_quantity: int, pool_value: Decimal) -> Decimal:
    """Value carried by ``quantity`` units taken out of a pool."""
    if quantity >= pool_quantity:
        return quantize_money(pool_value)
    return quantize_money(Decimal(pool_value) * quantity / pool_quantity)


def _check_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise BusinessRuleViolation(detail='Quantity must be a positive integer.')


def _check_pool(quantity: int, pool: int) -> None:
    if quantity > pool:
        raise InsufficientStockError(available=pool, requested=quantity)


def _clamp(value: Decimal) -> Decimal:
    return max(quantize_money(value), ZERO)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

def apply_credit(
    position: LedgerPosition,
    quantity: int,
    value: Decimal,
    status: str | None = None,
) -> LedgerPosition:
    """
    Add donated units and their value.

    ``status`` pins Reserved or Bazaar; any other explicit status clears
    an existing pin. ``None`` keeps whatever pin the record has.
    """
    _check_quantity(quantity)
    if Decimal(value) < 0:
        raise BusinessRuleViolation(detail='Credited value cannot be negative.')

    new_quantity = position.quantity_available + quantity
    current = position.status if status is None else status
    return replace(
        position,
        quantity_available=new_quantity,
        total_value=_clamp(Decimal(position.total_value) + Decimal(value)),
        status=derive_status(new_quantity, current),
    )


def apply_consume(position: LedgerPosition, quantity: int) -> LedgerPosition:
    """Remove units from available stock for good."""
    _check_quantity(quantity)
    _check_pool(quantity, position.quantity_available)

    deducted = value_of(quantity, position.quantity_available, position.total_value)
    new_quantity = position.quantity_available - quantity
    return replace(
        position,
        quantity_available=new_quantity,
        total_value=ZERO if new_quantity == 0 else _clamp(position.total_value - deducted),
        status=derive_status(new_quantity, position.status),
    )


def apply_reserve(position: LedgerPosition, quantity: int) -> LedgerPosition:
    """Move units and their value from available stock into the held pool."""
    _check_quantity(quantity)
    _check_pool(quantity, position.quantity_available)

    moved = value_of(quantity, position.quantity_available, position.total_value)
    new_quantity = position.quantity_available - quantity
    return replace(
        position,
        quantity_available=new_quantity,
        total_value=ZERO if new_quantity == 0 else _clamp(position.total_value - moved),
        quantity_held=position.quantity_held + quantity,
        held_value=quantize_money(position.held_value + moved),
        status=derive_status(new_quantity, position.status),
    )


def apply_release(position: LedgerPosition, quantity: int) -> LedgerPosition:
    """Return held units and their value to available stock."""
    _check_quantity(quantity)
    _check_pool(quantity, position.quantity_held)

    moved = value_of(quantity, position.quantity_held, position.held_value)
    new_held = position.quantity_held - quantity
    new_quantity = position.quantity_available + quantity
    return replace(
        position,
        quantity_available=new_quantity,
        total_value=quantize_money(position.total_value + moved),
        quantity_held=new_held,
        held_value=ZERO if new_held == 0 else _clamp(position.held_value - moved),
        status=derive_status(new_quantity, position.status),
    )


def apply_consume_held(position: LedgerPosition, quantity: int) -> LedgerPosition:
    """Remove held units for good (hard-reserved plan executed)."""
    _check_quantity(quantity)
    _check_pool(quantity, position.quantity_held)

    deducted = value_of(quantity, position.quantity_held, position.held_value)
    new_held = position.quantity_held - quantity
    return replace(
        position,
        quantity_held=new_held,
        held_value=ZERO if new_held == 0 else _clamp(position.held_value - deducted),
        status=derive_status(position.quantity_available, position.status),
    )


def unpin(position: LedgerPosition) -> LedgerPosition:
    """Drop a caller-set status and derive it from quantity again."""
    return replace(position, status=derive_status(position.quantity_available))
