"""
Core — Constants

Project-wide constants shared by every app: audit action names,
pagination limits, inventory status thresholds and report windows.

@file core/constants.py
"""

from decimal import Decimal

# ---------------------------------------------------------------------------
# Audit actions (mirror AuditLog.ActionChoices)
# ---------------------------------------------------------------------------

AUDIT_ACTION_CREATE = 'CREATE'
AUDIT_ACTION_UPDATE = 'UPDATE'
AUDIT_ACTION_STATUS_CHANGE = 'STATUS_CHANGE'
AUDIT_ACTION_LEDGER = 'LEDGER'


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------

# Quantity at or below which a record is LOW_STOCK (and above zero).
LOW_STOCK_MAX_QUANTITY = 10

# Money is stored as NUMERIC(12, 2).
MONEY_QUANTUM = Decimal('0.01')

# Remaining stock at or below this after an allocation raises a warning.
LOW_REMAINING_STOCK = 5


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

DEFAULT_STATISTICS_PERIOD_DAYS = 30
MAX_STATISTICS_PERIOD_DAYS = 3650
