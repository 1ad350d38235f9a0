"""
Distribution — Service Layer

Plan lifecycle: create (DRAFT, stock-checked, value snapshotted),
approve, reject, cancel and execute (ledger consumption + distribution
log, all items or none). Planning helpers build advisory
recommendations, validate candidate items and split over-demanded
stock. Every status change is audited.

@file distribution/services.py
"""

import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from beneficiaries.models import BeneficiaryRequest
from beneficiaries.services import BeneficiaryRequestService
from core.constants import (
    AUDIT_ACTION_CREATE,
    AUDIT_ACTION_STATUS_CHANGE,
    DEFAULT_STATISTICS_PERIOD_DAYS,
    MAX_STATISTICS_PERIOD_DAYS,
)
from core.exceptions import (
    BusinessRuleViolation,
    InsufficientInventoryError,
    InsufficientStockError,
    InvalidStateTransition,
    InventoryUnavailableError,
    RequestNotApprovedError,
    ResourceNotFoundError,
    UnknownInventoryItemError,
    UnknownRequestError,
)
from core.services import AuditService
from inventory import ledger
from inventory.models import InventoryRecord
from inventory.services import InventoryLedger

from . import validators
from .allocation import (
    AllocationCandidate,
    AllocationRecommender,
    RequestSnapshot,
    StockSnapshot,
    allocate_proportionally,
)
from .models import DistributionLog, DistributionPlan, DistributionPlanItem

logger = logging.getLogger('malasackit')

PLAN_REFERENCE = 'DistributionPlan'

Status = DistributionPlan.Status

# Valid status transitions: from_status -> set of allowed to_status
PLAN_TRANSITIONS = {
    Status.DRAFT: {Status.APPROVED, Status.CANCELLED},
    Status.APPROVED: {Status.ONGOING, Status.CANCELLED},
    Status.ONGOING: {Status.COMPLETED},
    Status.COMPLETED: set(),
    Status.CANCELLED: set(),
}


def _assert_transition(plan: DistributionPlan, new_status: str) -> None:
    allowed = PLAN_TRANSITIONS.get(plan.status, set())
    if new_status not in allowed:
        raise InvalidStateTransition(
            detail=f'Cannot transition plan from {plan.status} to {new_status}.',
        )


def _lock_plan(plan_id) -> DistributionPlan:
    try:
        return (
            DistributionPlan.objects
            .select_for_update()
            .select_related('request__beneficiary')
            .get(pk=plan_id)
        )
    except (DistributionPlan.DoesNotExist, ValidationError):
        raise ResourceNotFoundError(detail=f'Distribution plan {plan_id} not found.')


def _lock_records(inventory_ids) -> dict:
    """Lock inventory rows in primary-key order; fail on any unknown id."""
    wanted = {str(i) for i in inventory_ids}
    try:
        records = list(
            InventoryRecord.objects
            .select_for_update()
            .select_related('item_type')
            .filter(pk__in=wanted)
            .order_by('pk')
        )
    except ValidationError:
        records = []
    found = {str(r.pk): r for r in records}
    missing = sorted(wanted - set(found))
    if missing:
        raise UnknownInventoryItemError(detail=f'Inventory item {missing[0]} not found.')
    return found


def _active_plan(request: BeneficiaryRequest) -> DistributionPlan | None:
    return (
        DistributionPlan.objects
        .filter(request=request)
        .exclude(status=Status.CANCELLED)
        .first()
    )


def _is_executive_admin(actor) -> bool:
    return bool(actor) and getattr(actor, 'is_executive_admin', False)


def _log_status(plan: DistributionPlan, old_status: str, actor, **extra) -> None:
    AuditService.log(
        actor=actor,
        action=AUDIT_ACTION_STATUS_CHANGE,
        model_name='DistributionPlan',
        object_id=str(plan.pk),
        old_values={'status': old_status},
        new_values={'status': plan.status, **extra},
    )
    logger.info('DistributionPlan %s %s -> %s by %s', plan.pk, old_status, plan.status, actor)


class DistributionPlanService:
    """Distribution plan state machine."""

    @staticmethod
    @transaction.atomic
    def create_plan(
        *,
        request_id,
        items: list[dict],
        planned_date=None,
        remarks: str = '',
        actor=None,
    ) -> DistributionPlan:
        """
        Create a DRAFT plan for an approved request.

        A request already holding a non-cancelled plan gets that plan
        back with ``is_existing = True``. Every item is checked against
        the ledger under row locks; one shortfall aborts the whole plan.
        """
        try:
            request = (
                BeneficiaryRequest.objects
                .select_for_update()
                .select_related('beneficiary')
                .get(pk=request_id)
            )
        except (BeneficiaryRequest.DoesNotExist, ValidationError):
            raise UnknownRequestError(detail=f'Beneficiary request {request_id} not found.')

        if request.status != BeneficiaryRequest.Status.APPROVED:
            raise RequestNotApprovedError(
                detail=f'Can only create distribution plans for approved requests (status is {request.status}).',
            )

        existing = _active_plan(request)
        if existing is not None:
            existing.is_existing = True
            logger.info('DistributionPlan %s already exists for request %s', existing.pk, request.pk)
            return existing

        if not items:
            raise BusinessRuleViolation(detail='At least one item is required in the distribution plan.')

        date_errors, _ = validators.check_planned_date(planned_date, timezone.localdate())
        if date_errors:
            raise BusinessRuleViolation(detail=date_errors[0]['message'])

        demand = {}
        for row in items:
            quantity = row.get('quantity')
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise BusinessRuleViolation(detail='Quantity must be a positive whole number.')
            key = str(row.get('inventory_id'))
            demand[key] = demand.get(key, 0) + quantity

        records = _lock_records(demand.keys())
        for key in sorted(demand):
            record = records[key]
            if record.status in ledger.PINNED_STATUSES:
                raise InventoryUnavailableError(
                    detail=f'{record.item_type.name} is not available (status: {record.status}).',
                )
            if demand[key] > record.quantity_available:
                raise InsufficientStockError(
                    inventory_id=record.pk,
                    item_name=record.item_type.name,
                    available=record.quantity_available,
                    requested=demand[key],
                )

        hard_reserve = bool(settings.DISTRIBUTION_HARD_RESERVE)
        try:
            with transaction.atomic():
                plan = DistributionPlan.objects.create(
                    request=request,
                    planned_date=planned_date,
                    status=Status.DRAFT,
                    remarks=remarks or '',
                    hard_reserved=hard_reserve,
                    created_by=actor,
                )
        except IntegrityError:
            plan = _active_plan(request)
            plan.is_existing = True
            return plan

        for row in items:
            record = records[str(row['inventory_id'])]
            unit_value = record.unit_value
            DistributionPlanItem.objects.create(
                plan=plan,
                inventory_record=record,
                quantity=row['quantity'],
                unit_value=unit_value,
                allocated_value=ledger.quantize_money(unit_value * row['quantity']),
                notes=row.get('notes') or '',
                created_by=actor,
            )

        if hard_reserve:
            for key in sorted(demand):
                InventoryLedger.reserve(
                    inventory_id=key,
                    quantity=demand[key],
                    actor=actor,
                    reference_type=PLAN_REFERENCE,
                    reference_id=str(plan.pk),
                )

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_CREATE,
            model_name='DistributionPlan',
            object_id=str(plan.pk),
            new_values={
                'request_id': str(request.pk),
                'status': plan.status,
                'items': len(items),
                'total_value': plan.total_value,
                'hard_reserved': hard_reserve,
            },
        )
        logger.info(
            'DistributionPlan %s created for request %s: %s item(s)%s',
            plan.pk, request.pk, len(items), ' (hard reserved)' if hard_reserve else '',
        )
        plan.is_existing = False
        return plan

    @staticmethod
    @transaction.atomic
    def approve_plan(*, plan_id, remarks: str = '', actor=None) -> DistributionPlan:
        """DRAFT → APPROVED. Large plans need an Executive Admin."""
        plan = _lock_plan(plan_id)
        _assert_transition(plan, Status.APPROVED)

        total = plan.total_value
        threshold = Decimal(settings.PLAN_EXECUTIVE_APPROVAL_THRESHOLD)
        if total > threshold and not _is_executive_admin(actor):
            raise BusinessRuleViolation(
                detail=f'Plans valued above ₱{threshold:,.2f} require Executive Admin approval.',
            )

        old_status = plan.status
        plan.status = Status.APPROVED
        plan.approved_by = actor
        plan.approved_at = timezone.now()
        if remarks:
            plan.remarks = remarks
        plan.updated_by = actor
        plan.save(update_fields=['status', 'approved_by', 'approved_at', 'remarks', 'updated_by', 'updated_at'])
        _log_status(plan, old_status, actor, total_value=total)
        return plan

    @staticmethod
    @transaction.atomic
    def reject_plan(*, plan_id, reason: str, actor=None) -> DistributionPlan:
        """DRAFT → CANCELLED with a reason."""
        if not (reason or '').strip():
            raise BusinessRuleViolation(detail='A reason is required to reject a plan.')
        plan = _lock_plan(plan_id)
        if plan.status != Status.DRAFT:
            raise InvalidStateTransition(detail=f'Only draft plans can be rejected (status is {plan.status}).')
        return DistributionPlanService._cancel(plan, reason=reason.strip(), actor=actor, rejected=True)

    @staticmethod
    @transaction.atomic
    def cancel_plan(*, plan_id, reason: str = '', actor=None) -> DistributionPlan:
        """DRAFT/APPROVED → CANCELLED; held stock goes back to the ledger."""
        plan = _lock_plan(plan_id)
        return DistributionPlanService._cancel(plan, reason=reason, actor=actor)

    @staticmethod
    def _cancel(plan: DistributionPlan, *, reason: str, actor, rejected: bool = False) -> DistributionPlan:
        _assert_transition(plan, Status.CANCELLED)

        if plan.hard_reserved:
            held = {}
            for item in plan.items.all():
                held[item.inventory_record_id] = held.get(item.inventory_record_id, 0) + item.quantity
            for inventory_id in sorted(held, key=str):
                InventoryLedger.release(
                    inventory_id=inventory_id,
                    quantity=held[inventory_id],
                    actor=actor,
                    reference_type=PLAN_REFERENCE,
                    reference_id=str(plan.pk),
                )

        old_status = plan.status
        plan.status = Status.CANCELLED
        plan.cancelled_at = timezone.now()
        if reason:
            plan.remarks = reason
        plan.updated_by = actor
        plan.save(update_fields=['status', 'cancelled_at', 'remarks', 'updated_by', 'updated_at'])
        _log_status(plan, old_status, actor, reason=reason or '', rejected=rejected)
        return plan

    @staticmethod
    @transaction.atomic
    def execute_plan(
        *,
        plan_id,
        distribution_date=None,
        remarks: str = '',
        actor=None,
    ) -> DistributionPlan:
        """
        APPROVED → ONGOING → COMPLETED.

        Each item is re-checked against the ledger, logged and consumed.
        Any failure rolls back every item and leaves the plan APPROVED.
        """
        plan = _lock_plan(plan_id)
        if plan.status != Status.APPROVED:
            raise InvalidStateTransition(
                detail=f'Cannot execute plan with status {plan.status}. Plan must be approved.',
            )

        now = timezone.now()
        date_errors = validators.check_distribution_date(distribution_date, now)
        if date_errors:
            raise BusinessRuleViolation(detail=date_errors[0]['message'])
        distribution_date = distribution_date or now

        old_status = plan.status
        plan.status = Status.ONGOING
        plan.updated_by = actor
        plan.save(update_fields=['status', 'updated_by', 'updated_at'])

        items = list(
            plan.items
            .select_related('inventory_record__item_type')
            .order_by('inventory_record_id', 'created_at')
        )
        records = _lock_records({item.inventory_record_id for item in items})
        consume = InventoryLedger.consume_held if plan.hard_reserved else InventoryLedger.consume

        for item in items:
            record = records[str(item.inventory_record_id)]
            pool = record.quantity_held if plan.hard_reserved else record.quantity_available
            if pool < item.quantity:
                raise InsufficientInventoryError(
                    inventory_id=record.pk,
                    item_name=record.item_type.name,
                    available=pool,
                    requested=item.quantity,
                )

            DistributionLog.objects.create(
                plan=plan,
                beneficiary=plan.request.beneficiary,
                item_type=record.item_type,
                inventory_record=record,
                quantity_distributed=item.quantity,
                distribution_date=distribution_date,
                distributed_by=actor,
                remarks=remarks or item.notes,
            )
            records[str(record.pk)] = consume(
                inventory_id=record.pk,
                quantity=item.quantity,
                actor=actor,
                reference_type=PLAN_REFERENCE,
                reference_id=str(plan.pk),
            )

        _assert_transition(plan, Status.COMPLETED)
        plan.status = Status.COMPLETED
        plan.completed_at = timezone.now()
        plan.save(update_fields=['status', 'completed_at', 'updated_at'])

        BeneficiaryRequestService.mark_fulfilled(request_id=plan.request_id, actor=actor)
        _log_status(plan, old_status, actor, items=len(items))
        return plan


class DistributionPlanningService:
    """Advisory planning: recommendations, validation, over-demand repair."""

    @staticmethod
    def _stock_snapshot() -> list[StockSnapshot]:
        records = (
            InventoryRecord.objects
            .filter(status=InventoryRecord.Status.AVAILABLE, quantity_available__gt=0)
            .select_related('item_type__category')
            .order_by('item_type__name', '-quantity_available')
        )
        return [
            StockSnapshot(
                inventory_id=str(r.pk),
                item_name=r.item_type.name,
                category_name=r.item_type.category.name,
                quantity_available=r.quantity_available,
                unit_value=ledger.unit_value(r.quantity_available, r.total_value),
            )
            for r in records
        ]

    @staticmethod
    def _request_snapshot(request: BeneficiaryRequest, now) -> RequestSnapshot:
        return RequestSnapshot(
            request_id=str(request.pk),
            beneficiary_name=request.beneficiary.name,
            beneficiary_type=request.beneficiary.beneficiary_type,
            purpose=request.purpose,
            purpose_category=request.purpose_category,
            urgency=request.urgency,
            days_since_request=max((now - request.request_date).days, 0),
        )

    @staticmethod
    def generate_recommendations(*, request_ids=None) -> dict:
        """Baskets for approved requests with no active plan."""
        planned = DistributionPlan.objects.exclude(status=Status.CANCELLED).values('request_id')
        requests = (
            BeneficiaryRequest.objects
            .filter(status=BeneficiaryRequest.Status.APPROVED)
            .exclude(pk__in=planned)
            .select_related('beneficiary')
            .order_by('request_date')
        )
        if request_ids:
            requests = requests.filter(pk__in=request_ids)

        now = timezone.now()
        snapshots = [DistributionPlanningService._request_snapshot(r, now) for r in requests]
        result = AllocationRecommender(DistributionPlanningService._stock_snapshot()).recommend_batch(snapshots)
        logger.info(
            'Generated %s recommendation(s), estimated value %s',
            len(result['recommendations']), result['summary']['total_estimated_value'],
        )
        return {
            'recommendations': [r.as_dict() for r in result['recommendations']],
            'summary': result['summary'],
        }

    @staticmethod
    def _record_states(inventory_ids) -> dict:
        try:
            records = InventoryRecord.objects.select_related('item_type').filter(
                pk__in={str(i) for i in inventory_ids},
            )
            return {
                str(r.pk): validators.RecordState(
                    inventory_id=str(r.pk),
                    item_name=r.item_type.name,
                    status=r.status,
                    quantity_available=r.quantity_available,
                )
                for r in records
            }
        except ValidationError:
            return {}

    @staticmethod
    def validate_plan(*, items: list[dict], planned_date=None) -> dict:
        """Check candidate items without touching the ledger."""
        lines = [validators.PlanLine(str(row.get('inventory_id')), row.get('quantity')) for row in items]
        states = DistributionPlanningService._record_states(line.inventory_id for line in lines)
        result = validators.validate_plan_items(
            lines, states, high_allocation_percent=settings.HIGH_ALLOCATION_PERCENT,
        )
        date_errors, date_warnings = validators.check_planned_date(planned_date, timezone.localdate())
        if date_errors:
            result['errors'].extend(date_errors)
            result['is_valid'] = False
        result['warnings'].extend(date_warnings)
        result['summary']['error_count'] = len(result['errors'])
        result['summary']['warning_count'] = len(result['warnings'])
        return result

    @staticmethod
    def optimize_allocation(*, candidates: list[dict]) -> dict:
        """
        Split every over-demanded record between the candidates asking
        for it. Candidates may name a ``request_id`` (priority taken from
        the request) or carry ``urgency``/``beneficiary_type`` directly.
        """
        request_ids = {str(c['request_id']) for c in candidates if c.get('request_id')}
        requests = {}
        if request_ids:
            try:
                requests = {
                    str(r.pk): r
                    for r in BeneficiaryRequest.objects.select_related('beneficiary').filter(pk__in=request_ids)
                }
            except ValidationError:
                requests = {}

        now = timezone.now()
        by_record = {}
        for index, row in enumerate(candidates):
            request = requests.get(str(row.get('request_id')))
            candidate = AllocationCandidate(
                key=str(row.get('request_id') or index),
                requested=int(row.get('quantity') or 0),
                urgency=request.urgency if request else row.get('urgency', ''),
                beneficiary_type=(
                    request.beneficiary.beneficiary_type if request else row.get('beneficiary_type', '')
                ),
                days_since_request=(
                    max((now - request.request_date).days, 0) if request
                    else row.get('days_since_request', 0)
                ),
            )
            by_record.setdefault(str(row.get('inventory_id')), []).append(candidate)

        try:
            records = {
                str(r.pk): r
                for r in InventoryRecord.objects.select_related('item_type').filter(pk__in=by_record.keys())
            }
        except ValidationError:
            records = {}

        optimization = {'feasible': True, 'adjustments': [], 'warnings': [], 'total_value_impact': Decimal('0.00')}
        for inventory_id, group in by_record.items():
            record = records.get(inventory_id)
            available = record.quantity_available if record else 0
            total_demand = sum(c.requested for c in group)
            if total_demand <= available:
                continue

            optimization['feasible'] = False
            allocations = allocate_proportionally(group, available)
            unit = record.unit_value if record else Decimal('0.00')
            optimization['adjustments'].append({
                'inventory_id': inventory_id,
                'item_name': record.item_type.name if record else '',
                'total_demand': total_demand,
                'available': available,
                'shortfall': total_demand - available,
                'adjusted_allocations': [
                    {
                        'key': a.key,
                        'original_quantity': a.requested,
                        'adjusted_quantity': a.allocated,
                        'priority_score': a.priority_score,
                        'allocation_rate': a.allocation_rate,
                    }
                    for a in allocations
                ],
            })
            if record is None:
                optimization['warnings'].append(f'Inventory item {inventory_id} not found.')
            optimization['total_value_impact'] += ledger.quantize_money(
                unit * (total_demand - sum(a.allocated for a in allocations))
            )
        return optimization


class DistributionReportService:
    """Dashboard statistics and the filtered plan summary."""

    @staticmethod
    def statistics(*, period_days: int = DEFAULT_STATISTICS_PERIOD_DAYS) -> dict:
        period_days = min(max(period_days, 1), MAX_STATISTICS_PERIOD_DAYS)
        since = timezone.now() - timedelta(days=period_days)

        plans = DistributionPlan.objects.filter(created_at__gte=since).aggregate(
            total_plans=Count('id'),
            draft_count=Count('id', filter=Q(status=Status.DRAFT)),
            approved_count=Count('id', filter=Q(status=Status.APPROVED)),
            ongoing_count=Count('id', filter=Q(status=Status.ONGOING)),
            completed_count=Count('id', filter=Q(status=Status.COMPLETED)),
            cancelled_count=Count('id', filter=Q(status=Status.CANCELLED)),
        )

        logs = DistributionLog.objects.filter(distribution_date__gte=since)
        distributions = logs.aggregate(
            total_distributions=Count('id'),
            total_quantity_distributed=Sum('quantity_distributed'),
            unique_beneficiaries_served=Count('beneficiary', distinct=True),
        )
        distributions['total_quantity_distributed'] = distributions['total_quantity_distributed'] or 0

        top_items = (
            logs.values('item_type__category__name', 'item_type__name')
            .annotate(total_distributed=Sum('quantity_distributed'))
            .order_by('-total_distributed', 'item_type__name')[:10]
        )

        value_distributed = DistributionPlanItem.objects.filter(
            plan__status=Status.COMPLETED, plan__completed_at__gte=since,
        ).aggregate(total=Sum('allocated_value'))['total']
        completion_rate = (
            round(plans['completed_count'] / plans['total_plans'] * 100, 2) if plans['total_plans'] else 0
        )

        return {
            'period_days': period_days,
            'plans': plans,
            'distributions': distributions,
            'top_distributed_items': [
                {
                    'category_name': row['item_type__category__name'],
                    'item_name': row['item_type__name'],
                    'total_distributed': row['total_distributed'],
                }
                for row in top_items
            ],
            'efficiency': {
                'completion_rate': completion_rate,
                'total_value_distributed': ledger.quantize_money(value_distributed or 0),
            },
        }

    @staticmethod
    def summary(*, year=None, month=None, status=None, search: str = '') -> dict:
        """
        Plan counts by status, reach and value for the plans matching
        the filters. Year and month apply to the planned date; search
        matches the beneficiary name or the request purpose.
        """
        plans = DistributionPlan.objects.all()
        if year:
            plans = plans.filter(planned_date__year=year)
        if month:
            plans = plans.filter(planned_date__month=month)
        if status:
            plans = plans.filter(status=status)
        if search:
            plans = plans.filter(
                Q(request__beneficiary__name__icontains=search) | Q(request__purpose__icontains=search)
            )

        summary = plans.aggregate(
            total_plans=Count('id'),
            draft_count=Count('id', filter=Q(status=Status.DRAFT)),
            approved_count=Count('id', filter=Q(status=Status.APPROVED)),
            ongoing_count=Count('id', filter=Q(status=Status.ONGOING)),
            completed_count=Count('id', filter=Q(status=Status.COMPLETED)),
            cancelled_count=Count('id', filter=Q(status=Status.CANCELLED)),
            unique_beneficiaries=Count('request__beneficiary', distinct=True),
            total_individuals_served=Sum('request__individuals_served'),
        )
        items = DistributionPlanItem.objects.filter(plan__in=plans).aggregate(
            total_items=Sum('quantity'),
            total_value=Sum('allocated_value'),
        )
        summary['total_individuals_served'] = summary['total_individuals_served'] or 0
        summary['total_items'] = items['total_items'] or 0
        summary['total_value'] = ledger.quantize_money(items['total_value'] or 0)
        return summary
