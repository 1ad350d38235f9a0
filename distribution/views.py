"""
Distribution — Views

DRF ViewSets for distribution plans (create, list, retrieve and the
approve / reject / cancel / execute workflow), planning helpers
(recommendations, validation, over-demand repair), reports (statistics
and the filterable summary) and the read-only distribution log.

@file distribution/views.py
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.constants import DEFAULT_STATISTICS_PERIOD_DAYS
from core.pagination import LedgerPagination
from users.permissions import IsResourceStaff

from .filters import DistributionLogFilter, DistributionPlanFilter
from .models import DistributionLog, DistributionPlan
from .serializers import (
    DistributionLogReadSerializer,
    DistributionPlanReadSerializer,
    DistributionPlanWriteSerializer,
    OptimizeAllocationSerializer,
    PlanExecuteSerializer,
    PlanReasonSerializer,
    PlanRejectSerializer,
    PlanRemarksSerializer,
    PlanSummaryQuerySerializer,
    RecommendationRequestSerializer,
    ValidatePlanSerializer,
)
from .services import (
    DistributionPlanningService,
    DistributionPlanService,
    DistributionReportService,
)


class DistributionPlanViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Distribution plans: list, create, retrieve.
    Workflow: approve, reject, cancel, execute.
    Planning: recommendations, validate, optimize.
    Reports: statistics, summary.
    """

    permission_classes = [IsAuthenticated, IsResourceStaff]
    filterset_class = DistributionPlanFilter
    search_fields = ['request__beneficiary__name', 'request__purpose', 'remarks']
    ordering_fields = ['created_at', 'planned_date', 'status']
    ordering = ['-created_at']

    def get_queryset(self):
        return DistributionPlan.objects.select_related(
            'request__beneficiary', 'created_by', 'approved_by',
        ).prefetch_related('items__inventory_record__item_type')

    def get_serializer_class(self):
        if self.action == 'create':
            return DistributionPlanWriteSerializer
        return DistributionPlanReadSerializer

    def _plan_response(self, plan, http_status=status.HTTP_200_OK):
        return Response(
            DistributionPlanReadSerializer(plan, context={'request': self.request}).data,
            status=http_status,
        )

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        plan = DistributionPlanService.create_plan(
            request_id=data['request_id'],
            items=[
                {
                    'inventory_id': str(item['inventory_id']),
                    'quantity': item['quantity'],
                    'notes': item.get('notes', ''),
                }
                for item in data['items']
            ],
            planned_date=data.get('planned_date'),
            remarks=data.get('remarks', ''),
            actor=request.user,
        )
        http_status = status.HTTP_200_OK if plan.is_existing else status.HTTP_201_CREATED
        return self._plan_response(plan, http_status)

    @action(detail=True, methods=['post'], url_path='approve')
    def approve(self, request, pk=None):
        ser = PlanRemarksSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        plan = DistributionPlanService.approve_plan(
            plan_id=pk,
            remarks=ser.validated_data.get('remarks', ''),
            actor=request.user,
        )
        return self._plan_response(plan)

    @action(detail=True, methods=['post'], url_path='reject')
    def reject(self, request, pk=None):
        ser = PlanRejectSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        plan = DistributionPlanService.reject_plan(
            plan_id=pk,
            reason=ser.validated_data['reason'],
            actor=request.user,
        )
        return self._plan_response(plan)

    @action(detail=True, methods=['post'], url_path='cancel')
    def cancel(self, request, pk=None):
        ser = PlanReasonSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        plan = DistributionPlanService.cancel_plan(
            plan_id=pk,
            reason=ser.validated_data.get('reason', ''),
            actor=request.user,
        )
        return self._plan_response(plan)

    @action(detail=True, methods=['post'], url_path='execute')
    def execute(self, request, pk=None):
        ser = PlanExecuteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        plan = DistributionPlanService.execute_plan(
            plan_id=pk,
            distribution_date=ser.validated_data.get('distribution_date'),
            remarks=ser.validated_data.get('remarks', ''),
            actor=request.user,
        )
        return self._plan_response(plan)

    @action(detail=True, methods=['get'], url_path='logs')
    def logs(self, request, pk=None):
        plan = self.get_object()
        logs = plan.logs.select_related('beneficiary', 'item_type', 'distributed_by')
        return Response(DistributionLogReadSerializer(logs, many=True).data)

    @action(detail=False, methods=['post'], url_path='recommendations')
    def recommendations(self, request):
        ser = RecommendationRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        request_ids = [str(i) for i in ser.validated_data.get('request_ids', [])]
        return Response(DistributionPlanningService.generate_recommendations(request_ids=request_ids))

    @action(detail=False, methods=['post'], url_path='validate')
    def validate(self, request):
        ser = ValidatePlanSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = DistributionPlanningService.validate_plan(
            items=[
                {'inventory_id': str(item['inventory_id']), 'quantity': item['quantity']}
                for item in ser.validated_data['items']
            ],
            planned_date=ser.validated_data.get('planned_date'),
        )
        return Response(result)

    @action(detail=False, methods=['post'], url_path='optimize')
    def optimize(self, request):
        ser = OptimizeAllocationSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        candidates = [
            {**row, 'inventory_id': str(row['inventory_id']),
             'request_id': str(row['request_id']) if row.get('request_id') else None}
            for row in ser.validated_data['candidates']
        ]
        return Response(DistributionPlanningService.optimize_allocation(candidates=candidates))

    @action(detail=False, methods=['get'], url_path='statistics')
    def statistics(self, request):
        try:
            period = int(request.query_params.get('period', DEFAULT_STATISTICS_PERIOD_DAYS))
        except ValueError:
            period = DEFAULT_STATISTICS_PERIOD_DAYS
        return Response(DistributionReportService.statistics(period_days=period))

    @action(detail=False, methods=['get'], url_path='summary')
    def summary(self, request):
        ser = PlanSummaryQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        return Response(DistributionReportService.summary(**ser.validated_data))


class DistributionLogViewSet(viewsets.ReadOnlyModelViewSet):
    """Distribution log (insert-only; written by plan execution)."""

    permission_classes = [IsAuthenticated, IsResourceStaff]
    serializer_class = DistributionLogReadSerializer
    pagination_class = LedgerPagination
    filterset_class = DistributionLogFilter
    search_fields = ['beneficiary__name', 'item_type__name', 'remarks']
    ordering_fields = ['distribution_date', 'quantity_distributed']
    ordering = ['-distribution_date']

    def get_queryset(self):
        return DistributionLog.objects.select_related(
            'beneficiary', 'item_type', 'distributed_by',
        )
