"""
Distribution — Serializers

Read serializers for plans, plan items and distribution logs; input
serializers for the plan workflow and planning endpoints.
Explicit field lists; no __all__.

@file distribution/serializers.py
"""

from rest_framework import serializers

from .models import DistributionLog, DistributionPlan, DistributionPlanItem


class DistributionPlanItemReadSerializer(serializers.ModelSerializer):
    item_name = serializers.CharField(source='inventory_record.item_type.name', read_only=True)
    location = serializers.CharField(source='inventory_record.location', read_only=True)

    class Meta:
        model = DistributionPlanItem
        fields = [
            'id', 'inventory_record', 'item_name', 'location',
            'quantity', 'unit_value', 'allocated_value', 'notes',
        ]
        read_only_fields = fields


class DistributionPlanReadSerializer(serializers.ModelSerializer):
    beneficiary_name = serializers.CharField(source='request.beneficiary.name', read_only=True)
    beneficiary_type = serializers.CharField(source='request.beneficiary.beneficiary_type', read_only=True)
    purpose = serializers.CharField(source='request.purpose', read_only=True)
    urgency = serializers.CharField(source='request.urgency', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    total_value = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    is_existing = serializers.SerializerMethodField()
    items = DistributionPlanItemReadSerializer(many=True, read_only=True)

    class Meta:
        model = DistributionPlan
        fields = [
            'id', 'request', 'beneficiary_name', 'beneficiary_type', 'purpose', 'urgency',
            'planned_date', 'status', 'status_display', 'remarks', 'hard_reserved',
            'total_value', 'items', 'is_existing',
            'created_by', 'approved_by', 'approved_at', 'completed_at', 'cancelled_at',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_is_existing(self, obj):
        return getattr(obj, 'is_existing', False)


class PlanItemWriteSerializer(serializers.Serializer):
    inventory_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True)


class DistributionPlanWriteSerializer(serializers.Serializer):
    request_id = serializers.UUIDField()
    planned_date = serializers.DateField(required=False, allow_null=True)
    remarks = serializers.CharField(required=False, allow_blank=True)
    items = PlanItemWriteSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('At least one item is required.')
        return value


class PlanRemarksSerializer(serializers.Serializer):
    remarks = serializers.CharField(required=False, allow_blank=True)


class PlanReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True)


class PlanRejectSerializer(serializers.Serializer):
    reason = serializers.CharField()


class PlanExecuteSerializer(serializers.Serializer):
    distribution_date = serializers.DateTimeField(required=False, allow_null=True)
    remarks = serializers.CharField(required=False, allow_blank=True)


class DistributionLogReadSerializer(serializers.ModelSerializer):
    beneficiary_name = serializers.CharField(source='beneficiary.name', read_only=True)
    item_name = serializers.CharField(source='item_type.name', read_only=True)
    distributed_by_name = serializers.SerializerMethodField()

    class Meta:
        model = DistributionLog
        fields = [
            'id', 'plan', 'beneficiary', 'beneficiary_name', 'item_type', 'item_name',
            'inventory_record', 'quantity_distributed', 'distribution_date',
            'distributed_by', 'distributed_by_name', 'remarks', 'created_at',
        ]
        read_only_fields = fields

    def get_distributed_by_name(self, obj):
        return obj.distributed_by.get_full_name() if obj.distributed_by else None


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------

class RecommendationRequestSerializer(serializers.Serializer):
    request_ids = serializers.ListField(child=serializers.UUIDField(), required=False)


class ValidatePlanSerializer(serializers.Serializer):
    planned_date = serializers.DateField(required=False, allow_null=True)
    items = PlanItemWriteSerializer(many=True, allow_empty=False)


class OptimizeCandidateSerializer(serializers.Serializer):
    inventory_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    request_id = serializers.UUIDField(required=False)
    urgency = serializers.CharField(required=False, allow_blank=True)
    beneficiary_type = serializers.CharField(required=False, allow_blank=True)
    days_since_request = serializers.FloatField(required=False, min_value=0)


class OptimizeAllocationSerializer(serializers.Serializer):
    candidates = OptimizeCandidateSerializer(many=True, allow_empty=False)


class PlanSummaryQuerySerializer(serializers.Serializer):
    year = serializers.IntegerField(required=False, min_value=2000, max_value=9999)
    month = serializers.IntegerField(required=False, min_value=1, max_value=12)
    status = serializers.ChoiceField(choices=DistributionPlan.Status.choices, required=False)
    search = serializers.CharField(required=False, allow_blank=True, default='')
