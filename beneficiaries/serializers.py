"""
Beneficiaries — Serializers

@file beneficiaries/serializers.py
"""

from rest_framework import serializers

from .models import Beneficiary, BeneficiaryRequest


class BeneficiarySerializer(serializers.ModelSerializer):
    open_requests = serializers.SerializerMethodField()

    class Meta:
        model = Beneficiary
        fields = [
            'id', 'name', 'beneficiary_type', 'contact_person', 'phone',
            'email', 'address', 'open_requests', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'open_requests', 'created_at', 'updated_at']

    def get_open_requests(self, obj):
        return obj.requests.filter(
            status__in=[BeneficiaryRequest.Status.PENDING, BeneficiaryRequest.Status.APPROVED],
        ).count()


class BeneficiaryRequestReadSerializer(serializers.ModelSerializer):
    beneficiary_name = serializers.CharField(source='beneficiary.name', read_only=True)
    beneficiary_type = serializers.CharField(source='beneficiary.beneficiary_type', read_only=True)
    has_plan = serializers.SerializerMethodField()

    class Meta:
        model = BeneficiaryRequest
        fields = [
            'id', 'beneficiary', 'beneficiary_name', 'beneficiary_type',
            'purpose', 'purpose_category', 'urgency', 'status', 'request_date',
            'individuals_served', 'notes', 'has_plan', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_has_plan(self, obj) -> bool:
        # Cancelled plans do not count; the request may be planned again.
        return any(plan.status != 'Cancelled' for plan in obj.distribution_plans.all())


class BeneficiaryRequestWriteSerializer(serializers.Serializer):
    beneficiary_id = serializers.UUIDField()
    purpose = serializers.CharField()
    urgency = serializers.ChoiceField(
        choices=BeneficiaryRequest.Urgency.choices,
        default=BeneficiaryRequest.Urgency.MEDIUM,
    )
    individuals_served = serializers.IntegerField(min_value=1, default=1)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class RequestReviewSerializer(serializers.Serializer):
    approve = serializers.BooleanField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')
