"""
Beneficiaries — Views

Beneficiary registry and request intake / review.

@file beneficiaries/views.py
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.constants import AUDIT_ACTION_UPDATE
from core.services import AuditService
from users.permissions import IsResourceStaff

from .models import Beneficiary, BeneficiaryRequest
from .serializers import (
    BeneficiaryRequestReadSerializer,
    BeneficiaryRequestWriteSerializer,
    BeneficiarySerializer,
    RequestReviewSerializer,
)
from .services import BeneficiaryRequestService


class BeneficiaryViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, IsResourceStaff]
    serializer_class = BeneficiarySerializer
    filterset_fields = ['beneficiary_type']
    search_fields = ['name', 'contact_person', 'email']
    ordering_fields = ['name', 'created_at']
    ordering = ['name']
    http_method_names = ['get', 'post', 'patch', 'head', 'options']

    def get_queryset(self):
        return Beneficiary.objects.all()

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)

    def perform_update(self, serializer):
        old_values = {field: getattr(serializer.instance, field) for field in serializer.validated_data}
        beneficiary = serializer.save(updated_by=self.request.user)
        AuditService.log(
            actor=self.request.user,
            action=AUDIT_ACTION_UPDATE,
            model_name='Beneficiary',
            object_id=str(beneficiary.pk),
            old_values=old_values,
            new_values={field: getattr(beneficiary, field) for field in old_values},
        )


class BeneficiaryRequestViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Beneficiary requests: list, create, retrieve.
    Workflow: review (approve or reject a pending request).
    """

    permission_classes = [IsAuthenticated, IsResourceStaff]
    filterset_fields = ['status', 'urgency', 'purpose_category', 'beneficiary']
    search_fields = ['beneficiary__name', 'purpose']
    ordering_fields = ['request_date', 'urgency', 'status']
    ordering = ['-request_date']

    def get_queryset(self):
        return BeneficiaryRequest.objects.select_related('beneficiary').prefetch_related('distribution_plans')

    def get_serializer_class(self):
        if self.action == 'create':
            return BeneficiaryRequestWriteSerializer
        return BeneficiaryRequestReadSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        obj = BeneficiaryRequestService.submit_request(
            **serializer.validated_data,
            actor=request.user,
        )
        return Response(
            BeneficiaryRequestReadSerializer(obj).data,
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['post'], url_path='review')
    def review(self, request, pk=None):
        ser = RequestReviewSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        obj = BeneficiaryRequestService.review_request(
            request_id=pk,
            approve=ser.validated_data['approve'],
            notes=ser.validated_data['notes'],
            actor=request.user,
        )
        return Response(BeneficiaryRequestReadSerializer(obj).data)
