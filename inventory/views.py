"""
Inventory — Views

Inventory records (list, detail, stats, low stock, manual ledger
operations), ledger journal, item types and the donation workflow
callbacks that credit the ledger.

@file inventory/views.py
"""

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.pagination import LedgerPagination
from users.permissions import IsExecutiveAdmin, IsResourceStaff

from .models import InventoryRecord, ItemType, LedgerEntry
from .serializers import (
    DonationCreditSerializer,
    DonationReceiptSerializer,
    InventoryRecordReadSerializer,
    ItemTypeReadSerializer,
    LedgerEntryReadSerializer,
    LedgerOperationSerializer,
)
from .services import DonationIntakeService, InventoryLedger, InventoryReportService


class InventoryRecordViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Inventory records: list, retrieve, stats, low-stock.
    Ledger operations (Executive Admin): reserve, release, consume.
    """

    permission_classes = [IsAuthenticated, IsResourceStaff]
    serializer_class = InventoryRecordReadSerializer
    filterset_fields = ['status', 'location', 'item_type', 'item_type__category']
    search_fields = ['item_type__name', 'item_type__category__name', 'location']
    ordering_fields = ['quantity_available', 'total_value', 'last_updated', 'item_type__name']
    ordering = ['item_type__name', 'location']

    def get_queryset(self):
        return InventoryRecord.objects.select_related('item_type__category')

    @action(detail=False, methods=['get'], url_path='stats')
    def stats(self, request):
        return Response(InventoryReportService.stats())

    @action(detail=False, methods=['get'], url_path='low-stock')
    def low_stock(self, request):
        threshold = request.query_params.get('threshold')
        try:
            threshold = int(threshold) if threshold not in (None, '') else None
        except ValueError:
            threshold = None
        records = InventoryReportService.low_stock(threshold)
        return Response(InventoryRecordReadSerializer(records, many=True).data)

    def _ledger_operation(self, request, pk, operation):
        ser = LedgerOperationSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        record = operation(
            inventory_id=pk,
            quantity=ser.validated_data['quantity'],
            actor=request.user,
            reference_type=ser.validated_data['reference_type'],
            reference_id=ser.validated_data['reference_id'],
        )
        return Response(InventoryRecordReadSerializer(record).data)

    @action(
        detail=True,
        methods=['post'],
        url_path='reserve',
        permission_classes=[IsAuthenticated, IsExecutiveAdmin],
    )
    def reserve(self, request, pk=None):
        return self._ledger_operation(request, pk, InventoryLedger.reserve)

    @action(
        detail=True,
        methods=['post'],
        url_path='release',
        permission_classes=[IsAuthenticated, IsExecutiveAdmin],
    )
    def release(self, request, pk=None):
        return self._ledger_operation(request, pk, InventoryLedger.release)

    @action(
        detail=True,
        methods=['post'],
        url_path='consume',
        permission_classes=[IsAuthenticated, IsExecutiveAdmin],
    )
    def consume(self, request, pk=None):
        return self._ledger_operation(request, pk, InventoryLedger.consume)

    @action(detail=True, methods=['get'], url_path='ledger')
    def ledger(self, request, pk=None):
        record = self.get_object()
        entries = record.ledger_entries.select_related('record__item_type').order_by('-created_at')
        page = self.paginate_queryset(entries)
        if page is not None:
            return self.get_paginated_response(LedgerEntryReadSerializer(page, many=True).data)
        return Response(LedgerEntryReadSerializer(entries, many=True).data)


class LedgerEntryViewSet(viewsets.ReadOnlyModelViewSet):
    """Ledger journal across all records (insert-only)."""

    permission_classes = [IsAuthenticated, IsResourceStaff]
    serializer_class = LedgerEntryReadSerializer
    pagination_class = LedgerPagination
    filterset_fields = ['record', 'entry_type', 'reference_type', 'reference_id']
    ordering_fields = ['created_at']
    ordering = ['-created_at']

    def get_queryset(self):
        return LedgerEntry.objects.select_related('record__item_type')


class ItemTypeViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated, IsResourceStaff]
    serializer_class = ItemTypeReadSerializer
    filterset_fields = ['category']
    search_fields = ['name', 'category__name']
    ordering = ['category__name', 'name']

    def get_queryset(self):
        return ItemType.objects.select_related('category')


class DonationIntakeViewSet(viewsets.ViewSet):
    """Callbacks from the donation workflow: credit, receive."""

    permission_classes = [IsAuthenticated, IsResourceStaff]

    @action(detail=False, methods=['post'], url_path='credit')
    def credit(self, request):
        ser = DonationCreditSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        records = DonationIntakeService.record_donation(
            donation_id=data['donation_id'],
            items=[
                {
                    'item_type_id': str(item['item_type_id']),
                    'quantity': item['quantity'],
                    'declared_value': item.get('declared_value'),
                }
                for item in data['items']
            ],
            received=data['received'],
            location=data.get('location') or None,
            actor=request.user,
        )
        return Response(
            InventoryRecordReadSerializer(records, many=True).data,
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=['post'], url_path='receive')
    def receive(self, request):
        ser = DonationReceiptSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        records = DonationIntakeService.mark_received(
            donation_id=ser.validated_data['donation_id'],
            actor=request.user,
        )
        return Response(InventoryRecordReadSerializer(records, many=True).data)
