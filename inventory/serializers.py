"""
Inventory — Serializers

Read serializers for records, item types and ledger entries; input
serializers for ledger operations and donation callbacks.
Explicit field lists; no __all__.

@file inventory/serializers.py
"""

from rest_framework import serializers

from .models import InventoryRecord, ItemType, LedgerEntry


class ItemTypeReadSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)

    class Meta:
        model = ItemType
        fields = ['id', 'name', 'category', 'category_name', 'fmv_value', 'description']
        read_only_fields = fields


class InventoryRecordReadSerializer(serializers.ModelSerializer):
    item_name = serializers.CharField(source='item_type.name', read_only=True)
    category_name = serializers.CharField(source='item_type.category.name', read_only=True)
    unit_fmv = serializers.DecimalField(source='item_type.fmv_value', max_digits=12, decimal_places=2, read_only=True)
    unit_value = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = InventoryRecord
        fields = [
            'id', 'item_type', 'item_name', 'category_name', 'location',
            'quantity_available', 'total_value', 'unit_value', 'unit_fmv',
            'quantity_held', 'held_value', 'status', 'status_display', 'last_updated',
        ]
        read_only_fields = fields


class LedgerEntryReadSerializer(serializers.ModelSerializer):
    item_name = serializers.CharField(source='record.item_type.name', read_only=True)

    class Meta:
        model = LedgerEntry
        fields = [
            'id', 'record', 'item_name', 'entry_type', 'quantity', 'value',
            'quantity_after', 'value_after', 'reference_type', 'reference_id',
            'created_by', 'created_at',
        ]
        read_only_fields = fields


class LedgerOperationSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    reference_type = serializers.CharField(max_length=100, required=False, default='Manual')
    reference_id = serializers.CharField(max_length=64, required=False, allow_blank=True, default='')


class DonationItemSerializer(serializers.Serializer):
    item_type_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    declared_value = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True,
    )


class DonationCreditSerializer(serializers.Serializer):
    donation_id = serializers.CharField(max_length=64)
    items = DonationItemSerializer(many=True, allow_empty=False)
    received = serializers.BooleanField(default=False)
    location = serializers.CharField(max_length=150, required=False, allow_blank=True)


class DonationReceiptSerializer(serializers.Serializer):
    donation_id = serializers.CharField(max_length=64)
