"""
Inventory — Django Admin Configuration

Catalogue (categories, item types) is editable; inventory records and
ledger entries are read-only because every balance change must go
through the ledger service.

@file inventory/admin.py
"""

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import InventoryRecord, ItemCategory, ItemType, LedgerEntry


@admin.register(ItemCategory)
class ItemCategoryAdmin(admin.ModelAdmin):
    list_display = ('name', 'description', 'created_at')
    search_fields = ('name',)
    readonly_fields = ('id', 'created_at', 'updated_at', 'created_by', 'updated_by')


@admin.register(ItemType)
class ItemTypeAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'fmv_value')
    list_filter = ('category',)
    search_fields = ('name',)
    list_select_related = ('category',)
    readonly_fields = ('id', 'created_at', 'updated_at', 'created_by', 'updated_by')


@admin.register(InventoryRecord)
class InventoryRecordAdmin(admin.ModelAdmin):
    list_display = (
        'item_type', 'location', 'quantity_available', 'total_value',
        'quantity_held', 'status_badge', 'last_updated',
    )
    list_filter = ('status', 'location', 'item_type__category')
    search_fields = ('item_type__name', 'location')
    list_select_related = ('item_type',)
    show_full_result_count = False
    readonly_fields = (
        'id', 'item_type', 'location', 'quantity_available', 'total_value',
        'quantity_held', 'held_value', 'status', 'last_updated',
        'created_at', 'updated_at', 'created_by', 'updated_by',
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description=_('Status'))
    def status_badge(self, obj):
        colors = {
            'Available': '#22c55e', 'Low Stock': '#f59e0b', 'No Stock': '#dc2626',
            'Reserved': '#3b82f6', 'Bazaar': '#8b5cf6',
        }
        color = colors.get(obj.status, '#6b7280')
        return format_html(
            '<span style="background:{};color:#fff;padding:2px 8px;'
            'border-radius:4px;font-size:11px;font-weight:600;">{}</span>',
            color, obj.get_status_display(),
        )


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'entry_type', 'record', 'quantity', 'value', 'quantity_after', 'reference_type', 'reference_id')
    list_filter = ('entry_type', 'reference_type')
    search_fields = ('reference_id', 'record__item_type__name')
    list_select_related = ('record__item_type',)
    show_full_result_count = False
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
