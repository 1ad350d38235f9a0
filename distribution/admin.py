"""
Distribution — Django Admin Configuration

Plans with their items, and the read-only distribution log. Status is
changed through the API workflow, never edited here.

@file distribution/admin.py
"""

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import DistributionLog, DistributionPlan, DistributionPlanItem


class DistributionPlanItemInline(admin.TabularInline):
    model = DistributionPlanItem
    extra = 0
    can_delete = False
    readonly_fields = ('inventory_record', 'quantity', 'unit_value', 'allocated_value', 'notes')
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(DistributionPlan)
class DistributionPlanAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'request', 'status_badge', 'planned_date', 'hard_reserved',
        'approved_by', 'created_at',
    )
    list_filter = ('status', 'hard_reserved')
    search_fields = ('id', 'request__beneficiary__name', 'remarks')
    readonly_fields = (
        'id', 'request', 'status', 'hard_reserved', 'approved_by', 'approved_at',
        'completed_at', 'cancelled_at', 'created_at', 'updated_at', 'created_by', 'updated_by',
    )
    list_select_related = ('request__beneficiary', 'approved_by')
    show_full_result_count = False
    list_per_page = 30
    date_hierarchy = 'created_at'
    ordering = ('-created_at',)
    inlines = [DistributionPlanItemInline]

    fieldsets = (
        (_('Plan'), {'fields': ('id', 'request', 'planned_date', 'remarks')}),
        (_('Status'), {'fields': ('status', 'hard_reserved', 'approved_by', 'approved_at', 'completed_at', 'cancelled_at')}),
        (_('Audit'), {'fields': ('created_at', 'updated_at', 'created_by', 'updated_by'), 'classes': ('collapse',)}),
    )

    @admin.display(description=_('Status'))
    def status_badge(self, obj):
        colors = {
            'Draft': '#6b7280', 'Approved': '#22c55e', 'Ongoing': '#3b82f6',
            'Completed': '#15803d', 'Cancelled': '#dc2626',
        }
        color = colors.get(obj.status, '#6b7280')
        return format_html(
            '<span style="background:{};color:#fff;padding:2px 8px;'
            'border-radius:4px;font-size:11px;font-weight:600;">{}</span>',
            color, obj.get_status_display(),
        )


@admin.register(DistributionLog)
class DistributionLogAdmin(admin.ModelAdmin):
    list_display = ('distribution_date', 'beneficiary', 'item_type', 'quantity_distributed', 'plan', 'distributed_by')
    list_filter = ('distribution_date',)
    search_fields = ('beneficiary__name', 'item_type__name', 'plan__id')
    list_select_related = ('beneficiary', 'item_type', 'distributed_by')
    show_full_result_count = False
    date_hierarchy = 'distribution_date'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
