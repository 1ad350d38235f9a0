"""
Beneficiaries — Django Admin Configuration

@file beneficiaries/admin.py
"""

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import Beneficiary, BeneficiaryRequest


@admin.register(Beneficiary)
class BeneficiaryAdmin(admin.ModelAdmin):
    list_display = ('name', 'beneficiary_type', 'contact_person', 'phone', 'created_at')
    list_filter = ('beneficiary_type',)
    search_fields = ('name', 'contact_person', 'email')
    readonly_fields = ('id', 'created_at', 'updated_at', 'created_by', 'updated_by')
    show_full_result_count = False
    list_per_page = 30


@admin.register(BeneficiaryRequest)
class BeneficiaryRequestAdmin(admin.ModelAdmin):
    list_display = ('beneficiary', 'purpose_category', 'urgency', 'status_badge', 'request_date')
    list_filter = ('status', 'urgency', 'purpose_category')
    search_fields = ('beneficiary__name', 'purpose')
    readonly_fields = ('id', 'purpose_category', 'status', 'created_at', 'updated_at', 'created_by', 'updated_by')
    list_select_related = ('beneficiary',)
    show_full_result_count = False
    date_hierarchy = 'request_date'
    raw_id_fields = ('beneficiary',)

    @admin.display(description=_('Status'))
    def status_badge(self, obj):
        colors = {
            'Pending': '#f59e0b', 'Approved': '#22c55e',
            'Fulfilled': '#15803d', 'Rejected': '#dc2626',
        }
        color = colors.get(obj.status, '#6b7280')
        return format_html(
            '<span style="background:{};color:#fff;padding:2px 8px;'
            'border-radius:4px;font-size:11px;font-weight:600;">{}</span>',
            color, obj.get_status_display(),
        )
