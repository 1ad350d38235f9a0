"""
Distribution — Filters

django-filter FilterSets for the plan and distribution-log lists.

@file distribution/filters.py
"""

import django_filters

from .models import DistributionLog, DistributionPlan


class DistributionPlanFilter(django_filters.FilterSet):
    year = django_filters.NumberFilter(field_name='planned_date', lookup_expr='year')
    month = django_filters.NumberFilter(field_name='planned_date', lookup_expr='month')
    created_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    created_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')
    beneficiary = django_filters.UUIDFilter(field_name='request__beneficiary')

    class Meta:
        model = DistributionPlan
        fields = ['status', 'created_by', 'request', 'hard_reserved']


class DistributionLogFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name='distribution_date', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='distribution_date', lookup_expr='date__lte')

    class Meta:
        model = DistributionLog
        fields = ['plan', 'beneficiary', 'item_type', 'inventory_record']
