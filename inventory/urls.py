"""
Inventory — URL Configuration

@file inventory/urls.py
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import DonationIntakeViewSet, InventoryRecordViewSet, ItemTypeViewSet, LedgerEntryViewSet

app_name = 'inventory'

router = DefaultRouter()
router.register('records', InventoryRecordViewSet, basename='record')
router.register('ledger-entries', LedgerEntryViewSet, basename='ledger-entry')
router.register('item-types', ItemTypeViewSet, basename='item-type')
router.register('donations', DonationIntakeViewSet, basename='donation')

urlpatterns = [
    path('', include(router.urls)),
]
