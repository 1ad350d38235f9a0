"""
Beneficiaries — URL Configuration

@file beneficiaries/urls.py
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import BeneficiaryRequestViewSet, BeneficiaryViewSet

app_name = 'beneficiaries'

# The beneficiary list owns the empty prefix, so no router root view.
router = SimpleRouter()
router.register('requests', BeneficiaryRequestViewSet, basename='request')
router.register('', BeneficiaryViewSet, basename='beneficiary')

urlpatterns = [
    path('', include(router.urls)),
]
