"""
Beneficiaries — Application Configuration
"""

from django.apps import AppConfig


class BeneficiariesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'beneficiaries'
    verbose_name = 'Beneficiaries & Requests'
