"""
Distribution — Application Configuration
"""

from django.apps import AppConfig


class DistributionConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'distribution'
    verbose_name = 'Distribution Planning'
