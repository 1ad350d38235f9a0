"""
Users — DRF Permission Classes

Role checks for the distribution and inventory endpoints.

@file users/permissions.py
"""

from rest_framework.permissions import BasePermission


class IsResourceStaff(BasePermission):
    """Resource Staff or Executive Admin (planning, approval, rejection, execution, reads)."""

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_resource_staff


class IsExecutiveAdmin(BasePermission):
    """Executive Admin only (manual ledger operations)."""

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_executive_admin
