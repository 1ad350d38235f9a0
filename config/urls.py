"""
MalasacKit — Root URL Configuration

All API endpoints are namespaced under /api/v1/.
The DRF browsable API is available for route inspection in development.

@file config/urls.py
"""

from django.contrib import admin
from django.urls import include, path
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.reverse import reverse

admin.site.site_header = 'MalasacKit Administration'
admin.site.site_title = 'MalasacKit'
admin.site.index_title = 'Donation Inventory & Distribution'


@api_view(['GET'])
@permission_classes([AllowAny])
def api_root(request, format=None):
    """MalasacKit API v1 — endpoint directory."""
    return Response({
        'auth': {
            'login': reverse('api-v1:auth:login', request=request, format=format),
            'refresh': reverse('api-v1:auth:token-refresh', request=request, format=format),
        },
        'beneficiaries': {
            'list': reverse('api-v1:beneficiaries:beneficiary-list', request=request, format=format),
            'requests': reverse('api-v1:beneficiaries:request-list', request=request, format=format),
        },
        'inventory': {
            'records': reverse('api-v1:inventory:record-list', request=request, format=format),
            'ledger': reverse('api-v1:inventory:ledger-entry-list', request=request, format=format),
            'item_types': reverse('api-v1:inventory:item-type-list', request=request, format=format),
        },
        'distribution': {
            'plans': reverse('api-v1:distribution:plan-list', request=request, format=format),
            'logs': reverse('api-v1:distribution:log-list', request=request, format=format),
        },
    })


api_v1_patterns = [
    path('', api_root, name='api-root'),
    path('auth/', include('users.urls', namespace='auth')),
    path('beneficiaries/', include('beneficiaries.urls', namespace='beneficiaries')),
    path('inventory/', include('inventory.urls', namespace='inventory')),
    path('distribution/', include('distribution.urls', namespace='distribution')),
]

urlpatterns = [
    path('admin/', admin.site.urls),

    # DRF session auth (powers the "Log in" button on the browsable API)
    path('api/auth/', include('rest_framework.urls', namespace='rest_framework')),

    # Versioned API
    path('api/v1/', include((api_v1_patterns, 'api-v1'))),
]
