"""
MalasacKit — Root conftest for pytest

Shared fixtures available to all test modules.

@file conftest.py
"""

import pytest
from rest_framework.test import APIClient

from tests.factories import ExecutiveAdminFactory, StaffUserFactory, UserFactory


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Donor account with default password TestPass2026!"""
    return UserFactory()


@pytest.fixture
def staff_user(db):
    """Resource Staff account."""
    return StaffUserFactory()


@pytest.fixture
def admin_user(db):
    """Executive Admin account."""
    return ExecutiveAdminFactory()


@pytest.fixture
def authenticated_client(api_client, user):
    """API client authenticated as a donor."""
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def staff_client(api_client, staff_user):
    """API client authenticated as Resource Staff."""
    api_client.force_authenticate(user=staff_user)
    return api_client


@pytest.fixture
def admin_client(db, admin_user):
    """API client authenticated as an Executive Admin."""
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client
