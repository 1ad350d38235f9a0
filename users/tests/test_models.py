"""
Users — Model Tests

@file users/tests/test_models.py
"""

import pytest

from tests.factories import ExecutiveAdminFactory, StaffUserFactory, SuperuserFactory, UserFactory
from users.models import User


@pytest.mark.django_db
class TestUserModel:
    def test_create_user_with_email(self):
        user = User.objects.create_user(email='Staff@LASAC.test', password='Pass2026!!')
        assert user.email == 'Staff@lasac.test'
        assert user.check_password('Pass2026!!')
        assert user.role == User.RoleChoices.DONOR

    def test_create_user_requires_email(self):
        with pytest.raises(ValueError):
            User.objects.create_user(email='', password='x')

    def test_create_superuser_is_executive_admin(self):
        user = User.objects.create_superuser(email='root@lasac.test', password='Pass2026!!')
        assert user.is_superuser
        assert user.role == User.RoleChoices.EXECUTIVE_ADMIN
        assert user.is_executive_admin

    def test_role_properties(self):
        assert not UserFactory().is_resource_staff
        assert StaffUserFactory().is_resource_staff
        assert not StaffUserFactory().is_executive_admin
        admin = ExecutiveAdminFactory()
        assert admin.is_executive_admin
        assert admin.is_resource_staff
        assert SuperuserFactory(role=User.RoleChoices.DONOR).is_executive_admin

    def test_inactive_user_has_no_role(self):
        user = StaffUserFactory(is_active=False)
        assert not user.is_resource_staff

    def test_staff_queryset(self):
        staff = StaffUserFactory()
        admin = ExecutiveAdminFactory()
        UserFactory()
        assert set(User.objects.staff()) == {staff, admin}

    def test_full_name_falls_back_to_email(self):
        user = UserFactory(full_name='')
        assert str(user) == user.email
