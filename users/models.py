"""
Users — Models

Custom User model with UUID PK, email-based login and a single portal
role. Registration and approval of accounts happen outside this engine;
users here are the actors stamped on plans, logs and ledger entries.

@file users/models.py
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel
from users.managers import UserManager


class User(AbstractBaseUser, PermissionsMixin, BaseModel):
    """
    Portal user.

    Roles follow the portal's staffing model: donors give, Resource Staff
    plan and execute distributions, Executive Admins approve plans and
    adjust the ledger by hand.
    """

    class RoleChoices(models.TextChoices):
        DONOR = 'DONOR', _('Donor')
        RESOURCE_STAFF = 'RESOURCE_STAFF', _('Resource Staff')
        EXECUTIVE_ADMIN = 'EXECUTIVE_ADMIN', _('Executive Admin')

    email = models.EmailField(_('email'), unique=True)
    full_name = models.CharField(_('full name'), max_length=150, blank=True)
    role = models.CharField(
        _('role'), max_length=20,
        choices=RoleChoices.choices, default=RoleChoices.DONOR,
        db_index=True,
    )

    is_staff = models.BooleanField(_('staff status'), default=False)
    is_active = models.BooleanField(_('active'), default=True)
    date_joined = models.DateTimeField(_('date joined'), default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['role', 'is_active']),
        ]

    def __str__(self):
        return self.get_full_name()

    def get_full_name(self):
        return self.full_name or self.email

    def get_short_name(self):
        return self.full_name.split(' ')[0] if self.full_name else self.email

    def has_role(self, role_name: str) -> bool:
        return self.is_active and self.role == role_name

    @property
    def is_executive_admin(self) -> bool:
        return self.is_superuser or self.has_role(self.RoleChoices.EXECUTIVE_ADMIN)

    @property
    def is_resource_staff(self) -> bool:
        return self.is_executive_admin or self.has_role(self.RoleChoices.RESOURCE_STAFF)
