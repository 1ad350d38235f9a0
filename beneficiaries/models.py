"""
Beneficiaries — Models

Beneficiaries (families, communities, institutions, individuals) and
their requests for assistance. The distribution engine reads Approved
requests and marks them Fulfilled once a plan is executed.

@file beneficiaries/models.py
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel


class Beneficiary(BaseModel):

    class BeneficiaryType(models.TextChoices):
        INDIVIDUAL = 'Individual', _('Individual')
        FAMILY = 'Family', _('Family')
        COMMUNITY = 'Community', _('Community')
        INSTITUTION = 'Institution', _('Institution')

    name = models.CharField(_('name'), max_length=200, db_index=True)
    beneficiary_type = models.CharField(
        _('type'), max_length=20,
        choices=BeneficiaryType.choices, default=BeneficiaryType.INDIVIDUAL,
        db_index=True,
    )
    contact_person = models.CharField(_('contact person'), max_length=150, blank=True)
    phone = models.CharField(_('phone'), max_length=30, blank=True)
    email = models.EmailField(_('email'), blank=True)
    address = models.TextField(_('address'), blank=True)

    class Meta:
        verbose_name = _('beneficiary')
        verbose_name_plural = _('beneficiaries')
        ordering = ['name']

    def __str__(self):
        return self.name


class BeneficiaryRequest(BaseModel):
    """
    A request for assistance.

    ``purpose`` is the beneficiary's own wording; ``purpose_category`` is
    fixed when the request is taken in and drives the recommended basket.
    """

    class Purpose(models.TextChoices):
        FOOD = 'Food', _('Food')
        HYGIENE = 'Hygiene', _('Hygiene')
        CLOTHING = 'Clothing', _('Clothing')
        EDUCATION = 'Education', _('Education')
        MEDICAL = 'Medical', _('Medical')
        OTHER = 'Other', _('Other')

    class Urgency(models.TextChoices):
        LOW = 'Low', _('Low')
        MEDIUM = 'Medium', _('Medium')
        HIGH = 'High', _('High')

    class Status(models.TextChoices):
        PENDING = 'Pending', _('Pending')
        APPROVED = 'Approved', _('Approved')
        FULFILLED = 'Fulfilled', _('Fulfilled')
        REJECTED = 'Rejected', _('Rejected')

    beneficiary = models.ForeignKey(
        Beneficiary,
        on_delete=models.PROTECT,
        related_name='requests',
        verbose_name=_('beneficiary'),
    )
    purpose = models.TextField(_('purpose'))
    purpose_category = models.CharField(
        _('purpose category'), max_length=20,
        choices=Purpose.choices, default=Purpose.OTHER, db_index=True,
    )
    urgency = models.CharField(
        _('urgency'), max_length=10,
        choices=Urgency.choices, default=Urgency.MEDIUM, db_index=True,
    )
    status = models.CharField(
        _('status'), max_length=20,
        choices=Status.choices, default=Status.PENDING, db_index=True,
    )
    request_date = models.DateTimeField(_('request date'), default=timezone.now, db_index=True)
    individuals_served = models.PositiveIntegerField(_('individuals served'), default=1)
    notes = models.TextField(_('notes'), blank=True)

    class Meta:
        verbose_name = _('beneficiary request')
        verbose_name_plural = _('beneficiary requests')
        ordering = ['-request_date']
        indexes = [
            models.Index(fields=['status', 'request_date']),
        ]

    def __str__(self):
        return f'{self.beneficiary} — {self.get_purpose_category_display()} ({self.status})'
