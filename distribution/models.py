"""
Distribution — Models

Distribution plans with their items (at most one active plan per
approved beneficiary request) and the append-only log of goods
actually handed out.

Plan state machine: DRAFT → APPROVED → ONGOING → COMPLETED, or
DRAFT/APPROVED → CANCELLED. ONGOING only exists inside the execution
transaction.

@file distribution/models.py
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel, InsertOnlyModel


class DistributionPlan(BaseModel):

    class Status(models.TextChoices):
        DRAFT = 'Draft', _('Draft')
        APPROVED = 'Approved', _('Approved')
        ONGOING = 'Ongoing', _('Ongoing')
        COMPLETED = 'Completed', _('Completed')
        CANCELLED = 'Cancelled', _('Cancelled')

    request = models.ForeignKey(
        'beneficiaries.BeneficiaryRequest',
        on_delete=models.PROTECT,
        related_name='distribution_plans',
        verbose_name=_('beneficiary request'),
    )
    planned_date = models.DateField(_('planned date'), null=True, blank=True, db_index=True)
    status = models.CharField(
        _('status'), max_length=12,
        choices=Status.choices, default=Status.DRAFT, db_index=True,
    )
    remarks = models.TextField(_('remarks'), blank=True)
    hard_reserved = models.BooleanField(
        _('hard reserved'), default=False,
        help_text=_('Stock for this plan was held in the ledger at creation.'),
    )

    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('approved by'),
    )
    approved_at = models.DateTimeField(_('approved at'), null=True, blank=True)
    completed_at = models.DateTimeField(_('completed at'), null=True, blank=True)
    cancelled_at = models.DateTimeField(_('cancelled at'), null=True, blank=True)

    class Meta:
        verbose_name = _('distribution plan')
        verbose_name_plural = _('distribution plans')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'planned_date']),
            models.Index(fields=['created_by', 'created_at']),
        ]
        constraints = [
            # Cancelled plans free the request for a new plan.
            models.UniqueConstraint(
                fields=['request'],
                condition=~models.Q(status='Cancelled'),
                name='one_active_plan_per_request',
            ),
        ]

    def __str__(self):
        return f'Plan {self.pk} — {self.request.beneficiary} ({self.status})'

    @property
    def total_value(self) -> Decimal:
        # Works off the prefetch cache on list endpoints.
        return sum((item.allocated_value for item in self.items.all()), Decimal('0.00'))

    @property
    def is_terminal(self) -> bool:
        return self.status in (self.Status.COMPLETED, self.Status.CANCELLED)


class DistributionPlanItem(BaseModel):
    """
    One inventory record allocated to a plan.

    unit_value is snapshotted from the ledger when the plan is created so
    later price drift never rewrites the plan's valuation.
    """

    plan = models.ForeignKey(
        DistributionPlan,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name=_('plan'),
    )
    inventory_record = models.ForeignKey(
        'inventory.InventoryRecord',
        on_delete=models.PROTECT,
        related_name='plan_items',
        verbose_name=_('inventory record'),
    )
    quantity = models.PositiveIntegerField(_('quantity'))
    unit_value = models.DecimalField(_('unit value'), max_digits=12, decimal_places=2)
    allocated_value = models.DecimalField(_('allocated value'), max_digits=14, decimal_places=2)
    notes = models.TextField(_('notes'), blank=True)

    class Meta:
        verbose_name = _('distribution plan item')
        verbose_name_plural = _('distribution plan items')
        ordering = ['plan', 'created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name='plan_item_quantity_positive',
            ),
        ]

    def __str__(self):
        return f'{self.plan_id} — {self.inventory_record_id} × {self.quantity}'


class DistributionLog(InsertOnlyModel):
    """
    Goods handed to a beneficiary when a plan is executed (insert only).
    """

    plan = models.ForeignKey(
        DistributionPlan,
        on_delete=models.PROTECT,
        related_name='logs',
        verbose_name=_('plan'),
    )
    beneficiary = models.ForeignKey(
        'beneficiaries.Beneficiary',
        on_delete=models.PROTECT,
        related_name='distribution_logs',
        verbose_name=_('beneficiary'),
    )
    item_type = models.ForeignKey(
        'inventory.ItemType',
        on_delete=models.PROTECT,
        related_name='distribution_logs',
        verbose_name=_('item type'),
    )
    inventory_record = models.ForeignKey(
        'inventory.InventoryRecord',
        on_delete=models.PROTECT,
        related_name='distribution_logs',
        verbose_name=_('inventory record'),
    )
    quantity_distributed = models.PositiveIntegerField(_('quantity distributed'))
    distribution_date = models.DateTimeField(_('distribution date'), default=timezone.now, db_index=True)
    distributed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('distributed by'),
    )
    remarks = models.TextField(_('remarks'), blank=True)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('distribution log')
        verbose_name_plural = _('distribution logs')
        ordering = ['-distribution_date']
        indexes = [
            models.Index(fields=['beneficiary', 'distribution_date']),
            models.Index(fields=['item_type', 'distribution_date']),
        ]

    def __str__(self):
        return f'{self.quantity_distributed} × {self.item_type_id} to {self.beneficiary_id}'
