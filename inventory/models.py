"""
Inventory — Models

Balance-based inventory ledger of donated goods. One InventoryRecord per
(item type, location) holds the current quantity and its monetary value;
every mutation is journalled in LedgerEntry, which is INSERT ONLY.

@file inventory/models.py
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel, InsertOnlyModel

from . import ledger


def default_location():
    return settings.DEFAULT_INVENTORY_LOCATION


class ItemCategory(BaseModel):
    """Grouping used by reports (Food, Hygiene, Clothing, ...)."""

    name = models.CharField(_('name'), max_length=100, unique=True)
    description = models.TextField(_('description'), blank=True)

    class Meta:
        verbose_name = _('item category')
        verbose_name_plural = _('item categories')
        ordering = ['name']

    def __str__(self):
        return self.name


class ItemType(BaseModel):
    """A kind of donated good, with its unit fair-market value."""

    category = models.ForeignKey(
        ItemCategory,
        on_delete=models.PROTECT,
        related_name='item_types',
        verbose_name=_('category'),
    )
    name = models.CharField(_('name'), max_length=150, db_index=True)
    fmv_value = models.DecimalField(
        _('fair market value'), max_digits=12, decimal_places=2, default=0,
        help_text=_('Value of one unit, used when a donor declares none.'),
    )
    description = models.TextField(_('description'), blank=True)

    class Meta:
        verbose_name = _('item type')
        verbose_name_plural = _('item types')
        ordering = ['category__name', 'name']
        constraints = [
            models.UniqueConstraint(
                fields=['category', 'name'],
                name='unique_item_type_per_category',
            ),
        ]

    def __str__(self):
        return self.name


class InventoryRecord(BaseModel):
    """
    Current stock of one item type at one location.

    Created by the first credit, never deleted. ``quantity_held`` and
    ``held_value`` are the pool set aside for hard-reserved plans; they
    are not part of ``quantity_available``.
    """

    class Status(models.TextChoices):
        AVAILABLE = ledger.STATUS_AVAILABLE, _('Available')
        LOW_STOCK = ledger.STATUS_LOW_STOCK, _('Low Stock')
        NO_STOCK = ledger.STATUS_NO_STOCK, _('No Stock')
        RESERVED = ledger.STATUS_RESERVED, _('Reserved')
        BAZAAR = ledger.STATUS_BAZAAR, _('Bazaar')

    item_type = models.ForeignKey(
        ItemType,
        on_delete=models.PROTECT,
        related_name='inventory_records',
        verbose_name=_('item type'),
    )
    location = models.CharField(
        _('location'), max_length=150, default=default_location, db_index=True,
    )
    quantity_available = models.PositiveIntegerField(_('quantity available'), default=0)
    total_value = models.DecimalField(
        _('total value'), max_digits=14, decimal_places=2, default=0,
    )
    quantity_held = models.PositiveIntegerField(_('quantity held'), default=0)
    held_value = models.DecimalField(
        _('held value'), max_digits=14, decimal_places=2, default=0,
    )
    status = models.CharField(
        _('status'), max_length=20,
        choices=Status.choices, default=Status.NO_STOCK, db_index=True,
    )
    last_updated = models.DateTimeField(_('last updated'), auto_now=True)

    class Meta:
        verbose_name = _('inventory record')
        verbose_name_plural = _('inventory records')
        ordering = ['item_type__name', 'location']
        constraints = [
            models.UniqueConstraint(
                fields=['item_type', 'location'],
                name='unique_inventory_per_item_location',
            ),
            models.CheckConstraint(
                condition=models.Q(total_value__gte=0),
                name='inventory_total_value_non_negative',
            ),
            models.CheckConstraint(
                condition=models.Q(held_value__gte=0),
                name='inventory_held_value_non_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'quantity_available']),
        ]

    def __str__(self):
        return f'{self.item_type} @ {self.location} ({self.quantity_available})'

    @property
    def item_name(self) -> str:
        return self.item_type.name

    @property
    def unit_value(self):
        return ledger.quantize_money(ledger.unit_value(self.quantity_available, self.total_value))

    def position(self) -> ledger.LedgerPosition:
        return ledger.LedgerPosition(
            quantity_available=self.quantity_available,
            total_value=self.total_value,
            quantity_held=self.quantity_held,
            held_value=self.held_value,
            status=self.status,
        )


class LedgerEntry(InsertOnlyModel):
    """
    One immutable ledger mutation (insert only).

    ``quantity``/``value`` are the amounts moved; ``*_after`` are the
    record's available balance once the mutation applied.
    """

    class EntryType(models.TextChoices):
        CREDIT = 'CREDIT', _('Credit')
        RESERVE = 'RESERVE', _('Reserve')
        RELEASE = 'RELEASE', _('Release')
        CONSUME = 'CONSUME', _('Consume')

    record = models.ForeignKey(
        InventoryRecord,
        on_delete=models.PROTECT,
        related_name='ledger_entries',
        verbose_name=_('inventory record'),
    )
    entry_type = models.CharField(
        _('entry type'), max_length=10,
        choices=EntryType.choices, db_index=True,
    )
    quantity = models.PositiveIntegerField(_('quantity'))
    value = models.DecimalField(_('value'), max_digits=14, decimal_places=2)
    quantity_after = models.PositiveIntegerField(_('quantity after'))
    value_after = models.DecimalField(_('value after'), max_digits=14, decimal_places=2)
    reference_type = models.CharField(
        _('reference type'), max_length=100, blank=True,
        help_text=_('Source of the mutation: Donation, DistributionPlan, Manual'),
    )
    reference_id = models.CharField(
        _('reference ID'), max_length=64, blank=True, db_index=True,
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('created by'),
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _('ledger entry')
        verbose_name_plural = _('ledger entries')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['record', 'created_at'], name='ledger_record_created_idx'),
            models.Index(fields=['reference_type', 'reference_id'], name='ledger_reference_idx'),
        ]

    def __str__(self):
        return f'{self.entry_type} {self.quantity} record={self.record_id}'
