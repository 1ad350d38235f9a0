"""
Inventory — Management Command: seed_catalog

Populates item categories and item types (with their unit fair-market
value) that the recommended baskets draw from.

Usage::

    python manage.py seed_catalog

Idempotent: safe to re-run (uses get_or_create; existing FMVs are kept).

@file inventory/management/commands/seed_catalog.py
"""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from inventory.models import ItemCategory, ItemType


CATALOG = {
    'Food': [
        ('Rice (10kg)', '550.00'),
        ('Canned Goods', '35.00'),
        ('Cooking Oil', '95.00'),
        ('Instant Noodles', '15.00'),
        ('Milk Powder', '180.00'),
    ],
    'Hygiene': [
        ('Soap', '30.00'),
        ('Shampoo', '12.00'),
        ('Toothpaste', '65.00'),
        ('Toothbrush', '25.00'),
        ('Sanitary Pads', '45.00'),
    ],
    'Clothing': [
        ('T-Shirts', '150.00'),
        ('Pants', '250.00'),
        ('School Uniforms', '350.00'),
    ],
    'Education': [
        ('Notebooks', '25.00'),
        ('Pens', '10.00'),
        ('Pencils', '8.00'),
        ('Backpacks/School Bags', '450.00'),
    ],
    'Medical': [
        ('First Aid Kit', '500.00'),
        ('Face Masks', '5.00'),
        ('Alcohol', '60.00'),
        ('Bandages', '40.00'),
    ],
    'Shelter': [
        ('Blankets', '300.00'),
        ('Sleeping Mat', '200.00'),
        ('Tarpaulins', '400.00'),
    ],
}


class Command(BaseCommand):
    help = 'Seed donation item categories and item types.'

    @transaction.atomic
    def handle(self, *args, **options):
        created_count = total = 0
        for category_name, items in CATALOG.items():
            category, _ = ItemCategory.objects.get_or_create(name=category_name)
            for name, fmv in items:
                total += 1
                _, created = ItemType.objects.get_or_create(
                    category=category,
                    name=name,
                    defaults={'fmv_value': Decimal(fmv)},
                )
                if created:
                    created_count += 1
                    self.stdout.write(f'  Created item type: {category_name} / {name}')
                else:
                    self.stdout.write(f'  Exists: {category_name} / {name}')

        self.stdout.write(self.style.SUCCESS(
            f'Done. {created_count} new item types created, {total - created_count} already existed.'
        ))
