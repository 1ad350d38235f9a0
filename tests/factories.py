"""
MalasacKit — Test Factories

Factory Boy factories for generating test data. Used across all test
modules.

@file tests/factories.py
"""

import uuid
from decimal import Decimal

import factory

from beneficiaries.models import Beneficiary, BeneficiaryRequest
from core.models import AuditLog
from distribution.models import DistributionPlan, DistributionPlanItem
from inventory.models import InventoryRecord, ItemCategory, ItemType
from users.models import User


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f'user-{n}@lasac.test')
    full_name = factory.Faker('name')
    role = User.RoleChoices.DONOR
    is_active = True

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        password = extracted or 'TestPass2026!'
        self.set_password(password)
        if create:
            self.save(update_fields=['password'])


class StaffUserFactory(UserFactory):
    role = User.RoleChoices.RESOURCE_STAFF


class ExecutiveAdminFactory(UserFactory):
    role = User.RoleChoices.EXECUTIVE_ADMIN


class SuperuserFactory(UserFactory):
    role = User.RoleChoices.EXECUTIVE_ADMIN
    is_staff = True
    is_superuser = True


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------

class ItemCategoryFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ItemCategory
        django_get_or_create = ('name',)

    name = 'Food'


class ItemTypeFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ItemType

    category = factory.SubFactory(ItemCategoryFactory)
    name = factory.Sequence(lambda n: f'Item-{n}')
    fmv_value = factory.LazyFunction(lambda: Decimal('10.00'))


class InventoryRecordFactory(factory.django.DjangoModelFactory):
    """Available record worth fmv × quantity unless overridden."""

    class Meta:
        model = InventoryRecord

    item_type = factory.SubFactory(ItemTypeFactory)
    location = 'LASAC Warehouse'
    quantity_available = 100
    total_value = factory.LazyAttribute(lambda o: o.item_type.fmv_value * o.quantity_available)
    status = InventoryRecord.Status.AVAILABLE


# ---------------------------------------------------------------------------
# Beneficiaries
# ---------------------------------------------------------------------------

class BeneficiaryFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Beneficiary

    name = factory.Sequence(lambda n: f'Beneficiary-{n}')
    beneficiary_type = Beneficiary.BeneficiaryType.FAMILY
    contact_person = factory.Faker('name')


class BeneficiaryRequestFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = BeneficiaryRequest

    beneficiary = factory.SubFactory(BeneficiaryFactory)
    purpose = 'Food assistance after the flood'
    purpose_category = BeneficiaryRequest.Purpose.FOOD
    urgency = BeneficiaryRequest.Urgency.MEDIUM
    status = BeneficiaryRequest.Status.APPROVED
    individuals_served = 5


# ---------------------------------------------------------------------------
# Distribution
# ---------------------------------------------------------------------------

class DistributionPlanFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = DistributionPlan

    request = factory.SubFactory(BeneficiaryRequestFactory)
    status = DistributionPlan.Status.DRAFT


class DistributionPlanItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = DistributionPlanItem

    plan = factory.SubFactory(DistributionPlanFactory)
    inventory_record = factory.SubFactory(InventoryRecordFactory)
    quantity = 5
    unit_value = factory.LazyAttribute(lambda o: o.inventory_record.unit_value)
    allocated_value = factory.LazyAttribute(lambda o: o.unit_value * o.quantity)


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------

class AuditLogFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = AuditLog

    actor = factory.SubFactory(UserFactory)
    action = AuditLog.ActionChoices.CREATE
    model_name = 'DistributionPlan'
    object_id = factory.LazyFunction(lambda: str(uuid.uuid4()))
