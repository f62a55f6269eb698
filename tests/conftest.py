"""
Catalog Test Configuration and Fixtures

This module provides:
- An admin capability for calling services directly
- A small attribute catalog (Color, Size, Material) and a product
- A helper to create pre-existing variants with join rows in a given order
- An authenticated DRF API client
"""

from types import SimpleNamespace

import pytest
from rest_framework.test import APIClient

from apps.catalog.capabilities import AdminCapability
from apps.catalog.combinations import signature_of
from apps.catalog.models import (
    Attribute,
    AttributeValue,
    Product,
    Variant,
    VariantAttributeValue,
)


# =============================================================================
# Domain Fixtures
# =============================================================================

@pytest.fixture
def capability():
    """Capability as granted to an authorized admin."""
    return AdminCapability(user_id=1, username='admin')


@pytest.fixture
def product(db):
    return Product.objects.create(name='Basic Tee')


@pytest.fixture
def other_product(db):
    return Product.objects.create(name='Hoodie')


@pytest.fixture
def catalog(db):
    """
    Color: A1=Black, A2=Red
    Size: B1=S, B2=M, B3=L
    Material: C1=Cotton
    """
    color = Attribute.objects.create(name='Color')
    size = Attribute.objects.create(name='Size')
    material = Attribute.objects.create(name='Material')
    return SimpleNamespace(
        color=color,
        size=size,
        material=material,
        a1=AttributeValue.objects.create(attribute=color, value='Black'),
        a2=AttributeValue.objects.create(attribute=color, value='Red'),
        b1=AttributeValue.objects.create(attribute=size, value='S'),
        b2=AttributeValue.objects.create(attribute=size, value='M'),
        b3=AttributeValue.objects.create(attribute=size, value='L'),
        c1=AttributeValue.objects.create(attribute=material, value='Cotton'),
    )


@pytest.fixture
def make_variant(db):
    """
    Create a variant whose join rows are inserted in exactly the given order,
    the way another request or an older import would have left it.
    """
    def _make(product, values, **fields):
        ids = [value.pk for value in values]
        variant = Variant.objects.create(product=product, signature=signature_of(ids), **fields)
        for value_id in ids:
            VariantAttributeValue.objects.create(variant=variant, attribute_value_id=value_id)
        return variant
    return _make


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def api_client(admin_user):
    """DRF client authenticated as a staff superuser."""
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def anonymous_client():
    return APIClient()


@pytest.fixture
def customer_client(django_user_model):
    """Authenticated, but not staff."""
    user = django_user_model.objects.create_user(username='customer', password='secret-pass')
    client = APIClient()
    client.force_authenticate(user=user)
    return client
