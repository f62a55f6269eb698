import pytest
from django.contrib import admin
from django.urls import reverse

from apps.catalog.admin import AttributeValueAdmin
from apps.catalog.models import AttributeValue

pytestmark = pytest.mark.django_db


class TestAttributeValueAdmin:

    def test_attribute_editable_only_when_adding(self, rf, catalog):
        model_admin = AttributeValueAdmin(AttributeValue, admin.site)
        request = rf.get('/')

        assert model_admin.get_readonly_fields(request) == []
        assert model_admin.get_readonly_fields(request, catalog.a1) == ['attribute']

    def test_change_form_cannot_move_value_to_another_attribute(
        self, admin_client, product, catalog, make_variant
    ):
        make_variant(product, [catalog.a1, catalog.b1])
        url = reverse('admin:catalog_attributevalue_change', args=[catalog.a1.pk])

        response = admin_client.post(url, {'attribute': catalog.size.pk, 'value': 'Black'})

        assert response.status_code == 302
        assert AttributeValue.objects.get(pk=catalog.a1.pk).attribute_id == catalog.color.pk
