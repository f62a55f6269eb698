from rest_framework import serializers
from apps.catalog.models import (
    Product,
    Attribute,
    AttributeValue,
    Variant,
    VariantAttributeValue,
)
from apps.catalog.services.variant_service import BULK_ACTIONS, STATUS_VALUES


# =============================================================================
# Attribute Serializers
# =============================================================================

class AttributeValueSerializer(serializers.ModelSerializer):
    class Meta:
        model = AttributeValue
        fields = ['id', 'attribute', 'value']
        read_only_fields = ['attribute']


class NestedAttributeValueSerializer(serializers.ModelSerializer):
    class Meta:
        model = AttributeValue
        fields = ['id', 'value']


class AttributeSerializer(serializers.ModelSerializer):
    values = NestedAttributeValueSerializer(many=True, read_only=True)

    class Meta:
        model = Attribute
        fields = ['id', 'name', 'values']


class AttributeCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    values = serializers.ListField(
        child=serializers.CharField(max_length=100, allow_blank=True),
        required=False,
        default=list,
    )


class AttributeRenameSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)


class AttributeValueWriteSerializer(serializers.Serializer):
    value = serializers.CharField(max_length=100)


# =============================================================================
# Product Serializers
# =============================================================================

class ProductSerializer(serializers.ModelSerializer):
    """Base product serializer; the slug is derived from the name when omitted."""
    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'description', 'is_active',
            'created_at', 'updated_at'
        ]
        extra_kwargs = {'slug': {'required': False}}


class ProductListSerializer(serializers.ModelSerializer):
    """Product list with counts."""
    variant_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'slug', 'is_active', 'variant_count']


# =============================================================================
# Variant Serializers
# =============================================================================

class VariantAttributeValueSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source='attribute_value.id', read_only=True)
    attribute_id = serializers.IntegerField(
        source='attribute_value.attribute_id', read_only=True
    )
    attribute = serializers.CharField(
        source='attribute_value.attribute.name', read_only=True
    )
    value = serializers.CharField(source='attribute_value.value', read_only=True)

    class Meta:
        model = VariantAttributeValue
        fields = ['id', 'attribute_id', 'attribute', 'value']


class VariantSerializer(serializers.ModelSerializer):
    """Variant with its attribute values; the value set itself is read-only."""
    attributes = VariantAttributeValueSerializer(
        source='value_links', many=True, read_only=True
    )
    is_on_sale = serializers.BooleanField(read_only=True)

    class Meta:
        model = Variant
        fields = [
            'id', 'product', 'sku', 'status', 'regular_price', 'sale_price',
            'stock', 'weight', 'is_on_sale', 'attributes',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['product', 'created_at', 'updated_at']


class VariantCreateSerializer(serializers.Serializer):
    attribute_value_ids = serializers.ListField(
        child=serializers.IntegerField(), allow_empty=False
    )
    sku = serializers.CharField(max_length=100, required=False, allow_null=True, allow_blank=True)
    regular_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    sale_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    stock = serializers.IntegerField(min_value=0, required=False, default=0)
    status = serializers.ChoiceField(choices=STATUS_VALUES, required=False, default=Variant.STATUS_DRAFT)


class VariantUpdateSerializer(serializers.Serializer):
    """Scalar variant fields; SKU uniqueness is checked by the service."""
    sku = serializers.CharField(max_length=100, required=False, allow_null=True, allow_blank=True)
    status = serializers.ChoiceField(choices=STATUS_VALUES, required=False)
    regular_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    sale_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    stock = serializers.IntegerField(min_value=0, required=False)
    weight = serializers.IntegerField(min_value=0, required=False, allow_null=True)


class GenerateVariantsSerializer(serializers.Serializer):
    """
    Accepts either shape:
        {"selections": [[1, 2], [5, 6, 7]]}
        {"selection": {"3": [1, 2], "4": [5, 6, 7]}}
    """
    selections = serializers.ListField(
        child=serializers.ListField(child=serializers.IntegerField()),
        required=False,
    )
    selection = serializers.DictField(
        child=serializers.ListField(child=serializers.IntegerField()),
        required=False,
    )

    def validate(self, attrs):
        if 'selection' in attrs:
            attrs['raw'] = attrs['selection']
        else:
            attrs['raw'] = attrs.get('selections', [])
        return attrs


class BulkVariantActionSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=BULK_ACTIONS)
    variant_ids = serializers.ListField(
        child=serializers.IntegerField(), required=False, allow_empty=True
    )
    value = serializers.DecimalField(
        max_digits=14, decimal_places=4, required=False, allow_null=True
    )
    percent = serializers.DecimalField(
        max_digits=8, decimal_places=4, required=False, allow_null=True
    )
    status = serializers.CharField(required=False, allow_null=True)
