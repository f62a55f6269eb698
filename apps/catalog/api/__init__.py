from .serializers import (
    AttributeSerializer,
    AttributeValueSerializer,
    ProductSerializer,
    ProductListSerializer,
    VariantSerializer,
    VariantCreateSerializer,
    GenerateVariantsSerializer,
    BulkVariantActionSerializer,
)

__all__ = [
    'AttributeSerializer',
    'AttributeValueSerializer',
    'ProductSerializer',
    'ProductListSerializer',
    'VariantSerializer',
    'VariantCreateSerializer',
    'GenerateVariantsSerializer',
    'BulkVariantActionSerializer',
]
