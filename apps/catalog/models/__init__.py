"""
Catalog models for the back-office with generated product variants.

Model Hierarchy:
- Product: Base product (e.g., "Basic T-Shirt")
- Attribute: Axes of variation (Color, Size)
- AttributeValue: Values for each attribute (Red, M)
- Variant: Individual sellable configuration with price and stock
- VariantAttributeValue: Join rows attaching values to a variant
"""

from .product import Product
from .attribute import Attribute, AttributeValue
from .variant import Variant, VariantAttributeValue

__all__ = [
    'Product',
    'Attribute',
    'AttributeValue',
    'Variant',
    'VariantAttributeValue',
]
