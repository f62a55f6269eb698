from .attribute_catalog import AttributeCatalogService
from .selection import resolve_selection
from .variant_generator import VariantGenerationService
from .variant_service import VariantService

__all__ = [
    'AttributeCatalogService',
    'VariantGenerationService',
    'VariantService',
    'resolve_selection',
]
