"""
Domain errors raised by the catalog services.

Each error carries the HTTP status the API layer answers with, so views can
translate any of them into an ``{"error": ...}`` payload in one place.
"""


class CatalogError(Exception):
    status_code = 400
    default_message = 'Catalog operation failed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(CatalogError):
    status_code = 403
    default_message = 'Unauthorized'


class EmptySelection(CatalogError):
    default_message = 'Select at least one value for at least one attribute'


class InvalidSelection(CatalogError):
    default_message = 'Selection references unknown or mixed attribute values'


class InvalidBulkAction(CatalogError):
    default_message = 'Unsupported bulk action'


class DuplicateName(CatalogError):
    status_code = 409
    default_message = 'Name already exists'


class DuplicateCombination(CatalogError):
    status_code = 409
    default_message = 'Variant with the same attributes already exists'


class DuplicateSku(CatalogError):
    status_code = 409
    default_message = 'SKU already exists'


class ValueInUse(CatalogError):
    status_code = 409
    default_message = 'Attribute value is used by existing variants'


class GenerationFailed(CatalogError):
    status_code = 500
    default_message = 'Failed to generate variants'
