"""
Service for reading and maintaining the attribute catalog.
Every write is a single transaction guarded by the uniqueness of attribute
names and of values within an attribute.
"""

import logging
from typing import Iterable, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Prefetch, ProtectedError

from apps.catalog.capabilities import require_admin
from apps.catalog.exceptions import CatalogError, DuplicateName, ValueInUse
from apps.catalog.models import Attribute, AttributeValue

logger = logging.getLogger(__name__)


def _clean(text, field: str) -> str:
    cleaned = text.strip() if isinstance(text, str) else ''
    if not cleaned:
        raise CatalogError(f'{field} is required')
    return cleaned


class AttributeCatalogService:
    """
    Read and write access to attributes and their values.
    """

    @staticmethod
    def list_attributes() -> List[Attribute]:
        """
        All attributes ordered by name, each with ``values`` prefetched in
        value order (creation order breaks ties).
        """
        values = AttributeValue.objects.order_by('value', 'id')
        return list(
            Attribute.objects.prefetch_related(
                Prefetch('values', queryset=values)
            ).order_by('name')
        )

    @staticmethod
    def create_attribute(capability, name: str, values: Optional[Iterable[str]] = None) -> Attribute:
        """
        Create an attribute with optional initial values.
        Blank values are ignored and repeated values collapse into one.
        """
        require_admin(capability)
        name = _clean(name, 'name')
        cleaned_values = list(dict.fromkeys(
            v.strip() for v in (values or []) if isinstance(v, str) and v.strip()
        ))

        if Attribute.objects.filter(name=name).exists():
            raise DuplicateName(f"Attribute '{name}' already exists")

        try:
            with transaction.atomic():
                attribute = Attribute.objects.create(name=name)
                AttributeValue.objects.bulk_create([
                    AttributeValue(attribute=attribute, value=value)
                    for value in cleaned_values
                ])
        except IntegrityError as exc:
            raise DuplicateName(f"Attribute '{name}' already exists") from exc

        logger.info("Created attribute %s (%s) with %d values", attribute.pk, name, len(cleaned_values))
        return attribute

    @staticmethod
    def rename_attribute(capability, attribute: Attribute, name: str) -> Attribute:
        require_admin(capability)
        name = _clean(name, 'name')
        if name == attribute.name:
            return attribute
        if Attribute.objects.filter(name=name).exclude(pk=attribute.pk).exists():
            raise DuplicateName(f"Attribute '{name}' already exists")

        attribute.name = name
        try:
            with transaction.atomic():
                attribute.save(update_fields=['name', 'updated_at'])
        except IntegrityError as exc:
            raise DuplicateName(f"Attribute '{name}' already exists") from exc

        logger.info("Renamed attribute %s to %s", attribute.pk, name)
        return attribute

    @staticmethod
    def delete_attribute(capability, attribute: Attribute) -> None:
        """Delete an attribute and its values unless a variant uses one of them."""
        require_admin(capability)
        attribute_id = attribute.pk
        try:
            with transaction.atomic():
                attribute.delete()
        except ProtectedError as exc:
            raise ValueInUse(
                f"Attribute '{attribute.name}' has values used by existing variants"
            ) from exc
        logger.info("Deleted attribute %s", attribute_id)

    @staticmethod
    def add_value(capability, attribute: Attribute, value: str) -> AttributeValue:
        require_admin(capability)
        value = _clean(value, 'value')
        if attribute.values.filter(value=value).exists():
            raise DuplicateName(f"Value '{value}' already exists for {attribute.name}")

        try:
            with transaction.atomic():
                attribute_value = AttributeValue.objects.create(attribute=attribute, value=value)
        except IntegrityError as exc:
            raise DuplicateName(f"Value '{value}' already exists for {attribute.name}") from exc

        logger.info("Added value %s (%s) to attribute %s", attribute_value.pk, value, attribute.pk)
        return attribute_value

    @staticmethod
    def update_value(capability, attribute_value: AttributeValue, value: str) -> AttributeValue:
        require_admin(capability)
        value = _clean(value, 'value')
        if value == attribute_value.value:
            return attribute_value
        siblings = AttributeValue.objects.filter(
            attribute_id=attribute_value.attribute_id, value=value
        ).exclude(pk=attribute_value.pk)
        if siblings.exists():
            raise DuplicateName(f"Value '{value}' already exists for this attribute")

        attribute_value.value = value
        try:
            with transaction.atomic():
                attribute_value.save(update_fields=['value'])
        except IntegrityError as exc:
            raise DuplicateName(f"Value '{value}' already exists for this attribute") from exc

        logger.info("Updated attribute value %s to %s", attribute_value.pk, value)
        return attribute_value

    @staticmethod
    def delete_value(capability, attribute_value: AttributeValue) -> None:
        require_admin(capability)
        value_id = attribute_value.pk
        try:
            with transaction.atomic():
                attribute_value.delete()
        except ProtectedError as exc:
            raise ValueInUse(
                f"Value '{attribute_value.value}' is used by existing variants"
            ) from exc
        logger.info("Deleted attribute value %s", value_id)
