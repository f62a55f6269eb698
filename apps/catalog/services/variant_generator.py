"""
Service that materializes every missing variant of a product for a selection
of attribute values.

The existing variants are re-read from storage on every call, so generation
keeps no state of its own and is safe to resubmit: a repeated call creates
nothing, a widened selection creates only the new combinations.
"""

import logging
from collections import defaultdict
from typing import Iterable, Set

from django.db import DatabaseError, IntegrityError, transaction

from apps.catalog.capabilities import require_admin
from apps.catalog.combinations import missing_combinations, signature_of
from apps.catalog.exceptions import GenerationFailed
from apps.catalog.models import Product, Variant, VariantAttributeValue
from .selection import resolve_selection

logger = logging.getLogger(__name__)


def existing_signatures(product: Product) -> Set[str]:
    """
    Signatures of the product's variants, built from their join rows so the
    order the values were attached in does not matter.
    """
    value_ids = defaultdict(list)
    links = VariantAttributeValue.objects.filter(
        variant__product=product
    ).values_list('variant_id', 'attribute_value_id')
    for variant_id, attribute_value_id in links:
        value_ids[variant_id].append(attribute_value_id)
    return {signature_of(ids) for ids in value_ids.values()}


def _attach_values(variant: Variant, value_ids: Iterable[int]) -> None:
    VariantAttributeValue.objects.bulk_create([
        VariantAttributeValue(variant=variant, attribute_value_id=value_id)
        for value_id in value_ids
    ])


def _insert_variant(product: Product, signature: str, combination) -> bool:
    """
    Insert one draft variant inside a savepoint.

    Returns False when a concurrent writer committed the same combination
    first; the unique (product, signature) constraint rejects our row and the
    savepoint keeps the rest of the batch intact.
    """
    try:
        with transaction.atomic():
            variant = Variant.objects.create(
                product=product,
                signature=signature,
                status=Variant.STATUS_DRAFT,
                stock=0,
            )
            _attach_values(variant, combination)
    except IntegrityError:
        if Variant.objects.filter(product=product, signature=signature).exists():
            logger.warning(
                "Combination %s of product %s was created concurrently, skipping",
                signature, product.pk
            )
            return False
        raise
    return True


class VariantGenerationService:
    """
    Generate the cartesian product of a selection as draft variants.
    """

    @staticmethod
    def generate(capability, product: Product, selection) -> int:
        """
        Create every variant of ``product`` that the selection describes and
        that does not exist yet.

        Args:
            capability: AdminCapability granted by the caller
            product: The product to generate variants for
            selection: A Selection, a list of value-id lists or a mapping of
                attribute id to value ids

        Returns:
            Number of variants actually created

        Raises:
            EmptySelection: nothing was selected (no storage access happens)
            InvalidSelection: unknown ids or values mixing attributes
            GenerationFailed: storage failed; nothing from the batch is kept
        """
        require_admin(capability)

        try:
            selection = resolve_selection(selection)
            with transaction.atomic():
                known = existing_signatures(product)
                missing = missing_combinations(selection.as_lists(), known)

                created = 0
                for signature, combination in missing:
                    if _insert_variant(product, signature, combination):
                        created += 1
        except DatabaseError as exc:
            logger.exception("Variant generation for product %s rolled back", product.pk)
            raise GenerationFailed() from exc

        logger.info(
            "Generated variants for product %s: %d combinations, %d created, %d skipped",
            product.pk, selection.combination_count, created,
            selection.combination_count - created
        )
        return created
