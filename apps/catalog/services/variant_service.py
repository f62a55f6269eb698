"""
Single-variant creation, deletion and bulk edits over a product's variants.
"""

import logging
import math
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import DecimalField, F, Value
from django.db.models.functions import Coalesce, Round

from apps.catalog.capabilities import require_admin
from apps.catalog.combinations import signature_of
from apps.catalog.exceptions import (
    CatalogError,
    DuplicateCombination,
    DuplicateSku,
    InvalidBulkAction,
    InvalidSelection,
)
from apps.catalog.models import AttributeValue, Product, Variant
from .variant_generator import _attach_values, existing_signatures

logger = logging.getLogger(__name__)

STATUS_VALUES = [choice for choice, _ in Variant.STATUS_CHOICES]

EDITABLE_FIELDS = ['sku', 'status', 'regular_price', 'sale_price', 'stock', 'weight']

BULK_ACTIONS = [
    'set_regular_prices',
    'increase_regular_prices',
    'decrease_regular_prices',
    'set_sale_prices',
    'set_stock_quantities',
    'set_weights',
    'set_status',
]


def _to_decimal(number, field: str) -> Decimal:
    try:
        result = Decimal(str(number))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidBulkAction(f'{field} must be a number') from exc
    if not result.is_finite():
        raise InvalidBulkAction(f'{field} must be a number')
    return result


class VariantService:
    """
    Variant maintenance outside of bulk generation.
    """

    @staticmethod
    def list_variants(product: Product):
        """Variants of a product with their attribute values, newest first."""
        return Variant.objects.filter(product=product).prefetch_related(
            'value_links__attribute_value__attribute'
        ).order_by('-created_at', '-id')

    @staticmethod
    def create_variant(
        capability,
        product: Product,
        attribute_value_ids: Iterable[int],
        sku: Optional[str] = None,
        regular_price=None,
        sale_price=None,
        stock: int = 0,
        status: str = Variant.STATUS_DRAFT,
    ) -> Variant:
        """
        Create one variant for an explicit combination.

        Unlike generation, an existing combination is an error here
        (DuplicateCombination) since the caller asked for this exact variant.
        """
        require_admin(capability)

        try:
            value_ids = list(dict.fromkeys(int(v) for v in attribute_value_ids or []))
        except (TypeError, ValueError) as exc:
            raise InvalidSelection('attribute_value_ids must be integers') from exc
        if not value_ids:
            raise InvalidSelection('attribute_value_ids must be a non-empty array')
        if status not in STATUS_VALUES:
            raise CatalogError('invalid status')
        if stock is None or int(stock) < 0:
            raise CatalogError('stock must be a non-negative integer')
        sku = (sku or '').strip() or None

        owners = dict(
            AttributeValue.objects.filter(pk__in=value_ids).values_list('id', 'attribute_id')
        )
        if len(owners) != len(value_ids):
            raise InvalidSelection('Some attribute_value_ids do not exist')
        if len(set(owners.values())) != len(value_ids):
            raise InvalidSelection('Pick at most one value per attribute')

        signature = signature_of(value_ids)
        try:
            with transaction.atomic():
                if signature in existing_signatures(product):
                    raise DuplicateCombination()
                if sku and Variant.objects.filter(sku=sku).exists():
                    raise DuplicateSku()
                variant = Variant.objects.create(
                    product=product,
                    sku=sku,
                    regular_price=regular_price,
                    sale_price=sale_price,
                    stock=int(stock),
                    status=status,
                    signature=signature,
                )
                _attach_values(variant, value_ids)
        except IntegrityError as exc:
            if Variant.objects.filter(product=product, signature=signature).exists():
                raise DuplicateCombination() from exc
            if sku and Variant.objects.filter(sku=sku).exists():
                raise DuplicateSku() from exc
            raise

        logger.info("Created variant %s (%s) for product %s", variant.pk, signature, product.pk)
        return variant

    @staticmethod
    def update_variant(capability, variant: Variant, **fields) -> Variant:
        """
        Change scalar fields of a variant (sku, status, prices, stock,
        weight). The attribute value set cannot be changed here.
        """
        require_admin(capability)

        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise CatalogError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        if 'status' in fields and fields['status'] not in STATUS_VALUES:
            raise CatalogError('invalid status')
        for name in ('regular_price', 'sale_price', 'stock', 'weight'):
            if fields.get(name) is not None and fields[name] < 0:
                raise CatalogError(f'{name} must not be negative')
        if 'stock' in fields and fields['stock'] is None:
            raise CatalogError('stock must be a non-negative integer')
        if 'sku' in fields:
            fields['sku'] = (fields['sku'] or '').strip() or None
            sku = fields['sku']
            if sku and Variant.objects.filter(sku=sku).exclude(pk=variant.pk).exists():
                raise DuplicateSku()

        for name, value in fields.items():
            setattr(variant, name, value)
        try:
            with transaction.atomic():
                variant.save(update_fields=[*fields, 'updated_at'])
        except IntegrityError as exc:
            if fields.get('sku') and Variant.objects.filter(sku=fields['sku']).exclude(pk=variant.pk).exists():
                raise DuplicateSku() from exc
            raise

        logger.info("Updated variant %s: %s", variant.pk, ', '.join(sorted(fields)) or 'no changes')
        return variant

    @staticmethod
    def delete_variant(capability, variant: Variant) -> None:
        require_admin(capability)
        variant_id, product_id = variant.pk, variant.product_id
        variant.delete()
        logger.info("Deleted variant %s of product %s", variant_id, product_id)

    @staticmethod
    def bulk_update(
        capability,
        product: Product,
        action: str,
        variant_ids: Optional[List[int]] = None,
        value=None,
        percent=None,
        status: Optional[str] = None,
    ) -> int:
        """
        Apply one bulk action to the product's variants, or to the subset in
        ``variant_ids`` when given.

        Actions:
            set_regular_prices (value), increase_regular_prices (percent),
            decrease_regular_prices (percent), set_sale_prices (value),
            set_stock_quantities (value), set_weights (value),
            set_status (status)

        Returns:
            Number of variants updated
        """
        require_admin(capability)

        queryset = Variant.objects.filter(product=product)
        if variant_ids:
            queryset = queryset.filter(pk__in=variant_ids)

        price = DecimalField(max_digits=12, decimal_places=2)
        ratio = DecimalField(max_digits=12, decimal_places=6)

        if action in ('set_regular_prices', 'set_sale_prices', 'set_stock_quantities', 'set_weights'):
            if value is None:
                raise InvalidBulkAction('value required')
        elif action in ('increase_regular_prices', 'decrease_regular_prices'):
            if percent is None:
                raise InvalidBulkAction('percent required')
        elif action == 'set_status':
            if status not in STATUS_VALUES:
                raise InvalidBulkAction('invalid status')
        else:
            raise InvalidBulkAction()

        if action in ('set_regular_prices', 'set_sale_prices'):
            new_price = _to_decimal(value, 'value')
            if new_price < 0:
                raise InvalidBulkAction('value must not be negative')
        elif action in ('increase_regular_prices', 'decrease_regular_prices'):
            change = _to_decimal(percent, 'percent') / Decimal('100')
            if change < 0:
                raise InvalidBulkAction('percent must not be negative')
            # Prices never drop below zero
            if action == 'decrease_regular_prices' and change > 1:
                raise InvalidBulkAction('percent must not exceed 100')

        if action == 'set_regular_prices':
            updates = {'regular_price': new_price}
        elif action == 'set_sale_prices':
            updates = {'sale_price': new_price}
        elif action in ('increase_regular_prices', 'decrease_regular_prices'):
            factor = Decimal('1') + change if action == 'increase_regular_prices' else Decimal('1') - change
            current = Coalesce(F('regular_price'), Value(Decimal('0.00')), output_field=price)
            updates = {
                'regular_price': Round(current * Value(factor, output_field=ratio), 2, output_field=price)
            }
        elif action == 'set_stock_quantities':
            updates = {'stock': max(0, int(_to_decimal(value, 'value')))}
        elif action == 'set_weights':
            updates = {'weight': max(0, math.floor(_to_decimal(value, 'value')))}
        else:
            updates = {'status': status}

        updated = queryset.update(**updates)
        logger.info("Bulk action %s updated %d variants of product %s", action, updated, product.pk)
        return updated
