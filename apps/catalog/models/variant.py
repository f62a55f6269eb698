from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
from simple_history.models import HistoricalRecords


class Variant(models.Model):
    """
    A concrete, sellable configuration of a product.
    Each variant is a unique combination of attribute values within its product.
    """
    STATUS_PUBLISHED = 'published'
    STATUS_PRIVATE = 'private'
    STATUS_DRAFT = 'draft'
    STATUS_ARCHIVED = 'archived'
    STATUS_CHOICES = [
        (STATUS_PUBLISHED, 'Published'),
        (STATUS_PRIVATE, 'Private'),
        (STATUS_DRAFT, 'Draft'),
        (STATUS_ARCHIVED, 'Archived'),
    ]

    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.CASCADE,
        related_name='variants',
        verbose_name='Product'
    )
    sku = models.CharField(
        max_length=100,
        unique=True,
        null=True,
        blank=True,
        verbose_name='SKU'
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_DRAFT,
        verbose_name='Status'
    )

    # Pricing
    regular_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Regular price'
    )
    sale_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Sale price'
    )

    # Inventory
    stock = models.PositiveIntegerField(
        default=0,
        verbose_name='Stock'
    )

    # Physical properties (optional)
    weight = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name='Weight (g)'
    )

    # Sorted attribute value ids joined with ",". Backs the per-product
    # uniqueness of attribute value sets.
    signature = models.CharField(
        max_length=255,
        default='',
        editable=False,
        verbose_name='Signature'
    )

    # Timestamps
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Created at'
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Updated at'
    )

    attribute_values = models.ManyToManyField(
        'catalog.AttributeValue',
        through='VariantAttributeValue',
        related_name='variants',
        verbose_name='Attribute values'
    )

    # History tracking
    history = HistoricalRecords()

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['product', 'signature'],
                name='catalog_variant_unique_combination',
            ),
        ]
        verbose_name = 'Variant'
        verbose_name_plural = 'Variants'

    def __str__(self):
        return self.sku or self.display_name

    @property
    def display_name(self):
        """Product name followed by the variant's values, e.g. "Shirt - Red / M"."""
        values = [link.attribute_value.value for link in self.value_links.select_related(
            'attribute_value__attribute'
        ).order_by('attribute_value__attribute__name')]
        if not values:
            return self.product.name
        return f"{self.product.name} - {' / '.join(values)}"

    def get_attribute_value_ids(self):
        """Sorted attribute value ids attached through join rows."""
        return sorted(self.value_links.values_list('attribute_value_id', flat=True))

    def get_options_dict(self):
        """Return dict of {attribute_name: value}"""
        return {
            link.attribute_value.attribute.name: link.attribute_value.value
            for link in self.value_links.select_related('attribute_value__attribute')
        }

    @property
    def is_on_sale(self):
        return bool(
            self.sale_price is not None
            and self.regular_price is not None
            and self.sale_price < self.regular_price
        )


class VariantAttributeValue(models.Model):
    """
    Join row linking a Variant to one of its AttributeValues.
    Values referenced here cannot be deleted, otherwise the variant's
    signature would silently change.
    """
    variant = models.ForeignKey(
        Variant,
        on_delete=models.CASCADE,
        related_name='value_links',
        verbose_name='Variant'
    )
    attribute_value = models.ForeignKey(
        'catalog.AttributeValue',
        on_delete=models.PROTECT,
        related_name='variant_links',
        verbose_name='Attribute value'
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['variant', 'attribute_value'],
                name='catalog_variant_attribute_value_unique',
            ),
        ]
        verbose_name = 'Variant Attribute Value'
        verbose_name_plural = 'Variant Attribute Values'

    def __str__(self):
        return f"{self.variant_id} - {self.attribute_value}"
