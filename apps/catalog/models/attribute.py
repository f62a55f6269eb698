from django.db import models


class Attribute(models.Model):
    """
    A named axis of product variation.
    Examples: Color, Size, Material.
    """
    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name='Name'
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Created at'
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Updated at'
    )

    class Meta:
        ordering = ['name']
        verbose_name = 'Attribute'
        verbose_name_plural = 'Attributes'

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.name = (self.name or '').strip()
        super().save(*args, **kwargs)


class AttributeValue(models.Model):
    """
    One concrete option on an attribute's axis.

    Examples:
        - Attribute "Color" -> values "Black", "Red"
        - Attribute "Size"  -> values "S", "M", "L"

    Values are unique per attribute by their trimmed, case-sensitive text.
    """
    attribute = models.ForeignKey(
        Attribute,
        on_delete=models.CASCADE,
        related_name='values',
        verbose_name='Attribute'
    )
    value = models.CharField(
        max_length=100,
        verbose_name='Value'
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Created at'
    )

    class Meta:
        ordering = ['value', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['attribute', 'value'],
                name='catalog_attribute_value_unique',
            ),
        ]
        verbose_name = 'Attribute Value'
        verbose_name_plural = 'Attribute Values'

    def __str__(self):
        return f"{self.attribute.name}: {self.value}"

    def save(self, *args, **kwargs):
        self.value = (self.value or '').strip()
        super().save(*args, **kwargs)
