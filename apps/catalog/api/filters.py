from django_filters import rest_framework as filters
from apps.catalog.models import AttributeValue, Variant


class VariantFilter(filters.FilterSet):
    """Filter for variants by product, status, stock and attribute value."""

    product = filters.CharFilter(field_name='product__slug')
    product_id = filters.NumberFilter(field_name='product__id')

    # Price filters
    min_price = filters.NumberFilter(field_name='regular_price', lookup_expr='gte')
    max_price = filters.NumberFilter(field_name='regular_price', lookup_expr='lte')

    # Stock filters
    in_stock = filters.BooleanFilter(method='filter_in_stock')

    # Attribute filters
    attribute = filters.CharFilter(method='filter_by_attribute')

    class Meta:
        model = Variant
        fields = ['product', 'product_id', 'status', 'sku']

    def filter_in_stock(self, queryset, name, value):
        if value is True:
            return queryset.filter(stock__gt=0)
        elif value is False:
            return queryset.filter(stock=0)
        return queryset

    def filter_by_attribute(self, queryset, name, value):
        """
        Filter by attribute in format: attribute_name:value
        Example: ?attribute=Color:Red
        """
        if ':' not in value:
            return queryset

        attr_name, option_value = value.split(':', 1)
        return queryset.filter(
            value_links__attribute_value__attribute__name=attr_name,
            value_links__attribute_value__value=option_value
        ).distinct()


class AttributeValueFilter(filters.FilterSet):
    """Filter for attribute values."""

    attribute_name = filters.CharFilter(field_name='attribute__name')

    class Meta:
        model = AttributeValue
        fields = ['attribute', 'attribute_name']
