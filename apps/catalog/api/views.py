from rest_framework import viewsets, mixins, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from apps.catalog.capabilities import authorize
from apps.catalog.exceptions import CatalogError
from apps.catalog.models import (
    Product,
    Attribute,
    AttributeValue,
    Variant,
)
from apps.catalog.services import (
    AttributeCatalogService,
    VariantGenerationService,
    VariantService,
)
from .serializers import (
    AttributeSerializer,
    AttributeCreateSerializer,
    AttributeRenameSerializer,
    AttributeValueSerializer,
    AttributeValueWriteSerializer,
    ProductSerializer,
    ProductListSerializer,
    VariantSerializer,
    VariantCreateSerializer,
    VariantUpdateSerializer,
    GenerateVariantsSerializer,
    BulkVariantActionSerializer,
)
from .filters import AttributeValueFilter, VariantFilter


class CatalogErrorMixin:
    """Render catalog domain errors as ``{"error": message}`` payloads."""

    def handle_exception(self, exc):
        if isinstance(exc, CatalogError):
            return Response({'error': exc.message}, status=exc.status_code)
        return super().handle_exception(exc)


class AttributeViewSet(CatalogErrorMixin, viewsets.ModelViewSet):
    """
    API endpoint for attributes (Color, Size, etc) and their values.

    list: All attributes with nested values, name ascending
    create: Create an attribute with optional initial values
    partial_update: Rename an attribute
    delete: Delete an attribute and its values
    values: Add a value to an attribute
    """
    queryset = Attribute.objects.all()
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_serializer_class(self):
        if self.action == 'create':
            return AttributeCreateSerializer
        elif self.action == 'partial_update':
            return AttributeRenameSerializer
        elif self.action == 'values':
            return AttributeValueWriteSerializer
        return AttributeSerializer

    def list(self, request, *args, **kwargs):
        attributes = AttributeCatalogService.list_attributes()
        return Response({'items': AttributeSerializer(attributes, many=True).data})

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        attribute = AttributeCatalogService.create_attribute(
            authorize(request.user),
            serializer.validated_data['name'],
            serializer.validated_data['values'],
        )
        return Response(
            {'ok': True, 'item': AttributeSerializer(attribute).data},
            status=status.HTTP_201_CREATED
        )

    def partial_update(self, request, *args, **kwargs):
        attribute = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        attribute = AttributeCatalogService.rename_attribute(
            authorize(request.user), attribute, serializer.validated_data['name']
        )
        return Response({'ok': True, 'item': AttributeSerializer(attribute).data})

    def destroy(self, request, *args, **kwargs):
        attribute = self.get_object()
        AttributeCatalogService.delete_attribute(authorize(request.user), attribute)
        return Response({'ok': True})

    @action(detail=True, methods=['post'])
    def values(self, request, pk=None):
        """
        Add a value to an attribute.

        Expected payload:
        {"value": "Red"}
        """
        attribute = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        attribute_value = AttributeCatalogService.add_value(
            authorize(request.user), attribute, serializer.validated_data['value']
        )
        return Response(
            {'ok': True, 'item': AttributeValueSerializer(attribute_value).data},
            status=status.HTTP_201_CREATED
        )


class AttributeValueViewSet(CatalogErrorMixin,
                            mixins.ListModelMixin,
                            mixins.RetrieveModelMixin,
                            viewsets.GenericViewSet):
    """
    API endpoint for individual attribute values.
    """
    queryset = AttributeValue.objects.select_related('attribute').order_by('value', 'id')
    serializer_class = AttributeValueSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_class = AttributeValueFilter
    search_fields = ['value']

    def partial_update(self, request, pk=None):
        attribute_value = self.get_object()
        serializer = AttributeValueWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        attribute_value = AttributeCatalogService.update_value(
            authorize(request.user), attribute_value, serializer.validated_data['value']
        )
        return Response({'ok': True, 'item': AttributeValueSerializer(attribute_value).data})

    def destroy(self, request, pk=None):
        attribute_value = self.get_object()
        AttributeCatalogService.delete_value(authorize(request.user), attribute_value)
        return Response({'ok': True})


class ProductViewSet(CatalogErrorMixin, viewsets.ModelViewSet):
    """
    API endpoint for products.

    list: List all products
    retrieve: Get product detail
    create/update/delete: Product CRUD
    variants: List variants (GET) or create a single variant (POST)
    generate_variants: Create every missing combination of a selection
    bulk_variants: Apply a bulk action to the product's variants
    """
    queryset = Product.objects.all()
    lookup_field = 'slug'
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_active']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'created_at']
    ordering = ['name']

    def get_serializer_class(self):
        if self.action == 'list':
            return ProductListSerializer
        elif self.action == 'generate_variants':
            return GenerateVariantsSerializer
        elif self.action == 'bulk_variants':
            return BulkVariantActionSerializer
        elif self.action == 'variants':
            return VariantCreateSerializer
        return ProductSerializer

    @action(detail=True, methods=['get', 'post'])
    def variants(self, request, slug=None):
        """
        GET: variants of this product with their attribute values.
        POST: create one variant for an explicit combination.

        Expected payload:
        {
            "attribute_value_ids": [1, 5],
            "sku": "TEE-RED-M",
            "regular_price": 79.90,
            "stock": 10,
            "status": "draft"
        }
        """
        product = self.get_object()
        if request.method == 'GET':
            variants = VariantService.list_variants(product)
            return Response({'items': VariantSerializer(variants, many=True).data})

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        variant = VariantService.create_variant(
            authorize(request.user), product, **serializer.validated_data
        )
        return Response(
            {'ok': True, 'item': VariantSerializer(variant).data},
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['post'], url_path='variants/generate')
    def generate_variants(self, request, slug=None):
        """
        Generate every missing variant for a selection of attribute values.

        Expected payload:
        {
            "selections": [[1, 2], [5, 6, 7]]
        }
        """
        product = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        created = VariantGenerationService.generate(
            authorize(request.user), product, serializer.validated_data['raw']
        )
        return Response({'ok': True, 'createdCount': created})

    @action(detail=True, methods=['post'], url_path='variants/bulk')
    def bulk_variants(self, request, slug=None):
        """
        Apply a bulk action to all (or the listed) variants of this product.

        Expected payload:
        {
            "action": "increase_regular_prices",
            "variant_ids": [1, 2],
            "percent": 10
        }
        """
        product = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        updated = VariantService.bulk_update(
            authorize(request.user), product, **serializer.validated_data
        )
        return Response({'ok': True, 'updated': updated})


class VariantViewSet(CatalogErrorMixin,
                     mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.UpdateModelMixin,
                     mixins.DestroyModelMixin,
                     viewsets.GenericViewSet):
    """
    API endpoint for variants.

    Variants are created through their product; here they can be listed,
    edited (scalar fields only) and deleted.
    """
    queryset = Variant.objects.select_related('product').prefetch_related(
        'value_links__attribute_value__attribute'
    )
    serializer_class = VariantSerializer
    filterset_class = VariantFilter
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['sku', 'product__name']
    ordering_fields = ['sku', 'regular_price', 'stock', 'created_at']
    ordering = ['-created_at', '-id']

    def perform_destroy(self, instance):
        VariantService.delete_variant(authorize(self.request.user), instance)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        variant = self.get_object()
        serializer = VariantUpdateSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        variant = VariantService.update_variant(
            authorize(request.user), variant, **serializer.validated_data
        )
        return Response(VariantSerializer(variant).data)
