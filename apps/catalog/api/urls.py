from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    AttributeViewSet,
    AttributeValueViewSet,
    ProductViewSet,
    VariantViewSet,
)

router = DefaultRouter()
router.register(r'attributes', AttributeViewSet, basename='attribute')
router.register(r'attribute-values', AttributeValueViewSet, basename='attribute-value')
router.register(r'products', ProductViewSet, basename='product')
router.register(r'variants', VariantViewSet, basename='variant')

urlpatterns = [
    path('', include(router.urls)),
]
