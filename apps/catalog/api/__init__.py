from .serializers import (
    ProductSerializer,
    ProductListSerializer,
    ProductDetailSerializer,
    ProductImportSerializer,
    AttributeSerializer,
    AttributeSetSerializer,
    AttributeSetDetailSerializer,
    AttributeGroupSerializer,
    ProductAttributeValueSerializer,
    CategorySerializer,
    ProductWorkflowHistorySerializer,
)

__all__ = [
    'ProductSerializer',
    'ProductListSerializer',
    'ProductDetailSerializer',
    'ProductImportSerializer',
    'AttributeSerializer',
    'AttributeSetSerializer',
    'AttributeSetDetailSerializer',
    'AttributeGroupSerializer',
    'ProductAttributeValueSerializer',
    'CategorySerializer',
    'ProductWorkflowHistorySerializer',
]
