from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    ProductViewSet,
    ProductWorkflowHistoryViewSet,
    AttributeViewSet,
    AttributeSetViewSet,
    AttributeGroupViewSet,
    ProductAttributeValueViewSet,
    CategoryViewSet,
    CategoryTranslationViewSet,
    ProductCategoryViewSet,
    AssetViewSet,
    ProductAssetViewSet,
    StoreViewSet,
    StoreViewViewSet,
    LocaleViewSet,
    analytics_dashboard,
)

router = DefaultRouter(trailing_slash=False)
router.register(r'products', ProductViewSet, basename='product')
router.register(r'product-workflow-history', ProductWorkflowHistoryViewSet, basename='product-workflow-history')
router.register(r'attributes', AttributeViewSet, basename='attribute')
router.register(r'attribute-sets', AttributeSetViewSet, basename='attribute-set')
router.register(r'attribute-groups', AttributeGroupViewSet, basename='attribute-group')
router.register(r'product-attributes', ProductAttributeValueViewSet, basename='product-attribute')
router.register(r'categories', CategoryViewSet, basename='category')
router.register(r'category-translations', CategoryTranslationViewSet, basename='category-translation')
router.register(r'product-categories', ProductCategoryViewSet, basename='product-category')
router.register(r'assets', AssetViewSet, basename='asset')
router.register(r'product-assets', ProductAssetViewSet, basename='product-asset')
router.register(r'stores', StoreViewSet, basename='store')
router.register(r'store-views', StoreViewViewSet, basename='store-view')
router.register(r'locales', LocaleViewSet, basename='locale')

urlpatterns = [
    path('analytics/dashboard', analytics_dashboard, name='analytics-dashboard'),
    path('', include(router.urls)),
]
