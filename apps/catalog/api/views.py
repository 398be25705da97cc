import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Count
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, serializers
from rest_framework.decorators import action, api_view
from rest_framework.parsers import FormParser, MultiPartParser

from apps.accounts.models import User
from apps.catalog.models import (
    Attribute,
    AttributeSet,
    AttributeGroup,
    AttributeSetAttribute,
    ProductAttributeValue,
    Asset,
    Category,
    CategoryTranslation,
    Product,
    ProductCategory,
    ProductAsset,
    Store,
    Locale,
    StoreView,
    ProductWorkflowHistory,
)
from apps.catalog.services import AnalyticsService, ProductImportService
from apps.catalog.services import exporter, importer
from apps.core import responses
from apps.core.viewsets import EnvelopeModelViewSet, EnvelopeReadOnlyModelViewSet
from .serializers import (
    AttributeSerializer,
    AttributeSetSerializer,
    AttributeSetDetailSerializer,
    AttributeSetAttributeSerializer,
    MembershipCreateSerializer,
    AttributeGroupSerializer,
    ProductAttributeValueSerializer,
    AssetSerializer,
    CategorySerializer,
    CategoryTranslationSerializer,
    ProductSerializer,
    ProductListSerializer,
    ProductDetailSerializer,
    ProductCategorySerializer,
    ProductAssetSerializer,
    StoreSerializer,
    LocaleSerializer,
    StoreViewSerializer,
    ProductWorkflowHistorySerializer,
)
from .filters import CategoryFilter, ProductFilter, ProductWorkflowHistoryFilter

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ('json', 'xml', 'csv')


def _positive_int(value, default):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


# =============================================================================
# Products
# =============================================================================

class ProductViewSet(EnvelopeModelViewSet):
    """
    API endpoint for products.

    list: List products (search, type, status, categoryId, assignedTo, attribute)
    retrieve: Get product detail with assets, categories and attribute values
    export: Download products as JSON, XML or CSV
    import_products: Upload a JSON, XML or CSV file of products
    workflow_history: Status changes of one product
    """
    resource_name = 'Product'
    queryset = Product.objects.select_related('attribute_set', 'assigned_to')
    lookup_value_regex = r'\d+'
    filterset_class = ProductFilter
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    ordering_fields = ['sku', 'name', 'status', 'product_type', 'created_at', 'updated_at']
    ordering = ['-created_at', '-id']

    def get_serializer_class(self):
        if self.action == 'list':
            return ProductListSerializer
        elif self.action == 'retrieve':
            return ProductDetailSerializer
        return ProductSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'list':
            queryset = queryset.annotate(
                category_count=Count('product_categories', distinct=True),
                asset_count=Count('product_assets', distinct=True),
            )
        elif self.action in ('retrieve', 'export'):
            queryset = queryset.prefetch_related(
                'product_assets__asset',
                'product_categories__category__translations',
                'attribute_values__attribute',
            )
        return queryset

    @action(detail=True, methods=['get'], url_path='workflow-history')
    def workflow_history(self, request, pk=None):
        """Get workflow history for a product."""
        product = self.get_object()
        history = product.workflow_history.select_related('product', 'changed_by')
        serializer = ProductWorkflowHistorySerializer(history, many=True)
        return responses.success(serializer.data, 'Workflow history retrieved successfully')

    @action(detail=False, methods=['get'])
    def export(self, request):
        """
        Export products with all related data.

        Query params: format (json|xml|csv), page, limit and the list filters.
        """
        fmt = (request.query_params.get('format') or 'json').lower()
        page = _positive_int(request.query_params.get('page'), 1)
        limit = _positive_int(request.query_params.get('limit'), settings.EXPORT_DEFAULT_LIMIT)

        if fmt not in EXPORT_FORMATS:
            return responses.bad_request(f"Invalid format. Must be one of: {', '.join(EXPORT_FORMATS)}")

        queryset = self.filter_queryset(self.get_queryset())
        total = queryset.count()
        offset = (page - 1) * limit
        products = list(queryset[offset:offset + limit])

        if not products:
            return responses.not_found('No products found to export')

        records = [exporter.build_product_record(product) for product in products]
        try:
            if fmt == 'xml':
                content = exporter.format_to_xml(records)
            elif fmt == 'csv':
                content = exporter.format_to_csv(records)
            else:
                content = exporter.format_to_json(records)
        except exporter.ExportFormatError as exc:
            logger.exception('Export formatting failed')
            return responses.error(f'Error formatting data: {exc}')

        logger.info('Exported %d of %d products as %s', len(records), total, fmt)

        filename = f'products-export-{timezone.now().date().isoformat()}.{exporter.get_file_extension(fmt)}'
        response = HttpResponse(content, content_type=exporter.get_content_type(fmt))
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        response['X-Total-Count'] = str(total)
        response['X-Page'] = str(page)
        response['X-Limit'] = str(limit)
        return response

    @action(
        detail=False,
        methods=['post'],
        url_path='import',
        parser_classes=[MultiPartParser, FormParser],
    )
    def import_products(self, request):
        """Import products from an uploaded ``file`` (JSON, XML or CSV)."""
        uploaded = request.FILES.get('file')
        try:
            importer.validate_upload(uploaded)
        except importer.UploadError as exc:
            return responses.bad_request(str(exc))

        logger.info('Processing import file %s (%d bytes)', uploaded.name, uploaded.size)
        try:
            content = uploaded.read().decode('utf-8-sig')
        except UnicodeDecodeError:
            return responses.bad_request('Parse error: File must be UTF-8 encoded')

        fmt = importer.detect_format(uploaded.name, content[:100])
        logger.info('Detected import format: %s', fmt)

        try:
            products = importer.parse_content(fmt, content)
        except importer.ImportParseError as exc:
            logger.warning('Import parse error: %s', exc)
            return responses.bad_request(f'Parse error: {exc}')
        logger.info('Parsed %d products from file', len(products))

        validation = importer.validate_products(products)
        logger.info(
            'Validation results: %d valid, %d invalid',
            len(validation['valid']), len(validation['invalid'])
        )

        if validation['invalid'] and not validation['valid']:
            return responses.bad_request(
                'All products have validation errors',
                {'errors': validation['invalid']},
            )

        user = request.user if isinstance(request.user, User) else None
        summary = ProductImportService.import_products(
            validation['valid'],
            total=len(products),
            skipped=len(validation['invalid']),
            user=user,
        )
        return responses.success(
            {'summary': summary, 'validationErrors': validation['invalid']},
            f"Import completed: {summary['successful']} successful, "
            f"{summary['failed']} failed, {summary['skipped']} skipped",
        )


class ProductWorkflowHistoryViewSet(EnvelopeReadOnlyModelViewSet):
    """
    API endpoint for product workflow history (read-only).
    """
    resource_name = 'Workflow history'
    resource_name_plural = 'Workflow history'
    queryset = ProductWorkflowHistory.objects.select_related('product', 'changed_by')
    serializer_class = ProductWorkflowHistorySerializer
    filterset_class = ProductWorkflowHistoryFilter


# =============================================================================
# Attributes
# =============================================================================

class AttributeViewSet(EnvelopeModelViewSet):
    """
    API endpoint for EAV attributes.
    """
    resource_name = 'Attribute'
    queryset = Attribute.objects.all()
    serializer_class = AttributeSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['data_type', 'input_type', 'is_required', 'is_filterable', 'is_global']
    search_fields = ['code', 'label']
    ordering_fields = ['code', 'label', 'created_at']
    ordering = ['code']

    def perform_destroy(self, instance):
        if instance.product_values.exists():
            raise serializers.ValidationError(
                'Cannot delete attribute with associated product attribute values'
            )
        instance.delete()


class AttributeSetViewSet(EnvelopeModelViewSet):
    """
    API endpoint for attribute sets and their attribute memberships.
    """
    resource_name = 'Attribute set'
    queryset = AttributeSet.objects.all()
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['product_type', 'is_default']
    search_fields = ['code', 'label']

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return AttributeSetDetailSerializer
        return AttributeSetSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'retrieve':
            queryset = queryset.prefetch_related('groups')
        return queryset

    def _membership_payload(self, request):
        serializer = MembershipCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    @action(detail=True, methods=['post'], url_path='attributes')
    def add_attribute(self, request, pk=None):
        """Assign an attribute directly to the set."""
        attribute_set = self.get_object()
        payload = self._membership_payload(request)

        existing = attribute_set.memberships.filter(attribute=payload['attribute']).first()
        if existing is not None:
            if existing.group_id:
                return responses.bad_request('Attribute is already assigned to a group in this attribute set')
            return responses.bad_request('Attribute is already assigned to this attribute set')

        membership = AttributeSetAttribute.objects.create(
            attribute_set=attribute_set,
            attribute=payload['attribute'],
            sort_order=payload['sort_order'],
        )
        return responses.success(
            AttributeSetAttributeSerializer(membership).data,
            'Attribute added to set successfully'
        )

    @action(detail=True, methods=['delete'], url_path=r'attributes/(?P<relation_id>\d+)')
    def remove_attribute(self, request, pk=None, relation_id=None):
        attribute_set = self.get_object()
        membership = get_object_or_404(
            AttributeSetAttribute, pk=relation_id, attribute_set=attribute_set, group__isnull=True
        )
        data = AttributeSetAttributeSerializer(membership).data
        membership.delete()
        return responses.success(data, 'Attribute removed from set successfully')

    @action(detail=True, methods=['post'], url_path=r'groups/(?P<group_id>\d+)/attributes')
    def add_attribute_to_group(self, request, pk=None, group_id=None):
        """Assign an attribute to one group of the set."""
        attribute_set = self.get_object()
        group = get_object_or_404(AttributeGroup, pk=group_id, attribute_set=attribute_set)
        payload = self._membership_payload(request)

        existing = attribute_set.memberships.filter(attribute=payload['attribute']).first()
        if existing is not None:
            if existing.group_id is None:
                return responses.bad_request('Attribute is already assigned directly to this attribute set')
            return responses.bad_request('Attribute is already assigned to another group in this attribute set')

        membership = AttributeSetAttribute.objects.create(
            attribute_set=attribute_set,
            attribute=payload['attribute'],
            group=group,
            sort_order=payload['sort_order'],
        )
        return responses.success(
            AttributeSetAttributeSerializer(membership).data,
            'Attribute added to group successfully'
        )

    @action(
        detail=True,
        methods=['delete'],
        url_path=r'groups/(?P<group_id>\d+)/attributes/(?P<relation_id>\d+)'
    )
    def remove_attribute_from_group(self, request, pk=None, group_id=None, relation_id=None):
        attribute_set = self.get_object()
        membership = get_object_or_404(
            AttributeSetAttribute, pk=relation_id, attribute_set=attribute_set, group_id=group_id
        )
        data = AttributeSetAttributeSerializer(membership).data
        membership.delete()
        return responses.success(data, 'Attribute removed from group successfully')


class AttributeGroupViewSet(EnvelopeModelViewSet):
    """
    API endpoint for attribute groups.
    Changing ``attribute_set`` moves the group with its memberships.
    """
    resource_name = 'Attribute group'
    queryset = AttributeGroup.objects.select_related('attribute_set')
    serializer_class = AttributeGroupSerializer
    filterset_fields = ['attribute_set']

    def perform_update(self, serializer):
        target = serializer.validated_data.pop('attribute_set', None)
        with transaction.atomic():
            group = serializer.save()
            if target is not None and target.pk != group.attribute_set_id:
                removed = group.move_to_set(target)
                logger.info(
                    'Moved group %s to set %s, dropped %d conflicting memberships',
                    group.code, target.code, removed
                )


class ProductAttributeValueViewSet(EnvelopeModelViewSet):
    """
    API endpoint for product attribute values.
    """
    resource_name = 'Product attribute value'
    queryset = ProductAttributeValue.objects.select_related('attribute', 'store_view')
    serializer_class = ProductAttributeValueSerializer
    filterset_fields = ['product', 'attribute', 'store_view']

    def _delete_value(self, **lookup):
        pav = get_object_or_404(ProductAttributeValue, **lookup)
        pav.delete()
        return responses.success(None, 'Product attribute value deleted successfully')

    @action(
        detail=False,
        methods=['delete'],
        url_path=r'products/(?P<product_id>\d+)/attributes/(?P<attribute_id>\d+)'
    )
    def delete_global_value(self, request, product_id=None, attribute_id=None):
        return self._delete_value(
            product_id=product_id, attribute_id=attribute_id, store_view__isnull=True
        )

    @action(
        detail=False,
        methods=['delete'],
        url_path=r'products/(?P<product_id>\d+)/attributes/(?P<attribute_id>\d+)/store-views/(?P<store_view_id>\d+)'
    )
    def delete_store_view_value(self, request, product_id=None, attribute_id=None, store_view_id=None):
        return self._delete_value(
            product_id=product_id, attribute_id=attribute_id, store_view_id=store_view_id
        )


# =============================================================================
# Categories
# =============================================================================

class CategoryViewSet(EnvelopeModelViewSet):
    """
    API endpoint for hierarchical categories.
    """
    resource_name = 'Category'
    resource_name_plural = 'Categories'
    queryset = Category.objects.select_related('parent').prefetch_related('translations')
    serializer_class = CategorySerializer
    filterset_class = CategoryFilter

    @action(detail=False, methods=['get'])
    def root(self, request):
        """Get top level categories."""
        return self.envelope_list(
            self.get_queryset().filter(parent__isnull=True),
            'Root categories retrieved successfully'
        )

    @action(detail=False, methods=['get'], url_path=r'parent/(?P<parent_id>\d+)')
    def by_parent(self, request, parent_id=None):
        """Get direct children of a category."""
        return self.envelope_list(
            self.get_queryset().filter(parent_id=parent_id),
            'Child categories retrieved successfully'
        )


class CategoryTranslationViewSet(EnvelopeModelViewSet):
    resource_name = 'Category translation'
    queryset = CategoryTranslation.objects.select_related('store_view')
    serializer_class = CategoryTranslationSerializer
    filterset_fields = ['category', 'store_view']


class ProductCategoryViewSet(EnvelopeModelViewSet):
    resource_name = 'Product category'
    resource_name_plural = 'Product categories'
    queryset = ProductCategory.objects.select_related('category').prefetch_related('category__translations')
    serializer_class = ProductCategorySerializer
    filterset_fields = ['product', 'category']


# =============================================================================
# Assets
# =============================================================================

class AssetViewSet(EnvelopeModelViewSet):
    resource_name = 'Asset'
    queryset = Asset.objects.all()
    serializer_class = AssetSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['mime_type']
    search_fields = ['file_path']


class ProductAssetViewSet(EnvelopeModelViewSet):
    resource_name = 'Product asset'
    queryset = ProductAsset.objects.select_related('asset')
    serializer_class = ProductAssetSerializer
    filterset_fields = ['product', 'asset', 'type']


# =============================================================================
# Stores
# =============================================================================

class StoreViewSet(EnvelopeModelViewSet):
    resource_name = 'Store'
    queryset = Store.objects.all()
    serializer_class = StoreSerializer

    @action(detail=False, methods=['get'], url_path=r'code/(?P<code>[^/]+)')
    def by_code(self, request, code=None):
        store = get_object_or_404(Store, code=code)
        return responses.success(StoreSerializer(store).data, 'Store retrieved successfully')


class StoreViewViewSet(EnvelopeModelViewSet):
    resource_name = 'Store view'
    queryset = StoreView.objects.select_related('store', 'locale')
    serializer_class = StoreViewSerializer
    filterset_fields = ['store', 'locale']


class LocaleViewSet(EnvelopeModelViewSet):
    resource_name = 'Locale'
    queryset = Locale.objects.all()
    serializer_class = LocaleSerializer


# =============================================================================
# Analytics
# =============================================================================

@api_view(['GET'])
def analytics_dashboard(request):
    """Aggregated catalog figures for the dashboard."""
    return responses.success(
        AnalyticsService.get_dashboard(),
        'Dashboard analytics retrieved successfully'
    )
