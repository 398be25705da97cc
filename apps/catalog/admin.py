from django.contrib import admin
from django.utils.html import format_html
from import_export import resources, fields
from import_export.admin import ImportExportModelAdmin
from import_export.widgets import ForeignKeyWidget
from adminsortable2.admin import SortableAdminMixin, SortableAdminBase, SortableInlineAdminMixin
from simple_history.admin import SimpleHistoryAdmin

from .models import (
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


# =============================================================================
# Import/Export Resources
# =============================================================================

class ProductResource(resources.ModelResource):
    """Resource for importing/exporting products."""

    attribute_set_code = fields.Field(
        column_name='attribute_set',
        attribute='attribute_set',
        widget=ForeignKeyWidget(AttributeSet, 'code')
    )

    class Meta:
        model = Product
        import_id_fields = ['sku']
        fields = (
            'sku', 'name', 'description', 'product_type', 'status',
            'attribute_set_code'
        )
        export_order = fields


class AttributeResource(resources.ModelResource):
    """Resource for importing/exporting attribute definitions."""

    class Meta:
        model = Attribute
        import_id_fields = ['code']
        fields = (
            'code', 'label', 'data_type', 'input_type',
            'is_required', 'is_filterable', 'is_global'
        )


# =============================================================================
# Inlines
# =============================================================================

class AttributeGroupInline(SortableInlineAdminMixin, admin.TabularInline):
    model = AttributeGroup
    extra = 1
    fields = ['code', 'label', 'sort_order']


class AttributeSetAttributeInline(SortableInlineAdminMixin, admin.TabularInline):
    model = AttributeSetAttribute
    extra = 1
    autocomplete_fields = ['attribute']
    fields = ['attribute', 'group', 'sort_order']


class CategoryTranslationInline(admin.TabularInline):
    model = CategoryTranslation
    extra = 1
    fields = ['store_view', 'name', 'slug', 'description']


class ProductAssetInline(SortableInlineAdminMixin, admin.TabularInline):
    model = ProductAsset
    extra = 1
    fields = ['asset', 'type', 'position', 'asset_preview']
    readonly_fields = ['asset_preview']
    raw_id_fields = ['asset']

    def asset_preview(self, obj):
        if obj.asset_id and obj.asset.mime_type.startswith('image/'):
            return format_html(
                '<img src="{}" style="max-height: 50px; max-width: 100px;" />',
                obj.asset.file_path
            )
        return '-'
    asset_preview.short_description = 'Preview'


class ProductCategoryInline(admin.TabularInline):
    model = ProductCategory
    extra = 1
    autocomplete_fields = ['category']


class ProductAttributeValueInline(admin.TabularInline):
    model = ProductAttributeValue
    extra = 0
    autocomplete_fields = ['attribute']
    fields = [
        'attribute', 'store_view', 'data_type', 'value_string', 'value_text',
        'value_int', 'value_decimal', 'value_boolean', 'value_json'
    ]
    readonly_fields = ['data_type']


class WorkflowHistoryInline(admin.TabularInline):
    model = ProductWorkflowHistory
    extra = 0
    fields = ['from_status', 'to_status', 'changed_by', 'notes', 'created_at']
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


# =============================================================================
# Model Admins
# =============================================================================

@admin.register(Product)
class ProductAdmin(SortableAdminBase, ImportExportModelAdmin, SimpleHistoryAdmin):
    resource_class = ProductResource
    list_display = [
        'sku', 'name', 'product_type', 'status_badge', 'attribute_set',
        'assigned_to', 'created_at'
    ]
    list_filter = ['product_type', 'status', 'attribute_set', 'created_at']
    search_fields = ['sku', 'name', 'description']
    autocomplete_fields = ['attribute_set']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [
        ProductAssetInline, ProductCategoryInline,
        ProductAttributeValueInline, WorkflowHistoryInline
    ]
    list_per_page = 50

    fieldsets = (
        (None, {
            'fields': ('sku', 'name', 'description', 'product_type')
        }),
        ('Workflow', {
            'fields': ('status', 'assigned_to', 'attribute_set')
        }),
        ('Information', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['move_to_enrichment', 'move_to_draft']

    STATUS_COLORS = {
        Product.Status.DRAFT: 'gray',
        Product.Status.ENRICHMENT: 'blue',
        Product.Status.VALIDATION: 'orange',
        Product.Status.APPROVAL: 'purple',
        Product.Status.PUBLISHING: 'green',
    }

    def status_badge(self, obj):
        return format_html(
            '<span style="color: {};">{}</span>',
            self.STATUS_COLORS.get(obj.status, 'black'),
            obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    def _move_to(self, request, queryset, status):
        # Saved one by one so the workflow history signal fires
        count = 0
        for product in queryset.exclude(status=status):
            product.status = status
            product._workflow_notes = 'Changed from admin'
            product.save()
            count += 1
        self.message_user(request, f'{count} products moved to {status.label}.')

    @admin.action(description='Move selected products to enrichment')
    def move_to_enrichment(self, request, queryset):
        self._move_to(request, queryset, Product.Status.ENRICHMENT)

    @admin.action(description='Move selected products back to draft')
    def move_to_draft(self, request, queryset):
        self._move_to(request, queryset, Product.Status.DRAFT)


@admin.register(Attribute)
class AttributeAdmin(ImportExportModelAdmin, SimpleHistoryAdmin):
    resource_class = AttributeResource
    list_display = [
        'code', 'label', 'data_type', 'input_type', 'is_required',
        'is_filterable', 'is_global', 'value_count'
    ]
    list_filter = ['data_type', 'input_type', 'is_required', 'is_filterable', 'is_global']
    search_fields = ['code', 'label']

    def value_count(self, obj):
        return obj.product_values.count()
    value_count.short_description = 'Values'

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return ['code']
        return []


@admin.register(AttributeSet)
class AttributeSetAdmin(SortableAdminBase, admin.ModelAdmin):
    list_display = ['code', 'label', 'product_type', 'is_default', 'group_count']
    list_filter = ['product_type', 'is_default']
    search_fields = ['code', 'label']
    inlines = [AttributeGroupInline, AttributeSetAttributeInline]

    def group_count(self, obj):
        return obj.groups.count()
    group_count.short_description = 'Groups'


@admin.register(Category)
class CategoryAdmin(SortableAdminMixin, admin.ModelAdmin):
    list_display = ['full_path', 'parent', 'level', 'is_active', 'sort_order']
    list_filter = ['is_active', 'parent']
    search_fields = ['translations__name']
    inlines = [CategoryTranslationInline]


@admin.register(Asset)
class AssetAdmin(admin.ModelAdmin):
    list_display = ['file_name', 'file_path', 'mime_type', 'created_at']
    list_filter = ['mime_type']
    search_fields = ['file_path']


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ['code', 'name']
    search_fields = ['code', 'name']


@admin.register(StoreView)
class StoreViewAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'store', 'locale']
    list_filter = ['store', 'locale']
    search_fields = ['code', 'name']


@admin.register(Locale)
class LocaleAdmin(admin.ModelAdmin):
    list_display = ['value', 'label']
    search_fields = ['value', 'label']


@admin.register(ProductWorkflowHistory)
class ProductWorkflowHistoryAdmin(admin.ModelAdmin):
    list_display = ['product', 'from_status', 'to_status', 'changed_by', 'created_at']
    list_filter = ['to_status', 'created_at']
    search_fields = ['product__sku', 'product__name']
    readonly_fields = ['product', 'from_status', 'to_status', 'changed_by', 'notes', 'created_at']
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =============================================================================
# Admin Site Configuration
# =============================================================================

admin.site.site_header = 'PIM Admin'
admin.site.site_title = 'PIM'
admin.site.index_title = 'Product Information Management'
