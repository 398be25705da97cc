from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

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
from apps.core.exceptions import ConflictError


def ensure_unique(model, field, value, instance=None, message=None):
    """Raise ConflictError (409) when another row already holds ``value``."""
    queryset = model.objects.filter(**{field: value})
    if instance is not None:
        queryset = queryset.exclude(pk=instance.pk)
    if queryset.exists():
        raise ConflictError(message or f'{model._meta.verbose_name} with this {field} already exists')
    return value


def request_user(serializer):
    request = serializer.context.get('request')
    user = getattr(request, 'user', None)
    return user if isinstance(user, User) else None


# =============================================================================
# Attribute Serializers
# =============================================================================

class AttributeSerializer(serializers.ModelSerializer):
    code = serializers.CharField(max_length=100, validators=[Attribute.code_validator])

    class Meta:
        model = Attribute
        fields = [
            'id', 'code', 'label', 'data_type', 'input_type',
            'is_required', 'is_filterable', 'is_global',
            'created_at', 'updated_at'
        ]

    def validate_code(self, value):
        if self.instance is not None:
            if value != self.instance.code:
                raise serializers.ValidationError('Attribute code cannot be changed')
            return value
        return ensure_unique(Attribute, 'code', value, message='Attribute with this code already exists')

    def validate_data_type(self, value):
        instance = self.instance
        if instance is not None and value != instance.data_type and instance.product_values.exists():
            raise serializers.ValidationError(
                'Cannot change data type of attribute with associated product attribute values'
            )
        return value


class AttributeSetAttributeSerializer(serializers.ModelSerializer):
    """Membership of an attribute in a set, with the attribute inlined."""
    attribute_code = serializers.CharField(source='attribute.code', read_only=True)
    attribute_label = serializers.CharField(source='attribute.label', read_only=True)
    data_type = serializers.CharField(source='attribute.data_type', read_only=True)
    input_type = serializers.CharField(source='attribute.input_type', read_only=True)

    class Meta:
        model = AttributeSetAttribute
        fields = [
            'id', 'attribute_set', 'attribute', 'attribute_code', 'attribute_label',
            'data_type', 'input_type', 'group', 'sort_order'
        ]
        read_only_fields = ['attribute_set', 'group']


class MembershipCreateSerializer(serializers.Serializer):
    attribute = serializers.PrimaryKeyRelatedField(queryset=Attribute.objects.all())
    sort_order = serializers.IntegerField(min_value=0, required=False, default=0)


class AttributeGroupSerializer(serializers.ModelSerializer):
    attributes = serializers.SerializerMethodField()

    class Meta:
        model = AttributeGroup
        fields = [
            'id', 'attribute_set', 'code', 'label', 'sort_order',
            'attributes', 'created_at', 'updated_at'
        ]

    def get_attributes(self, obj):
        memberships = obj.memberships.select_related('attribute').order_by('sort_order', 'id')
        return AttributeSetAttributeSerializer(memberships, many=True).data


class AttributeSetSerializer(serializers.ModelSerializer):
    code = serializers.CharField(max_length=100)

    class Meta:
        model = AttributeSet
        fields = [
            'id', 'code', 'label', 'product_type', 'is_default',
            'created_at', 'updated_at'
        ]

    def validate_code(self, value):
        return ensure_unique(
            AttributeSet, 'code', value, self.instance,
            message='Attribute set with this code already exists'
        )


class AttributeSetDetailSerializer(AttributeSetSerializer):
    """Attribute set with its groups and every membership in display order."""
    groups = AttributeGroupSerializer(many=True, read_only=True)
    ungrouped_attributes = serializers.SerializerMethodField()
    attributes = serializers.SerializerMethodField()

    class Meta(AttributeSetSerializer.Meta):
        fields = AttributeSetSerializer.Meta.fields + ['groups', 'ungrouped_attributes', 'attributes']

    def get_ungrouped_attributes(self, obj):
        memberships = obj.memberships.filter(group__isnull=True).select_related('attribute')
        return AttributeSetAttributeSerializer(memberships.order_by('sort_order', 'id'), many=True).data

    def get_attributes(self, obj):
        return AttributeSetAttributeSerializer(obj.ordered_memberships(), many=True).data


# =============================================================================
# Store Serializers
# =============================================================================

class StoreSerializer(serializers.ModelSerializer):
    code = serializers.CharField(max_length=100)

    class Meta:
        model = Store
        fields = ['id', 'code', 'name', 'created_at', 'updated_at']

    def validate_code(self, value):
        return ensure_unique(Store, 'code', value, self.instance, 'Store with this code already exists')


class LocaleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Locale
        fields = ['id', 'value', 'label']


class StoreViewSerializer(serializers.ModelSerializer):
    store_name = serializers.CharField(source='store.name', read_only=True)
    locale_value = serializers.CharField(source='locale.value', read_only=True)

    class Meta:
        model = StoreView
        fields = [
            'id', 'store', 'store_name', 'locale', 'locale_value',
            'code', 'name', 'created_at', 'updated_at'
        ]


# =============================================================================
# Category Serializers
# =============================================================================

class CategoryTranslationSerializer(serializers.ModelSerializer):
    store_view_code = serializers.CharField(source='store_view.code', read_only=True)

    class Meta:
        model = CategoryTranslation
        fields = ['id', 'category', 'store_view', 'store_view_code', 'name', 'slug', 'description']
        extra_kwargs = {'slug': {'required': False}}


class CategorySerializer(serializers.ModelSerializer):
    name = serializers.CharField(read_only=True)
    full_path = serializers.CharField(read_only=True)
    level = serializers.IntegerField(read_only=True)
    translations = CategoryTranslationSerializer(many=True, read_only=True)
    children_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = [
            'id', 'parent', 'name', 'full_path', 'level', 'sort_order',
            'is_active', 'translations', 'children_count',
            'created_at', 'updated_at'
        ]

    def get_children_count(self, obj):
        return obj.children.count()

    def validate_parent(self, value):
        instance = self.instance
        if instance is not None and value is not None:
            if value.pk == instance.pk or value in instance.get_descendants():
                raise serializers.ValidationError('A category cannot be moved under itself')
        return value


# =============================================================================
# Asset Serializers
# =============================================================================

class AssetSerializer(serializers.ModelSerializer):
    file_name = serializers.CharField(read_only=True)

    class Meta:
        model = Asset
        fields = ['id', 'file_path', 'file_name', 'mime_type', 'created_at', 'updated_at']


class ProductAssetSerializer(serializers.ModelSerializer):
    asset_detail = AssetSerializer(source='asset', read_only=True)

    class Meta:
        model = ProductAsset
        fields = ['id', 'product', 'asset', 'asset_detail', 'type', 'position', 'created_at']


class ProductCategorySerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)

    class Meta:
        model = ProductCategory
        fields = ['id', 'product', 'category', 'category_name', 'created_at']


# =============================================================================
# Product Attribute Value Serializer
# =============================================================================

class ProductAttributeValueSerializer(serializers.ModelSerializer):
    """
    Typed attribute value.

    Clients read and write ``value``; the ``value_*`` columns are exposed
    read-only and only the one matching ``data_type`` is ever set.
    """
    attribute_code = serializers.CharField(source='attribute.code', read_only=True)
    attribute_label = serializers.CharField(source='attribute.label', read_only=True)
    value = serializers.JSONField(allow_null=True)

    class Meta:
        model = ProductAttributeValue
        fields = [
            'id', 'product', 'attribute', 'attribute_code', 'attribute_label',
            'store_view', 'data_type', 'value',
            'value_string', 'value_text', 'value_int', 'value_decimal',
            'value_boolean', 'value_json',
            'created_at', 'updated_at'
        ]
        read_only_fields = [
            'data_type', 'value_string', 'value_text', 'value_int',
            'value_decimal', 'value_boolean', 'value_json'
        ]
        # Uniqueness is checked in validate() so it can answer 409
        validators = []

    def validate(self, attrs):
        instance = self.instance
        product = attrs.get('product', getattr(instance, 'product', None))
        attribute = attrs.get('attribute', getattr(instance, 'attribute', None))
        store_view = attrs.get('store_view', getattr(instance, 'store_view', None))

        duplicates = ProductAttributeValue.objects.filter(
            product=product, attribute=attribute, store_view=store_view
        )
        if instance is not None:
            duplicates = duplicates.exclude(pk=instance.pk)
        if duplicates.exists():
            raise ConflictError('A value for this attribute and store view already exists')
        return attrs

    def _save_value(self, instance, validated_data):
        value = validated_data.pop('value', instance.value if instance.pk else None)
        for field, field_value in validated_data.items():
            setattr(instance, field, field_value)
        try:
            instance.set_value(value)
        except DjangoValidationError as exc:
            raise serializers.ValidationError({'value': exc.messages})
        instance.save()
        return instance

    def create(self, validated_data):
        return self._save_value(ProductAttributeValue(), validated_data)

    def update(self, instance, validated_data):
        return self._save_value(instance, validated_data)


# =============================================================================
# Product Serializers
# =============================================================================

class ProductSerializer(serializers.ModelSerializer):
    """Base product serializer used for writes."""
    sku = serializers.CharField(max_length=100)
    workflow_notes = serializers.CharField(write_only=True, required=False, allow_blank=True)

    class Meta:
        model = Product
        fields = [
            'id', 'sku', 'name', 'description', 'product_type', 'status',
            'attribute_set', 'assigned_to', 'workflow_notes',
            'created_at', 'updated_at'
        ]

    def validate_sku(self, value):
        return ensure_unique(Product, 'sku', value, self.instance, 'Product with this SKU already exists')

    def create(self, validated_data):
        validated_data.pop('workflow_notes', None)
        return super().create(validated_data)

    def update(self, instance, validated_data):
        # Read by the workflow history signal
        instance._workflow_notes = validated_data.pop('workflow_notes', '')
        instance._changed_by = request_user(self)
        return super().update(instance, validated_data)


class ProductListSerializer(serializers.ModelSerializer):
    """Product list with counts."""
    attribute_set_label = serializers.CharField(source='attribute_set.label', read_only=True, default=None)
    category_count = serializers.IntegerField(read_only=True)
    asset_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'sku', 'name', 'product_type', 'status',
            'attribute_set', 'attribute_set_label', 'assigned_to',
            'category_count', 'asset_count',
            'created_at', 'updated_at'
        ]


class ProductDetailSerializer(serializers.ModelSerializer):
    """Full product detail with assets, categories and attribute values."""
    attribute_set = AttributeSetSerializer(read_only=True)
    assets = ProductAssetSerializer(source='product_assets', many=True, read_only=True)
    categories = ProductCategorySerializer(source='product_categories', many=True, read_only=True)
    attribute_values = ProductAttributeValueSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'sku', 'name', 'description', 'product_type', 'status',
            'attribute_set', 'assigned_to', 'assets', 'categories',
            'attribute_values', 'created_at', 'updated_at'
        ]


# =============================================================================
# Workflow History Serializer
# =============================================================================

class ProductWorkflowHistorySerializer(serializers.ModelSerializer):
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    changed_by_name = serializers.CharField(source='changed_by.name', read_only=True, default=None)

    class Meta:
        model = ProductWorkflowHistory
        fields = [
            'id', 'product', 'product_sku', 'from_status', 'to_status',
            'changed_by', 'changed_by_name', 'notes', 'created_at'
        ]


# =============================================================================
# Import Serializers
# =============================================================================

class BlankableIntegerField(serializers.IntegerField):
    """Integer field that reads ``''`` (empty CSV cell or XML leaf) as null."""

    def to_internal_value(self, data):
        if data == '' or data is None:
            return None
        return super().to_internal_value(data)


class ImportAssetSerializer(serializers.Serializer):
    assetId = BlankableIntegerField(source='asset_id', required=False, allow_null=True)
    url = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    mimeType = serializers.CharField(source='mime_type', required=False, allow_blank=True, allow_null=True)
    type = serializers.CharField(required=False, allow_blank=True, default='image')
    position = BlankableIntegerField(required=False, allow_null=True, default=0)
    asset = serializers.DictField(required=False)


class ImportCategorySerializer(serializers.Serializer):
    categoryId = BlankableIntegerField(source='category_id', required=False, allow_null=True)


class ImportAttributeValueSerializer(serializers.Serializer):
    attributeCode = serializers.CharField(source='attribute_code', required=False, allow_blank=True)
    storeViewId = BlankableIntegerField(source='store_view_id', required=False, allow_null=True)
    valueString = serializers.JSONField(source='value_string', required=False, allow_null=True)
    valueText = serializers.JSONField(source='value_text', required=False, allow_null=True)
    valueInt = serializers.JSONField(source='value_int', required=False, allow_null=True)
    valueDecimal = serializers.JSONField(source='value_decimal', required=False, allow_null=True)
    valueBoolean = serializers.JSONField(source='value_boolean', required=False, allow_null=True)
    valueJson = serializers.JSONField(source='value_json', required=False, allow_null=True)


class ProductImportSerializer(serializers.Serializer):
    """
    One product from an import file, in the export record shape.
    Validated data uses model field names.
    """
    id = BlankableIntegerField(required=False, allow_null=True)
    sku = serializers.CharField(max_length=100)
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    productType = serializers.ChoiceField(
        source='product_type',
        choices=Product.ProductType.choices,
        error_messages={'invalid_choice': 'Invalid product type'}
    )
    status = serializers.ChoiceField(choices=Product.Status.choices, required=False)
    attributeSetId = BlankableIntegerField(source='attribute_set_id', required=False, allow_null=True)
    assets = ImportAssetSerializer(many=True, required=False)
    categories = ImportCategorySerializer(many=True, required=False)
    attributes = ImportAttributeValueSerializer(many=True, required=False)

    def validate_attributeSetId(self, value):
        if value is not None and value <= 0:
            raise serializers.ValidationError('Attribute set ID must be a positive integer')
        return value
