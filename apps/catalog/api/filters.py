from django.db.models import Q
from django.core.exceptions import ValidationError
from django_filters import rest_framework as filters

from apps.catalog.models import (
    Attribute,
    Category,
    Product,
    ProductAttributeValue,
    ProductWorkflowHistory,
)
from apps.catalog.models.attribute_value import coerce_value


class ProductFilter(filters.FilterSet):
    """Filter for products; also drives the export query."""

    search = filters.CharFilter(method='filter_search')
    type = filters.ChoiceFilter(field_name='product_type', choices=Product.ProductType.choices)
    status = filters.ChoiceFilter(choices=Product.Status.choices)
    categoryId = filters.NumberFilter(field_name='categories__id')
    assignedTo = filters.NumberFilter(field_name='assigned_to_id')
    attributeSetId = filters.NumberFilter(field_name='attribute_set_id')

    # Attribute filters
    attribute = filters.CharFilter(method='filter_by_attribute')

    class Meta:
        model = Product
        fields = ['search', 'type', 'status', 'categoryId', 'assignedTo', 'attributeSetId']

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(sku__icontains=value) | Q(name__icontains=value) | Q(description__icontains=value)
        )

    def filter_by_attribute(self, queryset, name, value):
        """
        Filter by attribute value in format: attribute_code:value
        Example: ?attribute=color:red
        """
        if ':' not in value:
            return queryset

        code, raw = value.split(':', 1)
        attribute = Attribute.objects.filter(code=code).first()
        if attribute is None:
            return queryset.none()

        try:
            typed = coerce_value(attribute.data_type, raw)
        except ValidationError:
            return queryset.none()

        matching = ProductAttributeValue.objects.filter(
            attribute=attribute, **{attribute.value_field: typed}
        ).values('product_id')
        return queryset.filter(pk__in=matching)

    def filter_queryset(self, queryset):
        # Category joins can repeat a product
        return super().filter_queryset(queryset).distinct()


class CategoryFilter(filters.FilterSet):
    parentId = filters.NumberFilter(field_name='parent_id')
    isActive = filters.BooleanFilter(field_name='is_active')

    class Meta:
        model = Category
        fields = ['parentId', 'isActive']


class ProductWorkflowHistoryFilter(filters.FilterSet):
    productId = filters.NumberFilter(field_name='product_id')
    changedById = filters.NumberFilter(field_name='changed_by_id')
    toStatus = filters.ChoiceFilter(field_name='to_status', choices=Product.Status.choices)

    class Meta:
        model = ProductWorkflowHistory
        fields = ['productId', 'changedById', 'toStatus']
