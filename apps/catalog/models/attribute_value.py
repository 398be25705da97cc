from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.db import models

from .attribute import Attribute

DataType = Attribute.DataType

# Column holding the value for each attribute data type
VALUE_FIELDS = {
    DataType.BOOLEAN: 'value_boolean',
    DataType.STRING: 'value_string',
    DataType.INT: 'value_int',
    DataType.DECIMAL: 'value_decimal',
    DataType.TEXT: 'value_text',
    DataType.JSON: 'value_json',
}

TRUE_STRINGS = {'true', '1', 'yes', 'on'}
FALSE_STRINGS = {'false', '0', 'no', 'off'}


def _to_boolean(value):
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    text = str(value).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    raise ValueError(f'{value!r} is not a boolean')


def _to_int(value):
    if isinstance(value, bool):
        raise ValueError(f'{value!r} is not an integer')
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f'{value!r} is not an integer')
    return int(value)


def _to_decimal(value):
    if isinstance(value, bool):
        raise ValueError(f'{value!r} is not a decimal')
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f'{value!r} is not a decimal') from exc


COERCERS = {
    DataType.BOOLEAN: _to_boolean,
    DataType.STRING: str,
    DataType.INT: _to_int,
    DataType.DECIMAL: _to_decimal,
    DataType.TEXT: str,
    DataType.JSON: lambda value: value,
}


def coerce_value(data_type, value):
    """Convert ``value`` to the Python type stored for ``data_type``."""
    if value is None:
        return None
    try:
        return COERCERS[data_type](value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            f'Invalid value for data type {data_type}: {value!r}'
        ) from exc


def _typed_value_condition():
    condition = models.Q()
    for data_type, field in VALUE_FIELDS.items():
        others = {f'{name}__isnull': True for name in VALUE_FIELDS.values() if name != field}
        condition |= models.Q(data_type=data_type, **others)
    return condition


class ProductAttributeValue(models.Model):
    """
    Value of one attribute for one product, globally or for a store view.

    ``data_type`` is copied from the attribute on save; only the matching
    ``value_*`` column may be set. Read and write through ``value``.
    """
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.CASCADE,
        related_name='attribute_values',
        verbose_name='Product'
    )
    attribute = models.ForeignKey(
        Attribute,
        on_delete=models.PROTECT,
        related_name='product_values',
        verbose_name='Attribute'
    )
    store_view = models.ForeignKey(
        'catalog.StoreView',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='attribute_values',
        verbose_name='Store view',
        help_text='Empty for the global value'
    )
    data_type = models.CharField(
        max_length=10,
        choices=DataType.choices,
        editable=False,
        verbose_name='Data type'
    )
    value_string = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        verbose_name='String value'
    )
    value_text = models.TextField(
        null=True,
        blank=True,
        verbose_name='Text value'
    )
    value_int = models.BigIntegerField(
        null=True,
        blank=True,
        verbose_name='Integer value'
    )
    value_decimal = models.DecimalField(
        max_digits=20,
        decimal_places=6,
        null=True,
        blank=True,
        verbose_name='Decimal value'
    )
    value_boolean = models.BooleanField(
        null=True,
        blank=True,
        verbose_name='Boolean value'
    )
    value_json = models.JSONField(
        null=True,
        blank=True,
        verbose_name='JSON value'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['product', 'attribute', 'id']
        verbose_name = 'Product attribute value'
        verbose_name_plural = 'Product attribute values'
        constraints = [
            models.UniqueConstraint(
                fields=['product', 'attribute', 'store_view'],
                name='unique_product_attribute_store_view',
            ),
            models.UniqueConstraint(
                fields=['product', 'attribute'],
                condition=models.Q(store_view__isnull=True),
                name='unique_product_attribute_global',
            ),
            models.CheckConstraint(
                condition=_typed_value_condition(),
                name='product_attribute_value_matches_data_type',
            ),
        ]

    def __str__(self):
        scope = self.store_view.code if self.store_view_id else 'global'
        return f"{self.product_id} - {self.attribute.code} [{scope}]: {self.value}"

    @property
    def value_field(self):
        return VALUE_FIELDS[self.data_type or self.attribute.data_type]

    @property
    def value(self):
        return getattr(self, self.value_field)

    @value.setter
    def value(self, value):
        self.set_value(value)

    def set_value(self, value):
        """Store ``value`` in the column for the attribute's data type and clear the rest."""
        self.data_type = self.attribute.data_type
        typed = coerce_value(self.data_type, value)
        for field in VALUE_FIELDS.values():
            setattr(self, field, None)
        setattr(self, VALUE_FIELDS[self.data_type], typed)

    def save(self, *args, **kwargs):
        if not self.data_type:
            self.data_type = self.attribute.data_type
        super().save(*args, **kwargs)
