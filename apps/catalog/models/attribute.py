from django.db import models
from django.core.validators import RegexValidator
from simple_history.models import HistoricalRecords

from apps.accounts.history import get_history_user


class Attribute(models.Model):
    """
    EAV attribute definition.
    The data type decides which typed column holds a product's value.
    Examples: color (STRING), weight (DECIMAL), is_featured (BOOLEAN).
    """

    class DataType(models.TextChoices):
        BOOLEAN = 'BOOLEAN', 'Boolean'
        STRING = 'STRING', 'String'
        INT = 'INT', 'Integer'
        DECIMAL = 'DECIMAL', 'Decimal'
        TEXT = 'TEXT', 'Text'
        JSON = 'JSON', 'JSON'

    class InputType(models.TextChoices):
        TEXT = 'TEXT', 'Text'
        SELECT = 'SELECT', 'Select'
        MULTISELECT = 'MULTISELECT', 'Multiselect'
        DATE = 'DATE', 'Date'
        MEDIA = 'MEDIA', 'Media'

    code_validator = RegexValidator(
        regex=r'^[a-zA-Z0-9_\-]+$',
        message='Code may only contain letters, numbers, underscores and hyphens'
    )

    code = models.CharField(
        max_length=100,
        unique=True,
        validators=[code_validator],
        verbose_name='Code'
    )
    label = models.CharField(
        max_length=255,
        verbose_name='Label'
    )
    data_type = models.CharField(
        max_length=10,
        choices=DataType.choices,
        default=DataType.STRING,
        verbose_name='Data type'
    )
    input_type = models.CharField(
        max_length=12,
        choices=InputType.choices,
        default=InputType.TEXT,
        verbose_name='Input type'
    )
    is_required = models.BooleanField(
        default=False,
        verbose_name='Required'
    )
    is_filterable = models.BooleanField(
        default=False,
        verbose_name='Filterable'
    )
    is_global = models.BooleanField(
        default=True,
        verbose_name='Global',
        help_text='Global attributes share one value across store views'
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Created at'
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Updated at'
    )

    history = HistoricalRecords(user_model='accounts.User', get_user=get_history_user)

    class Meta:
        ordering = ['code']
        verbose_name = 'Attribute'
        verbose_name_plural = 'Attributes'

    def __str__(self):
        return f"{self.label} ({self.code})"

    @property
    def value_field(self):
        """Name of the ProductAttributeValue column used by this attribute."""
        from .attribute_value import VALUE_FIELDS
        return VALUE_FIELDS[self.data_type]
