from django.db import models
from simple_history.models import HistoricalRecords

from apps.accounts.history import get_history_user


class Product(models.Model):
    """
    Catalog product.
    Descriptive data beyond the core columns is held as EAV attribute values,
    laid out by the product's attribute set.
    """

    class ProductType(models.TextChoices):
        SIMPLE = 'SIMPLE', 'Simple'
        CONFIGURABLE = 'CONFIGURABLE', 'Configurable'
        BUNDLE = 'BUNDLE', 'Bundle'
        VIRTUAL = 'VIRTUAL', 'Virtual'
        DOWNLOADABLE = 'DOWNLOADABLE', 'Downloadable'

    class Status(models.TextChoices):
        DRAFT = 'DRAFT', 'Draft'
        ENRICHMENT = 'ENRICHMENT', 'Enrichment'
        VALIDATION = 'VALIDATION', 'Validation'
        APPROVAL = 'APPROVAL', 'Approval'
        PUBLISHING = 'PUBLISHING', 'Publishing'

    sku = models.CharField(
        max_length=100,
        unique=True,
        verbose_name='SKU'
    )
    name = models.CharField(
        max_length=255,
        verbose_name='Name'
    )
    description = models.TextField(
        null=True,
        blank=True,
        verbose_name='Description'
    )
    product_type = models.CharField(
        max_length=20,
        choices=ProductType.choices,
        default=ProductType.SIMPLE,
        verbose_name='Product type'
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.DRAFT,
        verbose_name='Status'
    )
    attribute_set = models.ForeignKey(
        'catalog.AttributeSet',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='products',
        verbose_name='Attribute set'
    )
    assigned_to = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_products',
        verbose_name='Assigned to'
    )
    categories = models.ManyToManyField(
        'catalog.Category',
        through='ProductCategory',
        blank=True,
        related_name='products',
        verbose_name='Categories'
    )
    assets = models.ManyToManyField(
        'catalog.Asset',
        through='ProductAsset',
        blank=True,
        related_name='products',
        verbose_name='Assets'
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Created at'
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Updated at'
    )

    # History tracking
    history = HistoricalRecords(user_model='accounts.User', get_user=get_history_user)

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name = 'Product'
        verbose_name_plural = 'Products'

    def __str__(self):
        return f"{self.sku} - {self.name}"

    def get_all_categories(self):
        """Get all categories including ancestors."""
        all_cats = set()
        for cat in self.categories.all():
            all_cats.add(cat)
            for ancestor in cat.get_ancestors():
                all_cats.add(ancestor)
        return all_cats

    def get_attribute_value(self, code, store_view=None):
        """
        Typed value of attribute ``code`` for ``store_view``, falling back to
        the global value.
        """
        values = {
            pav.store_view_id: pav
            for pav in self.attribute_values.select_related('attribute').filter(attribute__code=code)
        }
        store_view_id = getattr(store_view, 'pk', store_view)
        pav = values.get(store_view_id) or values.get(None)
        return pav.value if pav else None


class ProductCategory(models.Model):
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='product_categories',
        verbose_name='Product'
    )
    category = models.ForeignKey(
        'catalog.Category',
        on_delete=models.CASCADE,
        related_name='product_categories',
        verbose_name='Category'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']
        unique_together = ['product', 'category']
        verbose_name = 'Product category'
        verbose_name_plural = 'Product categories'

    def __str__(self):
        return f"{self.product.sku} - {self.category}"


class ProductAsset(models.Model):
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='product_assets',
        verbose_name='Product'
    )
    asset = models.ForeignKey(
        'catalog.Asset',
        on_delete=models.CASCADE,
        related_name='product_assets',
        verbose_name='Asset'
    )
    type = models.CharField(
        max_length=50,
        default='image',
        verbose_name='Type'
    )
    position = models.PositiveIntegerField(
        default=0,
        verbose_name='Position'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['position', 'id']
        unique_together = ['product', 'asset']
        verbose_name = 'Product asset'
        verbose_name_plural = 'Product assets'

    def __str__(self):
        return f"{self.product.sku} - {self.asset} #{self.position}"
