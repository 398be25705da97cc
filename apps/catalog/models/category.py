from django.db import models
from django.utils.text import slugify


class Category(models.Model):
    """
    Hierarchical product categories.
    Names live in per-store-view translations.
    Example: Apparel > Shirts > Polo
    """
    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='children',
        verbose_name='Parent category'
    )
    sort_order = models.PositiveIntegerField(
        default=0,
        verbose_name='Sort order'
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name='Active'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['sort_order', 'id']
        verbose_name = 'Category'
        verbose_name_plural = 'Categories'

    def __str__(self):
        return self.full_path

    @property
    def name(self):
        """Name from the first translation, used where no store view is given."""
        translations = list(self.translations.all())
        if translations:
            return translations[0].name
        return f"Category {self.pk}"

    @property
    def full_path(self):
        """Returns the full category path: Parent > Child > Grandchild"""
        ancestors = self.get_ancestors()
        path = [a.name for a in ancestors] + [self.name]
        return ' > '.join(path)

    def get_ancestors(self):
        """Returns list of all ancestor categories, from root to immediate parent."""
        ancestors = []
        current = self.parent
        while current:
            ancestors.insert(0, current)
            current = current.parent
        return ancestors

    def get_descendants(self):
        """Returns all descendant categories (children, grandchildren, etc.)"""
        descendants = []
        for child in self.children.all():
            descendants.append(child)
            descendants.extend(child.get_descendants())
        return descendants

    @property
    def level(self):
        """Returns the depth level (0 for root categories)."""
        return len(self.get_ancestors())


class CategoryTranslation(models.Model):
    category = models.ForeignKey(
        Category,
        on_delete=models.CASCADE,
        related_name='translations',
        verbose_name='Category'
    )
    store_view = models.ForeignKey(
        'catalog.StoreView',
        on_delete=models.CASCADE,
        related_name='category_translations',
        verbose_name='Store view'
    )
    name = models.CharField(
        max_length=200,
        verbose_name='Name'
    )
    slug = models.SlugField(
        max_length=200,
        blank=True,
        verbose_name='Slug'
    )
    description = models.TextField(
        blank=True,
        verbose_name='Description'
    )

    class Meta:
        ordering = ['category', 'store_view', 'id']
        unique_together = ['category', 'store_view']
        verbose_name = 'Category translation'
        verbose_name_plural = 'Category translations'

    def __str__(self):
        return f"{self.name} ({self.store_view.code})"

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)
