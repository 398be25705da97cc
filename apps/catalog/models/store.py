from django.db import models


class Store(models.Model):
    code = models.CharField(
        max_length=100,
        unique=True,
        verbose_name='Code'
    )
    name = models.CharField(
        max_length=255,
        verbose_name='Name'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['code']
        verbose_name = 'Store'
        verbose_name_plural = 'Stores'

    def __str__(self):
        return self.name


class Locale(models.Model):
    """A language/region pair such as ``en_US``."""
    value = models.CharField(
        max_length=20,
        unique=True,
        verbose_name='Value'
    )
    label = models.CharField(
        max_length=100,
        verbose_name='Label'
    )

    class Meta:
        ordering = ['value']
        verbose_name = 'Locale'
        verbose_name_plural = 'Locales'

    def __str__(self):
        return self.label


class StoreView(models.Model):
    """
    Pins a store to one locale.
    Translations and store-scoped attribute values point here.
    """
    store = models.ForeignKey(
        Store,
        on_delete=models.CASCADE,
        related_name='store_views',
        verbose_name='Store'
    )
    locale = models.ForeignKey(
        Locale,
        on_delete=models.PROTECT,
        related_name='store_views',
        verbose_name='Locale'
    )
    code = models.CharField(
        max_length=100,
        unique=True,
        verbose_name='Code'
    )
    name = models.CharField(
        max_length=255,
        verbose_name='Name'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['store', 'code']
        unique_together = ['store', 'locale']
        verbose_name = 'Store view'
        verbose_name_plural = 'Store views'

    def __str__(self):
        return f"{self.store.name} / {self.name}"
