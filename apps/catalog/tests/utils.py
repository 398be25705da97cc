from apps.catalog.models import (
    Attribute,
    Category,
    CategoryTranslation,
    Locale,
    Product,
    Store,
    StoreView,
)


def make_store_view(code='default_en'):
    store, _ = Store.objects.get_or_create(code='main', defaults={'name': 'Main store'})
    locale = Locale.objects.create(value=f'{code}_locale', label=code)
    return StoreView.objects.create(store=store, locale=locale, code=code, name=code)


def make_category(name, store_view, parent=None, **kwargs):
    category = Category.objects.create(parent=parent, **kwargs)
    CategoryTranslation.objects.create(category=category, store_view=store_view, name=name)
    return category


def make_attribute(code, data_type=Attribute.DataType.STRING, **kwargs):
    kwargs.setdefault('label', code.title())
    return Attribute.objects.create(code=code, data_type=data_type, **kwargs)


def make_product(sku='SKU-1', **kwargs):
    kwargs.setdefault('name', f'Product {sku}')
    return Product.objects.create(sku=sku, **kwargs)
