"""
Persist validated import records.
Each product is written in its own transaction so one bad row does not
abort the rest of the file.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from apps.catalog.models import (
    Asset,
    AttributeSet,
    Attribute,
    Category,
    Product,
    ProductAsset,
    ProductAttributeValue,
    ProductCategory,
    StoreView,
    VALUE_FIELDS,
)

logger = logging.getLogger(__name__)


class ProductImportService:
    """
    Service to write imported products, replacing their assets, categories
    and attribute values with the ones in the file.
    """

    @staticmethod
    def import_products(valid_entries, total, skipped=0, user=None):
        """
        Import ``valid_entries`` (``[{index, data}]`` from ``validate_products``).

        Returns the summary dict:
        ``{total, successful, failed, created, updated, skipped, errors}``.
        """
        summary = {
            'total': total,
            'successful': 0,
            'failed': 0,
            'created': 0,
            'updated': 0,
            'skipped': skipped,
            'errors': [],
        }

        for entry in valid_entries:
            data = entry['data']
            try:
                with transaction.atomic():
                    _, created = ProductImportService.import_product(data, user=user)
            except (DatabaseError, ValidationError, ValueError, TypeError) as exc:
                logger.exception('Error importing product %s', data.get('sku'))
                summary['failed'] += 1
                summary['errors'].append({
                    'sku': data.get('sku'),
                    'index': entry['index'],
                    'error': str(exc),
                })
                continue

            summary['successful'] += 1
            summary['created' if created else 'updated'] += 1

        logger.info(
            'Import finished: %(successful)d successful, %(failed)d failed, '
            '%(created)d created, %(updated)d updated, %(skipped)d skipped',
            summary,
        )
        return summary

    @staticmethod
    def import_product(data, user=None):
        """Create or update one product by SKU. Returns ``(product, created)``."""
        attribute_set_id = data.get('attribute_set_id')
        if attribute_set_id and not AttributeSet.objects.filter(pk=attribute_set_id).exists():
            logger.warning('Attribute set %s not found for %s', attribute_set_id, data['sku'])
            attribute_set_id = None

        product = Product.objects.filter(sku=data['sku']).first()
        created = product is None
        if created:
            product = Product(sku=data['sku'])

        product.name = data['name']
        product.description = data.get('description') or None
        product.product_type = data['product_type']
        product.attribute_set_id = attribute_set_id or None
        if data.get('status'):
            product.status = data['status']
            product._changed_by = user
            product._workflow_notes = 'Imported'
        product.save()

        assets = data.get('assets') or []
        if assets:
            ProductImportService.replace_assets(product, assets)

        categories = data.get('categories') or []
        if categories:
            ProductImportService.replace_categories(product, categories)

        attributes = data.get('attributes') or []
        if attributes:
            ProductImportService.replace_attribute_values(product, attributes)

        return product, created

    @staticmethod
    def resolve_asset(asset_data):
        asset_id = asset_data.get('asset_id')
        if asset_id:
            return Asset.objects.filter(pk=asset_id).first()

        url = asset_data.get('url')
        nested = asset_data.get('asset') or {}
        if url:
            asset = Asset.objects.filter(file_path=url).first()
            if asset:
                return asset

        file_path = nested.get('filePath') or nested.get('url') or url
        if not file_path:
            return None
        mime_type = nested.get('mimeType') or asset_data.get('mime_type') or 'application/octet-stream'
        return Asset.objects.create(file_path=file_path, mime_type=mime_type)

    @staticmethod
    def replace_assets(product, assets):
        product.product_assets.all().delete()
        for asset_data in assets:
            asset = ProductImportService.resolve_asset(asset_data)
            if asset is None:
                continue
            ProductAsset.objects.update_or_create(
                product=product,
                asset=asset,
                defaults={
                    'type': asset_data.get('type') or 'image',
                    'position': asset_data.get('position') or 0,
                },
            )

    @staticmethod
    def replace_categories(product, categories):
        product.product_categories.all().delete()
        ids = [c.get('category_id') for c in categories if c.get('category_id')]
        for category in Category.objects.filter(pk__in=ids):
            ProductCategory.objects.get_or_create(product=product, category=category)

    @staticmethod
    def replace_attribute_values(product, attributes):
        product.attribute_values.all().delete()

        codes = {a.get('attribute_code') for a in attributes if a.get('attribute_code')}
        attribute_map = {a.code: a for a in Attribute.objects.filter(code__in=codes)}
        store_view_ids = set(StoreView.objects.values_list('id', flat=True))

        # Later rows for the same attribute and scope win
        values = {}
        for attr_data in attributes:
            attribute = attribute_map.get(attr_data.get('attribute_code'))
            if attribute is None:
                continue

            store_view_id = attr_data.get('store_view_id')
            if store_view_id and store_view_id not in store_view_ids:
                logger.warning('Store view %s not found for %s', store_view_id, product.sku)
                continue

            raw = attr_data.get(VALUE_FIELDS[attribute.data_type])
            if raw is None or raw == '':
                continue

            pav = ProductAttributeValue(
                product=product,
                attribute=attribute,
                store_view_id=store_view_id or None,
            )
            try:
                pav.set_value(raw)
            except ValidationError:
                logger.warning('Skipping %s value %r for %s', attribute.code, raw, product.sku)
                continue
            values[(attribute.pk, pav.store_view_id)] = pav

        for pav in values.values():
            pav.save()
