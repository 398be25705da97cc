import json
from decimal import Decimal

from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import (
    Asset,
    Attribute,
    AttributeSet,
    Product,
    ProductAsset,
    ProductAttributeValue,
    ProductWorkflowHistory,
)
from apps.catalog.services import ProductImportService, importer
from .utils import make_attribute, make_category, make_product, make_store_view

DataType = Attribute.DataType


class ExportApiTests(APITestCase):

    def setUp(self):
        self.store_view = make_store_view()
        self.attribute_set = AttributeSet.objects.create(code='apparel', label='Apparel')
        self.product = make_product('TSHIRT-001', attribute_set=self.attribute_set)
        self.product.categories.add(make_category('Shirts', self.store_view))
        asset = Asset.objects.create(file_path='/media/shirt.jpg', mime_type='image/jpeg')
        ProductAsset.objects.create(product=self.product, asset=asset, position=1)
        price = make_attribute('price', DataType.DECIMAL)
        ProductAttributeValue(product=self.product, attribute=price, value_decimal=Decimal('19.99')).save()

    def test_json_export(self):
        response = self.client.get('/api/v1/products/export', {'format': 'json'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/json')
        self.assertIn('attachment; filename="products-export-', response['Content-Disposition'])
        self.assertEqual(response['X-Total-Count'], '1')
        self.assertEqual(response['X-Page'], '1')

        product = json.loads(response.content)['products'][0]
        self.assertEqual(product['sku'], 'TSHIRT-001')
        self.assertEqual(product['attributeSet']['code'], 'apparel')
        self.assertEqual(product['assets'][0]['url'], '/media/shirt.jpg')
        self.assertEqual(product['categories'][0]['categoryName'], 'Shirts')
        self.assertEqual(product['attributes'][0]['valueDecimal'], 19.99)

    def test_defaults_to_json(self):
        response = self.client.get('/api/v1/products/export')
        self.assertEqual(response['Content-Type'], 'application/json')

    def test_xml_and_csv_exports(self):
        response = self.client.get('/api/v1/products/export', {'format': 'xml'})
        self.assertEqual(response['Content-Type'], 'application/xml')
        self.assertTrue(response.content.startswith(b'<?xml'))

        response = self.client.get('/api/v1/products/export', {'format': 'csv'})
        self.assertEqual(response['Content-Type'], 'text/csv')
        self.assertTrue(response['Content-Disposition'].endswith('.csv"'))
        self.assertTrue(response.content.decode().startswith('id,sku,name'))

    def test_invalid_format(self):
        response = self.client.get('/api/v1/products/export', {'format': 'pdf'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Invalid format. Must be one of: json, xml, csv')

    def test_filtered_export_with_no_match(self):
        response = self.client.get('/api/v1/products/export', {'status': 'PUBLISHING'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'No products found to export')

    def test_paging(self):
        make_product('TSHIRT-002')
        response = self.client.get('/api/v1/products/export', {'limit': 1, 'page': 2})
        self.assertEqual(response['X-Total-Count'], '2')
        self.assertEqual(response['X-Limit'], '1')
        self.assertEqual(len(json.loads(response.content)['products']), 1)


class ImportApiTests(APITestCase):
    url = '/api/v1/products/import'

    def setUp(self):
        self.color = make_attribute('color')
        self.size = make_attribute('size', DataType.INT)

    def upload(self, name, content):
        if isinstance(content, str):
            content = content.encode()
        return self.client.post(self.url, {'file': SimpleUploadedFile(name, content)}, format='multipart')

    def test_json_import_creates_products(self):
        payload = {'products': [{
            'sku': 'NEW-1',
            'name': 'New shirt',
            'productType': 'SIMPLE',
            'attributes': [
                {'attributeCode': 'color', 'valueString': 'red'},
                {'attributeCode': 'size', 'valueInt': '42'},
                {'attributeCode': 'unknown', 'valueString': 'x'},
            ],
            'assets': [{'url': '/media/new.jpg', 'mimeType': 'image/jpeg'}],
        }]}

        response = self.upload('products.json', json.dumps(payload))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        summary = response.data['data']['summary']
        self.assertEqual(summary['successful'], 1)
        self.assertEqual(summary['created'], 1)
        self.assertEqual(response.data['message'], 'Import completed: 1 successful, 0 failed, 0 skipped')

        product = Product.objects.get(sku='NEW-1')
        self.assertEqual(product.get_attribute_value('color'), 'red')
        self.assertEqual(product.get_attribute_value('size'), 42)
        self.assertEqual(product.assets.get().file_path, '/media/new.jpg')

    def test_partial_validation_failure_skips_rows(self):
        content = (
            'sku,name,productType\n'
            'OK-1,Good,SIMPLE\n'
            'BAD-1,Bad,KIT\n'
        )
        response = self.upload('products.csv', content)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        summary = response.data['data']['summary']
        self.assertEqual(summary['total'], 2)
        self.assertEqual(summary['skipped'], 1)
        self.assertEqual(response.data['data']['validationErrors'][0]['sku'], 'BAD-1')
        self.assertTrue(Product.objects.filter(sku='OK-1').exists())

    def test_all_invalid(self):
        response = self.upload('products.json', json.dumps({'products': [{'sku': 'A'}]}))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'All products have validation errors')
        self.assertEqual(response.data['error']['errors'][0]['sku'], 'A')

    def test_parse_error(self):
        response = self.upload('products.xml', '<products></products>')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Parse error: XML parsing error: No products found in XML')

    def test_missing_file(self):
        response = self.client.post(self.url, {}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'No file uploaded')

    def test_wrong_extension(self):
        response = self.upload('products.txt', '{}')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_utf8(self):
        response = self.upload('products.csv', 'sku,name\nA,Caf\xe9\n'.encode('latin-1'))
        self.assertEqual(response.data['message'], 'Parse error: File must be UTF-8 encoded')

    def test_export_then_import_updates(self):
        product = make_product('ROUND-1', description='Original')
        ProductAttributeValue(product=product, attribute=self.color, value_string='blue').save()
        exported = self.client.get('/api/v1/products/export', {'format': 'xml'}).content

        product.attribute_values.all().delete()
        Product.objects.filter(pk=product.pk).update(name='Changed')

        response = self.upload('products.xml', exported)

        self.assertEqual(response.data['data']['summary']['updated'], 1)
        product.refresh_from_db()
        self.assertEqual(product.name, 'Product ROUND-1')
        self.assertEqual(product.get_attribute_value('color'), 'blue')

    def test_json_export_then_import_keeps_json_strings(self):
        specs = make_attribute('specs', DataType.JSON)
        product = make_product('ROUND-2')
        ProductAttributeValue(product=product, attribute=specs, value_json='true').save()
        exported = self.client.get('/api/v1/products/export', {'format': 'json'}).content

        product.attribute_values.all().delete()
        response = self.upload('products.json', exported)

        self.assertEqual(response.data['data']['summary']['updated'], 1)
        self.assertEqual(product.get_attribute_value('specs'), 'true')


class ProductImportServiceTests(APITestCase):

    def _validated(self, *products):
        return importer.validate_products(list(products))['valid']

    def test_existing_product_is_updated(self):
        make_product('A', name='Old')
        summary = ProductImportService.import_products(
            self._validated({'sku': 'A', 'name': 'New', 'productType': 'BUNDLE'}), total=1
        )
        self.assertEqual(summary['updated'], 1)
        product = Product.objects.get(sku='A')
        self.assertEqual(product.name, 'New')
        self.assertEqual(product.product_type, 'BUNDLE')

    def test_status_change_is_recorded(self):
        make_product('A')
        ProductImportService.import_products(
            self._validated({'sku': 'A', 'name': 'A', 'productType': 'SIMPLE', 'status': 'APPROVAL'}),
            total=1,
        )
        entry = ProductWorkflowHistory.objects.get()
        self.assertEqual(entry.to_status, 'APPROVAL')
        self.assertEqual(entry.notes, 'Imported')

    def test_unknown_attribute_set_is_dropped(self):
        ProductImportService.import_products(
            self._validated({'sku': 'A', 'name': 'A', 'productType': 'SIMPLE', 'attributeSetId': 999}),
            total=1,
        )
        self.assertIsNone(Product.objects.get(sku='A').attribute_set)

    def test_store_view_values_and_bad_values(self):
        store_view = make_store_view()
        color = make_attribute('color')
        size = make_attribute('size', DataType.INT)
        ProductImportService.import_products(self._validated({
            'sku': 'A', 'name': 'A', 'productType': 'SIMPLE',
            'attributes': [
                {'attributeCode': 'color', 'valueString': 'red'},
                {'attributeCode': 'color', 'storeViewId': store_view.pk, 'valueString': 'rouge'},
                {'attributeCode': 'color', 'storeViewId': 999, 'valueString': 'ignored'},
                {'attributeCode': 'size', 'valueInt': 'large'},
            ],
        }), total=1)

        product = Product.objects.get(sku='A')
        self.assertEqual(product.get_attribute_value('color', store_view), 'rouge')
        self.assertEqual(product.attribute_values.filter(attribute=color).count(), 2)
        self.assertFalse(product.attribute_values.filter(attribute=size).exists())

    def test_categories_link_existing_only(self):
        category = make_category('Shirts', make_store_view())
        ProductImportService.import_products(self._validated({
            'sku': 'A', 'name': 'A', 'productType': 'SIMPLE',
            'categories': [{'categoryId': category.pk}, {'categoryId': 999}],
        }), total=1)
        self.assertEqual(list(Product.objects.get(sku='A').categories.all()), [category])

    def test_empty_relations_keep_existing_links(self):
        category = make_category('Shirts', make_store_view())
        product = make_product('A')
        product.categories.add(category)

        ProductImportService.import_products(
            self._validated({'sku': 'A', 'name': 'A', 'productType': 'SIMPLE', 'categories': []}), total=1
        )
        self.assertEqual(product.categories.count(), 1)
