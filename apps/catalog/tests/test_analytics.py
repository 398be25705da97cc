from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Asset, Attribute, ProductAsset, ProductAttributeValue
from apps.catalog.services import AnalyticsService
from .utils import make_attribute, make_category, make_product, make_store_view


class AnalyticsTests(APITestCase):

    def setUp(self):
        self.store_view = make_store_view()
        self.shirts = make_category('Shirts', self.store_view)
        self.attributes = [make_attribute(f'attr_{i}') for i in range(5)]
        make_attribute('weight', Attribute.DataType.DECIMAL)

        self.complete = make_product('COMPLETE')
        for attribute in self.attributes:
            ProductAttributeValue(product=self.complete, attribute=attribute, value_string='x').save()
        self.complete.categories.add(self.shirts)

        self.partial = make_product('PARTIAL', product_type='BUNDLE')
        ProductAttributeValue(
            product=self.partial, attribute=self.attributes[0],
            store_view=self.store_view, value_string='y'
        ).save()
        asset = Asset.objects.create(file_path='/media/a.jpg', mime_type='image/jpeg')
        ProductAsset.objects.create(product=self.partial, asset=asset)

        make_product('EMPTY')

    def test_dashboard_figures(self):
        dashboard = AnalyticsService.get_dashboard()

        self.assertEqual(dashboard['summary'], {
            'totalProducts': 3,
            'totalCategories': 1,
            'totalAttributes': 6,
            'totalStoreViews': 1,
            'productsLast7Days': 3,
        })
        self.assertEqual(dashboard['productCompleteness'], {'complete': 1, 'incomplete': 1, 'draft': 1})
        self.assertEqual(
            dashboard['productsByType'],
            [{'type': 'BUNDLE', 'count': 1}, {'type': 'SIMPLE', 'count': 2}]
        )
        self.assertEqual(dashboard['topCategories'], [
            {'id': self.shirts.pk, 'name': 'Shirts', 'productCount': 1, 'percentage': 33},
        ])
        self.assertEqual(dashboard['attributeUsage'][0]['name'], 'Attr_0')
        self.assertEqual(dashboard['attributeUsage'][0]['usageCount'], 2)
        self.assertEqual(dashboard['assetCoverage']['withAssets'], 1)
        self.assertEqual(dashboard['assetCoverage']['withoutAssets'], 2)
        self.assertEqual(dashboard['storeViewCoverage'][0]['productsWithValues'], 1)
        self.assertEqual(
            dashboard['attributeTypeDistribution'],
            [{'type': 'DECIMAL', 'count': 1}, {'type': 'STRING', 'count': 5}]
        )

    def test_timeline_covers_thirty_days(self):
        timeline = AnalyticsService.get_dashboard()['timeline']
        self.assertEqual(len(timeline), 30)
        self.assertEqual(timeline[-1]['products'], 3)
        self.assertEqual(sum(row['count'] for row in AnalyticsService.get_dashboard()['productGrowth']), 3)

    def test_endpoint(self):
        response = self.client.get('/api/v1/analytics/dashboard')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Dashboard analytics retrieved successfully')
        self.assertEqual(response.data['data']['summary']['totalProducts'], 3)
