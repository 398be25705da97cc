"""
Dashboard analytics for the catalog.
"""
import datetime

from django.db.models import Count
from django.db.models.functions import TruncDate
from django.utils import timezone

from apps.catalog.models import (
    Attribute,
    Category,
    Product,
    ProductAsset,
    StoreView,
)

# Products with at least this many attribute values count as complete
COMPLETE_ATTRIBUTE_COUNT = 5
TOP_LIMIT = 10
TIMELINE_DAYS = 30


class AnalyticsService:
    """
    Service computing the dashboard figures: product mix, growth,
    completeness and coverage of categories, attributes, assets and store views.
    """

    @staticmethod
    def products_by_type():
        rows = Product.objects.values('product_type').annotate(count=Count('id')).order_by('product_type')
        return [{'type': row['product_type'], 'count': row['count']} for row in rows]

    @staticmethod
    def product_growth(since):
        rows = (
            Product.objects.filter(created_at__gte=since)
            .annotate(date=TruncDate('created_at'))
            .values('date')
            .annotate(count=Count('id'))
            .order_by('date')
        )
        return [{'date': row['date'].isoformat(), 'count': row['count']} for row in rows]

    @staticmethod
    def product_completeness(total_products):
        counts = Product.objects.annotate(value_count=Count('attribute_values'))
        complete = counts.filter(value_count__gte=COMPLETE_ATTRIBUTE_COUNT).count()
        incomplete = counts.filter(value_count__gt=0, value_count__lt=COMPLETE_ATTRIBUTE_COUNT).count()
        return {
            'complete': complete,
            'incomplete': incomplete,
            'draft': total_products - complete - incomplete,
        }

    @staticmethod
    def top_categories(total_products):
        categories = (
            Category.objects.annotate(product_count=Count('product_categories'))
            .filter(product_count__gt=0)
            .prefetch_related('translations')
            .order_by('-product_count', 'id')[:TOP_LIMIT]
        )
        return [
            {
                'id': category.id,
                'name': category.name,
                'productCount': category.product_count,
                'percentage': round(category.product_count / total_products * 100) if total_products else 0,
            }
            for category in categories
        ]

    @staticmethod
    def attribute_usage():
        attributes = (
            Attribute.objects.annotate(usage_count=Count('product_values'))
            .filter(usage_count__gt=0)
            .order_by('-usage_count', 'id')[:TOP_LIMIT]
        )
        return [
            {
                'id': attribute.id,
                'name': attribute.label or attribute.code,
                'usageCount': attribute.usage_count,
                'dataType': attribute.data_type,
            }
            for attribute in attributes
        ]

    @staticmethod
    def asset_coverage(total_products):
        with_assets = ProductAsset.objects.values('product_id').distinct().count()
        by_type = ProductAsset.objects.values('type').annotate(count=Count('id')).order_by('type')
        return {
            'withAssets': with_assets,
            'withoutAssets': total_products - with_assets,
            'byType': [{'type': row['type'], 'count': row['count']} for row in by_type],
        }

    @staticmethod
    def store_view_coverage():
        store_views = StoreView.objects.annotate(
            products_with_values=Count('attribute_values__product', distinct=True)
        ).order_by('id')
        return [
            {
                'id': sv.id,
                'name': sv.name,
                'code': sv.code,
                'productsWithValues': sv.products_with_values,
            }
            for sv in store_views
        ]

    @staticmethod
    def timeline(now, days=TIMELINE_DAYS):
        """Running totals of products, categories and attributes per day."""
        timeline = []
        for offset in range(days - 1, -1, -1):
            day_end = now - datetime.timedelta(days=offset)
            timeline.append({
                'date': day_end.date().isoformat(),
                'products': Product.objects.filter(created_at__lte=day_end).count(),
                'categories': Category.objects.filter(created_at__lte=day_end).count(),
                'attributes': Attribute.objects.filter(created_at__lte=day_end).count(),
            })
        return timeline

    @staticmethod
    def attribute_type_distribution():
        rows = Attribute.objects.values('data_type').annotate(count=Count('id')).order_by('data_type')
        return [{'type': row['data_type'], 'count': row['count']} for row in rows]

    @staticmethod
    def get_dashboard():
        now = timezone.now()
        thirty_days_ago = now - datetime.timedelta(days=30)
        seven_days_ago = now - datetime.timedelta(days=7)

        total_products = Product.objects.count()

        return {
            'productsByType': AnalyticsService.products_by_type(),
            'productGrowth': AnalyticsService.product_growth(thirty_days_ago),
            'productCompleteness': AnalyticsService.product_completeness(total_products),
            'topCategories': AnalyticsService.top_categories(total_products),
            'attributeUsage': AnalyticsService.attribute_usage(),
            'assetCoverage': AnalyticsService.asset_coverage(total_products),
            'storeViewCoverage': AnalyticsService.store_view_coverage(),
            'timeline': AnalyticsService.timeline(now),
            'attributeTypeDistribution': AnalyticsService.attribute_type_distribution(),
            'summary': {
                'totalProducts': total_products,
                'totalCategories': Category.objects.count(),
                'totalAttributes': Attribute.objects.count(),
                'totalStoreViews': StoreView.objects.count(),
                'productsLast7Days': Product.objects.filter(created_at__gte=seven_days_ago).count(),
            },
        }
