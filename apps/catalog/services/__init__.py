from .analytics import AnalyticsService
from .product_import import ProductImportService

__all__ = [
    'AnalyticsService',
    'ProductImportService',
]
