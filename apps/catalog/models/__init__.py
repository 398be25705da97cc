"""
Catalog models for the product information manager.

Model Hierarchy:
- Product: Base record identified by SKU, moved through a workflow status
- Attribute: EAV attribute definitions (code, data type, input type)
- AttributeSet / AttributeGroup: Ordered layout of attributes for products
- ProductAttributeValue: Typed value per product, attribute and store view
- Category / CategoryTranslation: Tree of categories, named per store view
- Asset: Media files linked to products
- Store / StoreView / Locale: Channels that scope translations and values
"""

from .attribute import Attribute
from .attribute_set import AttributeSet, AttributeGroup, AttributeSetAttribute
from .attribute_value import ProductAttributeValue, VALUE_FIELDS
from .asset import Asset
from .category import Category, CategoryTranslation
from .product import Product, ProductCategory, ProductAsset
from .store import Store, Locale, StoreView
from .workflow_history import ProductWorkflowHistory

__all__ = [
    'Attribute',
    'AttributeSet',
    'AttributeGroup',
    'AttributeSetAttribute',
    'ProductAttributeValue',
    'VALUE_FIELDS',
    'Asset',
    'Category',
    'CategoryTranslation',
    'Product',
    'ProductCategory',
    'ProductAsset',
    'Store',
    'Locale',
    'StoreView',
    'ProductWorkflowHistory',
]
