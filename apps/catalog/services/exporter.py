"""
Product export formatting.

Products are first turned into plain nested records (``build_product_record``)
and then rendered as JSON, XML or CSV text.
"""
import csv
import datetime
import io
import json
import re
import xml.etree.ElementTree as ET
from decimal import Decimal

CONTENT_TYPES = {
    'json': 'application/json',
    'xml': 'application/xml',
    'csv': 'text/csv',
}

FILE_EXTENSIONS = {
    'json': 'json',
    'xml': 'xml',
    'csv': 'csv',
}

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>'

# Keys usable as element names; other mappings are written as JSON text
XML_NAME = re.compile(r'(?![Xx][Mm][Ll])[A-Za-z_][\w.-]*', re.ASCII)

CSV_FIELDS = [
    'id', 'sku', 'name', 'description', 'productType', 'status',
    'attributeSetId', 'attributeSetName', 'createdAt', 'updatedAt',
    'assets', 'categories', 'attributes',
]

RELATION_FIELDS = ('assets', 'categories', 'attributes')


class ExportFormatError(Exception):
    pass


def build_product_record(product):
    """
    Convert a product into its export record.

    Expects ``attribute_set``, ``product_assets__asset``,
    ``product_categories__category__translations`` and
    ``attribute_values__attribute`` to be prefetched.
    """
    attribute_set = product.attribute_set
    return {
        'id': product.id,
        'sku': product.sku,
        'name': product.name,
        'description': product.description,
        'productType': product.product_type,
        'status': product.status,
        'attributeSetId': product.attribute_set_id,
        'attributeSet': {
            'id': attribute_set.id,
            'code': attribute_set.code,
            'label': attribute_set.label,
        } if attribute_set else None,
        'createdAt': product.created_at,
        'updatedAt': product.updated_at,
        'assets': [
            {
                'assetId': pa.asset_id,
                'url': pa.asset.file_path,
                'mimeType': pa.asset.mime_type,
                'type': pa.type,
                'position': pa.position,
            }
            for pa in product.product_assets.all()
        ],
        'categories': [
            {
                'categoryId': pc.category_id,
                'categoryName': pc.category.name,
                'parentId': pc.category.parent_id,
            }
            for pc in product.product_categories.all()
        ],
        'attributes': [
            {
                'attributeCode': pav.attribute.code,
                'attributeLabel': pav.attribute.label,
                'dataType': pav.data_type,
                'storeViewId': pav.store_view_id,
                'valueString': pav.value_string,
                'valueText': pav.value_text,
                'valueInt': pav.value_int,
                'valueDecimal': pav.value_decimal,
                'valueBoolean': pav.value_boolean,
                'valueJson': pav.value_json,
            }
            for pav in product.attribute_values.all()
        ],
    }


def _format_datetime(value):
    text = value.isoformat()
    if text.endswith('+00:00'):
        text = text[:-6] + 'Z'
    return text


def serialize_value(value):
    """Recursively make ``value`` JSON friendly: decimals become floats, dates ISO strings."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return float(str(value))
    if isinstance(value, (datetime.datetime, datetime.date)):
        return _format_datetime(value)
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    if isinstance(value, dict):
        return {key: serialize_value(val) for key, val in value.items()}
    return value


def flatten_for_csv(product):
    """Flatten one record into a CSV row; relations are stored as JSON strings."""
    product = serialize_value(product)
    attribute_set = product.get('attributeSet') or {}
    row = {
        'id': product.get('id'),
        'sku': product.get('sku'),
        'name': product.get('name'),
        'description': product.get('description') or '',
        'productType': product.get('productType'),
        'status': product.get('status'),
        'attributeSetId': product.get('attributeSetId'),
        'attributeSetName': attribute_set.get('label') or '',
        'createdAt': product.get('createdAt'),
        'updatedAt': product.get('updatedAt'),
    }
    for field in RELATION_FIELDS:
        row[field] = json.dumps(product.get(field) or [])
    return row


def format_to_json(products):
    serialized = [serialize_value(product) for product in products]
    return json.dumps({'products': serialized}, indent=2, ensure_ascii=False)


def _text(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def _has_element_keys(mapping):
    return all(
        isinstance(key, str) and key != 'item' and XML_NAME.fullmatch(key)
        for key in mapping
    )


def _is_xml_safe(value):
    """True when one level of ``value`` can be written as child elements."""
    if isinstance(value, dict):
        return _has_element_keys(value)
    return all(
        not isinstance(item, (list, tuple)) and (not isinstance(item, dict) or _has_element_keys(item))
        for item in value
    )


def convert_object_to_xml_elements(obj, parent):
    """
    Append one child of ``parent`` per non-null key of ``obj``.

    Lists become ``<item>`` children, dicts nest, scalars become text.
    A list or dict that cannot be expressed as elements, such as one keyed
    by ``'Weight (kg)'``, is written as JSON text with ``type="json"``.
    """
    for key, value in obj.items():
        if value is None:
            continue

        element = ET.SubElement(parent, key)
        if isinstance(value, (list, tuple, dict)) and not _is_xml_safe(value):
            element.set('type', 'json')
            element.text = json.dumps(value, ensure_ascii=False)
        elif isinstance(value, (list, tuple)):
            for item in value:
                item_element = ET.SubElement(element, 'item')
                if isinstance(item, dict):
                    convert_object_to_xml_elements(item, item_element)
                elif item is not None:
                    item_element.text = _text(item)
        elif isinstance(value, dict):
            convert_object_to_xml_elements(value, element)
        else:
            element.text = _text(value)
    return parent


def format_to_xml(products):
    root = ET.Element('products')
    for product in products:
        product_element = ET.SubElement(root, 'product')
        convert_object_to_xml_elements(serialize_value(product), product_element)

    ET.indent(root, space='  ')
    return XML_DECLARATION + '\n' + ET.tostring(root, encoding='unicode')


def format_to_csv(products):
    buffer = io.StringIO()
    try:
        writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS, lineterminator='\n')
        writer.writeheader()
        for product in products:
            writer.writerow(flatten_for_csv(product))
    except (csv.Error, ValueError, TypeError) as exc:
        raise ExportFormatError(str(exc)) from exc
    return buffer.getvalue()


def get_content_type(fmt):
    return CONTENT_TYPES.get(fmt, 'application/octet-stream')


def get_file_extension(fmt):
    return FILE_EXTENSIONS.get(fmt, 'txt')
