"""
Product import parsing and validation.

Parsers turn uploaded JSON, XML or CSV text into a list of plain product
dicts in the export record shape. Validation never raises; it reports
per-product results.
"""
import csv
import io
import json
import os
import xml.etree.ElementTree as ET

from django.conf import settings

SUPPORTED_FORMATS = ('json', 'xml', 'csv')
ALLOWED_EXTENSIONS = ('.json', '.xml', '.csv')
PRODUCT_TYPES = ('SIMPLE', 'CONFIGURABLE', 'BUNDLE', 'VIRTUAL', 'DOWNLOADABLE')
RELATION_FIELDS = ('assets', 'categories', 'attributes')
INT_FIELDS = ('id', 'attributeSetId')


class ImportParseError(Exception):
    pass


class UploadError(Exception):
    pass


# ==============================================================================
# PARSERS
# ==============================================================================

def parse_json(content):
    try:
        data = json.loads(content)
        if not isinstance(data, dict) or not isinstance(data.get('products'), list):
            raise ValueError('Invalid JSON structure. Expected { products: [...] }')
    except ValueError as exc:
        raise ImportParseError(f'JSON parsing error: {exc}') from exc
    return data['products']


def extract_element_data(element):
    """
    Convert an XML element into plain data.

    Leaves give their text. A container whose first child is ``<item>``,
    or whose two or more children share a tag, gives a list. Anything else
    gives a dict keyed by child tag. Elements marked ``type="json"`` hold
    JSON text.
    """
    if element.get('type') == 'json':
        return json.loads(element.text or 'null')

    children = list(element)
    if not children:
        return (element.text or '').strip()

    tags = {child.tag for child in children}
    if children[0].tag == 'item' or (len(children) > 1 and len(tags) == 1):
        return [extract_element_data(child) for child in children]

    return {child.tag: extract_element_data(child) for child in children}


def parse_xml(content):
    try:
        # Relies on expat's entity expansion limits; upload size is capped in validate_upload
        root = ET.fromstring(content)
        if root.tag != 'products':
            raise ValueError('Root element must be <products>')

        products = []
        for element in root.findall('product'):
            product = extract_element_data(element)
            if not isinstance(product, dict):
                product = {}
            for field in RELATION_FIELDS:
                # Empty containers read back as ''
                if product.get(field) == '':
                    product[field] = []
            products.append(product)

        if not products:
            raise ValueError('No products found in XML')
    except (ET.ParseError, ValueError) as exc:
        raise ImportParseError(f'XML parsing error: {exc}') from exc
    return products


def _parse_csv_row(row):
    product = {
        key.strip(): value.strip() if isinstance(value, str) else value
        for key, value in row.items()
        if key is not None
    }
    for field in RELATION_FIELDS:
        value = product.get(field)
        product[field] = json.loads(value) if value else []
    for field in INT_FIELDS:
        if field in product:
            product[field] = int(product[field]) if product[field] else None
    return product


def parse_csv(content):
    products = []
    try:
        for row in csv.DictReader(io.StringIO(content)):
            try:
                products.append(_parse_csv_row(row))
            except ValueError as exc:
                raise ImportParseError(f'CSV row parsing error: {exc}') from exc
    except csv.Error as exc:
        raise ImportParseError(f'CSV parsing error: {exc}') from exc

    if not products:
        raise ImportParseError('No products found in CSV')
    return products


PARSERS = {
    'json': parse_json,
    'xml': parse_xml,
    'csv': parse_csv,
}


def parse_content(fmt, content):
    try:
        parser = PARSERS[fmt]
    except KeyError:
        raise ImportParseError(f'Unsupported format: {fmt}') from None
    return parser(content)


def detect_format(filename, content=''):
    """Detect the format from the extension, falling back to sniffing ``content``."""
    ext = (filename or '').rsplit('.', 1)[-1].lower()
    if ext in SUPPORTED_FORMATS:
        return ext

    trimmed = (content or '').strip()
    if trimmed.startswith(('{', '[')):
        return 'json'
    if trimmed.startswith(('<?xml', '<products')):
        return 'xml'
    if ',' in trimmed:
        return 'csv'
    return 'json'


# ==============================================================================
# VALIDATION
# ==============================================================================

def validate_product_data(product):
    """
    Check the required product fields, collecting every failure.

    This is the lightweight public check for a single record. Uploads go
    through ``validate_products``, which applies the full
    ``ProductImportSerializer`` rules.
    """
    errors = []

    sku = product.get('sku')
    if not sku or not isinstance(sku, str):
        errors.append('SKU is required and must be a string')

    name = product.get('name')
    if not name or not isinstance(name, str):
        errors.append('Name is required and must be a string')

    product_type = product.get('productType')
    if not product_type:
        errors.append('Product type is required')
    elif product_type not in PRODUCT_TYPES:
        errors.append('Invalid product type. Must be SIMPLE, CONFIGURABLE, BUNDLE, VIRTUAL, or DOWNLOADABLE')

    return {'valid': not errors, 'errors': errors}


def _flatten_errors(errors, prefix=''):
    flat = []
    if isinstance(errors, dict):
        for field, detail in errors.items():
            path = f'{prefix}.{field}' if prefix else str(field)
            flat.extend(_flatten_errors(detail, path))
    elif isinstance(errors, list):
        for index, detail in enumerate(errors):
            if isinstance(detail, (dict, list)):
                if detail:
                    flat.extend(_flatten_errors(detail, f'{prefix}.{index}'))
            else:
                flat.append({'field': prefix or 'unknown', 'message': str(detail)})
    else:
        flat.append({'field': prefix or 'unknown', 'message': str(errors)})
    return flat


def validate_products(products):
    """
    Validate parsed products with ``ProductImportSerializer``.

    Returns ``{'valid': [{index, data}], 'invalid': [{index, sku, errors}]}``
    where ``data`` is the serializer's validated data.
    """
    from apps.catalog.api.serializers import ProductImportSerializer

    if not isinstance(products, list):
        return {
            'valid': [],
            'invalid': [{
                'index': 0,
                'sku': 'N/A',
                'errors': [{'field': 'products', 'message': 'Products must be an array'}],
            }],
        }

    results = {'valid': [], 'invalid': []}
    for index, product in enumerate(products):
        if not isinstance(product, dict):
            results['invalid'].append({
                'index': index,
                'sku': f'Unknown (row {index + 1})',
                'errors': [{'field': 'product', 'message': 'Product must be an object'}],
            })
            continue

        serializer = ProductImportSerializer(data=product)
        if serializer.is_valid():
            results['valid'].append({'index': index, 'data': serializer.validated_data})
        else:
            results['invalid'].append({
                'index': index,
                'sku': product.get('sku') or f'Unknown (row {index + 1})',
                'errors': _flatten_errors(serializer.errors) or [
                    {'field': 'unknown', 'message': 'Validation error'}
                ],
            })
    return results


def validate_upload(uploaded_file):
    """Reject missing, oversized or wrongly typed uploads."""
    if uploaded_file is None:
        raise UploadError('No file uploaded')

    max_size = settings.IMPORT_MAX_UPLOAD_BYTES
    if uploaded_file.size > max_size:
        raise UploadError(f'File too large. Maximum size is {max_size // (1024 * 1024)}MB')

    _, ext = os.path.splitext(uploaded_file.name.lower())
    if ext not in ALLOWED_EXTENSIONS:
        raise UploadError(f"Invalid file type. Allowed types: {', '.join(ALLOWED_EXTENSIONS)}")
