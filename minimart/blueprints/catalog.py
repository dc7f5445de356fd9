"""Catalog blueprint - products, stock and barcode lookup."""
import uuid
from typing import Dict

from flask import Blueprint, current_app, jsonify, request

from minimart import get_register
from minimart.exceptions import BusinessLogicError, DuplicateBarcodeError
from minimart.models import PackMatch, Product
from minimart.services.catalog_service import DuplicateResolution, validate_product
from minimart.utils.request_utils import get_payload, require_int

catalog_bp = Blueprint('catalog', __name__, url_prefix='/catalog')


def _product_json(product: Product, products_by_id: Dict[str, Product]) -> dict:
    data = product.to_dict()
    data['displayedStock'] = get_register().catalog.displayed_stock(product, products_by_id)
    return data


def _product_from_payload(payload: dict, product_id: str = None) -> Product:
    data = dict(payload)
    data['id'] = product_id or data.get('id') or (data.get('barcode') or '').strip() or uuid.uuid4().hex[:16]
    try:
        return Product.from_dict(data)
    except (TypeError, ValueError) as e:
        raise BusinessLogicError(f'Invalid product data: {e}')


@catalog_bp.route('/products', methods=['GET'])
def list_products():
    """List products; ``q`` searches name and barcode, ``group`` filters by group."""
    catalog = get_register().catalog
    query = request.args.get('q', '').strip()
    group = request.args.get('group', '').strip()

    if group:
        products = catalog.list_group(group)
    elif query:
        products = catalog.search(query, limit=request.args.get('limit', 50, type=int))
    else:
        products = sorted(catalog.get_all(), key=lambda p: p.name.lower())

    by_id = catalog.products_by_id()
    return jsonify({'products': [_product_json(p, by_id) for p in products]})


@catalog_bp.route('/products/<product_id>', methods=['GET'])
def get_product(product_id):
    catalog = get_register().catalog
    product = catalog.require(product_id)
    return jsonify(_product_json(product, catalog.products_by_id()))


@catalog_bp.route('/barcode/<code>', methods=['GET'])
def lookup_barcode(code):
    """Resolve a scanned code; carton codes report the pack quantity."""
    catalog = get_register().catalog
    match = catalog.get_by_barcode(code)
    if match is None:
        return jsonify({'status': 'error', 'message': f'No product with barcode {code}', 'barcode': code}), 404

    by_id = catalog.products_by_id()
    if isinstance(match, PackMatch):
        return jsonify({'product': _product_json(match.product, by_id), 'isPack': True, 'qty': match.qty})
    return jsonify({'product': _product_json(match, by_id), 'isPack': False, 'qty': 1})


@catalog_bp.route('/products', methods=['POST'])
def create_product():
    """
    Create a product.

    A barcode that already belongs to another product answers 409 with the
    existing product unless ``onDuplicate`` is combine, edit or cancel.
    """
    payload = get_payload()
    resolution = payload.get('onDuplicate')
    try:
        resolution = DuplicateResolution(resolution) if resolution else None
    except ValueError:
        raise BusinessLogicError(f'Unknown duplicate resolution: {resolution}')

    product = _product_from_payload(payload)
    catalog = get_register().catalog
    result = catalog.create(product, on_duplicate=resolution)

    if result is None:
        return jsonify({'status': 'cancelled'}), 200

    current_app.logger.info(f"[CATALOG] Saved product {result.id} ({result.name})")
    status = 201 if resolution is None else 200
    return jsonify(_product_json(result, catalog.products_by_id())), status


@catalog_bp.route('/products/<product_id>', methods=['PUT'])
def update_product(product_id):
    catalog = get_register().catalog
    catalog.require(product_id)

    product = _product_from_payload(get_payload(), product_id)
    validate_product(product)
    existing = catalog.find_duplicate_barcode(product.barcode, exclude_id=product_id)
    if existing:
        raise DuplicateBarcodeError(existing)

    catalog.upsert(product)
    return jsonify(_product_json(product, catalog.products_by_id()))


@catalog_bp.route('/products/<product_id>', methods=['DELETE'])
def delete_product(product_id):
    get_register().catalog.delete(product_id)
    return jsonify({'status': 'ok'})


@catalog_bp.route('/products/<product_id>/stock', methods=['POST'])
def add_stock(product_id):
    """Receive goods: add ``qty`` units to a product's stock."""
    qty = require_int(get_payload(), 'qty')
    catalog = get_register().catalog
    product = catalog.combine_stock(product_id, qty)
    return jsonify(_product_json(product, catalog.products_by_id()))


@catalog_bp.route('/groups', methods=['GET'])
def list_groups():
    return jsonify({'groups': get_register().catalog.groups()})


@catalog_bp.route('/low-stock', methods=['GET'])
def low_stock():
    threshold = request.args.get('threshold', current_app.config.get('LOW_STOCK_THRESHOLD', 5), type=int)
    catalog = get_register().catalog
    by_id = catalog.products_by_id()
    return jsonify({
        'threshold': threshold,
        'products': [_product_json(p, by_id) for p in catalog.low_stock(threshold)],
    })


@catalog_bp.route('/stock-value', methods=['GET'])
def stock_value():
    return jsonify({'stockValue': get_register().catalog.stock_value()})
