"""Suppliers blueprint - supplier directory and purchase prices."""
from flask import Blueprint, jsonify

from minimart import get_register
from minimart.exceptions import BusinessLogicError, NotFoundError
from minimart.models import BuyUnit, Supplier, SupplierPrice
from minimart.utils.number_format import parse_decimal, parse_int
from minimart.utils.request_utils import get_payload

suppliers_bp = Blueprint('suppliers', __name__, url_prefix='/suppliers')


def _price_json(price: SupplierPrice) -> dict:
    data = price.to_dict()
    data['unitCost'] = price.unit_cost
    return data


def _supplier_from_payload(payload: dict, supplier_id: str = '') -> Supplier:
    return Supplier(
        id=supplier_id,
        name=(payload.get('name') or '').strip(),
        contact=(payload.get('contact') or '').strip(),
        phone=(payload.get('phone') or '').strip(),
    )


@suppliers_bp.route('/', methods=['GET'])
def list_suppliers():
    suppliers = get_register().suppliers.list_suppliers()
    return jsonify({'suppliers': [s.to_dict() for s in suppliers]})


@suppliers_bp.route('/', methods=['POST'])
def create_supplier():
    supplier = get_register().suppliers.save(_supplier_from_payload(get_payload()))
    return jsonify(supplier.to_dict()), 201


@suppliers_bp.route('/<supplier_id>', methods=['GET'])
def get_supplier(supplier_id):
    directory = get_register().suppliers
    supplier = directory.get(supplier_id)
    if supplier is None:
        raise NotFoundError('Supplier not found')
    data = supplier.to_dict()
    data['prices'] = [_price_json(p) for p in directory.prices_by_supplier(supplier_id)]
    return jsonify(data)


@suppliers_bp.route('/<supplier_id>', methods=['PUT'])
def update_supplier(supplier_id):
    directory = get_register().suppliers
    if directory.get(supplier_id) is None:
        raise NotFoundError('Supplier not found')
    supplier = directory.save(_supplier_from_payload(get_payload(), supplier_id))
    return jsonify(supplier.to_dict())


@suppliers_bp.route('/<supplier_id>', methods=['DELETE'])
def delete_supplier(supplier_id):
    get_register().suppliers.delete(supplier_id)
    return jsonify({'status': 'ok'})


# ============================================================================
# PRICES
# ============================================================================

@suppliers_bp.route('/<supplier_id>/prices/<product_id>', methods=['PUT'])
def save_price(supplier_id, product_id):
    """Set what a supplier charges for a product (one price per pair)."""
    payload = get_payload()
    register = get_register()
    register.catalog.require(product_id)

    try:
        buy_unit = BuyUnit(payload.get('buyUnit') or BuyUnit.PIECE.value)
    except ValueError:
        raise BusinessLogicError(f"Unknown buy unit: {payload.get('buyUnit')}")
    try:
        buy_price = parse_decimal(payload.get('buyPrice'))
    except ValueError:
        raise BusinessLogicError('Buy price must be a number')

    price = register.suppliers.save_price(SupplierPrice(
        supplier_id=supplier_id,
        product_id=product_id,
        buy_price=buy_price,
        buy_unit=buy_unit,
        pack_size=parse_int(payload.get('packSize'), 1),
    ))
    return jsonify(_price_json(price))


@suppliers_bp.route('/<supplier_id>/prices/<product_id>', methods=['DELETE'])
def delete_price(supplier_id, product_id):
    get_register().suppliers.delete_price(supplier_id, product_id)
    return jsonify({'status': 'ok'})


@suppliers_bp.route('/products/<product_id>/prices', methods=['GET'])
def product_prices(product_id):
    """Every supplier's price for a product, cheapest per unit first."""
    directory = get_register().suppliers
    prices = directory.prices_by_product(product_id)
    return jsonify({
        'prices': [_price_json(p) for p in prices],
        'cheapestUnitCost': directory.cheapest_unit_cost(product_id),
    })
