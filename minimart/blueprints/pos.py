"""Point-of-sale blueprint - cart, checkout and sales history."""
from flask import Blueprint, current_app, jsonify, request

from minimart import get_register
from minimart.exceptions import BusinessLogicError, NotFoundError
from minimart.models import Sale
from minimart.services.pricing_service import display_line_total
from minimart.services.sales_service import summarize
from minimart.utils.number_format import parse_int
from minimart.utils.request_utils import get_flag, get_payload, require_int

pos_bp = Blueprint('pos', __name__, url_prefix='/pos')


def _cart_json() -> dict:
    return get_register().cart.to_dict()


def _sale_json(sale: Sale) -> dict:
    data = sale.to_dict()
    for line, item in zip(data['items'], sale.items):
        line['displayLineTotal'] = display_line_total(item)
    return data


# ============================================================================
# CART
# ============================================================================

@pos_bp.route('/cart', methods=['GET'])
def get_cart():
    return jsonify(_cart_json())


@pos_bp.route('/cart/add', methods=['POST'])
def cart_add():
    """Add by ``productId`` or scanned ``barcode``."""
    payload = get_payload()
    qty = parse_int(payload.get('qty'), default=1)
    result = get_register().add_to_cart(
        product_id=payload.get('productId'),
        barcode=(payload.get('barcode') or '').strip() or None,
        qty=qty,
    )
    if result.stock_warning:
        current_app.logger.info(f"[cart_add] {result.stock_warning}")
    return jsonify({**result.to_dict(), 'cart': _cart_json()})


@pos_bp.route('/cart/quick-sale', methods=['POST'])
def cart_quick_sale():
    """Sell an unknown barcode at a price typed by the clerk."""
    payload = get_payload()
    result = get_register().quick_sale(
        barcode=payload.get('barcode'),
        price=payload.get('price'),
        name=payload.get('name'),
        qty=parse_int(payload.get('qty'), default=1),
    )
    return jsonify({**result.to_dict(), 'cart': _cart_json()})


@pos_bp.route('/cart/qty', methods=['POST'])
def cart_set_qty():
    """Set a line's quantity; zero removes the line."""
    payload = get_payload()
    register = get_register()
    index = require_int(payload, 'index')
    if 'delta' in payload:
        qty = register.cart.line(index).qty + require_int(payload, 'delta')
    else:
        qty = require_int(payload, 'qty')
    result = register.set_qty(index, qty)
    return jsonify({**(result.to_dict() if result else {'item': None}), 'cart': _cart_json()})


@pos_bp.route('/cart/remove', methods=['POST'])
def cart_remove():
    index = require_int(get_payload(), 'index')
    get_register().remove_line(index)
    return jsonify({'cart': _cart_json()})


@pos_bp.route('/cart/clear', methods=['POST'])
def cart_clear():
    get_register().clear_cart()
    return jsonify({'cart': _cart_json()})


@pos_bp.route('/cart/wholesale-price', methods=['POST'])
def cart_wholesale_price():
    """Answer the wholesale prompt with the pack price."""
    payload = get_payload()
    product_id = payload.get('productId')
    if not product_id:
        raise BusinessLogicError("'productId' is required")
    product = get_register().supply_wholesale_price(product_id, payload.get('price'))
    return jsonify({'product': product.to_dict(), 'cart': _cart_json()})


# ============================================================================
# CHECKOUT
# ============================================================================

@pos_bp.route('/checkout', methods=['POST'])
def checkout():
    """Settle the cart; ``received`` defaults to the exact total."""
    payload = get_payload()
    sale = get_register().settle(received=payload.get('received'))
    current_app.logger.info(f"[checkout] bill={sale.bill_id} total={sale.total}")
    return jsonify(_sale_json(sale)), 201


# ============================================================================
# SALES HISTORY
# ============================================================================

@pos_bp.route('/sales', methods=['GET'])
def list_sales():
    """Sales newest first; ``order=asc`` for oldest first."""
    descending = request.args.get('order', 'desc') != 'asc'
    sales = get_register().sales.list_sorted(descending=descending)
    return jsonify({'sales': [_sale_json(s) for s in sales]})


@pos_bp.route('/sales/summary', methods=['GET'])
def sales_summary():
    return jsonify(summarize(get_register().sales.list_all()))


@pos_bp.route('/sales/<bill_id>', methods=['GET'])
def get_sale(bill_id):
    sale = get_register().sales.find_by_id(bill_id)
    if sale is None:
        raise NotFoundError(f'Bill {bill_id} not found')
    return jsonify(_sale_json(sale))


@pos_bp.route('/sales/<bill_id>/edit', methods=['POST'])
def edit_sale(bill_id):
    """Re-open a recorded sale in the cart; checkout overwrites the same bill."""
    replace = get_flag(get_payload(), 'replace')
    get_register().begin_edit_sale(bill_id, replace=replace)
    return jsonify({'cart': _cart_json()})


@pos_bp.route('/edit/abandon', methods=['POST'])
def abandon_edit():
    get_register().abandon_edit()
    return jsonify({'cart': _cart_json()})
