"""Parking blueprint - parked bills and the parking trash."""
from flask import Blueprint, jsonify

from minimart import get_register
from minimart.services.parking_service import MAX_ACTIVE, MAX_TRASH
from minimart.utils.request_utils import get_flag, get_payload

parking_bp = Blueprint('parking', __name__, url_prefix='/parking')


@parking_bp.route('/', methods=['GET'])
def list_parked():
    """Parked bills, oldest first."""
    parked = get_register().parking.list_active()
    return jsonify({
        'parked': [p.to_dict() for p in parked],
        'count': len(parked),
        'capacity': MAX_ACTIVE,
    })


@parking_bp.route('/', methods=['POST'])
def park():
    """Park the current cart under an optional note."""
    entry = get_register().park_cart(note=get_payload().get('note', ''))
    return jsonify(entry.to_dict()), 201


@parking_bp.route('/<parked_id>/restore', methods=['POST'])
def restore(parked_id):
    """Load a parked bill into the cart; ``replace`` discards a non-empty cart."""
    register = get_register()
    register.restore_parked(parked_id, replace=get_flag(get_payload(), 'replace'))
    return jsonify({'cart': register.cart.to_dict()})


@parking_bp.route('/<parked_id>', methods=['PATCH'])
def rename(parked_id):
    entry = get_register().parking.rename(parked_id, get_payload().get('note', ''))
    return jsonify(entry.to_dict())


@parking_bp.route('/<parked_id>', methods=['DELETE'])
def remove(parked_id):
    """Move a parked bill to the trash."""
    entry = get_register().parking.remove(parked_id)
    return jsonify(entry.to_dict())


# ============================================================================
# TRASH
# ============================================================================

@parking_bp.route('/trash', methods=['GET'])
def list_trash():
    """Trash entries, newest first."""
    trash = get_register().parking.list_trash()
    return jsonify({'trash': [t.to_dict() for t in trash], 'capacity': MAX_TRASH})


@parking_bp.route('/trash/<parked_id>/restore', methods=['POST'])
def restore_from_trash(parked_id):
    entry = get_register().parking.restore_from_trash(parked_id)
    return jsonify(entry.to_dict())


@parking_bp.route('/trash/<parked_id>', methods=['DELETE'])
def delete_permanently(parked_id):
    get_register().parking.delete_permanently(parked_id)
    return jsonify({'status': 'ok'})


@parking_bp.route('/trash', methods=['DELETE'])
def clear_trash():
    count = get_register().parking.clear_trash()
    return jsonify({'status': 'ok', 'deleted': count})
