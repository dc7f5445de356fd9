"""Settings blueprint - store name and PIN."""
from flask import Blueprint, jsonify

from minimart import get_register
from minimart.exceptions import MinimartError
from minimart.models import StoreSettings
from minimart.utils.request_utils import get_payload

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')


@settings_bp.route('', methods=['GET'])
def get_settings():
    settings = get_register().settings.get()
    return jsonify({'storeName': settings.store_name})


@settings_bp.route('', methods=['PUT'])
def update_settings():
    """
    Change the store name and optionally the PIN.

    The current PIN must be sent as ``currentPin``; a missing ``pin`` keeps it.
    """
    payload = get_payload()
    settings_store = get_register().settings
    if not settings_store.check_pin(payload.get('currentPin')):
        raise MinimartError('Incorrect PIN', status_code=403)

    current = settings_store.get()
    settings = settings_store.save(StoreSettings(
        store_name=payload.get('storeName', current.store_name),
        pin=str(payload.get('pin') or current.pin),
    ))
    return jsonify({'storeName': settings.store_name})
