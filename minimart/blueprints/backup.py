"""Backup blueprint - export and restore of the whole store."""
from flask import Blueprint, Response, current_app, jsonify, request

from minimart import get_register
from minimart.exceptions import BusinessLogicError
from minimart.services.backup_service import ImportFailure, export_data, import_data

backup_bp = Blueprint('backup', __name__, url_prefix='/backup')

_FAILURE_STATUS = {
    ImportFailure.INVALID_JSON: 400,
    ImportFailure.INVALID_STRUCTURE: 400,
    ImportFailure.STORAGE_QUOTA: 507,
    ImportFailure.STORAGE_ERROR: 500,
}


@backup_bp.route('/export', methods=['GET'])
def export_backup():
    """Download every collection as one JSON file."""
    register = get_register()
    body = export_data(register.store, register.clock)
    filename = f"minimart-backup-{register.clock():%Y%m%d-%H%M}.json"
    return Response(
        body,
        mimetype='application/json',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


@backup_bp.route('/import', methods=['POST'])
def import_backup():
    """
    Replace the store with an uploaded backup (``file`` field or raw body).

    The open cart is discarded on success; it may refer to products that no
    longer exist.
    """
    upload = request.files.get('file')
    if upload is not None:
        raw = upload.read()
    else:
        raw = request.get_data()
    if not raw:
        raise BusinessLogicError('No backup file received')

    try:
        json_string = raw.decode('utf-8-sig')
    except UnicodeDecodeError:
        raise BusinessLogicError('Backup file must be UTF-8 text')

    register = get_register()
    result = import_data(register.store, json_string, register.clock)
    if not result.success:
        current_app.logger.warning(f"[BACKUP] Import failed: {result.reason.value} {result.message}")
        return jsonify({'status': 'error', **result.to_dict()}), _FAILURE_STATUS[result.reason]

    register.cart.clear()
    register.wholesale_latch.reset()
    return jsonify({'status': 'ok', **result.to_dict()})
