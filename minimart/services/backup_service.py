"""
Backup Service - whole-store export and restore as one JSON document.

Restoring replaces every collection. Nothing is merged: a collection missing
from the file is emptied, missing settings fall back to defaults.
"""

import enum
import json
import logging
from dataclasses import dataclass
from typing import Optional

from minimart.exceptions import MinimartError, StorageQuotaError
from minimart.services import store_service
from minimart.services.bill_id_service import BillIdGenerator, parse_bill_id
from minimart.utils.time_utils import Clock, now, parse_iso_datetime, to_iso

logger = logging.getLogger(__name__)

BACKUP_VERSION = '2.0'
# Files written by the first releases carry this version and no payment fields
LEGACY_BACKUP_VERSION = '1.0'

# Backup field -> store key, for the list collections
LIST_COLLECTIONS = {
    'products': store_service.PRODUCTS,
    'suppliers': store_service.SUPPLIERS,
    'supplierPrices': store_service.SUPPLIER_PRICES,
    'parkedCarts': store_service.PARKED_CARTS,
    'parkedTrash': store_service.PARKED_TRASH,
    'sales': store_service.SALES,
}


class ImportFailure(str, enum.Enum):
    INVALID_JSON = 'invalid_json'
    INVALID_STRUCTURE = 'invalid_structure'
    STORAGE_QUOTA = 'storage_quota'
    STORAGE_ERROR = 'storage_error'


@dataclass
class ImportResult:
    success: bool
    reason: Optional[ImportFailure] = None
    message: str = ''

    def to_dict(self) -> dict:
        return {
            'success': self.success,
            'reason': self.reason.value if self.reason else None,
            'message': self.message,
        }


def build_backup(store: store_service.PersistentStore, clock: Clock = now) -> dict:
    """Collect every collection as stored, plus day counters and metadata."""
    data = {field: store.get_list(key) for field, key in LIST_COLLECTIONS.items()}
    data['settings'] = store.get_dict(store_service.SETTINGS)
    data['billCounters'] = BillIdGenerator(store, clock).counters()
    data['meta'] = {
        'exportDate': to_iso(clock()),
        'version': BACKUP_VERSION,
    }
    return data


def export_data(store: store_service.PersistentStore, clock: Clock = now) -> str:
    data = build_backup(store, clock)
    logger.info(
        f"[BACKUP] Exported {len(data['products'])} products, {len(data['sales'])} sales"
    )
    return store_service.dumps(data, indent=2)


def _validate(data) -> Optional[str]:
    """Return a description of what is wrong with a backup document, or None."""
    if not isinstance(data, dict):
        return 'Backup must be a JSON object'
    if not isinstance(data.get('products'), list):
        return 'Backup has no product list'
    if not isinstance(data.get('meta'), dict):
        return 'Backup has no meta section'
    for field in LIST_COLLECTIONS:
        value = data.get(field)
        if value is None:
            continue
        if not isinstance(value, list) or not all(isinstance(entry, dict) for entry in value):
            return f"'{field}' must be a list of objects"
    for index, product in enumerate(data['products']):
        if not str(product.get('id') or '').strip():
            return f'Product #{index + 1} has no id'
    for index, sale in enumerate(data.get('sales') or []):
        if not isinstance(sale.get('billId'), str) or not sale['billId']:
            return f'Sale #{index + 1} has no bill id'
        try:
            parse_iso_datetime(sale.get('date'))
        except (TypeError, ValueError):
            return f"Sale {sale['billId']} has an invalid date"
    for field in ('settings', 'billCounters'):
        if data.get(field) is not None and not isinstance(data[field], dict):
            return f"'{field}' must be an object"
    return None


def import_data(store: store_service.PersistentStore, json_string: str,
                clock: Clock = now) -> ImportResult:
    """
    Replace the store contents with a backup.

    Never raises; the outcome and the failure kind are in the result.
    """
    try:
        data = json.loads(json_string)
    except (TypeError, ValueError) as e:
        logger.warning(f"[BACKUP] Import rejected, invalid JSON: {e}")
        return ImportResult(False, ImportFailure.INVALID_JSON, 'The file is not valid JSON')

    problem = _validate(data)
    if problem:
        logger.warning(f"[BACKUP] Import rejected: {problem}")
        return ImportResult(False, ImportFailure.INVALID_STRUCTURE, problem)

    try:
        for field, key in LIST_COLLECTIONS.items():
            store.set(key, data.get(field) or [])

        if data.get('settings'):
            store.set(store_service.SETTINGS, data['settings'])
        else:
            store.delete(store_service.SETTINGS)

        bill_ids = BillIdGenerator(store, clock)
        bill_ids.restore_counters(data.get('billCounters') or {})
        for sale in data.get('sales') or []:
            parsed = parse_bill_id(sale.get('billId'))
            if parsed:
                bill_ids.ensure_at_least(*parsed)

        legacy = str(data['meta'].get('version', LEGACY_BACKUP_VERSION)) == LEGACY_BACKUP_VERSION
        store.set(
            store_service.SCHEMA_VERSION,
            1 if legacy else store_service.CURRENT_SCHEMA_VERSION
        )
        store_service.migrate_store(store)
    except StorageQuotaError as e:
        logger.error(f"[BACKUP] Import failed, storage full: {e.message}")
        return ImportResult(False, ImportFailure.STORAGE_QUOTA, e.message)
    except MinimartError as e:
        logger.error(f"[BACKUP] Import failed: {e.message}")
        return ImportResult(False, ImportFailure.STORAGE_ERROR, e.message)

    logger.info(
        f"[BACKUP] Imported {len(data['products'])} products, "
        f"{len(data.get('sales') or [])} sales"
    )
    return ImportResult(True, message='Backup restored')
