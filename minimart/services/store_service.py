"""
Persistent Store - key-value persistence for the ledger collections.

Every collection (products, parked carts, sales, ...) lives under one key as
a whole JSON document. Reads return a fresh copy, writes replace the whole
document and commit immediately; there is no transaction spanning keys.
"""

import copy
import json
import logging
from datetime import datetime, date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from minimart.exceptions import MinimartError, StorageQuotaError
from minimart.models import StoreEntry

logger = logging.getLogger(__name__)

# Collection keys
PRODUCTS = 'products'
PARKED_CARTS = 'parked_carts'
PARKED_TRASH = 'parked_trash'
SALES = 'sales'
SETTINGS = 'settings'
SUPPLIERS = 'suppliers'
SUPPLIER_PRICES = 'supplier_prices'
SCHEMA_VERSION = 'schema_version'
BILL_COUNTER_PREFIX = 'bill_counter:'

CURRENT_SCHEMA_VERSION = 2

_QUOTA_MARKERS = ('database or disk is full', 'disk i/o error', 'sqlite_full', 'no space left')


def _default_handler(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return str(obj)
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def dumps(value: Any, **kwargs) -> str:
    """Serialize with Decimal and datetime support."""
    return json.dumps(value, default=_default_handler, ensure_ascii=False, **kwargs)


class PersistentStore:
    """
    Typed key-value access on top of the ``store_entry`` table.

    A corrupt document only affects its own key: ``get`` logs the failure and
    returns the caller's default instead of raising.
    """

    def __init__(self, session, max_value_bytes: Optional[int] = None):
        self.session = session
        self.max_value_bytes = max_value_bytes

    def get(self, key: str, default: Any = None) -> Any:
        entry = self.session.get(StoreEntry, key)
        if entry is None:
            return copy.deepcopy(default)
        try:
            return json.loads(entry.value)
        except (TypeError, ValueError) as e:
            logger.warning(f"[STORE] Corrupt value under '{key}', using default: {e}")
            return copy.deepcopy(default)

    def get_list(self, key: str) -> List[Any]:
        value = self.get(key, [])
        if not isinstance(value, list):
            logger.warning(f"[STORE] Expected a list under '{key}', got {type(value).__name__}")
            return []
        return value

    def get_dict(self, key: str) -> Dict[str, Any]:
        value = self.get(key, {})
        if not isinstance(value, dict):
            logger.warning(f"[STORE] Expected an object under '{key}', got {type(value).__name__}")
            return {}
        return value

    def set(self, key: str, value: Any) -> None:
        """Replace the document under ``key``."""
        serialized = dumps(value)
        size = len(serialized.encode('utf-8'))
        if self.max_value_bytes and size > self.max_value_bytes:
            logger.error(f"[STORE] Refusing write to '{key}': {size} bytes exceeds quota")
            raise StorageQuotaError(
                f"Local storage is full: '{key}' needs {size} bytes",
                payload={'key': key, 'size': size},
            )
        try:
            entry = self.session.get(StoreEntry, key)
            if entry is None:
                self.session.add(StoreEntry(key=key, value=serialized))
            else:
                entry.value = serialized
            self.session.commit()
        except OperationalError as e:
            self.session.rollback()
            if any(marker in str(e).lower() for marker in _QUOTA_MARKERS):
                logger.error(f"[STORE] Storage full while writing '{key}': {e}")
                raise StorageQuotaError(payload={'key': key})
            logger.error(f"[STORE] Write to '{key}' failed: {e}")
            raise MinimartError(f"Could not save '{key}'")
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[STORE] Write to '{key}' failed: {e}")
            raise MinimartError(f"Could not save '{key}'")

    def delete(self, key: str) -> None:
        entry = self.session.get(StoreEntry, key)
        if entry is not None:
            self.session.delete(entry)
            self.session.commit()

    def keys(self, prefix: str = '') -> List[str]:
        query = self.session.query(StoreEntry.key)
        if prefix:
            query = query.filter(StoreEntry.key.startswith(prefix, autoescape=True))
        return sorted(row[0] for row in query.all())

    def clear(self) -> None:
        """Drop every collection (new device / before a full restore)."""
        self.session.query(StoreEntry).delete()
        self.session.commit()


# =====================================================
# SCHEMA MIGRATION
# =====================================================

def _migrate_v1_to_v2(store: PersistentStore) -> None:
    """
    Version 1 documents come from the first releases:
    parked carts without a note, sales without payment fields or store name,
    products without cost and with stray pack sizes.
    """
    products = store.get_list(PRODUCTS)
    for product in products:
        product.setdefault('cost', '0')
        if not product.get('parentId'):
            product['parentId'] = None
            product['packSize'] = None
    store.set(PRODUCTS, products)

    for key in (PARKED_CARTS, PARKED_TRASH):
        carts = store.get_list(key)
        for cart in carts:
            cart.setdefault('note', '')
            cart.setdefault('items', [])
        store.set(key, carts)

    sales = store.get_list(SALES)
    for sale in sales:
        sale.setdefault('received', sale.get('total'))
        sale.setdefault('change', '0')
        sale.setdefault('storeName', '')
    store.set(SALES, sales)


MIGRATIONS = {
    1: _migrate_v1_to_v2,
}


def migrate_store(store: PersistentStore) -> int:
    """
    Bring stored documents up to CURRENT_SCHEMA_VERSION.

    A store without a version marker but with data is treated as version 1;
    an empty store is stamped with the current version directly.
    """
    version = store.get(SCHEMA_VERSION)
    if not isinstance(version, int):
        has_data = bool(store.keys(PRODUCTS) or store.keys(SALES) or store.keys(PARKED_CARTS))
        version = 1 if has_data else CURRENT_SCHEMA_VERSION

    while version < CURRENT_SCHEMA_VERSION:
        step = MIGRATIONS[version]
        logger.info(f"[STORE] Migrating schema v{version} -> v{version + 1}")
        step(store)
        version += 1

    store.set(SCHEMA_VERSION, version)
    return version
