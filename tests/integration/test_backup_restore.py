"""
Integration tests for backup export and restore.
"""

import json

import pytest
from decimal import Decimal

from minimart.models import Product, StoreSettings, Supplier, SupplierPrice
from minimart.services import store_service
from minimart.services.backup_service import (
    BACKUP_VERSION, ImportFailure, export_data, import_data
)
from minimart.services.store_service import PersistentStore

COLLECTIONS = [
    store_service.PRODUCTS,
    store_service.SUPPLIERS,
    store_service.SUPPLIER_PRICES,
    store_service.PARKED_CARTS,
    store_service.PARKED_TRASH,
    store_service.SALES,
]


@pytest.fixture
def populated(register, sample_products, clock):
    """A store with something in every collection."""
    supplier = register.suppliers.save(Supplier(id='', name='Alpha', phone='0811111111'))
    register.suppliers.save_price(SupplierPrice(supplier.id, 'p-cola', Decimal('240'), pack_size=24))
    register.settings.save(StoreSettings(store_name='Corner Shop', pin='2468'))

    register.add_to_cart(product_id='p-cola', qty=2)
    register.settle()
    clock.advance(minutes=5)
    register.add_to_cart(product_id='p-water', qty=13)
    register.settle(received='200')

    register.add_to_cart(product_id='p-bread')
    register.park_cart('Table 1')
    clock.advance(minutes=1)
    register.add_to_cart(product_id='p-bun')
    trashed = register.park_cart('Table 2')
    register.parking.remove(trashed.id)
    return register


def snapshot(store):
    data = {key: store.get_list(key) for key in COLLECTIONS}
    data['settings'] = store.get_dict(store_service.SETTINGS)
    data['counters'] = {k: store.get(k) for k in store.keys(store_service.BILL_COUNTER_PREFIX)}
    return data


class TestRoundTrip:
    """Export, wipe and import must give back the same store."""

    def test_export_clear_import(self, populated, store, clock):
        before = snapshot(store)
        backup = export_data(store, clock)

        store.clear()
        assert snapshot(store)['products'] == []

        result = import_data(store, backup, clock)

        assert result.success is True
        assert snapshot(store) == before
        assert store.get(store_service.SCHEMA_VERSION) == store_service.CURRENT_SCHEMA_VERSION

    def test_numbering_continues_after_restore(self, populated, store, clock):
        backup = export_data(store, clock)
        store.clear()
        import_data(store, backup, clock)

        populated.add_to_cart(product_id='p-cola')
        assert populated.settle().bill_id == 'B240315-003'

    def test_export_document(self, populated, store, clock):
        data = json.loads(export_data(store, clock))
        assert data['meta']['version'] == BACKUP_VERSION
        assert data['meta']['exportDate'] == '2024-03-15T10:06:00'
        assert data['settings'] == {'storeName': 'Corner Shop', 'pin': '2468'}
        assert data['billCounters'] == {'B240315': 2}
        assert len(data['parkedCarts']) == 1
        assert len(data['parkedTrash']) == 1
        assert len(data['supplierPrices']) == 1


class TestImportRules:
    """Tests for what import accepts and what it replaces."""

    def test_missing_collections_are_emptied(self, populated, store, clock):
        result = import_data(store, json.dumps({'products': [], 'meta': {'version': BACKUP_VERSION}}), clock)

        assert result.success is True
        for key in COLLECTIONS:
            assert store.get_list(key) == []
        assert populated.settings.get().store_name == 'Test Store'
        assert populated.settings.get().pin == '0000'

    def test_counters_raised_past_restored_bills(self, register, store, clock):
        backup = {
            'products': [],
            'sales': [{'billId': 'B240315-041', 'date': '2024-03-15T09:00:00', 'items': [], 'total': '5'}],
            'meta': {'version': BACKUP_VERSION},
        }
        assert import_data(store, json.dumps(backup), clock).success

        register.catalog.upsert(Product(id='p-w', barcode='1', name='Water', price=Decimal('10'), stock=5))
        register.add_to_cart(product_id='p-w')
        assert register.settle().bill_id == 'B240315-042'

    def test_legacy_backup_is_migrated(self, store, clock):
        backup = {
            'products': [{'id': 'a', 'name': 'A', 'price': 6, 'stock': 48}],
            'parkedCarts': [{'id': '1700000000000', 'timestamp': 1700000000000, 'items': []}],
            'sales': [{'billId': 'B231101-001', 'date': '2023-11-01T08:00:00.000Z', 'items': [], 'total': 30}],
            'meta': {'exportDate': '2023-11-01T09:00:00.000Z', 'version': '1.0'},
        }

        result = import_data(store, json.dumps(backup), clock)

        assert result.success is True
        sale = store.get_list(store_service.SALES)[0]
        assert sale['received'] == 30
        assert sale['storeName'] == ''
        assert store.get_list(store_service.PRODUCTS)[0]['cost'] == '0'
        assert store.get_list(store_service.PARKED_CARTS)[0]['note'] == ''


class TestImportFailures:
    """Import reports failures instead of raising."""

    def test_invalid_json(self, store, clock):
        result = import_data(store, '{"products": [', clock)
        assert result.success is False
        assert result.reason == ImportFailure.INVALID_JSON

    @pytest.mark.parametrize('document', [
        [],
        {'meta': {}},
        {'products': {}, 'meta': {}},
        {'products': []},
        {'products': [], 'meta': 'x'},
        {'products': ['not an object'], 'meta': {}},
        {'products': [], 'sales': {}, 'meta': {}},
        {'products': [], 'settings': [], 'meta': {}},
        {'products': [{'name': 'no id'}], 'meta': {}},
        {'products': [], 'sales': [{'billId': 'B240315-001', 'date': 'yesterday', 'items': []}], 'meta': {}},
        {'products': [], 'sales': [{'date': '2024-03-15T09:00:00', 'items': []}], 'meta': {}},
    ])
    def test_invalid_structure(self, store, clock, document):
        store.set(store_service.PRODUCTS, [{'id': 'keep', 'name': 'Keep', 'price': '1'}])

        result = import_data(store, json.dumps(document), clock)

        assert result.success is False
        assert result.reason == ImportFailure.INVALID_STRUCTURE
        assert store.get_list(store_service.PRODUCTS)[0]['id'] == 'keep'

    def test_storage_quota(self, session, clock):
        store = PersistentStore(session, max_value_bytes=500)
        products = [{'id': str(n), 'name': f'Product {n}', 'price': '1'} for n in range(50)]

        result = import_data(store, json.dumps({'products': products, 'meta': {}}), clock)

        assert result.success is False
        assert result.reason == ImportFailure.STORAGE_QUOTA

