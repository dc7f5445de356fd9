"""
Unit tests for the sales ledger.
"""

import pytest
from datetime import datetime
from decimal import Decimal

from minimart.models import CartItem, Product, Sale, StoreSettings
from minimart.services.sales_service import stock_effects, summarize


def line(product_id='p-cola', qty=2, price='15', cost='11', parent_id=None, pack_size=None):
    product = Product(id=product_id, name=product_id, price=Decimal(price), cost=Decimal(cost),
                      parent_id=parent_id, pack_size=pack_size)
    return CartItem.from_product(product, qty)


def make_sale(bill_id=None, total='30.00', received='50.00', change='20.00', date=None):
    return Sale(
        bill_id=bill_id,
        date=date,
        items=[line()],
        total=Decimal(total),
        received=Decimal(received) if received else None,
        change=Decimal(change) if change else None,
    )


class TestRecord:
    """Tests for writing sales."""

    def test_new_sale_gets_bill_id(self, register, clock):
        sale = register.sales.record(make_sale())
        assert sale.bill_id == 'B240315-001'
        assert sale.date == clock()
        assert sale.store_name == 'Test Store'
        assert len(register.sales.list_all()) == 1

    def test_same_bill_id_overwrites(self, register):
        first = register.sales.record(make_sale())
        register.sales.record(make_sale(bill_id=first.bill_id, total='45.00',
                                        received='45.00', change='0'))

        sales = register.sales.list_all()
        assert len(sales) == 1
        assert sales[0].total == Decimal('45.00')
        assert sales[0].received == Decimal('45.00')

    def test_overwrite_keeps_missing_fields(self, register):
        first = register.sales.record(make_sale())
        register.sales.record(make_sale(bill_id=first.bill_id, total='35.00', received=None, change=None))

        sale = register.sales.find_by_id(first.bill_id)
        assert sale.total == Decimal('35.00')
        assert sale.received == Decimal('50.00')
        assert sale.date == first.date

    def test_unknown_bill_id_raises_counter(self, register):
        register.sales.record(make_sale(bill_id='B240315-005', date=datetime(2024, 3, 15, 9)))
        assert register.sales.record(make_sale()).bill_id == 'B240315-006'

    def test_store_name_snapshot(self, register):
        first = register.sales.record(make_sale())
        register.settings.save(StoreSettings(store_name='Corner Shop', pin='1234'))
        second = register.sales.record(make_sale())

        assert register.sales.find_by_id(first.bill_id).store_name == 'Test Store'
        assert register.sales.find_by_id(second.bill_id).store_name == 'Corner Shop'

    def test_list_sorted(self, register, clock):
        ids = []
        for _ in range(3):
            ids.append(register.sales.record(make_sale()).bill_id)
            clock.advance(hours=1)

        assert [s.bill_id for s in register.sales.list_sorted()] == ids[::-1]
        assert [s.bill_id for s in register.sales.list_sorted(descending=False)] == ids

    def test_find_missing(self, register):
        assert register.sales.find_by_id('B240315-999') is None


class TestStockEffects:
    """Tests for the stock movement of a settlement."""

    def test_bundle_lines_draw_on_parent(self):
        effects = stock_effects([
            line('p-cola', qty=2),
            line('p-cola6', qty=3, parent_id='p-cola', pack_size=6),
        ])
        assert effects == [('p-cola', 2), ('p-cola', 18)]


class TestSummarize:
    """Tests for sales reporting."""

    def test_revenue_cost_profit(self):
        sales = [make_sale(total='30.00'), make_sale(total='28.00')]
        summary = summarize(sales)
        assert summary['count'] == 2
        assert summary['revenue'] == Decimal('58.00')
        assert summary['cost'] == Decimal('44.00')
        assert summary['profit'] == Decimal('14.00')

    def test_empty(self):
        assert summarize([])['revenue'] == Decimal('0.00')


class TestUnreadableRecords:
    """One damaged sale must not take the history down with it."""

    def test_bad_date_is_skipped(self, register, store):
        good = register.sales.record(make_sale())
        store.set('sales', store.get_list('sales') + [
            {'billId': 'B240315-009', 'date': 'yesterday', 'items': [], 'total': '5'}
        ])

        assert [s.bill_id for s in register.sales.list_all()] == [good.bill_id]
        assert register.sales.find_by_id('B240315-009') is None
        assert register.sales.find_by_id(good.bill_id) is not None
