"""
Unit tests for bill numbering.
"""

import pytest

from minimart.services.bill_id_service import BillIdGenerator, format_bill_id, parse_bill_id


@pytest.fixture
def bill_ids(store, clock):
    return BillIdGenerator(store, clock)


class TestBillIds:
    """Tests for date-scoped sequential bill ids."""

    def test_sequence_within_a_day(self, bill_ids):
        issued = [bill_ids.next_bill_id() for _ in range(3)]
        assert issued == ['B240315-001', 'B240315-002', 'B240315-003']

    def test_new_day_starts_again(self, bill_ids, clock):
        bill_ids.next_bill_id()
        bill_ids.next_bill_id()
        clock.advance(days=1)
        assert bill_ids.next_bill_id() == 'B240316-001'

    def test_counter_survives_new_generator(self, bill_ids, store, clock):
        bill_ids.next_bill_id()
        assert BillIdGenerator(store, clock).next_bill_id() == 'B240315-002'

    def test_padding_grows_past_999(self):
        assert format_bill_id('B240315', 7) == 'B240315-007'
        assert format_bill_id('B240315', 1000) == 'B240315-1000'

    def test_parse(self):
        assert parse_bill_id('B240315-012') == ('B240315', 12)
        assert parse_bill_id('B240315-1000') == ('B240315', 1000)
        assert parse_bill_id('1700000000000') is None
        assert parse_bill_id(None) is None

    def test_ensure_at_least(self, bill_ids):
        bill_ids.ensure_at_least('B240315', 7)
        assert bill_ids.next_bill_id() == 'B240315-008'

        bill_ids.ensure_at_least('B240315', 2)
        assert bill_ids.next_bill_id() == 'B240315-009'

    def test_counters_roundtrip(self, bill_ids, clock):
        bill_ids.next_bill_id()
        clock.advance(days=1)
        bill_ids.next_bill_id()
        bill_ids.next_bill_id()
        counters = bill_ids.counters()
        assert counters == {'B240315': 1, 'B240316': 2}

        bill_ids.restore_counters({'B240301': 4, 'bad': 'x'})
        assert bill_ids.counters() == {'B240301': 4}


class TestCorruptCounters:
    """A damaged counter must not hand out a number that is already used."""

    def test_corrupt_counter_continues_after_recorded_sales(self, register, store, sample_products):
        register.add_to_cart(product_id='p-cola')
        first = register.settle()
        store.set('bill_counter:B240315', 'garbage')

        register.add_to_cart(product_id='p-cola')
        second = register.settle()

        assert first.bill_id == 'B240315-001'
        assert second.bill_id == 'B240315-002'
        assert [s.bill_id for s in register.sales.list_all()] == ['B240315-001', 'B240315-002']

    def test_lost_counter_uses_highest_recorded(self, bill_ids, store):
        store.set('sales', [{'billId': 'B240315-007', 'items': [], 'total': '1'},
                            {'billId': 'B240314-050', 'items': [], 'total': '1'}])
        assert bill_ids.next_bill_id() == 'B240315-008'

    def test_parse_ignores_non_strings(self):
        assert parse_bill_id(7) is None
        assert parse_bill_id(None) is None
