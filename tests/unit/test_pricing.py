"""
Unit tests for line pricing and derived stock.
"""

from decimal import Decimal

from minimart.models import CartItem, Product
from minimart.services.pricing_service import (
    WholesalePromptLatch, bundle_stock, cart_total, display_line_total,
    displayed_stock, line_total, sale_cost
)


def make_item(qty, price='10.00', wholesale_qty=None, wholesale_price=None, cost='0'):
    product = Product(
        id='p1', name='Item', price=Decimal(price), cost=Decimal(cost),
        wholesale_qty=wholesale_qty,
        wholesale_price=Decimal(wholesale_price) if wholesale_price else None,
    )
    return CartItem.from_product(product, qty)


class TestLineTotal:
    """Tests for per-line pricing."""

    def test_wholesale_packs_plus_remainder(self):
        """30 units at 12 for 100 and 10 each: 2 packs + 6 units."""
        item = make_item(30, wholesale_qty=12, wholesale_price='100')
        assert line_total(item) == Decimal('260.00')

    def test_exact_packs(self):
        item = make_item(24, wholesale_qty=12, wholesale_price='100')
        assert line_total(item) == Decimal('200.00')

    def test_below_threshold_is_unit_priced(self):
        item = make_item(11, wholesale_qty=12, wholesale_price='100')
        assert line_total(item) == Decimal('110.00')

    def test_threshold_without_price_is_unit_priced(self):
        item = make_item(30, wholesale_qty=12)
        assert line_total(item) == Decimal('300.00')

    def test_rounds_to_cents(self):
        item = make_item(3, price='0.335')
        assert line_total(item) == Decimal('1.01')

    def test_display_prefers_frozen_total(self):
        item = make_item(2)
        item.final_line_total = Decimal('18.00')
        assert display_line_total(item) == Decimal('18.00')

    def test_display_falls_back_to_current_price(self):
        assert display_line_total(make_item(2)) == Decimal('20.00')

    def test_cart_total_and_cost(self):
        items = [make_item(2, cost='6'), make_item(30, wholesale_qty=12, wholesale_price='100', cost='7')]
        assert cart_total(items) == Decimal('280.00')
        assert sale_cost(items) == Decimal('222.00')


class TestBundleStock:
    """Tests for stock shown on bundle children."""

    def test_floor_of_parent_stock(self):
        parent = Product(id='cola', name='Cola', price=Decimal('15'), stock=25)
        assert bundle_stock(parent, 6) == 4

    def test_missing_parent_is_zero(self):
        assert bundle_stock(None, 6) == 0

    def test_displayed_stock_resolves_parent(self):
        parent = Product(id='cola', name='Cola', price=Decimal('15'), stock=24)
        child = Product(id='cola6', name='Cola 6', price=Decimal('85'), stock=99,
                        parent_id='cola', pack_size=6)
        by_id = {parent.id: parent, child.id: child}

        assert displayed_stock(child, by_id) == 4
        assert displayed_stock(parent, by_id) == 24
        assert displayed_stock(child, {child.id: child}) == 0


class TestWholesalePromptLatch:
    """Tests for the one-time wholesale price prompt."""

    def test_prompts_once_when_threshold_reached(self):
        latch = WholesalePromptLatch()
        item = make_item(11, wholesale_qty=12)
        assert latch.should_prompt(item) is False

        item.qty = 12
        assert latch.should_prompt(item) is True

        item.qty = 24
        assert latch.should_prompt(item) is False

    def test_no_prompt_when_rate_is_known(self):
        latch = WholesalePromptLatch()
        assert latch.should_prompt(make_item(12, wholesale_qty=12, wholesale_price='100')) is False

    def test_no_prompt_without_threshold(self):
        latch = WholesalePromptLatch()
        assert latch.should_prompt(make_item(100)) is False

    def test_reset_allows_prompt_again(self):
        latch = WholesalePromptLatch()
        item = make_item(12, wholesale_qty=12)
        assert latch.should_prompt(item) is True
        latch.reset()
        assert latch.should_prompt(item) is True
