"""Pricing Service - line totals and derived stock for cart and catalog."""

from decimal import Decimal
from typing import Dict, Iterable, Optional, Set

from minimart.models import Product, CartItem
from minimart.utils.number_format import money


def has_wholesale_rate(item: Product) -> bool:
    """Pack pricing applies only when both the threshold and the rate are set."""
    return bool(item.wholesale_qty and item.wholesale_qty > 0
                and item.wholesale_price and item.wholesale_price > 0)


def line_total(item: CartItem) -> Decimal:
    """
    Chargeable total of one cart line.

    With a wholesale rate every full pack of ``wholesale_qty`` units costs
    ``wholesale_price`` and the remainder is charged per unit.
    """
    if has_wholesale_rate(item):
        packs, remainder = divmod(item.qty, item.wholesale_qty)
        return money(packs * item.wholesale_price + remainder * item.price)
    return money(item.qty * item.price)


def display_line_total(item: CartItem) -> Decimal:
    """Line total for a recorded sale: the settled figure beats today's prices."""
    if item.final_line_total is not None:
        return item.final_line_total
    return line_total(item)


def cart_total(items: Iterable[CartItem]) -> Decimal:
    return money(sum((line_total(item) for item in items), Decimal('0')))


def sale_cost(items: Iterable[CartItem]) -> Decimal:
    """Cost of goods for a set of lines; unknown cost counts as zero."""
    return money(sum((item.qty * (item.cost or Decimal('0')) for item in items), Decimal('0')))


def bundle_stock(parent: Optional[Product], pack_size: int) -> int:
    """Whole bundle units available from the parent's stock; 0 without a parent."""
    if parent is None or not pack_size or pack_size < 1:
        return 0
    return parent.stock // pack_size


def displayed_stock(product: Product, products_by_id: Dict[str, Product]) -> int:
    """Stock shown for a product; bundle children derive it from their parent."""
    if product.is_bundle_child:
        return bundle_stock(products_by_id.get(product.parent_id), product.pack_size)
    return product.stock


class WholesalePromptLatch:
    """
    Ask-once latch for discovering a wholesale rate.

    When a line first reaches its ``wholesale_qty`` without a configured
    ``wholesale_price`` the clerk is asked for the pack price once per
    product; answering or declining both close the latch for that product.
    """

    def __init__(self):
        self._asked: Set[str] = set()

    def should_prompt(self, item: CartItem) -> bool:
        if item.id in self._asked:
            return False
        if not item.wholesale_qty or item.wholesale_qty <= 0:
            return False
        if item.wholesale_price and item.wholesale_price > 0:
            return False
        if item.qty < item.wholesale_qty:
            return False
        self._asked.add(item.id)
        return True

    def reset(self) -> None:
        self._asked.clear()
