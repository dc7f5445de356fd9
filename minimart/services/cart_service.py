"""Cart Service - the order currently being built at the counter."""

import copy
import enum
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from minimart.exceptions import NotFoundError
from minimart.models import Product, CartItem, ParkedCart, Sale
from minimart.services.pricing_service import cart_total


class CartMode(str, enum.Enum):
    EMPTY = 'empty'
    BUILDING = 'building'
    EDITING_PARKED = 'editing-parked'
    EDITING_SALE = 'editing-historical-sale'


@dataclass
class ActiveBill:
    """Parked bill the cart was restored from; reused when it is parked again."""
    note: str
    timestamp: int


@dataclass
class EditingSale:
    """Recorded sale loaded back for correction."""
    bill_id: str
    sale_date: Optional[datetime]


class Cart:
    """
    In-memory cart.

    Stock is never checked here; whether a line may exceed what is on the
    shelf is decided by the caller.
    """

    def __init__(self):
        self.items: List[CartItem] = []
        self.active_bill: Optional[ActiveBill] = None
        self.editing_sale: Optional[EditingSale] = None

    @property
    def mode(self) -> CartMode:
        if not self.items:
            return CartMode.EMPTY
        if self.editing_sale:
            return CartMode.EDITING_SALE
        if self.active_bill:
            return CartMode.EDITING_PARKED
        return CartMode.BUILDING

    @property
    def is_empty(self) -> bool:
        return not self.items

    def line(self, index: int) -> CartItem:
        if index < 0 or index >= len(self.items):
            raise NotFoundError(f'Cart line {index} does not exist')
        return self.items[index]

    def find(self, product_id: str) -> Optional[CartItem]:
        return next((item for item in self.items if item.id == product_id), None)

    def add(self, product: Product, qty: int = 1) -> CartItem:
        """Merge into the line for the same product id or append a new one."""
        qty = max(int(qty), 1)
        line = self.find(product.id)
        if line:
            line.qty += qty
            return line
        line = CartItem.from_product(product, qty)
        self.items.append(line)
        return line

    def set_qty(self, index: int, qty: int) -> Optional[CartItem]:
        """Set a line's quantity; zero or less removes the line."""
        line = self.line(index)
        if qty <= 0:
            self.remove(index)
            return None
        line.qty = int(qty)
        return line

    def change_qty(self, index: int, delta: int) -> Optional[CartItem]:
        line = self.line(index)
        return self.set_qty(index, line.qty + delta)

    def remove(self, index: int) -> CartItem:
        line = self.line(index)
        del self.items[index]
        if not self.items:
            # A stale note must not follow the next, unrelated order
            self._reset_trackers()
        return line

    def clear(self) -> None:
        self.items = []
        self._reset_trackers()

    def _reset_trackers(self) -> None:
        self.active_bill = None
        self.editing_sale = None

    def total(self) -> Decimal:
        return cart_total(self.items)

    def apply_wholesale_price(self, product_id: str, price: Decimal) -> None:
        for item in self.items:
            if item.id == product_id:
                item.wholesale_price = price

    def load_parked(self, parked: ParkedCart) -> None:
        self.items = copy.deepcopy(parked.items)
        self.editing_sale = None
        self.active_bill = ActiveBill(note=parked.note, timestamp=parked.timestamp)

    def load_sale(self, sale: Sale) -> None:
        items = copy.deepcopy(sale.items)
        for item in items:
            item.final_line_total = None
        self.items = items
        self.active_bill = None
        self.editing_sale = EditingSale(bill_id=sale.bill_id, sale_date=sale.date)

    def to_dict(self) -> dict:
        return {
            'mode': self.mode.value,
            'items': [item.to_dict() for item in self.items],
            'total': self.total(),
            'activeBill': (
                {'note': self.active_bill.note, 'timestamp': self.active_bill.timestamp}
                if self.active_bill else None
            ),
            'editingBillId': self.editing_sale.bill_id if self.editing_sale else None,
        }
