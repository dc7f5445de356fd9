"""Cart Item model."""
from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Optional

from minimart.models.product import Product
from minimart.utils.number_format import parse_int, parse_optional_decimal, money_str


@dataclass
class CartItem(Product):
    """
    Cart line: a denormalized copy of the product plus a quantity.

    Lines are snapshots, not live references; later catalog edits never
    reach a parked cart or a recorded sale. ``final_line_total`` is frozen at
    settlement and wins over recomputation when a sale is displayed.
    """

    qty: int = 1
    final_line_total: Optional[Decimal] = None

    @classmethod
    def from_product(cls, product: Product, qty: int = 1) -> 'CartItem':
        values = {f.name: getattr(product, f.name) for f in fields(Product)}
        values['tags'] = list(product.tags)
        return cls(qty=qty, **values)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['qty'] = self.qty
        data['finalLineTotal'] = money_str(self.final_line_total)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'CartItem':
        product = Product.from_dict(data)
        item = cls.from_product(product, max(parse_int(data.get('qty'), 1), 1))
        item.final_line_total = parse_optional_decimal(data.get('finalLineTotal'))
        return item

    def __repr__(self):
        return f"<CartItem(id='{self.id}', qty={self.qty})>"
