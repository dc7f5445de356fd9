"""Supplier and supplier price models."""
import enum
from dataclasses import dataclass
from decimal import Decimal

from minimart.utils.number_format import parse_decimal, parse_int, money_str


class BuyUnit(str, enum.Enum):
    """Unit a supplier sells in."""
    PIECE = 'piece'
    PACK = 'pack'
    CARTON = 'carton'


@dataclass
class Supplier:
    """Supplier (wholesaler or distributor)."""

    id: str
    name: str
    contact: str = ''
    phone: str = ''

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name, 'contact': self.contact, 'phone': self.phone}

    @classmethod
    def from_dict(cls, data: dict) -> 'Supplier':
        return cls(
            id=str(data['id']),
            name=data.get('name') or '',
            contact=data.get('contact') or '',
            phone=data.get('phone') or '',
        )

    def __repr__(self):
        return f"<Supplier(id='{self.id}', name='{self.name}')>"


@dataclass
class SupplierPrice:
    """Purchase price of one product from one supplier."""

    supplier_id: str
    product_id: str
    buy_price: Decimal
    buy_unit: BuyUnit = BuyUnit.PIECE
    pack_size: int = 1

    @property
    def unit_cost(self) -> Decimal:
        """Cost of a single piece."""
        if self.pack_size <= 0:
            return Decimal('0')
        return (self.buy_price / self.pack_size).quantize(Decimal('0.01'))

    def to_dict(self) -> dict:
        return {
            'supplierId': self.supplier_id,
            'productId': self.product_id,
            'buyUnit': self.buy_unit.value,
            'packSize': self.pack_size,
            'buyPrice': money_str(self.buy_price),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SupplierPrice':
        buy_unit = BuyUnit(data.get('buyUnit') or BuyUnit.PIECE.value)
        pack_size = 1 if buy_unit == BuyUnit.PIECE else max(parse_int(data.get('packSize'), 1), 1)
        return cls(
            supplier_id=str(data['supplierId']),
            product_id=str(data['productId']),
            buy_unit=buy_unit,
            pack_size=pack_size,
            buy_price=parse_decimal(data.get('buyPrice'), Decimal('0')),
        )
