"""Product model."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from minimart.utils.number_format import (
    parse_decimal, parse_optional_decimal, parse_int, parse_optional_int, money_str
)


@dataclass
class Product:
    """
    Catalog entry.

    Bundle and wholesale pricing are two independent optional capabilities:
    a product with ``parent_id``/``pack_size`` is sold as a fraction of its
    parent's stock, and a product with ``wholesale_qty``/``wholesale_price``
    charges a pack price for every full pack in a line.
    """

    id: str
    name: str
    price: Decimal
    barcode: str = ''
    cost: Decimal = Decimal('0')
    stock: int = 0
    group: str = ''
    parent_id: Optional[str] = None
    pack_size: Optional[int] = None
    wholesale_qty: Optional[int] = None
    wholesale_price: Optional[Decimal] = None
    pack_barcode: str = ''
    expiry_date: str = ''
    tags: List[str] = field(default_factory=list)
    placeholder: bool = False
    updated_at: Optional[int] = None

    @property
    def is_bundle_child(self) -> bool:
        return bool(self.parent_id) and bool(self.pack_size)

    @property
    def is_wholesale_tiered(self) -> bool:
        return bool(self.wholesale_qty) and self.wholesale_qty > 0

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'barcode': self.barcode,
            'name': self.name,
            'price': money_str(self.price),
            'cost': money_str(self.cost),
            'stock': self.stock,
            'group': self.group,
            'parentId': self.parent_id,
            'packSize': self.pack_size,
            'wholesaleQty': self.wholesale_qty,
            'wholesalePrice': money_str(self.wholesale_price),
            'packBarcode': self.pack_barcode,
            'expiryDate': self.expiry_date,
            'tags': list(self.tags),
            'placeholder': self.placeholder,
            'updatedAt': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Product':
        parent_id = data.get('parentId') or None
        pack_size = parse_optional_int(data.get('packSize'))
        if not parent_id:
            pack_size = None
        elif not pack_size or pack_size < 1:
            pack_size = 1
        return cls(
            id=str(data['id']),
            barcode=str(data.get('barcode') or ''),
            name=data.get('name') or '',
            price=parse_decimal(data.get('price'), Decimal('0')),
            cost=parse_decimal(data.get('cost'), Decimal('0')),
            stock=parse_int(data.get('stock')),
            group=(data.get('group') or '').strip(),
            parent_id=parent_id,
            pack_size=pack_size,
            wholesale_qty=parse_optional_int(data.get('wholesaleQty')) or None,
            wholesale_price=parse_optional_decimal(data.get('wholesalePrice')) or None,
            pack_barcode=str(data.get('packBarcode') or ''),
            expiry_date=data.get('expiryDate') or '',
            tags=list(data.get('tags') or []),
            placeholder=bool(data.get('placeholder', False)),
            updated_at=data.get('updatedAt'),
        )

    def __repr__(self):
        return f"<Product(id='{self.id}', name='{self.name}', stock={self.stock})>"


@dataclass
class PackMatch:
    """A barcode lookup that hit a product's carton barcode."""

    product: Product
    qty: int
    is_pack: bool = True
