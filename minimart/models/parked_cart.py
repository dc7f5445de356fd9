"""Parked Cart model."""
from dataclasses import dataclass, field
from typing import List

from minimart.models.cart_item import CartItem
from minimart.utils.number_format import parse_int


@dataclass
class ParkedCart:
    """
    Suspended order held outside the active cart.

    The same shape is used for entries in the parking trash.
    ``timestamp`` (epoch ms) is the queue position and is kept when a
    restored bill is parked again.
    """

    id: str
    timestamp: int
    note: str = ''
    items: List[CartItem] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return sum(item.qty for item in self.items)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'timestamp': self.timestamp,
            'note': self.note,
            'items': [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ParkedCart':
        return cls(
            id=str(data['id']),
            timestamp=parse_int(data.get('timestamp')),
            note=data.get('note') or '',
            items=[CartItem.from_dict(item) for item in data.get('items') or []],
        )

    def __repr__(self):
        return f"<ParkedCart(id='{self.id}', note='{self.note}', items={len(self.items)})>"
