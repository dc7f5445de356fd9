"""Sale model."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from minimart.models.cart_item import CartItem
from minimart.utils.number_format import parse_decimal, money_str
from minimart.utils.time_utils import parse_iso_datetime, to_iso


@dataclass
class Sale:
    """Settled transaction, keyed by bill id."""

    bill_id: Optional[str]
    date: Optional[datetime]
    items: List[CartItem] = field(default_factory=list)
    total: Decimal = Decimal('0')
    received: Optional[Decimal] = None
    change: Optional[Decimal] = None
    store_name: Optional[str] = None

    def to_dict(self, drop_empty: bool = False) -> dict:
        """
        Serialize to the stored document shape.

        With ``drop_empty`` the unset fields are left out, which is what the
        ledger's merge-on-overwrite relies on.
        """
        data = {
            'billId': self.bill_id,
            'date': to_iso(self.date),
            'items': [item.to_dict() for item in self.items],
            'total': money_str(self.total),
            'received': money_str(self.received),
            'change': money_str(self.change),
            'storeName': self.store_name,
        }
        if drop_empty:
            data = {k: v for k, v in data.items() if v is not None}
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Sale':
        total = parse_decimal(data.get('total'), Decimal('0'))
        received = data.get('received')
        change = data.get('change')
        return cls(
            bill_id=data.get('billId'),
            date=parse_iso_datetime(data.get('date')),
            items=[CartItem.from_dict(item) for item in data.get('items') or []],
            total=total,
            # Records written before payment tracking: assume exact cash
            received=parse_decimal(received, total) if received not in (None, '') else total,
            change=parse_decimal(change, Decimal('0')) if change not in (None, '') else Decimal('0'),
            store_name=data.get('storeName') or '',
        )

    def __repr__(self):
        return f"<Sale(bill_id='{self.bill_id}', total={self.total})>"
