"""Store settings model."""
from dataclasses import dataclass


@dataclass
class StoreSettings:
    """Store name printed on receipts and the PIN guarding protected actions."""

    store_name: str
    pin: str = '0000'

    def to_dict(self) -> dict:
        return {'storeName': self.store_name, 'pin': self.pin}

    @classmethod
    def from_dict(cls, data: dict, default_name: str = '') -> 'StoreSettings':
        return cls(
            store_name=data.get('storeName') or default_name,
            pin=str(data.get('pin') or '0000'),
        )
