"""Supplier Service - supplier directory and purchase prices."""

import logging
import uuid
from decimal import Decimal
from typing import List, Optional

from minimart.exceptions import BusinessLogicError, NotFoundError
from minimart.models import BuyUnit, Supplier, SupplierPrice
from minimart.services import store_service
from minimart.utils.number_format import PHONE_PATTERN

logger = logging.getLogger(__name__)


class SupplierDirectory:
    """Suppliers and what each one charges for the products it carries."""

    def __init__(self, store: store_service.PersistentStore):
        self.store = store

    def list_suppliers(self) -> List[Supplier]:
        suppliers = [Supplier.from_dict(s) for s in self.store.get_list(store_service.SUPPLIERS)]
        return sorted(suppliers, key=lambda s: s.name.lower())

    def get(self, supplier_id: str) -> Optional[Supplier]:
        return next((s for s in self.list_suppliers() if s.id == supplier_id), None)

    def save(self, supplier: Supplier) -> Supplier:
        supplier.name = (supplier.name or '').strip()
        supplier.phone = (supplier.phone or '').strip()
        if not supplier.name:
            raise BusinessLogicError('Supplier name is required')
        if not PHONE_PATTERN.match(supplier.phone):
            raise BusinessLogicError('Phone must start with 0 and have 9 or 10 digits')
        if not supplier.id:
            supplier.id = uuid.uuid4().hex[:16]

        suppliers = self.list_suppliers()
        for index, existing in enumerate(suppliers):
            if existing.id == supplier.id:
                suppliers[index] = supplier
                break
        else:
            suppliers.append(supplier)
        self.store.set(store_service.SUPPLIERS, [s.to_dict() for s in suppliers])
        return supplier

    def delete(self, supplier_id: str) -> None:
        """Delete a supplier together with its prices."""
        suppliers = self.list_suppliers()
        remaining = [s for s in suppliers if s.id != supplier_id]
        if len(remaining) == len(suppliers):
            raise NotFoundError('Supplier not found')
        prices = [p for p in self._prices() if p.supplier_id != supplier_id]
        self.store.set(store_service.SUPPLIER_PRICES, [p.to_dict() for p in prices])
        self.store.set(store_service.SUPPLIERS, [s.to_dict() for s in remaining])
        logger.info(f"[SUPPLIERS] Deleted supplier {supplier_id}")

    # =====================================================
    # PRICES
    # =====================================================

    def _prices(self) -> List[SupplierPrice]:
        return [SupplierPrice.from_dict(p) for p in self.store.get_list(store_service.SUPPLIER_PRICES)]

    def save_price(self, price: SupplierPrice) -> SupplierPrice:
        """One price per (supplier, product); saving again replaces it."""
        if self.get(price.supplier_id) is None:
            raise NotFoundError('Supplier not found')
        if price.buy_price is None or price.buy_price < 0:
            raise BusinessLogicError('Buy price must be zero or more')
        if price.buy_unit == BuyUnit.PIECE:
            price.pack_size = 1
        if price.pack_size < 1:
            raise BusinessLogicError('Pack size must be at least 1')

        prices = [
            p for p in self._prices()
            if not (p.supplier_id == price.supplier_id and p.product_id == price.product_id)
        ]
        prices.append(price)
        self.store.set(store_service.SUPPLIER_PRICES, [p.to_dict() for p in prices])
        return price

    def delete_price(self, supplier_id: str, product_id: str) -> None:
        prices = [
            p for p in self._prices()
            if not (p.supplier_id == supplier_id and p.product_id == product_id)
        ]
        self.store.set(store_service.SUPPLIER_PRICES, [p.to_dict() for p in prices])

    def prices_by_supplier(self, supplier_id: str) -> List[SupplierPrice]:
        return [p for p in self._prices() if p.supplier_id == supplier_id]

    def prices_by_product(self, product_id: str) -> List[SupplierPrice]:
        return sorted(
            (p for p in self._prices() if p.product_id == product_id),
            key=lambda p: p.unit_cost
        )

    def cheapest_unit_cost(self, product_id: str) -> Optional[Decimal]:
        prices = self.prices_by_product(product_id)
        return prices[0].unit_cost if prices else None
