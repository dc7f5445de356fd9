"""Catalog Service - product list, stock quantities and barcode lookup."""

import enum
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Union

from minimart.exceptions import BusinessLogicError, DuplicateBarcodeError, NotFoundError
from minimart.models import Product, PackMatch
from minimart.services import store_service
from minimart.services.pricing_service import displayed_stock as _displayed_stock
from minimart.utils.number_format import money
from minimart.utils.time_utils import Clock, epoch_ms, now

logger = logging.getLogger(__name__)


class DuplicateResolution(str, enum.Enum):
    """What to do when a new product's barcode is already taken."""
    COMBINE = 'combine'
    EDIT = 'edit'
    CANCEL = 'cancel'


def validate_product(product: Product) -> None:
    """Reject incomplete products before they reach the catalog."""
    if not product.id:
        raise BusinessLogicError('Product id is required')
    if not product.name or not product.name.strip():
        raise BusinessLogicError('Product name is required')
    if product.price is None or product.price < 0:
        raise BusinessLogicError('Price must be zero or more')
    if product.cost is not None and product.cost < 0:
        raise BusinessLogicError('Cost must be zero or more')
    if product.parent_id:
        if product.parent_id == product.id:
            raise BusinessLogicError('A product cannot be its own bundle parent')
        if not product.pack_size or product.pack_size < 1:
            raise BusinessLogicError('Pack size must be at least 1')
    if product.wholesale_price is not None and product.wholesale_price <= 0:
        raise BusinessLogicError('Wholesale price must be greater than 0')
    if product.wholesale_qty is not None and product.wholesale_qty <= 0:
        raise BusinessLogicError('Wholesale quantity must be greater than 0')


class Catalog:
    """
    Authoritative product list.

    Stock is written exactly as asked; bundle children are resolved to their
    parent only on read (``displayed_stock``). Callers that move stock for a
    bundle child translate the quantity to the parent themselves.
    """

    def __init__(self, store: store_service.PersistentStore, clock: Clock = now):
        self.store = store
        self.clock = clock

    def _load(self) -> List[Product]:
        """Stored products; entries that cannot be read are skipped and logged."""
        products = []
        for data in self.store.get_list(store_service.PRODUCTS):
            try:
                products.append(Product.from_dict(data))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"[CATALOG] Skipping unreadable product {data!r}: {e}")
        return products

    def _save(self, products: List[Product]) -> None:
        self.store.set(store_service.PRODUCTS, [p.to_dict() for p in products])

    def get_all(self) -> List[Product]:
        return self._load()

    def get_by_id(self, product_id: str) -> Optional[Product]:
        return next((p for p in self._load() if p.id == product_id), None)

    def require(self, product_id: str) -> Product:
        product = self.get_by_id(product_id)
        if not product:
            raise NotFoundError(f'Product {product_id} not found')
        return product

    def get_by_barcode(self, code: str) -> Optional[Union[Product, PackMatch]]:
        """
        Resolve a scanned code.

        Unit barcodes win; a carton barcode returns a PackMatch whose ``qty``
        is the product's wholesale quantity.
        """
        code = (code or '').strip()
        if not code:
            return None
        products = self._load()
        for product in products:
            if product.barcode == code:
                return product
        for product in products:
            if product.pack_barcode == code:
                return PackMatch(product=product, qty=product.wholesale_qty or 1)
        return None

    def find_duplicate_barcode(self, barcode: str, exclude_id: Optional[str] = None) -> Optional[Product]:
        if not barcode:
            return None
        return next(
            (p for p in self._load() if p.barcode == barcode and p.id != exclude_id),
            None
        )

    def upsert(self, product: Product) -> Product:
        """Replace by id or append. No barcode checks happen here."""
        products = self._load()
        product.updated_at = epoch_ms(self.clock())
        for index, existing in enumerate(products):
            if existing.id == product.id:
                products[index] = product
                break
        else:
            products.append(product)
        self._save(products)
        return product

    def create(self, product: Product,
               on_duplicate: Optional[DuplicateResolution] = None) -> Optional[Product]:
        """
        Add a product, resolving a barcode clash first.

        A quick-sale placeholder holding the barcode is absorbed: the new
        product takes over its id and its negative stock is netted into the
        new quantity. Any other clash raises DuplicateBarcodeError unless a
        resolution is given.
        """
        validate_product(product)
        existing = self.find_duplicate_barcode(product.barcode, exclude_id=product.id)
        if existing is None and product.barcode:
            same_id = self.get_by_id(product.id)
            if same_id is not None and same_id.placeholder and same_id.barcode == product.barcode:
                existing = same_id

        if existing is None:
            return self.upsert(product)

        if existing.placeholder and existing.id == existing.barcode:
            logger.info(
                f"[CATALOG] Replacing placeholder {existing.id}: "
                f"netting {existing.stock} into {product.stock}"
            )
            product.stock += existing.stock
            product.id = existing.id
            product.placeholder = False
            return self.upsert(product)

        if on_duplicate is None:
            raise DuplicateBarcodeError(existing)
        if on_duplicate == DuplicateResolution.COMBINE:
            return self.combine_stock(existing.id, product.stock)
        if on_duplicate == DuplicateResolution.EDIT:
            return existing
        return None

    def delete(self, product_id: str) -> None:
        products = self._load()
        remaining = [p for p in products if p.id != product_id]
        if len(remaining) == len(products):
            raise NotFoundError(f'Product {product_id} not found')
        orphans = [p.name for p in remaining if p.parent_id == product_id]
        if orphans:
            logger.warning(f"[CATALOG] Deleted parent {product_id}; bundle children now show 0: {orphans}")
        self._save(remaining)

    def adjust_stock(self, product_id: str, delta: int) -> None:
        """``stock -= delta``. Unknown ids are ignored."""
        products = self._load()
        for product in products:
            if product.id == product_id:
                product.stock -= delta
                self._save(products)
                return
        logger.debug(f"[CATALOG] adjust_stock ignored for unknown product {product_id}")

    def combine_stock(self, product_id: str, added_qty: int) -> Product:
        product = self.require(product_id)
        product.stock += added_qty
        return self.upsert(product)

    def set_wholesale_price(self, product_id: str, price: Decimal) -> Product:
        """Persist a pack price learned at the counter."""
        if price is None or price <= 0:
            raise BusinessLogicError('Wholesale price must be greater than 0')
        product = self.require(product_id)
        product.wholesale_price = money(price)
        return self.upsert(product)

    # =====================================================
    # READ HELPERS
    # =====================================================

    def products_by_id(self) -> Dict[str, Product]:
        return {p.id: p for p in self._load()}

    def displayed_stock(self, product: Product,
                        products_by_id: Optional[Dict[str, Product]] = None) -> int:
        if products_by_id is None:
            products_by_id = self.products_by_id()
        return _displayed_stock(product, products_by_id)

    def search(self, query: str, limit: int = 20) -> List[Product]:
        query = (query or '').strip().lower()[:100]
        products = self._load()
        if not query:
            return sorted(products, key=lambda p: p.name)[:limit]
        exact = [p for p in products if p.barcode and p.barcode.lower() == query]
        if exact:
            return exact
        matches = [
            p for p in products
            if query in p.name.lower() or (p.barcode and query in p.barcode.lower())
        ]
        return sorted(matches, key=lambda p: p.name)[:limit]

    def list_group(self, group: str) -> List[Product]:
        return [p for p in self._load() if p.group and p.group == group]

    def groups(self) -> List[str]:
        return sorted({p.group for p in self._load() if p.group})

    def low_stock(self, threshold: int) -> List[Product]:
        products = self._load()
        by_id = {p.id: p for p in products}
        return [
            p for p in products
            if not p.placeholder and _displayed_stock(p, by_id) <= threshold
        ]

    def stock_value(self) -> Decimal:
        """
        Value of the inventory at cost: sum of stock * cost.

        Bundle children hold no stock of their own and are skipped; negative
        stock does not reduce the value.
        """
        total = Decimal('0')
        for product in self._load():
            if product.is_bundle_child or product.stock <= 0:
                continue
            total += product.stock * (product.cost or Decimal('0'))
        return money(total)
