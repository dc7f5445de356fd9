"""
Register Service - the counter workflow on top of the ledger.

One Register owns one Cart and ties it to the Catalog, the Parking Queue, the
Sales Ledger and the bill numbering:

- settling turns the cart into a Sale and moves stock;
- re-opening a recorded sale puts its stock back and reloads its lines, and
  the next settlement overwrites the same bill;
- parking and restoring move the cart in and out of the queue.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from minimart.exceptions import (
    BusinessLogicError, EmptyCartError, InsufficientStockError, NotFoundError,
    SettlementInProgressError
)
from minimart.models import CartItem, PackMatch, ParkedCart, Product, Sale
from minimart.services import store_service
from minimart.services.bill_id_service import BillIdGenerator
from minimart.services.cart_service import Cart
from minimart.services.catalog_service import Catalog, validate_product
from minimart.services.parking_service import MAX_ACTIVE, ParkingQueue
from minimart.services.pricing_service import WholesalePromptLatch, line_total
from minimart.services.sales_service import SalesLedger, apply_stock_effect
from minimart.services.settings_service import SettingsStore
from minimart.services.supplier_service import SupplierDirectory
from minimart.utils.number_format import money, parse_decimal
from minimart.utils.time_utils import Clock, now

logger = logging.getLogger(__name__)


@dataclass
class CartAddResult:
    """Outcome of putting something in the cart."""
    item: CartItem
    prompt_wholesale: bool = False
    stock_warning: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'item': self.item.to_dict(),
            'promptWholesale': self.prompt_wholesale,
            'stockWarning': self.stock_warning,
        }


class Register:
    """
    Point-of-sale register bound to one store.

    Args:
        store: persistent store every collection is read from and written to
        clock: returns the current local time; injected by tests
        strict_stock: refuse to sell more than the displayed stock
        default_store_name: store name used until settings are saved
        on_settled: called with every recorded sale
        on_evicted: called with a parked cart pushed to the trash by a full queue
    """

    def __init__(self, store: store_service.PersistentStore, clock: Clock = now,
                 strict_stock: bool = False, default_store_name: str = '',
                 parked_id_factory: Optional[Callable[[], str]] = None,
                 on_settled: Optional[Callable[[Sale], None]] = None,
                 on_evicted: Optional[Callable[[ParkedCart], None]] = None):
        self.store = store
        self.clock = clock
        self.strict_stock = strict_stock
        self.on_settled = on_settled
        self.on_evicted = on_evicted

        store_service.migrate_store(store)

        self.catalog = Catalog(store, clock)
        if parked_id_factory:
            self.parking = ParkingQueue(store, clock, parked_id_factory)
        else:
            self.parking = ParkingQueue(store, clock)
        self.bill_ids = BillIdGenerator(store, clock)
        self.settings = SettingsStore(store, default_store_name)
        self.sales = SalesLedger(store, self.bill_ids, self.settings, clock)
        self.suppliers = SupplierDirectory(store)

        self.cart = Cart()
        self.wholesale_latch = WholesalePromptLatch()
        self._settle_lock = threading.Lock()

    # =====================================================
    # CART
    # =====================================================

    def _stock_warning(self, product: Product, requested: int) -> Optional[str]:
        """
        Compare a requested line quantity with the displayed stock.

        Placeholders always sell; everything else warns, or raises under
        strict stock.
        """
        if product.placeholder:
            return None
        available = self.catalog.displayed_stock(product)
        if requested <= available:
            return None
        if self.strict_stock:
            raise InsufficientStockError(product.name, requested, available)
        return f"Only {available} of {product.name} in stock"

    def add_to_cart(self, product_id: Optional[str] = None, barcode: Optional[str] = None,
                    qty: int = 1) -> CartAddResult:
        """
        Add a product by id or by scanned barcode.

        A carton barcode adds ``wholesale_qty`` units per scan.
        """
        qty = int(qty)
        if qty < 1:
            raise BusinessLogicError('Quantity must be at least 1')

        if product_id:
            product = self.catalog.require(product_id)
        elif barcode:
            match = self.catalog.get_by_barcode(barcode)
            if match is None:
                raise NotFoundError(f'No product with barcode {barcode}', payload={'barcode': barcode})
            if isinstance(match, PackMatch):
                product = match.product
                qty = qty * match.qty
            else:
                product = match
        else:
            raise BusinessLogicError('A product id or barcode is required')

        line = self.cart.find(product.id)
        warning = self._stock_warning(product, (line.qty if line else 0) + qty)
        item = self.cart.add(product, qty)
        return CartAddResult(
            item=item,
            prompt_wholesale=self.wholesale_latch.should_prompt(item),
            stock_warning=warning,
        )

    def quick_sale(self, barcode: str, price, name: Optional[str] = None,
                   qty: int = 1) -> CartAddResult:
        """
        Sell a barcode the catalog does not know yet.

        A placeholder product (id == barcode, stock 0) is created so the sale
        can move its stock negative; adding the real product later absorbs it.
        An existing product is never overwritten: a code that is some
        product's id sells that product.
        """
        barcode = (barcode or '').strip()
        if not barcode:
            raise BusinessLogicError('Barcode is required')
        try:
            price = money(parse_decimal(price))
        except ValueError:
            raise BusinessLogicError('Price must be a number')
        if self.catalog.get_by_barcode(barcode) is not None:
            return self.add_to_cart(barcode=barcode, qty=qty)
        # The code is still the id of a product whose barcode was changed
        if self.catalog.get_by_id(barcode) is not None:
            logger.info(f"[SALES] Quick sale {barcode} matched a product id, selling it")
            return self.add_to_cart(product_id=barcode, qty=qty)

        placeholder = Product(
            id=barcode,
            barcode=barcode,
            name=(name or '').strip() or f'Item {barcode}',
            price=price,
            stock=0,
            placeholder=True,
        )
        validate_product(placeholder)
        self.catalog.upsert(placeholder)
        logger.info(f"[SALES] Quick sale placeholder created for {barcode}")
        return self.add_to_cart(product_id=placeholder.id, qty=qty)

    def set_qty(self, index: int, qty: int) -> Optional[CartAddResult]:
        """Set a line's quantity; zero or less removes it and returns None."""
        qty = int(qty)
        if qty <= 0:
            self.remove_line(index)
            return None
        line = self.cart.line(index)
        product = self.catalog.get_by_id(line.id)
        warning = None
        if product is not None and qty > line.qty:
            warning = self._stock_warning(product, qty)
        item = self.cart.set_qty(index, qty)
        return CartAddResult(
            item=item,
            prompt_wholesale=self.wholesale_latch.should_prompt(item),
            stock_warning=warning,
        )

    def remove_line(self, index: int) -> CartItem:
        """
        Drop a line. Emptying the cart of a sale being edited abandons the
        edit, so the reversed stock effect is put back.
        """
        if self.cart.editing_sale and len(self.cart.items) == 1:
            line = self.cart.line(index)
            self.abandon_edit()
            return line
        return self.cart.remove(index)

    def clear_cart(self) -> None:
        if self.cart.editing_sale:
            self.abandon_edit()
            return
        self.cart.clear()

    def supply_wholesale_price(self, product_id: str, price) -> Product:
        """Answer the wholesale prompt: persist the pack price and reprice the cart."""
        try:
            price = parse_decimal(price)
        except ValueError:
            raise BusinessLogicError('Wholesale price must be a number')
        product = self.catalog.set_wholesale_price(product_id, price)
        self.cart.apply_wholesale_price(product_id, product.wholesale_price)
        return product

    # =====================================================
    # PARKING
    # =====================================================

    def park_cart(self, note: str = '') -> ParkedCart:
        """
        Park the current cart and empty it.

        A cart restored from the queue goes back under its old note and
        timestamp, so it keeps its place.
        """
        if self.cart.editing_sale:
            raise BusinessLogicError('A recorded sale being edited cannot be parked')
        if self.cart.is_empty:
            raise EmptyCartError('Add items to the cart before parking it')

        timestamp = None
        if self.cart.active_bill:
            note = self.cart.active_bill.note
            timestamp = self.cart.active_bill.timestamp

        evicted = self.parking.list_active()[0] if self.parking.count() >= MAX_ACTIVE else None
        entry = self.parking.park(self.cart.items, note, timestamp)
        if evicted is not None and self.on_evicted:
            self.on_evicted(evicted)

        self.cart.clear()
        return entry

    def restore_parked(self, parked_id: str, replace: bool = False) -> ParkedCart:
        if not self.cart.is_empty and not replace:
            raise BusinessLogicError('The cart is not empty', payload={'cartItems': len(self.cart.items)})
        if self.cart.editing_sale:
            self.abandon_edit()
        entry = self.parking.restore(parked_id)
        self.cart.load_parked(entry)
        self.wholesale_latch.reset()
        return entry

    # =====================================================
    # SETTLEMENT
    # =====================================================

    def settle(self, received=None) -> Sale:
        """
        Turn the cart into a Sale.

        Line totals are frozen, stock moves (bundle lines draw on their
        parent), the sale is recorded and the cart emptied. While a
        settlement runs a second one is refused.
        """
        if not self._settle_lock.acquire(blocking=False):
            raise SettlementInProgressError()
        try:
            if self.cart.is_empty:
                raise EmptyCartError()

            total = self.cart.total()
            try:
                received = total if received in (None, '') else money(parse_decimal(received))
            except ValueError:
                raise BusinessLogicError('Amount received must be a number')
            if received < total:
                raise BusinessLogicError(
                    'Amount received is less than the total',
                    payload={'total': str(total), 'received': str(received)}
                )

            for item in self.cart.items:
                item.final_line_total = line_total(item)

            editing = self.cart.editing_sale
            sale = Sale(
                bill_id=editing.bill_id if editing else None,
                date=editing.sale_date if editing else self.clock(),
                items=list(self.cart.items),
                total=total,
                received=received,
                change=money(received - total),
            )

            apply_stock_effect(self.catalog, sale.items)
            sale = self.sales.record(sale)

            self.cart.clear()
            self.wholesale_latch.reset()
            if self.on_settled:
                self.on_settled(sale)
            logger.info(f"[SALES] Settled {sale.bill_id} total={sale.total} change={sale.change}")
            return sale
        finally:
            self._settle_lock.release()

    # =====================================================
    # HISTORICAL EDIT
    # =====================================================

    def begin_edit_sale(self, bill_id: str, replace: bool = False) -> Sale:
        """
        Re-open a recorded sale.

        Its stock effect is reversed now; settling re-applies the edited lines
        under the same bill id and date.
        """
        sale = self.sales.find_by_id(bill_id)
        if sale is None:
            raise NotFoundError(f'Bill {bill_id} not found')
        if not self.cart.is_empty and not replace:
            raise BusinessLogicError('The cart is not empty', payload={'cartItems': len(self.cart.items)})
        if self.cart.editing_sale:
            self.abandon_edit()

        apply_stock_effect(self.catalog, sale.items, reverse=True)
        self.cart.load_sale(sale)
        self.wholesale_latch.reset()
        logger.info(f"[SALES] Editing {bill_id}: stock effect reversed")
        return sale

    def abandon_edit(self) -> None:
        """Drop an edit in progress and put the original stock effect back."""
        editing = self.cart.editing_sale
        if editing is None:
            raise BusinessLogicError('No recorded sale is being edited')
        sale = self.sales.find_by_id(editing.bill_id)
        if sale is not None:
            apply_stock_effect(self.catalog, sale.items)
        self.cart.clear()
        logger.info(f"[SALES] Edit of {editing.bill_id} abandoned")
