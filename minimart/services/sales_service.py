"""
Sales Service - the log of settled bills and their stock effects.

Sales are keyed by bill id. Recording a sale whose bill id is already stored
overwrites that record (the historical-edit path); recording one without a
bill id issues a new number and appends.
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from minimart.models import CartItem, Sale
from minimart.services import store_service
from minimart.services.bill_id_service import BillIdGenerator, parse_bill_id
from minimart.services.catalog_service import Catalog
from minimart.services.pricing_service import sale_cost
from minimart.services.settings_service import SettingsStore
from minimart.utils.number_format import money
from minimart.utils.time_utils import Clock, now, to_iso

logger = logging.getLogger(__name__)


class SalesLedger:
    """Append/overwrite log of sales."""

    def __init__(self, store: store_service.PersistentStore, bill_ids: BillIdGenerator,
                 settings: SettingsStore, clock: Clock = now):
        self.store = store
        self.bill_ids = bill_ids
        self.settings = settings
        self.clock = clock

    def _load(self) -> List[dict]:
        return self.store.get_list(store_service.SALES)

    def record(self, sale: Union[Sale, Mapping]) -> Sale:
        """
        Write a sale.

        Overwrites merge: fields missing from ``sale`` keep their stored
        values. The current store name is snapshotted on every write.
        """
        payload = sale.to_dict(drop_empty=True) if isinstance(sale, Sale) else {
            k: v for k, v in dict(sale).items() if v is not None
        }
        payload['storeName'] = self.settings.store_name()

        sales = self._load()
        bill_id = payload.get('billId')

        if bill_id:
            for index, existing in enumerate(sales):
                if existing.get('billId') == bill_id:
                    merged = {**existing, **payload}
                    sales[index] = merged
                    self.store.set(store_service.SALES, sales)
                    logger.info(f"[SALES] Overwrote bill {bill_id}")
                    return Sale.from_dict(merged)

            # A known id that is not stored (restored or re-keyed bill)
            parsed = parse_bill_id(bill_id)
            if parsed:
                self.bill_ids.ensure_at_least(*parsed)
        else:
            stored_ids = {existing.get('billId') for existing in sales}
            bill_id = self.bill_ids.next_bill_id()
            while bill_id in stored_ids:
                logger.warning(f"[SALES] Bill {bill_id} is already recorded, skipping it")
                bill_id = self.bill_ids.next_bill_id()
            payload['billId'] = bill_id

        payload.setdefault('date', to_iso(self.clock()))
        sales.append(payload)
        self.store.set(store_service.SALES, sales)
        logger.info(f"[SALES] Recorded bill {payload['billId']} total={payload.get('total')}")
        return Sale.from_dict(payload)

    def find_by_id(self, bill_id: str) -> Optional[Sale]:
        for data in self._load():
            if isinstance(data, dict) and data.get('billId') == bill_id:
                return read_sale(data)
        return None

    def list_all(self) -> List[Sale]:
        """Sales in storage order; unreadable records are skipped."""
        sales = (read_sale(data) for data in self._load())
        return [sale for sale in sales if sale is not None]

    def list_sorted(self, descending: bool = True) -> List[Sale]:
        """Newest first for history screens, oldest first for reports."""
        sales = self.list_all()
        undated = [s for s in sales if s.date is None]
        dated = sorted((s for s in sales if s.date is not None), key=lambda s: s.date, reverse=descending)
        return dated + undated if descending else undated + dated


def read_sale(data) -> Optional[Sale]:
    """Parse a stored sale, or log and return None when it cannot be read."""
    try:
        return Sale.from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.warning(f"[SALES] Skipping unreadable sale {data!r}: {e}")
        return None


def stock_effects(items: Iterable[CartItem]) -> List[Tuple[str, int]]:
    """
    Stock deltas a settlement applies, as (product_id, units).

    Bundle children draw ``qty * pack_size`` from their parent instead of
    touching their own record.
    """
    effects = []
    for item in items:
        if item.is_bundle_child:
            effects.append((item.parent_id, item.qty * item.pack_size))
        else:
            effects.append((item.id, item.qty))
    return effects


def apply_stock_effect(catalog: Catalog, items: Iterable[CartItem], reverse: bool = False) -> None:
    """Deduct the lines from stock, or put them back with ``reverse``."""
    sign = -1 if reverse else 1
    for product_id, units in stock_effects(items):
        catalog.adjust_stock(product_id, sign * units)


def summarize(sales: Iterable[Sale]) -> Dict[str, Decimal]:
    """Count, revenue, cost and gross profit over a set of sales."""
    count = 0
    revenue = Decimal('0')
    cost = Decimal('0')
    for sale in sales:
        count += 1
        revenue += sale.total
        cost += sale_cost(sale.items)
    return {
        'count': count,
        'revenue': money(revenue),
        'cost': money(cost),
        'profit': money(revenue - cost),
    }
