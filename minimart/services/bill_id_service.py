"""Bill ID Service - date-scoped sequential bill numbers (B{YY}{MM}{DD}-{NNN})."""

import logging
import re
from datetime import date
from typing import Dict, Optional, Tuple

from minimart.services import store_service
from minimart.utils.time_utils import Clock, now

logger = logging.getLogger(__name__)

BILL_ID_PATTERN = re.compile(r"^(B\d{6})-(\d{3,})$")


def bill_prefix(day: date) -> str:
    return f"B{day:%y%m%d}"


def format_bill_id(prefix: str, seq: int) -> str:
    return f"{prefix}-{seq:03d}"


def parse_bill_id(bill_id: str) -> Optional[Tuple[str, int]]:
    """Split a bill id into (prefix, sequence); None if it is not one of ours."""
    if not isinstance(bill_id, str):
        return None
    match = BILL_ID_PATTERN.match(bill_id)
    if not match:
        return None
    return match.group(1), int(match.group(2))


class BillIdGenerator:
    """
    One counter per calendar day, stored under ``bill_counter:{prefix}``.

    Counters only move forward. Gaps are fine (an aborted settlement may
    burn a number); reuse is not.
    """

    def __init__(self, store: store_service.PersistentStore, clock: Clock = now):
        self.store = store
        self.clock = clock

    def _key(self, prefix: str) -> str:
        return f"{store_service.BILL_COUNTER_PREFIX}{prefix}"

    def current(self, prefix: str) -> int:
        value = self.store.get(self._key(prefix), 0)
        return value if isinstance(value, int) and value > 0 else 0

    def highest_recorded(self, prefix: str) -> int:
        """Highest sequence of the day already used by a stored sale."""
        highest = 0
        for sale in self.store.get_list(store_service.SALES):
            parsed = parse_bill_id(sale.get('billId') if isinstance(sale, dict) else None)
            if parsed and parsed[0] == prefix:
                highest = max(highest, parsed[1])
        return highest

    def next_bill_id(self) -> str:
        """
        Issue the next number of today.

        A lost or corrupt counter is never trusted below the sales already
        recorded for the day.
        """
        prefix = bill_prefix(self.clock().date())
        seq = max(self.current(prefix), self.highest_recorded(prefix)) + 1
        self.store.set(self._key(prefix), seq)
        bill_id = format_bill_id(prefix, seq)
        logger.debug(f"[BILLS] Issued {bill_id}")
        return bill_id

    def ensure_at_least(self, prefix: str, seq: int) -> None:
        """Raise a day's counter so ``seq`` is never issued again."""
        if seq > self.current(prefix):
            self.store.set(self._key(prefix), seq)

    def counters(self) -> Dict[str, int]:
        offset = len(store_service.BILL_COUNTER_PREFIX)
        return {
            key[offset:]: self.current(key[offset:])
            for key in self.store.keys(store_service.BILL_COUNTER_PREFIX)
        }

    def restore_counters(self, counters: Dict[str, int]) -> None:
        """Replace every day counter with the given ones."""
        for key in self.store.keys(store_service.BILL_COUNTER_PREFIX):
            self.store.delete(key)
        for prefix, seq in (counters or {}).items():
            try:
                seq = int(seq)
            except (TypeError, ValueError):
                logger.warning(f"[BILLS] Skipping invalid counter {prefix}={seq!r}")
                continue
            if seq > 0:
                self.store.set(self._key(prefix), seq)
