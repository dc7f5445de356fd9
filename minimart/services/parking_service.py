"""
Parking Service - suspended carts and the parking trash.

At most MAX_ACTIVE carts are parked at once, oldest first by timestamp.
Parking into a full queue moves the single oldest entry to the trash before
the new one is inserted. The trash keeps the MAX_TRASH newest entries.
"""

import logging
import uuid
from typing import Callable, List, Optional

from minimart.exceptions import EmptyCartError, NotFoundError
from minimart.models import CartItem, ParkedCart
from minimart.services import store_service
from minimart.utils.time_utils import Clock, epoch_ms, now

logger = logging.getLogger(__name__)

MAX_ACTIVE = 5
MAX_TRASH = 10


def _new_parked_id() -> str:
    return uuid.uuid4().hex[:16]


class ParkingQueue:
    """
    Bounded FIFO of parked carts backed by two store collections.

    Moves between the active set and the trash write the destination
    collection first: an interrupted move leaves a duplicate, never a loss.
    """

    def __init__(self, store: store_service.PersistentStore, clock: Clock = now,
                 id_factory: Callable[[], str] = _new_parked_id):
        self.store = store
        self.clock = clock
        self.id_factory = id_factory

    # =====================================================
    # STORAGE
    # =====================================================

    def _load(self, key: str) -> List[ParkedCart]:
        return [ParkedCart.from_dict(c) for c in self.store.get_list(key)]

    def _save(self, key: str, carts: List[ParkedCart]) -> None:
        self.store.set(key, [c.to_dict() for c in carts])

    def list_active(self) -> List[ParkedCart]:
        """Active parked carts, oldest first."""
        return sorted(self._load(store_service.PARKED_CARTS), key=lambda c: c.timestamp)

    def list_trash(self) -> List[ParkedCart]:
        """Trash entries, newest first."""
        return sorted(self._load(store_service.PARKED_TRASH), key=lambda c: c.timestamp, reverse=True)

    def count(self) -> int:
        return len(self._load(store_service.PARKED_CARTS))

    def get(self, parked_id: str) -> Optional[ParkedCart]:
        return next((c for c in self.list_active() if c.id == parked_id), None)

    def _push_trash(self, entry: ParkedCart) -> None:
        trash = [c for c in self.list_trash() if c.id != entry.id]
        trash.append(entry)
        trash.sort(key=lambda c: c.timestamp, reverse=True)
        dropped = trash[MAX_TRASH:]
        if dropped:
            logger.info(f"[PARKING] Trash full, dropping {[c.id for c in dropped]}")
        self._save(store_service.PARKED_TRASH, trash[:MAX_TRASH])

    # =====================================================
    # ACTIVE QUEUE
    # =====================================================

    def park(self, items: List[CartItem], note: str = '',
             timestamp: Optional[int] = None) -> ParkedCart:
        """
        Park a cart.

        ``timestamp`` keeps the original queue position of a bill that was
        restored and is being parked again.
        """
        if not items:
            raise EmptyCartError('Add items to the cart before parking it')

        entry = ParkedCart(
            id=self.id_factory(),
            timestamp=timestamp if timestamp is not None else epoch_ms(self.clock()),
            note=(note or '').strip(),
            items=list(items),
        )

        active = self.list_active()
        if len(active) >= MAX_ACTIVE:
            oldest = active[0]
            logger.info(f"[PARKING] Queue full, evicting {oldest.id} ({oldest.note or 'no note'}) to trash")
            self._push_trash(oldest)
            active = active[1:]

        active.append(entry)
        active.sort(key=lambda c: c.timestamp)
        self._save(store_service.PARKED_CARTS, active)
        logger.info(f"[PARKING] Parked {entry.id} with {len(entry.items)} lines")
        return entry

    def restore(self, parked_id: str) -> ParkedCart:
        """Take a parked cart out of the queue; it can only be taken once."""
        active = self.list_active()
        entry = next((c for c in active if c.id == parked_id), None)
        if entry is None:
            raise NotFoundError('Parked bill not found')
        self._save(store_service.PARKED_CARTS, [c for c in active if c.id != parked_id])
        return entry

    def remove(self, parked_id: str) -> ParkedCart:
        """Soft delete: move a parked cart to the trash."""
        active = self.list_active()
        entry = next((c for c in active if c.id == parked_id), None)
        if entry is None:
            raise NotFoundError('Parked bill not found')
        self._push_trash(entry)
        self._save(store_service.PARKED_CARTS, [c for c in active if c.id != parked_id])
        return entry

    def rename(self, parked_id: str, note: str) -> ParkedCart:
        active = self.list_active()
        entry = next((c for c in active if c.id == parked_id), None)
        if entry is None:
            raise NotFoundError('Parked bill not found')
        entry.note = (note or '').strip()
        self._save(store_service.PARKED_CARTS, active)
        return entry

    # =====================================================
    # TRASH
    # =====================================================

    def restore_from_trash(self, parked_id: str) -> ParkedCart:
        """
        Move a trash entry back to the active queue.

        The capacity limit is not applied here; a full queue only gives up
        its oldest entry on the next park.
        """
        trash = self.list_trash()
        entry = next((c for c in trash if c.id == parked_id), None)
        if entry is None:
            raise NotFoundError('Trash entry not found')
        active = [c for c in self.list_active() if c.id != parked_id]
        active.append(entry)
        active.sort(key=lambda c: c.timestamp)
        self._save(store_service.PARKED_CARTS, active)
        self._save(store_service.PARKED_TRASH, [c for c in trash if c.id != parked_id])
        return entry

    def delete_permanently(self, parked_id: str) -> None:
        trash = self.list_trash()
        remaining = [c for c in trash if c.id != parked_id]
        if len(remaining) == len(trash):
            raise NotFoundError('Trash entry not found')
        self._save(store_service.PARKED_TRASH, remaining)

    def clear_trash(self) -> int:
        count = len(self.list_trash())
        self._save(store_service.PARKED_TRASH, [])
        return count
