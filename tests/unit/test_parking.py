"""
Unit tests for the parking queue and its trash.
"""

import itertools

import pytest
from decimal import Decimal

from minimart.exceptions import EmptyCartError, NotFoundError
from minimart.models import CartItem, Product
from minimart.services.parking_service import MAX_ACTIVE, MAX_TRASH, ParkingQueue


@pytest.fixture
def queue(store, clock):
    counter = itertools.count(1)
    return ParkingQueue(store, clock, id_factory=lambda: f'park-{next(counter)}')


def items(qty=1):
    product = Product(id='p-cola', name='Cola', price=Decimal('15'))
    return [CartItem.from_product(product, qty)]


def park_many(queue, clock, count):
    entries = []
    for n in range(count):
        clock.advance(minutes=1)
        entries.append(queue.park(items(), note=f'Bill {n}'))
    return entries


class TestPark:
    """Tests for parking carts."""

    def test_park_empty_cart(self, queue):
        with pytest.raises(EmptyCartError):
            queue.park([])

    def test_park_stores_note_and_timestamp(self, queue, clock):
        entry = queue.park(items(2), note='  Table 5 ')
        assert entry.note == 'Table 5'
        assert entry.timestamp == int(clock().timestamp() * 1000)
        assert queue.get(entry.id).items[0].qty == 2

    def test_sixth_park_evicts_oldest(self, queue, clock):
        entries = park_many(queue, clock, MAX_ACTIVE)
        clock.advance(minutes=1)
        newest = queue.park(items(), note='Sixth')

        active = queue.list_active()
        assert len(active) == MAX_ACTIVE
        assert entries[0].id not in [c.id for c in active]
        assert newest.id in [c.id for c in active]
        assert [c.id for c in queue.list_trash()] == [entries[0].id]

    def test_eviction_follows_timestamp_not_insertion(self, queue, clock):
        for n in range(MAX_ACTIVE):
            queue.park(items(), timestamp=10_000 - n)
        oldest = min(queue.list_active(), key=lambda c: c.timestamp)

        queue.park(items(), timestamp=20_000)

        assert oldest.id not in [c.id for c in queue.list_active()]
        assert queue.list_trash()[0].id == oldest.id

    def test_active_sorted_ascending(self, queue):
        queue.park(items(), timestamp=300)
        queue.park(items(), timestamp=100)
        queue.park(items(), timestamp=200)
        assert [c.timestamp for c in queue.list_active()] == [100, 200, 300]

    def test_rename(self, queue):
        entry = queue.park(items(), note='Old')
        queue.rename(entry.id, 'New')
        assert queue.get(entry.id).note == 'New'


class TestRestore:
    """Tests for taking carts back out of the queue."""

    def test_restore_only_once(self, queue):
        entry = queue.park(items())
        restored = queue.restore(entry.id)
        assert restored.id == entry.id
        assert queue.count() == 0

        with pytest.raises(NotFoundError):
            queue.restore(entry.id)

    def test_remove_moves_to_trash(self, queue):
        entry = queue.park(items())
        queue.remove(entry.id)
        assert queue.count() == 0
        assert [c.id for c in queue.list_trash()] == [entry.id]


class TestTrash:
    """Tests for the bounded trash."""

    def test_trash_keeps_newest(self, queue, clock):
        entries = []
        for _ in range(MAX_TRASH + 1):
            clock.advance(minutes=1)
            entry = queue.park(items())
            queue.remove(entry.id)
            entries.append(entry)

        trash = queue.list_trash()
        assert len(trash) == MAX_TRASH
        assert entries[0].id not in [c.id for c in trash]
        # newest first
        assert trash[0].id == entries[-1].id
        assert [c.timestamp for c in trash] == sorted((c.timestamp for c in trash), reverse=True)

    def test_restore_from_trash_ignores_capacity(self, queue, clock):
        entries = park_many(queue, clock, MAX_ACTIVE)
        queue.remove(entries[0].id)
        clock.advance(minutes=1)
        queue.park(items())
        assert queue.count() == MAX_ACTIVE

        queue.restore_from_trash(entries[0].id)

        assert queue.count() == MAX_ACTIVE + 1
        assert queue.list_trash() == []
        assert queue.list_active()[0].id == entries[0].id

    def test_delete_permanently(self, queue):
        entry = queue.park(items())
        queue.remove(entry.id)
        queue.delete_permanently(entry.id)
        assert queue.list_trash() == []

        with pytest.raises(NotFoundError):
            queue.delete_permanently(entry.id)

    def test_clear_trash(self, queue, clock):
        for entry in park_many(queue, clock, 3):
            queue.remove(entry.id)
        assert queue.clear_trash() == 3
        assert queue.list_trash() == []
