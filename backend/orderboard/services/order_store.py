"""
Process-local order store.

Keyed by purchase id; insertion order is preserved and an upsert of an
existing order replaces it in place. Every operation runs under one lock so
readers never see a half-applied upsert.
"""
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional, Tuple

from orderboard.core.logging import store_logger
from orderboard.models.order import Order


class OrderStore(ABC):
    """What the ingest pipeline needs from a store."""

    @abstractmethod
    def upsert(self, order: Order) -> Order:
        ...

    @abstractmethod
    def get(self, purchase_id: str) -> Optional[Order]:
        ...

    @abstractmethod
    def list(self) -> Tuple[Order, ...]:
        ...

    @abstractmethod
    def replace_all(self, orders: Iterable[Order]) -> int:
        ...


class InMemoryOrderStore(OrderStore):

    def __init__(self):
        self._lock = threading.Lock()
        # purchase_id -> Order
        self._orders: Dict[str, Order] = {}
        # id -> purchase_id
        self._ids: Dict[str, str] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._orders)

    def upsert(self, order: Order) -> Order:
        """
        Replace the order with the same purchase id (or, failing that, the
        same id) in place, else append. The stored id of an existing order
        never changes. Returns the order as stored.
        """
        with self._lock:
            return self._upsert_locked(order)

    def _upsert_locked(self, order: Order) -> Order:
        key = order.purchase_id

        if key in self._orders:
            current = self._orders[key]
            if order.id != current.id:
                order = order.model_copy(update={"id": current.id})
            self._orders[key] = order
            store_logger.debug(f"Updated order {key}")
            return order

        old_key = self._ids.get(order.id)
        if old_key is not None:
            # Same card, purchase id edited: re-key without moving it
            self._orders = {
                (key if k == old_key else k): (order if k == old_key else v)
                for k, v in self._orders.items()
            }
            self._ids[order.id] = key
            store_logger.debug(f"Re-keyed order {order.id}: {old_key} -> {key}")
            return order

        self._orders[key] = order
        self._ids[order.id] = key
        store_logger.debug(f"Created order {key}")
        return order

    def get(self, purchase_id: str) -> Optional[Order]:
        with self._lock:
            return self._orders.get(purchase_id)

    def list(self) -> Tuple[Order, ...]:
        """Snapshot of all orders in insertion order."""
        with self._lock:
            return tuple(self._orders.values())

    def replace_all(self, orders: Iterable[Order]) -> int:
        """Swap the whole content (startup hydration). Later duplicates win."""
        with self._lock:
            self._orders = {}
            self._ids = {}
            for order in orders:
                self._upsert_locked(order)
            count = len(self._orders)
        store_logger.info(f"Store loaded with {count} orders")
        return count

    def clear(self) -> None:
        with self._lock:
            self._orders = {}
            self._ids = {}
