"""
Fan-out of order updates to connected SSE clients.

Each subscriber owns a bounded queue of pre-serialized events. Publishing
never awaits: an event that cannot be queued (closed handle, full queue)
drops that subscriber only.
"""
import asyncio
import json
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from orderboard.core.logging import broadcast_logger
from orderboard.models.order import Order, utc_now_iso
from orderboard.services.errors import BroadcastWriteError

CONNECTED = "CONNECTED"
ORDER_UPDATE = "ORDER_UPDATE"


@dataclass
class Subscription:
    """One open event stream."""
    id: str
    queue: asyncio.Queue
    closed: bool = False
    created_at: str = field(default_factory=utc_now_iso)

    def send(self, message: str) -> None:
        if self.closed:
            raise BroadcastWriteError(f"Subscriber {self.id} is closed")
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            raise BroadcastWriteError(f"Subscriber {self.id} queue is full") from None

    async def next_message(self, timeout: Optional[float] = None) -> Optional[str]:
        """
        Wait for the next event. Returns None on timeout or once the
        subscription has been closed and drained.
        """
        if self.closed and self.queue.empty():
            return None
        try:
            if timeout is None:
                return await self.queue.get()
            return await asyncio.wait_for(self.queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        # Wake a reader blocked in next_message()
        try:
            self.queue.put_nowait(None)
        except asyncio.QueueFull:
            pass


def build_event(event_type: str, **fields: Any) -> Dict[str, Any]:
    return {"type": event_type, **fields}


class BroadcastHub:
    """Registry of subscribers keyed by a generated handle id."""

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._lock = threading.Lock()
        self._subscribers: Dict[str, Subscription] = {}

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """Register a new subscriber and queue the connection confirmation."""
        sub = Subscription(id=uuid.uuid4().hex, queue=asyncio.Queue(maxsize=self.queue_size))
        with self._lock:
            self._subscribers[sub.id] = sub
            count = len(self._subscribers)

        sub.send(json.dumps(build_event(CONNECTED, message="Connected to order updates")))
        broadcast_logger.info(f"Subscriber {sub.id} connected ({count} active)")
        return sub

    def unsubscribe(self, handle: Union[Subscription, str]) -> bool:
        """Remove a subscriber. Safe to call more than once."""
        sub_id = handle.id if isinstance(handle, Subscription) else handle
        with self._lock:
            sub = self._subscribers.pop(sub_id, None)
            count = len(self._subscribers)
        if sub is None:
            return False
        sub.close()
        broadcast_logger.info(f"Subscriber {sub_id} disconnected ({count} active)")
        return True

    def publish(self, order: Order) -> int:
        """
        Send ORDER_UPDATE to every subscriber registered right now.
        Returns how many subscribers accepted the event.
        """
        message = json.dumps(
            build_event(ORDER_UPDATE, data=order.to_payload(), timestamp=utc_now_iso())
        )
        with self._lock:
            targets = list(self._subscribers.values())

        delivered = 0
        for sub in targets:
            try:
                sub.send(message)
                delivered += 1
            except BroadcastWriteError as e:
                broadcast_logger.warning("Dropping subscriber after failed write", error=e, subscriber=sub.id)
                self.unsubscribe(sub)

        broadcast_logger.info(
            f"Broadcasted update for order {order.purchase_id} to {delivered} connections"
        )
        return delivered

    def close_all(self) -> None:
        with self._lock:
            subs = list(self._subscribers.values())
            self._subscribers.clear()
        for sub in subs:
            sub.close()
