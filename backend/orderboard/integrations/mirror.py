"""
Persistence mirror interface and row conversion.

A mirror is a best-effort copy of the store in an external table. It is never
the source of truth for a running process: callers log its failures and
carry on.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from orderboard.db.enums import BraipStatus, OrderStatus
from orderboard.models.order import Order, today_iso, utc_now_iso
from orderboard.services.status_mapper import map_vendor_status, parse_vendor_status

UNKNOWN_LOCATION = "Localização não informada"

_BOARD_STATUSES = {s.value for s in OrderStatus}


class OrderMirror(ABC):
    name = "abstract"

    async def start(self) -> None:
        """Prepare the backend (create tables, open pools)."""

    async def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def upsert(self, order: Order) -> None:
        """Write one order keyed by purchase_id. Raises PersistenceMirrorError."""

    @abstractmethod
    async def select(self) -> List[Dict[str, Any]]:
        """All rows, most recently updated first. Raises PersistenceMirrorError."""

    @abstractmethod
    async def ping(self) -> None:
        """Cheap reachability check. Raises PersistenceMirrorError."""


class NullMirror(OrderMirror):
    """No external table: the in-memory store is all there is."""
    name = "none"

    async def upsert(self, order: Order) -> None:
        return None

    async def select(self) -> List[Dict[str, Any]]:
        return []

    async def ping(self) -> None:
        return None


def order_to_row(order: Order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "purchase_id": order.purchase_id,
        "buyer_name": order.buyer_name,
        "buyer_phone": order.phone_number,
        "product_title": order.product,
        "tracking_code": order.tracking_code,
        "quantity": order.quantity,
        "product_value": order.product_value,
        "purchase_date": order.purchase_date,
        "current_location": order.current_location,
        "observations": order.observations,
        "status": order.status.value,
        "braip_status": order.braip_status.value if order.braip_status else None,
        "updated_at": order.updated_at,
    }


def row_to_order(row: Dict[str, Any]) -> Order:
    """
    Rebuild an Order from a mirror row.

    Older rows store the Braip code in `status`; those go through the status
    mapper and raise UnrecognizedVendorStatus when the code is unknown.
    """
    raw_status = row.get("status")
    braip_raw = row.get("braip_status")
    location = row.get("current_location")

    if raw_status in _BOARD_STATUSES:
        status = OrderStatus(raw_status)
    else:
        mapped = map_vendor_status(raw_status)
        status = mapped.status
        braip_raw = braip_raw or raw_status
        location = location or mapped.location

    braip_status: Optional[BraipStatus] = parse_vendor_status(braip_raw) if braip_raw else None

    updated_at = row.get("updated_at")
    if updated_at is not None and not isinstance(updated_at, str):
        updated_at = updated_at.isoformat()

    purchase_id = str(row["purchase_id"])
    return Order(
        id=str(row.get("id") or purchase_id),
        purchase_id=purchase_id,
        buyer_name=row.get("buyer_name") or "",
        phone_number=row.get("buyer_phone"),
        product=row.get("product_title"),
        quantity=row.get("quantity") if row.get("quantity") is not None else 1,
        product_value=row.get("product_value") if row.get("product_value") is not None else 0,
        purchase_date=row.get("purchase_date") or today_iso(),
        observations=row.get("observations"),
        tracking_code=row.get("tracking_code"),
        current_location=location or UNKNOWN_LOCATION,
        status=status,
        braip_status=braip_status,
        updated_at=updated_at or utc_now_iso(),
    )
