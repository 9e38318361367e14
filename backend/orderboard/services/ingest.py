"""
Order ingest pipeline.

Webhook events, manual saves and drag-and-drop status changes all end in the
same commit: store upsert -> mirror (best effort) -> broadcast.
"""
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from orderboard.core.logging import log_operation, mirror_logger, webhook_logger
from orderboard.db.enums import ORDER_STATUS_LABELS, OrderStatus
from orderboard.integrations.mirror import OrderMirror, row_to_order
from orderboard.models.order import (
    BraipWebhookPayload,
    Order,
    OrderIn,
    StatusChange,
    today_iso,
    utc_now_iso,
)
from orderboard.realtime.broadcast import BroadcastHub
from orderboard.services.errors import (
    OrderNotFound,
    PersistenceMirrorError,
    UnrecognizedVendorStatus,
    ValidationError,
)
from orderboard.services.order_store import OrderStore
from orderboard.services.status_mapper import map_vendor_status

WEBHOOK_KEYS = ("purchase_id", "buyer_name")

_BOARD_STATUSES = {s.value for s in OrderStatus}


def is_webhook_payload(data: Dict[str, Any]) -> bool:
    """
    Braip posts snake_case keys and a vendor status. A snake_case body whose
    status is a board column is a manual save.
    """
    status = data.get("status")
    if isinstance(status, str) and status in _BOARD_STATUSES:
        return False
    return any(key in data for key in WEBHOOK_KEYS)


def _webhook_validation_error(data: Dict[str, Any], exc: PydanticValidationError) -> Exception:
    error = ValidationError.from_pydantic("Invalid webhook payload", exc)
    bad_status = [e for e in exc.errors() if e.get("loc") == ("status",) and e.get("type") == "enum"]
    if not bad_status:
        return error
    unknown = UnrecognizedVendorStatus(data.get("status"))
    if len(error.errors) == 1:
        return unknown
    for entry in error.errors:
        if entry["field"] == "status":
            entry["message"] = unknown.message
    return error


def _require_object(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError(
            "Request body must be a JSON object",
            [{"field": "body", "message": "expected an object"}],
        )
    return data


def build_order_from_webhook(payload: BraipWebhookPayload, existing: Optional[Order] = None) -> Order:
    """
    Map a webhook onto an Order. Fields Braip does not send (phone,
    observations, quantity, value, purchase date) survive from `existing`.
    """
    mapped = map_vendor_status(payload.status)

    if existing is None:
        return Order(
            id=payload.purchase_id,
            purchase_id=payload.purchase_id,
            buyer_name=payload.buyer_name,
            product=payload.product_title,
            quantity=1,
            product_value=0,
            purchase_date=today_iso(),
            tracking_code=payload.tracking_code,
            current_location=mapped.location,
            status=mapped.status,
            braip_status=payload.status,
            updated_at=payload.updated_at or utc_now_iso(),
        )

    return existing.model_copy(update={
        "buyer_name": payload.buyer_name,
        "product": payload.product_title or existing.product,
        "tracking_code": payload.tracking_code or existing.tracking_code,
        "current_location": mapped.location,
        "status": mapped.status,
        "braip_status": payload.status,
        "updated_at": payload.updated_at or utc_now_iso(),
    })


def build_order_from_manual(data: OrderIn, existing: Optional[Order] = None) -> Order:
    if data.current_location is not None:
        location = data.current_location
    elif existing is not None:
        location = existing.current_location
    else:
        location = ORDER_STATUS_LABELS[data.status]

    fields = data.model_dump(exclude={"id", "current_location"})
    return Order(
        **fields,
        id=data.id or (existing.id if existing else data.purchase_id),
        current_location=location,
        updated_at=utc_now_iso(),
    )


class OrderIngestService:
    """One pipeline for every way an order can change."""

    def __init__(self, store: OrderStore, hub: BroadcastHub, mirror: OrderMirror):
        self.store = store
        self.hub = hub
        self.mirror = mirror

    async def ingest(self, data: Any) -> Order:
        """Entry point for POST /orders: accepts either body shape."""
        data = _require_object(data)
        if is_webhook_payload(data):
            return await self.ingest_webhook(data)
        return await self.save_manual(data)

    @log_operation("ingest_webhook", webhook_logger)
    async def ingest_webhook(self, data: Any) -> Order:
        data = _require_object(data)
        try:
            payload = BraipWebhookPayload.model_validate(data)
        except PydanticValidationError as e:
            raise _webhook_validation_error(data, e) from None

        webhook_logger.info(
            f"Received Braip webhook for {payload.purchase_id}",
            status=payload.status.value,
        )
        order = build_order_from_webhook(payload, self.store.get(payload.purchase_id))
        return await self._commit(order)

    @log_operation("save_manual_order", webhook_logger)
    async def save_manual(self, data: Any) -> Order:
        data = _require_object(data)
        try:
            order_in = OrderIn.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic("Invalid order", e) from None

        order = build_order_from_manual(order_in, self.store.get(order_in.purchase_id))
        return await self._commit(order)

    async def change_status(self, purchase_id: str, data: Any) -> Order:
        data = _require_object(data)
        try:
            change = StatusChange.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic("Invalid status change", e) from None

        existing = self.store.get(purchase_id)
        if existing is None:
            raise OrderNotFound(purchase_id)

        update = {"status": change.status, "updated_at": utc_now_iso()}
        if change.current_location is not None:
            update["current_location"] = change.current_location
        return await self._commit(existing.model_copy(update=update))

    async def _commit(self, order: Order) -> Order:
        stored = self.store.upsert(order)
        try:
            await self.mirror.upsert(stored)
        except PersistenceMirrorError as e:
            mirror_logger.warning(
                f"Mirror upsert failed for {stored.purchase_id}; keeping in-memory copy",
                error=e,
                backend=self.mirror.name,
            )
        self.hub.publish(stored)
        return stored

    def list_orders(self) -> List[Order]:
        return list(self.store.list())

    def get_order(self, purchase_id: str) -> Order:
        order = self.store.get(purchase_id)
        if order is None:
            raise OrderNotFound(purchase_id)
        return order

    def board(self) -> List[Dict[str, Any]]:
        """Orders grouped into kanban columns, newest first within a column."""
        orders = self.store.list()
        columns = []
        for status, label in ORDER_STATUS_LABELS.items():
            in_column = sorted(
                (o for o in orders if o.status == status),
                key=lambda o: o.updated_at,
                reverse=True,
            )
            columns.append({
                "status": status.value,
                "label": label,
                "orders": [o.to_payload() for o in in_column],
            })
        return columns

    async def hydrate(self) -> int:
        """
        Load the store from the mirror. On mirror failure the current
        in-memory content is kept. Unreadable rows are skipped.
        """
        try:
            rows = await self.mirror.select()
        except PersistenceMirrorError as e:
            mirror_logger.warning("Hydration skipped, mirror unavailable", error=e, backend=self.mirror.name)
            return len(self.store.list())

        orders = []
        for row in rows:
            try:
                orders.append(row_to_order(row))
            except (UnrecognizedVendorStatus, PydanticValidationError, KeyError) as e:
                mirror_logger.warning(
                    "Skipping unreadable mirror row",
                    error=e,
                    purchase_id=row.get("purchase_id"),
                )
        if not rows:
            return len(self.store.list())
        return self.store.replace_all(orders)
