"""
Pydantic schemas for orders and inbound payloads.

Orders travel as camelCase JSON (the board's wire format) while Python code
uses snake_case attributes. Webhook payloads keep Braip's snake_case keys.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from orderboard.db.enums import BraipStatus, OrderStatus


class Order(BaseModel):
    """A single card on the board. Frozen: changes produce a new instance."""
    id: str = Field(..., min_length=1)
    purchase_id: str = Field(..., min_length=1)
    buyer_name: str = Field(..., min_length=1)
    phone_number: Optional[str] = None
    product: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    product_value: Optional[float] = Field(None, ge=0)
    purchase_date: Optional[str] = None
    observations: Optional[str] = None
    tracking_code: Optional[str] = None
    current_location: str = ""
    status: OrderStatus
    braip_status: Optional[BraipStatus] = None
    updated_at: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class OrderIn(BaseModel):
    """Manual create/edit body sent by the board (form submit or drag-and-drop)."""
    id: Optional[str] = None
    purchase_id: str = Field(..., min_length=1)
    buyer_name: str = Field(..., min_length=1)
    phone_number: Optional[str] = None
    product: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    product_value: Optional[float] = Field(None, ge=0)
    purchase_date: Optional[str] = None
    observations: Optional[str] = None
    tracking_code: Optional[str] = None
    current_location: Optional[str] = None
    status: OrderStatus
    braip_status: Optional[BraipStatus] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"


class StatusChange(BaseModel):
    """Body of the drag-and-drop shortcut."""
    status: OrderStatus
    current_location: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class BraipWebhookPayload(BaseModel):
    """Shipment-status event posted by Braip."""
    buyer_name: str = Field(..., min_length=1)
    purchase_id: str = Field(..., min_length=1)
    status: BraipStatus
    tracking_code: Optional[str] = None
    product_title: Optional[str] = None
    updated_at: Optional[str] = None

    class Config:
        extra = "ignore"


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def today_iso() -> str:
    return datetime.now(timezone.utc).date().isoformat()
