"""
Order board API.

GET  /            snapshot of all orders
GET  /board       orders grouped by kanban column
GET  /updates     SSE stream of ORDER_UPDATE events
GET  /{id}        one order by purchase id
POST /            manual save or webhook-shaped upsert
PATCH /{id}/status  drag-and-drop column change
"""
import json

from fastapi import APIRouter, Depends, Request

from orderboard.api.deps import get_hub, get_ingest_service
from orderboard.core.config import settings
from orderboard.realtime.broadcast import BroadcastHub
from orderboard.realtime.sse import sse_response
from orderboard.services.errors import ValidationError
from orderboard.services.ingest import OrderIngestService

router = APIRouter()

SAVED_MESSAGE = "Pedido atualizado com sucesso!"


async def read_json_body(request: Request):
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError(
            "Request body is not valid JSON",
            [{"field": "body", "message": "invalid JSON"}],
        ) from None


@router.get("")
async def list_orders(service: OrderIngestService = Depends(get_ingest_service)):
    return {"orders": [o.to_payload() for o in service.list_orders()]}


@router.get("/board")
async def get_board(service: OrderIngestService = Depends(get_ingest_service)):
    return {"columns": service.board()}


@router.get("/updates")
async def order_updates(request: Request, hub: BroadcastHub = Depends(get_hub)):
    return sse_response(
        hub,
        request,
        keepalive_seconds=settings.SSE_KEEPALIVE_SECONDS,
        retry_ms=settings.SSE_RETRY_MS,
    )


@router.get("/{purchase_id}")
async def get_order(purchase_id: str, service: OrderIngestService = Depends(get_ingest_service)):
    return {"order": service.get_order(purchase_id).to_payload()}


@router.post("")
async def save_order(request: Request, service: OrderIngestService = Depends(get_ingest_service)):
    body = await read_json_body(request)
    order = await service.ingest(body)
    return {"success": True, "message": SAVED_MESSAGE, "order": order.to_payload()}


@router.patch("/{purchase_id}/status")
async def change_order_status(
    purchase_id: str,
    request: Request,
    service: OrderIngestService = Depends(get_ingest_service),
):
    body = await read_json_body(request)
    order = await service.change_status(purchase_id, body)
    return {"success": True, "message": SAVED_MESSAGE, "order": order.to_payload()}
