from fastapi import APIRouter, Depends, Request

from orderboard.api.deps import get_ingest_service
from orderboard.api.orders import SAVED_MESSAGE, read_json_body
from orderboard.services.ingest import OrderIngestService

router = APIRouter()


@router.post("/braip")
async def braip_webhook(request: Request, service: OrderIngestService = Depends(get_ingest_service)):
    """Braip shipment-status callback."""
    body = await read_json_body(request)
    order = await service.ingest_webhook(body)
    return {"success": True, "message": SAVED_MESSAGE, "orderId": order.id, "order": order.to_payload()}
