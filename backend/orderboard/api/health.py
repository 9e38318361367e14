from fastapi import APIRouter, Depends, HTTPException

from orderboard.api.deps import get_ingest_service
from orderboard.core.logging import api_logger
from orderboard.services.errors import PersistenceMirrorError
from orderboard.services.ingest import OrderIngestService

router = APIRouter()


@router.get('/healthz')
def healthz():
    return {"status": "ok"}


@router.get('/readyz')
async def readyz(service: OrderIngestService = Depends(get_ingest_service)):
    # The mirror is best effort for writes, but a deploy should notice when it is gone
    try:
        await service.mirror.ping()
    except PersistenceMirrorError as e:
        api_logger.error('Readiness mirror check failed', error=e, backend=service.mirror.name)
        raise HTTPException(status_code=503, detail='Not ready')

    return {
        "status": "ready",
        "mirror": service.mirror.name,
        "orders": len(service.list_orders()),
        "subscribers": service.hub.subscriber_count,
    }
