from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from orderboard.api import health, orders, webhooks
from orderboard.core.config import settings, logger
from orderboard.core.middleware import (
    RequestContextMiddleware,
    global_exception_handler,
    order_board_error_handler,
)
from orderboard.integrations import build_mirror
from orderboard.realtime.broadcast import BroadcastHub
from orderboard.services.errors import OrderBoardError, PersistenceMirrorError
from orderboard.services.ingest import OrderIngestService
from orderboard.services.order_store import InMemoryOrderStore


def build_ingest_service() -> OrderIngestService:
    return OrderIngestService(
        store=InMemoryOrderStore(),
        hub=BroadcastHub(queue_size=settings.SSE_QUEUE_SIZE),
        mirror=build_mirror(settings),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    service: OrderIngestService = app.state.ingest
    try:
        await service.mirror.start()
    except PersistenceMirrorError as e:
        logger.warning(f"Mirror backend '{service.mirror.name}' failed to start: {e}")
    if settings.HYDRATE_ON_STARTUP:
        count = await service.hydrate()
        logger.info(f"Order store ready with {count} orders (mirror: {service.mirror.name})")
    yield
    # Shutdown
    service.hub.close_all()
    await service.mirror.close()


app = FastAPI(
    title="Order Board API",
    description="Braip shipment webhooks, order board and live updates",
    version="0.1.0",
    lifespan=lifespan,
)
app.state.ingest = build_ingest_service()

app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(OrderBoardError, order_board_error_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(health.router, prefix="", tags=["Health"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(webhooks.router, prefix="/api/webhooks", tags=["Webhooks"])
