import json
import os

os.environ.setdefault("MIRROR_BACKEND", "none")

import pytest
from httpx import AsyncClient, ASGITransport

from orderboard.integrations.mirror import OrderMirror, order_to_row
from orderboard.main import app
from orderboard.realtime.broadcast import BroadcastHub
from orderboard.services.errors import PersistenceMirrorError
from orderboard.services.ingest import OrderIngestService
from orderboard.services.order_store import InMemoryOrderStore


class RecordingMirror(OrderMirror):
    """In-test mirror: keeps rows by purchase_id and can be told to fail."""
    name = "recording"

    def __init__(self, rows=None):
        self.rows = {r["purchase_id"]: r for r in (rows or [])}
        self.upserts = []
        self.fail = False

    async def upsert(self, order):
        if self.fail:
            raise PersistenceMirrorError("mirror down")
        self.upserts.append(order)
        self.rows[order.purchase_id] = order_to_row(order)

    async def select(self):
        if self.fail:
            raise PersistenceMirrorError("mirror down")
        return list(self.rows.values())

    async def ping(self):
        if self.fail:
            raise PersistenceMirrorError("mirror down")


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def mirror():
    return RecordingMirror()


@pytest.fixture
def store():
    return InMemoryOrderStore()


@pytest.fixture
def hub():
    return BroadcastHub(queue_size=10)


@pytest.fixture
def service(store, hub, mirror):
    """Fresh pipeline installed on the app for the duration of one test."""
    previous = app.state.ingest
    svc = OrderIngestService(store=store, hub=hub, mirror=mirror)
    app.state.ingest = svc
    yield svc
    app.state.ingest = previous


@pytest.fixture
async def client(service):
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def drain():
    """Pull every queued event off a subscription without awaiting."""
    def _drain(sub):
        events = []
        while not sub.queue.empty():
            raw = sub.queue.get_nowait()
            if raw is not None:
                events.append(json.loads(raw))
        return events
    return _drain
