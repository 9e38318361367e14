from fastapi import Request

from orderboard.realtime.broadcast import BroadcastHub
from orderboard.services.ingest import OrderIngestService


def get_ingest_service(request: Request) -> OrderIngestService:
    """The pipeline wired in main.py (tests swap app.state.ingest)."""
    return request.app.state.ingest


def get_hub(request: Request) -> BroadcastHub:
    return request.app.state.ingest.hub
