"""
Server-Sent Events framing and the per-connection stream.
"""
from typing import AsyncIterator

from fastapi import Request
from fastapi.responses import StreamingResponse

from orderboard.realtime.broadcast import BroadcastHub

KEEPALIVE_FRAME = ": keep-alive\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(data: str) -> str:
    """Frame one event. Multi-line payloads become several data: lines."""
    lines = data.splitlines() or [""]
    return "".join(f"data: {line}\n" for line in lines) + "\n"


def format_retry(retry_ms: int) -> str:
    return f"retry: {retry_ms}\n\n"


async def event_stream(
    hub: BroadcastHub,
    request: Request,
    keepalive_seconds: float,
    retry_ms: int,
) -> AsyncIterator[str]:
    """
    Yield SSE frames for one subscriber until the client goes away or the
    hub drops it. The subscriber is registered when iteration starts and
    always unregistered on exit.
    """
    sub = hub.subscribe()
    try:
        yield format_retry(retry_ms)
        while True:
            if await request.is_disconnected():
                break
            message = await sub.next_message(timeout=keepalive_seconds)
            if message is None:
                if sub.closed:
                    break
                yield KEEPALIVE_FRAME
                continue
            yield format_sse(message)
    finally:
        hub.unsubscribe(sub)


def sse_response(
    hub: BroadcastHub,
    request: Request,
    keepalive_seconds: float,
    retry_ms: int,
) -> StreamingResponse:
    return StreamingResponse(
        event_stream(hub, request, keepalive_seconds, retry_ms),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
