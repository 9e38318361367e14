"""
Minimal SSE consumer for the order update stream.

Reconnects after a fixed delay whenever the stream drops, the same way the
board's browser hook does.
"""
import asyncio
import json
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterable, Optional

import httpx

from orderboard.core.logging import get_logger

client_logger = get_logger('orderboard.client')

DEFAULT_RETRY_SECONDS = 5.0


def parse_sse_lines(lines: Iterable[str]) -> Iterable[Dict[str, Any]]:
    """
    Turn raw SSE lines into decoded JSON events. Comments (keep-alives) and
    retry hints are skipped; non-JSON data is ignored.
    """
    data_lines = []
    for line in lines:
        line = line.rstrip("\r\n")
        if line == "":
            if data_lines:
                raw = "\n".join(data_lines)
                data_lines = []
                try:
                    yield json.loads(raw)
                except ValueError:
                    client_logger.debug("Ignoring non-JSON event", raw=raw[:100])
            continue
        if line.startswith(":"):
            continue
        if line.startswith("data:"):
            data_lines.append(line[5:].lstrip(" "))


async def stream_events(client: httpx.AsyncClient, url: str) -> AsyncIterator[Dict[str, Any]]:
    """Yield events from one connection until the server closes it."""
    async with client.stream("GET", url, headers={"Accept": "text/event-stream"}) as response:
        response.raise_for_status()
        buffer = []
        async for line in response.aiter_lines():
            buffer.append(line)
            if line == "":
                for event in parse_sse_lines(buffer):
                    yield event
                buffer = []


async def watch(
    url: str,
    on_event: Callable[[Dict[str, Any]], Awaitable[None]],
    retry_seconds: float = DEFAULT_RETRY_SECONDS,
    max_connections: Optional[int] = None,
) -> None:
    """
    Follow the stream forever (or for `max_connections` attempts), calling
    `on_event` for every event.
    """
    attempts = 0
    timeout = httpx.Timeout(10.0, read=None)
    async with httpx.AsyncClient(timeout=timeout) as client:
        while max_connections is None or attempts < max_connections:
            attempts += 1
            try:
                async for event in stream_events(client, url):
                    await on_event(event)
                client_logger.warning("Stream closed by server")
            except httpx.HTTPError as e:
                client_logger.warning("Stream error", error=e, url=url)
            if max_connections is not None and attempts >= max_connections:
                break
            client_logger.info(f"Reconnecting in {retry_seconds}s")
            await asyncio.sleep(retry_seconds)
