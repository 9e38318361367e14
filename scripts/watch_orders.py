#!/usr/bin/env python
"""Follow the live order stream and print every event.
Usage: python scripts/watch_orders.py [base_url] [retry_seconds]
"""
import asyncio
import json
import sys

from orderboard.realtime.client import DEFAULT_RETRY_SECONDS, watch


async def print_event(event: dict):
    kind = event.get("type")
    if kind == "ORDER_UPDATE":
        order = event.get("data", {})
        print(f"UPDATE {order.get('purchaseId')} -> {order.get('status')} ({order.get('currentLocation')})")
    else:
        print(kind, json.dumps(event, ensure_ascii=False))


async def main():
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://127.0.0.1:8000"
    retry = float(sys.argv[2]) if len(sys.argv) > 2 else DEFAULT_RETRY_SECONDS
    url = f"{base_url.rstrip('/')}/api/orders/updates"
    print(f"Watching {url} (reconnect every {retry}s)")
    await watch(url, print_event, retry_seconds=retry)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("Done")
