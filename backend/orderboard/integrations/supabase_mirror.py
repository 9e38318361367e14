"""
Supabase (PostgREST) mirror.
Upserts rows into the hosted `pedidos` table keyed by purchase_id.
"""
from typing import Any, Dict, List, Optional

import httpx

from orderboard.core.logging import mirror_logger
from orderboard.integrations.mirror import OrderMirror, order_to_row
from orderboard.models.order import Order
from orderboard.services.errors import PersistenceMirrorError


class SupabaseMirror(OrderMirror):
    name = "supabase"

    def __init__(self, base_url: str, api_key: str, table: str = "pedidos", timeout: float = 5.0):
        if not base_url or not api_key:
            raise ValueError("SupabaseMirror needs SUPABASE_URL and SUPABASE_KEY")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.table = table
        self.timeout = timeout

    @property
    def table_url(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(self, method: str, *, params: Dict[str, str], json: Any = None,
                       prefer: Optional[str] = None) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method,
                    self.table_url,
                    params=params,
                    json=json,
                    headers=self._headers(prefer),
                )
        except httpx.TimeoutException as e:
            raise PersistenceMirrorError(f"Supabase {method} timed out") from e
        except httpx.RequestError as e:
            raise PersistenceMirrorError(f"Supabase {method} failed: {e}") from e

        if response.status_code < 200 or response.status_code >= 300:
            raise PersistenceMirrorError(
                f"Supabase {method} returned HTTP {response.status_code}: {response.text[:200]}"
            )
        return response

    async def upsert(self, order: Order) -> None:
        # Patch by id first so a card whose purchase id was edited keeps its row
        patched = await self._request(
            "PATCH",
            params={"id": f"eq.{order.id}"},
            json=order_to_row(order),
            prefer="return=representation",
        )
        if self._rows(patched):
            mirror_logger.debug(f"Supabase patch ok for {order.purchase_id}")
            return

        await self._request(
            "POST",
            params={"on_conflict": "purchase_id"},
            json=order_to_row(order),
            prefer="resolution=merge-duplicates,return=minimal",
        )
        mirror_logger.debug(f"Supabase upsert ok for {order.purchase_id}")

    async def select(self) -> List[Dict[str, Any]]:
        response = await self._request("GET", params={"select": "*", "order": "updated_at.desc"})
        rows = self._rows(response)
        mirror_logger.info(f"Fetched {len(rows)} orders from Supabase")
        return rows

    @staticmethod
    def _rows(response: httpx.Response) -> List[Dict[str, Any]]:
        try:
            rows = response.json()
        except ValueError as e:
            raise PersistenceMirrorError("Supabase returned a non-JSON body") from e
        if not isinstance(rows, list):
            raise PersistenceMirrorError(f"Supabase returned {type(rows).__name__}, expected a list")
        return rows

    async def ping(self) -> None:
        await self._request("GET", params={"select": "purchase_id", "limit": "1"})
