"""
Tests for the persistence mirrors (database table and Supabase PostgREST).
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from orderboard.db.enums import BraipStatus, OrderStatus
from orderboard.integrations import NullMirror, SqlMirror, SupabaseMirror, build_mirror
from orderboard.integrations.mirror import order_to_row, row_to_order
from orderboard.models.order import Order
from orderboard.realtime.broadcast import BroadcastHub
from orderboard.services.errors import PersistenceMirrorError, UnrecognizedVendorStatus
from orderboard.services.ingest import OrderIngestService
from orderboard.services.order_store import InMemoryOrderStore


def make_order(purchase_id="P1", **overrides):
    fields = dict(
        id=purchase_id,
        purchase_id=purchase_id,
        buyer_name="Ana",
        phone_number="11999990000",
        product="Kit",
        quantity=2,
        product_value=99.5,
        purchase_date="2024-05-01",
        current_location="Postado nos Correios",
        status=OrderStatus.pickup,
        braip_status=BraipStatus.postado,
        updated_at="2024-05-01T10:00:00.000Z",
    )
    fields.update(overrides)
    return Order(**fields)


class TestRowConversion:

    def test_order_row_round_trip(self):
        order = make_order()
        assert row_to_order(order_to_row(order)) == order

    def test_legacy_row_with_vendor_status(self):
        order = row_to_order({"purchase_id": 42, "buyer_name": "Ana", "status": "NAO_RETIRADO"})

        assert order.id == "42"
        assert order.status == OrderStatus.failed
        assert order.braip_status == BraipStatus.nao_retirado
        assert order.current_location == "Não retirado - Devolvido ao remetente"
        assert order.quantity == 1
        assert order.product_value == 0

    def test_unknown_status_row_raises(self):
        with pytest.raises(UnrecognizedVendorStatus):
            row_to_order({"purchase_id": "P1", "buyer_name": "Ana", "status": "???"})


class TestBuildMirror:

    def test_default_is_null(self):
        mirror = build_mirror(SimpleNamespace(MIRROR_BACKEND="none"))
        assert isinstance(mirror, NullMirror)

    def test_supabase_requires_credentials(self):
        cfg = SimpleNamespace(
            MIRROR_BACKEND="supabase", SUPABASE_URL="", SUPABASE_KEY="",
            SUPABASE_TABLE="pedidos", MIRROR_TIMEOUT_SECONDS=5.0,
        )
        with pytest.raises(ValueError):
            build_mirror(cfg)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            build_mirror(SimpleNamespace(MIRROR_BACKEND="redis"))


class TestSqlMirror:

    @pytest.mark.anyio
    async def test_upsert_and_select(self, tmp_path):
        mirror = SqlMirror(f"sqlite+aiosqlite:///{tmp_path / 'mirror.db'}")
        await mirror.start()
        try:
            await mirror.upsert(make_order("P1"))
            await mirror.upsert(make_order("P2", updated_at="2024-06-01T00:00:00.000Z"))
            await mirror.upsert(make_order("P1", status=OrderStatus.delivered, id="ignored"))

            rows = await mirror.select()

            assert [r["purchase_id"] for r in rows] == ["P2", "P1"]
            p1 = rows[1]
            assert p1["id"] == "P1"
            assert p1["status"] == "delivered"
            assert row_to_order(p1).status == OrderStatus.delivered
            await mirror.ping()
        finally:
            await mirror.close()

    @pytest.mark.anyio
    async def test_edited_purchase_id_updates_the_same_row(self, tmp_path):
        mirror = SqlMirror(f"sqlite+aiosqlite:///{tmp_path / 'rekey.db'}")
        await mirror.start()
        try:
            await mirror.upsert(make_order("A", id="card-1", status=OrderStatus.placed))
            await mirror.upsert(make_order("B", id="card-1", status=OrderStatus.failed))

            rows = await mirror.select()

            assert [(r["id"], r["purchase_id"], r["status"]) for r in rows] == [
                ("card-1", "B", "failed"),
            ]
        finally:
            await mirror.close()

    @pytest.mark.anyio
    async def test_rekeyed_card_survives_hydration(self, tmp_path):
        mirror = SqlMirror(f"sqlite+aiosqlite:///{tmp_path / 'hydrate.db'}")
        await mirror.start()
        try:
            service = OrderIngestService(InMemoryOrderStore(), BroadcastHub(), mirror)
            await service.save_manual({"id": "card-1", "purchaseId": "A", "buyerName": "Ana", "status": "placed"})
            await service.save_manual({"id": "card-1", "purchaseId": "B", "buyerName": "Ana", "status": "failed"})

            restarted = OrderIngestService(InMemoryOrderStore(), BroadcastHub(), mirror)
            assert await restarted.hydrate() == 1
            assert [(o.id, o.purchase_id, o.status) for o in restarted.list_orders()] == [
                ("card-1", "B", OrderStatus.failed),
            ]
        finally:
            await mirror.close()

    @pytest.mark.anyio
    async def test_select_without_table_raises_mirror_error(self, tmp_path):
        mirror = SqlMirror(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        try:
            with pytest.raises(PersistenceMirrorError):
                await mirror.select()
        finally:
            await mirror.close()


def patched_client(response=None, side_effect=None):
    """Patch httpx.AsyncClient inside the Supabase mirror module."""
    mock_instance = AsyncMock()
    mock_instance.request = AsyncMock(return_value=response, side_effect=side_effect)
    patcher = patch('orderboard.integrations.supabase_mirror.httpx.AsyncClient')
    mock_client = patcher.start()
    mock_client.return_value.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_client.return_value.__aexit__ = AsyncMock(return_value=None)
    return patcher, mock_instance


class TestSupabaseMirror:

    def setup_method(self):
        self.mirror = SupabaseMirror("https://example.supabase.co/", "anon-key", table="pedidos")

    @pytest.mark.anyio
    async def test_upsert_posts_row_with_merge_header(self):
        no_match = MagicMock(status_code=200, text="")
        no_match.json.return_value = []
        created = MagicMock(status_code=201, text="")
        patcher, client = patched_client(side_effect=[no_match, created])
        try:
            await self.mirror.upsert(make_order())
        finally:
            patcher.stop()

        assert client.request.call_count == 2
        patch_args, patch_kwargs = client.request.call_args_list[0]
        assert patch_args == ("PATCH", "https://example.supabase.co/rest/v1/pedidos")
        assert patch_kwargs["params"] == {"id": "eq.P1"}

        args, kwargs = client.request.call_args
        assert args == ("POST", "https://example.supabase.co/rest/v1/pedidos")
        assert kwargs["params"] == {"on_conflict": "purchase_id"}
        assert kwargs["json"]["purchase_id"] == "P1"
        assert kwargs["json"]["status"] == "pickup"
        assert kwargs["headers"]["apikey"] == "anon-key"
        assert kwargs["headers"]["Authorization"] == "Bearer anon-key"
        assert "merge-duplicates" in kwargs["headers"]["Prefer"]

    @pytest.mark.anyio
    async def test_upsert_patches_row_by_id_after_purchase_id_edit(self):
        order = make_order("B", id="card-1", status=OrderStatus.failed)
        matched = MagicMock(status_code=200, text="")
        matched.json.return_value = [order_to_row(order)]
        patcher, client = patched_client(matched)
        try:
            await self.mirror.upsert(order)
        finally:
            patcher.stop()

        client.request.assert_called_once()
        args, kwargs = client.request.call_args
        assert args[0] == "PATCH"
        assert kwargs["params"] == {"id": "eq.card-1"}
        assert kwargs["json"]["purchase_id"] == "B"
        assert kwargs["headers"]["Prefer"] == "return=representation"

    @pytest.mark.anyio
    async def test_http_error_status_raises(self):
        response = MagicMock(status_code=500, text="boom")
        patcher, _ = patched_client(response)
        try:
            with pytest.raises(PersistenceMirrorError):
                await self.mirror.upsert(make_order())
        finally:
            patcher.stop()

    @pytest.mark.anyio
    async def test_timeout_raises(self):
        patcher, _ = patched_client(side_effect=httpx.TimeoutException("Timeout"))
        try:
            with pytest.raises(PersistenceMirrorError):
                await self.mirror.ping()
        finally:
            patcher.stop()

    @pytest.mark.anyio
    async def test_select_returns_rows(self):
        rows = [order_to_row(make_order("P1"))]
        response = MagicMock(status_code=200, text="")
        response.json.return_value = rows
        patcher, client = patched_client(response)
        try:
            result = await self.mirror.select()
        finally:
            patcher.stop()

        assert result == rows
        _, kwargs = client.request.call_args
        assert kwargs["params"] == {"select": "*", "order": "updated_at.desc"}

    @pytest.mark.anyio
    async def test_select_non_list_raises(self):
        response = MagicMock(status_code=200, text="")
        response.json.return_value = {"message": "nope"}
        patcher, _ = patched_client(response)
        try:
            with pytest.raises(PersistenceMirrorError):
                await self.mirror.select()
        finally:
            patcher.stop()
