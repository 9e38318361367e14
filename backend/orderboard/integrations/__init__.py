"""
Persistence mirrors for the order store (database table, Supabase).
"""
from orderboard.db.enums import MirrorBackend
from orderboard.integrations.mirror import NullMirror, OrderMirror, order_to_row, row_to_order
from orderboard.integrations.sql_mirror import SqlMirror
from orderboard.integrations.supabase_mirror import SupabaseMirror


def build_mirror(settings) -> OrderMirror:
    """Pick the mirror backend named by MIRROR_BACKEND."""
    try:
        backend = MirrorBackend(settings.MIRROR_BACKEND.lower())
    except ValueError:
        raise ValueError(f"Unknown MIRROR_BACKEND {settings.MIRROR_BACKEND!r}") from None

    if backend is MirrorBackend.database:
        return SqlMirror(settings.DATABASE_URL, echo=settings.DEBUG)
    if backend is MirrorBackend.supabase:
        return SupabaseMirror(
            settings.SUPABASE_URL,
            settings.SUPABASE_KEY,
            table=settings.SUPABASE_TABLE,
            timeout=settings.MIRROR_TIMEOUT_SECONDS,
        )
    return NullMirror()


__all__ = [
    "build_mirror",
    "NullMirror",
    "OrderMirror",
    "SqlMirror",
    "SupabaseMirror",
    "order_to_row",
    "row_to_order",
]
