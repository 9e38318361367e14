"""
SQLAlchemy mirror: the same `pedidos` table in any async-capable database.
"""
from typing import Any, Dict, List

from sqlalchemy import or_, select, text
from sqlalchemy.exc import SQLAlchemyError

from orderboard.core.logging import mirror_logger
from orderboard.db.database import create_engine_for, create_tables, session_factory
from orderboard.db.models import OrderRecord
from orderboard.integrations.mirror import OrderMirror, order_to_row
from orderboard.models.order import Order
from orderboard.services.errors import PersistenceMirrorError

_COLUMNS = [c.name for c in OrderRecord.__table__.columns]


class SqlMirror(OrderMirror):
    name = "database"

    def __init__(self, database_url: str, echo: bool = False):
        self.engine = create_engine_for(database_url, echo=echo)
        self.async_session = session_factory(self.engine)

    async def start(self) -> None:
        try:
            await create_tables(self.engine)
        except SQLAlchemyError as e:
            raise PersistenceMirrorError(f"Could not create mirror table: {e}") from e

    async def close(self) -> None:
        await self.engine.dispose()

    async def upsert(self, order: Order) -> None:
        row = order_to_row(order)
        try:
            async with self.async_session() as session:
                # A card whose purchase id was edited is found by its id
                result = await session.execute(
                    select(OrderRecord).where(or_(
                        OrderRecord.purchase_id == order.purchase_id,
                        OrderRecord.id == order.id,
                    ))
                )
                records = result.scalars().all()
                record = next(
                    (r for r in records if r.purchase_id == order.purchase_id),
                    records[0] if records else None,
                )
                if record is None:
                    session.add(OrderRecord(**row))
                else:
                    for key, value in row.items():
                        if key != "id":
                            setattr(record, key, value)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceMirrorError(f"Database upsert failed for {order.purchase_id}: {e}") from e
        mirror_logger.debug(f"Database upsert ok for {order.purchase_id}")

    async def select(self) -> List[Dict[str, Any]]:
        try:
            async with self.async_session() as session:
                result = await session.execute(
                    select(OrderRecord).order_by(OrderRecord.updated_at.desc())
                )
                records = result.scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceMirrorError(f"Database select failed: {e}") from e
        return [{col: getattr(r, col) for col in _COLUMNS} for r in records]

    async def ping(self) -> None:
        try:
            async with self.async_session() as session:
                await session.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise PersistenceMirrorError(f"Database unreachable: {e}") from e
