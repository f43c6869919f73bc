"""Database utility functions for cross-database compatibility."""

import logging
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DIALECT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _dialect_name(session: AsyncSession) -> str:
    bind = session.bind
    return bind.dialect.name if bind is not None else ""


async def bulk_upsert(
    session: AsyncSession,
    model: type[T],
    values_list: list[dict[str, Any]],
    conflict_columns: list[str],
    update_columns: list[str] | None = None,
) -> int:
    """
    Database-agnostic multi-row upsert (INSERT ... ON CONFLICT DO UPDATE).

    PostgreSQL and SQLite use their native ON CONFLICT clause in a single
    statement; other dialects fall back to SELECT + INSERT/UPDATE per row.
    Every row must carry the same keys.

    Args:
        session: AsyncSession instance
        model: SQLModel table class
        values_list: Column values, one dict per row
        conflict_columns: Columns that define uniqueness (for conflict detection)
        update_columns: Columns to update on conflict (defaults to all non-conflict columns)

    Returns:
        Number of rows sent.

    Example:
        await bulk_upsert(session, Match, rows, conflict_columns=["id"])
    """
    if not values_list:
        return 0

    if update_columns is None:
        update_columns = [k for k in values_list[0].keys() if k not in conflict_columns]

    insert_fn = _DIALECT_INSERTS.get(_dialect_name(session))
    if insert_fn is not None:
        stmt = insert_fn(model.__table__).values(values_list)
        if update_columns:
            stmt = stmt.on_conflict_do_update(
                index_elements=conflict_columns,
                set_={col: stmt.excluded[col] for col in update_columns},
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=conflict_columns)
        await session.execute(stmt)
        return len(values_list)

    for values in values_list:
        await _select_then_write(session, model, values, conflict_columns, update_columns)
    return len(values_list)


async def upsert(
    session: AsyncSession,
    model: type[T],
    values: dict[str, Any],
    conflict_columns: list[str],
    update_columns: list[str] | None = None,
) -> None:
    """Single-row form of :func:`bulk_upsert`."""
    await bulk_upsert(session, model, [values], conflict_columns, update_columns)


async def _select_then_write(
    session: AsyncSession,
    model: type[T],
    values: dict[str, Any],
    conflict_columns: list[str],
    update_columns: list[str],
) -> None:
    filters = [getattr(model, col) == values[col] for col in conflict_columns]
    result = await session.execute(select(model).where(*filters))
    existing = result.scalar_one_or_none()

    if existing:
        for col in update_columns:
            if col in values:
                setattr(existing, col, values[col])
    else:
        session.add(model(**values))
