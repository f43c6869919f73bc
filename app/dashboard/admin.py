"""
Admin Panel - generic table CRUD for the admin screens.

Every admin list/edit screen goes through these builders: an allow-listed
table, PostgREST-style filters, and the payment/deposit review actions.
All functions return data dicts; routes turn the exceptions into HTTP
errors.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from app.db_utils import bulk_upsert
from app.models import TABLE_MODELS, Deposit, Payment
from app.payments.service import refresh_prize_pool, review_deposit, review_payment
from app.security import AdminContext

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20

FILTER_OPERATORS = ("eq", "neq", "gt", "gte", "lt", "lte", "like", "ilike", "in", "is")

TABLE_NOT_ALLOWED = "Tabela não permitida"
RECORD_NOT_FOUND = "Registro não encontrado"


class ValidationError(Exception):
    """Raised when a CRUD request is malformed (bad table, column or operator)."""
    pass


class RecordNotFound(ValueError):
    """Raised when the addressed row does not exist."""
    pass


# =============================================================================
# Helpers
# =============================================================================


def get_table_model(table: str) -> type[SQLModel]:
    model = TABLE_MODELS.get(table)
    if model is None:
        raise ValidationError(TABLE_NOT_ALLOWED)
    return model


def _get_column(model: type[SQLModel], name: str):
    column = model.__table__.columns.get(name)
    if column is None:
        raise ValidationError(f"Coluna inválida: {name}")
    return column


def _python_type(column) -> Optional[type]:
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


def _parse_datetime(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    # Stored as naive UTC
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def coerce_value(column, value: Any) -> Any:
    """Convert JSON values to the column's Python type (ISO strings -> datetime)."""
    if value is None or not isinstance(value, str):
        return value

    python_type = _python_type(column)
    try:
        if python_type is datetime:
            return _parse_datetime(value)
        if python_type is date:
            return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Data inválida para {column.name}: {value}")
    return value


def _coerce_row(model: type[SQLModel], data: dict) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Dados inválidos")
    return {key: coerce_value(_get_column(model, key), value) for key, value in data.items()}


def _build_filter(model: type[SQLModel], condition: dict):
    column = _get_column(model, condition.get("column", ""))
    operator = condition.get("operator")
    value = condition.get("value")

    if operator not in FILTER_OPERATORS:
        raise ValidationError(f"Operador inválido: {operator}")

    if operator == "in":
        if not isinstance(value, list):
            raise ValidationError("Operador 'in' requer uma lista")
        return column.in_([coerce_value(column, v) for v in value])

    if operator == "is":
        # PostgREST accepts null/true/false as strings too
        if isinstance(value, str):
            value = {"null": None, "true": True, "false": False}.get(value.lower(), value)
        if value is not None and not isinstance(value, bool):
            raise ValidationError(f"Valor inválido para 'is': {value}")
        return column.is_(value)

    value = coerce_value(column, value)
    if operator == "eq":
        return column == value
    if operator == "neq":
        return column != value
    if operator == "gt":
        return column > value
    if operator == "gte":
        return column >= value
    if operator == "lt":
        return column < value
    if operator == "lte":
        return column <= value
    if operator == "like":
        return column.like(value)
    return column.ilike(value)


def _selected_columns(model: type[SQLModel], select_expr: Optional[str]) -> Optional[list[str]]:
    """Column names of a "a, b, c" select, or None for all columns."""
    if not select_expr or select_expr.strip() == "*":
        return None
    names = [name.strip() for name in select_expr.split(",") if name.strip()]
    for name in names:
        _get_column(model, name)
    return names


def serialize_row(row: SQLModel, columns: Optional[list[str]] = None) -> dict:
    data = row.model_dump()
    if columns is None:
        return data
    return {name: data.get(name) for name in columns}


async def _get_by(session: AsyncSession, model: type[SQLModel], id_column: str, value: Any) -> SQLModel:
    column = _get_column(model, id_column)
    result = await session.execute(select(model).where(column == coerce_value(column, value)))
    row = result.scalars().first()
    if row is None:
        raise RecordNotFound(RECORD_NOT_FOUND)
    return row


# =============================================================================
# CRUD
# =============================================================================


async def list_rows(
    session: AsyncSession,
    table: str,
    filters: Optional[list[dict]] = None,
    select_expr: Optional[str] = None,
    order_by: Optional[dict] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> dict:
    """
    Filtered page of a table with the exact total count.

    ``order_by`` is ``{"column": ..., "ascending": bool}`` (descending by
    default). With an offset the page size is ``limit`` or 20.
    """
    model = get_table_model(table)
    columns = _selected_columns(model, select_expr)
    conditions = [_build_filter(model, f) for f in filters or []]

    query = select(model).where(*conditions)
    count_query = select(func.count()).select_from(model).where(*conditions)

    if order_by:
        order_column = _get_column(model, order_by.get("column", ""))
        ascending = order_by.get("ascending")
        query = query.order_by(order_column.asc() if ascending else order_column.desc())

    if offset:
        query = query.offset(offset).limit(limit or DEFAULT_PAGE_SIZE)
    elif limit:
        query = query.limit(limit)

    result = await session.execute(query)
    rows = result.scalars().all()
    count = (await session.execute(count_query)).scalar_one()

    return {"data": [serialize_row(r, columns) for r in rows], "count": count}


async def get_row(
    session: AsyncSession,
    table: str,
    row_id: Any,
    id_column: Optional[str] = None,
    select_expr: Optional[str] = None,
) -> dict:
    model = get_table_model(table)
    columns = _selected_columns(model, select_expr)
    row = await _get_by(session, model, id_column or "id", row_id)
    return {"data": serialize_row(row, columns)}


async def create_row(session: AsyncSession, table: str, data: dict) -> dict:
    model = get_table_model(table)
    row = model(**_coerce_row(model, data))
    session.add(row)
    await session.commit()
    await session.refresh(row)
    logger.info(f"[ADMIN] Created {table} row {getattr(row, 'id', None)}")
    return {"data": serialize_row(row)}


async def update_row(
    session: AsyncSession,
    table: str,
    row_id: Any,
    data: dict,
    id_column: Optional[str] = None,
) -> dict:
    """Apply ``data`` to one row; stamps updated_at on tables that have it."""
    model = get_table_model(table)
    values = _coerce_row(model, data)
    row = await _get_by(session, model, id_column or "id", row_id)

    for key, value in values.items():
        setattr(row, key, value)
    if "updated_at" in model.__table__.columns:
        row.updated_at = datetime.utcnow()

    session.add(row)
    await session.commit()
    await session.refresh(row)
    logger.info(f"[ADMIN] Updated {table} row {row_id}: {sorted(values)}")
    return {"data": serialize_row(row)}


async def delete_row(
    session: AsyncSession,
    table: str,
    row_id: Any,
    id_column: Optional[str] = None,
) -> dict:
    """Delete matching rows; deleting a missing row is not an error."""
    model = get_table_model(table)
    column = _get_column(model, id_column or "id")
    result = await session.execute(select(model).where(column == coerce_value(column, row_id)))
    for row in result.scalars().all():
        await session.delete(row)
    await session.commit()
    logger.info(f"[ADMIN] Deleted {table} row {row_id}")
    return {"success": True}


async def upsert_rows(
    session: AsyncSession,
    table: str,
    data: Any,
    on_conflict: Optional[str] = None,
) -> dict:
    """
    Insert-or-update one row or a list of rows.

    ``on_conflict`` is a comma separated column list (default ``id``); all
    rows must carry the same keys.
    """
    model = get_table_model(table)
    rows = [_coerce_row(model, item) for item in (data if isinstance(data, list) else [data])]
    if not rows:
        return {"data": []}

    conflict_columns = [c.strip() for c in (on_conflict or "id").split(",") if c.strip()]
    for name in conflict_columns:
        _get_column(model, name)

    keys = set(rows[0])
    for row in rows:
        if set(row) != keys:
            raise ValidationError("Todas as linhas devem ter as mesmas colunas")
        missing = [c for c in conflict_columns if c not in row]
        if missing:
            raise ValidationError(f"Colunas de conflito ausentes: {', '.join(missing)}")

    await bulk_upsert(session, model, rows, conflict_columns=conflict_columns)
    await session.commit()

    saved = []
    for row in rows:
        condition = and_(*[getattr(model, c) == row[c] for c in conflict_columns])
        result = await session.execute(
            select(model).where(condition).execution_options(populate_existing=True)
        )
        found = result.scalars().first()
        if found is not None:
            saved.append(serialize_row(found))

    logger.info(f"[ADMIN] Upserted {len(rows)} {table} rows on {conflict_columns}")
    return {"data": saved}


# =============================================================================
# Payments / deposits review
# =============================================================================


async def set_payment_status(
    session: AsyncSession,
    payment_id: str,
    approve: bool,
    admin: AdminContext,
    rejection_reason: Optional[str] = None,
) -> dict:
    """Approve or reject a payout, stamping the reviewing admin."""
    payment = await _get_by(session, Payment, "id", payment_id)
    review_payment(payment, approve, admin.firebase_id, admin.name, rejection_reason)
    session.add(payment)
    await session.commit()
    await session.refresh(payment)
    logger.info(f"[ADMIN] Payment {payment_id} {payment.status} by {admin.firebase_id}")
    return {"data": serialize_row(payment)}


async def set_deposit_status(
    session: AsyncSession,
    deposit_id: str,
    confirm: bool,
    notes: Optional[str] = None,
) -> dict:
    """Confirm or cancel a deposit and re-total the active prize pool."""
    deposit = await _get_by(session, Deposit, "id", deposit_id)
    review_deposit(deposit, confirm, notes)
    session.add(deposit)
    await session.flush()
    await refresh_prize_pool(session)
    await session.commit()
    await session.refresh(deposit)
    logger.info(f"[ADMIN] Deposit {deposit_id} {deposit.status}")
    return {"data": serialize_row(deposit)}
