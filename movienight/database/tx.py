# movienight/database/tx.py
from __future__ import annotations

from contextlib import asynccontextmanager

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


@asynccontextmanager
async def transactional(session: AsyncSession):
    """
    Safe transactional context for SQLAlchemy 2.x autobegin.

    - If a transaction is already active, use SAVEPOINT (begin_nested)
    - Otherwise, start a new transaction
    """
    if session.in_transaction():
        async with session.begin_nested():
            yield
    else:
        async with session.begin():
            yield


def _dialect_insert(session: AsyncSession, model):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    raise RuntimeError(f"upserts are not supported on {dialect!r}")


def insert_ignore(session: AsyncSession, model, **values):
    """
    INSERT .. ON CONFLICT DO NOTHING for the session's dialect.

    Without a conflict target any unique constraint on `model` swallows the
    row, so callers detect a duplicate by the missing RETURNING row and look
    up which constraint it was.
    """
    return _dialect_insert(session, model).values(**values).on_conflict_do_nothing()


def upsert(session: AsyncSession, model, *, index_elements: list[str], set_: dict, **values):
    """INSERT .. ON CONFLICT (index_elements) DO UPDATE SET set_."""
    return (
        _dialect_insert(session, model)
        .values(**values)
        .on_conflict_do_update(index_elements=index_elements, set_=set_)
    )
