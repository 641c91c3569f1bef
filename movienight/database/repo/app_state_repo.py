# movienight/database/repo/app_state_repo.py
from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.models import AppState
from movienight.database.tx import insert_ignore


STATE_ID = 1


async def get_or_create_state(session: AsyncSession) -> AppState:
    stmt = (
        select(AppState)
        .where(AppState.id == STATE_ID)
        .execution_options(populate_existing=True)
    )
    state = (await session.execute(stmt)).scalar_one_or_none()
    if state:
        return state

    # concurrent first starts both try, one row survives
    await session.execute(insert_ignore(session, AppState, id=STATE_ID, active_week=None))
    return (await session.execute(stmt)).scalar_one()


async def lock_state(session: AsyncSession) -> None:
    """
    Serialises week-ledger writers across processes: touching the row takes
    the row lock on PostgreSQL and the database write lock on SQLite.
    Must run inside the caller's transaction.
    """
    await get_or_create_state(session)
    await session.execute(
        update(AppState)
        .where(AppState.id == STATE_ID)
        .values(updated_at=func.now())
        .execution_options(synchronize_session=False)
    )


async def advance_active_week(session: AsyncSession, *, expected: str | None, new_week: str) -> bool:
    """
    Compare-and-set of the active week.
    Returns False when another caller already moved it.
    """
    cond = AppState.active_week.is_(None) if expected is None else AppState.active_week == expected
    res = await session.execute(
        update(AppState)
        .where(AppState.id == STATE_ID, cond)
        .values(active_week=new_week)
        .execution_options(synchronize_session=False)
    )
    return (res.rowcount or 0) == 1


async def is_active_week(session: AsyncSession, week: str) -> bool:
    """False once `week` has been archived (or not yet started)."""
    return (await get_or_create_state(session)).active_week == week
