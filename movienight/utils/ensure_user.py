# movienight/utils/ensure_user.py
from __future__ import annotations

from aiogram.types import TelegramObject
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.models.user import User
from movienight.database.repo.users import upsert_user_from_event


async def ensure_user(session: AsyncSession, event: TelegramObject, db_user: User | None = None) -> User:
    """
    The middleware normally injects `db_user`; this covers updates where it
    could not (no from_user) by failing loudly instead of acting anonymously.
    """
    if db_user is not None:
        return db_user
    row = await upsert_user_from_event(session, event)
    if row is None:
        raise RuntimeError("Unable to ensure user: update has no from_user")
    return row
