# movienight/database/repo/users.py
from __future__ import annotations

from typing import Optional

from aiogram.types import TelegramObject
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.models.user import User


def _extract_from_user(event: TelegramObject):
    """
    Best-effort extract aiogram `from_user` from different update types.
    Works for Message, CallbackQuery, InlineQuery, etc.
    """
    u = getattr(event, "from_user", None)
    if u:
        return u

    msg = getattr(event, "message", None)
    if msg and getattr(msg, "from_user", None):
        return msg.from_user

    cb = getattr(event, "callback_query", None)
    if cb and getattr(cb, "from_user", None):
        return cb.from_user

    return None


async def upsert_user(
    session: AsyncSession,
    *,
    telegram_id: int,
    username: str | None,
    first_name: str | None,
    last_name: str | None,
) -> User:
    res = await session.execute(select(User).where(User.telegram_id == telegram_id))
    user = res.scalar_one_or_none()

    if user is None:
        user = User(
            telegram_id=telegram_id,
            username=username,
            first_name=first_name,
            last_name=last_name,
        )
        session.add(user)
        await session.flush()  # ensures `user.id` exists before handlers use it
        return user

    # Keep profile fields fresh, `name`/`icon` are family settings and stay
    user.username = username
    user.first_name = first_name
    user.last_name = last_name
    return user


async def upsert_user_from_event(session: AsyncSession, event: TelegramObject) -> Optional[User]:
    tg = _extract_from_user(event)
    if tg is None or getattr(tg, "is_bot", False):
        return None

    return await upsert_user(
        session,
        telegram_id=tg.id,
        username=tg.username,
        first_name=tg.first_name,
        last_name=tg.last_name,
    )


async def list_users(session: AsyncSession) -> list[User]:
    res = await session.execute(select(User).order_by(User.id.asc()))
    return list(res.scalars().all())
