# movienight/services/user.py
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.models import User
from movienight.services.errors import MovieNightError, UserNotFound

MAX_NAME_LEN = 32
MAX_ICON_LEN = 16


class UserService:
    """Family profile: the display name and icon shown next to nominations."""

    @staticmethod
    async def _get(session: AsyncSession, user_id: int) -> User:
        user = await session.get(User, user_id)
        if user is None:
            raise UserNotFound()
        return user

    @staticmethod
    async def set_name(session: AsyncSession, user_id: int, name: str | None) -> User:
        """An empty name falls back to the Telegram name."""
        cleaned = " ".join((name or "").split())
        if len(cleaned) > MAX_NAME_LEN:
            raise MovieNightError(f"❌ Names can be at most {MAX_NAME_LEN} characters.")

        user = await UserService._get(session, user_id)
        user.name = cleaned or None
        await session.commit()
        return user

    @staticmethod
    async def set_icon(session: AsyncSession, user_id: int, icon: str | None) -> User:
        cleaned = (icon or "").strip()
        if not cleaned or any(c.isspace() for c in cleaned):
            raise MovieNightError("❌ Send a single emoji, e.g. /seticon 🦄")
        if len(cleaned) > MAX_ICON_LEN:
            raise MovieNightError("❌ That icon is too long.")

        user = await UserService._get(session, user_id)
        user.icon = cleaned
        await session.commit()
        return user
