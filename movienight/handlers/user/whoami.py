# movienight/handlers/user/whoami.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.config.settings import Settings
from movienight.database.models import User
from movienight.services.auth import AuthService
from movienight.utils.ensure_user import ensure_user
from movienight.utils.messages import esc
from movienight.utils.reply import reply_safe

router = Router()


@router.message(Command("whoami"))
async def whoami(
    message: Message, session: AsyncSession, settings: Settings, db_user: User | None = None
) -> None:
    u = await ensure_user(session, message, db_user)
    role = AuthService(settings).resolve(u).role
    username = f"@{esc(u.username)}" if u.username else "(none)"

    text = (
        "👤 <b>Your identity</b>\n"
        f"• Name: {esc(u.icon)} {esc(u.display_name)}\n"
        f"• Telegram ID: <code>{u.telegram_id}</code>\n"
        f"• Username: {username}\n"
        f"• Role: {role}\n"
    )
    await reply_safe(message, text)
