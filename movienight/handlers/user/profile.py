# movienight/handlers/user/profile.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.models import User
from movienight.services.errors import MovieNightError
from movienight.services.user import UserService
from movienight.utils.ensure_user import ensure_user
from movienight.utils.messages import esc
from movienight.utils.reply import reply_safe

router = Router()


@router.message(Command("setname"))
async def set_name_cmd(
    message: Message, command: CommandObject, session: AsyncSession, db_user: User | None = None
) -> None:
    user = await ensure_user(session, message, db_user)
    try:
        user = await UserService.set_name(session, user.id, command.args)
    except MovieNightError as e:
        await reply_safe(message, str(e))
        return
    await reply_safe(message, f"✅ You now show up as {esc(user.icon)} <b>{esc(user.display_name)}</b>.")


@router.message(Command("seticon"))
async def set_icon_cmd(
    message: Message, command: CommandObject, session: AsyncSession, db_user: User | None = None
) -> None:
    user = await ensure_user(session, message, db_user)
    try:
        user = await UserService.set_icon(session, user.id, command.args)
    except MovieNightError as e:
        await reply_safe(message, str(e))
        return
    await reply_safe(message, f"✅ Icon set: {esc(user.icon)}")
