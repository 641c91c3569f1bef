# movienight/handlers/user/history.py
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.keyboards.main import BTN_HISTORY
from movienight.services.archive import ArchiveService
from movienight.services.phase import PhaseMachine
from movienight.utils import messages
from movienight.utils.reply import reply_safe

router = Router()


@router.message(Command("history"))
@router.message(F.text == BTN_HISTORY)
async def history_cmd(message: Message, session: AsyncSession, machine: PhaseMachine) -> None:
    # make sure last week is archived before listing
    await machine.roll_over(session)
    results = await ArchiveService.history(session, limit=12)
    await reply_safe(message, messages.history_text(results))
