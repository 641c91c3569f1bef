# movienight/handlers/admin/results.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.config.settings import Settings
from movienight.database.session import Database
from movienight.scheduler.jobs import post_results
from movienight.services.auth import AuthService
from movienight.services.notify import Notifier
from movienight.services.phase import PhaseMachine
from movienight.utils import messages
from movienight.utils.dates import utc_now
from movienight.utils.phase_policy import Phase

router = Router()


async def require_admin_or_reply(message: Message, settings: Settings) -> bool:
    tg = message.from_user
    if not tg or not AuthService(settings).resolve_telegram_id(tg.id).is_admin:
        await message.answer("⛔ You are not allowed to use admin commands.")
        return False
    return True


@router.message(Command("rollover"))
async def rollover_cmd(
    message: Message,
    settings: Settings,
    session: AsyncSession,
    machine: PhaseMachine,
) -> None:
    if not await require_admin_or_reply(message, settings):
        return

    outcome = await machine.roll_over(session)
    if outcome is None:
        week = machine.week_of(utc_now())
        await message.answer(f"ℹ️ Nothing to roll over, active week is {messages.esc(week)}.")
    elif outcome.created:
        await message.answer(f"✅ Archived {messages.esc(outcome.result.week)}. Results are being posted.")
    else:
        await message.answer(f"ℹ️ {messages.esc(outcome.result.week)} was already archived.")


@router.message(Command("results_post"))
async def results_post_cmd(
    message: Message,
    settings: Settings,
    db: Database,
    machine: PhaseMachine,
    notifier: Notifier,
) -> None:
    if not await require_admin_or_reply(message, settings):
        return

    state = await post_results(db=db, machine=machine, notifier=notifier)
    if state.phase != Phase.RESULTS:
        await message.answer(f"ℹ️ Voting for {messages.esc(state.week)} is still open, nothing posted.")
        return
    await message.answer("✅ Posting results to the group.")
