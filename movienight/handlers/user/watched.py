# movienight/handlers/user/watched.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.models import User
from movienight.services.errors import MovieNightError
from movienight.services.phase import PhaseMachine
from movienight.services.watch import WatchService
from movienight.utils import messages
from movienight.utils.ensure_user import ensure_user
from movienight.utils.phase_policy import Phase
from movienight.utils.reply import reply_safe

router = Router()


def _parse_rating(raw: str | None) -> int | None:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return -1  # rejected by the service with a readable message


@router.message(Command("watched"))
async def watched_cmd(
    message: Message,
    command: CommandObject,
    session: AsyncSession,
    machine: PhaseMachine,
    db_user: User | None = None,
) -> None:
    """
    Marks the most recent winner as watched: this week's leader once voting
    has closed, otherwise the last archived winner.
    """
    user = await ensure_user(session, message, db_user)
    state = await machine.current_state(session)

    if state.phase == Phase.RESULTS and state.nominations:
        top = state.nominations[0].nomination
        tmdb_id, title, week = top.tmdb_id, top.title, state.week
    else:
        result = await WatchService.latest_winner(session)
        if result is None or result.first_place is None:
            await reply_safe(message, "ℹ️ There is no winner to mark yet.")
            return
        tmdb_id, title, week = result.first_place.tmdb_id, result.first_place.title, result.week

    try:
        row = await WatchService.mark_watched(
            session,
            user_id=user.id,
            tmdb_id=tmdb_id,
            title=title,
            week=week,
            rating=_parse_rating(command.args),
        )
    except MovieNightError as e:
        await reply_safe(message, str(e))
        return

    stars = f" {'⭐' * row.rating}" if row.rating else ""
    await reply_safe(message, f"🎞 Marked <b>{messages.esc(title)}</b> as watched.{stars}")


@router.message(Command("mywatched"))
async def my_watched_cmd(
    message: Message, session: AsyncSession, db_user: User | None = None
) -> None:
    user = await ensure_user(session, message, db_user)
    rows = await WatchService.history(session, user_id=user.id)
    await reply_safe(message, messages.watch_history_text(rows))
