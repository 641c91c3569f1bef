# movienight/handlers/user/nominate.py
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.models import User
from movienight.keyboards.main import BTN_MY_NOMINATION
from movienight.keyboards.movies import CB_NOMINATE, CB_WITHDRAW, parse_id, search_results_kb, withdraw_kb
from movienight.services.errors import MovieNightError
from movienight.services.metadata import BROWSE_CATEGORIES, MovieSummary, TmdbClient
from movienight.services.nominations import NominationService
from movienight.services.phase import PhaseMachine, WeekState
from movienight.utils import messages
from movienight.utils.ensure_user import ensure_user
from movienight.utils.phase_policy import Phase
from movienight.utils.reply import reply_safe

router = Router()


def _closed_reason(state: WeekState) -> str | None:
    if state.archived or state.calendar_phase != Phase.NOMINATION:
        return f"⛔ Nominations are closed (current phase: {state.phase.value})."
    if state.is_full:
        return f"❌ All {state.capacity} nomination slots for this week are taken."
    return None


async def _offer(message: Message, label: str, results: list[MovieSummary]) -> None:
    if not results:
        await reply_safe(message, messages.search_results_text(label, results))
        return
    await message.answer(messages.search_results_text(label, results), reply_markup=search_results_kb(results))


@router.message(Command("nominate"))
async def nominate_cmd(
    message: Message,
    command: CommandObject,
    session: AsyncSession,
    machine: PhaseMachine,
    tmdb: TmdbClient,
) -> None:
    query = (command.args or "").strip()
    if not query:
        await reply_safe(message, "Usage: /nominate &lt;movie title&gt;")
        return

    state = await machine.current_state(session)
    reason = _closed_reason(state)
    if reason is not None:
        await reply_safe(message, reason)
        return

    await session.commit()
    try:
        results = await tmdb.search(query, limit=3)
    except MovieNightError as e:
        await reply_safe(message, str(e))
        return

    await _offer(message, query, results)


@router.message(Command("browse"))
async def browse_cmd(
    message: Message,
    command: CommandObject,
    session: AsyncSession,
    machine: PhaseMachine,
    tmdb: TmdbClient,
) -> None:
    category = (command.args or "").strip()
    if not category:
        await reply_safe(message, "Usage: /browse &lt;category&gt;\nCategories: " + ", ".join(BROWSE_CATEGORIES))
        return

    state = await machine.current_state(session)
    reason = _closed_reason(state)
    if reason is not None:
        await reply_safe(message, reason)
        return

    await session.commit()
    try:
        results = await tmdb.browse(category)
    except MovieNightError as e:
        await reply_safe(message, str(e))
        return
    await _offer(message, category, results)


@router.callback_query(F.data.startswith(f"{CB_NOMINATE}:"))
async def nominate_pick_cb(
    cb: CallbackQuery,
    session: AsyncSession,
    machine: PhaseMachine,
    tmdb: TmdbClient,
    db_user: User | None = None,
) -> None:
    tmdb_id = parse_id(cb.data, CB_NOMINATE)
    if tmdb_id is None:
        await cb.answer()
        return

    user = await ensure_user(session, cb, db_user)
    try:
        nomination = await NominationService.propose(
            session,
            machine=machine,
            metadata=tmdb,
            user_id=user.id,
            tmdb_id=tmdb_id,
        )
    except MovieNightError as e:
        await cb.answer(str(e), show_alert=True)
        return

    await cb.answer("✅ Nominated!")
    if cb.message is not None:
        year = f" ({messages.esc(nomination.year)})" if nomination.year else ""
        await cb.message.edit_text(
            f"✅ {messages.esc(user.display_name)} nominated <b>{messages.esc(nomination.title)}</b>{year}"
        )


@router.message(Command("mynomination"))
@router.message(F.text == BTN_MY_NOMINATION)
async def my_nomination_cmd(
    message: Message, session: AsyncSession, machine: PhaseMachine, db_user: User | None = None
) -> None:
    user = await ensure_user(session, message, db_user)
    state = await machine.current_state(session)

    mine = await NominationService.get_for_user(session, state.week, user.id)
    if mine is None:
        await reply_safe(message, "ℹ️ You have no nomination this week. Use /nominate &lt;title&gt;.")
        return

    text = f"🍿 Your nomination for {messages.esc(state.week)}: <b>{messages.esc(mine.title)}</b>"
    if state.calendar_phase == Phase.NOMINATION:
        await message.answer(text, reply_markup=withdraw_kb())
    else:
        await reply_safe(message, text)


@router.callback_query(F.data == CB_WITHDRAW)
async def withdraw_cb(
    cb: CallbackQuery, session: AsyncSession, machine: PhaseMachine, db_user: User | None = None
) -> None:
    user = await ensure_user(session, cb, db_user)
    try:
        removed = await NominationService.withdraw(session, machine=machine, user_id=user.id)
    except MovieNightError as e:
        await cb.answer(str(e), show_alert=True)
        return

    await cb.answer("🗑 Withdrawn")
    if cb.message is not None:
        await cb.message.edit_text(f"🗑 Withdrew <b>{messages.esc(removed.title)}</b>. You can nominate again.")
