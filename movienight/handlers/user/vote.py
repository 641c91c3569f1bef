# movienight/handlers/user/vote.py
from __future__ import annotations

import logging

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.models import User
from movienight.keyboards.main import BTN_VOTE
from movienight.keyboards.movies import CB_VOTE, parse_id, vote_kb
from movienight.services.errors import MovieNightError
from movienight.services.phase import PhaseMachine
from movienight.services.votes import VoteService
from movienight.utils import messages
from movienight.utils.ensure_user import ensure_user
from movienight.utils.phase_policy import Phase
from movienight.utils.reply import reply_safe

log = logging.getLogger(__name__)

router = Router()


def _ballot_text(week: str, votes_left: int) -> str:
    return (
        f"🗳 <b>Vote for {messages.esc(week)}</b>\n"
        f"Tap a movie to add or remove your vote. Votes left: <b>{votes_left}</b>"
    )


@router.message(Command("vote"))
@router.message(F.text == BTN_VOTE)
async def vote_cmd(
    message: Message, session: AsyncSession, machine: PhaseMachine, db_user: User | None = None
) -> None:
    user = await ensure_user(session, message, db_user)
    state = await machine.current_state(session)

    if state.phase != Phase.VOTING:
        await reply_safe(message, f"⛔ Voting is not open (current phase: {state.phase.value}).")
        return
    if not state.nominations:
        await reply_safe(message, "😴 Nothing was nominated this week.")
        return

    mine = await VoteService.votes_of(session, state.week, user.id)
    left = max(0, VoteService.MAX_VOTES_PER_USER - len(mine))
    await message.answer(
        _ballot_text(state.week, left),
        reply_markup=vote_kb(state.nominations, my_votes=mine, own_id=user.id),
    )


@router.callback_query(F.data.startswith(f"{CB_VOTE}:"))
async def vote_toggle_cb(
    cb: CallbackQuery, session: AsyncSession, machine: PhaseMachine, db_user: User | None = None
) -> None:
    nomination_id = parse_id(cb.data, CB_VOTE)
    if nomination_id is None:
        await cb.answer()
        return

    user = await ensure_user(session, cb, db_user)
    try:
        res = await VoteService.toggle(session, machine=machine, nomination_id=nomination_id, voter_id=user.id)
    except MovieNightError as e:
        await cb.answer(str(e), show_alert=True)
        return

    await cb.answer("✅ Vote added" if res.active else "↩️ Vote removed")

    if cb.message is None:
        return
    state = await machine.current_state(session)
    mine = await VoteService.votes_of(session, state.week, user.id)
    try:
        await cb.message.edit_text(
            _ballot_text(state.week, res.votes_left),
            reply_markup=vote_kb(state.nominations, my_votes=mine, own_id=user.id),
        )
    except TelegramBadRequest as e:
        # "message is not modified" when the toggle was a no-op
        log.debug("Ballot not edited: %s", e)
