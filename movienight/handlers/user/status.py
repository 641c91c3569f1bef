# movienight/handlers/user/status.py
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.models import User
from movienight.keyboards.main import BTN_STATUS
from movienight.keyboards.movies import CB_MOVIE, movies_kb, parse_id
from movienight.services.errors import MovieNightError
from movienight.services.metadata import TmdbClient
from movienight.services.nominations import NominationService
from movienight.services.phase import PhaseMachine
from movienight.services.votes import VoteService
from movienight.utils import messages
from movienight.utils.ensure_user import ensure_user
from movienight.utils.phase_policy import Phase
from movienight.utils.reply import reply_safe

router = Router()


@router.message(Command("status"))
@router.message(F.text == BTN_STATUS)
async def status_cmd(
    message: Message, session: AsyncSession, machine: PhaseMachine, db_user: User | None = None
) -> None:
    user = await ensure_user(session, message, db_user)
    state = await machine.current_state(session)

    mine = await NominationService.get_for_user(session, state.week, user.id)
    my_votes = await VoteService.votes_of(session, state.week, user.id)

    await reply_safe(
        message,
        messages.status_text(
            state,
            my_nomination_title=mine.title if mine else None,
            my_votes=len(my_votes),
        ),
    )


@router.message(Command("movies"))
async def movies_cmd(message: Message, session: AsyncSession, machine: PhaseMachine) -> None:
    state = await machine.current_state(session)
    if not state.nominations:
        await reply_safe(message, f"🍿 No movies nominated for {messages.esc(state.week)} yet.")
        return

    await message.answer(
        f"🍿 <b>Nominated for {messages.esc(state.week)}</b>\n\n"
        f"{messages.nominee_list(state, with_votes=state.phase != Phase.NOMINATION)}",
        reply_markup=movies_kb(state.nominations),
    )


@router.callback_query(F.data.startswith(f"{CB_MOVIE}:"))
async def movie_details_cb(cb: CallbackQuery, session: AsyncSession, tmdb: TmdbClient) -> None:
    nomination_id = parse_id(cb.data, CB_MOVIE)
    nomination = await NominationService.get_by_id(session, nomination_id) if nomination_id else None
    if nomination is None:
        await cb.answer("ℹ️ That movie is no longer nominated.", show_alert=True)
        return

    # no transaction stays open across the TMDb calls
    await session.commit()
    try:
        details = await tmdb.get_movie(nomination.tmdb_id)
        trailer = await tmdb.get_trailer_url(nomination.tmdb_id)
    except MovieNightError as e:
        await cb.answer(str(e), show_alert=True)
        return

    await cb.answer()
    if cb.message is not None:
        await cb.message.answer(messages.movie_details_text(details, trailer_url=trailer))
