# movienight/keyboards/movies.py
from __future__ import annotations

from typing import Iterable

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from movienight.services.metadata import MovieSummary
from movienight.services.votes import RankedNomination

# callback_data prefixes
CB_NOMINATE = "nom"
CB_VOTE = "vote"
CB_MOVIE = "movie"
CB_WITHDRAW = "withdraw"


def _short(title: str, limit: int = 40) -> str:
    return title if len(title) <= limit else title[: limit - 1] + "…"


def search_results_kb(results: Iterable[MovieSummary]) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for i, m in enumerate(results, start=1):
        label = f"{i}. {m.title} ({m.year})" if m.year else f"{i}. {m.title}"
        kb.add(InlineKeyboardButton(text=_short(label), callback_data=f"{CB_NOMINATE}:{m.tmdb_id}"))
    kb.adjust(1)
    return kb.as_markup()


def vote_kb(entries: Iterable[RankedNomination], *, my_votes: set[int], own_id: int | None) -> InlineKeyboardMarkup:
    """
    One toggle button per nomination; the voter's own nomination is
    shown without a button.
    """
    kb = InlineKeyboardBuilder()
    for e in entries:
        n = e.nomination
        if n.proposed_by == own_id:
            continue
        mark = "✅" if n.id in my_votes else "⬜"
        kb.add(InlineKeyboardButton(text=_short(f"{mark} {n.title}"), callback_data=f"{CB_VOTE}:{n.id}"))
    kb.adjust(1)
    return kb.as_markup()


def movies_kb(entries: Iterable[RankedNomination]) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for e in entries:
        kb.add(
            InlineKeyboardButton(
                text=_short(f"ℹ️ {e.nomination.title}"),
                callback_data=f"{CB_MOVIE}:{e.nomination.id}",
            )
        )
    kb.adjust(1)
    return kb.as_markup()


def withdraw_kb() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.add(InlineKeyboardButton(text="🗑 Withdraw", callback_data=CB_WITHDRAW))
    return kb.as_markup()


def parse_id(data: str | None, prefix: str) -> int | None:
    """`"vote:12"` -> 12 for prefix "vote"; None for anything else."""
    if not data or not data.startswith(prefix + ":"):
        return None
    try:
        return int(data.split(":", 1)[1])
    except ValueError:
        return None
