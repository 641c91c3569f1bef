# movienight/utils/messages.py
"""
HTML text builders shared by handlers, scheduled jobs and the notifier.
"""
from __future__ import annotations

import html
from datetime import datetime
from typing import TYPE_CHECKING, Iterable

from movienight.database.models import User, WatchHistory, WeekResult
from movienight.utils.phase_policy import Phase

if TYPE_CHECKING:
    from movienight.services.metadata import MovieDetails, MovieSummary
    from movienight.services.phase import WeekState
    from movienight.services.votes import RankedNomination

PHASE_LABELS = {
    Phase.NOMINATION: "🍿 Nominations open",
    Phase.VOTING: "🗳 Voting",
    Phase.RESULTS: "🏁 Results",
}

RANK_MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}


def esc(s: str | None) -> str:
    return html.escape(s or "")


def format_deadline(ts: datetime) -> str:
    return ts.strftime("%a %d %b, %H:%M")


def _votes(n: int) -> str:
    return f"{n} vote" if n == 1 else f"{n} votes"


def _movie_title(title: str, year: str | None) -> str:
    return f"<b>{esc(title)}</b> ({esc(year)})" if year else f"<b>{esc(title)}</b>"


def nominee_line(entry: RankedNomination, *, with_votes: bool = True) -> str:
    n = entry.nomination
    line = f"{entry.rank}. {_movie_title(n.title, n.year)} · by {esc(entry.proposer_name)}"
    if with_votes:
        line += f" · {_votes(entry.votes)}"
    return line


def nominee_list(state: WeekState, *, with_votes: bool = True) -> str:
    if not state.nominations:
        return "<i>No nominations yet.</i>"
    return "\n".join(nominee_line(e, with_votes=with_votes) for e in state.nominations)


def status_text(state: WeekState, *, my_nomination_title: str | None = None, my_votes: int | None = None) -> str:
    show_votes = state.phase != Phase.NOMINATION
    lines = [
        f"📅 <b>Week {esc(state.week)}</b>",
        f"Phase: <b>{PHASE_LABELS[state.phase]}</b>",
        f"Nominations: <b>{state.count}/{state.capacity}</b>",
        f"Voting closes: <b>{format_deadline(state.voting_deadline)}</b>",
        "",
        nominee_list(state, with_votes=show_votes),
    ]
    if my_nomination_title is not None:
        lines += ["", f"Your nomination: <b>{esc(my_nomination_title)}</b>"]
    if my_votes is not None and state.phase == Phase.VOTING:
        lines.append(f"Your votes: <b>{my_votes}</b>")
    return "\n".join(lines)


def all_nominations_in(state: WeekState) -> str:
    return (
        f"🎉 <b>All {state.capacity} nominations are in for {esc(state.week)}!</b>\n"
        "Voting is open now.\n\n"
        f"{nominee_list(state, with_votes=False)}\n\n"
        f"🗳 Vote with /vote before <b>{format_deadline(state.voting_deadline)}</b>."
    )


def nomination_start_text(state: WeekState) -> str:
    return (
        f"🍿 <b>New movie week {esc(state.week)}</b>\n"
        f"Nominate one movie each with /nominate &lt;title&gt;.\n"
        f"{state.capacity} slots available."
    )


def nudge_text(state: WeekState, missing: Iterable[User]) -> str:
    names = ", ".join(esc(u.display_name) for u in missing)
    text = (
        f"⏰ <b>Last day to nominate!</b>\n"
        f"{state.count}/{state.capacity} nominations so far, {state.slots_left} left."
    )
    if names:
        text += f"\nStill waiting for: {names}"
    return text


def voting_open_text(state: WeekState) -> str:
    return (
        f"🗳 <b>Voting is open for {esc(state.week)}</b>\n\n"
        f"{nominee_list(state, with_votes=False)}\n\n"
        f"You have 2 votes. Use /vote before <b>{format_deadline(state.voting_deadline)}</b>."
    )


def last_hour_text(state: WeekState, missing: Iterable[User]) -> str:
    names = ", ".join(esc(u.display_name) for u in missing)
    text = "⏳ <b>One hour left to vote!</b>\n\n" + nominee_list(state)
    if names:
        text += f"\n\nHaven't voted yet: {names}"
    return text


def standings_text(state: WeekState) -> str:
    if not state.nominations:
        return f"🏁 <b>Week {esc(state.week)}</b>\nNo movies were nominated this week."
    lines = [f"🏁 <b>Voting closed for {esc(state.week)}</b>", ""]
    for e in state.nominations:
        medal = RANK_MEDALS.get(e.rank, f"{e.rank}.")
        lines.append(f"{medal} {_movie_title(e.nomination.title, e.nomination.year)} · {_votes(e.votes)}")
    winner = state.nominations[0]
    lines += ["", f"🎬 Movie night: <b>{esc(winner.title)}</b>"]
    return "\n".join(lines)


def week_result_text(result: WeekResult) -> str:
    first, second = result.first_place, result.second_place
    if first is None:
        return f"📦 <b>Week {esc(result.week)} archived</b>\nNo movies were nominated."

    lines = [
        f"🏆 <b>Week {esc(result.week)} results</b>",
        f"🥇 <b>{esc(first.title)}</b> · {_votes(first.votes)}",
    ]
    if second is not None:
        lines.append(f"🥈 <b>{esc(second.title)}</b> · {_votes(second.votes)}")
    return "\n".join(lines)


def history_text(results: list[WeekResult]) -> str:
    if not results:
        return "📜 No archived weeks yet."
    lines = ["📜 <b>Past weeks</b>", ""]
    for r in results:
        first, second = r.first_place, r.second_place
        if first is None:
            lines.append(f"<b>{esc(r.week)}</b>: <i>no nominations</i>")
            continue
        row = f"<b>{esc(r.week)}</b>: 🥇 {esc(first.title)} ({first.votes})"
        if second is not None:
            row += f", 🥈 {esc(second.title)} ({second.votes})"
        lines.append(row)
    return "\n".join(lines)


def search_results_text(query: str, results: list[MovieSummary]) -> str:
    if not results:
        return f"🔎 Nothing found for <b>{esc(query)}</b>."
    lines = [f"🔎 Results for <b>{esc(query)}</b>, pick one:", ""]
    for i, m in enumerate(results, start=1):
        lines.append(f"{i}. {_movie_title(m.title, m.year)}")
    return "\n".join(lines)


def movie_details_text(movie: MovieDetails, *, trailer_url: str | None = None) -> str:
    lines = [f"🎬 {_movie_title(movie.title, movie.year)}"]
    meta = []
    if movie.rating is not None:
        meta.append(f"⭐ {movie.rating:.1f}")
    if movie.runtime:
        meta.append(f"{movie.runtime} min")
    if movie.genres:
        meta.append(", ".join(movie.genres))
    if meta:
        lines.append(esc(" · ".join(meta)))
    if movie.overview:
        overview = movie.overview if len(movie.overview) <= 600 else movie.overview[:597] + "..."
        lines += ["", esc(overview)]
    if trailer_url:
        lines += ["", f'▶️ <a href="{esc(trailer_url)}">Trailer</a>']
    return "\n".join(lines)


def watch_history_text(rows: list[WatchHistory]) -> str:
    if not rows:
        return "🎞 You haven't marked any movies as watched yet."
    lines = ["🎞 <b>Your watched movies</b>", ""]
    for r in rows:
        stars = "⭐" * r.rating if r.rating else "unrated"
        week = f" ({esc(r.week)})" if r.week else ""
        lines.append(f"• <b>{esc(r.title or f'TMDb #{r.tmdb_id}')}</b>{week}: {stars}")
    return "\n".join(lines)


def sunday_summary_text(state: WeekState) -> str:
    if not state.nominations:
        return f"🌙 <b>Week {esc(state.week)} is wrapping up.</b>\nNew nominations open Monday."
    return (
        f"🌙 <b>Week {esc(state.week)} is wrapping up.</b>\n"
        f"Hope you enjoyed <b>{esc(state.nominations[0].title)}</b>!\n"
        "Rate it with /watched 1-5. New nominations open Monday."
    )
