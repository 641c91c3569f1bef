# movienight/services/notify.py
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Awaitable

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import BufferedInputFile

from movienight.database.models import WeekResult
from movienight.services.errors import ExternalServiceUnavailable
from movienight.services.watchlist import MdbListClient
from movienight.utils import messages
from movienight.utils.cards.results_card import CardPlacement, render_results_card
from movienight.utils.dates import week_start_of

if TYPE_CHECKING:
    from movienight.services.phase import WeekState

log = logging.getLogger(__name__)


class Notifier:
    """
    Outbound side effects: group chat messages and watch-list sync.

    The hooks `week_archived` and `voting_opened` return immediately; the
    work runs as background tasks whose failures are logged and never
    reach the caller.
    """

    def __init__(
        self,
        bot: Bot,
        *,
        group_id: int | None,
        watchlist: MdbListClient | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.bot = bot
        self.group_id = group_id
        self.watchlist = watchlist
        self.timeout_seconds = timeout_seconds
        self._pending: set[asyncio.Task] = set()

    # ---------- fire-and-forget plumbing ----------
    def fire(self, coro: Awaitable[object], *, what: str) -> asyncio.Task:
        task = asyncio.create_task(self._guard(coro, what))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @staticmethod
    async def _guard(coro: Awaitable[object], what: str) -> None:
        try:
            await coro
        except ExternalServiceUnavailable as e:
            log.warning("%s failed: %s", what, e)
        except Exception:
            log.exception("%s crashed", what)

    async def drain(self, timeout: float = 10.0) -> None:
        """Waits for in-flight notifications, used on shutdown and in tests."""
        if not self._pending:
            return
        await asyncio.wait(set(self._pending), timeout=timeout)

    # ---------- chat ----------
    async def announce(self, text: str) -> None:
        if not self.group_id:
            log.warning("Skipping group message: GROUP_ID is not set")
            return
        try:
            await asyncio.wait_for(
                self.bot.send_message(chat_id=self.group_id, text=text),
                timeout=self.timeout_seconds,
            )
        except (TelegramAPIError, asyncio.TimeoutError) as e:
            raise ExternalServiceUnavailable(f"Telegram send_message failed: {e!r}") from e

    async def announce_photo(self, png: bytes, *, filename: str, caption: str) -> None:
        if not self.group_id:
            log.warning("Skipping group photo: GROUP_ID is not set")
            return
        try:
            await asyncio.wait_for(
                self.bot.send_photo(
                    chat_id=self.group_id,
                    photo=BufferedInputFile(png, filename=filename),
                    caption=caption,
                ),
                timeout=self.timeout_seconds,
            )
        except (TelegramAPIError, asyncio.TimeoutError) as e:
            raise ExternalServiceUnavailable(f"Telegram send_photo failed: {e!r}") from e

    # ---------- hooks used by the phase machine ----------
    def week_archived(self, result: WeekResult) -> None:
        if self.watchlist is not None:
            for place in (result.first_place, result.second_place):
                if place is not None:
                    self.fire(
                        self.watchlist.add(place.external_id, place.title),
                        what=f"MDBList add {place.title!r}",
                    )
        self.fire(self._post_results(result), what=f"results post for {result.week}")

    def voting_opened(self, state: WeekState) -> None:
        self.fire(self.announce(messages.all_nominations_in(state)), what=f"voting open for {state.week}")

    async def _post_results(self, result: WeekResult) -> None:
        caption = messages.week_result_text(result)
        if result.first_place is None:
            await self.announce(caption)
            return

        placements = [
            CardPlacement(rank=i, title=p.title, votes=p.votes)
            for i, p in enumerate((result.first_place, result.second_place), start=1)
            if p is not None
        ]
        png = render_results_card(
            week=result.week,
            week_start=week_start_of(result.week),
            placements=placements,
        )
        await self.announce_photo(png, filename=f"results_{result.week}.png", caption=caption)
