# movienight/handlers/common.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from movienight.database.models import User
from movienight.utils.ensure_user import ensure_user
from movienight.utils.messages import esc
from movienight.utils.reply import reply_safe

router = Router(name="common")

HELP_TEXT = (
    "📌 <b>Commands</b>\n"
    "/status · this week's phase and nominations\n"
    "/movies · nominated movies with details\n"
    "/nominate &lt;title&gt; · search and nominate a movie\n"
    "/browse &lt;category&gt; · trending, popular, genres...\n"
    "/mynomination · show or withdraw your nomination\n"
    "/vote · vote for up to 2 movies\n"
    "/history · past winners\n"
    "/watched [1-5] · mark the last winner as watched, with a rating\n"
    "/mywatched · your watched movies\n"
    "/setname &lt;name&gt; · /seticon &lt;emoji&gt; · your family profile\n"
    "/whoami · your profile"
)


@router.message(CommandStart())
async def cmd_start(
    message: Message, session: AsyncSession, db_user: User | None = None
) -> None:
    user = await ensure_user(session, message, db_user)
    await reply_safe(
        message,
        f"🎬 Welcome to family movie night, <b>{esc(user.display_name)}</b>!\n\n"
        "Every week each of us nominates one movie, then everyone votes.\n"
        "Use /help to see commands.",
    )


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await reply_safe(message, HELP_TEXT)
