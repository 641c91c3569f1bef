# movienight/main.py
import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from movienight.config import Settings
from movienight.database import Database
from movienight.handlers import router as handlers_router
from movienight.scheduler import setup_scheduler
from movienight.services.metadata import TmdbClient
from movienight.services.notify import Notifier
from movienight.services.phase import PhaseMachine
from movienight.services.watchlist import MdbListClient
from movienight.utils.middleware import DbSessionMiddleware


def setup_logging(is_dev: bool) -> None:
    """
    - app logs: INFO (or DEBUG in dev)
    - SQLAlchemy / driver logs: WARNING+ (no query/pool spam)
    """
    app_level = logging.DEBUG if is_dev else logging.INFO

    logging.basicConfig(
        level=app_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    for name in (
        "sqlalchemy",
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "sqlalchemy.orm",
        "aiosqlite",
        "asyncpg",
        "apscheduler",
    ):
        logging.getLogger(name).setLevel(logging.WARNING)


async def main() -> None:
    settings = Settings.load()
    setup_logging(settings.is_dev)
    log = logging.getLogger("movienight")

    db = Database(settings.database_url)
    await db.init_models()
    log.info("DB initialized")

    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    tmdb = TmdbClient(settings.tmdb_api_key, timeout_seconds=settings.http_timeout_seconds)
    watchlist = MdbListClient(
        settings.mdblist_api_key,
        settings.mdblist_list_id,
        timeout_seconds=settings.http_timeout_seconds,
    )
    notifier = Notifier(
        bot,
        group_id=settings.group_id,
        watchlist=watchlist,
        timeout_seconds=settings.http_timeout_seconds,
    )
    machine = PhaseMachine(settings.phase_policy(), notifier)

    if not settings.tmdb_api_key:
        log.warning("TMDB_API_KEY is not set, /nominate will not work")
    if not watchlist.enabled:
        log.info("MDBList sync disabled")

    dp = Dispatcher()

    # Inject workflow data
    dp.workflow_data["settings"] = settings
    dp.workflow_data["db"] = db
    dp.workflow_data["machine"] = machine
    dp.workflow_data["tmdb"] = tmdb
    dp.workflow_data["notifier"] = notifier

    # DB session per update
    dp.update.middleware(DbSessionMiddleware(db))

    dp.include_router(handlers_router)

    # catch up on a rollover missed while the bot was down
    async with db.session() as session:
        state = await machine.current_state(session)
    log.info("Week %s, phase %s (%d/%d nominations)", state.week, state.phase.value, state.count, state.capacity)

    scheduler = setup_scheduler(db=db, settings=settings, machine=machine, notifier=notifier)
    log.info("Scheduler started")

    try:
        await dp.start_polling(bot)
    except (asyncio.CancelledError, KeyboardInterrupt):
        pass
    except Exception:
        log.exception("Bot crashed")
        raise
    finally:
        try:
            scheduler.shutdown(wait=False)
        except Exception:
            log.exception("Failed to shutdown scheduler")

        try:
            await notifier.drain(timeout=settings.http_timeout_seconds)
        except Exception:
            log.exception("Failed to drain notifications")

        try:
            await tmdb.close()
        except Exception:
            log.exception("Failed to close TMDb session")

        try:
            await db.close()
        except Exception:
            log.exception("Failed to close DB")

        try:
            await bot.session.close()
        except Exception:
            log.exception("Failed to close bot session")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
