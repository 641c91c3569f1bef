# movienight/scheduler/__init__.py
from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from movienight.config.settings import Settings
from movienight.database.session import Database
from movienight.scheduler.jobs import build_scheduler
from movienight.services.notify import Notifier
from movienight.services.phase import PhaseMachine


def setup_scheduler(db: Database, settings: Settings, machine: PhaseMachine, notifier: Notifier) -> AsyncIOScheduler:
    scheduler = build_scheduler(db=db, settings=settings, machine=machine, notifier=notifier)
    scheduler.start()
    return scheduler
