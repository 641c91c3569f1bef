# movienight/config/settings.py
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from movienight.utils.phase_policy import PhasePolicy


def _require(env: dict[str, str], key: str) -> str:
    v = env.get(key)
    if v is None or not v.strip():
        raise RuntimeError(f"Missing required environment variable: {key}")
    return v.strip()


def _to_int(value: str, key_name: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid integer for {key_name}: {value!r}") from e


def _to_float(value: str, key_name: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid number for {key_name}: {value!r}") from e


def _optional(env, key: str) -> str | None:
    v = (env.get(key) or "").strip()
    return v or None


def _parse_int_list(raw: str | None, key_name: str) -> list[int]:
    """
    Parses comma/space/newline separated ints.
    Accepts:
      "951258732"
      "951258732,123"
      "951258732 123"
      "[951258732, 123]"  (brackets ignored)
    """
    if not raw:
        return []

    cleaned = raw.strip().strip("[](){}").strip()
    if not cleaned:
        return []

    parts = [p for p in re.split(r"[,\s]+", cleaned) if p]

    out: list[int] = []
    for p in parts:
        p2 = p.strip().strip("'\"")
        if not p2:
            continue
        out.append(_to_int(p2, key_name))
    return out


@dataclass(frozen=True, slots=True)
class Settings:
    # --- required ---
    bot_token: str

    # --- optional ---
    database_url: str = "sqlite+aiosqlite:///./movienight.db"

    # --- security / admin ---
    root_admin_ids: tuple[int, ...] = ()

    # --- telegram targets ---
    group_id: Optional[int] = None

    # --- external services ---
    tmdb_api_key: Optional[str] = None
    mdblist_api_key: Optional[str] = None
    mdblist_list_id: Optional[str] = None
    http_timeout_seconds: float = 10.0

    # --- week schedule (local time of `timezone`) ---
    timezone: str = "UTC"
    nomination_days: int = 4  # Monday..Thursday
    voting_close_weekday: int = 4  # Friday, Monday=0
    voting_close_hour: int = 18

    # --- environment ---
    environment: str = "production"  # production | development

    @property
    def is_dev(self) -> bool:
        return self.environment.lower() in {"dev", "development", "local"}

    @property
    def mdblist_enabled(self) -> bool:
        return bool(self.mdblist_api_key and self.mdblist_list_id)

    def phase_policy(self) -> PhasePolicy:
        return PhasePolicy(
            timezone=self.timezone,
            nomination_days=self.nomination_days,
            voting_close_weekday=self.voting_close_weekday,
            voting_close_hour=self.voting_close_hour,
        )

    @classmethod
    def load(cls) -> "Settings":
        """
        Loads from process env (and .env if present).
        Fails fast for required fields and for an inconsistent week schedule.
        """
        load_dotenv()
        env = os.environ

        bot_token = _require(env, "BOT_TOKEN")

        database_url = (env.get("DATABASE_URL") or "sqlite+aiosqlite:///./movienight.db").strip()

        root_admin_ids = tuple(_parse_int_list(env.get("ROOT_ADMIN_IDS"), "ROOT_ADMIN_IDS"))

        group_id_raw = _optional(env, "GROUP_ID")
        group_id = _to_int(group_id_raw, "GROUP_ID") if group_id_raw else None

        timeout_raw = _optional(env, "HTTP_TIMEOUT_SECONDS")
        http_timeout_seconds = _to_float(timeout_raw, "HTTP_TIMEOUT_SECONDS") if timeout_raw else 10.0

        nomination_days_raw = _optional(env, "NOMINATION_DAYS")
        close_weekday_raw = _optional(env, "VOTING_CLOSE_WEEKDAY")
        close_hour_raw = _optional(env, "VOTING_CLOSE_HOUR")

        timezone = _optional(env, "TIMEZONE") or "UTC"
        environment = _optional(env, "ENVIRONMENT") or "production"

        settings = cls(
            bot_token=bot_token,
            database_url=database_url,
            root_admin_ids=root_admin_ids,
            group_id=group_id,
            tmdb_api_key=_optional(env, "TMDB_API_KEY"),
            mdblist_api_key=_optional(env, "MDBLIST_API_KEY"),
            mdblist_list_id=_optional(env, "MDBLIST_LIST_ID"),
            http_timeout_seconds=http_timeout_seconds,
            timezone=timezone,
            nomination_days=_to_int(nomination_days_raw, "NOMINATION_DAYS") if nomination_days_raw else 4,
            voting_close_weekday=(
                _to_int(close_weekday_raw, "VOTING_CLOSE_WEEKDAY") if close_weekday_raw else 4
            ),
            voting_close_hour=_to_int(close_hour_raw, "VOTING_CLOSE_HOUR") if close_hour_raw else 18,
            environment=environment,
        )

        try:
            settings.phase_policy()
        except (ValueError, KeyError) as e:
            raise RuntimeError(f"Invalid week schedule: {e}") from e

        return settings
