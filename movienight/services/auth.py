# movienight/services/auth.py
from __future__ import annotations

from dataclasses import dataclass

from movienight.config import Settings
from movienight.database.models import User


@dataclass(frozen=True, slots=True)
class AuthResult:
    is_admin: bool
    role: str  # "admin" | "user"


class AuthService:
    """Admins are the Telegram ids listed in ROOT_ADMIN_IDS."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def resolve_telegram_id(self, telegram_id: int) -> AuthResult:
        if telegram_id in self.settings.root_admin_ids:
            return AuthResult(is_admin=True, role="admin")
        return AuthResult(is_admin=False, role="user")

    def resolve(self, user: User) -> AuthResult:
        return self.resolve_telegram_id(user.telegram_id)
