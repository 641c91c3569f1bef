# movienight/services/errors.py
from __future__ import annotations


class MovieNightError(Exception):
    """
    Base for every caller-recoverable failure.
    `str(err)` is safe to show to the user as-is.
    """

    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class PhaseClosed(MovieNightError):
    default_message = "⛔ That is not possible in the current phase."


class DuplicateUser(MovieNightError):
    default_message = "❌ You already nominated a movie this week."


class DuplicateMovie(MovieNightError):
    default_message = "❌ That movie is already nominated this week."


class CapacityReached(MovieNightError):
    default_message = "❌ All nomination slots for this week are taken."


class SelfVote(MovieNightError):
    default_message = "❌ You can't vote for your own nomination."


class QuotaExceeded(MovieNightError):
    default_message = "❌ You can only vote for 2 movies. Remove a vote first."


class NotFound(MovieNightError):
    default_message = "ℹ️ Not found."


class UserNotFound(MovieNightError):
    default_message = "⚠️ Unknown user. Send /start first."


class ExternalServiceUnavailable(MovieNightError):
    default_message = "⚠️ An external service is unavailable. Try again later."
