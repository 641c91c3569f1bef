from .user import User
from .nomination import Nomination
from .vote import Vote
from .week_result import Placement, WeekResult
from .watch_history import WatchHistory
from .app_state import AppState

__all__ = [
    "User",
    "Nomination",
    "Vote",
    "Placement",
    "WeekResult",
    "WatchHistory",
    "AppState",
]
