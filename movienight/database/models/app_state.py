from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from movienight.database.base import Base


class AppState(Base):
    """
    Single-row table.
    `active_week` is the week whose nominations/votes are live; it only
    moves forward, and only after that week has been archived.
    """
    __tablename__ = "app_state"

    id: Mapped[int] = mapped_column(primary_key=True)  # always 1

    active_week: Mapped[str | None] = mapped_column(String(8), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
    )
