from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from movienight.database.base import Base


class Vote(Base):
    """
    Presence of a row means an active vote; retracting deletes it.
    One vote per user per nomination (unique).
    """
    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("nomination_id", "user_id", name="uq_votes_nomination_user"),
        Index("ix_votes_week_user", "week", "user_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    nomination_id: Mapped[int] = mapped_column(ForeignKey("nominations.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    # denormalised from the nomination for the per-week quota count
    week: Mapped[str] = mapped_column(String(8), index=True)

    voted_at: Mapped[datetime] = mapped_column(DateTime(timezone=False))
