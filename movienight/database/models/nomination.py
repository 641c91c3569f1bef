from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from movienight.database.base import Base
from movienight.database.models.user import User


class Nomination(Base):
    """
    One proposed movie for a week.

    Both unique constraints are the authority for "one nomination per user"
    and "one nomination per movie"; the service only translates conflicts.
    """
    __tablename__ = "nominations"
    __table_args__ = (
        UniqueConstraint("week", "proposed_by", name="uq_nominations_week_user"),
        UniqueConstraint("week", "tmdb_id", name="uq_nominations_week_movie"),
        Index("ix_nominations_week_proposed_at", "week", "proposed_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    week: Mapped[str] = mapped_column(String(8), index=True)  # "2026-W08"

    tmdb_id: Mapped[int] = mapped_column(Integer)
    imdb_id: Mapped[str | None] = mapped_column(String(16), nullable=True)
    title: Mapped[str] = mapped_column(String(300))
    year: Mapped[str | None] = mapped_column(String(4), nullable=True)
    poster_path: Mapped[str | None] = mapped_column(String(128), nullable=True)
    backdrop_path: Mapped[str | None] = mapped_column(String(128), nullable=True)
    overview: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)

    proposed_by: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    # naive UTC, set by the service so that tie-breaks are reproducible
    proposed_at: Mapped[datetime] = mapped_column(DateTime(timezone=False))

    proposer: Mapped[User] = relationship(lazy="joined")
