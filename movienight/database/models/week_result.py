from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from movienight.database.base import Base


@dataclass(frozen=True, slots=True)
class Placement:
    tmdb_id: int
    imdb_id: str | None
    title: str
    votes: int

    @property
    def external_id(self) -> str:
        # MDBList accepts either an IMDb id or "tmdb:<id>"
        return self.imdb_id or f"tmdb:{self.tmdb_id}"


class WeekResult(Base):
    """
    Immutable archive of a finished week.
    One row per week; written with insert-or-ignore and never updated.
    """
    __tablename__ = "week_results"

    id: Mapped[int] = mapped_column(primary_key=True)
    week: Mapped[str] = mapped_column(String(8), unique=True, index=True)

    first_place_tmdb: Mapped[int | None] = mapped_column(Integer, nullable=True)
    first_place_imdb: Mapped[str | None] = mapped_column(String(16), nullable=True)
    first_place_title: Mapped[str | None] = mapped_column(String(300), nullable=True)
    first_place_votes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    second_place_tmdb: Mapped[int | None] = mapped_column(Integer, nullable=True)
    second_place_imdb: Mapped[str | None] = mapped_column(String(16), nullable=True)
    second_place_title: Mapped[str | None] = mapped_column(String(300), nullable=True)
    second_place_votes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    nomination_count: Mapped[int] = mapped_column(Integer, default=0)
    finalized_at: Mapped[datetime] = mapped_column(DateTime(timezone=False))

    @property
    def first_place(self) -> Placement | None:
        if self.first_place_tmdb is None:
            return None
        return Placement(
            tmdb_id=int(self.first_place_tmdb),
            imdb_id=self.first_place_imdb,
            title=self.first_place_title or "",
            votes=int(self.first_place_votes or 0),
        )

    @property
    def second_place(self) -> Placement | None:
        if self.second_place_tmdb is None:
            return None
        return Placement(
            tmdb_id=int(self.second_place_tmdb),
            imdb_id=self.second_place_imdb,
            title=self.second_place_title or "",
            votes=int(self.second_place_votes or 0),
        )
