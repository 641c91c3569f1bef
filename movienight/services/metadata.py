# movienight/services/metadata.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import aiohttp

from movienight.services.errors import ExternalServiceUnavailable, NotFound

log = logging.getLogger(__name__)

TMDB_API = "https://api.themoviedb.org/3"
TMDB_IMAGE_BASE = "https://image.tmdb.org/t/p/w500"

BROWSE_LISTS = {
    "trending": "/trending/movie/week",
    "popular": "/movie/popular",
    "toprated": "/movie/top_rated",
    "nowplaying": "/movie/now_playing",
    "upcoming": "/movie/upcoming",
}

GENRE_IDS = {
    "action": 28,
    "comedy": 35,
    "crime": 80,
    "drama": 18,
    "thriller": 53,
    "horror": 27,
    "romance": 10749,
    "scifi": 878,
    "fantasy": 14,
    "animation": 16,
    "family": 10751,
    "mystery": 9648,
}

BROWSE_CATEGORIES = (*BROWSE_LISTS, *GENRE_IDS)


@dataclass(frozen=True, slots=True)
class MovieSummary:
    tmdb_id: int
    title: str
    year: str | None
    overview: str | None


@dataclass(frozen=True, slots=True)
class MovieDetails:
    tmdb_id: int
    title: str
    year: str | None
    poster_path: str | None
    backdrop_path: str | None
    overview: str | None
    rating: float | None
    imdb_id: str | None
    runtime: int | None = None
    genres: tuple[str, ...] = ()

    @property
    def poster_url(self) -> str | None:
        return f"{TMDB_IMAGE_BASE}{self.poster_path}" if self.poster_path else None


def _year(release_date: str | None) -> str | None:
    if not release_date:
        return None
    return release_date.split("-")[0] or None


def parse_summary(payload: dict[str, Any]) -> MovieSummary:
    return MovieSummary(
        tmdb_id=int(payload["id"]),
        title=str(payload.get("title") or payload.get("original_title") or "Untitled"),
        year=_year(payload.get("release_date")),
        overview=payload.get("overview") or None,
    )


def parse_details(payload: dict[str, Any]) -> MovieDetails:
    """
    Maps a /movie/{id}?append_to_response=external_ids payload.
    The IMDb id can sit either top-level or under external_ids.
    """
    external = payload.get("external_ids") or {}
    rating = payload.get("vote_average")
    return MovieDetails(
        tmdb_id=int(payload["id"]),
        title=str(payload.get("title") or payload.get("original_title") or "Untitled"),
        year=_year(payload.get("release_date")),
        poster_path=payload.get("poster_path"),
        backdrop_path=payload.get("backdrop_path"),
        overview=payload.get("overview") or None,
        rating=float(rating) if rating is not None else None,
        imdb_id=external.get("imdb_id") or payload.get("imdb_id") or None,
        runtime=payload.get("runtime"),
        genres=tuple(g.get("name", "") for g in (payload.get("genres") or []) if g.get("name")),
    )


def browse_request(category: str) -> tuple[str, dict[str, Any]]:
    """
    Maps a category name to a TMDb path and query params.
    Case, spaces, dashes and underscores are ignored ("top_rated", "Sci-Fi").
    """
    key = "".join(c for c in category.lower() if c.isalnum())
    if key in BROWSE_LISTS:
        return BROWSE_LISTS[key], {}
    if key in GENRE_IDS:
        return "/discover/movie", {"with_genres": str(GENRE_IDS[key]), "sort_by": "popularity.desc"}
    raise NotFound(f"ℹ️ Unknown category. Try one of: {', '.join(BROWSE_CATEGORIES)}")


def pick_trailer(videos: dict[str, Any]) -> str | None:
    for v in videos.get("results") or []:
        if v.get("site") == "YouTube" and v.get("type") in ("Trailer", "Teaser") and v.get("key"):
            return f"https://www.youtube.com/watch?v={v['key']}"
    return None


class TmdbClient:
    """
    Thin async TMDb client.
    Every call is bounded by `timeout_seconds`; transport errors surface as
    ExternalServiceUnavailable, an unknown movie as NotFound.
    """

    def __init__(self, api_key: str | None, *, timeout_seconds: float = 10.0) -> None:
        self.api_key = api_key
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: aiohttp.ClientSession | None = None

    def _http(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()

    async def _get(self, path: str, **params: Any) -> dict[str, Any]:
        if not self.api_key:
            raise ExternalServiceUnavailable("⚠️ Movie search is not configured (TMDB_API_KEY).")

        query = {"api_key": self.api_key, **params}
        try:
            async with self._http().get(f"{TMDB_API}{path}", params=query) as r:
                if r.status == 404:
                    raise NotFound("ℹ️ Movie not found.")
                if r.status != 200:
                    log.warning("TMDb %s -> HTTP %s", path, r.status)
                    raise ExternalServiceUnavailable("⚠️ Movie database error. Try again later.")
                return await r.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("TMDb %s failed: %r", path, e)
            raise ExternalServiceUnavailable("⚠️ Movie database is unreachable. Try again later.") from e

    async def search(self, query: str, *, limit: int = 3) -> list[MovieSummary]:
        data = await self._get("/search/movie", query=query, include_adult="false")
        return [parse_summary(p) for p in (data.get("results") or [])[:limit]]

    async def browse(self, category: str, *, limit: int = 5) -> list[MovieSummary]:
        path, params = browse_request(category)
        data = await self._get(path, **params)
        return [parse_summary(p) for p in (data.get("results") or [])[:limit]]

    async def get_movie(self, tmdb_id: int) -> MovieDetails:
        data = await self._get(f"/movie/{int(tmdb_id)}", append_to_response="external_ids")
        return parse_details(data)

    async def get_trailer_url(self, tmdb_id: int) -> str | None:
        data = await self._get(f"/movie/{int(tmdb_id)}/videos")
        return pick_trailer(data)
