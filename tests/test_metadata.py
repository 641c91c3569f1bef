"""Tests for TMDb payload parsing."""

import pytest

from movienight.services.errors import ExternalServiceUnavailable, NotFound
from movienight.services.metadata import (
    BROWSE_CATEGORIES,
    TmdbClient,
    browse_request,
    parse_details,
    parse_summary,
    pick_trailer,
)


class TestParsing:
    def test_details_with_external_ids(self):
        movie = parse_details(
            {
                "id": 603,
                "title": "The Matrix",
                "release_date": "1999-03-30",
                "poster_path": "/p.jpg",
                "backdrop_path": "/b.jpg",
                "overview": "Wake up, Neo.",
                "vote_average": 8.2,
                "runtime": 136,
                "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
                "external_ids": {"imdb_id": "tt0133093"},
            }
        )
        assert movie.tmdb_id == 603
        assert movie.year == "1999"
        assert movie.imdb_id == "tt0133093"
        assert movie.rating == 8.2
        assert movie.genres == ("Action", "Science Fiction")
        assert movie.poster_url == "https://image.tmdb.org/t/p/w500/p.jpg"

    def test_details_with_missing_fields(self):
        movie = parse_details({"id": 1, "original_title": "Sans titre", "release_date": ""})
        assert movie.title == "Sans titre"
        assert movie.year is None
        assert movie.imdb_id is None
        assert movie.rating is None
        assert movie.poster_url is None

    def test_top_level_imdb_id(self):
        assert parse_details({"id": 1, "title": "X", "imdb_id": "tt1"}).imdb_id == "tt1"

    def test_summary(self):
        s = parse_summary({"id": "42", "title": "Hitchhiker", "release_date": "2005-04-28", "overview": ""})
        assert (s.tmdb_id, s.title, s.year, s.overview) == (42, "Hitchhiker", "2005", None)

    def test_pick_trailer_prefers_youtube_trailers(self):
        videos = {
            "results": [
                {"site": "Vimeo", "type": "Trailer", "key": "v1"},
                {"site": "YouTube", "type": "Featurette", "key": "f1"},
                {"site": "YouTube", "type": "Trailer", "key": "abc"},
            ]
        }
        assert pick_trailer(videos) == "https://www.youtube.com/watch?v=abc"

    def test_no_trailer(self):
        assert pick_trailer({"results": []}) is None
        assert pick_trailer({}) is None


class TestClient:
    async def test_missing_api_key(self):
        client = TmdbClient(None)
        with pytest.raises(ExternalServiceUnavailable):
            await client.get_movie(603)
        await client.close()

    async def test_browse_without_api_key(self):
        client = TmdbClient(None)
        with pytest.raises(ExternalServiceUnavailable):
            await client.browse("popular")
        await client.close()


class TestBrowse:
    @pytest.mark.parametrize(
        "category, path",
        [
            ("trending", "/trending/movie/week"),
            ("popular", "/movie/popular"),
            ("top_rated", "/movie/top_rated"),
            ("Now Playing", "/movie/now_playing"),
            ("upcoming", "/movie/upcoming"),
        ],
    )
    def test_lists(self, category, path):
        assert browse_request(category) == (path, {})

    def test_genre_goes_through_discover(self):
        path, params = browse_request("Sci-Fi")
        assert path == "/discover/movie"
        assert params["with_genres"] == "878"
        assert params["sort_by"] == "popularity.desc"

    def test_every_category_resolves(self):
        assert len(BROWSE_CATEGORIES) == 17
        for category in BROWSE_CATEGORIES:
            browse_request(category)

    def test_unknown_category(self):
        with pytest.raises(NotFound) as e:
            browse_request("westerns")
        assert "trending" in str(e.value)
