"""Tests for the family profile and user bookkeeping."""

from types import SimpleNamespace

import pytest

from movienight.database.repo.users import upsert_user_from_event
from movienight.services.errors import MovieNightError, UserNotFound
from movienight.services.user import UserService
from movienight.utils.ensure_user import ensure_user


class TestProfile:
    async def test_set_name(self, session, family):
        alice = family[0]
        user = await UserService.set_name(session, alice.id, "  Mum   the  Critic ")
        assert user.name == "Mum the Critic"
        assert user.display_name == "Mum the Critic"

    async def test_empty_name_falls_back_to_username(self, session, family):
        alice = family[0]
        user = await UserService.set_name(session, alice.id, "   ")
        assert user.name is None
        assert user.display_name == "@alice"

    async def test_name_too_long(self, session, family):
        with pytest.raises(MovieNightError):
            await UserService.set_name(session, family[0].id, "x" * 33)

    async def test_set_icon(self, session, family):
        user = await UserService.set_icon(session, family[1].id, "🦄")
        assert user.icon == "🦄"

    @pytest.mark.parametrize("icon", [None, "", "  ", "🦄 🐸", "🦄" * 17])
    async def test_bad_icon(self, session, family, icon):
        with pytest.raises(MovieNightError):
            await UserService.set_icon(session, family[1].id, icon)

    async def test_unknown_user(self, session):
        with pytest.raises(UserNotFound):
            await UserService.set_icon(session, 12345, "🦄")

    async def test_profile_survives_telegram_upsert(self, session, family):
        alice = family[0]
        await UserService.set_icon(session, alice.id, "🍿")
        event = SimpleNamespace(
            from_user=SimpleNamespace(id=alice.telegram_id, username="alice2", first_name="Alice", last_name=None)
        )
        user = await upsert_user_from_event(session, event)
        assert user.id == alice.id
        assert user.username == "alice2"
        assert user.icon == "🍿"
        assert user.name == "Alice"


class TestEnsureUser:
    async def test_injected_user_is_reused(self, session, family):
        alice = family[0]
        # an event without from_user would fail the upsert
        assert await ensure_user(session, SimpleNamespace(), alice) is alice

    async def test_upserts_when_nothing_was_injected(self, session):
        event = SimpleNamespace(
            from_user=SimpleNamespace(id=777, username="eve", first_name="Eve", last_name=None)
        )
        user = await ensure_user(session, event)
        assert user.telegram_id == 777

    async def test_event_without_sender(self, session):
        assert await upsert_user_from_event(session, SimpleNamespace()) is None
        with pytest.raises(RuntimeError):
            await ensure_user(session, SimpleNamespace())
