# tests/unit/test_user_service.py
"""
Unit Tests for UserService
Profiles written at login and user-owned reply preferences
"""

import pytest
import pytest_asyncio

from yt_commenter.domain.models import UserPreferences
from yt_commenter.infrastructure.repositories import UserRepository
from yt_commenter.services.exceptions import ResourceNotFoundError, ValidationError
from yt_commenter.services.user_service import UserService


@pytest.fixture
def users(db):
    return UserService(db, allowed_models=["gpt-4o-mini", "gpt-4"])


@pytest_asyncio.fixture
async def known_user(db):
    async with db.session() as session:
        await UserRepository(session).upsert_profile(
            "user-1", "Creator", email="creator@example.com", picture_url="https://img.test/a.png"
        )
    return "user-1"


@pytest.mark.asyncio
async def test_new_user_gets_default_preferences(users, known_user):
    profile = await users.get_profile(known_user)

    assert profile.name == "Creator"
    assert profile.picture_url == "https://img.test/a.png"
    assert profile.preferences == UserPreferences()
    assert profile.created_at is not None


@pytest.mark.asyncio
async def test_unknown_user(users):
    with pytest.raises(ResourceNotFoundError):
        await users.get_profile("nobody")

    assert await users.get_preferences("nobody") == UserPreferences()


@pytest.mark.asyncio
async def test_partial_update_keeps_other_fields(users, known_user):
    await users.update_preferences(known_user, reply_tone="enthusiastic", ai_model="gpt-4")
    updated = await users.update_preferences(known_user, enable_ai_replies=False)

    assert updated == UserPreferences(
        enable_ai_replies=False, reply_tone="enthusiastic", ai_model="gpt-4"
    )
    assert await users.get_preferences(known_user) == updated


@pytest.mark.asyncio
async def test_model_outside_allow_list_rejected(users, known_user):
    with pytest.raises(ValidationError) as exc_info:
        await users.update_preferences(known_user, ai_model="gpt-5-ultra")

    assert exc_info.value.details["allowed_models"] == ["gpt-4o-mini", "gpt-4"]
    assert (await users.get_preferences(known_user)).ai_model is None


@pytest.mark.asyncio
async def test_blank_tone_rejected(users, known_user):
    with pytest.raises(ValidationError):
        await users.update_preferences(known_user, reply_tone="   ")


@pytest.mark.asyncio
async def test_update_for_unknown_user(users):
    with pytest.raises(ResourceNotFoundError):
        await users.update_preferences("nobody", reply_tone="friendly")


@pytest.mark.asyncio
async def test_profile_refresh_keeps_unset_fields(db, users, known_user):
    async with db.session() as session:
        await UserRepository(session).upsert_profile(known_user, "Creator 2")

    profile = await users.get_profile(known_user)
    assert profile.name == "Creator 2"
    assert profile.email == "creator@example.com"
