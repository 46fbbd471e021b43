# tests/unit/test_session_gate.py
"""
Unit Tests for SessionGate
Login flow, session validation, single-flight refresh and teardown
"""

import asyncio

import pytest

from yt_commenter.app.config import OAuthSettings
from yt_commenter.domain.models import SessionState, UserPreferences
from yt_commenter.infrastructure.clients.oauth_client import UserInfo
from yt_commenter.services.exceptions import (
    ExternalServiceError,
    ReauthRequiredError,
    UnauthenticatedError,
)
from yt_commenter.services.session_gate import SessionGate
from yt_commenter.services.user_service import UserService

from tests.conftest import make_credential


class FakeOAuth:
    def __init__(self):
        self.refresh_calls = 0
        self.refresh_error = None
        self.states_seen_during_refresh = []
        self.on_refresh = None
        self.user_name = "Creator"

    def authorization_url(self, state):
        return f"https://accounts.example.com/auth?state={state}"

    async def exchange_code(self, code):
        if code == "bad-code":
            raise UnauthenticatedError("Authorization code was rejected")
        return make_credential(expires_in=3600)

    async def get_user_info(self, credential):
        return UserInfo(id="user-42", email="creator@example.com", name=self.user_name)

    async def refresh(self, credential):
        self.refresh_calls += 1
        if self.on_refresh is not None:
            await self.on_refresh()
        await asyncio.sleep(0.01)
        if self.refresh_error is not None:
            raise self.refresh_error
        return make_credential(expires_in=3600, access_token=f"access-{self.refresh_calls + 1}")


@pytest.fixture
def oauth():
    return FakeOAuth()


@pytest.fixture
def oauth_settings():
    return OAuthSettings(
        client_id="client",
        client_secret="secret",
        session_ttl_days=7,
        refresh_margin_seconds=300,
        pending_ttl_seconds=600,
    )


@pytest.fixture
def gate(db, oauth, credential_store, oauth_settings):
    return SessionGate(db, oauth, credential_store, oauth_settings)


async def login(gate):
    state, _ = await gate.begin_login()
    return await gate.complete_login("good-code", state)


# ============================================================================
# Login Flow
# ============================================================================


@pytest.mark.asyncio
async def test_begin_login_returns_consent_url_with_state(gate):
    state, url = await gate.begin_login()

    assert state
    assert url.endswith(f"state={state}")


@pytest.mark.asyncio
async def test_complete_login_activates_session(gate, credential_store):
    session = await login(gate)

    assert session.state == SessionState.ACTIVE
    assert session.user_id == "user-42"
    assert session.oauth_state is None
    assert await credential_store.get(session.session_id) is not None
    assert await gate.session_state(session.session_id) == SessionState.ACTIVE


@pytest.mark.asyncio
async def test_login_stores_user_profile(gate, db):
    await login(gate)

    profile = await UserService(db).get_profile("user-42")
    assert profile.name == "Creator"
    assert profile.email == "creator@example.com"
    assert profile.preferences == UserPreferences()


@pytest.mark.asyncio
async def test_relogin_refreshes_profile_and_keeps_preferences(gate, oauth, db):
    users = UserService(db)
    await login(gate)
    await users.update_preferences("user-42", reply_tone="professional")

    oauth.user_name = "Creator Renamed"
    await login(gate)

    profile = await users.get_profile("user-42")
    assert profile.name == "Creator Renamed"
    assert profile.preferences.reply_tone == "professional"


@pytest.mark.asyncio
async def test_complete_login_unknown_state(gate):
    with pytest.raises(UnauthenticatedError):
        await gate.complete_login("good-code", "never-issued")


@pytest.mark.asyncio
async def test_oauth_state_is_single_use(gate):
    state, _ = await gate.begin_login()
    await gate.complete_login("good-code", state)

    with pytest.raises(UnauthenticatedError):
        await gate.complete_login("good-code", state)


@pytest.mark.asyncio
async def test_rejected_code_leaves_session_pending(gate, credential_store):
    state, _ = await gate.begin_login()

    with pytest.raises(UnauthenticatedError):
        await gate.complete_login("bad-code", state)

    assert len(credential_store) == 0
    # The same state can still be completed with a good code
    session = await gate.complete_login("good-code", state)
    assert session.state == SessionState.ACTIVE


@pytest.mark.asyncio
async def test_expired_pending_login(db, oauth, credential_store):
    settings = OAuthSettings(pending_ttl_seconds=0)
    gate = SessionGate(db, oauth, credential_store, settings)
    state, _ = await gate.begin_login()

    with pytest.raises(UnauthenticatedError):
        await gate.complete_login("good-code", state)


# ============================================================================
# Resolution
# ============================================================================


@pytest.mark.asyncio
async def test_missing_or_unknown_session(gate):
    with pytest.raises(UnauthenticatedError):
        await gate.resolve(None)
    with pytest.raises(UnauthenticatedError):
        await gate.resolve("no-such-session")

    assert await gate.session_state(None) == SessionState.UNAUTHENTICATED


@pytest.mark.asyncio
async def test_pending_session_is_not_usable(gate, db):
    from yt_commenter.infrastructure.repositories import SessionRepository

    state, _ = await gate.begin_login()
    async with db.session() as session:
        row = await SessionRepository(session).get_by_oauth_state(state)
        pending_id = row.id

    assert await gate.session_state(pending_id) == SessionState.PENDING
    with pytest.raises(UnauthenticatedError):
        await gate.resolve(pending_id)


@pytest.mark.asyncio
async def test_resolve_context_without_refresh(gate, oauth):
    session = await login(gate)

    ctx = await gate.resolve_context(session.session_id)

    assert ctx.user_id == "user-42"
    assert ctx.session_id == session.session_id
    assert ctx.credential.access_token == "access-1"
    assert oauth.refresh_calls == 0


@pytest.mark.asyncio
async def test_expired_session_is_destroyed(db, oauth, credential_store):
    gate = SessionGate(db, oauth, credential_store, OAuthSettings(session_ttl_days=0))
    session = await login(gate)

    with pytest.raises(UnauthenticatedError):
        await gate.resolve(session.session_id)

    assert await credential_store.get(session.session_id) is None
    assert await gate.session_state(session.session_id) == SessionState.UNAUTHENTICATED


# ============================================================================
# Refresh
# ============================================================================


@pytest.mark.asyncio
async def test_concurrent_requests_refresh_once(gate, oauth, credential_store):
    session = await login(gate)
    await credential_store.put(session.session_id, make_credential(expires_in=10))

    results = await asyncio.gather(
        *(gate.refresh_if_needed(session.session_id) for _ in range(5))
    )

    assert oauth.refresh_calls == 1
    assert {c.access_token for c in results} == {"access-2"}
    assert (await credential_store.get(session.session_id)).access_token == "access-2"
    assert await gate.session_state(session.session_id) == SessionState.ACTIVE


@pytest.mark.asyncio
async def test_session_is_expiring_while_refreshing(gate, oauth, credential_store):
    session = await login(gate)
    await credential_store.put(session.session_id, make_credential(expires_in=10))

    async def capture_state():
        oauth.states_seen_during_refresh.append(await gate.session_state(session.session_id))

    oauth.on_refresh = capture_state
    await gate.resolve(session.session_id)

    assert oauth.states_seen_during_refresh == [SessionState.EXPIRING]


@pytest.mark.asyncio
async def test_rejected_refresh_ends_session(gate, oauth, credential_store):
    session = await login(gate)
    await credential_store.put(session.session_id, make_credential(expires_in=10))
    oauth.refresh_error = ReauthRequiredError("Refresh token was rejected")

    with pytest.raises(ReauthRequiredError):
        await gate.resolve(session.session_id)

    assert await credential_store.get(session.session_id) is None
    with pytest.raises(UnauthenticatedError):
        await gate.resolve(session.session_id)


@pytest.mark.asyncio
async def test_transient_refresh_failure_keeps_session(gate, oauth, credential_store):
    session = await login(gate)
    await credential_store.put(session.session_id, make_credential(expires_in=10))
    oauth.refresh_error = ExternalServiceError("token endpoint down")

    with pytest.raises(ExternalServiceError):
        await gate.resolve(session.session_id)

    assert await gate.session_state(session.session_id) == SessionState.ACTIVE
    assert await credential_store.get(session.session_id) is not None


# ============================================================================
# Teardown
# ============================================================================


@pytest.mark.asyncio
async def test_logout(gate, credential_store):
    session = await login(gate)

    await gate.logout(session.session_id)
    await gate.logout("unknown")

    assert len(credential_store) == 0
    with pytest.raises(UnauthenticatedError):
        await gate.resolve(session.session_id)


@pytest.mark.asyncio
async def test_purge_expired(db, oauth, credential_store):
    short = SessionGate(db, oauth, credential_store, OAuthSettings(session_ttl_days=0))
    expired = await login(short)

    gate = SessionGate(db, oauth, credential_store, OAuthSettings())
    alive = await login(gate)

    removed = await gate.purge_expired()

    assert removed == 1
    assert await credential_store.get(expired.session_id) is None
    assert await credential_store.get(alive.session_id) is not None
    assert await gate.session_state(alive.session_id) == SessionState.ACTIVE
