"""
Session Gate
Maps opaque session IDs to platform credentials.

Lifecycle:
    Unauthenticated -> Pending (login started, keyed by OAuth state)
    Pending -> Active (code exchanged, credential stored, 7-day lifetime)
    Active -> Expiring (access token inside the refresh margin)
    Expiring -> Active (refresh succeeded) | Unauthenticated (refresh rejected)

Refreshes are serialized per session and the credential is re-read inside the
lock, so concurrent requests on one session trigger at most one refresh.
"""

import asyncio
import logging
import secrets
from datetime import timedelta
from typing import Dict, Optional, Tuple

from yt_commenter.app.config import OAuthSettings, get_config
from yt_commenter.domain.interfaces import CredentialStore, OAuthProvider
from yt_commenter.domain.models import (
    AuthContext,
    PlatformCredential,
    Session,
    SessionState,
    utcnow,
)
from yt_commenter.infrastructure.database.connection import DatabaseManager
from yt_commenter.infrastructure.repositories import SessionRepository, UserRepository
from yt_commenter.services.exceptions import (
    ReauthRequiredError,
    ServiceError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)


def _short(session_id: str) -> str:
    return f"{session_id[:8]}..."


class SessionGate:
    """OAuth login flow, session validation and credential refresh"""

    def __init__(
        self,
        db: DatabaseManager,
        oauth: OAuthProvider,
        credentials: CredentialStore,
        settings: Optional[OAuthSettings] = None,
    ):
        self.db = db
        self.oauth = oauth
        self.credentials = credentials
        self.settings = settings or get_config().oauth
        self._refresh_locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._refresh_locks.get(session_id)
        if lock is None:
            lock = self._refresh_locks.setdefault(session_id, asyncio.Lock())
        return lock

    # ========================================================================
    # Login Flow
    # ========================================================================

    async def begin_login(self) -> Tuple[str, str]:
        """
        Start the OAuth flow

        Returns:
            (oauth_state, authorization_url)
        """
        oauth_state = secrets.token_urlsafe(24)
        session_id = secrets.token_urlsafe(32)
        expires_at = utcnow() + timedelta(seconds=self.settings.pending_ttl_seconds)

        async with self.db.session() as session:
            await SessionRepository(session).create_pending(session_id, oauth_state, expires_at)

        logger.info(f"🔐 Login started for pending session {_short(session_id)}")
        return oauth_state, self.oauth.authorization_url(oauth_state)

    async def complete_login(self, code: str, oauth_state: str) -> Session:
        """
        Finish the OAuth flow for a pending session

        The user profile is created or refreshed in the same transaction that
        activates the session.

        Raises:
            UnauthenticatedError: Unknown, reused or expired state, or code rejected
        """
        async with self.db.session() as session:
            row = await SessionRepository(session).get_by_oauth_state(oauth_state)
            pending = row.to_domain() if row is not None else None

        if pending is None or pending.state != SessionState.PENDING:
            raise UnauthenticatedError("Unknown or already used login state")
        if pending.is_expired():
            await self._destroy(pending.session_id)
            raise UnauthenticatedError("Login attempt expired; start again")

        credential = await self.oauth.exchange_code(code)
        user = await self.oauth.get_user_info(credential)

        await self.credentials.put(pending.session_id, credential)

        expires_at = utcnow() + timedelta(days=self.settings.session_ttl_days)
        async with self.db.session() as session:
            repo = SessionRepository(session)
            row = await repo.get_by_id(pending.session_id)
            if row is None:
                raise UnauthenticatedError("Login attempt was cancelled")
            await UserRepository(session).upsert_profile(
                user.id, user.name, email=user.email, picture_url=user.picture
            )
            await repo.activate(row, user.id, expires_at)
            active = row.to_domain()

        logger.info(f"✅ Session {_short(active.session_id)} active for user {user.id}")
        return active

    # ========================================================================
    # Session Resolution
    # ========================================================================

    async def get_session(self, session_id: Optional[str]) -> Session:
        """
        Load a usable (active or expiring, unexpired) session

        Raises:
            UnauthenticatedError: Missing, unknown, pending or expired session
        """
        if not session_id:
            raise UnauthenticatedError("Missing session ID")

        async with self.db.session() as session:
            row = await SessionRepository(session).get_by_id(session_id)
            current = row.to_domain() if row is not None else None

        if current is None:
            raise UnauthenticatedError("Unknown session")
        if current.state not in (SessionState.ACTIVE, SessionState.EXPIRING):
            raise UnauthenticatedError("Login not completed")
        if current.is_expired():
            await self._destroy(session_id)
            raise UnauthenticatedError("Session expired")
        return current

    async def session_state(self, session_id: Optional[str]) -> SessionState:
        if not session_id:
            return SessionState.UNAUTHENTICATED

        async with self.db.session() as session:
            row = await SessionRepository(session).get_by_id(session_id)
            current = row.to_domain() if row is not None else None

        if current is None or current.is_expired():
            return SessionState.UNAUTHENTICATED
        return current.state

    async def resolve(self, session_id: Optional[str]) -> PlatformCredential:
        """Valid credential for a session, refreshed if close to expiry"""
        await self.get_session(session_id)
        return await self.refresh_if_needed(session_id)

    async def resolve_context(self, session_id: Optional[str]) -> AuthContext:
        """Session owner plus a valid credential"""
        current = await self.get_session(session_id)
        credential = await self.refresh_if_needed(current.session_id)
        return AuthContext(
            session_id=current.session_id,
            user_id=current.user_id or "",
            credential=credential,
        )

    # ========================================================================
    # Refresh
    # ========================================================================

    async def refresh_if_needed(self, session_id: str) -> PlatformCredential:
        """
        Refresh the access token when it expires within the refresh margin

        Raises:
            UnauthenticatedError: No credential for the session
            ReauthRequiredError: Refresh token rejected; session destroyed
        """
        margin = self.settings.refresh_margin_seconds

        credential = await self.credentials.get(session_id)
        if credential is None:
            raise UnauthenticatedError("No credential for session")
        if not credential.expires_within(margin):
            return credential

        async with self._lock_for(session_id):
            # Another request may have refreshed while we waited
            credential = await self.credentials.get(session_id)
            if credential is None:
                raise UnauthenticatedError("No credential for session")
            if not credential.expires_within(margin):
                return credential

            await self._set_state(session_id, SessionState.EXPIRING)
            try:
                refreshed = await self.oauth.refresh(credential)
            except ReauthRequiredError:
                logger.warning(f"⚠️ Refresh rejected, ending session {_short(session_id)}")
                await self._destroy(session_id)
                raise
            except ServiceError:
                await self._set_state(session_id, SessionState.ACTIVE)
                raise

            await self.credentials.put(session_id, refreshed)
            await self._set_state(session_id, SessionState.ACTIVE)

        logger.info(f"🔄 Credential refreshed for session {_short(session_id)}")
        return refreshed

    # ========================================================================
    # Teardown
    # ========================================================================

    async def logout(self, session_id: Optional[str]) -> None:
        """End a session; unknown IDs are ignored"""
        if not session_id:
            return
        await self._destroy(session_id)
        logger.info(f"👋 Session {_short(session_id)} logged out")

    async def purge_expired(self) -> int:
        """Remove expired sessions (pending or active) and their credentials"""
        now = utcnow()
        async with self.db.session() as session:
            expired = await SessionRepository(session).expired_ids(now)

        for session_id in expired:
            await self.credentials.delete(session_id)

        async with self.db.session() as session:
            removed = await SessionRepository(session).purge_expired(now)

        for session_id in expired:
            self._refresh_locks.pop(session_id, None)
        return removed

    async def _set_state(self, session_id: str, state: SessionState) -> None:
        async with self.db.session() as session:
            await SessionRepository(session).set_state(session_id, state)

    async def _destroy(self, session_id: str) -> None:
        await self.credentials.delete(session_id)
        async with self.db.session() as session:
            await SessionRepository(session).remove(session_id)
        self._refresh_locks.pop(session_id, None)
