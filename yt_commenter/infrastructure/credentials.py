# yt_commenter/infrastructure/credentials.py
"""
Credential Stores
Per-session OAuth credential storage behind a get/put/delete interface.

Encrypted Fields Pattern:
    Access and refresh tokens are Fernet-encrypted before they reach the
    ``session_credentials`` table (``{field}_encrypted`` LargeBinary columns).
    Plaintext tokens never appear in logs or reprs.
"""

import asyncio
import logging
from typing import Dict, Optional

from cryptography.fernet import Fernet, InvalidToken

from yt_commenter.domain.models import PlatformCredential
from yt_commenter.infrastructure.database.connection import DatabaseManager
from yt_commenter.infrastructure.repositories import CredentialRepository
from yt_commenter.services.exceptions import ConfigurationError, StoreFailureError

logger = logging.getLogger(__name__)


def build_fernet(key: Optional[str]) -> Fernet:
    """
    Fernet cipher from a configured key

    Without a key an ephemeral one is generated; stored credentials then do
    not survive a restart.
    """
    if not key:
        logger.warning(
            "⚠️ No credential key configured, using an ephemeral key "
            "(set SECURITY_CREDENTIAL_KEY)"
        )
        return Fernet(Fernet.generate_key())

    try:
        return Fernet(key.encode() if isinstance(key, str) else key)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Invalid credential key: {e}") from e


class EncryptedCredentialStore:
    """Fernet-encrypted credentials persisted through SQLAlchemy"""

    def __init__(self, db: DatabaseManager, fernet: Fernet):
        self.db = db
        self.fernet = fernet

    async def get(self, session_id: str) -> Optional[PlatformCredential]:
        async with self.db.session() as session:
            row = await CredentialRepository(session).get_by_id(session_id)
            if row is None:
                return None

            try:
                access_token = self.fernet.decrypt(row.access_token_encrypted).decode()
                refresh_token = self.fernet.decrypt(row.refresh_token_encrypted).decode()
            except InvalidToken as e:
                logger.error(f"❌ Stored credential for session {session_id[:8]} is unreadable")
                raise StoreFailureError("Stored credential could not be decrypted") from e

            return PlatformCredential(
                access_token=access_token,
                refresh_token=refresh_token,
                expires_at=row.expires_at,
                token_type=row.token_type or "Bearer",
                scopes=list(row.scopes or []),
            )

    async def put(self, session_id: str, credential: PlatformCredential) -> None:
        async with self.db.session() as session:
            await CredentialRepository(session).save(
                session_id,
                access_token_encrypted=self.fernet.encrypt(credential.access_token.encode()),
                refresh_token_encrypted=self.fernet.encrypt(
                    (credential.refresh_token or "").encode()
                ),
                token_type=credential.token_type,
                scopes=credential.scopes,
                expires_at=credential.expires_at,
            )

    async def delete(self, session_id: str) -> None:
        async with self.db.session() as session:
            await CredentialRepository(session).delete(session_id)


class InMemoryCredentialStore:
    """Process-local store, used in tests and single-process development"""

    def __init__(self):
        self._items: Dict[str, PlatformCredential] = {}
        self._lock = asyncio.Lock()

    async def get(self, session_id: str) -> Optional[PlatformCredential]:
        return self._items.get(session_id)

    async def put(self, session_id: str, credential: PlatformCredential) -> None:
        async with self._lock:
            self._items[session_id] = credential

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            self._items.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._items)
