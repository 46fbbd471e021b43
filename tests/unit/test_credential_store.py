"""
Unit Tests for credential stores
"""

import pytest
from cryptography.fernet import Fernet
from sqlalchemy import select

from yt_commenter.infrastructure.credentials import EncryptedCredentialStore, build_fernet
from yt_commenter.infrastructure.database.models import SessionCredentialModel
from yt_commenter.services.exceptions import ConfigurationError, StoreFailureError

from tests.conftest import make_credential


@pytest.fixture
def fernet_key():
    return Fernet.generate_key().decode()


@pytest.mark.asyncio
async def test_round_trip(db, fernet_key):
    store = EncryptedCredentialStore(db, build_fernet(fernet_key))
    credential = make_credential()

    await store.put("s1", credential)
    loaded = await store.get("s1")

    assert loaded.access_token == credential.access_token
    assert loaded.refresh_token == credential.refresh_token
    assert loaded.scopes == credential.scopes
    assert loaded.expires_at == credential.expires_at


@pytest.mark.asyncio
async def test_tokens_are_encrypted_at_rest(db, fernet_key):
    store = EncryptedCredentialStore(db, build_fernet(fernet_key))
    await store.put("s1", make_credential(access_token="plain-access"))

    async with db.session() as session:
        row = (await session.execute(select(SessionCredentialModel))).scalar_one()

    assert b"plain-access" not in row.access_token_encrypted
    assert b"refresh-1" not in row.refresh_token_encrypted


@pytest.mark.asyncio
async def test_put_overwrites_and_delete_removes(db, fernet_key):
    store = EncryptedCredentialStore(db, build_fernet(fernet_key))

    await store.put("s1", make_credential(access_token="one"))
    await store.put("s1", make_credential(access_token="two"))
    assert (await store.get("s1")).access_token == "two"

    await store.delete("s1")
    assert await store.get("s1") is None


@pytest.mark.asyncio
async def test_wrong_key_is_store_failure(db, fernet_key):
    await EncryptedCredentialStore(db, build_fernet(fernet_key)).put("s1", make_credential())
    other = EncryptedCredentialStore(db, build_fernet(Fernet.generate_key().decode()))

    with pytest.raises(StoreFailureError):
        await other.get("s1")


def test_invalid_key_is_configuration_error():
    with pytest.raises(ConfigurationError):
        build_fernet("not-a-fernet-key")


def test_missing_key_uses_ephemeral_cipher():
    fernet = build_fernet("")

    assert fernet.decrypt(fernet.encrypt(b"x")) == b"x"


def test_credential_repr_hides_tokens():
    text = repr(make_credential(access_token="very-secret"))

    assert "very-secret" not in text
    assert "refresh-1" not in text
