"""
Unit Tests for GoogleOAuthClient
"""

from urllib.parse import parse_qs

import httpx
import pytest

from yt_commenter.app.config import OAuthSettings
from yt_commenter.infrastructure.clients.oauth_client import GoogleOAuthClient
from yt_commenter.services.exceptions import (
    DeadlineExceededError,
    ExternalServiceError,
    ReauthRequiredError,
    UnauthenticatedError,
)

from tests.conftest import make_credential


def make_client(handler):
    settings = OAuthSettings(
        client_id="client-123",
        client_secret="shh",
        redirect_uri="http://localhost:8000/api/auth/callback",
    )
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GoogleOAuthClient(settings=settings, http_client=http_client)


def form_of(request):
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


def test_authorization_url_requests_offline_access():
    client = make_client(lambda request: httpx.Response(200))

    url = httpx.URL(client.authorization_url("state-abc"))

    assert url.params["state"] == "state-abc"
    assert url.params["access_type"] == "offline"
    assert url.params["prompt"] == "consent"
    assert url.params["client_id"] == "client-123"
    assert "youtube.force-ssl" in url.params["scope"]


@pytest.mark.asyncio
async def test_exchange_code():
    seen = []

    def handler(request):
        seen.append(form_of(request))
        return httpx.Response(
            200,
            json={
                "access_token": "at",
                "refresh_token": "rt",
                "expires_in": 3600,
                "scope": "a b",
            },
        )

    credential = await make_client(handler).exchange_code("the-code")

    assert credential.access_token == "at"
    assert credential.refresh_token == "rt"
    assert credential.scopes == ["a", "b"]
    assert not credential.expires_within(3000)
    assert seen[0]["grant_type"] == "authorization_code"
    assert seen[0]["code"] == "the-code"


@pytest.mark.asyncio
async def test_exchange_code_rejected():
    client = make_client(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))

    with pytest.raises(UnauthenticatedError):
        await client.exchange_code("stale")


@pytest.mark.asyncio
async def test_refresh_keeps_existing_refresh_token():
    client = make_client(
        lambda request: httpx.Response(200, json={"access_token": "new-at", "expires_in": 60})
    )

    refreshed = await client.refresh(make_credential())

    assert refreshed.access_token == "new-at"
    assert refreshed.refresh_token == "refresh-1"


@pytest.mark.asyncio
async def test_refresh_rejected_requires_reauth():
    client = make_client(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))

    with pytest.raises(ReauthRequiredError):
        await client.refresh(make_credential())


@pytest.mark.asyncio
async def test_token_endpoint_outage():
    client = make_client(lambda request: httpx.Response(503))

    with pytest.raises(ExternalServiceError):
        await client.refresh(make_credential())


@pytest.mark.asyncio
async def test_token_endpoint_timeout():
    def handler(request):
        raise httpx.ConnectTimeout("slow", request=request)

    with pytest.raises(DeadlineExceededError):
        await make_client(handler).exchange_code("code")


@pytest.mark.asyncio
async def test_get_user_info():
    def handler(request):
        assert request.headers["Authorization"] == "Bearer access-1"
        return httpx.Response(200, json={"id": "1234", "email": "me@example.com", "name": "Me"})

    user = await make_client(handler).get_user_info(make_credential())

    assert user.id == "1234"
    assert user.email == "me@example.com"
