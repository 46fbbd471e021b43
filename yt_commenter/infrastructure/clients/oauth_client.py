# yt_commenter/infrastructure/clients/oauth_client.py
"""
Google OAuth2 Client
Authorization URL construction, code exchange, token refresh and user info.
"""

import logging
from datetime import timedelta
from typing import Optional

import httpx
from pydantic import BaseModel

from yt_commenter.app.config import OAuthSettings, get_config
from yt_commenter.domain.models import PlatformCredential, utcnow
from yt_commenter.services.exceptions import (
    DeadlineExceededError,
    ExternalServiceError,
    ReauthRequiredError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: int = 3600
    token_type: str = "Bearer"
    scope: str = ""


class UserInfo(BaseModel):
    id: str
    email: Optional[str] = None
    name: str = ""
    picture: Optional[str] = None


class GoogleOAuthClient:
    """Thin async wrapper over Google's OAuth2 endpoints"""

    def __init__(
        self,
        settings: Optional[OAuthSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_config().oauth
        self.client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.request_timeout)
        )

    async def close(self) -> None:
        await self.client.aclose()

    def authorization_url(self, state: str) -> str:
        """Consent URL requesting offline access so a refresh token is issued"""
        params = {
            "client_id": self.settings.client_id,
            "redirect_uri": self.settings.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.settings.scopes_list),
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return str(httpx.URL(self.settings.authorize_url, params=params))

    async def exchange_code(self, code: str) -> PlatformCredential:
        """
        Exchange an authorization code for tokens

        Raises:
            UnauthenticatedError: Code rejected by Google
        """
        response = await self._post_token(
            {
                "client_id": self.settings.client_id,
                "client_secret": self.settings.client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self.settings.redirect_uri,
            }
        )

        if response.status_code in (400, 401):
            logger.warning(f"⚠️ Authorization code rejected: {_oauth_error(response)}")
            raise UnauthenticatedError("Authorization code was rejected")
        _raise_for_upstream(response, "token exchange")

        token = TokenResponse(**response.json())
        logger.info("🔑 Authorization code exchanged")
        return _to_credential(token, fallback_refresh_token="")

    async def refresh(self, credential: PlatformCredential) -> PlatformCredential:
        """
        Refresh an access token

        Google usually omits the refresh token on refresh; the existing one is
        kept in that case.

        Raises:
            ReauthRequiredError: Refresh token revoked or expired
        """
        if not credential.refresh_token:
            raise ReauthRequiredError("No refresh token available")

        response = await self._post_token(
            {
                "client_id": self.settings.client_id,
                "client_secret": self.settings.client_secret,
                "refresh_token": credential.refresh_token,
                "grant_type": "refresh_token",
            }
        )

        if response.status_code in (400, 401):
            logger.warning(f"⚠️ Refresh token rejected: {_oauth_error(response)}")
            raise ReauthRequiredError("Refresh token was rejected; log in again")
        _raise_for_upstream(response, "token refresh")

        token = TokenResponse(**response.json())
        logger.info("🔄 Access token refreshed")
        return _to_credential(token, fallback_refresh_token=credential.refresh_token)

    async def get_user_info(self, credential: PlatformCredential) -> UserInfo:
        try:
            response = await self.client.get(
                self.settings.userinfo_url,
                headers={"Authorization": f"Bearer {credential.access_token}"},
            )
        except httpx.TimeoutException as e:
            raise DeadlineExceededError("Timed out fetching user info") from e
        except httpx.RequestError as e:
            raise ExternalServiceError(f"Network error fetching user info: {e}") from e

        if response.status_code == 401:
            raise UnauthenticatedError("Access token rejected by user info endpoint")
        _raise_for_upstream(response, "user info")

        return UserInfo(**response.json())

    async def _post_token(self, form: dict) -> httpx.Response:
        try:
            return await self.client.post(self.settings.token_url, data=form)
        except httpx.TimeoutException as e:
            raise DeadlineExceededError("Timed out calling the token endpoint") from e
        except httpx.RequestError as e:
            raise ExternalServiceError(
                f"Network error calling the token endpoint: {type(e).__name__}"
            ) from e


def _to_credential(
    token: TokenResponse, fallback_refresh_token: str
) -> PlatformCredential:
    return PlatformCredential(
        access_token=token.access_token,
        refresh_token=token.refresh_token or fallback_refresh_token,
        expires_at=utcnow() + timedelta(seconds=token.expires_in),
        token_type=token.token_type or "Bearer",
        scopes=[scope for scope in token.scope.split(" ") if scope],
    )


def _oauth_error(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        return str(payload.get("error") or f"HTTP {response.status_code}")
    return f"HTTP {response.status_code}"


def _raise_for_upstream(response: httpx.Response, operation: str) -> None:
    if response.is_success:
        return
    logger.error(f"❌ OAuth {operation} failed: HTTP {response.status_code}")
    raise ExternalServiceError(
        f"OAuth {operation} failed with HTTP {response.status_code}",
        details={"upstream_status": response.status_code},
    )
