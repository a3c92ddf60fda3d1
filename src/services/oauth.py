"""OAuth sign-in clients for Google and LinkedIn."""

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx

from src.config import Settings
from src.errors import OAuthError
from src.models.enums import OAuthProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OAuthProfile:
    """Profile claims returned by an identity provider."""

    external_id: str
    email: str
    name: str
    avatar_url: str | None = None


class OAuthClient:
    """Authorization-code flow against one identity provider.

    Subclasses set the endpoints and translate the provider's profile claims.
    Every outbound call is a single attempt bounded by ``timeout``.
    """

    provider: OAuthProvider
    authorize_url: str
    token_url: str
    profile_url: str
    scopes: tuple[str, ...] = ("openid", "profile", "email")

    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        callback_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.callback_url = callback_url
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _fail(self, message: str, **details: Any) -> OAuthError:
        logger.error(f"{self.provider.value} OAuth: {message} {details or ''}".rstrip())
        return OAuthError(message, provider=self.provider.value, details=details)

    def build_authorization_url(self, state: str) -> str:
        """URL of the provider's consent screen."""
        query = urlencode(
            {
                "response_type": "code",
                "client_id": self.client_id or "",
                "redirect_uri": self.callback_url,
                "scope": " ".join(self.scopes),
                "state": state,
            }
        )
        return f"{self.authorize_url}?{query}"

    async def exchange_code(self, code: str) -> str:
        """Trade an authorization code for a provider access token."""
        if not self.is_configured:
            raise self._fail("client credentials are not configured")

        data = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.callback_url,
        }
        try:
            async with self._client() as client:
                response = await client.post(
                    self.token_url,
                    data=data,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            raise self._fail("token request failed", error=str(e)) from e

        if response.is_error:
            raise self._fail(
                "token request rejected", status=response.status_code, body=response.text[:500]
            )
        try:
            access_token = response.json().get("access_token")
        except ValueError as e:
            raise self._fail("token response is not JSON") from e
        if not access_token:
            raise self._fail("token response has no access_token")
        return access_token

    async def fetch_profile(self, access_token: str) -> OAuthProfile:
        """Fetch the signed-in user's profile claims."""
        try:
            async with self._client() as client:
                response = await client.get(
                    self.profile_url,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as e:
            raise self._fail("profile request failed", error=str(e)) from e

        if response.is_error:
            raise self._fail(
                "profile request rejected", status=response.status_code, body=response.text[:500]
            )
        try:
            claims = response.json()
        except ValueError as e:
            raise self._fail("profile response is not JSON") from e

        profile = self.parse_profile(claims)
        if not profile.external_id or not profile.email:
            raise self._fail("profile is missing id or email")
        return profile

    def parse_profile(self, claims: dict[str, Any]) -> OAuthProfile:
        raise NotImplementedError


class GoogleOAuthClient(OAuthClient):
    provider = OAuthProvider.GOOGLE
    authorize_url = "https://accounts.google.com/o/oauth2/v2/auth"
    token_url = "https://oauth2.googleapis.com/token"
    profile_url = "https://www.googleapis.com/oauth2/v2/userinfo"

    def parse_profile(self, claims: dict[str, Any]) -> OAuthProfile:
        return OAuthProfile(
            external_id=str(claims.get("id") or ""),
            email=(claims.get("email") or "").lower(),
            name=claims.get("name") or claims.get("email", ""),
            avatar_url=claims.get("picture"),
        )


class LinkedInOAuthClient(OAuthClient):
    provider = OAuthProvider.LINKEDIN
    authorize_url = "https://www.linkedin.com/oauth/v2/authorization"
    token_url = "https://www.linkedin.com/oauth/v2/accessToken"
    profile_url = "https://api.linkedin.com/v2/userinfo"

    def parse_profile(self, claims: dict[str, Any]) -> OAuthProfile:
        # OpenID Connect userinfo shape
        return OAuthProfile(
            external_id=str(claims.get("sub") or ""),
            email=(claims.get("email") or "").lower(),
            name=claims.get("name") or claims.get("email", ""),
            avatar_url=claims.get("picture"),
        )


def build_oauth_clients(settings: Settings) -> dict[OAuthProvider, OAuthClient]:
    """Create one client per provider from settings."""
    return {
        OAuthProvider.GOOGLE: GoogleOAuthClient(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            callback_url=settings.google_callback_url,
            timeout=settings.oauth_timeout_seconds,
        ),
        OAuthProvider.LINKEDIN: LinkedInOAuthClient(
            client_id=settings.linkedin_auth_client_id,
            client_secret=settings.linkedin_auth_client_secret,
            callback_url=settings.linkedin_auth_callback_url,
            timeout=settings.oauth_timeout_seconds,
        ),
    }
