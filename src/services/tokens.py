"""Signed session tokens (JWT) for access and refresh."""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from jose import JWTError, jwt

from src.config import Settings
from src.errors import ConfigurationError, InvalidTokenError

logger = logging.getLogger(__name__)


class TokenType(str, Enum):
    """Value of the ``type`` claim."""

    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
    """Access and refresh token issued together."""

    token: str
    refresh_token: str


class TokenService:
    """Issues and verifies stateless session tokens.

    Tokens are never stored server-side, so there is no revocation: a token
    stays valid until it expires. Only the refresh endpoint re-checks whether
    the account is still active.
    """

    def __init__(
        self,
        secret: str,
        refresh_secret: str | None = None,
        algorithm: str = "HS256",
        access_token_ttl: timedelta = timedelta(minutes=15),
        refresh_token_ttl: timedelta = timedelta(days=30),
    ) -> None:
        if not secret:
            raise ConfigurationError("JWT_SECRET is not configured; refusing to issue tokens")
        self._secret = secret
        self._refresh_secret = refresh_secret or secret
        self.algorithm = algorithm
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret=settings.jwt_secret,
            refresh_secret=settings.jwt_refresh_secret,
            algorithm=settings.jwt_algorithm,
            access_token_ttl=timedelta(minutes=settings.jwt_access_expiration_minutes),
            refresh_token_ttl=timedelta(days=settings.jwt_refresh_expiration_days),
        )

    def _encode(self, user_id: int, token_type: TokenType, secret: str, ttl: timedelta) -> str:
        now = datetime.now(UTC)
        claims = {
            "sub": str(user_id),
            "type": token_type.value,
            "iat": now,
            "exp": now + ttl,
            # Unique per token so two logins in the same second differ
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(claims, secret, algorithm=self.algorithm)

    def _decode(self, token: str, token_type: TokenType, secret: str) -> int:
        try:
            payload = jwt.decode(token, secret, algorithms=[self.algorithm])
        except JWTError as e:
            logger.debug(f"Rejected {token_type.value} token: {e}")
            raise InvalidTokenError() from e

        if payload.get("type") != token_type.value:
            raise InvalidTokenError()
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidTokenError() from e

    def issue_access_token(self, user_id: int) -> str:
        """Create a short-lived access token."""
        return self._encode(user_id, TokenType.ACCESS, self._secret, self.access_token_ttl)

    def issue_refresh_token(self, user_id: int) -> str:
        """Create a long-lived refresh token."""
        return self._encode(
            user_id, TokenType.REFRESH, self._refresh_secret, self.refresh_token_ttl
        )

    def issue_token_pair(self, user_id: int) -> TokenPair:
        return TokenPair(
            token=self.issue_access_token(user_id),
            refresh_token=self.issue_refresh_token(user_id),
        )

    def verify_access_token(self, token: str) -> int:
        """Return the user id of a valid access token.

        Raises:
            InvalidTokenError: bad signature, malformed, wrong type or expired.
        """
        return self._decode(token, TokenType.ACCESS, self._secret)

    def verify_refresh_token(self, token: str) -> int:
        """Return the user id of a valid refresh token."""
        return self._decode(token, TokenType.REFRESH, self._refresh_secret)
