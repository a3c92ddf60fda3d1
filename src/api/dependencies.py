"""FastAPI dependencies for authentication, database and service clients."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from src.database import get_db
from src.errors import AuthenticationError, NotFoundError
from src.models.enums import OAuthProvider
from src.models.user import User
from src.services.auth import get_user_by_id
from src.services.email_service import EmailService
from src.services.oauth import OAuthClient
from src.services.tokens import TokenService

security = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    """Token service created at startup."""
    return request.app.state.token_service


def get_email_service(request: Request) -> EmailService:
    """Email service created at startup."""
    return request.app.state.email_service


def get_oauth_clients(request: Request) -> dict[OAuthProvider, OAuthClient]:
    """OAuth clients created at startup, keyed by provider."""
    return request.app.state.oauth_clients


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> User:
    """Get the current user from a Bearer access token.

    Deactivated accounts are not rejected here: an access token stays usable
    until it expires, and only the refresh endpoint checks ``is_active``.
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    user_id = tokens.verify_access_token(credentials.credentials)

    user = get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")

    return user
