"""OAuth sign-in endpoints (Google, LinkedIn)."""

import logging
import secrets
from datetime import UTC, datetime
from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from src.api.dependencies import get_email_service, get_oauth_clients, get_token_service
from src.config import get_settings
from src.database import get_db
from src.errors import OAuthError
from src.models.credentials import Credentials
from src.models.enums import OAuthProvider
from src.models.user import User
from src.services.auth import get_user_by_oauth_identity
from src.services.email_service import EmailService, send_best_effort
from src.services.oauth import OAuthClient, OAuthProfile
from src.services.tokens import TokenService

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter(prefix="/api/auth", tags=["oauth"])

STATE_COOKIE_PATH = "/api/auth"
STATE_COOKIE_MAX_AGE = 600  # 10 minutes to finish the consent screen


def _state_cookie(provider: OAuthProvider) -> str:
    return f"oauth_state_{provider.value}"


def _login_redirect(provider: OAuthProvider, error: str) -> RedirectResponse:
    """Send the browser back to the login page with a generic error code."""
    response = RedirectResponse(
        f"{settings.frontend_url}/login?{urlencode({'error': error})}",
        status_code=status.HTTP_302_FOUND,
    )
    response.delete_cookie(_state_cookie(provider), path=STATE_COOKIE_PATH)
    return response


def _begin_login(client: OAuthClient) -> RedirectResponse:
    if not client.is_configured:
        logger.warning(f"{client.provider.value} OAuth requested but not configured")
        return _login_redirect(client.provider, "oauth_failed")

    state = secrets.token_hex(16)
    response = RedirectResponse(
        client.build_authorization_url(state), status_code=status.HTTP_302_FOUND
    )
    response.set_cookie(
        key=_state_cookie(client.provider),
        value=state,
        max_age=STATE_COOKIE_MAX_AGE,
        path=STATE_COOKIE_PATH,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return response


def find_or_create_oauth_user(
    db: Session, provider: OAuthProvider, profile: OAuthProfile
) -> tuple[User, bool]:
    """Match the profile to a user by external id or email, creating one if needed.

    Returns the user and whether it was created. An existing account without
    this provider's id gets it linked and is marked verified.
    """
    user = get_user_by_oauth_identity(db, provider, profile.external_id, profile.email)

    if user is None:
        user = User.from_credentials(
            name=profile.name,
            email=profile.email,
            credentials=Credentials.with_oauth(provider, profile.external_id),
            avatar=profile.avatar_url,
            email_verified=True,
            onboarding_completed=False,
        )
        db.add(user)
        return user, True

    if not getattr(user, provider.id_attribute):
        setattr(user, provider.id_attribute, profile.external_id)
        user.email_verified = True
        if not user.avatar:
            user.avatar = profile.avatar_url
        logger.info(f"Linked {provider.value} identity to user {user.id}")

    return user, False


async def _finish_login(
    provider: OAuthProvider,
    request: Request,
    code: str | None,
    state: str | None,
    background_tasks: BackgroundTasks,
    db: Session,
    tokens: TokenService,
    email_service: EmailService,
    clients: dict[OAuthProvider, OAuthClient],
) -> RedirectResponse:
    if not code:
        return _login_redirect(provider, "no_code")

    expected_state = request.cookies.get(_state_cookie(provider))
    if (
        not state
        or not expected_state
        or not secrets.compare_digest(state.encode(), expected_state.encode())
    ):
        logger.warning(f"{provider.value} OAuth callback with missing or mismatched state")
        return _login_redirect(provider, "oauth_failed")

    client = clients[provider]
    try:
        access_token = await client.exchange_code(code)
        profile = await client.fetch_profile(access_token)

        user, created = find_or_create_oauth_user(db, provider, profile)
        if not created and not user.is_active:
            db.rollback()
            logger.warning(f"{provider.value} sign-in refused for deactivated user {user.id}")
            return _login_redirect(provider, "oauth_failed")

        user.last_login_at = datetime.now(UTC)
        db.commit()
        db.refresh(user)
    except OAuthError:
        return _login_redirect(provider, "oauth_failed")
    except Exception:
        db.rollback()
        logger.exception(f"{provider.value} OAuth callback failed")
        return _login_redirect(provider, "oauth_failed")

    if created:
        background_tasks.add_task(
            send_best_effort, email_service.send_welcome_email, user.email, user.name
        )

    pair = tokens.issue_token_pair(user.id)
    page = "dashboard" if user.onboarding_completed else "onboarding"
    query = urlencode({"token": pair.token, "refreshToken": pair.refresh_token})
    response = RedirectResponse(
        f"{settings.frontend_url}/{page}?{query}", status_code=status.HTTP_302_FOUND
    )
    response.delete_cookie(_state_cookie(provider), path=STATE_COOKIE_PATH)
    return response


@router.get("/google")
async def google_login(
    clients: Annotated[dict[OAuthProvider, OAuthClient], Depends(get_oauth_clients)],
):
    """Redirect to Google's consent screen."""
    return _begin_login(clients[OAuthProvider.GOOGLE])


@router.get("/google/callback")
async def google_callback(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    email_service: Annotated[EmailService, Depends(get_email_service)],
    clients: Annotated[dict[OAuthProvider, OAuthClient], Depends(get_oauth_clients)],
    code: str | None = None,
    state: str | None = None,
):
    """Google OAuth callback."""
    return await _finish_login(
        OAuthProvider.GOOGLE,
        request,
        code,
        state,
        background_tasks,
        db,
        tokens,
        email_service,
        clients,
    )


@router.get("/linkedin")
async def linkedin_login(
    clients: Annotated[dict[OAuthProvider, OAuthClient], Depends(get_oauth_clients)],
):
    """Redirect to LinkedIn's consent screen."""
    return _begin_login(clients[OAuthProvider.LINKEDIN])


@router.get("/linkedin/callback")
async def linkedin_callback(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    email_service: Annotated[EmailService, Depends(get_email_service)],
    clients: Annotated[dict[OAuthProvider, OAuthClient], Depends(get_oauth_clients)],
    code: str | None = None,
    state: str | None = None,
):
    """LinkedIn OAuth callback."""
    return await _finish_login(
        OAuthProvider.LINKEDIN,
        request,
        code,
        state,
        background_tasks,
        db,
        tokens,
        email_service,
        clients,
    )
