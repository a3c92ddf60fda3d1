"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from src.api import auth, oauth, onboarding
from src.config import get_settings
from src.errors import PersonaPilotError
from src.rate_limit import limiter, rate_limit_exceeded_handler
from src.security_headers import SecurityHeadersMiddleware
from src.services.email_service import EmailService
from src.services.oauth import build_oauth_clients
from src.services.tokens import TokenService

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the service clients; a missing JWT secret aborts startup."""
    for env_var, consequence in settings.missing_optional_settings().items():
        logger.warning(f"{env_var} is not set: {consequence}")

    app.state.token_service = TokenService.from_settings(settings)
    app.state.email_service = EmailService.from_settings(settings)
    app.state.oauth_clients = build_oauth_clients(settings)

    logger.info(f"PersonaPilot API started ({settings.environment})")
    yield


app = FastAPI(
    title="PersonaPilot API",
    description="Accounts, sessions and onboarding for PersonaPilot",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting: the default limit covers every route, auth routes set stricter ones
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PersonaPilotError)
async def persona_pilot_error_handler(request: Request, exc: PersonaPilotError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def _field_name(loc: tuple) -> str:
    # Drop the "body"/"query"/"path" prefix
    parts = [str(part) for part in loc[1:]] or [str(part) for part in loc]
    return ".".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": _field_name(error.get("loc", ())),
            "message": str(error.get("msg", "")).removeprefix("Value error, "),
        }
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": "Validation failed", "errors": errors})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Register routers
app.include_router(auth.router)
app.include_router(oauth.router)
app.include_router(onboarding.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
