"""Transactional email: verification, password reset and welcome messages."""

import asyncio
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import resend
from jinja2 import Environment, FileSystemLoader, select_autoescape

from src.config import Settings
from src.errors import EmailDeliveryError

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "email"


class EmailService:
    """Sends templated emails through the Resend API.

    Every send is a single attempt bounded by ``timeout`` seconds. Failures
    raise ``EmailDeliveryError``; callers decide whether that is fatal.

    The Resend SDK keeps its API key in module state, so the key is set once
    here and every service in the process shares it.
    """

    def __init__(
        self,
        api_key: str | None,
        from_email: str,
        frontend_url: str,
        timeout: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.from_email = from_email
        self.frontend_url = frontend_url.rstrip("/")
        self.timeout = timeout
        self._templates = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )
        if api_key:
            resend.api_key = api_key
        else:
            logger.info("Resend API key not configured, email delivery disabled")

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailService":
        return cls(
            api_key=settings.resend_api_key,
            from_email=settings.email_from,
            frontend_url=settings.frontend_url,
            timeout=settings.email_timeout_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def render(self, template_name: str, **context: Any) -> str:
        """Render an email template with the shared layout context."""
        template = self._templates.get_template(template_name)
        return template.render(year=datetime.now(UTC).year, **context)

    async def send(self, to_email: str, subject: str, html: str) -> None:
        """Send one email or raise ``EmailDeliveryError``.

        A timeout stops waiting for the SDK call but cannot cancel its worker
        thread, so a timed-out message may still be delivered later.
        """
        if not self.is_configured:
            raise EmailDeliveryError("Email delivery is not configured")

        params = {
            "from": self.from_email,
            "to": [to_email],
            "subject": subject,
            "html": html,
        }
        try:
            await asyncio.wait_for(
                asyncio.to_thread(resend.Emails.send, params), timeout=self.timeout
            )
        except TimeoutError as e:
            logger.error(f"Email to {to_email} timed out after {self.timeout}s")
            raise EmailDeliveryError("Email provider timed out") from e
        except Exception as e:
            logger.error(f"Email to {to_email} failed: {e}")
            raise EmailDeliveryError("Email provider rejected the message") from e

        logger.info(f"Email sent to {to_email}: {subject}")

    async def send_verification_email(self, to_email: str, name: str, token: str) -> None:
        verification_url = f"{self.frontend_url}/verify-email/{token}"
        html = self.render("verify_email.html", name=name, verification_url=verification_url)
        await self.send(to_email, "Verify Your Email - PersonaPilot", html)

    async def send_password_reset_email(self, to_email: str, name: str, token: str) -> None:
        reset_url = f"{self.frontend_url}/reset-password/{token}"
        html = self.render("password_reset.html", name=name, reset_url=reset_url)
        await self.send(to_email, "Reset Your Password - PersonaPilot", html)

    async def send_welcome_email(self, to_email: str, name: str) -> None:
        dashboard_url = f"{self.frontend_url}/dashboard"
        html = self.render("welcome.html", name=name, dashboard_url=dashboard_url)
        await self.send(to_email, "Welcome to PersonaPilot!", html)


async def send_best_effort(send, *args: Any) -> None:
    """Run an email send whose failure must not affect the caller.

    Used as a background task after signup, OAuth sign-up and email changes.
    """
    try:
        await send(*args)
    except EmailDeliveryError as e:
        logger.warning(f"Best-effort email not delivered: {e.message}")
