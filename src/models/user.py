"""User model."""

from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Integer,
    String,
)

from src.database import Base
from src.models.credentials import Credentials, OAuthAuth, PasswordAuth
from src.models.enums import (
    ConnectedPlatform,
    OAuthProvider,
    SubscriptionPlan,
    SubscriptionStatus,
    Theme,
)
from src.models.mixins import SoftDeleteMixin, TimestampMixin

# Daily post generation limits; None means unlimited
DAILY_POST_LIMITS: dict[SubscriptionPlan, int | None] = {
    SubscriptionPlan.FREE: 5,
    SubscriptionPlan.PRO: None,
    SubscriptionPlan.AGENCY: None,
}

PLAN_LIMITS: dict[SubscriptionPlan, dict[str, Any]] = {
    SubscriptionPlan.FREE: {
        "platforms": 1,
        "roles": 1,
        "postsPerDay": 5,
        "trendsPerDay": 3,
        "analytics": "basic",
        "scheduling": False,
        "notifications": False,
    },
    SubscriptionPlan.PRO: {
        "platforms": 5,
        "roles": None,
        "postsPerDay": None,
        "trendsPerDay": None,
        "analytics": "advanced",
        "scheduling": True,
        "notifications": True,
    },
    SubscriptionPlan.AGENCY: {
        "platforms": None,
        "roles": None,
        "postsPerDay": None,
        "trendsPerDay": None,
        "analytics": "premium",
        "scheduling": True,
        "notifications": True,
        "teamCollaboration": True,
        "whiteLabel": True,
    },
}


def default_settings() -> dict[str, Any]:
    return {
        "timezone": "UTC",
        "notifications": {"email": True, "trends": True, "engagement": True},
        "theme": Theme.SYSTEM.value,
    }


def default_connected_accounts() -> dict[str, Any]:
    return {platform.value: {"connected": False} for platform in ConnectedPlatform}


def _local_day(moment: datetime) -> date:
    """Calendar day of ``moment`` on the server clock.

    Naive values are what SQLite hands back for stored UTC timestamps.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone().date()


class User(Base, TimestampMixin, SoftDeleteMixin):
    """User model for authentication, subscription and usage state."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "password_hash IS NOT NULL OR google_id IS NOT NULL OR linkedin_id IS NOT NULL",
            name="ck_users_has_credentials",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)  # always lowercase
    password_hash = Column(String(255), nullable=True)
    avatar = Column(String(1024), nullable=True)

    # OAuth identities
    google_id = Column(String(255), unique=True, nullable=True, index=True)
    linkedin_id = Column(String(255), unique=True, nullable=True, index=True)

    # Email verification (token columns hold SHA-256 hex digests)
    email_verified = Column(Boolean, default=False, nullable=False)
    email_verification_token = Column(String(64), nullable=True, index=True)
    email_verification_expires = Column(DateTime(timezone=True), nullable=True)

    # Password reset
    password_reset_token = Column(String(64), nullable=True, index=True)
    password_reset_expires = Column(DateTime(timezone=True), nullable=True)
    password_changed_at = Column(DateTime(timezone=True), nullable=True)

    # {"twitter": {"connected", "username", "accessToken", "refreshToken", "connectedAt"}, ...}
    connected_accounts = Column(JSON, default=default_connected_accounts, nullable=False)

    # Subscription
    subscription_plan = Column(
        Enum(
            SubscriptionPlan,
            name="subscriptionplan",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=SubscriptionPlan.FREE,
        nullable=False,
        index=True,
    )
    subscription_status = Column(
        Enum(
            SubscriptionStatus,
            name="subscriptionstatus",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=SubscriptionStatus.ACTIVE,
        nullable=False,
    )
    billing_customer_id = Column(String(255), nullable=True)
    billing_subscription_id = Column(String(255), nullable=True)
    current_period_start = Column(DateTime(timezone=True), nullable=True)
    current_period_end = Column(DateTime(timezone=True), nullable=True)
    trial_end = Column(DateTime(timezone=True), nullable=True)

    # Usage
    posts_generated = Column(Integer, default=0, nullable=False)
    posts_generated_today = Column(Integer, default=0, nullable=False)
    usage_last_reset_date = Column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    settings = Column(JSON, default=default_settings, nullable=False)

    # Onboarding
    onboarding_completed = Column(Boolean, default=False, nullable=False)
    onboarding_step = Column(Integer, default=0, nullable=False)

    persona_score = Column(JSON, nullable=True)

    last_login_at = Column(DateTime(timezone=True), nullable=True)

    @classmethod
    def from_credentials(cls, name: str, email: str, credentials: Credentials, **fields) -> "User":
        """Build a new user from a validated credential variant."""
        user = cls(name=name, email=email.strip().lower(), **fields)
        user.credentials = credentials
        return user

    @property
    def credentials(self) -> Credentials:
        """The user's sign-in methods."""
        password = PasswordAuth(self.password_hash) if self.password_hash else None
        oauth = tuple(
            OAuthAuth(provider, getattr(self, provider.id_attribute))
            for provider in OAuthProvider
            if getattr(self, provider.id_attribute)
        )
        return Credentials(password=password, oauth=oauth)

    @credentials.setter
    def credentials(self, value: Credentials) -> None:
        self.password_hash = value.password.hash if value.password else None
        for provider in OAuthProvider:
            setattr(self, provider.id_attribute, value.external_id(provider))

    @property
    def plan(self) -> SubscriptionPlan:
        return SubscriptionPlan(self.subscription_plan or SubscriptionPlan.FREE)

    def reset_daily_usage_if_needed(self, now: datetime | None = None) -> bool:
        """Zero today's counter once the server-local calendar day has advanced."""
        now = now or datetime.now(UTC)
        last_reset = self.usage_last_reset_date
        if last_reset is None or _local_day(now) > _local_day(last_reset):
            self.posts_generated_today = 0
            self.usage_last_reset_date = now
            return True
        return False

    def can_generate_post(self, now: datetime | None = None) -> bool:
        """Check whether the plan's daily post limit allows another post."""
        self.reset_daily_usage_if_needed(now)
        limit = DAILY_POST_LIMITS.get(self.plan)
        if limit is None:
            return True
        return (self.posts_generated_today or 0) < limit

    def increment_post_count(self) -> None:
        """Count a generated post against lifetime and daily usage."""
        self.posts_generated = (self.posts_generated or 0) + 1
        self.posts_generated_today = (self.posts_generated_today or 0) + 1

    def get_plan_limits(self) -> dict[str, Any]:
        """Feature limits for the user's plan; None means unlimited."""
        return dict(PLAN_LIMITS.get(self.plan, PLAN_LIMITS[SubscriptionPlan.FREE]))
