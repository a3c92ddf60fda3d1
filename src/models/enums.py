"""Enums for model fields."""

from enum import Enum


class SubscriptionPlan(str, Enum):
    """Billing plans."""

    FREE = "free"
    PRO = "pro"
    AGENCY = "agency"


class SubscriptionStatus(str, Enum):
    """Billing subscription states."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"
    PAST_DUE = "past_due"


class Theme(str, Enum):
    """UI theme preference."""

    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class OAuthProvider(str, Enum):
    """Identity providers that can sign a user in."""

    GOOGLE = "google"
    LINKEDIN = "linkedin"

    @property
    def id_attribute(self) -> str:
        """Name of the User column holding this provider's external id."""
        return f"{self.value}_id"


class ConnectedPlatform(str, Enum):
    """Social platforms a user can connect for posting."""

    TWITTER = "twitter"
    LINKEDIN = "linkedin"


class PersonaRole(str, Enum):
    """Onboarding roles with a known target audience."""

    STUDENT = "Student"
    DEVELOPER = "Developer"
    CREATOR = "Creator"
    PROFESSIONAL = "Professional"

    @classmethod
    def parse(cls, value: str) -> "PersonaRole | None":
        """Return the matching role, or None for free-form roles."""
        try:
            return cls(value)
        except ValueError:
            return None


class BrandingGoal(str, Enum):
    """Onboarding branding goals with known content-type defaults."""

    JOB_OFFERS = "Job Offers"
    THOUGHT_LEADERSHIP = "Thought Leadership"
    AUDIENCE_GROWTH = "Audience Growth"

    @classmethod
    def parse(cls, value: str) -> "BrandingGoal | None":
        """Return the matching goal, or None for free-form goals."""
        try:
            return cls(value)
        except ValueError:
            return None
