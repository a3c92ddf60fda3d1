"""Onboarding schemas."""

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from src.schemas.base import CamelModel
from src.schemas.user import UserResponse


class CompleteOnboardingRequest(CamelModel):
    """Answers collected by the onboarding wizard."""

    role: str = Field(..., min_length=1, max_length=100)
    industry: str = Field(..., min_length=1, max_length=100)
    experience_level: str = Field(..., min_length=1, max_length=100)
    branding_goal: str = Field(..., min_length=1, max_length=100)
    tone: str = Field(..., min_length=1, max_length=100)
    topics_keywords: list[str] = Field(..., min_length=1, max_length=50)

    @field_validator("role", "industry", "experience_level", "branding_goal", "tone")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Field is required")
        return value

    @field_validator("topics_keywords")
    @classmethod
    def clean_keywords(cls, value: list[str]) -> list[str]:
        keywords = [keyword.strip() for keyword in value if keyword.strip()]
        if not keywords:
            raise ValueError("At least one topic or keyword is required")
        return keywords


class RoleResponse(CamelModel):
    """Persona created at onboarding."""

    id: int
    user_id: int
    name: str
    description: str | None
    persona: dict[str, Any]
    is_default: bool
    is_active: bool
    created_at: datetime | None = None


class StarterPost(CamelModel):
    type: str
    content: str


class PersonaAudit(CamelModel):
    persona_score: int
    suggested_bio: str
    starter_posts: list[StarterPost]


class OnboardingResponse(CamelModel):
    message: str
    user: UserResponse
    primary_role: RoleResponse
    persona_audit: PersonaAudit
