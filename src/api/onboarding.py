"""Onboarding endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_user
from src.database import get_db
from src.models.user import User
from src.schemas.onboarding import (
    CompleteOnboardingRequest,
    OnboardingResponse,
    PersonaAudit,
    RoleResponse,
    StarterPost,
)
from src.schemas.user import UserResponse
from src.services.onboarding import complete_onboarding

router = APIRouter(prefix="/api/auth", tags=["onboarding"])


@router.post("/complete-onboarding", response_model=OnboardingResponse)
async def complete_onboarding_endpoint(
    data: CompleteOnboardingRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Create the default persona from the wizard answers and return a starter audit."""
    role, audit = complete_onboarding(
        db,
        current_user,
        role=data.role,
        industry=data.industry,
        experience_level=data.experience_level,
        branding_goal=data.branding_goal,
        tone=data.tone,
        keywords=data.topics_keywords,
    )

    return OnboardingResponse(
        message="Onboarding completed successfully",
        user=UserResponse.from_user(current_user),
        primary_role=RoleResponse(
            id=role.id,
            user_id=role.user_id,
            name=role.name,
            description=role.description,
            persona=role.persona,
            is_default=role.is_default,
            is_active=role.is_active,
            created_at=role.created_at,
        ),
        persona_audit=PersonaAudit(
            persona_score=audit["personaScore"],
            suggested_bio=audit["suggestedBio"],
            starter_posts=[
                StarterPost(type=post["type"], content=post["content"])
                for post in audit["starterPosts"]
            ],
        ),
    )
