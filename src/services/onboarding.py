"""Onboarding: default persona creation and the initial persona audit."""

import logging
import re
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session

from src.models.enums import BrandingGoal, PersonaRole
from src.models.role import Role
from src.models.user import User

logger = logging.getLogger(__name__)

ONBOARDING_FINAL_STEP = 5
INITIAL_PERSONA_SCORE = 65
MAX_HASHTAGS = 5

TARGET_AUDIENCES: dict[PersonaRole, str] = {
    PersonaRole.STUDENT: "fellow students and entry-level professionals",
    PersonaRole.DEVELOPER: "tech professionals and hiring managers",
    PersonaRole.CREATOR: "content consumers and brand collaborators",
    PersonaRole.PROFESSIONAL: "industry peers and potential clients",
}

CONTENT_TYPES: dict[BrandingGoal, list[str]] = {
    BrandingGoal.JOB_OFFERS: ["professional", "educational", "personal"],
    BrandingGoal.THOUGHT_LEADERSHIP: ["educational", "opinion", "insights"],
    BrandingGoal.AUDIENCE_GROWTH: ["entertaining", "educational", "engaging"],
}

DEFAULT_CONTENT_TYPES = ["professional", "educational"]

_WHITESPACE = re.compile(r"\s+")
_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")


def get_target_audience(role: str, industry: str) -> str:
    persona_role = PersonaRole.parse(role)
    if persona_role is None:
        return f"professionals in {industry}"
    return TARGET_AUDIENCES[persona_role]


def get_content_types(branding_goal: str) -> list[str]:
    goal = BrandingGoal.parse(branding_goal)
    if goal is None:
        return list(DEFAULT_CONTENT_TYPES)
    return list(CONTENT_TYPES[goal])


def generate_hashtags(keywords: list[str]) -> list[str]:
    """Hashtags from the first five keywords, e.g. "Cloud Computing" -> "CloudComputing"."""
    return [
        _NON_ALPHANUMERIC.sub("", _WHITESPACE.sub("", keyword))
        for keyword in keywords[:MAX_HASHTAGS]
    ]


def build_persona(
    role: str,
    industry: str,
    experience_level: str,
    branding_goal: str,
    tone: str,
    keywords: list[str],
) -> dict[str, Any]:
    return {
        "industry": industry.lower(),
        "targetAudience": get_target_audience(role, industry),
        "toneOfVoice": tone.lower(),
        "contentTypes": get_content_types(branding_goal),
        "keywords": list(keywords),
        "hashtags": generate_hashtags(keywords),
        "brandingGoal": branding_goal,
        "experienceLevel": experience_level,
    }


def generate_persona_audit(user: User, role: Role) -> dict[str, Any]:
    """Fixed starter audit; no AI call is made during onboarding."""
    persona = role.persona
    first_name = user.name.split(" ")[0]
    keywords = persona["keywords"]
    focus = keywords[0]
    role_title = role.name.split(" - ")[0].lower()

    return {
        "personaScore": INITIAL_PERSONA_SCORE,
        "suggestedBio": (
            f"{persona['experienceLevel']} {first_name} | {persona['industry']} enthusiast | "
            f"Sharing insights on {', '.join(keywords[:3])}"
        ),
        "starterPosts": [
            {
                "type": "introduction",
                "content": (
                    f"👋 Hi! I'm {first_name}, a {persona['experienceLevel'].lower()} "
                    f"{role_title} passionate about {focus}. Excited to share my journey "
                    "and connect with like-minded professionals!"
                ),
            },
            {
                "type": "insight",
                "content": (
                    f"💡 Key insight from my {persona['industry']} experience: {focus} is "
                    "transforming how we work. Here's what I've learned..."
                ),
            },
            {
                "type": "engagement",
                "content": (
                    f"🤔 Question for the {persona['industry']} community: What's the biggest "
                    f"challenge you're facing with {focus}? Let's discuss solutions!"
                ),
            },
        ],
    }


def record_initial_persona_score(user: User, score: int, now: datetime | None = None) -> None:
    """Seed the user's persona score sub-record with its first sample."""
    now = now or datetime.now(UTC)
    timestamp = now.isoformat()
    existing = user.persona_score or {}
    history = list(existing.get("history", []))
    history.append({"score": score, "date": timestamp})
    # Reassign so the JSON column is marked dirty
    user.persona_score = {
        **existing,
        "overallScore": score,
        "breakdown": existing.get(
            "breakdown",
            {
                "profileCompleteness": score,
                "contentQuality": score,
                "consistency": score,
                "engagementRate": score,
            },
        ),
        "feedback": existing.get("feedback", []),
        "strengths": existing.get("strengths", []),
        "improvements": existing.get("improvements", []),
        "history": history,
        "lastUpdated": timestamp,
    }


def complete_onboarding(
    db: Session,
    user: User,
    role: str,
    industry: str,
    experience_level: str,
    branding_goal: str,
    tone: str,
    keywords: list[str],
) -> tuple[Role, dict[str, Any]]:
    """Create the user's default persona and mark onboarding complete."""
    primary_role = Role(
        user_id=user.id,
        name=f"{role} - {industry}",
        description=f"{role} focused on {branding_goal.lower()} in {industry}",
        persona=build_persona(role, industry, experience_level, branding_goal, tone, keywords),
        is_default=True,
        is_active=True,
    )
    db.add(primary_role)

    audit = generate_persona_audit(user, primary_role)
    record_initial_persona_score(user, audit["personaScore"])

    user.onboarding_completed = True
    user.onboarding_step = ONBOARDING_FINAL_STEP
    db.commit()
    db.refresh(primary_role)
    db.refresh(user)

    logger.info(f"User {user.id} completed onboarding as {primary_role.name}")
    return primary_role, audit
