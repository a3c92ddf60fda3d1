"""Role (content persona) model."""

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import TimestampMixin


class Role(Base, TimestampMixin):
    """A named content voice owned by one user."""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # {"industry", "targetAudience", "toneOfVoice", "contentTypes", "keywords",
    #  "hashtags", "brandingGoal", "experienceLevel"}
    persona = Column(JSON, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    user = relationship("User", backref="roles")
