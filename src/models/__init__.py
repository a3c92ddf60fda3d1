"""SQLAlchemy models."""

from src.models.role import Role
from src.models.user import User

__all__ = [
    "User",
    "Role",
]
