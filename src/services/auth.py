"""Credential storage: password hashing, user lookups and one-time tokens."""

import hashlib
import secrets
from datetime import UTC, datetime, timedelta

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.credentials import Credentials
from src.models.enums import OAuthProvider
from src.models.user import User

settings = get_settings()

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

VERIFICATION_TOKEN_TTL = timedelta(hours=24)
RESET_TOKEN_TTL = timedelta(hours=1)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def set_password(user: User, password: str) -> None:
    """Replace the user's password hash."""
    user.password_hash = get_password_hash(password)


def check_password(user: User, password: str) -> bool:
    """Compare a candidate password; OAuth-only users never match."""
    if not user.password_hash:
        return False
    return verify_password(password, user.password_hash)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get a user by email, ignoring case."""
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user_by_id(db: Session, user_id: int) -> User | None:
    """Get a user by primary key."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_oauth_identity(
    db: Session, provider: OAuthProvider, external_id: str, email: str | None
) -> User | None:
    """Find the user owning an external identity, falling back to the email."""
    id_column = getattr(User, provider.id_attribute)
    user = db.query(User).filter(id_column == external_id).first()
    if user or not email:
        return user
    return get_user_by_email(db, email)


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Authenticate an active user by email and password."""
    user = get_user_by_email(db, email)
    if not user or not user.is_active:
        return None
    if not check_password(user, password):
        return None
    return user


def create_user(db: Session, name: str, email: str, password: str) -> User:
    """Create a new password user (unverified)."""
    user = User.from_credentials(
        name=name,
        email=email,
        credentials=Credentials.with_password(get_password_hash(password)),
        email_verified=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def hash_token(raw_token: str) -> str:
    """SHA-256 hex digest stored in place of a one-time token."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def generate_one_time_token() -> tuple[str, str]:
    """Return (raw token for the user, digest for the database)."""
    raw_token = secrets.token_hex(32)
    return raw_token, hash_token(raw_token)


def issue_email_verification_token(user: User, now: datetime | None = None) -> str:
    """Store a fresh verification digest on the user and return the raw token."""
    now = now or datetime.now(UTC)
    raw_token, digest = generate_one_time_token()
    user.email_verification_token = digest
    user.email_verification_expires = now + VERIFICATION_TOKEN_TTL
    return raw_token


def clear_email_verification_token(user: User) -> None:
    user.email_verification_token = None
    user.email_verification_expires = None


def issue_password_reset_token(user: User, now: datetime | None = None) -> str:
    """Store a fresh reset digest on the user and return the raw token."""
    now = now or datetime.now(UTC)
    raw_token, digest = generate_one_time_token()
    user.password_reset_token = digest
    user.password_reset_expires = now + RESET_TOKEN_TTL
    return raw_token


def clear_password_reset_token(user: User) -> None:
    user.password_reset_token = None
    user.password_reset_expires = None


def get_user_by_verification_token(
    db: Session, raw_token: str, now: datetime | None = None
) -> User | None:
    """Find the user whose unexpired verification digest matches ``raw_token``."""
    now = now or datetime.now(UTC)
    return (
        db.query(User)
        .filter(
            User.email_verification_token == hash_token(raw_token),
            User.email_verification_expires > now,
        )
        .first()
    )


def get_user_by_reset_token(
    db: Session, raw_token: str, now: datetime | None = None
) -> User | None:
    """Find the user whose unexpired reset digest matches ``raw_token``."""
    now = now or datetime.now(UTC)
    return (
        db.query(User)
        .filter(
            User.password_reset_token == hash_token(raw_token),
            User.password_reset_expires > now,
        )
        .first()
    )


def email_taken(db: Session, email: str, exclude_user_id: int | None = None) -> bool:
    """Check whether another account already uses ``email``."""
    query = db.query(User.id).filter(User.email == normalize_email(email))
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    return query.first() is not None
