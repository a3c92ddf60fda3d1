"""Credential variants a user can sign in with.

A user holds a password, one or more linked OAuth identities, or both. The
combination is validated when a ``Credentials`` value is built, so a record
without any way to sign in cannot be constructed.
"""

from dataclasses import dataclass, field

from src.models.enums import OAuthProvider


@dataclass(frozen=True)
class PasswordAuth:
    """Sign-in with a bcrypt password hash."""

    hash: str

    def __post_init__(self) -> None:
        if not self.hash:
            raise ValueError("Password credential requires a hash")


@dataclass(frozen=True)
class OAuthAuth:
    """Sign-in through an external identity provider."""

    provider: OAuthProvider
    external_id: str

    def __post_init__(self) -> None:
        if not self.external_id:
            raise ValueError(f"{self.provider.value} credential requires an external id")


@dataclass(frozen=True)
class Credentials:
    """Password, OAuth identities, or both."""

    password: PasswordAuth | None = None
    oauth: tuple[OAuthAuth, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.password is None and not self.oauth:
            raise ValueError("A user needs a password or at least one OAuth identity")
        providers = [identity.provider for identity in self.oauth]
        if len(providers) != len(set(providers)):
            raise ValueError("Only one identity per OAuth provider is allowed")

    @classmethod
    def with_password(cls, password_hash: str) -> "Credentials":
        return cls(password=PasswordAuth(password_hash))

    @classmethod
    def with_oauth(cls, provider: OAuthProvider, external_id: str) -> "Credentials":
        return cls(oauth=(OAuthAuth(provider, external_id),))

    @property
    def has_password(self) -> bool:
        return self.password is not None

    def external_id(self, provider: OAuthProvider) -> str | None:
        """External id linked for ``provider``, if any."""
        for identity in self.oauth:
            if identity.provider == provider:
                return identity.external_id
        return None
