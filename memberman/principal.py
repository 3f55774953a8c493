"""
Authenticated principal.

The host project's auth layer verifies the user; handlers receive an
AuthenticatedPrincipal built once per request and pass it down explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"


@dataclass(frozen=True)
class AuthenticatedPrincipal:
    """Verified identity of the caller."""

    user_ref: str
    email: str = ""
    role: str = ROLE_MEMBER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def can_access(self, user_ref: str | None) -> bool:
        """Admins access everything, members only their own data."""
        return self.is_admin or (user_ref is not None and user_ref == self.user_ref)

    @classmethod
    def from_user(cls, user) -> AuthenticatedPrincipal:
        """
        Build a principal from a Django user.

        Role comes from a ``role`` attribute when the user model has one,
        falling back to is_staff/is_superuser.
        """
        role = getattr(user, "role", None)
        if not role:
            role = ROLE_ADMIN if (user.is_staff or user.is_superuser) else ROLE_MEMBER
        return cls(
            user_ref=str(user.pk),
            email=(getattr(user, "email", "") or "").lower().strip(),
            role=role,
        )


def principal_from_request(request) -> AuthenticatedPrincipal | None:
    """Principal for an authenticated request, None for anonymous ones."""
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return None
    return AuthenticatedPrincipal.from_user(user)
