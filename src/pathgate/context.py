"""Caller identity: authenticated user, guest share session, or anonymous."""

from __future__ import annotations

from dataclasses import dataclass

ADMIN_ROLE = "admin"


@dataclass(frozen=True, slots=True)
class User:
    """An authenticated user.

    Attributes:
        id: Stable user identifier.
        roles: Role names; ``"admin"`` bypasses read-only rules.
    """

    id: str
    roles: tuple[str, ...] = ()

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles


@dataclass(frozen=True, slots=True)
class GuestSession:
    """An unauthenticated session minted for exactly one share."""

    share_id: str


@dataclass(frozen=True, slots=True)
class CallerContext:
    """Who is asking.

    Both fields may be set: an authenticated user always takes precedence
    over a stale guest session.  Both unset means anonymous.
    """

    user: User | None = None
    guest: GuestSession | None = None

    @classmethod
    def for_user(cls, user_id: str, *roles: str) -> CallerContext:
        return cls(user=User(id=user_id, roles=tuple(roles)))

    @classmethod
    def for_guest(cls, share_id: str) -> CallerContext:
        return cls(guest=GuestSession(share_id=share_id))

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and bool(self.user.id)

    @property
    def is_guest_only(self) -> bool:
        """True when a guest session is the only identity present."""
        return self.guest is not None and self.user is None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin

    @property
    def user_id(self) -> str | None:
        return self.user.id if self.user is not None else None
