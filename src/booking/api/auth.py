"""Caller identity for the HTTP layer.

Authentication happens upstream; the gateway forwards the signed-in user
in ``X-User-Id`` and their role in ``X-User-Role``. Requests without a user
id are anonymous (guests).
"""

from dataclasses import dataclass

from fastapi import Depends, Header

from booking.exceptions import AuthorizationError

ADMIN_ROLE = "admin"
CUSTOMER_ROLE = "customer"


@dataclass(frozen=True)
class Actor:
    user_id: str | None
    role: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == ADMIN_ROLE


def current_actor(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Actor:
    return Actor(user_id=x_user_id or None, role=(x_user_role or CUSTOMER_ROLE).lower())


def require_user(actor: Actor = Depends(current_actor)) -> Actor:
    if not actor.is_authenticated:
        raise AuthorizationError("Unauthorized", authenticated=False)
    return actor


def require_admin(actor: Actor = Depends(require_user)) -> Actor:
    if not actor.is_admin:
        raise AuthorizationError("Admin access required")
    return actor
