from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from universe.auth.session import SessionUser


class Role(str, Enum):
    STUDENT = "STUDENT"
    CLUB_ADMIN = "CLUB_ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


ADMIN_ROLES = (Role.CLUB_ADMIN, Role.SUPER_ADMIN)


def authorize(user: "SessionUser | None", *required: Role) -> bool:
    """Single access predicate for every protected route.

    No ``required`` roles means any authenticated user. Otherwise the user's
    role must be one of those listed; roles do not imply one another.
    """
    if user is None:
        return False
    if not required:
        return True
    return user.role in required
