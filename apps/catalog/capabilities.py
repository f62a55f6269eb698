"""
Explicit admin capability handed to mutating catalog services.

Views turn an authenticated user into an ``AdminCapability`` through
``authorize``; services only check that they were given one and never look
at sessions or request objects themselves.
"""

from dataclasses import dataclass
from typing import Optional

from apps.catalog.exceptions import Unauthorized


@dataclass(frozen=True)
class AdminCapability:
    user_id: Optional[int]
    username: str = ''


def authorize(user) -> AdminCapability:
    """Grant the admin capability to an active staff user."""
    if user is None or not getattr(user, 'is_authenticated', False):
        raise Unauthorized()
    if not (user.is_active and user.is_staff):
        raise Unauthorized()
    return AdminCapability(user_id=user.pk, username=user.get_username())


def require_admin(capability) -> AdminCapability:
    if not isinstance(capability, AdminCapability):
        raise Unauthorized()
    return capability
