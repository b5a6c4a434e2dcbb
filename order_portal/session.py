"""Acting-user session passed explicitly into request handlers."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header

SYSTEM_USER = "System"


@dataclass(frozen=True)
class UserSession:
    """Who is performing the current request.

    Staff screens send their display name in the ``X-Acting-User`` header;
    unauthenticated callers act as ``System``.
    """

    user_name: str = SYSTEM_USER

    def actor(self, override: Optional[str] = None) -> str:
        """Name to record in the activity log, preferring an explicit override."""
        if override and override.strip():
            return override.strip()
        return self.user_name


def get_user_session(x_acting_user: Optional[str] = Header(None)) -> UserSession:
    """FastAPI dependency building the session from request headers."""
    if x_acting_user and x_acting_user.strip():
        return UserSession(user_name=x_acting_user.strip())
    return UserSession()
