from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthUser:
    """The subset of a newly created auth user the profile needs."""
    uid: str
    email: Optional[str] = None

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "AuthUser":
        return cls(uid=str(claims.get('uid') or ''), email=claims.get('email'))


def default_display_name(uid: str) -> str:
    return f"User {uid}"


def provision_user(user: AuthUser, store) -> Dict[str, Any]:
    """Write users/{uid} with the id, email and a default display name."""
    if not user.uid:
        raise ValueError("Cannot provision a user without a uid")
    profile = {
        'uid': user.uid,
        'email': user.email,
        'name': default_display_name(user.uid),
    }
    store.update(f"/users/{user.uid}", profile)
    logger.info("provisioned profile for uid=%s", user.uid)
    return profile
