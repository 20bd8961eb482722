"""
Current-actor resolution.

Session handling lives in front of this service; by the time a request
arrives the gateway has put the signed-in user's id in the X-User-Id
header. Absence means an anonymous caller.
"""
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Header

from teamfeed.errors import AuthRequiredError, error_to_http

ACTOR_HEADER = "X-User-Id"


@dataclass(frozen=True)
class Actor:
    """The signed-in user as seen by the feed client."""
    id: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None


# Client-side accessor: returns the signed-in actor, or None when signed out
ActorAccessor = Callable[[], Optional[Actor]]


async def get_actor_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """FastAPI dependency: the signed-in user's id, or None."""
    return x_user_id or None


async def require_actor_id(x_user_id: Optional[str] = Header(None)) -> str:
    """FastAPI dependency for actions that need a signed-in user (401 otherwise)."""
    if not x_user_id:
        raise error_to_http(AuthRequiredError("Sign in to perform this action"))
    return x_user_id
