"""
Error taxonomy shared by the service and the client SDK.

  ValidationError   — bad input, detected before any remote call
  AuthRequiredError — an action needs a signed-in actor and there is none
  PersistenceError  — a write against the store (or remote API) was rejected
  FetchError        — a read against the store (or remote API) failed

Routes stay thin: they let these propagate and `error_to_http` maps them
to the HTTP status the client expects.
"""
from __future__ import annotations

from fastapi import HTTPException

STATUS_BAD_REQUEST = 400
STATUS_UNAUTHORIZED = 401
STATUS_INTERNAL_ERROR = 500
STATUS_BAD_GATEWAY = 502


class TeamFeedError(Exception):
    """Base class; `message` is safe to show to the actor."""

    status_code = STATUS_INTERNAL_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TeamFeedError):
    status_code = STATUS_BAD_REQUEST


class AuthRequiredError(TeamFeedError):
    status_code = STATUS_UNAUTHORIZED


class PersistenceError(TeamFeedError):
    status_code = STATUS_INTERNAL_ERROR


class FetchError(TeamFeedError):
    status_code = STATUS_BAD_GATEWAY


# Errors the actor can fix themselves; everything else is a backend problem.
ACTOR_FACING_ERRORS: tuple[type[TeamFeedError], ...] = (ValidationError, AuthRequiredError)


def error_to_http(exc: Exception) -> HTTPException:
    """
    Map an exception raised by a repository or service call into an HTTPException.
    Known taxonomy errors keep their status; anything else becomes a 500 with its message.
    """
    if isinstance(exc, TeamFeedError):
        return HTTPException(status_code=exc.status_code, detail=exc.message)
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=str(exc))
