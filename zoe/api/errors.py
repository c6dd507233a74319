"""Translate domain errors into HTTP responses.

Details are short and user-facing; the full error is logged by the caller.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from zoe.coaching.errors import (
    AIUnavailableError,
    ClientNotFoundError,
    DuplicateEnrollmentError,
    ExerciseNotFoundError,
    GenerationError,
    PlanWeekNotFoundError,
)
from zoe.community.errors import CommentNotFoundError, LikeNotFoundError, NotPostOwnerError, PostNotFoundError
from zoe.content.errors import ContentNotFoundError
from zoe.core.errors import DomainError

_NOT_FOUND = (
    ClientNotFoundError,
    PlanWeekNotFoundError,
    ExerciseNotFoundError,
    ContentNotFoundError,
    PostNotFoundError,
    CommentNotFoundError,
    LikeNotFoundError,
)


def to_http_exception(error: DomainError) -> HTTPException:
    if isinstance(error, AIUnavailableError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="AI generation is not configured")
    if isinstance(error, GenerationError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to generate {error.artifact}. Please try again.",
        )
    if isinstance(error, DuplicateEnrollmentError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=error.message)
    if isinstance(error, NotPostOwnerError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only modify your own posts")
    if isinstance(error, _NOT_FOUND):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
