"""Member dashboard summary."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from zoe.api.community import post_payload
from zoe.api.dependencies.auth import get_current_user_id
from zoe.api.schemas import client_payload, user_summary
from zoe.coaching.enrollment import current_enrollment_for_user
from zoe.coaching.repository import MessageRepository
from zoe.community.repository import CommunityRepository
from zoe.db.models import User
from zoe.db.session import get_session
from zoe.profile.completeness import evaluate_completeness, profile_data_from_user

router = APIRouter(prefix="/api/me", tags=["me"])

RECENT_POSTS = 5


@router.get("/dashboard")
def dashboard(user_id: str = Depends(get_current_user_id)):
    with get_session() as session:
        user = session.get(User, user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        completeness = evaluate_completeness(profile_data_from_user(user))
        client = current_enrollment_for_user(session, user_id)
        recent = CommunityRepository.list_posts(session, viewer_id=user_id, limit=RECENT_POSTS)
        logger.debug(f"Dashboard for user_id={user_id}: enrolled={client is not None}")
        return {
            "user": user_summary(user),
            "profile_completeness": completeness.to_dict(),
            "coaching": client_payload(client) if client else None,
            "unread_coach_messages": MessageRepository.unread_count(session, client.id, "coach") if client else 0,
            "recent_posts": [post_payload(view) for view in recent],
        }
