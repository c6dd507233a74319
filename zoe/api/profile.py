"""Member profile API: profile fields, completeness prompt, progress photos."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import NoReturn

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from loguru import logger
from pydantic import BaseModel, Field

from zoe.api.dependencies.auth import get_current_user_id
from zoe.api.errors import to_http_exception
from zoe.api.schemas import user_profile
from zoe.db.models import ProgressPhoto, User
from zoe.db.session import get_session
from zoe.media.errors import UploadValidationError
from zoe.media.image_compression import validate_file_count
from zoe.media.storage import delete_image, discard_images, save_image
from zoe.media.upload_queue import PhotoUploadQueue
from zoe.profile.completeness import (
    SNOOZE_DURATION_DAYS,
    PromptContext,
    PromptState,
    evaluate_completeness,
    profile_data_from_user,
    should_show_prompt,
)

router = APIRouter(tags=["profile"])


class ProfileUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1)
    last_name: str | None = Field(default=None, min_length=1)
    phone: str | None = None
    country: str | None = None
    bio: str | None = None
    socials: str | None = None
    due_date: str | None = None
    postpartum_time: str | None = None
    photo_url: str | None = None
    news_updates: bool | None = None
    promotions: bool | None = None
    community_updates: bool | None = None
    transactional_emails: bool | None = None
    has_completed_workout: bool | None = None


class SnoozeRequest(BaseModel):
    days: int = Field(default=SNOOZE_DURATION_DAYS, ge=1, le=365)


class PromptShownRequest(BaseModel):
    location: str = Field(min_length=1)


_NOT_NULL = {
    "first_name",
    "last_name",
    "news_updates",
    "promotions",
    "community_updates",
    "transactional_emails",
    "has_completed_workout",
}


def _raise_http(error: UploadValidationError, context: str) -> NoReturn:
    logger.warning(f"{context} failed: {error}")
    raise to_http_exception(error) from error


def _load_user(session, user_id: str) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _save_prompt_state(user: User, state: PromptState) -> None:
    # Reassign so the JSON column is flagged dirty
    user.prompt_state = state.to_dict()


def photo_payload(photo: ProgressPhoto) -> dict:
    return {
        "id": photo.id,
        "photo_type": photo.photo_type,
        "url": photo.file_path,
        "file_size": photo.file_size,
        "width": photo.width,
        "height": photo.height,
        "notes": photo.notes,
        "created_at": photo.created_at.isoformat() if photo.created_at else None,
    }


@router.get("/api/profile")
def get_profile(user_id: str = Depends(get_current_user_id)):
    with get_session() as session:
        user = _load_user(session, user_id)
        completeness = evaluate_completeness(profile_data_from_user(user))
        return {"profile": user_profile(user), "completeness": completeness.to_dict()}


@router.patch("/api/profile")
def update_profile(request: ProfileUpdate, user_id: str = Depends(get_current_user_id)):
    updates = request.model_dump(exclude_unset=True)
    for name in _NOT_NULL & updates.keys():
        if updates[name] is None:
            del updates[name]

    with get_session() as session:
        user = _load_user(session, user_id)
        for name, value in updates.items():
            setattr(user, name, value.strip() if isinstance(value, str) else value)

        completeness = evaluate_completeness(profile_data_from_user(user))
        if completeness.is_complete and user.prompt_state:
            state = PromptState.from_dict(user.prompt_state)
            state.clear()
            _save_prompt_state(user, state)
        logger.info(f"Profile updated for user_id={user_id}: {sorted(updates)}")
        return {"profile": user_profile(user), "completeness": completeness.to_dict()}


@router.get("/api/profile/completeness")
def get_completeness(
    location: str = Query(default="dashboard"),
    first_login: bool = Query(default=False),
    user_id: str = Depends(get_current_user_id),
):
    """Completeness plus whether the completion prompt should be shown at `location`."""
    with get_session() as session:
        user = _load_user(session, user_id)
        completeness = evaluate_completeness(profile_data_from_user(user))
        context = PromptContext(
            location=location,
            is_first_login=first_login,
            has_completed_workout=user.has_completed_workout,
        )
        state = PromptState.from_dict(user.prompt_state)
        return {
            **completeness.to_dict(),
            "show_prompt": should_show_prompt(completeness, context, state),
        }


@router.post("/api/profile/prompts/snooze")
def snooze_prompt(request: SnoozeRequest, user_id: str = Depends(get_current_user_id)):
    with get_session() as session:
        user = _load_user(session, user_id)
        state = PromptState.from_dict(user.prompt_state)
        state.snooze(request.days)
        _save_prompt_state(user, state)
        return state.to_dict()


@router.post("/api/profile/prompts/dismiss")
def dismiss_prompt(user_id: str = Depends(get_current_user_id)):
    with get_session() as session:
        user = _load_user(session, user_id)
        state = PromptState.from_dict(user.prompt_state)
        state.dismiss()
        _save_prompt_state(user, state)
        return state.to_dict()


@router.post("/api/profile/prompts/shown")
def prompt_shown(request: PromptShownRequest, user_id: str = Depends(get_current_user_id)):
    with get_session() as session:
        user = _load_user(session, user_id)
        state = PromptState.from_dict(user.prompt_state)
        state.record_shown(request.location)
        _save_prompt_state(user, state)
        return state.to_dict()


# Progress photos


@router.get("/api/progress-photos")
def list_progress_photos(user_id: str = Depends(get_current_user_id)):
    with get_session() as session:
        photos = (
            session.query(ProgressPhoto)
            .filter(ProgressPhoto.user_id == user_id)
            .order_by(ProgressPhoto.created_at.desc())
            .all()
        )
        return [photo_payload(photo) for photo in photos]


@router.post("/api/progress-photos", status_code=status.HTTP_201_CREATED)
async def upload_progress_photos(
    photos: list[UploadFile] = File(...),
    photo_type: str = Form("front"),
    notes: str | None = Form(None),
    user_id: str = Depends(get_current_user_id),
):
    """Upload up to 4 progress photos; each photo succeeds or fails on its own."""
    queue = PhotoUploadQueue(uploader=lambda item, compressed: save_image(compressed.data, f"progress/{user_id}"))
    try:
        validate_file_count(len(photos))
    except UploadValidationError as e:
        _raise_http(e, "Upload progress photos")
    for photo in photos:
        queue.add(photo.filename or "", photo.content_type, await photo.read())

    await asyncio.to_thread(queue.run)

    try:
        with get_session() as session:
            saved = []
            for item in queue.succeeded:
                record = ProgressPhoto(
                    user_id=user_id,
                    photo_type=photo_type,
                    file_path=item.result,
                    file_size=item.compressed.size,
                    width=item.compressed.width,
                    height=item.compressed.height,
                    notes=notes,
                    created_at=datetime.now(timezone.utc),
                )
                session.add(record)
                saved.append(record)
            session.flush()
            payload = {
                "photos": [photo_payload(record) for record in saved],
                "results": [item.to_dict() for item in queue.items],
            }
    except Exception:
        discard_images(item.result for item in queue.succeeded)
        raise
    logger.info(f"Progress photos for user_id={user_id}: {len(saved)} saved, {len(queue.failed)} failed")
    return payload


@router.delete("/api/progress-photos/{photo_id}")
def delete_progress_photo(photo_id: str, user_id: str = Depends(get_current_user_id)):
    with get_session() as session:
        photo = session.get(ProgressPhoto, photo_id)
        if photo is None or photo.user_id != user_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Photo not found")
        file_path = photo.file_path
        session.delete(photo)
    delete_image(file_path)
    return {"success": True}
