"""Community feed API: posts, likes, comments, reports."""

from __future__ import annotations

import asyncio
from typing import Literal, NoReturn

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from loguru import logger
from pydantic import BaseModel, Field

from zoe.api.dependencies.auth import get_current_user_id, get_optional_user_id, require_admin
from zoe.api.errors import to_http_exception
from zoe.community.repository import SORT_MOST_LIKED, SORT_NEWEST, CommunityRepository, PostView
from zoe.core.errors import DomainError
from zoe.db.models import PostComment, User
from zoe.db.session import get_session
from zoe.media.errors import UploadValidationError
from zoe.media.image_compression import validate_file_count, validate_upload
from zoe.media.storage import discard_images, save_image
from zoe.media.upload_queue import PhotoUploadQueue

router = APIRouter(prefix="/api/community", tags=["community"])


class CommentRequest(BaseModel):
    content: str = Field(min_length=1)


class FeatureRequest(BaseModel):
    featured: bool = True


def _raise_http(error: DomainError, context: str) -> NoReturn:
    logger.warning(f"{context} failed: {type(error).__name__}: {error}")
    raise to_http_exception(error) from error


def _author(user: User) -> dict:
    return {"id": user.id, "first_name": user.first_name, "last_name": user.last_name, "photo_url": user.photo_url}


def post_payload(view: PostView) -> dict:
    post = view.post
    return {
        "id": post.id,
        "user_id": post.user_id,
        "author": _author(view.author),
        "category": post.category,
        "week_number": post.week_number,
        "content": post.content,
        "image_urls": post.image_urls or [],
        "is_sensitive": post.is_sensitive,
        "is_featured": post.is_featured,
        "like_count": view.like_count,
        "comment_count": view.comment_count,
        "liked_by_me": view.liked_by_me,
        "created_at": post.created_at.isoformat() if post.created_at else None,
    }


def comment_payload(comment: PostComment, user: User) -> dict:
    return {
        "id": comment.id,
        "post_id": comment.post_id,
        "author": _author(user),
        "content": comment.content,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
    }


@router.get("/posts")
def list_posts(
    category: str | None = Query(default=None),
    week_number: int | None = Query(default=None),
    user_id: str | None = Query(default=None),
    sort_by: Literal["newest", "most_liked"] = Query(default=SORT_NEWEST),
    viewer_id: str | None = Depends(get_optional_user_id),
):
    with get_session() as session:
        views = CommunityRepository.list_posts(
            session,
            viewer_id=viewer_id,
            category=category,
            week_number=week_number,
            user_id=user_id,
            sort_by=SORT_MOST_LIKED if sort_by == SORT_MOST_LIKED else SORT_NEWEST,
        )
        return [post_payload(view) for view in views]


@router.get("/posts/featured")
def featured_posts(viewer_id: str | None = Depends(get_optional_user_id)):
    with get_session() as session:
        return [post_payload(v) for v in CommunityRepository.list_posts(session, viewer_id=viewer_id, featured_only=True)]


@router.post("/posts", status_code=status.HTTP_201_CREATED)
async def create_post(
    content: str = Form(...),
    category: str = Form("general"),
    week_number: int | None = Form(None),
    is_sensitive: bool = Form(False),
    images: list[UploadFile] = File(default=[]),
    user_id: str = Depends(get_current_user_id),
):
    """Create a post with up to 4 images.

    Invalid files reject the whole request; compression or storage failures
    drop only the affected image and are reported back.
    """
    if not content.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Post content is required")

    queue = PhotoUploadQueue(uploader=lambda item, compressed: save_image(compressed.data, "community"))
    try:
        validate_file_count(len(images))
        for image in images:
            data = await image.read()
            validate_upload(image.filename or "", image.content_type, len(data))
            queue.add(image.filename or "", image.content_type, data)
    except UploadValidationError as e:
        _raise_http(e, "Create post")

    await asyncio.to_thread(queue.run)
    image_urls = [item.result for item in queue.succeeded]

    try:
        with get_session() as session:
            post = CommunityRepository.create(
                session,
                user_id=user_id,
                content=content.strip(),
                category=category,
                week_number=week_number,
                image_urls=image_urls,
                is_sensitive=is_sensitive,
            )
            author = session.get(User, user_id)
            payload = post_payload(PostView(post=post, author=author, like_count=0, comment_count=0, liked_by_me=False))
    except Exception:
        discard_images(image_urls)
        raise

    logger.info(f"Community post {post.id} created by user_id={user_id} ({len(image_urls)} images)")
    payload["failed_uploads"] = [item.to_dict() for item in queue.failed]
    return payload


@router.delete("/posts/{post_id}")
def delete_post(post_id: str, user_id: str = Depends(get_current_user_id)):
    try:
        with get_session() as session:
            user = session.get(User, user_id)
            CommunityRepository.delete(session, post_id, user_id, is_admin=bool(user and user.is_admin))
            return {"success": True}
    except DomainError as e:
        _raise_http(e, "Delete post")


@router.post("/posts/{post_id}/report")
def report_post(post_id: str, user_id: str = Depends(get_current_user_id)):
    try:
        with get_session() as session:
            post = CommunityRepository.report(session, post_id)
            logger.info(f"Post {post_id} reported by user_id={user_id} (count={post.report_count})")
            return {"success": True}
    except DomainError as e:
        _raise_http(e, "Report post")


@router.post("/posts/{post_id}/feature")
def feature_post(post_id: str, request: FeatureRequest, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            post = CommunityRepository.set_featured(session, post_id, request.featured)
            return {"id": post.id, "is_featured": post.is_featured}
    except DomainError as e:
        _raise_http(e, "Feature post")


@router.post("/posts/{post_id}/like")
def like_post(post_id: str, user_id: str = Depends(get_current_user_id)):
    try:
        with get_session() as session:
            CommunityRepository.like(session, post_id, user_id)
            return {"success": True}
    except DomainError as e:
        _raise_http(e, "Like post")


@router.delete("/posts/{post_id}/like")
def unlike_post(post_id: str, user_id: str = Depends(get_current_user_id)):
    try:
        with get_session() as session:
            CommunityRepository.unlike(session, post_id, user_id)
            return {"success": True}
    except DomainError as e:
        _raise_http(e, "Unlike post")


@router.get("/posts/{post_id}/likes")
def post_likes(post_id: str, _user_id: str = Depends(get_current_user_id)):
    try:
        with get_session() as session:
            return [
                {"user": _author(user), "created_at": like.created_at.isoformat() if like.created_at else None}
                for like, user in CommunityRepository.likes(session, post_id)
            ]
    except DomainError as e:
        _raise_http(e, "List likes")


@router.get("/posts/{post_id}/comments")
def post_comments(post_id: str, _user_id: str = Depends(get_current_user_id)):
    try:
        with get_session() as session:
            return [comment_payload(c, u) for c, u in CommunityRepository.comments(session, post_id)]
    except DomainError as e:
        _raise_http(e, "List comments")


@router.post("/posts/{post_id}/comments", status_code=status.HTTP_201_CREATED)
def add_comment(post_id: str, request: CommentRequest, user_id: str = Depends(get_current_user_id)):
    try:
        with get_session() as session:
            comment = CommunityRepository.add_comment(session, post_id, user_id, request.content.strip())
            return comment_payload(comment, session.get(User, user_id))
    except DomainError as e:
        _raise_http(e, "Add comment")


@router.delete("/comments/{comment_id}")
def delete_comment(comment_id: str, user_id: str = Depends(get_current_user_id)):
    try:
        with get_session() as session:
            user = session.get(User, user_id)
            CommunityRepository.delete_comment(session, comment_id, user_id, is_admin=bool(user and user.is_admin))
            return {"success": True}
    except DomainError as e:
        _raise_http(e, "Delete comment")
