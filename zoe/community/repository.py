"""Repository for community feed data access."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.orm import Session

from zoe.community.errors import CommentNotFoundError, LikeNotFoundError, NotPostOwnerError, PostNotFoundError
from zoe.db.models import CommunityPost, PostComment, PostLike, User

SORT_NEWEST = "newest"
SORT_MOST_LIKED = "most_liked"


@dataclass
class PostView:
    post: CommunityPost
    author: User
    like_count: int
    comment_count: int
    liked_by_me: bool


def _like_counts(session: Session):
    return (
        session.query(PostLike.post_id.label("post_id"), func.count(PostLike.id).label("likes"))
        .group_by(PostLike.post_id)
        .subquery()
    )


class CommunityRepository:
    @staticmethod
    def get(session: Session, post_id: str) -> CommunityPost:
        post = session.get(CommunityPost, post_id)
        if post is None:
            raise PostNotFoundError(post_id)
        return post

    @staticmethod
    def list_posts(
        session: Session,
        viewer_id: str | None = None,
        category: str | None = None,
        week_number: int | None = None,
        user_id: str | None = None,
        featured_only: bool = False,
        sort_by: str = SORT_NEWEST,
        limit: int = 50,
    ) -> list[PostView]:
        likes = _like_counts(session)
        like_count = func.coalesce(likes.c.likes, 0)
        query = (
            session.query(CommunityPost, User, like_count)
            .join(User, User.id == CommunityPost.user_id)
            .outerjoin(likes, likes.c.post_id == CommunityPost.id)
        )
        if category:
            query = query.filter(CommunityPost.category == category)
        if week_number is not None:
            query = query.filter(CommunityPost.week_number == week_number)
        if user_id:
            query = query.filter(CommunityPost.user_id == user_id)
        if featured_only:
            query = query.filter(CommunityPost.is_featured.is_(True))

        if sort_by == SORT_MOST_LIKED:
            query = query.order_by(like_count.desc(), CommunityPost.created_at.desc())
        else:
            query = query.order_by(CommunityPost.created_at.desc())

        rows = query.limit(limit).all()
        post_ids = [post.id for post, _, _ in rows]
        return CommunityRepository._views(session, rows, post_ids, viewer_id)

    @staticmethod
    def _views(session: Session, rows, post_ids: list[str], viewer_id: str | None) -> list[PostView]:
        if not post_ids:
            return []
        comment_counts = dict(
            session.query(PostComment.post_id, func.count(PostComment.id))
            .filter(PostComment.post_id.in_(post_ids))
            .group_by(PostComment.post_id)
            .all()
        )
        liked: set[str] = set()
        if viewer_id:
            liked = {
                post_id
                for (post_id,) in session.query(PostLike.post_id)
                .filter(PostLike.post_id.in_(post_ids), PostLike.user_id == viewer_id)
                .all()
            }
        return [
            PostView(
                post=post,
                author=author,
                like_count=int(likes or 0),
                comment_count=int(comment_counts.get(post.id, 0)),
                liked_by_me=post.id in liked,
            )
            for post, author, likes in rows
        ]

    @staticmethod
    def create(
        session: Session,
        user_id: str,
        content: str,
        category: str = "general",
        week_number: int | None = None,
        image_urls: list[str] | None = None,
        is_sensitive: bool = False,
    ) -> CommunityPost:
        post = CommunityPost(
            user_id=user_id,
            content=content,
            category=category,
            week_number=week_number,
            image_urls=image_urls or [],
            is_sensitive=is_sensitive,
        )
        session.add(post)
        session.flush()
        return post

    @staticmethod
    def delete(session: Session, post_id: str, user_id: str, is_admin: bool = False) -> CommunityPost:
        post = CommunityRepository.get(session, post_id)
        if post.user_id != user_id and not is_admin:
            raise NotPostOwnerError(post_id)
        session.delete(post)
        session.flush()
        return post

    @staticmethod
    def report(session: Session, post_id: str) -> CommunityPost:
        post = CommunityRepository.get(session, post_id)
        post.report_count = (post.report_count or 0) + 1
        session.flush()
        return post

    @staticmethod
    def set_featured(session: Session, post_id: str, featured: bool) -> CommunityPost:
        post = CommunityRepository.get(session, post_id)
        post.is_featured = featured
        session.flush()
        return post

    @staticmethod
    def like(session: Session, post_id: str, user_id: str) -> PostLike:
        CommunityRepository.get(session, post_id)
        existing = session.query(PostLike).filter_by(post_id=post_id, user_id=user_id).one_or_none()
        if existing is not None:
            return existing
        like = PostLike(post_id=post_id, user_id=user_id)
        session.add(like)
        session.flush()
        return like

    @staticmethod
    def unlike(session: Session, post_id: str, user_id: str) -> None:
        like = session.query(PostLike).filter_by(post_id=post_id, user_id=user_id).one_or_none()
        if like is None:
            raise LikeNotFoundError(post_id)
        session.delete(like)
        session.flush()

    @staticmethod
    def likes(session: Session, post_id: str) -> list[tuple[PostLike, User]]:
        CommunityRepository.get(session, post_id)
        return (
            session.query(PostLike, User)
            .join(User, User.id == PostLike.user_id)
            .filter(PostLike.post_id == post_id)
            .order_by(PostLike.created_at.desc())
            .all()
        )

    @staticmethod
    def add_comment(session: Session, post_id: str, user_id: str, content: str) -> PostComment:
        CommunityRepository.get(session, post_id)
        comment = PostComment(post_id=post_id, user_id=user_id, content=content)
        session.add(comment)
        session.flush()
        return comment

    @staticmethod
    def comments(session: Session, post_id: str) -> list[tuple[PostComment, User]]:
        CommunityRepository.get(session, post_id)
        return (
            session.query(PostComment, User)
            .join(User, User.id == PostComment.user_id)
            .filter(PostComment.post_id == post_id)
            .order_by(PostComment.created_at.asc())
            .all()
        )

    @staticmethod
    def delete_comment(session: Session, comment_id: str, user_id: str, is_admin: bool = False) -> None:
        comment = session.get(PostComment, comment_id)
        if comment is None:
            raise CommentNotFoundError(comment_id)
        if comment.user_id != user_id and not is_admin:
            raise NotPostOwnerError(comment.post_id)
        session.delete(comment)
        session.flush()
