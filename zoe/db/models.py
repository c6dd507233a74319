from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""


class User(Base):
    """Member or admin account.

    Stores:
    - Credentials: email (unique, lower-cased), password_hash
    - Identity: first/last name, phone, is_admin
    - Profile fields used by the completeness score (country, bio, socials, ...)
    - Email preferences (booleans, default opted in except transactional)
    - prompt_state: profile-completion prompt snooze/dismiss bookkeeping (JSON)
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid, index=True)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    country: Mapped[str | None] = mapped_column(String, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    socials: Mapped[str | None] = mapped_column(String, nullable=True)
    due_date: Mapped[str | None] = mapped_column(String, nullable=True)
    postpartum_time: Mapped[str | None] = mapped_column(String, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String, nullable=True)

    news_updates: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    promotions: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    community_updates: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    transactional_emails: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    prompt_state: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    has_completed_workout: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class CoachingClient(Base):
    """A member enrolled in 1:1 coaching.

    Status is one of pending, pending_plan, active, paused, completed, cancelled.
    A user may have several rows over time (re-enrollment after cancellation),
    but at most one non-terminal enrollment.

    wizard_state holds the persisted plan-builder snapshot (current step and
    approval flags) so the admin can "Save & Exit" and resume.
    """

    __tablename__ = "coaching_clients"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid, index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending", index=True)
    coaching_type: Mapped[str] = mapped_column(String, nullable=False, default="postpartum_coaching")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)  # cents
    payment_status: Mapped[str] = mapped_column(String, nullable=False, default="completed")
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    plan_duration_weeks: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    wizard_state: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now, onupdate=_now)

    __table_args__ = (Index("idx_coaching_clients_user_created", "user_id", "created_at"),)


class WeekOverviewRecord(Base):
    """Admin-authored strategy for one coaching week (input to AI generation)."""

    __tablename__ = "coaching_week_overviews"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    client_id: Mapped[str] = mapped_column(
        String, ForeignKey("coaching_clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    philosophy: Mapped[str] = mapped_column(Text, nullable=False)
    focus_areas: Mapped[str] = mapped_column(Text, nullable=False)
    safety: Mapped[str] = mapped_column(Text, nullable=False)
    progression: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now, onupdate=_now)

    __table_args__ = (UniqueConstraint("client_id", "week_number", name="uq_week_overview_client_week"),)


class CoachingPlanWeek(Base):
    """Approved workout and nutrition content for one coaching week.

    workout: list of WorkoutDay dicts; nutrition: NutritionPreview dict.
    Either half may be missing until the admin approves it.
    """

    __tablename__ = "coaching_plan_weeks"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    client_id: Mapped[str] = mapped_column(
        String, ForeignKey("coaching_clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    workout: Mapped[list | None] = mapped_column(JSON, nullable=True)
    nutrition: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    workout_approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    nutrition_approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (UniqueConstraint("client_id", "week_number", name="uq_plan_week_client_week"),)


class DirectMessage(Base):
    """Message between the coach and a coaching client."""

    __tablename__ = "direct_messages"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    client_id: Mapped[str] = mapped_column(
        String, ForeignKey("coaching_clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender: Mapped[str] = mapped_column(String, nullable=False)  # "coach" or "client"
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)


class FormResponse(Base):
    """Intake / check-in form answers submitted for a coaching client."""

    __tablename__ = "coaching_form_responses"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    client_id: Mapped[str] = mapped_column(
        String, ForeignKey("coaching_clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    form_type: Mapped[str] = mapped_column(String, nullable=False)
    responses: Mapped[dict] = mapped_column(JSON, nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)


class CourseModule(Base):
    """Reusable course module (e.g. "Heal Your Core - Foundations")."""

    __tablename__ = "course_modules"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String, nullable=False)
    slug: Mapped[str] = mapped_column(String, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    module_type: Mapped[str] = mapped_column(String, nullable=False)
    icon_name: Mapped[str | None] = mapped_column(String, nullable=True)
    color_theme: Mapped[str] = mapped_column(String, nullable=False, default="pink")
    is_reusable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now, onupdate=_now)


class ModuleSection(Base):
    __tablename__ = "module_sections"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    module_id: Mapped[str] = mapped_column(
        String, ForeignKey("course_modules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    slug: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now, onupdate=_now)


class ContentItem(Base):
    """A video, text, pdf, exercise or workout entry inside a section."""

    __tablename__ = "content_items"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    section_id: Mapped[str] = mapped_column(
        String, ForeignKey("module_sections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content_type: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    content_data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now, onupdate=_now)


class Exercise(Base):
    """Exercise library entry with its demo video."""

    __tablename__ = "exercises"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    category: Mapped[str] = mapped_column(String, nullable=False, default="general", index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    video_url: Mapped[str | None] = mapped_column(String, nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(String, nullable=True)
    default_sets: Mapped[str | None] = mapped_column(String, nullable=True)
    default_reps: Mapped[str | None] = mapped_column(String, nullable=True)
    duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    difficulty: Mapped[str | None] = mapped_column(String, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)


class CommunityPost(Base):
    __tablename__ = "community_posts"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String, nullable=False, default="general", index=True)
    week_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    image_urls: Mapped[list | None] = mapped_column(JSON, nullable=True)
    is_sensitive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    report_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now, index=True)


class PostLike(Base):
    __tablename__ = "post_likes"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    post_id: Mapped[str] = mapped_column(
        String, ForeignKey("community_posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)

    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_post_like_user"),)


class PostComment(Base):
    __tablename__ = "post_comments"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    post_id: Mapped[str] = mapped_column(
        String, ForeignKey("community_posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)


class ProgressPhoto(Base):
    """Member progress photo stored after server-side compression."""

    __tablename__ = "progress_photos"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    photo_type: Mapped[str] = mapped_column(String, nullable=False, default="front")
    file_path: Mapped[str] = mapped_column(String, nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    width: Mapped[int] = mapped_column(Integer, nullable=False)
    height: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
