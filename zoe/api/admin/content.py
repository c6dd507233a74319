"""Admin content editor API: course modules, sections, content items and exercises."""

from __future__ import annotations

from typing import Any, Literal, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger
from pydantic import BaseModel, Field

from zoe.api.dependencies.auth import require_admin
from zoe.api.errors import to_http_exception
from zoe.content.descriptions import generate_content_description
from zoe.content.repository import ContentItemRepository, ExerciseRepository, ModuleRepository, SectionRepository
from zoe.core.errors import DomainError
from zoe.db.models import ContentItem, CourseModule, Exercise, ModuleSection
from zoe.db.session import get_session

router = APIRouter(prefix="/api/admin", tags=["admin-content"])

ContentType = Literal["video", "text", "pdf", "exercise", "workout"]


class ModuleCreate(BaseModel):
    name: str = Field(min_length=1)
    slug: str | None = None
    description: str | None = None
    module_type: str = Field(min_length=1)
    icon_name: str | None = None
    color_theme: str = "pink"
    is_reusable: bool = True
    is_visible: bool = True


class ModuleUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    slug: str | None = None
    description: str | None = None
    module_type: str | None = None
    icon_name: str | None = None
    color_theme: str | None = None
    is_reusable: bool | None = None
    is_visible: bool | None = None


class SectionCreate(BaseModel):
    name: str = Field(min_length=1)
    slug: str | None = None
    description: str | None = None
    order_index: int | None = None


class SectionUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    slug: str | None = None
    description: str | None = None
    order_index: int | None = None


class ContentCreate(BaseModel):
    content_type: ContentType
    title: str = Field(min_length=1)
    description: str | None = None
    content_data: dict[str, Any] | None = None
    duration_minutes: int | None = None
    order_index: int | None = None


class ContentUpdate(BaseModel):
    content_type: ContentType | None = None
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    content_data: dict[str, Any] | None = None
    duration_minutes: int | None = None
    order_index: int | None = None


class ExerciseCreate(BaseModel):
    name: str = Field(min_length=1)
    category: str = "general"
    description: str | None = None
    video_url: str | None = None
    thumbnail_url: str | None = None
    default_sets: str | None = None
    default_reps: str | None = None
    duration_seconds: int | None = None
    difficulty: str | None = None
    order_index: int = 0


class ExerciseUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    category: str | None = None
    description: str | None = None
    video_url: str | None = None
    thumbnail_url: str | None = None
    default_sets: str | None = None
    default_reps: str | None = None
    duration_seconds: int | None = None
    difficulty: str | None = None
    order_index: int | None = None


class ReorderRequest(BaseModel):
    exercise_ids: list[str]


class GenerateContentRequest(BaseModel):
    title: str | None = None
    content_type: str = "video"
    context: str | None = None


def _raise_http(error: DomainError, context: str) -> NoReturn:
    logger.warning(f"{context} failed: {type(error).__name__}: {error}")
    raise to_http_exception(error) from error


def _updates(request: BaseModel) -> dict[str, Any]:
    """Fields the caller actually sent; explicit nulls on required columns are dropped."""
    updates = request.model_dump(exclude_unset=True)
    for name in ("name", "title", "module_type", "content_type", "category", "color_theme", "order_index"):
        if name in updates and updates[name] is None:
            del updates[name]
    return updates


def module_payload(module: CourseModule, section_count: int | None = None, content_count: int | None = None) -> dict:
    payload = {
        "id": module.id,
        "name": module.name,
        "slug": module.slug,
        "description": module.description,
        "module_type": module.module_type,
        "icon_name": module.icon_name,
        "color_theme": module.color_theme,
        "is_reusable": module.is_reusable,
        "is_visible": module.is_visible,
    }
    if section_count is not None:
        payload["section_count"] = section_count
    if content_count is not None:
        payload["content_count"] = content_count
    return payload


def section_payload(section: ModuleSection) -> dict:
    return {
        "id": section.id,
        "module_id": section.module_id,
        "name": section.name,
        "slug": section.slug,
        "description": section.description,
        "order_index": section.order_index,
    }


def content_payload(item: ContentItem) -> dict:
    return {
        "id": item.id,
        "section_id": item.section_id,
        "content_type": item.content_type,
        "title": item.title,
        "description": item.description,
        "content_data": item.content_data,
        "duration_minutes": item.duration_minutes,
        "order_index": item.order_index,
    }


def exercise_payload(exercise: Exercise) -> dict:
    return {
        "id": exercise.id,
        "name": exercise.name,
        "category": exercise.category,
        "description": exercise.description,
        "video_url": exercise.video_url,
        "thumbnail_url": exercise.thumbnail_url,
        "default_sets": exercise.default_sets,
        "default_reps": exercise.default_reps,
        "duration_seconds": exercise.duration_seconds,
        "difficulty": exercise.difficulty,
        "order_index": exercise.order_index,
    }


# Modules


@router.get("/modules")
def list_modules(_admin_id: str = Depends(require_admin)):
    with get_session() as session:
        return [module_payload(m, sections, items) for m, sections, items in ModuleRepository.list_with_counts(session)]


@router.post("/modules", status_code=status.HTTP_201_CREATED)
def create_module(request: ModuleCreate, _admin_id: str = Depends(require_admin)):
    fields = request.model_dump(exclude_none=True)
    with get_session() as session:
        module = ModuleRepository.create(session, **fields)
        logger.info(f"Created course module {module.id} ({module.name})")
        return module_payload(module)


@router.patch("/modules/{module_id}")
def update_module(module_id: str, request: ModuleUpdate, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            return module_payload(ModuleRepository.update(session, module_id, _updates(request)))
    except DomainError as e:
        _raise_http(e, "Update module")


@router.delete("/modules/{module_id}")
def delete_module(module_id: str, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            ModuleRepository.delete(session, module_id)
            logger.info(f"Deleted course module {module_id}")
            return {"success": True}
    except DomainError as e:
        _raise_http(e, "Delete module")


# Sections


@router.get("/modules/{module_id}/sections")
def list_sections(module_id: str, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            return [section_payload(s) for s in SectionRepository.for_module(session, module_id)]
    except DomainError as e:
        _raise_http(e, "List sections")


@router.post("/modules/{module_id}/sections", status_code=status.HTTP_201_CREATED)
def create_section(module_id: str, request: SectionCreate, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            section = SectionRepository.create(session, module_id, **request.model_dump(exclude_none=True))
            return section_payload(section)
    except DomainError as e:
        _raise_http(e, "Create section")


@router.patch("/sections/{section_id}")
def update_section(section_id: str, request: SectionUpdate, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            return section_payload(SectionRepository.update(session, section_id, _updates(request)))
    except DomainError as e:
        _raise_http(e, "Update section")


@router.delete("/sections/{section_id}")
def delete_section(section_id: str, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            SectionRepository.delete(session, section_id)
            return {"success": True}
    except DomainError as e:
        _raise_http(e, "Delete section")


# Content items


@router.get("/sections/{section_id}/content")
def list_content(section_id: str, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            return [content_payload(item) for item in ContentItemRepository.for_section(session, section_id)]
    except DomainError as e:
        _raise_http(e, "List content")


@router.post("/sections/{section_id}/content", status_code=status.HTTP_201_CREATED)
def create_content(section_id: str, request: ContentCreate, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            item = ContentItemRepository.create(session, section_id, **request.model_dump(exclude_none=True))
            return content_payload(item)
    except DomainError as e:
        _raise_http(e, "Create content")


@router.patch("/content/{item_id}")
def update_content(item_id: str, request: ContentUpdate, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            return content_payload(ContentItemRepository.update(session, item_id, _updates(request)))
    except DomainError as e:
        _raise_http(e, "Update content")


@router.delete("/content/{item_id}")
def delete_content(item_id: str, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            ContentItemRepository.delete(session, item_id)
            return {"success": True}
    except DomainError as e:
        _raise_http(e, "Delete content")


# Exercise library


@router.get("/exercises")
def list_exercises(category: str | None = Query(default=None), _admin_id: str = Depends(require_admin)):
    with get_session() as session:
        return [exercise_payload(e) for e in ExerciseRepository.search(session, category)]


@router.post("/exercises", status_code=status.HTTP_201_CREATED)
def create_exercise(request: ExerciseCreate, _admin_id: str = Depends(require_admin)):
    with get_session() as session:
        return exercise_payload(ExerciseRepository.create(session, **request.model_dump()))


@router.patch("/exercises/{exercise_id}")
def update_exercise(exercise_id: str, request: ExerciseUpdate, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            return exercise_payload(ExerciseRepository.update(session, exercise_id, _updates(request)))
    except DomainError as e:
        _raise_http(e, "Update exercise")


@router.delete("/exercises/{exercise_id}")
def delete_exercise(exercise_id: str, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            ExerciseRepository.delete(session, exercise_id)
            return {"success": True}
    except DomainError as e:
        _raise_http(e, "Delete exercise")


@router.post("/exercises/reorder")
def reorder_exercises(request: ReorderRequest, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            return [exercise_payload(e) for e in ExerciseRepository.reorder(session, request.exercise_ids)]
    except DomainError as e:
        _raise_http(e, "Reorder exercises")


# AI copywriting


@router.post("/generate-content")
async def generate_content(request: GenerateContentRequest, _admin_id: str = Depends(require_admin)):
    if not request.title or not request.title.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required")
    try:
        description = await generate_content_description(request.title, request.content_type, request.context)
    except DomainError as e:
        _raise_http(e, "Generate content description")
    return {"description": description}
