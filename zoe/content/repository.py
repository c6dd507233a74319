"""Repository for course content and the exercise library.

CourseModule -> ModuleSection -> ContentItem, each ordered by order_index.
Updates merge only the supplied fields.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, TypeVar

from sqlalchemy import func
from sqlalchemy.orm import Session

from zoe.content.errors import ContentNotFoundError
from zoe.db.models import ContentItem, CourseModule, Exercise, ModuleSection

ModelT = TypeVar("ModelT")


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "item"


def _get(session: Session, model: type[ModelT], item_id: str, kind: str) -> ModelT:
    item = session.get(model, item_id)
    if item is None:
        raise ContentNotFoundError(kind, item_id)
    return item


def _merge(session: Session, item, updates: Mapping[str, Any]):
    for name, value in updates.items():
        setattr(item, name, value)
    if hasattr(item, "updated_at"):
        item.updated_at = datetime.now(timezone.utc)
    session.flush()
    return item


def _next_order_index(session: Session, column, parent_column, parent_id: str) -> int:
    current = session.query(func.max(column)).filter(parent_column == parent_id).scalar()
    return 0 if current is None else current + 1


class ModuleRepository:
    @staticmethod
    def list_with_counts(session: Session) -> list[tuple[CourseModule, int, int]]:
        """Modules newest first, with their section and content item counts."""
        section_counts = dict(
            session.query(ModuleSection.module_id, func.count(ModuleSection.id)).group_by(ModuleSection.module_id).all()
        )
        content_counts = dict(
            session.query(ModuleSection.module_id, func.count(ContentItem.id))
            .join(ContentItem, ContentItem.section_id == ModuleSection.id)
            .group_by(ModuleSection.module_id)
            .all()
        )
        modules = session.query(CourseModule).order_by(CourseModule.created_at.desc()).all()
        return [(m, int(section_counts.get(m.id, 0)), int(content_counts.get(m.id, 0))) for m in modules]

    @staticmethod
    def get(session: Session, module_id: str) -> CourseModule:
        return _get(session, CourseModule, module_id, "Module")

    @staticmethod
    def create(session: Session, **fields) -> CourseModule:
        fields.setdefault("slug", slugify(fields["name"]))
        module = CourseModule(**fields)
        session.add(module)
        session.flush()
        return module

    @staticmethod
    def update(session: Session, module_id: str, updates: Mapping[str, Any]) -> CourseModule:
        return _merge(session, ModuleRepository.get(session, module_id), updates)

    @staticmethod
    def delete(session: Session, module_id: str) -> None:
        session.delete(ModuleRepository.get(session, module_id))
        session.flush()


class SectionRepository:
    @staticmethod
    def for_module(session: Session, module_id: str) -> list[ModuleSection]:
        ModuleRepository.get(session, module_id)
        return (
            session.query(ModuleSection)
            .filter(ModuleSection.module_id == module_id)
            .order_by(ModuleSection.order_index.asc(), ModuleSection.created_at.asc())
            .all()
        )

    @staticmethod
    def get(session: Session, section_id: str) -> ModuleSection:
        return _get(session, ModuleSection, section_id, "Section")

    @staticmethod
    def create(session: Session, module_id: str, **fields) -> ModuleSection:
        ModuleRepository.get(session, module_id)
        fields.setdefault("slug", slugify(fields["name"]))
        if fields.get("order_index") is None:
            fields["order_index"] = _next_order_index(
                session, ModuleSection.order_index, ModuleSection.module_id, module_id
            )
        section = ModuleSection(module_id=module_id, **fields)
        session.add(section)
        session.flush()
        return section

    @staticmethod
    def update(session: Session, section_id: str, updates: Mapping[str, Any]) -> ModuleSection:
        return _merge(session, SectionRepository.get(session, section_id), updates)

    @staticmethod
    def delete(session: Session, section_id: str) -> None:
        session.delete(SectionRepository.get(session, section_id))
        session.flush()


class ContentItemRepository:
    @staticmethod
    def for_section(session: Session, section_id: str) -> list[ContentItem]:
        SectionRepository.get(session, section_id)
        return (
            session.query(ContentItem)
            .filter(ContentItem.section_id == section_id)
            .order_by(ContentItem.order_index.asc(), ContentItem.created_at.asc())
            .all()
        )

    @staticmethod
    def get(session: Session, item_id: str) -> ContentItem:
        return _get(session, ContentItem, item_id, "Content item")

    @staticmethod
    def create(session: Session, section_id: str, **fields) -> ContentItem:
        SectionRepository.get(session, section_id)
        if fields.get("order_index") is None:
            fields["order_index"] = _next_order_index(
                session, ContentItem.order_index, ContentItem.section_id, section_id
            )
        fields["content_data"] = fields.get("content_data") or {}
        item = ContentItem(section_id=section_id, **fields)
        session.add(item)
        session.flush()
        return item

    @staticmethod
    def update(session: Session, item_id: str, updates: Mapping[str, Any]) -> ContentItem:
        return _merge(session, ContentItemRepository.get(session, item_id), updates)

    @staticmethod
    def delete(session: Session, item_id: str) -> None:
        session.delete(ContentItemRepository.get(session, item_id))
        session.flush()


class ExerciseRepository:
    @staticmethod
    def search(session: Session, category: str | None = None) -> list[Exercise]:
        query = session.query(Exercise)
        if category:
            query = query.filter(Exercise.category == category)
        return query.order_by(Exercise.order_index.asc(), Exercise.name.asc()).all()

    @staticmethod
    def get(session: Session, exercise_id: str) -> Exercise:
        return _get(session, Exercise, exercise_id, "Exercise")

    @staticmethod
    def create(session: Session, **fields) -> Exercise:
        exercise = Exercise(**fields)
        session.add(exercise)
        session.flush()
        return exercise

    @staticmethod
    def update(session: Session, exercise_id: str, updates: Mapping[str, Any]) -> Exercise:
        return _merge(session, ExerciseRepository.get(session, exercise_id), updates)

    @staticmethod
    def delete(session: Session, exercise_id: str) -> None:
        session.delete(ExerciseRepository.get(session, exercise_id))
        session.flush()

    @staticmethod
    def reorder(session: Session, exercise_ids: list[str]) -> list[Exercise]:
        """Assign order_index by position in exercise_ids."""
        exercises = {e.id: e for e in session.query(Exercise).filter(Exercise.id.in_(exercise_ids)).all()}
        for exercise_id in exercise_ids:
            if exercise_id not in exercises:
                raise ContentNotFoundError("Exercise", exercise_id)
        for index, exercise_id in enumerate(exercise_ids):
            exercises[exercise_id].order_index = index
        session.flush()
        return [exercises[exercise_id] for exercise_id in exercise_ids]
