"""Persistence accessors for courses and lessons.

Soft-deleted rows are never filtered implicitly: every lookup comes in an
active-only form and, where a caller needs it, an explicit
``*_including_deleted`` form.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coursehub.models.course import Course
from coursehub.models.enums import CourseStatus
from coursehub.models.lesson import Lesson


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------


async def get_course(
    db: AsyncSession,
    course_id: UUID,
    *,
    with_lessons: bool = False,
) -> Course | None:
    stmt = select(Course).where(Course.course_id == course_id, Course.is_deleted.is_(False))
    if with_lessons:
        # populate_existing: an identity-mapped course may hold a noload (empty) collection
        stmt = stmt.options(selectinload(Course.lessons)).execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_course_including_deleted(db: AsyncSession, course_id: UUID) -> Course | None:
    stmt = select(Course).where(Course.course_id == course_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def course_exists(db: AsyncSession, course_id: UUID) -> bool:
    stmt = select(func.count()).select_from(Course).where(
        Course.course_id == course_id, Course.is_deleted.is_(False)
    )
    return bool(await db.scalar(stmt))


async def search_courses(
    db: AsyncSession,
    *,
    query: str | None,
    status: CourseStatus | None,
    limit: int,
    offset: int,
) -> tuple[list[Course], int]:
    filters = [Course.is_deleted.is_(False)]
    if query:
        filters.append(Course.title.icontains(query, autoescape=True))
    if status is not None:
        filters.append(Course.status == status)

    total = await db.scalar(select(func.count()).select_from(Course).where(*filters)) or 0
    stmt = (
        select(Course)
        .where(*filters)
        .options(selectinload(Course.lessons))
        .order_by(Course.created_at.desc())
        .limit(limit)
        .offset(offset)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all()), total


# ---------------------------------------------------------------------------
# Lessons
# ---------------------------------------------------------------------------


async def get_lesson(db: AsyncSession, lesson_id: UUID) -> Lesson | None:
    stmt = select(Lesson).where(Lesson.lesson_id == lesson_id, Lesson.is_deleted.is_(False))
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_lesson_including_deleted(db: AsyncSession, lesson_id: UUID) -> Lesson | None:
    return await db.get(Lesson, lesson_id)


async def get_lessons_by_course(
    db: AsyncSession,
    course_id: UUID,
    *,
    for_update: bool = False,
) -> list[Lesson]:
    """Active lessons of a course, ascending by order.

    ``for_update`` takes row locks on the returned lessons for the rest of
    the current transaction (ignored by backends without ``FOR UPDATE``).
    """
    stmt = (
        select(Lesson)
        .where(Lesson.course_id == course_id, Lesson.is_deleted.is_(False))
        .order_by(Lesson.order)
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def is_order_unique(
    db: AsyncSession,
    course_id: UUID,
    order: int,
    exclude_lesson_id: UUID | None = None,
) -> bool:
    stmt = select(func.count()).select_from(Lesson).where(
        Lesson.course_id == course_id,
        Lesson.order == order,
        Lesson.is_deleted.is_(False),
    )
    if exclude_lesson_id is not None:
        stmt = stmt.where(Lesson.lesson_id != exclude_lesson_id)
    return not await db.scalar(stmt)


async def get_max_order(db: AsyncSession, course_id: UUID) -> int:
    stmt = select(func.max(Lesson.order)).where(
        Lesson.course_id == course_id, Lesson.is_deleted.is_(False)
    )
    return await db.scalar(stmt) or 0


async def count_lessons_including_deleted(db: AsyncSession, course_id: UUID) -> int:
    stmt = select(func.count()).select_from(Lesson).where(Lesson.course_id == course_id)
    return await db.scalar(stmt) or 0
