"""LMS service — pure business logic, no FastAPI imports.

Handles course CRUD and the publish lifecycle, lesson CRUD, and the
lesson ordering engine (move up / move down / bulk reorder).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.database import transaction
from coursehub.exceptions import (
    CannotPublishError,
    CourseHasLessonsError,
    CourseNotFoundError,
    DuplicateOrderError,
    LessonCourseNotFoundError,
    LessonNotFoundError,
)
from coursehub.lms import ordering, repository
from coursehub.lms.ordering import Direction
from coursehub.models.course import Course, utcnow
from coursehub.models.enums import CourseStatus
from coursehub.models.lesson import Lesson
from coursehub.pagination import page_offset

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Course CRUD
# ---------------------------------------------------------------------------


async def create_course(db: AsyncSession, *, title: str) -> Course:
    course = Course(
        title=ordering.validate_title(title),
        status=CourseStatus.DRAFT,
        is_deleted=False,
    )
    db.add(course)
    await db.flush()
    logger.info("Course %s created", course.course_id)
    return course


async def get_course(db: AsyncSession, course_id: UUID) -> Course:
    """Fetch an active course together with all of its lesson rows."""
    course = await repository.get_course(db, course_id, with_lessons=True)
    if course is None:
        raise CourseNotFoundError(str(course_id))
    return course


async def search_courses(
    db: AsyncSession,
    *,
    query: str | None = None,
    status: str | None = None,
    page: int = 1,
    page_size: int = 10,
) -> tuple[list[Course], int]:
    # Unknown status strings are ignored rather than rejected
    status_filter: CourseStatus | None = None
    if status and status.strip():
        try:
            status_filter = CourseStatus(status.strip().upper())
        except ValueError:
            status_filter = None

    return await repository.search_courses(
        db,
        query=query.strip() if query else None,
        status=status_filter,
        limit=page_size,
        offset=page_offset(page, page_size),
    )


async def update_course(db: AsyncSession, course_id: UUID, *, title: str) -> Course:
    title = ordering.validate_title(title)
    course = await get_course(db, course_id)
    course.title = title
    course.updated_at = utcnow()
    await db.flush()
    return course


async def publish_course(db: AsyncSession, course_id: UUID) -> Course:
    course = await get_course(db, course_id)
    if not course.can_publish():
        raise CannotPublishError(str(course_id))
    course.publish()
    await db.flush()
    logger.info("Course %s published", course_id)
    return course


async def unpublish_course(db: AsyncSession, course_id: UUID) -> Course:
    course = await get_course(db, course_id)
    course.unpublish()
    await db.flush()
    logger.info("Course %s unpublished", course_id)
    return course


async def delete_course(db: AsyncSession, course_id: UUID) -> None:
    # Lessons are left untouched
    course = await repository.get_course(db, course_id)
    if course is None:
        raise CourseNotFoundError(str(course_id))
    course.soft_delete()
    await db.flush()
    logger.info("Course %s soft-deleted", course_id)


async def hard_delete_course(db: AsyncSession, course_id: UUID) -> None:
    course = await repository.get_course_including_deleted(db, course_id)
    if course is None:
        raise CourseNotFoundError(str(course_id))
    if await repository.count_lessons_including_deleted(db, course_id):
        raise CourseHasLessonsError(str(course_id))
    await db.delete(course)
    await db.flush()
    logger.info("Course %s permanently deleted", course_id)


# ---------------------------------------------------------------------------
# Lesson CRUD
# ---------------------------------------------------------------------------


async def create_lesson(
    db: AsyncSession,
    *,
    course_id: UUID,
    title: str,
    order: int | None = None,
) -> Lesson:
    """Create a lesson; without an explicit order it is appended after the last one."""
    title = ordering.validate_title(title)
    if order is not None:
        ordering.validate_order(order)

    async with transaction(db):
        if not await repository.course_exists(db, course_id):
            raise LessonCourseNotFoundError(str(course_id))
        if order is None:
            order = await repository.get_max_order(db, course_id) + 1
        elif not await repository.is_order_unique(db, course_id, order):
            raise DuplicateOrderError(str(course_id), order)

        lesson = Lesson(course_id=course_id, title=title, order=order, is_deleted=False)
        db.add(lesson)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise DuplicateOrderError(str(course_id), order) from exc

    logger.info("Lesson %s created in course %s at order %d", lesson.lesson_id, course_id, order)
    return lesson


async def get_lesson(db: AsyncSession, lesson_id: UUID) -> Lesson:
    lesson = await repository.get_lesson(db, lesson_id)
    if lesson is None:
        raise LessonNotFoundError(str(lesson_id))
    return lesson


async def list_course_lessons(db: AsyncSession, course_id: UUID) -> list[Lesson]:
    return await repository.get_lessons_by_course(db, course_id)


async def update_lesson(
    db: AsyncSession,
    lesson_id: UUID,
    *,
    title: str,
    order: int,
) -> Lesson:
    title = ordering.validate_title(title)
    ordering.validate_order(order)

    async with transaction(db):
        lesson = await get_lesson(db, lesson_id)
        if not await repository.is_order_unique(db, lesson.course_id, order, lesson_id):
            raise DuplicateOrderError(str(lesson.course_id), order)
        lesson.title = title
        lesson.order = order
        lesson.updated_at = utcnow()
        try:
            await db.flush()
        except IntegrityError as exc:
            raise DuplicateOrderError(str(lesson.course_id), order) from exc
    return lesson


async def delete_lesson(db: AsyncSession, lesson_id: UUID) -> Lesson:
    # Deleting the last active lesson does not unpublish the course
    async with transaction(db):
        lesson = await get_lesson(db, lesson_id)
        lesson.soft_delete()
        await db.flush()
    logger.info("Lesson %s soft-deleted", lesson_id)
    return lesson


async def hard_delete_lesson(db: AsyncSession, lesson_id: UUID) -> UUID:
    """Physically remove a lesson, soft-deleted or not. Returns its course id."""
    async with transaction(db):
        lesson = await repository.get_lesson_including_deleted(db, lesson_id)
        if lesson is None:
            raise LessonNotFoundError(str(lesson_id))
        course_id = lesson.course_id
        await db.delete(lesson)
        await db.flush()
    logger.info("Lesson %s permanently deleted", lesson_id)
    return course_id


# ---------------------------------------------------------------------------
# Ordering engine
# ---------------------------------------------------------------------------


async def _write_orders(
    db: AsyncSession,
    course_id: UUID,
    assignments: Sequence[tuple[Lesson, int]],
) -> None:
    # The active-order unique index is checked row by row, so touched rows are
    # parked on distinct negative orders before the final values go in.
    for parked, (lesson, _) in enumerate(assignments, start=1):
        lesson.order = -parked
    try:
        await db.flush()
        now = utcnow()
        for lesson, order in assignments:
            lesson.order = order
            lesson.updated_at = now
        await db.flush()
    except IntegrityError as exc:
        raise DuplicateOrderError(str(course_id)) from exc


async def _move_lesson(db: AsyncSession, lesson_id: UUID, direction: Direction) -> list[Lesson]:
    async with transaction(db):
        lesson = await repository.get_lesson(db, lesson_id)
        if lesson is None:
            raise LessonNotFoundError(str(lesson_id))
        course_id = lesson.course_id
        lessons = await repository.get_lessons_by_course(db, course_id, for_update=True)
        current, neighbour = ordering.find_neighbour(lessons, lesson_id, direction)
        await _write_orders(db, course_id, ordering.swapped_orders(current, neighbour))

    logger.info(
        "Lesson %s moved %s in course %s (swapped with %s)",
        lesson_id, direction.value, course_id, neighbour.lesson_id,
    )
    return ordering.sort_by_order(lessons)


async def move_lesson_up(db: AsyncSession, lesson_id: UUID) -> list[Lesson]:
    return await _move_lesson(db, lesson_id, Direction.UP)


async def move_lesson_down(db: AsyncSession, lesson_id: UUID) -> list[Lesson]:
    return await _move_lesson(db, lesson_id, Direction.DOWN)


async def reorder_lessons(
    db: AsyncSession,
    course_id: UUID,
    items: Sequence[tuple[UUID, int]],
) -> list[Lesson]:
    """Assign new orders to a batch of lessons, all or nothing.

    Every referenced lesson must be active and belong to ``course_id``. The
    resulting orders across all of the course's active lessons must stay
    pairwise distinct.
    """
    async with transaction(db):
        lessons = await repository.get_lessons_by_course(db, course_id, for_update=True)
        by_id = {l.lesson_id: l for l in lessons}

        staged: dict[UUID, tuple[Lesson, int]] = {}
        for lesson_id, new_order in items:
            lesson = by_id.get(lesson_id)
            if lesson is None:
                raise LessonNotFoundError(str(lesson_id))
            staged[lesson_id] = (lesson, ordering.validate_order(new_order))

        final = ordering.final_course_orders(
            lessons, {lesson_id: order for lesson_id, (_, order) in staged.items()}
        )
        collisions = ordering.duplicate_orders(final)
        if collisions:
            raise DuplicateOrderError(str(course_id), collisions[0])

        if staged:
            await _write_orders(db, course_id, list(staged.values()))

    logger.info("Reordered %d lessons in course %s", len(staged), course_id)
    return ordering.sort_by_order(lessons)
