"""LMS controller — maps service results to HTTP responses, catches domain exceptions."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.config import Settings
from coursehub.exceptions import (
    CannotMoveDownError,
    CannotMoveUpError,
    CannotPublishError,
    CourseHasLessonsError,
    CourseNotFoundError,
    DomainError,
    DuplicateOrderError,
    LessonNotFoundError,
    ValidationError,
)
from coursehub.lms import cache, service
from coursehub.lms.schemas import (
    CourseResponse,
    CourseSearchResponse,
    CourseSummaryResponse,
    CreateCourseRequest,
    CreateLessonRequest,
    LessonOrderResponse,
    LessonResponse,
    ReorderLessonsRequest,
    UpdateCourseRequest,
    UpdateLessonRequest,
)
from coursehub.models.lesson import Lesson

_STATUS_BY_ERROR: list[tuple[type[DomainError], int]] = [
    (CourseNotFoundError, status.HTTP_404_NOT_FOUND),
    (LessonNotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (DuplicateOrderError, status.HTTP_400_BAD_REQUEST),
    (CannotPublishError, status.HTTP_400_BAD_REQUEST),
    (CannotMoveUpError, status.HTTP_400_BAD_REQUEST),
    (CannotMoveDownError, status.HTTP_400_BAD_REQUEST),
    (CourseHasLessonsError, status.HTTP_409_CONFLICT),
]


def _handle_domain_error(exc: DomainError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(
                status_code=status_code,
                detail={"code": exc.code, "message": str(exc)},
            )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": "internal_error", "message": "Internal error."},
    )


def _lesson_payload(lessons: list[Lesson]) -> list[LessonResponse]:
    return [LessonResponse.model_validate(l) for l in lessons]


def _order_response(course_id: UUID, lessons: list[Lesson]) -> LessonOrderResponse:
    return LessonOrderResponse(course_id=course_id, lessons=_lesson_payload(lessons))


# ---------------------------------------------------------------------------
# Course
# ---------------------------------------------------------------------------


async def create_course(db: AsyncSession, body: CreateCourseRequest) -> CourseResponse:
    try:
        course = await service.create_course(db, title=body.title)
        return CourseResponse.model_validate(course)
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc


async def get_course(db: AsyncSession, course_id: UUID) -> CourseResponse:
    try:
        course = await service.get_course(db, course_id)
        return CourseResponse.model_validate(course)
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc


async def get_course_summary(db: AsyncSession, course_id: UUID) -> CourseSummaryResponse:
    try:
        course = await service.get_course(db, course_id)
        lessons = course.active_lessons
        return CourseSummaryResponse(
            course_id=course.course_id,
            title=course.title,
            status=course.status,
            total_lessons=len(lessons),
            last_modified=course.updated_at,
            lessons=_lesson_payload(lessons),
        )
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc


async def search_courses(
    db: AsyncSession,
    *,
    query: str | None,
    status_filter: str | None,
    page: int,
    page_size: int,
) -> CourseSearchResponse:
    courses, total = await service.search_courses(
        db, query=query, status=status_filter, page=page, page_size=page_size,
    )
    return CourseSearchResponse(
        items=[CourseResponse.model_validate(c) for c in courses],
        page=page,
        page_size=page_size,
        total=total,
    )


async def update_course(
    db: AsyncSession,
    course_id: UUID,
    body: UpdateCourseRequest,
) -> CourseResponse:
    try:
        course = await service.update_course(db, course_id, title=body.title)
        return CourseResponse.model_validate(course)
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc


async def publish_course(db: AsyncSession, course_id: UUID) -> CourseResponse:
    try:
        course = await service.publish_course(db, course_id)
        return CourseResponse.model_validate(course)
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc


async def unpublish_course(db: AsyncSession, course_id: UUID) -> CourseResponse:
    try:
        course = await service.unpublish_course(db, course_id)
        return CourseResponse.model_validate(course)
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc


async def delete_course(db: AsyncSession, course_id: UUID) -> None:
    try:
        await service.delete_course(db, course_id)
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc


async def hard_delete_course(db: AsyncSession, course_id: UUID) -> None:
    try:
        await service.hard_delete_course(db, course_id)
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc


# ---------------------------------------------------------------------------
# Lesson
# ---------------------------------------------------------------------------


async def list_course_lessons(
    db: AsyncSession,
    redis: Redis | None,
    settings: Settings,
    course_id: UUID,
) -> list[LessonResponse]:
    cached = await cache.get_course_lessons(course_id, redis)
    if cached is not None:
        return [LessonResponse.model_validate(item) for item in cached]

    lessons = _lesson_payload(await service.list_course_lessons(db, course_id))
    await cache.set_course_lessons(
        course_id,
        [l.model_dump(mode="json") for l in lessons],
        settings.lesson_cache_ttl_secs,
        redis,
    )
    return lessons


async def get_lesson(db: AsyncSession, lesson_id: UUID) -> LessonResponse:
    try:
        lesson = await service.get_lesson(db, lesson_id)
        return LessonResponse.model_validate(lesson)
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc


async def create_lesson(
    db: AsyncSession,
    redis: Redis | None,
    body: CreateLessonRequest,
) -> LessonResponse:
    try:
        lesson = await service.create_lesson(
            db, course_id=body.course_id, title=body.title, order=body.order,
        )
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc
    await cache.invalidate_course_lessons(lesson.course_id, redis)
    return LessonResponse.model_validate(lesson)


async def update_lesson(
    db: AsyncSession,
    redis: Redis | None,
    lesson_id: UUID,
    body: UpdateLessonRequest,
) -> LessonResponse:
    try:
        lesson = await service.update_lesson(db, lesson_id, title=body.title, order=body.order)
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc
    await cache.invalidate_course_lessons(lesson.course_id, redis)
    return LessonResponse.model_validate(lesson)


async def delete_lesson(db: AsyncSession, redis: Redis | None, lesson_id: UUID) -> None:
    try:
        lesson = await service.delete_lesson(db, lesson_id)
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc
    await cache.invalidate_course_lessons(lesson.course_id, redis)


async def hard_delete_lesson(db: AsyncSession, redis: Redis | None, lesson_id: UUID) -> None:
    try:
        course_id = await service.hard_delete_lesson(db, lesson_id)
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc
    await cache.invalidate_course_lessons(course_id, redis)


async def move_lesson_up(
    db: AsyncSession,
    redis: Redis | None,
    lesson_id: UUID,
) -> LessonOrderResponse:
    try:
        lessons = await service.move_lesson_up(db, lesson_id)
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc
    course_id = lessons[0].course_id
    await cache.invalidate_course_lessons(course_id, redis)
    return _order_response(course_id, lessons)


async def move_lesson_down(
    db: AsyncSession,
    redis: Redis | None,
    lesson_id: UUID,
) -> LessonOrderResponse:
    try:
        lessons = await service.move_lesson_down(db, lesson_id)
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc
    course_id = lessons[0].course_id
    await cache.invalidate_course_lessons(course_id, redis)
    return _order_response(course_id, lessons)


async def reorder_lessons(
    db: AsyncSession,
    redis: Redis | None,
    course_id: UUID,
    body: ReorderLessonsRequest,
) -> LessonOrderResponse:
    try:
        lessons = await service.reorder_lessons(
            db, course_id, [(item.lesson_id, item.new_order) for item in body.items],
        )
    except DomainError as exc:
        raise _handle_domain_error(exc) from exc
    await cache.invalidate_course_lessons(course_id, redis)
    return _order_response(course_id, lessons)
