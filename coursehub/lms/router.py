"""LMS router — HTTP layer only.

Defines the course lifecycle and lesson ordering endpoints.
Delegates to controller for business logic orchestration.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.config import Settings, get_settings
from coursehub.core.auth import CurrentUser
from coursehub.database import get_db
from coursehub.dependencies import get_current_user, get_redis, require_admin
from coursehub.lms import controller
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

courses_router = APIRouter(prefix="/courses", tags=["Courses"])
lessons_router = APIRouter(prefix="/lessons", tags=["Lessons"])


# ======================================================================
# Course endpoints
# ======================================================================


@courses_router.get(
    "/search",
    response_model=CourseSearchResponse,
    summary="Search courses",
    description="Case-insensitive title search over active courses, newest first. "
    "Unknown status values are ignored.",
)
async def search_courses(
    query: str | None = Query(None, description="Substring to match in the title."),
    status_filter: str | None = Query(None, alias="status", description="DRAFT or PUBLISHED."),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> CourseSearchResponse:
    return await controller.search_courses(
        db, query=query, status_filter=status_filter, page=page, page_size=page_size,
    )


@courses_router.get(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Get course",
)
async def get_course(
    course_id: UUID,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> CourseResponse:
    return await controller.get_course(db, course_id)


@courses_router.get(
    "/{course_id}/summary",
    response_model=CourseSummaryResponse,
    summary="Course summary",
    description="Course header plus its active lessons in ascending order.",
)
async def get_course_summary(
    course_id: UUID,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> CourseSummaryResponse:
    return await controller.get_course_summary(db, course_id)


@courses_router.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new course",
    description="New courses always start in DRAFT.",
)
async def create_course(
    body: CreateCourseRequest,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> CourseResponse:
    return await controller.create_course(db, body)


@courses_router.put(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Update course title",
)
async def update_course(
    course_id: UUID,
    body: UpdateCourseRequest,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> CourseResponse:
    return await controller.update_course(db, course_id, body)


@courses_router.patch(
    "/{course_id}/publish",
    response_model=CourseResponse,
    summary="Publish course",
    description="Requires at least one active lesson. Publishing twice is a no-op.",
)
async def publish_course(
    course_id: UUID,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> CourseResponse:
    return await controller.publish_course(db, course_id)


@courses_router.patch(
    "/{course_id}/unpublish",
    response_model=CourseResponse,
    summary="Unpublish course",
)
async def unpublish_course(
    course_id: UUID,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> CourseResponse:
    return await controller.unpublish_course(db, course_id)


@courses_router.delete(
    "/{course_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Soft-delete course",
    description="Hides the course. Its lessons are left as they are.",
)
async def delete_course(
    course_id: UUID,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> None:
    await controller.delete_course(db, course_id)


@courses_router.delete(
    "/{course_id}/hard",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Permanently delete course (admin)",
    description="Fails with 409 while any lesson row, deleted or not, still references the course.",
)
async def hard_delete_course(
    course_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> None:
    await controller.hard_delete_course(db, course_id)


# ======================================================================
# Lesson endpoints
# ======================================================================


@lessons_router.get(
    "/course/{course_id}",
    response_model=list[LessonResponse],
    summary="List course lessons",
    description="Active lessons of a course in ascending order. Served from cache when warm.",
)
async def list_course_lessons(
    course_id: UUID,
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    settings: Settings = Depends(get_settings),
    _user: CurrentUser = Depends(get_current_user),
) -> list[LessonResponse]:
    return await controller.list_course_lessons(db, redis, settings, course_id)


@lessons_router.get(
    "/{lesson_id}",
    response_model=LessonResponse,
    summary="Get lesson",
)
async def get_lesson(
    lesson_id: UUID,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> LessonResponse:
    return await controller.get_lesson(db, lesson_id)


@lessons_router.post(
    "",
    response_model=LessonResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create lesson",
    description="Appends after the last lesson when ``order`` is omitted.",
)
async def create_lesson(
    body: CreateLessonRequest,
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    _user: CurrentUser = Depends(get_current_user),
) -> LessonResponse:
    return await controller.create_lesson(db, redis, body)


@lessons_router.put(
    "/{lesson_id}",
    response_model=LessonResponse,
    summary="Update lesson",
)
async def update_lesson(
    lesson_id: UUID,
    body: UpdateLessonRequest,
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    _user: CurrentUser = Depends(get_current_user),
) -> LessonResponse:
    return await controller.update_lesson(db, redis, lesson_id, body)


@lessons_router.delete(
    "/{lesson_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Soft-delete lesson",
)
async def delete_lesson(
    lesson_id: UUID,
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    _user: CurrentUser = Depends(get_current_user),
) -> None:
    await controller.delete_lesson(db, redis, lesson_id)


@lessons_router.delete(
    "/{lesson_id}/hard",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Permanently delete lesson (admin)",
)
async def hard_delete_lesson(
    lesson_id: UUID,
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    _admin: CurrentUser = Depends(require_admin),
) -> None:
    await controller.hard_delete_lesson(db, redis, lesson_id)


@lessons_router.patch(
    "/{lesson_id}/move-up",
    response_model=LessonOrderResponse,
    summary="Move lesson up",
    description="Swaps orders with the nearest active lesson before it.",
)
async def move_lesson_up(
    lesson_id: UUID,
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    _user: CurrentUser = Depends(get_current_user),
) -> LessonOrderResponse:
    return await controller.move_lesson_up(db, redis, lesson_id)


@lessons_router.patch(
    "/{lesson_id}/move-down",
    response_model=LessonOrderResponse,
    summary="Move lesson down",
    description="Swaps orders with the nearest active lesson after it.",
)
async def move_lesson_down(
    lesson_id: UUID,
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    _user: CurrentUser = Depends(get_current_user),
) -> LessonOrderResponse:
    return await controller.move_lesson_down(db, redis, lesson_id)


@lessons_router.post(
    "/course/{course_id}/reorder",
    response_model=LessonOrderResponse,
    summary="Bulk reorder lessons",
    description="Applies every new order or none. Lessons not listed keep their order; "
    "the resulting orders must stay unique within the course.",
)
async def reorder_lessons(
    course_id: UUID,
    body: ReorderLessonsRequest,
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    _user: CurrentUser = Depends(get_current_user),
) -> LessonOrderResponse:
    return await controller.reorder_lessons(db, redis, course_id, body)
