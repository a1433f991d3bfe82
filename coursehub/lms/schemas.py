"""LMS domain Pydantic V2 schemas.

Covers Course, Lesson, and the ordering operations.
Follows RORO: separate request models from response models.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from coursehub.models.enums import CourseStatus
from coursehub.pagination import Page


# ---------------------------------------------------------------------------
# Course request schemas
# ---------------------------------------------------------------------------


class CreateCourseRequest(BaseModel):
    """Request body for creating a new course. Courses start in DRAFT."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200, description="Course title.")


class UpdateCourseRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200, description="Course title.")


# ---------------------------------------------------------------------------
# Lesson request schemas
# ---------------------------------------------------------------------------


class CreateLessonRequest(BaseModel):
    """Request body for adding a lesson to a course.

    ``order`` must be unique among the course's active lessons. When omitted,
    the lesson is appended after the current last lesson.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    course_id: UUID = Field(description="Parent course.")
    title: str = Field(min_length=1, max_length=200, description="Lesson title.")
    order: int | None = Field(
        default=None,
        gt=0,
        description="Position within the course (positive, gaps allowed).",
    )


class UpdateLessonRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200, description="Lesson title.")
    order: int = Field(gt=0, description="Position within the course.")


class ReorderLessonItem(BaseModel):
    lesson_id: UUID
    new_order: int = Field(gt=0, description="New position for this lesson.")


class ReorderLessonsRequest(BaseModel):
    """Batch of new positions, applied atomically."""

    items: list[ReorderLessonItem] = Field(
        description="Lessons to reposition. All must belong to the course.",
    )


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LessonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lesson_id: UUID
    course_id: UUID
    title: str
    order: int
    created_at: datetime
    updated_at: datetime


class LessonOrderResponse(BaseModel):
    """Active lessons of a course, in order, after an ordering operation."""

    course_id: UUID
    lessons: list[LessonResponse]


class CourseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    course_id: UUID
    title: str
    status: CourseStatus
    lesson_count: int = Field(description="Number of active lessons.")
    created_at: datetime
    updated_at: datetime


class CourseSummaryResponse(BaseModel):
    course_id: UUID
    title: str
    status: CourseStatus
    total_lessons: int
    last_modified: datetime
    lessons: list[LessonResponse]


CourseSearchResponse = Page[CourseResponse]
