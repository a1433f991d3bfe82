"""Lesson ordering rules — pure functions, no I/O.

Orders are positive integers, unique among a course's active lessons and
allowed to have gaps. Moves exchange order values between neighbours rather
than renumbering, so the set of orders in use never changes on a move.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from enum import Enum
from uuid import UUID

from coursehub.exceptions import (
    CannotMoveDownError,
    CannotMoveUpError,
    LessonNotFoundError,
    ValidationError,
)
from coursehub.models.lesson import Lesson

MAX_TITLE_LENGTH = 200


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


def validate_title(title: str | None) -> str:
    if title is None or not title.strip():
        raise ValidationError("title", "must not be empty")
    title = title.strip()
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError("title", f"must be at most {MAX_TITLE_LENGTH} characters")
    return title


def validate_order(order: int) -> int:
    if isinstance(order, bool) or not isinstance(order, int) or order <= 0:
        raise ValidationError("order", "must be greater than 0")
    return order


def sort_by_order(lessons: Iterable[Lesson]) -> list[Lesson]:
    return sorted(lessons, key=lambda l: l.order)


def find_neighbour(
    lessons: Sequence[Lesson],
    lesson_id: UUID,
    direction: Direction,
) -> tuple[Lesson, Lesson]:
    """Return ``(lesson, neighbour)`` for an adjacent swap.

    ``lessons`` must be the course's active lessons sorted ascending by order.
    """
    index = next((i for i, l in enumerate(lessons) if l.lesson_id == lesson_id), None)
    if index is None:
        raise LessonNotFoundError(str(lesson_id))

    if direction is Direction.UP:
        if index == 0:
            raise CannotMoveUpError(str(lesson_id))
        return lessons[index], lessons[index - 1]

    if index == len(lessons) - 1:
        raise CannotMoveDownError(str(lesson_id))
    return lessons[index], lessons[index + 1]


def swapped_orders(lesson: Lesson, neighbour: Lesson) -> list[tuple[Lesson, int]]:
    return [(lesson, neighbour.order), (neighbour, lesson.order)]


def duplicate_orders(final_orders: Iterable[int]) -> list[int]:
    """Orders that appear more than once, ascending."""
    counts = Counter(final_orders)
    return sorted(order for order, n in counts.items() if n > 1)


def final_course_orders(
    active_lessons: Iterable[Lesson],
    assignments: dict[UUID, int],
) -> list[int]:
    """The order of every active lesson once ``assignments`` are applied."""
    return [assignments.get(l.lesson_id, l.order) for l in active_lessons]
