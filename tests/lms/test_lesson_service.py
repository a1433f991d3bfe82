import asyncio
from unittest.mock import patch
from uuid import UUID, uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.exceptions import (
    CannotMoveDownError,
    CannotMoveUpError,
    DuplicateOrderError,
    LessonCourseNotFoundError,
    LessonNotFoundError,
    ValidationError,
)
from coursehub.lms import repository, service
from coursehub.models.course import Course
from coursehub.models.lesson import Lesson


async def _course_with_lessons(db: AsyncSession, *orders: int) -> tuple[Course, list[Lesson]]:
    course = await service.create_course(db, title="Intro to X")
    lessons = []
    for order in orders:
        lessons.append(
            await service.create_lesson(db, course_id=course.course_id, title=f"L{order}", order=order)
        )
    await db.commit()
    return course, lessons


async def _orders(db: AsyncSession, course_id: UUID) -> dict[UUID, int]:
    """Active lesson orders read straight from the table."""
    rows = await db.execute(
        select(Lesson.lesson_id, Lesson.order).where(
            Lesson.course_id == course_id, Lesson.is_deleted.is_(False)
        )
    )
    return {lesson_id: order for lesson_id, order in rows.all()}


# ---------------------------------------------------------------------------
# Create / update / delete
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_lesson(db_session: AsyncSession) -> None:
    course, (lesson,) = await _course_with_lessons(db_session, 1)
    assert lesson.course_id == course.course_id
    assert lesson.title == "L1"
    assert lesson.order == 1
    assert lesson.is_deleted is False


@pytest.mark.asyncio
async def test_create_lesson_appends_without_order(db_session: AsyncSession) -> None:
    course, _ = await _course_with_lessons(db_session, 2, 7)
    lesson = await service.create_lesson(db_session, course_id=course.course_id, title="Next")
    assert lesson.order == 8


@pytest.mark.asyncio
async def test_create_first_lesson_without_order(db_session: AsyncSession) -> None:
    course, _ = await _course_with_lessons(db_session)
    lesson = await service.create_lesson(db_session, course_id=course.course_id, title="First")
    assert lesson.order == 1


@pytest.mark.asyncio
async def test_create_lesson_duplicate_order_persists_nothing(db_session: AsyncSession) -> None:
    course, (existing,) = await _course_with_lessons(db_session, 5)
    course_id, existing_id = course.course_id, existing.lesson_id

    with pytest.raises(DuplicateOrderError) as exc_info:
        await service.create_lesson(db_session, course_id=course_id, title="Clash", order=5)
    assert exc_info.value.order == 5

    assert await _orders(db_session, course_id) == {existing_id: 5}


@pytest.mark.asyncio
async def test_create_lesson_reuses_order_of_deleted_lesson(db_session: AsyncSession) -> None:
    course, (old,) = await _course_with_lessons(db_session, 3)
    await service.delete_lesson(db_session, old.lesson_id)

    lesson = await service.create_lesson(db_session, course_id=course.course_id, title="New", order=3)
    assert lesson.order == 3


@pytest.mark.asyncio
async def test_create_lesson_unknown_course(db_session: AsyncSession) -> None:
    with pytest.raises(LessonCourseNotFoundError):
        await service.create_lesson(db_session, course_id=uuid4(), title="Orphan", order=1)


@pytest.mark.asyncio
async def test_create_lesson_in_deleted_course(db_session: AsyncSession) -> None:
    course, _ = await _course_with_lessons(db_session)
    await service.delete_course(db_session, course.course_id)
    await db_session.commit()

    with pytest.raises(LessonCourseNotFoundError):
        await service.create_lesson(db_session, course_id=course.course_id, title="Late", order=1)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("title", "order", "field"),
    [("", 1, "title"), ("x" * 201, 1, "title"), ("Fine", 0, "order"), ("Fine", -4, "order")],
)
async def test_create_lesson_validation(db_session: AsyncSession, title, order, field) -> None:
    # Validation runs before the course lookup
    with pytest.raises(ValidationError) as exc_info:
        await service.create_lesson(db_session, course_id=uuid4(), title=title, order=order)
    assert exc_info.value.field == field


@pytest.mark.asyncio
async def test_update_lesson_keeps_own_order(db_session: AsyncSession) -> None:
    _, (a, _) = await _course_with_lessons(db_session, 1, 2)
    updated = await service.update_lesson(db_session, a.lesson_id, title="Renamed", order=1)
    assert updated.title == "Renamed"
    assert updated.order == 1


@pytest.mark.asyncio
async def test_update_lesson_order_collision(db_session: AsyncSession) -> None:
    course, (a, b) = await _course_with_lessons(db_session, 1, 2)
    course_id, a_id, b_id = course.course_id, a.lesson_id, b.lesson_id

    with pytest.raises(DuplicateOrderError):
        await service.update_lesson(db_session, a_id, title="A", order=2)
    assert await _orders(db_session, course_id) == {a_id: 1, b_id: 2}


@pytest.mark.asyncio
async def test_update_deleted_lesson_not_found(db_session: AsyncSession) -> None:
    _, (a,) = await _course_with_lessons(db_session, 1)
    await service.delete_lesson(db_session, a.lesson_id)
    with pytest.raises(LessonNotFoundError):
        await service.update_lesson(db_session, a.lesson_id, title="A", order=1)


@pytest.mark.asyncio
async def test_delete_lesson_hides_it(db_session: AsyncSession) -> None:
    course, (a, b) = await _course_with_lessons(db_session, 1, 2)
    await service.delete_lesson(db_session, a.lesson_id)

    with pytest.raises(LessonNotFoundError):
        await service.get_lesson(db_session, a.lesson_id)
    remaining = await service.list_course_lessons(db_session, course.course_id)
    assert [l.lesson_id for l in remaining] == [b.lesson_id]
    assert (await repository.get_lesson_including_deleted(db_session, a.lesson_id)).is_deleted


@pytest.mark.asyncio
async def test_hard_delete_lesson_removes_row(db_session: AsyncSession) -> None:
    course, (a,) = await _course_with_lessons(db_session, 1)
    await service.delete_lesson(db_session, a.lesson_id)

    course_id = await service.hard_delete_lesson(db_session, a.lesson_id)
    assert course_id == course.course_id
    assert await repository.get_lesson_including_deleted(db_session, a.lesson_id) is None

    with pytest.raises(LessonNotFoundError):
        await service.hard_delete_lesson(db_session, a.lesson_id)


@pytest.mark.asyncio
async def test_list_course_lessons_sorted(db_session: AsyncSession) -> None:
    course, _ = await _course_with_lessons(db_session, 30, 10, 20)
    lessons = await service.list_course_lessons(db_session, course.course_id)
    assert [l.order for l in lessons] == [10, 20, 30]


# ---------------------------------------------------------------------------
# Order uniqueness gate
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_is_order_unique(db_session: AsyncSession) -> None:
    course, (a, b) = await _course_with_lessons(db_session, 1, 2)

    assert await repository.is_order_unique(db_session, course.course_id, 3)
    assert not await repository.is_order_unique(db_session, course.course_id, 2)
    assert not await repository.is_order_unique(db_session, course.course_id, 2, a.lesson_id)
    assert await repository.is_order_unique(db_session, course.course_id, 2, b.lesson_id)


@pytest.mark.asyncio
async def test_is_order_unique_ignores_deleted_and_other_courses(db_session: AsyncSession) -> None:
    course, (a,) = await _course_with_lessons(db_session, 1)
    other, _ = await _course_with_lessons(db_session, 4)
    await service.delete_lesson(db_session, a.lesson_id)

    assert await repository.is_order_unique(db_session, course.course_id, 1)
    assert await repository.is_order_unique(db_session, course.course_id, 4)
    assert not await repository.is_order_unique(db_session, other.course_id, 4)


@pytest.mark.asyncio
async def test_write_orders_rejected_by_unique_index(db_session: AsyncSession) -> None:
    course, (a, b) = await _course_with_lessons(db_session, 1, 2)
    with pytest.raises(DuplicateOrderError):
        await service._write_orders(db_session, course.course_id, [(b, 1)])
    await db_session.rollback()


# ---------------------------------------------------------------------------
# Move up / move down
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_move_up_swaps_with_previous(db_session: AsyncSession) -> None:
    course, (a, b, c) = await _course_with_lessons(db_session, 1, 2, 3)

    lessons = await service.move_lesson_up(db_session, b.lesson_id)

    assert [l.lesson_id for l in lessons] == [b.lesson_id, a.lesson_id, c.lesson_id]
    assert await _orders(db_session, course.course_id) == {
        a.lesson_id: 2,
        b.lesson_id: 1,
        c.lesson_id: 3,
    }


@pytest.mark.asyncio
async def test_move_down_swaps_with_next_across_gap(db_session: AsyncSession) -> None:
    course, (a, b, c) = await _course_with_lessons(db_session, 10, 20, 50)

    await service.move_lesson_down(db_session, b.lesson_id)

    assert await _orders(db_session, course.course_id) == {
        a.lesson_id: 10,
        b.lesson_id: 50,
        c.lesson_id: 20,
    }


@pytest.mark.asyncio
async def test_move_skips_deleted_neighbour(db_session: AsyncSession) -> None:
    course, (a, b, c) = await _course_with_lessons(db_session, 1, 2, 3)
    await service.delete_lesson(db_session, b.lesson_id)

    await service.move_lesson_up(db_session, c.lesson_id)

    assert await _orders(db_session, course.course_id) == {a.lesson_id: 3, c.lesson_id: 1}


@pytest.mark.asyncio
async def test_move_at_edges(db_session: AsyncSession) -> None:
    course, (a, b, c) = await _course_with_lessons(db_session, 1, 2, 3)
    course_id, first_id, last_id = course.course_id, a.lesson_id, c.lesson_id
    before = {first_id: 1, b.lesson_id: 2, last_id: 3}

    with pytest.raises(CannotMoveUpError):
        await service.move_lesson_up(db_session, first_id)
    with pytest.raises(CannotMoveDownError):
        await service.move_lesson_down(db_session, last_id)

    assert await _orders(db_session, course_id) == before


@pytest.mark.asyncio
async def test_move_unknown_or_deleted_lesson(db_session: AsyncSession) -> None:
    _, (a, b) = await _course_with_lessons(db_session, 1, 2)
    deleted_id = b.lesson_id
    await service.delete_lesson(db_session, deleted_id)

    with pytest.raises(LessonNotFoundError):
        await service.move_lesson_up(db_session, uuid4())
    with pytest.raises(LessonNotFoundError):
        await service.move_lesson_up(db_session, deleted_id)


@pytest.mark.asyncio
async def test_move_up_then_down_restores_orders(db_session: AsyncSession) -> None:
    course, (a, b, c) = await _course_with_lessons(db_session, 1, 2, 3)
    before = await _orders(db_session, course.course_id)

    await service.move_lesson_up(db_session, c.lesson_id)
    await service.move_lesson_down(db_session, c.lesson_id)

    assert await _orders(db_session, course.course_id) == before


# ---------------------------------------------------------------------------
# Bulk reorder
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_reorder_full_permutation(db_session: AsyncSession) -> None:
    course, (a, b, c) = await _course_with_lessons(db_session, 1, 2, 3)

    lessons = await service.reorder_lessons(
        db_session,
        course.course_id,
        [(a.lesson_id, 3), (b.lesson_id, 1), (c.lesson_id, 2)],
    )

    assert [l.lesson_id for l in lessons] == [b.lesson_id, c.lesson_id, a.lesson_id]
    assert await _orders(db_session, course.course_id) == {
        a.lesson_id: 3,
        b.lesson_id: 1,
        c.lesson_id: 2,
    }


@pytest.mark.asyncio
async def test_reorder_partial_batch_keeps_others(db_session: AsyncSession) -> None:
    course, (a, b, c) = await _course_with_lessons(db_session, 1, 2, 3)

    await service.reorder_lessons(db_session, course.course_id, [(a.lesson_id, 10)])

    assert await _orders(db_session, course.course_id) == {
        a.lesson_id: 10,
        b.lesson_id: 2,
        c.lesson_id: 3,
    }


@pytest.mark.asyncio
async def test_reorder_foreign_lesson_is_all_or_nothing(db_session: AsyncSession) -> None:
    course, (a, b) = await _course_with_lessons(db_session, 1, 2)
    _, (foreign,) = await _course_with_lessons(db_session, 1)
    course_id, a_id, b_id, foreign_id = course.course_id, a.lesson_id, b.lesson_id, foreign.lesson_id

    with pytest.raises(LessonNotFoundError):
        await service.reorder_lessons(
            db_session,
            course_id,
            [(a_id, 2), (b_id, 1), (foreign_id, 3)],
        )

    assert await _orders(db_session, course_id) == {a_id: 1, b_id: 2}


@pytest.mark.asyncio
async def test_reorder_collision_with_unlisted_lesson(db_session: AsyncSession) -> None:
    course, (a, b, c) = await _course_with_lessons(db_session, 1, 2, 3)
    course_id = course.course_id
    before = {a.lesson_id: 1, b.lesson_id: 2, c.lesson_id: 3}

    with pytest.raises(DuplicateOrderError) as exc_info:
        await service.reorder_lessons(db_session, course_id, [(a.lesson_id, 3)])
    assert exc_info.value.order == 3

    assert await _orders(db_session, course_id) == before


@pytest.mark.asyncio
async def test_reorder_duplicate_targets_in_batch(db_session: AsyncSession) -> None:
    course, (a, b) = await _course_with_lessons(db_session, 1, 2)
    with pytest.raises(DuplicateOrderError):
        await service.reorder_lessons(
            db_session, course.course_id, [(a.lesson_id, 5), (b.lesson_id, 5)]
        )


@pytest.mark.asyncio
async def test_reorder_invalid_order(db_session: AsyncSession) -> None:
    course, (a,) = await _course_with_lessons(db_session, 1)
    with pytest.raises(ValidationError):
        await service.reorder_lessons(db_session, course.course_id, [(a.lesson_id, 0)])


@pytest.mark.asyncio
async def test_reorder_empty_batch_is_noop(db_session: AsyncSession) -> None:
    course, (a, b) = await _course_with_lessons(db_session, 1, 2)
    lessons = await service.reorder_lessons(db_session, course.course_id, [])
    assert [l.order for l in lessons] == [1, 2]


@pytest.mark.asyncio
async def test_reorder_cancelled_mid_write_rolls_back(db_session: AsyncSession) -> None:
    course, (a, b, c) = await _course_with_lessons(db_session, 1, 2, 3)
    course_id = course.course_id
    before = {a.lesson_id: 1, b.lesson_id: 2, c.lesson_id: 3}
    items = [(a.lesson_id, 3), (b.lesson_id, 1), (c.lesson_id, 2)]
    write_orders = service._write_orders

    async def write_then_cancel(*args, **kwargs):
        await write_orders(*args, **kwargs)
        raise asyncio.CancelledError

    with patch.object(service, "_write_orders", write_then_cancel):
        with pytest.raises(asyncio.CancelledError):
            await service.reorder_lessons(db_session, course_id, items)

    assert await _orders(db_session, course_id) == before
