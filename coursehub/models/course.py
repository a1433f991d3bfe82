import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursehub.core.postgres import Base

from .enums import CourseStatus, course_status_enum

if TYPE_CHECKING:
    from .lesson import Lesson


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Course(Base):
    __tablename__ = "courses"

    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[CourseStatus] = mapped_column(
        course_status_enum, nullable=False, default=CourseStatus.DRAFT
    )
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    # Never lazy-loaded: publish checks must go through the with-lessons fetch.
    # passive_deletes="all" leaves lesson rows alone so the RESTRICT FK decides.
    lessons = relationship(
        "Lesson", back_populates="course", lazy="noload", passive_deletes="all"
    )

    __table_args__ = (
        Index("ix_courses_status", "status"),
        Index("ix_courses_is_deleted", "is_deleted"),
        Index("ix_courses_created_at", "created_at"),
    )

    @property
    def active_lessons(self) -> list["Lesson"]:
        """Loaded, non-deleted lessons in ascending order."""
        return sorted((l for l in self.lessons if not l.is_deleted), key=lambda l: l.order)

    @property
    def lesson_count(self) -> int:
        return sum(1 for l in self.lessons if not l.is_deleted)

    def can_publish(self) -> bool:
        return any(not l.is_deleted for l in self.lessons)

    def publish(self) -> None:
        # Silent no-op without an active lesson; the service reports CannotPublish.
        if self.can_publish():
            self.status = CourseStatus.PUBLISHED

    def unpublish(self) -> None:
        self.status = CourseStatus.DRAFT

    def soft_delete(self) -> None:
        self.is_deleted = True

    def __repr__(self) -> str:
        return f"Course(course_id={self.course_id!r}, title={self.title!r}, status={self.status!r})"
