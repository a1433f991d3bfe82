import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursehub.core.postgres import Base

from .course import utcnow


class Lesson(Base):
    __tablename__ = "lessons"

    lesson_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("courses.course_id", ondelete="RESTRICT"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    course = relationship("Course", back_populates="lessons", lazy="noload")

    __table_args__ = (
        Index("ix_lessons_course_id", "course_id"),
        Index("ix_lessons_is_deleted", "is_deleted"),
        # Active lessons hold pairwise-distinct orders within a course
        Index(
            "uq_lessons_course_order_active",
            "course_id",
            "order",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
    )

    def soft_delete(self) -> None:
        self.is_deleted = True

    def __repr__(self) -> str:
        return f"Lesson(lesson_id={self.lesson_id!r}, course_id={self.course_id!r}, order={self.order!r})"
