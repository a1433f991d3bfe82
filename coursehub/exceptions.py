"""Domain exception classes for the course service.

These are raised by service-layer code and caught by controllers
to map to appropriate HTTP responses. Every class carries a stable
``code`` that ends up in the error envelope.
"""


class DomainError(Exception):
    code = "domain_error"


class CourseNotFoundError(DomainError):
    """Raised when a course cannot be found by ID (or is soft-deleted)."""

    code = "course_not_found"

    def __init__(self, course_id: str = ""):
        self.course_id = course_id
        super().__init__(f"Course not found: {course_id}")


class LessonCourseNotFoundError(CourseNotFoundError):
    """Raised when a lesson is created under a course that does not exist."""

    code = "lesson_course_not_found"

    def __init__(self, course_id: str = ""):
        self.course_id = course_id
        DomainError.__init__(self, f"Parent course not found: {course_id}")


class LessonNotFoundError(DomainError):
    code = "lesson_not_found"

    def __init__(self, lesson_id: str = ""):
        self.lesson_id = lesson_id
        super().__init__(f"Lesson not found: {lesson_id}")


class ValidationError(DomainError):
    """Raised when title/order data reaches the service in an invalid shape."""

    code = "validation_error"

    def __init__(self, field: str, detail: str):
        self.field = field
        self.detail = detail
        super().__init__(f"{field}: {detail}")


class DuplicateOrderError(DomainError):
    """Raised when an order collides with another active lesson in the course."""

    code = "duplicate_order"

    def __init__(self, course_id: str = "", order: int | None = None):
        self.course_id = course_id
        self.order = order
        if order is None:
            super().__init__(f"Duplicate lesson order in course {course_id}")
        else:
            super().__init__(f"Order {order} is already taken in course {course_id}")


class CannotPublishError(DomainError):
    """Raised when publishing a course without any active lessons."""

    code = "cannot_publish"

    def __init__(self, course_id: str = ""):
        self.course_id = course_id
        super().__init__(f"Course {course_id} has no active lessons")


class CannotMoveUpError(DomainError):
    code = "cannot_move_up"

    def __init__(self, lesson_id: str = ""):
        self.lesson_id = lesson_id
        super().__init__(f"Lesson {lesson_id} is already first")


class CannotMoveDownError(DomainError):
    code = "cannot_move_down"

    def __init__(self, lesson_id: str = ""):
        self.lesson_id = lesson_id
        super().__init__(f"Lesson {lesson_id} is already last")


class CourseHasLessonsError(DomainError):
    """Raised when hard-deleting a course that still owns lesson rows."""

    code = "course_has_lessons"

    def __init__(self, course_id: str = ""):
        self.course_id = course_id
        super().__init__(f"Course {course_id} still has lessons")
