# Import all models so create_all() can discover them via Base.metadata
from .course import Course
from .lesson import Lesson

__all__ = [
    "Course",
    "Lesson",
]
