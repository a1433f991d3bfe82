import enum

from sqlalchemy import Enum as SAEnum


class CourseStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


# Shared SQLAlchemy Enum instance; native on PostgreSQL, VARCHAR + CHECK elsewhere
course_status_enum = SAEnum(CourseStatus, name="course_status", create_constraint=True)
