"""Academic reference data: departments, courses and lecturer unit assignments."""

from datetime import datetime

from beanie import Document, Indexed
from pymongo import ASCENDING, IndexModel


class Department(Document):
    department_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    name: str
    short_code: Indexed(str, unique=True)  # type: ignore[valid-type]
    description: str | None = None
    created_at: datetime
    updated_at: datetime

    class Settings:
        name = "departments"


class Course(Document):
    course_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    title: str
    short_code: Indexed(str, unique=True)  # type: ignore[valid-type]
    department_id: str | None = None
    created_at: datetime

    class Settings:
        name = "courses"


class LecturerUnit(Document):
    """Grants a lecturer the right to schedule live classes for a unit."""

    lecturer_id: str
    unit_id: str
    program_id: str | None = None
    created_at: datetime

    class Settings:
        name = "lecturer_units"
        indexes = [
            IndexModel(
                [("lecturer_id", ASCENDING), ("unit_id", ASCENDING)],
                unique=True,
                name="lecturer_unit_unique",
            ),
        ]
