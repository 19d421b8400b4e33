"""User account ODM schemas."""

from datetime import datetime
from enum import Enum
from typing import Any

from beanie import Document, Indexed
from pydantic import field_validator

from .schema_utils import parse_mongo_datetime


class UserRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    LECTURER = "lecturer"
    ADMIN = "admin"

    @classmethod
    def teaching_roles(cls) -> set["UserRole"]:
        return {cls.TEACHER, cls.LECTURER}


class User(Document):
    """Login account shared by every role; role specific data lives in *Details."""

    user_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    name: str
    email: Indexed(str, unique=True)  # type: ignore[valid-type]
    password_hash: str
    role: UserRole

    is_verified: bool = False
    verification_token: str | None = None
    verification_token_expires: datetime | None = None

    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at", "verification_token_expires", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    class Settings:
        name = "users"
        indexes = [
            "verification_token",
        ]


class StudentDetails(Document):
    user_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    student_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    course_id: str | None = None
    created_at: datetime

    class Settings:
        name = "student_details"


class TeacherDetails(Document):
    user_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    teacher_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    department_id: str
    national_id_number: str | None = None
    national_id_photo_url: str | None = None
    profile_photo_url: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    class Settings:
        name = "teacher_details"


class AdminDetails(Document):
    user_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    admin_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    created_at: datetime

    class Settings:
        name = "admin_details"


class RefreshToken(Document):
    """Issued refresh tokens; a token is valid only while its row exists."""

    token: Indexed(str, unique=True)  # type: ignore[valid-type]
    user_id: Indexed(str)  # type: ignore[valid-type]
    expires_at: datetime
    created_at: datetime

    class Settings:
        name = "refresh_tokens"
