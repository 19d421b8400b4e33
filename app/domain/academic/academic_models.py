"""Academic reference data models."""

from datetime import datetime

from pydantic import BaseModel, field_validator

from app.schemas import Course, Department, LecturerUnit
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


def _normalize_short_code(v: str) -> str:
    v = v.strip().upper()
    if not v or "/" in v:
        raise AppError(
            errcode=AppErrorCode.E_INVALID_REQUEST,
            errmesg="short_code must be non-empty and must not contain '/'",
            status_code=HttpStatusCode.BAD_REQUEST,
        )
    return v


class DepartmentCreateParams(BaseModel):
    name: str
    short_code: str
    description: str | None = None

    @field_validator("short_code")
    @classmethod
    def validate_short_code(cls, v: str) -> str:
        return _normalize_short_code(v)


class DepartmentUpdateParams(BaseModel):
    name: str | None = None
    short_code: str | None = None
    description: str | None = None

    @field_validator("short_code")
    @classmethod
    def validate_short_code(cls, v: str | None) -> str | None:
        return _normalize_short_code(v) if v is not None else v


class DepartmentResponse(BaseModel):
    department_id: str
    name: str
    short_code: str
    description: str | None = None
    created_at: datetime

    @classmethod
    def from_document(cls, doc: Department) -> "DepartmentResponse":
        return cls(
            department_id=doc.department_id,
            name=doc.name,
            short_code=doc.short_code,
            description=doc.description,
            created_at=doc.created_at,
        )


class CourseCreateParams(BaseModel):
    title: str
    short_code: str
    department_id: str | None = None

    @field_validator("short_code")
    @classmethod
    def validate_short_code(cls, v: str) -> str:
        return _normalize_short_code(v)


class CourseResponse(BaseModel):
    course_id: str
    title: str
    short_code: str
    department_id: str | None = None
    created_at: datetime

    @classmethod
    def from_document(cls, doc: Course) -> "CourseResponse":
        return cls(
            course_id=doc.course_id,
            title=doc.title,
            short_code=doc.short_code,
            department_id=doc.department_id,
            created_at=doc.created_at,
        )


class LecturerUnitResponse(BaseModel):
    lecturer_id: str
    unit_id: str
    program_id: str | None = None
    created_at: datetime

    @classmethod
    def from_document(cls, doc: LecturerUnit) -> "LecturerUnitResponse":
        return cls(
            lecturer_id=doc.lecturer_id,
            unit_id=doc.unit_id,
            program_id=doc.program_id,
            created_at=doc.created_at,
        )
