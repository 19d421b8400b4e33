from datetime import datetime

from pydantic import BaseModel, Field, field_serializer

from .serializers import serialize_utc_datetime


class CreateDepartmentIn(BaseModel):
    name: str
    short_code: str = Field(description="Code used in teacher identifiers, e.g. CS")
    description: str | None = None


class UpdateDepartmentIn(BaseModel):
    name: str | None = None
    short_code: str | None = None
    description: str | None = None


class DepartmentOut(BaseModel):
    department_id: str
    name: str
    short_code: str
    description: str | None = None
    created_at: datetime

    @field_serializer("created_at")
    @classmethod
    def serialize_datetime(cls, v: datetime) -> str:
        return serialize_utc_datetime(v)


class CreateCourseIn(BaseModel):
    title: str
    short_code: str = Field(description="Code used in student identifiers, e.g. BIT")
    department_id: str | None = None


class CourseOut(BaseModel):
    course_id: str
    title: str
    short_code: str
    department_id: str | None = None
    created_at: datetime

    @field_serializer("created_at")
    @classmethod
    def serialize_datetime(cls, v: datetime) -> str:
        return serialize_utc_datetime(v)


class AssignUnitIn(BaseModel):
    lecturer_id: str
    unit_id: str
    program_id: str | None = None


class LecturerUnitOut(BaseModel):
    lecturer_id: str
    unit_id: str
    program_id: str | None = None
    created_at: datetime

    @field_serializer("created_at")
    @classmethod
    def serialize_datetime(cls, v: datetime) -> str:
        return serialize_utc_datetime(v)
