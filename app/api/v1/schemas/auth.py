from datetime import datetime

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_serializer

from app.schemas import UserRole

from .serializers import serialize_utc_datetime


class RegisterStudentIn(BaseModel):
    name: str = Field(description="Full name")
    email: EmailStr
    password: str = Field(description="At least 6 characters")
    role: str = Field(default=UserRole.STUDENT.value, description="Must be 'student'")
    course_id: str | None = Field(default=None, description="Course the student enrols in")


class RegisterTeacherIn(BaseModel):
    name: str
    email: EmailStr
    password: str
    department_id: str = Field(description="Department the teacher belongs to")


class RegisterAdminIn(BaseModel):
    name: str
    email: EmailStr
    password: str


class RegistrationOut(BaseModel):
    user_id: str
    issued_id: str
    name: str
    email: str
    role: UserRole
    is_verified: bool
    message: str


class LoginIn(BaseModel):
    identifier: str = Field(
        validation_alias=AliasChoices("identifier", "email"),
        description="Email address or issued identifier (e.g. STU/GEN/2024/0001)",
    )
    password: str


class ProfileOut(BaseModel):
    user_id: str
    name: str
    email: str
    role: UserRole
    is_verified: bool
    issued_id: str | None = None
    course_id: str | None = None
    department_id: str | None = None
    national_id_number: str | None = None
    national_id_photo_url: str | None = None
    profile_photo_url: str | None = None
    created_at: datetime

    @field_serializer("created_at")
    @classmethod
    def serialize_datetime(cls, v: datetime) -> str:
        return serialize_utc_datetime(v)


class LoginOut(BaseModel):
    access_token: str
    refresh_token: str
    user: ProfileOut


class RefreshTokenIn(BaseModel):
    refresh_token: str = Field(validation_alias=AliasChoices("refresh_token", "refreshToken"))


class LogoutIn(BaseModel):
    refresh_token: str | None = Field(
        default=None, validation_alias=AliasChoices("refresh_token", "refreshToken")
    )


class AccessTokenOut(BaseModel):
    access_token: str


class ForgotPasswordIn(BaseModel):
    email: EmailStr


class ResetPasswordIn(BaseModel):
    token: str
    password: str = Field(description="New password, at least 6 characters")


class MessageOut(BaseModel):
    message: str


class UpdateProfileIn(BaseModel):
    name: str | None = None
    email: EmailStr | None = None
    password: str | None = None


class DepartmentBriefOut(BaseModel):
    department_id: str
    name: str
