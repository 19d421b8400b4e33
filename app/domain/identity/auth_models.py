"""Identity domain models."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, field_validator

from app.schemas import UserRole
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

MIN_PASSWORD_LENGTH = 6


def validate_password_length(v: str) -> str:
    if len(v) < MIN_PASSWORD_LENGTH:
        raise AppError(
            errcode=AppErrorCode.E_INVALID_REQUEST,
            errmesg=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            status_code=HttpStatusCode.BAD_REQUEST,
        )
    return v


class _RegisterBase(BaseModel):
    name: str
    email: EmailStr
    password: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Name is required",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return validate_password_length(v)


class StudentRegisterParams(_RegisterBase):
    course_id: str | None = None


class TeacherRegisterParams(_RegisterBase):
    department_id: str


class AdminRegisterParams(_RegisterBase):
    pass


class RegistrationResult(BaseModel):
    user_id: str
    issued_id: str
    name: str
    email: str
    role: UserRole
    is_verified: bool


class UserProfile(BaseModel):
    """Account merged with its role details; never carries the password hash."""

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


class LoginResult(BaseModel):
    access_token: str
    refresh_token: str
    user: UserProfile


class VerifyEmailResult(BaseModel):
    user_id: str
    role: UserRole
    redirect_url: str


class ProfileUpdateParams(BaseModel):
    name: str | None = None
    email: EmailStr | None = None
    password: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return v.strip().lower() if v else v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str | None) -> str | None:
        return validate_password_length(v) if v else v


class UploadedFile(BaseModel):
    content: bytes
    content_type: str
    filename: str | None = None


class TeacherProfileUpdateParams(BaseModel):
    national_id_number: str | None = None
    national_id_photo: UploadedFile | None = None
    profile_photo: UploadedFile | None = None
