from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import RedirectResponse

from app.api.v1.dependency import AdminUser, CurrentUser, TeacherUser
from app.api.v1.schemas.auth import (
    AccessTokenOut,
    DepartmentBriefOut,
    ForgotPasswordIn,
    LoginIn,
    LoginOut,
    LogoutIn,
    MessageOut,
    ProfileOut,
    RefreshTokenIn,
    RegisterAdminIn,
    RegisterStudentIn,
    RegisterTeacherIn,
    RegistrationOut,
    ResetPasswordIn,
    UpdateProfileIn,
)
from app.api.v1.schemas.base import ApiOut
from app.domain.identity.auth_domain import AuthService
from app.domain.identity.auth_models import (
    AdminRegisterParams,
    ProfileUpdateParams,
    RegistrationResult,
    StudentRegisterParams,
    TeacherProfileUpdateParams,
    TeacherRegisterParams,
    UploadedFile,
    UserProfile,
)
from app.schemas import UserRole
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

router = APIRouter(prefix="/auth", tags=["Auth"])

# Singleton instance
_auth_service = AuthService()

FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a reset link has been sent."


def get_auth_service() -> AuthService:
    """Get the singleton AuthService instance."""
    return _auth_service


def _registration_out(result: RegistrationResult, message: str) -> RegistrationOut:
    return RegistrationOut(**result.model_dump(), message=message)


def _profile_out(profile: UserProfile) -> ProfileOut:
    return ProfileOut(**profile.model_dump())


async def _uploaded(file: UploadFile | None) -> UploadedFile | None:
    if file is None or not file.filename:
        return None
    return UploadedFile(
        content=await file.read(),
        content_type=file.content_type or "application/octet-stream",
        filename=file.filename,
    )


@router.post("/register")
async def register_student(
    body: RegisterStudentIn,
    service: AuthService = Depends(get_auth_service),
) -> ApiOut[RegistrationOut]:
    """Student self registration. The account must verify its email before login."""
    if body.role != UserRole.STUDENT.value:
        raise AppError(
            errcode=AppErrorCode.E_INVALID_REQUEST,
            errmesg="Only students can self-register here",
            status_code=HttpStatusCode.BAD_REQUEST,
        )

    params = StudentRegisterParams(
        name=body.name,
        email=body.email,
        password=body.password,
        course_id=body.course_id,
    )
    result = await service.register_student(params)
    return ApiOut[RegistrationOut](
        results=_registration_out(result, "Registration successful. Check your email to verify your account.")
    )


@router.post("/register/teacher")
async def register_teacher(
    body: RegisterTeacherIn,
    service: AuthService = Depends(get_auth_service),
) -> ApiOut[RegistrationOut]:
    params = TeacherRegisterParams(
        name=body.name,
        email=body.email,
        password=body.password,
        department_id=body.department_id,
    )
    result = await service.register_teacher(params)
    return ApiOut[RegistrationOut](
        results=_registration_out(result, "Teacher registration successful. Check your email to verify your account.")
    )


@router.post("/register-admin")
async def register_admin(
    body: RegisterAdminIn,
    service: AuthService = Depends(get_auth_service),
) -> ApiOut[RegistrationOut]:
    params = AdminRegisterParams(name=body.name, email=body.email, password=body.password)
    result = await service.register_admin(params)
    return ApiOut[RegistrationOut](
        results=_registration_out(result, "Admin registration successful. Check your email to verify your account.")
    )


@router.post("/register-staff")
async def register_staff(
    body: RegisterAdminIn,
    user: AdminUser,
    service: AuthService = Depends(get_auth_service),
) -> ApiOut[RegistrationOut]:
    """Create a verified admin account on behalf of an existing admin."""
    params = AdminRegisterParams(name=body.name, email=body.email, password=body.password)
    result = await service.register_staff(params)
    return ApiOut[RegistrationOut](results=_registration_out(result, "Staff account created."))


@router.get("/verify-email/{token}")
async def verify_email(
    token: str,
    service: AuthService = Depends(get_auth_service),
) -> RedirectResponse:
    result = await service.verify_email(token)
    return RedirectResponse(result.redirect_url, status_code=302)


@router.post("/login")
async def login(
    body: LoginIn,
    service: AuthService = Depends(get_auth_service),
) -> ApiOut[LoginOut]:
    result = await service.login(body.identifier, body.password)
    return ApiOut[LoginOut](
        results=LoginOut(
            access_token=result.access_token,
            refresh_token=result.refresh_token,
            user=_profile_out(result.user),
        )
    )


@router.post("/refresh-token")
async def refresh_token(
    body: RefreshTokenIn,
    service: AuthService = Depends(get_auth_service),
) -> ApiOut[AccessTokenOut]:
    access_token = await service.refresh(body.refresh_token)
    return ApiOut[AccessTokenOut](results=AccessTokenOut(access_token=access_token))


@router.post("/logout")
async def logout(
    body: LogoutIn,
    service: AuthService = Depends(get_auth_service),
) -> ApiOut[MessageOut]:
    await service.logout(body.refresh_token)
    return ApiOut[MessageOut](results=MessageOut(message="Logged out"))


@router.post("/forgot-password")
async def forgot_password(
    body: ForgotPasswordIn,
    service: AuthService = Depends(get_auth_service),
) -> ApiOut[MessageOut]:
    await service.forgot_password(body.email)
    return ApiOut[MessageOut](results=MessageOut(message=FORGOT_PASSWORD_MESSAGE))


@router.post("/reset-password")
async def reset_password(
    body: ResetPasswordIn,
    service: AuthService = Depends(get_auth_service),
) -> ApiOut[MessageOut]:
    await service.reset_password(body.token, body.password)
    return ApiOut[MessageOut](results=MessageOut(message="Password has been reset"))


@router.get("/profile")
async def get_profile(
    user: CurrentUser,
    service: AuthService = Depends(get_auth_service),
) -> ApiOut[ProfileOut]:
    profile = await service.get_profile(user.user_id)
    return ApiOut[ProfileOut](results=_profile_out(profile))


@router.patch("/update-profile")
async def update_profile(
    body: UpdateProfileIn,
    user: CurrentUser,
    service: AuthService = Depends(get_auth_service),
) -> ApiOut[ProfileOut]:
    params = ProfileUpdateParams(**body.model_dump(exclude_unset=True))
    profile = await service.update_profile(user.user_id, params)
    return ApiOut[ProfileOut](results=_profile_out(profile))


@router.patch("/update-teacher-profile")
async def update_teacher_profile(
    user: TeacherUser,
    national_id_number: str | None = Form(default=None),
    national_id_photo: UploadFile | None = File(default=None),
    profile_photo: UploadFile | None = File(default=None),
    service: AuthService = Depends(get_auth_service),
) -> ApiOut[ProfileOut]:
    params = TeacherProfileUpdateParams(
        national_id_number=national_id_number,
        national_id_photo=await _uploaded(national_id_photo),
        profile_photo=await _uploaded(profile_photo),
    )
    profile = await service.update_teacher_profile(user.user_id, params)
    return ApiOut[ProfileOut](results=_profile_out(profile))


@router.get("/departments")
async def list_departments(
    service: AuthService = Depends(get_auth_service),
) -> ApiOut[list[DepartmentBriefOut]]:
    departments = await service.list_departments()
    return ApiOut[list[DepartmentBriefOut]](
        results=[DepartmentBriefOut(department_id=d.department_id, name=d.name) for d in departments]
    )
