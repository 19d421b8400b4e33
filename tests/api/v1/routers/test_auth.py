"""Unit tests for auth router endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient

from app.api.errors import app_error_handler, app_validation_exception_handler
from app.api.v1.dependency import AuthUser, get_current_user
from app.api.v1.routers.auth import FORGOT_PASSWORD_MESSAGE, get_auth_service, router
from app.domain.identity.auth_domain import AuthService
from app.domain.identity.auth_models import (
    LoginResult,
    RegistrationResult,
    UserProfile,
    VerifyEmailResult,
)
from app.schemas import UserRole
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

NOW = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def _profile(**kwargs) -> UserProfile:
    fields = {
        "user_id": "us_1",
        "name": "Sam",
        "email": "sam@example.com",
        "role": UserRole.STUDENT,
        "is_verified": True,
        "issued_id": "STU/GEN/2024/0001",
        "created_at": NOW,
    }
    fields.update(kwargs)
    return UserProfile(**fields)


@pytest.fixture
def current_user() -> AuthUser:
    return AuthUser(user_id="us_1", role=UserRole.STUDENT)


@pytest.fixture
def mock_service() -> AsyncMock:
    return AsyncMock(spec=AuthService)


@pytest.fixture
def client(current_user: AuthUser, mock_service: AsyncMock) -> TestClient:
    app = FastAPI()
    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[get_auth_service] = lambda: mock_service
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, app_validation_exception_handler)  # type: ignore[arg-type]
    app.include_router(router)
    return TestClient(app)


class TestRegister:
    def test_student_registration(self, client: TestClient, mock_service: AsyncMock):
        mock_service.register_student.return_value = RegistrationResult(
            user_id="us_1",
            issued_id="STU/GEN/2024/0001",
            name="Sam",
            email="sam@example.com",
            role=UserRole.STUDENT,
            is_verified=False,
        )

        response = client.post(
            "/auth/register", json={"name": "Sam", "email": "sam@example.com", "password": "secret1"}
        )

        assert response.status_code == 200
        results = response.json()["results"]
        assert results["issued_id"] == "STU/GEN/2024/0001"
        assert "verify" in results["message"]

    def test_other_roles_rejected(self, client: TestClient, mock_service: AsyncMock):
        response = client.post(
            "/auth/register",
            json={"name": "Sam", "email": "sam@example.com", "password": "secret1", "role": "admin"},
        )

        assert response.status_code == 400
        mock_service.register_student.assert_not_awaited()

    def test_invalid_email(self, client: TestClient):
        response = client.post("/auth/register", json={"name": "Sam", "email": "not-an-email", "password": "secret1"})

        assert response.status_code == 400
        assert response.json()["errcode"] == "E_INVALID_REQUEST"

    def test_short_password(self, client: TestClient, mock_service: AsyncMock):
        response = client.post("/auth/register", json={"name": "Sam", "email": "sam@example.com", "password": "123"})

        assert response.status_code == 400
        mock_service.register_student.assert_not_awaited()

    def test_register_staff_requires_admin(self, client: TestClient, mock_service: AsyncMock):
        response = client.post(
            "/auth/register-staff", json={"name": "Al", "email": "al@example.com", "password": "secret1"}
        )

        assert response.status_code == 403
        mock_service.register_staff.assert_not_awaited()


class TestSession:
    def test_login_accepts_email_field(self, client: TestClient, mock_service: AsyncMock):
        mock_service.login.return_value = LoginResult(access_token="a", refresh_token="r", user=_profile())

        response = client.post("/auth/login", json={"email": "sam@example.com", "password": "secret1"})

        assert response.status_code == 200
        results = response.json()["results"]
        assert results["access_token"] == "a"
        assert results["user"]["issued_id"] == "STU/GEN/2024/0001"
        mock_service.login.assert_awaited_once_with("sam@example.com", "secret1")

    def test_login_invalid_credentials(self, client: TestClient, mock_service: AsyncMock):
        mock_service.login.side_effect = AppError(
            errcode=AppErrorCode.E_INVALID_CREDENTIALS,
            errmesg="Invalid credentials",
            status_code=HttpStatusCode.BAD_REQUEST,
        )

        response = client.post("/auth/login", json={"identifier": "STU/GEN/2024/0001", "password": "nope"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid credentials"

    def test_refresh_token_camel_case(self, client: TestClient, mock_service: AsyncMock):
        mock_service.refresh.return_value = "new-access"

        response = client.post("/auth/refresh-token", json={"refreshToken": "r"})

        assert response.json()["results"] == {"access_token": "new-access"}
        mock_service.refresh.assert_awaited_once_with("r")

    def test_logout_without_token(self, client: TestClient, mock_service: AsyncMock):
        response = client.post("/auth/logout", json={})

        assert response.status_code == 200
        mock_service.logout.assert_awaited_once_with(None)

    def test_verify_email_redirects(self, client: TestClient, mock_service: AsyncMock):
        mock_service.verify_email.return_value = VerifyEmailResult(
            user_id="us_1",
            role=UserRole.STUDENT,
            redirect_url="http://localhost:3000/auth/login?verified=true",
        )

        response = client.get("/auth/verify-email/tok", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "http://localhost:3000/auth/login?verified=true"


class TestPasswordAndProfile:
    def test_forgot_password_is_uniform(self, client: TestClient, mock_service: AsyncMock):
        response = client.post("/auth/forgot-password", json={"email": "nobody@example.com"})

        assert response.json()["results"]["message"] == FORGOT_PASSWORD_MESSAGE

    def test_profile(self, client: TestClient, mock_service: AsyncMock):
        mock_service.get_profile.return_value = _profile()

        response = client.get("/auth/profile")

        assert response.status_code == 200
        assert response.json()["results"]["created_at"] == "2024-05-01T09:00:00+00:00"
        mock_service.get_profile.assert_awaited_once_with("us_1")

    def test_update_profile_passes_only_given_fields(self, client: TestClient, mock_service: AsyncMock):
        mock_service.update_profile.return_value = _profile(name="Samuel")

        response = client.patch("/auth/update-profile", json={"name": "Samuel"})

        assert response.status_code == 200
        _user_id, params = mock_service.update_profile.await_args.args
        assert params.name == "Samuel"
        assert params.email is None

    def test_teacher_profile_forbidden_for_students(self, client: TestClient, mock_service: AsyncMock):
        response = client.patch("/auth/update-teacher-profile", data={"national_id_number": "123"})

        assert response.status_code == 403

    def test_teacher_profile_upload(self, client: TestClient, current_user: AuthUser, mock_service: AsyncMock):
        current_user.role = UserRole.TEACHER
        mock_service.update_teacher_profile.return_value = _profile(role=UserRole.TEACHER, profile_photo_url="u")

        response = client.patch(
            "/auth/update-teacher-profile",
            data={"national_id_number": "123"},
            files={"profile_photo": ("me.png", b"png-bytes", "image/png")},
        )

        assert response.status_code == 200
        _user_id, params = mock_service.update_teacher_profile.await_args.args
        assert params.national_id_number == "123"
        assert params.profile_photo.content == b"png-bytes"
        assert params.profile_photo.content_type == "image/png"
        assert params.national_id_photo is None
