"""Unit tests for admin router endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.errors import app_error_handler
from app.api.v1.dependency import AuthUser, get_current_user
from app.api.v1.routers.admin import get_academic_service, router
from app.domain.academic.academic_domain import AcademicService
from app.domain.academic.academic_models import DepartmentResponse, LecturerUnitResponse
from app.schemas import UserRole
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

NOW = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def current_user() -> AuthUser:
    return AuthUser(user_id="us_admin", role=UserRole.ADMIN)


@pytest.fixture
def mock_service() -> AsyncMock:
    return AsyncMock(spec=AcademicService)


@pytest.fixture
def client(current_user: AuthUser, mock_service: AsyncMock) -> TestClient:
    app = FastAPI()
    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[get_academic_service] = lambda: mock_service
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.include_router(router)
    return TestClient(app)


class TestDepartments:
    def test_create(self, client: TestClient, mock_service: AsyncMock):
        mock_service.create_department.return_value = DepartmentResponse(
            department_id="dp_1", name="Computing", short_code="CS", created_at=NOW
        )

        response = client.post("/admin/departments", json={"name": "Computing", "short_code": "cs"})

        assert response.status_code == 200
        assert response.json()["results"]["short_code"] == "CS"
        (params,) = mock_service.create_department.await_args.args
        assert params.short_code == "CS"

    def test_duplicate(self, client: TestClient, mock_service: AsyncMock):
        mock_service.create_department.side_effect = AppError(
            errcode=AppErrorCode.E_DEPARTMENT_EXISTS,
            errmesg="Department short code already in use: CS",
            status_code=HttpStatusCode.CONFLICT,
        )

        response = client.post("/admin/departments", json={"name": "Computing", "short_code": "CS"})

        assert response.status_code == 409

    def test_non_admin_forbidden(self, client: TestClient, current_user: AuthUser, mock_service: AsyncMock):
        current_user.role = UserRole.TEACHER

        response = client.get("/admin/departments")

        assert response.status_code == 403
        mock_service.list_departments.assert_not_awaited()


class TestLecturerUnits:
    def test_assign(self, client: TestClient, mock_service: AsyncMock):
        mock_service.assign_unit.return_value = LecturerUnitResponse(
            lecturer_id="us_t", unit_id="unit-1", created_at=NOW
        )

        response = client.post("/admin/lecturer-units", json={"lecturer_id": "us_t", "unit_id": "unit-1"})

        assert response.status_code == 200
        assert response.json()["results"]["unit_id"] == "unit-1"

    def test_unassign(self, client: TestClient, mock_service: AsyncMock):
        response = client.delete("/admin/lecturer-units/us_t/unit-1")

        assert response.status_code == 200
        mock_service.unassign_unit.assert_awaited_once_with("us_t", "unit-1")
