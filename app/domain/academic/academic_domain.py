"""Academic reference data service - departments, courses and unit assignments."""

from loguru import logger

from app.domain.utils.clock import utc_now
from app.domain.utils.idgen import new_course_id, new_department_id
from app.schemas import Course, Department, LecturerUnit, User, UserRole
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .academic_models import (
    CourseCreateParams,
    CourseResponse,
    DepartmentCreateParams,
    DepartmentResponse,
    DepartmentUpdateParams,
    LecturerUnitResponse,
)


class AcademicService:
    # ==================== DEPARTMENTS ====================

    async def _get_department(self, department_id: str) -> Department:
        department = await Department.find_one(Department.department_id == department_id)
        if not department:
            raise AppError(
                errcode=AppErrorCode.E_DEPARTMENT_NOT_FOUND,
                errmesg=f"Department not found: {department_id}",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        return department

    async def _ensure_department_code_free(self, short_code: str, exclude_id: str | None = None) -> None:
        existing = await Department.find_one(Department.short_code == short_code)
        if existing and existing.department_id != exclude_id:
            raise AppError(
                errcode=AppErrorCode.E_DEPARTMENT_EXISTS,
                errmesg=f"Department short code already in use: {short_code}",
                status_code=HttpStatusCode.CONFLICT,
            )

    async def create_department(self, params: DepartmentCreateParams) -> DepartmentResponse:
        await self._ensure_department_code_free(params.short_code)

        now = utc_now()
        department = Department(
            department_id=new_department_id(),
            name=params.name.strip(),
            short_code=params.short_code,
            description=params.description,
            created_at=now,
            updated_at=now,
        )
        await department.insert()
        logger.info("Created department {} ({})", department.department_id, department.short_code)
        return DepartmentResponse.from_document(department)

    async def list_departments(self) -> list[DepartmentResponse]:
        docs = await Department.find_all().sort("+name").to_list()
        return [DepartmentResponse.from_document(doc) for doc in docs]

    async def update_department(self, department_id: str, params: DepartmentUpdateParams) -> DepartmentResponse:
        department = await self._get_department(department_id)

        updates = params.model_dump(exclude_unset=True, exclude_none=True)
        if not updates:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="No fields to update",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        if "short_code" in updates:
            await self._ensure_department_code_free(updates["short_code"], exclude_id=department_id)

        for field, value in updates.items():
            setattr(department, field, value)
        department.updated_at = utc_now()
        await department.save()
        return DepartmentResponse.from_document(department)

    async def delete_department(self, department_id: str) -> None:
        department = await self._get_department(department_id)
        await department.delete()
        logger.info("Deleted department {}", department_id)

    # ==================== COURSES ====================

    async def create_course(self, params: CourseCreateParams) -> CourseResponse:
        if await Course.find_one(Course.short_code == params.short_code):
            raise AppError(
                errcode=AppErrorCode.E_COURSE_EXISTS,
                errmesg=f"Course short code already in use: {params.short_code}",
                status_code=HttpStatusCode.CONFLICT,
            )
        if params.department_id:
            await self._get_department(params.department_id)

        course = Course(
            course_id=new_course_id(),
            title=params.title.strip(),
            short_code=params.short_code,
            department_id=params.department_id,
            created_at=utc_now(),
        )
        await course.insert()
        return CourseResponse.from_document(course)

    async def list_courses(self) -> list[CourseResponse]:
        docs = await Course.find_all().sort("+title").to_list()
        return [CourseResponse.from_document(doc) for doc in docs]

    # ==================== LECTURER UNITS ====================

    async def assign_unit(self, lecturer_id: str, unit_id: str, program_id: str | None = None) -> LecturerUnitResponse:
        """Allow a teacher or lecturer to schedule classes for a unit. Idempotent."""
        lecturer = await User.find_one(User.user_id == lecturer_id)
        if not lecturer or lecturer.role not in UserRole.teaching_roles():
            raise AppError(
                errcode=AppErrorCode.E_USER_NOT_FOUND,
                errmesg=f"Lecturer not found: {lecturer_id}",
                status_code=HttpStatusCode.NOT_FOUND,
            )

        existing = await LecturerUnit.find_one(
            LecturerUnit.lecturer_id == lecturer_id,
            LecturerUnit.unit_id == unit_id,
        )
        if existing:
            return LecturerUnitResponse.from_document(existing)

        assignment = LecturerUnit(
            lecturer_id=lecturer_id,
            unit_id=unit_id,
            program_id=program_id,
            created_at=utc_now(),
        )
        await assignment.insert()
        logger.info("Assigned unit {} to lecturer {}", unit_id, lecturer_id)
        return LecturerUnitResponse.from_document(assignment)

    async def unassign_unit(self, lecturer_id: str, unit_id: str) -> None:
        assignment = await LecturerUnit.find_one(
            LecturerUnit.lecturer_id == lecturer_id,
            LecturerUnit.unit_id == unit_id,
        )
        if not assignment:
            raise AppError(
                errcode=AppErrorCode.E_ASSIGNMENT_NOT_FOUND,
                errmesg="Assignment not found",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        await assignment.delete()
