from fastapi import APIRouter, Depends

from app.api.v1.dependency import AdminUser
from app.api.v1.schemas.admin import (
    AssignUnitIn,
    CourseOut,
    CreateCourseIn,
    CreateDepartmentIn,
    DepartmentOut,
    LecturerUnitOut,
    UpdateDepartmentIn,
)
from app.api.v1.schemas.base import ApiOut
from app.domain.academic.academic_domain import AcademicService
from app.domain.academic.academic_models import (
    CourseCreateParams,
    DepartmentCreateParams,
    DepartmentUpdateParams,
)

router = APIRouter(prefix="/admin", tags=["Admin"])

# Singleton instance
_academic_service = AcademicService()


def get_academic_service() -> AcademicService:
    """Get the singleton AcademicService instance."""
    return _academic_service


# ==================== DEPARTMENTS ====================


@router.post("/departments")
async def create_department(
    body: CreateDepartmentIn,
    user: AdminUser,
    service: AcademicService = Depends(get_academic_service),
) -> ApiOut[DepartmentOut]:
    result = await service.create_department(DepartmentCreateParams(**body.model_dump()))
    return ApiOut[DepartmentOut](results=DepartmentOut(**result.model_dump()))


@router.get("/departments")
async def list_departments(
    user: AdminUser,
    service: AcademicService = Depends(get_academic_service),
) -> ApiOut[list[DepartmentOut]]:
    departments = await service.list_departments()
    return ApiOut[list[DepartmentOut]](results=[DepartmentOut(**d.model_dump()) for d in departments])


@router.patch("/departments/{department_id}")
async def update_department(
    department_id: str,
    body: UpdateDepartmentIn,
    user: AdminUser,
    service: AcademicService = Depends(get_academic_service),
) -> ApiOut[DepartmentOut]:
    # Only fields the client actually sent are applied
    params = DepartmentUpdateParams(**body.model_dump(exclude_unset=True))
    result = await service.update_department(department_id, params)
    return ApiOut[DepartmentOut](results=DepartmentOut(**result.model_dump()))


@router.delete("/departments/{department_id}")
async def delete_department(
    department_id: str,
    user: AdminUser,
    service: AcademicService = Depends(get_academic_service),
) -> ApiOut[str]:
    await service.delete_department(department_id)
    return ApiOut[str](results="OK")


# ==================== COURSES ====================


@router.post("/courses")
async def create_course(
    body: CreateCourseIn,
    user: AdminUser,
    service: AcademicService = Depends(get_academic_service),
) -> ApiOut[CourseOut]:
    result = await service.create_course(CourseCreateParams(**body.model_dump()))
    return ApiOut[CourseOut](results=CourseOut(**result.model_dump()))


@router.get("/courses")
async def list_courses(
    user: AdminUser,
    service: AcademicService = Depends(get_academic_service),
) -> ApiOut[list[CourseOut]]:
    courses = await service.list_courses()
    return ApiOut[list[CourseOut]](results=[CourseOut(**c.model_dump()) for c in courses])


# ==================== LECTURER UNITS ====================


@router.post("/lecturer-units")
async def assign_unit(
    body: AssignUnitIn,
    user: AdminUser,
    service: AcademicService = Depends(get_academic_service),
) -> ApiOut[LecturerUnitOut]:
    result = await service.assign_unit(body.lecturer_id, body.unit_id, body.program_id)
    return ApiOut[LecturerUnitOut](results=LecturerUnitOut(**result.model_dump()))


@router.delete("/lecturer-units/{lecturer_id}/{unit_id}")
async def unassign_unit(
    lecturer_id: str,
    unit_id: str,
    user: AdminUser,
    service: AcademicService = Depends(get_academic_service),
) -> ApiOut[str]:
    await service.unassign_unit(lecturer_id, unit_id)
    return ApiOut[str](results="OK")
