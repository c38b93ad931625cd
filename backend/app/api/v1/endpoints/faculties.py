"""
Faculties and departments.

Reads are public; writes need an admin. Deleting a faculty removes its
departments.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List, Optional

from app.core.database import get_db
from app.core.exceptions import ConflictError, FacultyNotFoundError, ResourceNotFoundError
from app.models.academic import Faculty, Department
from app.models.user import User
from app.modules.auth.dependencies import get_current_admin
from app.schemas.academic import (
    FacultyCreate,
    FacultyUpdate,
    FacultyResponse,
    DepartmentCreate,
    DepartmentUpdate,
    DepartmentResponse,
)
from app.services.audit_service import log_action, diff_fields

router = APIRouter()
departments_router = APIRouter()


async def _get_faculty(db: AsyncSession, faculty_id: str) -> Faculty:
    faculty = (await db.execute(select(Faculty).where(Faculty.id == faculty_id))).scalar_one_or_none()
    if not faculty:
        raise FacultyNotFoundError(faculty_id)
    return faculty


async def _ensure_faculty_name_free(db: AsyncSession, name: str, exclude_id: Optional[str] = None) -> None:
    query = select(Faculty.id).where(func.lower(Faculty.name) == name.lower())
    if exclude_id:
        query = query.where(Faculty.id != exclude_id)
    if (await db.execute(query)).first():
        raise ConflictError(f"Faculty '{name}' already exists")


# ==================== FACULTIES ====================

@router.get("", response_model=List[FacultyResponse])
async def list_faculties(
    campus: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    query = select(Faculty)
    if campus:
        query = query.where(Faculty.campus == campus)
    faculties = (await db.execute(query.order_by(Faculty.name))).scalars().all()

    counts = dict((await db.execute(
        select(Department.faculty_id, func.count(Department.id)).group_by(Department.faculty_id)
    )).all())

    return [
        FacultyResponse.model_validate(f).model_copy(update={"department_count": counts.get(f.id, 0)})
        for f in faculties
    ]


@router.get("/{faculty_id}", response_model=FacultyResponse)
async def get_faculty(faculty_id: str, db: AsyncSession = Depends(get_db)):
    faculty = await _get_faculty(db, faculty_id)
    count = await db.scalar(select(func.count(Department.id)).where(Department.faculty_id == faculty.id))
    return FacultyResponse.model_validate(faculty).model_copy(update={"department_count": count or 0})


@router.post("", response_model=FacultyResponse, status_code=status.HTTP_201_CREATED)
async def create_faculty(
    data: FacultyCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    await _ensure_faculty_name_free(db, data.name)
    faculty = Faculty(**data.model_dump())
    db.add(faculty)
    await db.flush()
    await log_action(db, current_admin.id, "faculty_created", "faculty", faculty.id,
                     details={"name": faculty.name}, request=request)
    await db.commit()
    await db.refresh(faculty)
    return FacultyResponse.model_validate(faculty).model_copy(update={"department_count": 0})


@router.put("/{faculty_id}", response_model=FacultyResponse)
async def update_faculty(
    faculty_id: str,
    data: FacultyUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    faculty = await _get_faculty(db, faculty_id)
    updates = data.model_dump(exclude_unset=True)
    if updates.get("name"):
        await _ensure_faculty_name_free(db, updates["name"], exclude_id=faculty.id)

    changes = diff_fields(faculty, updates)
    for field, value in updates.items():
        setattr(faculty, field, value)

    await log_action(db, current_admin.id, "faculty_updated", "faculty", faculty.id,
                     details={"changes": changes}, request=request)
    await db.commit()
    await db.refresh(faculty)
    return faculty


@router.delete("/{faculty_id}")
async def delete_faculty(
    faculty_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    faculty = await _get_faculty(db, faculty_id)
    name = faculty.name
    await db.delete(faculty)
    await log_action(db, current_admin.id, "faculty_deleted", "faculty", faculty_id,
                     details={"name": name}, request=request)
    await db.commit()
    return {"success": True, "message": f"Faculty '{name}' deleted"}


# ==================== DEPARTMENTS ====================

async def _get_department(db: AsyncSession, department_id: str) -> Department:
    department = (await db.execute(
        select(Department).where(Department.id == department_id)
    )).scalar_one_or_none()
    if not department:
        raise ResourceNotFoundError("Department", department_id)
    return department


async def _ensure_department_name_free(db: AsyncSession, faculty_id: str, name: str,
                                       exclude_id: Optional[str] = None) -> None:
    query = select(Department.id).where(
        Department.faculty_id == faculty_id,
        func.lower(Department.name) == name.lower(),
    )
    if exclude_id:
        query = query.where(Department.id != exclude_id)
    if (await db.execute(query)).first():
        raise ConflictError(f"Department '{name}' already exists in this faculty")


def _department_response(department: Department, faculty_name: Optional[str]) -> DepartmentResponse:
    return DepartmentResponse.model_validate(department).model_copy(update={"faculty_name": faculty_name})


@departments_router.get("", response_model=List[DepartmentResponse])
async def list_departments(
    faculty_id: Optional[str] = Query(None),
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    query = select(Department, Faculty.name).join(Faculty, Department.faculty_id == Faculty.id)
    if faculty_id:
        query = query.where(Department.faculty_id == faculty_id)
    if search:
        query = query.where(Department.name.ilike(f"%{search}%"))
    rows = (await db.execute(query.order_by(Faculty.name, Department.name))).all()
    return [_department_response(department, faculty_name) for department, faculty_name in rows]


@departments_router.get("/{department_id}", response_model=DepartmentResponse)
async def get_department(department_id: str, db: AsyncSession = Depends(get_db)):
    department = await _get_department(db, department_id)
    faculty = await _get_faculty(db, department.faculty_id)
    return _department_response(department, faculty.name)


@departments_router.post("", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
async def create_department(
    data: DepartmentCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    faculty = await _get_faculty(db, data.faculty_id)
    await _ensure_department_name_free(db, faculty.id, data.name)

    department = Department(**data.model_dump())
    if not department.campus:
        department.campus = faculty.campus
    db.add(department)
    await db.flush()
    await log_action(db, current_admin.id, "department_created", "department", department.id,
                     details={"name": department.name, "faculty": faculty.name}, request=request)
    await db.commit()
    await db.refresh(department)
    return _department_response(department, faculty.name)


@departments_router.put("/{department_id}", response_model=DepartmentResponse)
async def update_department(
    department_id: str,
    data: DepartmentUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    department = await _get_department(db, department_id)
    updates = data.model_dump(exclude_unset=True)

    faculty = await _get_faculty(db, updates.get("faculty_id") or department.faculty_id)
    name = updates.get("name") or department.name
    if "name" in updates or "faculty_id" in updates:
        await _ensure_department_name_free(db, faculty.id, name, exclude_id=department.id)

    changes = diff_fields(department, updates)
    for field, value in updates.items():
        setattr(department, field, value)

    await log_action(db, current_admin.id, "department_updated", "department", department.id,
                     details={"changes": changes}, request=request)
    await db.commit()
    await db.refresh(department)
    return _department_response(department, faculty.name)


@departments_router.delete("/{department_id}")
async def delete_department(
    department_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    department = await _get_department(db, department_id)
    name = department.name
    await db.delete(department)
    await log_action(db, current_admin.id, "department_deleted", "department", department_id,
                     details={"name": name}, request=request)
    await db.commit()
    return {"success": True, "message": f"Department '{name}' deleted"}
