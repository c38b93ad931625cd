"""
Lecture timetable endpoints.

GET /lectures            - flat list with filters
GET /timetable           - the same lectures grouped by weekday
GET /timetable/export    - CSV download
Admin: create/update/delete, bulk delete by filter
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from typing import List, Optional

from app.core.database import get_db
from app.core.exceptions import ResourceNotFoundError
from app.models.academic import Lecture
from app.models.user import User
from app.modules.auth.dependencies import get_current_admin
from app.schemas.academic import (
    LectureCreate,
    LectureUpdate,
    LectureResponse,
    LectureBulkDelete,
    TimetableResponse,
)
from app.services.audit_service import log_action, diff_fields
from app.services import timetable_service
from app.utils.csv_export import csv_response

router = APIRouter()
timetable_router = APIRouter()


def lecture_filters(
    day: Optional[str] = Query(None),
    level: Optional[int] = Query(None),
    faculty: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    campus: Optional[str] = Query(None),
    semester: Optional[str] = Query(None),
    academic_year: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
) -> dict:
    return {
        "day": day.capitalize() if day else None,
        "level": level,
        "faculty": faculty,
        "department": department,
        "campus": campus,
        "semester": semester,
        "academic_year": academic_year,
        "search": search,
    }


async def _get_lecture(db: AsyncSession, lecture_id: str) -> Lecture:
    lecture = (await db.execute(select(Lecture).where(Lecture.id == lecture_id))).scalar_one_or_none()
    if not lecture:
        raise ResourceNotFoundError("Lecture", lecture_id)
    return lecture


# ==================== PUBLIC ====================

@router.get("", response_model=List[LectureResponse])
async def list_lectures(
    filters: dict = Depends(lecture_filters),
    db: AsyncSession = Depends(get_db)
):
    return await timetable_service.fetch_lectures(db, **filters)


@router.get("/{lecture_id}", response_model=LectureResponse)
async def get_lecture(lecture_id: str, db: AsyncSession = Depends(get_db)):
    return await _get_lecture(db, lecture_id)


@timetable_router.get("", response_model=TimetableResponse)
async def get_timetable(
    filters: dict = Depends(lecture_filters),
    db: AsyncSession = Depends(get_db)
):
    """Week view: every weekday key, lectures sorted by start time"""
    lectures = await timetable_service.fetch_lectures(db, **filters)
    return {
        "days": timetable_service.group_by_day(lectures),
        "total": len(lectures),
    }


@timetable_router.get("/export")
async def export_timetable(
    filters: dict = Depends(lecture_filters),
    db: AsyncSession = Depends(get_db)
):
    lectures = await timetable_service.fetch_lectures(db, **filters)
    return csv_response(
        "timetable.csv",
        timetable_service.CSV_HEADER,
        timetable_service.csv_rows(lectures),
    )


# ==================== ADMIN ====================

@router.post("", response_model=LectureResponse, status_code=status.HTTP_201_CREATED)
async def create_lecture(
    data: LectureCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    lecture = Lecture(**data.model_dump(), created_by=current_admin.id)
    db.add(lecture)
    await db.flush()
    await log_action(db, current_admin.id, "lecture_created", "lecture", lecture.id,
                     details={"subject": lecture.subject, "day": lecture.day, "time": lecture.time},
                     request=request)
    await db.commit()
    await db.refresh(lecture)
    return lecture


@router.put("/{lecture_id}", response_model=LectureResponse)
async def update_lecture(
    lecture_id: str,
    data: LectureUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    lecture = await _get_lecture(db, lecture_id)
    updates = data.model_dump(exclude_unset=True)
    for required in ("day", "time", "subject"):
        if required in updates and updates[required] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{required} cannot be empty"
            )

    changes = diff_fields(lecture, updates)
    for field, value in updates.items():
        setattr(lecture, field, value)

    await log_action(db, current_admin.id, "lecture_updated", "lecture", lecture.id,
                     details={"changes": changes}, request=request)
    await db.commit()
    await db.refresh(lecture)
    return lecture


@router.delete("/{lecture_id}")
async def delete_lecture(
    lecture_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    lecture = await _get_lecture(db, lecture_id)
    await db.delete(lecture)
    await log_action(db, current_admin.id, "lecture_deleted", "lecture", lecture_id,
                     details={"subject": lecture.subject}, request=request)
    await db.commit()
    return {"success": True, "message": "Lecture deleted"}


@router.post("/bulk-delete")
async def bulk_delete_lectures(
    data: LectureBulkDelete,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Delete every lecture matching the filters (e.g. a past semester)"""
    filters = data.model_dump(exclude_none=True)
    if not filters:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one filter is required"
        )

    stmt = delete(Lecture)
    for field, value in filters.items():
        stmt = stmt.where(getattr(Lecture, field) == value)
    result = await db.execute(stmt.execution_options(synchronize_session=False))

    await log_action(db, current_admin.id, "lectures_bulk_deleted", "lecture", None,
                     details={"filters": filters, "deleted": result.rowcount}, request=request)
    await db.commit()
    return {"success": True, "deleted": result.rowcount}
