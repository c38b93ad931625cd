from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import date
from typing import List, Optional

from app.core.database import get_db
from app.core.exceptions import ResourceNotFoundError
from app.models.academic import Exam, ExamStatus
from app.models.user import User
from app.modules.auth.dependencies import get_current_admin
from app.schemas.academic import ExamCreate, ExamUpdate, ExamResponse
from app.services.audit_service import log_action, diff_fields

router = APIRouter()


def exams_query(
    department: Optional[str] = None,
    level: Optional[int] = None,
    exam_status: Optional[ExamStatus] = None,
    upcoming: bool = False,
    today: Optional[date] = None,
):
    query = select(Exam)
    if department:
        query = query.where(Exam.department == department)
    if level:
        query = query.where(Exam.level == level)
    if exam_status:
        query = query.where(Exam.status == ExamStatus(exam_status))
    if upcoming:
        query = query.where(
            Exam.exam_date >= (today or date.today()),
            Exam.status != ExamStatus.CANCELLED,
        )
    return query.order_by(Exam.exam_date, Exam.exam_time, Exam.course_code)


async def _get_exam(db: AsyncSession, exam_id: str) -> Exam:
    exam = (await db.execute(select(Exam).where(Exam.id == exam_id))).scalar_one_or_none()
    if not exam:
        raise ResourceNotFoundError("Exam", exam_id)
    return exam


@router.get("", response_model=List[ExamResponse])
async def list_exams(
    department: Optional[str] = None,
    level: Optional[int] = None,
    status: Optional[ExamStatus] = Query(None),
    upcoming: bool = False,
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(exams_query(department, level, status, upcoming))
    return result.scalars().all()


@router.get("/{exam_id}", response_model=ExamResponse)
async def get_exam(exam_id: str, db: AsyncSession = Depends(get_db)):
    return await _get_exam(db, exam_id)


@router.post("", response_model=ExamResponse, status_code=status.HTTP_201_CREATED)
async def create_exam(
    data: ExamCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    exam = Exam(**data.model_dump(), created_by=current_admin.id)
    db.add(exam)
    await db.flush()
    await log_action(db, current_admin.id, "exam_created", "exam", exam.id,
                     details={"course_code": exam.course_code, "exam_date": exam.exam_date.isoformat()},
                     request=request)
    await db.commit()
    await db.refresh(exam)
    return exam


@router.put("/{exam_id}", response_model=ExamResponse)
async def update_exam(
    exam_id: str,
    data: ExamUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    exam = await _get_exam(db, exam_id)
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    if "course_code" in updates:
        updates["course_code"] = updates["course_code"].strip().upper()

    changes = diff_fields(exam, updates)
    for field, value in updates.items():
        setattr(exam, field, value)

    await log_action(db, current_admin.id, "exam_updated", "exam", exam.id,
                     details={"changes": changes}, request=request)
    await db.commit()
    await db.refresh(exam)
    return exam


@router.delete("/{exam_id}")
async def delete_exam(
    exam_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    exam = await _get_exam(db, exam_id)
    await db.delete(exam)
    await log_action(db, current_admin.id, "exam_deleted", "exam", exam_id,
                     details={"course_code": exam.course_code}, request=request)
    await db.commit()
    return {"success": True, "message": "Exam deleted"}
