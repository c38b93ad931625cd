from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import date, datetime

from app.core.config import settings
from app.core.database import get_db
from app.models.user import User
from app.modules.auth.dependencies import get_current_user
from app.services import timetable_service
from app.services.ad_service import ad_service
from app.services.settings_service import get_public_settings
from app.services.user_service import serialize_user
from app.services.wallet_service import wallet_service
from app.schemas.academic import ExamResponse, LectureResponse
from app.api.v1.endpoints.exams import exams_query

router = APIRouter()

UPCOMING_EXAM_LIMIT = 5


@router.get("/dashboard")
async def user_dashboard(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Everything the student home page shows in one call"""
    today = date.today()
    wallet = await wallet_service.get_wallet(db, current_user.id)

    exams = (await db.execute(
        exams_query(
            department=current_user.department,
            level=current_user.level,
            upcoming=True,
            today=today,
        ).limit(UPCOMING_EXAM_LIMIT)
    )).scalars().all()

    today_name = timetable_service.today_name(datetime.utcnow())
    lectures = await timetable_service.fetch_lectures(
        db,
        day=today_name,
        faculty=current_user.faculty,
        department=current_user.department,
        level=current_user.level,
    )

    active_ads = await ad_service.count_active_ads(db, current_user.id)
    await db.commit()

    return {
        "user": await serialize_user(db, current_user),
        "wallet": {"balance": wallet.balance, "currency": settings.CURRENCY},
        "today": today_name,
        "todays_lectures": [LectureResponse.model_validate(lecture) for lecture in lectures],
        "upcoming_exams": [ExamResponse.model_validate(exam) for exam in exams],
        "active_ads": active_ads,
        "settings": await get_public_settings(db),
    }


@router.get("/settings/public")
async def public_settings(db: AsyncSession = Depends(get_db)):
    """Site name, feature flags, current academic year"""
    return await get_public_settings(db)
