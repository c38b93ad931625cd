"""
Database Seed Data Module

``seed_defaults`` runs on every startup and only inserts what is missing:
system settings, the ad pricing row and (when configured) a default admin.

``seed_all`` additionally loads sample academic data for local development.
Run with: python -m app.db.seed_data [clear]
"""
import asyncio
from datetime import date, timedelta
from typing import Any, Dict, List

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import AsyncSessionLocal, init_db
from app.core.logging_config import logger
from app.models import (
    AdSettings,
    BlogPost,
    CommunityLink,
    CommunityLinkType,
    CustomLink,
    CustomLinkCategory,
    Department,
    Exam,
    Faculty,
    Lecture,
    RoleName,
)
from app.services.ad_service import ad_service
from app.services.settings_service import ensure_default_settings
from app.services.user_service import create_user, get_user_by_email


# ==================== Sample Data Constants ====================

SAMPLE_FACULTIES = {
    "Faculty of Science": ["Computer Science", "Mathematics", "Physics"],
    "Faculty of Engineering": ["Electrical Engineering", "Mechanical Engineering"],
    "Faculty of Arts": ["English", "History"],
}

SAMPLE_LECTURES = [
    {"day": "Monday", "time": "08:00-10:00", "subject": "CSC 201 Data Structures", "room": "LT1",
     "lecturer": "Dr. Okafor", "level": 200, "faculty": "Faculty of Science", "department": "Computer Science"},
    {"day": "Monday", "time": "10:00-12:00", "subject": "MTH 201 Linear Algebra", "room": "LT3",
     "lecturer": "Prof. Adeyemi", "level": 200, "faculty": "Faculty of Science", "department": "Computer Science"},
    {"day": "Wednesday", "time": "14:00-16:00", "subject": "CSC 205 Operating Systems", "room": "Lab 2",
     "lecturer": "Dr. Bello", "level": 200, "faculty": "Faculty of Science", "department": "Computer Science"},
    {"day": "Thursday", "time": "09:00-11:00", "subject": "EEE 301 Circuit Theory", "room": "ENG 104",
     "lecturer": "Engr. Musa", "level": 300, "faculty": "Faculty of Engineering", "department": "Electrical Engineering"},
]

SAMPLE_EXAMS = [
    {"course_code": "CSC 201", "course_title": "Data Structures", "department": "Computer Science",
     "level": 200, "days_from_now": 14, "exam_time": "09:00", "venue": "Main Hall"},
    {"course_code": "MTH 201", "course_title": "Linear Algebra", "department": "Computer Science",
     "level": 200, "days_from_now": 16, "exam_time": "13:00", "venue": "LT1"},
]

SAMPLE_COMMUNITY_LINKS = [
    {"name": "CSC 200L WhatsApp", "url": "https://chat.whatsapp.com/example", "type": CommunityLinkType.WHATSAPP},
    {"name": "Campus Telegram", "url": "https://t.me/example", "type": CommunityLinkType.TELEGRAM},
]


async def seed_default_admin(db: AsyncSession) -> bool:
    """Create DEFAULT_ADMIN_EMAIL as superuser if set and missing"""
    if not settings.DEFAULT_ADMIN_EMAIL or not settings.DEFAULT_ADMIN_PASSWORD:
        return False
    if await get_user_by_email(db, settings.DEFAULT_ADMIN_EMAIL):
        return False
    await create_user(
        db,
        email=settings.DEFAULT_ADMIN_EMAIL,
        password=settings.DEFAULT_ADMIN_PASSWORD,
        full_name="Administrator",
        is_superuser=True,
        roles=[RoleName.ADMIN],
    )
    logger.info(f"[Seed] Created default admin {settings.DEFAULT_ADMIN_EMAIL}")
    return True


async def seed_defaults(db: AsyncSession) -> Dict[str, Any]:
    """Idempotent startup seeding"""
    had_ad_settings = (await db.execute(select(AdSettings.id).limit(1))).first() is not None
    created_settings = await ensure_default_settings(db)
    await ad_service.get_settings(db)
    admin_created = await seed_default_admin(db)
    return {
        "created_settings": created_settings,
        "ad_settings_created": not had_ad_settings,
        "admin_created": admin_created,
    }


async def seed_academics(db: AsyncSession) -> List[Faculty]:
    if (await db.execute(select(Faculty.id).limit(1))).first():
        print("Faculties already present, skipping academic sample data")
        return []

    faculties = []
    for faculty_name, departments in SAMPLE_FACULTIES.items():
        faculty = Faculty(name=faculty_name, campus="Main Campus")
        db.add(faculty)
        await db.flush()
        for department_name in departments:
            db.add(Department(name=department_name, faculty_id=faculty.id, campus="Main Campus"))
        faculties.append(faculty)

    for lecture in SAMPLE_LECTURES:
        db.add(Lecture(
            **lecture,
            campus="Main Campus",
            semester="First Semester",
            academic_year="2024/2025",
        ))

    today = date.today()
    for exam in SAMPLE_EXAMS:
        data = dict(exam)
        data["exam_date"] = today + timedelta(days=data.pop("days_from_now"))
        db.add(Exam(**data))

    await db.flush()
    print(f"Created {len(faculties)} faculties, {len(SAMPLE_LECTURES)} lectures, {len(SAMPLE_EXAMS)} exams")
    return faculties


async def seed_links_and_content(db: AsyncSession) -> None:
    if (await db.execute(select(CommunityLink.id).limit(1))).first():
        return
    for link in SAMPLE_COMMUNITY_LINKS:
        db.add(CommunityLink(**link))
    db.add(CustomLink(name="Course Registration", url="https://portal.example.edu/registration",
                      category=CustomLinkCategory.HERO))
    db.add(BlogPost(title="Welcome to the portal", content="Timetables, exams and your campus community in one place.",
                    summary="What the portal does", author="Admin", published=True))
    await db.flush()
    print("Created sample links and blog post")


async def seed_all():
    """Seed defaults plus sample data"""
    print("=" * 50)
    print("Starting database seeding...")
    print("=" * 50)

    await init_db()
    async with AsyncSessionLocal() as db:
        try:
            result = await seed_defaults(db)
            print(f"Default settings created: {result['created_settings']}")
            await seed_academics(db)
            await seed_links_and_content(db)
            await db.commit()

            print("=" * 50)
            print("Database seeding completed successfully!")
            print("=" * 50)

        except Exception as e:
            await db.rollback()
            print(f"Error seeding database: {e}")
            raise


async def clear_all():
    """Clear sample academic and link data (users, wallets and payments are kept)"""
    print("Clearing sample data...")
    async with AsyncSessionLocal() as db:
        for model in (Lecture, Exam, Department, Faculty, CommunityLink, CustomLink, BlogPost):
            await db.execute(delete(model))
        await db.commit()
        print("Sample data cleared!")


if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1 and sys.argv[1] == "clear":
        asyncio.run(clear_all())
    else:
        asyncio.run(seed_all())
