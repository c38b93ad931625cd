"""
Timetable helpers: lecture filtering, week grouping and CSV rows.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.academic import DAYS_OF_WEEK, Lecture

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})")

CSV_HEADER = [
    "Day", "Time", "Subject", "Room", "Lecturer", "Level",
    "Faculty", "Department", "Campus", "Semester", "Academic Year",
]


def start_minutes(time_value: Optional[str]) -> int:
    """Minutes after midnight for "08:30" / "08:30-10:00"; unparsable times sort last"""
    match = _TIME_RE.match(time_value or "")
    if not match:
        return 24 * 60
    return int(match.group(1)) * 60 + int(match.group(2))


def sort_key(lecture: Lecture) -> Tuple[int, int, str]:
    day_index = DAYS_OF_WEEK.index(lecture.day) if lecture.day in DAYS_OF_WEEK else len(DAYS_OF_WEEK)
    return day_index, start_minutes(lecture.time), lecture.subject or ""


def lectures_query(
    day: Optional[str] = None,
    level: Optional[int] = None,
    faculty: Optional[str] = None,
    department: Optional[str] = None,
    campus: Optional[str] = None,
    semester: Optional[str] = None,
    academic_year: Optional[str] = None,
    search: Optional[str] = None,
):
    query = select(Lecture)
    if day:
        query = query.where(Lecture.day == day)
    if level:
        query = query.where(Lecture.level == level)
    if faculty:
        query = query.where(Lecture.faculty == faculty)
    if department:
        query = query.where(Lecture.department == department)
    if campus:
        query = query.where(Lecture.campus == campus)
    if semester:
        query = query.where(Lecture.semester == semester)
    if academic_year:
        query = query.where(Lecture.academic_year == academic_year)
    if search:
        pattern = f"%{search}%"
        query = query.where(Lecture.subject.ilike(pattern) | Lecture.lecturer.ilike(pattern))
    return query


async def fetch_lectures(db: AsyncSession, **filters) -> List[Lecture]:
    """Lectures matching filters, in week order"""
    result = await db.execute(lectures_query(**filters))
    return sorted(result.scalars().all(), key=sort_key)


def group_by_day(lectures: List[Lecture]) -> Dict[str, List[Lecture]]:
    """Every weekday key is present, even when empty"""
    grouped: Dict[str, List[Lecture]] = {day: [] for day in DAYS_OF_WEEK}
    for lecture in sorted(lectures, key=sort_key):
        if lecture.day in grouped:
            grouped[lecture.day].append(lecture)
    return grouped


def today_name(now: Optional[datetime] = None) -> str:
    return DAYS_OF_WEEK[(now or datetime.utcnow()).weekday()]


def csv_rows(lectures: List[Lecture]) -> List[List[Any]]:
    return [
        [
            lecture.day, lecture.time, lecture.subject, lecture.room, lecture.lecturer,
            lecture.level, lecture.faculty, lecture.department, lecture.campus,
            lecture.semester, lecture.academic_year,
        ]
        for lecture in sorted(lectures, key=sort_key)
    ]
