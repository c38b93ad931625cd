"""Schemas for faculties, departments, lectures and exams"""

import re
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.academic import DAYS_OF_WEEK, LEVELS, SEMESTERS, ExamStatus, ExamType

_TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d(\s*-\s*([01]?\d|2[0-3]):[0-5]\d)?$")
_ACADEMIC_YEAR_PATTERN = re.compile(r"^(\d{4})/(\d{4})$")


def _check_level(v: Optional[int]) -> Optional[int]:
    if v is not None and v not in LEVELS:
        raise ValueError(f"Level must be one of {LEVELS}")
    return v


def _not_blank(v: Optional[str]) -> Optional[str]:
    if v is not None:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
    return v


# ============================================
# Faculty
# ============================================

class FacultyBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    campus: Optional[str] = None
    description: Optional[str] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        return _not_blank(v)


class FacultyCreate(FacultyBase):
    pass


class FacultyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    campus: Optional[str] = None
    description: Optional[str] = None


class FacultyResponse(FacultyBase):
    id: str
    created_at: datetime
    department_count: Optional[int] = None

    class Config:
        from_attributes = True


# ============================================
# Department
# ============================================

class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    faculty_id: str
    campus: Optional[str] = None
    description: Optional[str] = None


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    faculty_id: Optional[str] = None
    campus: Optional[str] = None
    description: Optional[str] = None


class DepartmentResponse(BaseModel):
    id: str
    name: str
    faculty_id: str
    faculty_name: Optional[str] = None
    campus: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# ============================================
# Lecture
# ============================================

class LectureBase(BaseModel):
    day: str
    time: str = Field(..., description="HH:MM or HH:MM-HH:MM")
    subject: str = Field(..., min_length=1, max_length=255)
    room: Optional[str] = None
    lecturer: Optional[str] = None
    level: Optional[int] = None
    faculty: Optional[str] = None
    department: Optional[str] = None
    campus: Optional[str] = None
    semester: Optional[str] = None
    academic_year: Optional[str] = None
    color: Optional[str] = Field(None, max_length=20)

    @field_validator('day')
    @classmethod
    def validate_day(cls, v):
        if v is None:
            return v
        v = v.strip().capitalize()
        if v not in DAYS_OF_WEEK:
            raise ValueError(f"Day must be one of {DAYS_OF_WEEK}")
        return v

    @field_validator('time')
    @classmethod
    def validate_time(cls, v):
        if v is not None and not _TIME_PATTERN.match(v.strip()):
            raise ValueError("Time must look like 08:00 or 08:00-10:00")
        return v.strip() if v else v

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        return _check_level(v)

    @field_validator('semester')
    @classmethod
    def validate_semester(cls, v):
        if v is not None and v not in SEMESTERS:
            raise ValueError(f"Semester must be one of {SEMESTERS}")
        return v

    @field_validator('academic_year')
    @classmethod
    def validate_academic_year(cls, v):
        if v is None:
            return v
        match = _ACADEMIC_YEAR_PATTERN.match(v.strip())
        if not match or int(match.group(2)) != int(match.group(1)) + 1:
            raise ValueError("Academic year must look like 2024/2025")
        return v.strip()


class LectureCreate(LectureBase):
    pass


class LectureUpdate(LectureBase):
    day: Optional[str] = None
    time: Optional[str] = None
    subject: Optional[str] = Field(None, min_length=1, max_length=255)


class LectureResponse(LectureBase):
    id: str
    created_at: datetime

    class Config:
        from_attributes = True


class TimetableResponse(BaseModel):
    days: Dict[str, List[LectureResponse]]
    total: int


class LectureBulkDelete(BaseModel):
    """At least one filter is required so a bare request can't wipe the timetable"""
    faculty: Optional[str] = None
    department: Optional[str] = None
    level: Optional[int] = None
    semester: Optional[str] = None
    academic_year: Optional[str] = None


# ============================================
# Exam
# ============================================

class ExamBase(BaseModel):
    course_code: str = Field(..., min_length=2, max_length=20)
    course_title: str = Field(..., min_length=2, max_length=255)
    department: Optional[str] = None
    level: Optional[int] = None
    exam_date: date
    exam_time: Optional[str] = None
    venue: Optional[str] = None
    exam_type: ExamType = ExamType.REGULAR
    status: ExamStatus = ExamStatus.SCHEDULED

    @field_validator('course_code')
    @classmethod
    def normalize_code(cls, v):
        return v.strip().upper() if v else v

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        return _check_level(v)


class ExamCreate(ExamBase):
    pass


class ExamUpdate(BaseModel):
    course_code: Optional[str] = Field(None, min_length=2, max_length=20)
    course_title: Optional[str] = Field(None, min_length=2, max_length=255)
    department: Optional[str] = None
    level: Optional[int] = None
    exam_date: Optional[date] = None
    exam_time: Optional[str] = None
    venue: Optional[str] = None
    exam_type: Optional[ExamType] = None
    status: Optional[ExamStatus] = None

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        return _check_level(v)


class ExamResponse(ExamBase):
    id: str
    created_at: datetime

    class Config:
        from_attributes = True
