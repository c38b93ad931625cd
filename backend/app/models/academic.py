"""
Academic structure: faculties, departments, lecture timetable entries and exams.

Lectures and exams reference faculty/department by name rather than by key,
so timetables survive a department being renamed or merged.
"""

from sqlalchemy import Column, String, DateTime, Integer, Text, Date, ForeignKey, Enum as SQLEnum, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


DAYS_OF_WEEK = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
LEVELS = [100, 200, 300, 400, 500, 600]
SEMESTERS = ["First Semester", "Second Semester"]


class ExamType(str, enum.Enum):
    REGULAR = "Regular"
    RESIT = "Resit"
    SPECIAL = "Special"


class ExamStatus(str, enum.Enum):
    SCHEDULED = "Scheduled"
    ONGOING = "Ongoing"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class Faculty(Base):
    __tablename__ = "faculties"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), unique=True, nullable=False)
    campus = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    departments = relationship(
        "Department",
        back_populates="faculty",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Faculty {self.name}>"


class Department(Base):
    __tablename__ = "departments"

    __table_args__ = (
        UniqueConstraint('faculty_id', 'name', name='uq_departments_faculty_name'),
        Index('ix_departments_faculty', 'faculty_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    faculty_id = Column(GUID, ForeignKey("faculties.id", ondelete="CASCADE"), nullable=False)
    campus = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    faculty = relationship("Faculty", back_populates="departments")

    def __repr__(self):
        return f"<Department {self.name}>"


class Lecture(Base):
    """One weekly timetable slot"""
    __tablename__ = "lectures"

    __table_args__ = (
        Index('ix_lectures_day', 'day'),
        Index('ix_lectures_scope', 'faculty', 'department', 'level'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    day = Column(String(10), nullable=False)
    time = Column(String(20), nullable=False)  # "08:00" or "08:00-10:00"
    subject = Column(String(255), nullable=False)
    room = Column(String(100), nullable=True)
    lecturer = Column(String(255), nullable=True)
    level = Column(Integer, nullable=True)
    faculty = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True)
    campus = Column(String(100), nullable=True)
    semester = Column(String(20), nullable=True)
    academic_year = Column(String(9), nullable=True)  # "2024/2025"
    color = Column(String(20), nullable=True)

    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Lecture {self.subject} {self.day} {self.time}>"


class Exam(Base):
    __tablename__ = "exams"

    __table_args__ = (
        Index('ix_exams_date', 'exam_date'),
        Index('ix_exams_department_level', 'department', 'level'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    course_code = Column(String(20), nullable=False)
    course_title = Column(String(255), nullable=False)
    department = Column(String(255), nullable=True)
    level = Column(Integer, nullable=True)
    exam_date = Column(Date, nullable=False)
    exam_time = Column(String(20), nullable=True)
    venue = Column(String(255), nullable=True)
    exam_type = Column(SQLEnum(ExamType), default=ExamType.REGULAR, nullable=False)
    status = Column(SQLEnum(ExamStatus), default=ExamStatus.SCHEDULED, nullable=False)

    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Exam {self.course_code} on {self.exam_date}>"
