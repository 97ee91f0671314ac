"""Baseline directory data: the coordinator account, CSE faculty, subjects and class sections.

Every upsert is keyed on a natural identifier, so seeding twice leaves the
directory unchanged.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.security import get_password_hash
from app.models.subject import Subject, SubjectType
from app.models.teacher import Teacher
from app.models.user import User, UserRole
from app.schemas.timetable import YEAR_VALUES
from app.services.class_directory import ensure_class_section, find_class
from app.services.teacher_directory import next_teacher_code

logger = logging.getLogger(__name__)

COORDINATOR_PROFILE = {
    "name": "System Coordinator",
    "email": "coordinator@college.edu",
    "department": "Administration",
}

FACULTY_DEPARTMENT = "CSE"
FACULTY_EMAIL_DOMAIN = "college.edu"

# (username, display name, designation)
CSE_FACULTY = [
    ("sonali.mathur", "Dr. Sonali Mathur", "Professor, HOD"),
    ("prabhat.srivastava", "Dr. Prabhat Kumar Srivastava", "Professor"),
    ("amit.chugh", "Dr. Amit Chugh", "Associate Professor"),
    ("meenu.sharma", "Ms. Meenu Sharma", "Associate Professor"),
    ("atul.kumar", "Mr. Atul Kumar", "Assistant Professor"),
    ("piyoush.kumar", "Mr. Piyoush Kumar", "Assistant Professor"),
    ("krishan.kumar", "Mr. Krishan Kumar", "Assistant Professor"),
    ("subhajit.ghosh", "Dr. Subhajit Ghosh", "Professor"),
    ("sumit.singh", "Dr. Sumit Kumar Singh", "Assistant Professor"),
    ("avdhesh.gupta", "Dr. Avdhesh Gupta", "Associate Professor"),
    ("ajay.kumar", "Dr. Ajay Kumar", "Associate Professor"),
    ("ravi.sharma", "Dr. Ravi Sharma", "Assistant Professor"),
]

# (code, acronym, name, year, semester, credit hours, type)
CSE_SUBJECTS = [
    ("BAS101", "PHY", "Engineering Physics", 1, 1, 4, SubjectType.theory),
    ("BAS102", "CHEM", "Engineering Chemistry", 1, 1, 4, SubjectType.theory),
    ("BAS103", "MATH1", "Engineering Mathematics-I", 1, 1, 4, SubjectType.theory),
    ("BEE101", "FEE", "Fundamentals of Electrical Engineering", 1, 1, 3, SubjectType.theory),
    ("BCS101", "PPS", "Programming for Problem Solving", 1, 1, 4, SubjectType.theory),
    ("BAS104", "ENV", "Environment and Ecology", 1, 1, 2, SubjectType.theory),
    ("BAS201", "PHY", "Engineering Physics", 1, 2, 4, SubjectType.theory),
    ("BAS203", "MATH2", "Engineering Mathematics-II", 1, 2, 4, SubjectType.theory),
    ("BCS201", "PPS", "Programming for Problem Solving", 1, 2, 4, SubjectType.theory),
    ("BVE301", "UHV", "Universal Human Value and Professional Ethics", 2, 3, 2, SubjectType.theory),
    ("BAS301", "TC", "Technical Communication", 2, 3, 2, SubjectType.theory),
    ("BCS301", "DS", "Data Structure", 2, 3, 4, SubjectType.theory),
    ("BCS351", "DSL", "Data Structure Lab", 2, 3, 1, SubjectType.lab),
]

CLASS_BRANCHES = ("CSE",)
CLASS_SECTIONS = ("A", "B")


@dataclass
class SeedSummary:
    created: dict[str, int] = field(default_factory=lambda: {"users": 0, "teachers": 0, "subjects": 0, "classes": 0})

    def bump(self, kind: str) -> None:
        self.created[kind] += 1


def upsert_coordinator(db: Session, *, password: str, reset_password: bool, summary: SeedSummary) -> User:
    email = COORDINATOR_PROFILE["email"]
    user = db.execute(select(User).where(func.lower(User.email) == email)).scalar_one_or_none()
    if user is None:
        user = User(
            name=COORDINATOR_PROFILE["name"],
            email=email,
            hashed_password=get_password_hash(password),
            role=UserRole.coordinator,
            department=COORDINATOR_PROFILE["department"],
            is_active=True,
        )
        db.add(user)
        db.flush()
        summary.bump("users")
    elif reset_password:
        user.hashed_password = get_password_hash(password)
    return user


def upsert_faculty(db: Session, *, created_by_id: str | None, summary: SeedSummary) -> list[Teacher]:
    teachers: list[Teacher] = []
    for username, display_name, designation in CSE_FACULTY:
        teacher = db.execute(select(Teacher).where(Teacher.username == username)).scalar_one_or_none()
        if teacher is None:
            teacher = Teacher(
                teacher_code=next_teacher_code(db, FACULTY_DEPARTMENT),
                display_name=display_name,
                department=FACULTY_DEPARTMENT,
                designation=designation,
                email=f"{username}@{FACULTY_EMAIL_DOMAIN}",
                username=username,
                created_by_id=created_by_id,
            )
            db.add(teacher)
            db.flush()
            summary.bump("teachers")
        else:
            teacher.display_name = display_name
            teacher.designation = designation
        teachers.append(teacher)
    return teachers


def upsert_subjects(db: Session, *, created_by_id: str | None, summary: SeedSummary) -> None:
    for code, acronym, name, year, semester, credit_hours, subject_type in CSE_SUBJECTS:
        subject = db.execute(
            select(Subject).where(Subject.code == code, Subject.year == year, Subject.semester == semester)
        ).scalar_one_or_none()
        if subject is None:
            db.add(
                Subject(
                    code=code,
                    acronym=acronym,
                    name=name,
                    year=year,
                    semester=semester,
                    credit_hours=credit_hours,
                    type=subject_type,
                    branches=["CSE"],
                    created_by_id=created_by_id,
                )
            )
            summary.bump("subjects")
        else:
            subject.name = name
            subject.acronym = acronym
            subject.credit_hours = credit_hours
            subject.type = subject_type
    db.flush()


def upsert_class_sections(db: Session, *, academic_year: str, created_by_id: str | None, summary: SeedSummary) -> None:
    for index, year in enumerate(YEAR_VALUES):
        for branch in CLASS_BRANCHES:
            for section in CLASS_SECTIONS:
                if find_class(db, year=year, branch=branch, section=section, academic_year=academic_year):
                    continue
                ensure_class_section(
                    db,
                    year=year,
                    branch=branch,
                    section=section,
                    academic_year=academic_year,
                    semester=index * 2 + 1,
                    created_by_id=created_by_id,
                )
                summary.bump("classes")


def seed_directory(
    db: Session,
    *,
    password: str,
    academic_year: str,
    reset_password: bool = False,
) -> SeedSummary:
    summary = SeedSummary()
    coordinator = upsert_coordinator(db, password=password, reset_password=reset_password, summary=summary)
    upsert_faculty(db, created_by_id=coordinator.id, summary=summary)
    upsert_subjects(db, created_by_id=coordinator.id, summary=summary)
    upsert_class_sections(db, academic_year=academic_year, created_by_id=coordinator.id, summary=summary)
    logger.info("Directory seed created %s", summary.created)
    return summary
