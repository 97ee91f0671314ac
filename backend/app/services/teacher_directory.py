from __future__ import annotations

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.models.teacher import Teacher, TeacherCodeCounter

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENT = "General"
DEFAULT_DESIGNATION = "Assistant Professor"
FALLBACK_CODE_PREFIX = "GEN"


def next_teacher_code(db: Session, department: str | None) -> str:
    """Allocate the next ``<DEPT>-NNN`` code for ``department``."""
    prefix = (department or "").strip().upper() or FALLBACK_CODE_PREFIX
    counter = db.get(TeacherCodeCounter, prefix)
    if counter is None:
        counter = TeacherCodeCounter(prefix=prefix, seq=0)
        db.add(counter)
    counter.seq += 1
    db.flush()
    return f"{prefix}-{counter.seq:03d}"


def find_teacher(db: Session, lookup: str) -> Teacher | None:
    """Resolve a teacher by database id, teacher code or username."""
    cleaned = (lookup or "").strip()
    if not cleaned:
        return None
    teacher = db.get(Teacher, cleaned)
    if teacher is not None:
        return teacher
    return db.execute(
        select(Teacher).where(
            or_(
                func.upper(Teacher.teacher_code) == cleaned.upper(),
                func.lower(Teacher.username) == cleaned.lower(),
            )
        )
    ).scalars().first()


def list_teachers(
    db: Session,
    *,
    department: str | None = None,
    is_active: bool | None = None,
    search: str | None = None,
) -> list[Teacher]:
    query = select(Teacher).order_by(Teacher.display_name)
    if department and department.lower() != "all":
        query = query.where(func.lower(Teacher.department) == department.strip().lower())
    if is_active is not None:
        query = query.where(Teacher.is_active.is_(is_active))
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        query = query.where(
            or_(
                func.lower(Teacher.display_name).like(pattern),
                func.lower(Teacher.username).like(pattern),
                func.lower(Teacher.teacher_code).like(pattern),
                func.lower(Teacher.department).like(pattern),
            )
        )
    return list(db.execute(query).scalars())


def group_by_department(teachers: list[Teacher]) -> list[tuple[str, list[Teacher]]]:
    grouped: dict[str, list[Teacher]] = {}
    for teacher in teachers:
        grouped.setdefault(teacher.department or DEFAULT_DEPARTMENT, []).append(teacher)
    return [(department, grouped[department]) for department in sorted(grouped)]


def ensure_teacher_profile(
    db: Session,
    *,
    name: str,
    email: str,
    department: str | None,
    created_by_id: str | None = None,
) -> Teacher:
    """Return the directory entry linked to ``email``, creating it when missing."""
    normalized_email = email.strip().lower()
    teacher = db.execute(
        select(Teacher).where(func.lower(Teacher.email) == normalized_email)
    ).scalar_one_or_none()
    if teacher is None:
        teacher = Teacher(
            teacher_code=next_teacher_code(db, department),
            display_name=name,
            department=department or DEFAULT_DEPARTMENT,
            designation=DEFAULT_DESIGNATION,
            email=normalized_email,
            username=normalized_email.split("@", 1)[0],
            created_by_id=created_by_id,
        )
        db.add(teacher)
        db.flush()
        logger.info("Created teacher profile %s for %s", teacher.teacher_code, normalized_email)
        return teacher

    if not (teacher.display_name or "").strip():
        teacher.display_name = name
    if not (teacher.department or "").strip():
        teacher.department = department or DEFAULT_DEPARTMENT
    return teacher
