from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_roles
from app.models.teacher import Teacher
from app.models.user import User, UserRole
from app.schemas.teacher import (
    TeacherCreate,
    TeacherGroupedOut,
    TeacherGroupOut,
    TeacherListOut,
    TeacherOut,
    TeacherUpdate,
)
from app.services.teacher_directory import group_by_department, list_teachers, next_teacher_code

router = APIRouter()


def _ensure_unique_contact(db: Session, *, email: str | None, username: str | None, exclude_id: str | None = None) -> None:
    if email:
        query = select(Teacher).where(func.lower(Teacher.email) == email.lower())
        if exclude_id:
            query = query.where(Teacher.id != exclude_id)
        if db.execute(query).scalar_one_or_none() is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Teacher email already exists")
    if username:
        query = select(Teacher).where(func.lower(Teacher.username) == username.lower())
        if exclude_id:
            query = query.where(Teacher.id != exclude_id)
        if db.execute(query).scalar_one_or_none() is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Teacher username already exists")


@router.get("/list", response_model=TeacherListOut)
def list_teacher_directory(
    department: str | None = Query(default=None),
    is_active: bool | None = Query(default=None, alias="isActive"),
    search: str | None = Query(default=None, max_length=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TeacherListOut:
    teachers = list_teachers(db, department=department, is_active=is_active, search=search)
    return TeacherListOut(count=len(teachers), data=teachers)


@router.get("/grouped", response_model=TeacherGroupedOut)
def list_teachers_grouped(
    is_active: bool | None = Query(default=None, alias="isActive"),
    search: str | None = Query(default=None, max_length=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TeacherGroupedOut:
    teachers = list_teachers(db, is_active=is_active, search=search)
    groups = [
        TeacherGroupOut(department=department, teachers=members)
        for department, members in group_by_department(teachers)
    ]
    return TeacherGroupedOut(count=len(teachers), data=groups)


@router.post("", response_model=TeacherOut, status_code=status.HTTP_201_CREATED)
def create_teacher(
    payload: TeacherCreate,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> TeacherOut:
    _ensure_unique_contact(db, email=payload.email, username=payload.username)
    teacher = Teacher(
        **payload.model_dump(),
        teacher_code=next_teacher_code(db, payload.department),
        created_by_id=current_user.id,
    )
    db.add(teacher)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Teacher already exists") from exc
    db.refresh(teacher)
    return teacher


@router.get("/{teacher_id}", response_model=TeacherOut)
def get_teacher(
    teacher_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TeacherOut:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    return teacher


@router.put("/{teacher_id}", response_model=TeacherOut)
def update_teacher(
    teacher_id: str,
    payload: TeacherUpdate,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> TeacherOut:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")

    data = payload.model_dump(exclude_unset=True)
    _ensure_unique_contact(db, email=data.get("email"), username=data.get("username"), exclude_id=teacher_id)
    for key, value in data.items():
        setattr(teacher, key, value)
    db.commit()
    db.refresh(teacher)
    return teacher


@router.delete("/{teacher_id}")
def delete_teacher(
    teacher_id: str,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> dict:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    # Timetable entries keep the stored teacher name and id.
    db.delete(teacher)
    db.commit()
    return {"success": True}
