from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.models.subject import Subject, SubjectType
from app.models.user import User, UserRole
from app.schemas.subject import SubjectCreate, SubjectOut, SubjectUpdate

router = APIRouter()

DUPLICATE_SUBJECT_DETAIL = "Subject code already exists for this year and semester"


def _find_duplicate(db: Session, *, code: str, year: int, semester: int, exclude_id: str | None = None) -> Subject | None:
    query = select(Subject).where(Subject.code == code, Subject.year == year, Subject.semester == semester)
    if exclude_id:
        query = query.where(Subject.id != exclude_id)
    return db.execute(query).scalar_one_or_none()


@router.get("", response_model=list[SubjectOut])
def list_subjects(
    branch: str | None = Query(default=None, max_length=50),
    year: int | None = Query(default=None, ge=1, le=4),
    semester: int | None = Query(default=None, ge=1, le=8),
    subject_type: SubjectType | None = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
) -> list[SubjectOut]:
    query = select(Subject).where(Subject.is_active.is_(True)).order_by(Subject.year, Subject.semester, Subject.code)
    if year is not None:
        query = query.where(Subject.year == year)
    if semester is not None:
        query = query.where(Subject.semester == semester)
    if subject_type is not None:
        query = query.where(Subject.type == subject_type)
    subjects = list(db.execute(query).scalars())
    if branch and branch.lower() != "all":
        wanted = branch.strip().upper()
        # An empty branch list means the subject is offered to every branch.
        subjects = [item for item in subjects if not item.branches or wanted in item.branches]
    return subjects


@router.post("", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def create_subject(
    payload: SubjectCreate,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> SubjectOut:
    if _find_duplicate(db, code=payload.code, year=payload.year, semester=payload.semester):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_SUBJECT_DETAIL)
    subject = Subject(**payload.model_dump(), created_by_id=current_user.id)
    db.add(subject)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_SUBJECT_DETAIL) from exc
    db.refresh(subject)
    return subject


@router.put("/{subject_id}", response_model=SubjectOut)
def update_subject(
    subject_id: str,
    payload: SubjectUpdate,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> SubjectOut:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")

    data = payload.model_dump(exclude_unset=True)
    code = data.get("code", subject.code)
    year = data.get("year", subject.year)
    semester = data.get("semester", subject.semester)
    if _find_duplicate(db, code=code, year=year, semester=semester, exclude_id=subject_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_SUBJECT_DETAIL)

    for key, value in data.items():
        setattr(subject, key, value)
    db.commit()
    db.refresh(subject)
    return subject


@router.delete("/{subject_id}")
def delete_subject(
    subject_id: str,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> dict:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    db.delete(subject)
    db.commit()
    return {"success": True}
