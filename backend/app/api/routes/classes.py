from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.models.class_section import ClassSection
from app.models.teacher import Teacher
from app.models.user import User, UserRole
from app.schemas.class_section import ClassOptionsOut, ClassSectionCreate, ClassSectionOut, ClassSectionUpdate
from app.schemas.timetable import normalize_year
from app.services.class_directory import class_options, find_class, list_classes

router = APIRouter()

DUPLICATE_CLASS_DETAIL = "Class section already exists for this academic year"


def _get_class(db: Session, class_id: str) -> ClassSection:
    record = db.get(ClassSection, class_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    return record


def _check_class_teacher(db: Session, teacher_id: str | None) -> None:
    if teacher_id and db.get(Teacher, teacher_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Class teacher not found")


@router.get("/options", response_model=ClassOptionsOut)
def get_class_options(db: Session = Depends(get_db)) -> ClassOptionsOut:
    return ClassOptionsOut(**class_options(db))


@router.get("", response_model=list[ClassSectionOut])
def list_class_sections(
    year: str | None = Query(default=None),
    branch: str | None = Query(default=None, max_length=50),
    section: str | None = Query(default=None, max_length=10),
    db: Session = Depends(get_db),
) -> list[ClassSectionOut]:
    if year:
        try:
            year = normalize_year(year)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return list_classes(db, year=year, branch=branch, section=section)


@router.get("/{class_id}", response_model=ClassSectionOut)
def get_class_section(class_id: str, db: Session = Depends(get_db)) -> ClassSectionOut:
    return _get_class(db, class_id)


@router.post("", response_model=ClassSectionOut, status_code=status.HTTP_201_CREATED)
def create_class_section(
    payload: ClassSectionCreate,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> ClassSectionOut:
    existing = find_class(
        db,
        year=payload.year,
        branch=payload.branch,
        section=payload.section,
        academic_year=payload.academic_year,
    )
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_CLASS_DETAIL)
    _check_class_teacher(db, payload.class_teacher_id)

    record = ClassSection(**payload.model_dump(), created_by_id=current_user.id)
    db.add(record)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_CLASS_DETAIL) from exc
    db.refresh(record)
    return record


@router.put("/{class_id}", response_model=ClassSectionOut)
def update_class_section(
    class_id: str,
    payload: ClassSectionUpdate,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> ClassSectionOut:
    record = _get_class(db, class_id)
    data = payload.model_dump(exclude_unset=True)
    if "class_teacher_id" in data:
        _check_class_teacher(db, data["class_teacher_id"])
    for key, value in data.items():
        setattr(record, key, value)
    db.commit()
    db.refresh(record)
    return record


@router.delete("/{class_id}")
def delete_class_section(
    class_id: str,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> dict:
    db.delete(_get_class(db, class_id))
    db.commit()
    return {"success": True}
