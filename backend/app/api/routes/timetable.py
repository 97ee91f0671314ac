from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, get_optional_user, require_roles
from app.core.config import get_settings
from app.core.exceptions import DuplicateScheduleError, ScheduleValidationError
from app.models.timetable import Timetable
from app.models.user import User, UserRole
from app.schemas.timetable import (
    BusyTeacherOut,
    CellUpdate,
    ClashOut,
    PaginationOut,
    PublishRequest,
    RevisionEntry,
    SlotDefinitionOut,
    TeacherGridOut,
    TeacherScheduleEntryOut,
    TeacherScheduleMetaOut,
    TeacherSummaryOut,
    TeacherTimetableOut,
    TimetableCreate,
    TimetableListOut,
    TimetableLookupOut,
    TimetableOut,
    TimetableStatsOut,
    TimetableUpdate,
    normalize_year,
)
from app.services import publication, timetable_store
from app.services.availability import busy_teacher_details
from app.services.slot_assignment import assign, build_cells, unassign
from app.services.slot_catalog import (
    DAY_ORDER,
    catalog_from_stored,
    default_catalog,
    normalize_day,
    resolve_slot,
    slot_sort_key,
)
from app.services.teacher_directory import find_teacher

router = APIRouter()
logger = logging.getLogger(__name__)

settings = get_settings()

NO_PUBLISHED_TIMETABLE = "No published timetable yet"


def serialize_timetable(timetable: Timetable) -> TimetableOut:
    catalog = catalog_from_stored(timetable.time_slots)
    return TimetableOut(
        id=timetable.id,
        year=timetable.year,
        branch=timetable.branch,
        section=timetable.section,
        semester=timetable.semester,
        academic_year=timetable.academic_year,
        days=list(DAY_ORDER),
        time_slots=[SlotDefinitionOut(**item.as_dict()) for item in catalog],
        schedule=build_cells(timetable),
        is_published=timetable.is_published,
        published_at=timetable.published_at,
        published_version=timetable.published_version,
        revision_history=[RevisionEntry.model_validate(item) for item in timetable.revision_history or []],
        created_by=timetable.created_by_id,
        last_modified_by=timetable.last_modified_by_id,
        created_at=timetable.created_at,
        updated_at=timetable.updated_at,
    )


def _year_param(value: str) -> str:
    try:
        return normalize_year(value)
    except ValueError as exc:
        raise ScheduleValidationError(str(exc)) from exc


def _lookup(timetable: Timetable | None) -> TimetableLookupOut:
    if timetable is None:
        return TimetableLookupOut(data=None, message=NO_PUBLISHED_TIMETABLE)
    return TimetableLookupOut(data=serialize_timetable(timetable))


@router.get("", response_model=TimetableListOut)
def list_timetables(
    year: str | None = Query(default=None),
    branch: str | None = Query(default=None, max_length=50),
    section: str | None = Query(default=None, max_length=10),
    is_published: bool | None = Query(default=None, alias="isPublished"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> TimetableListOut:
    result = timetable_store.list_timetables(
        db,
        year=_year_param(year) if year else None,
        branch=branch,
        section=section,
        is_published=is_published,
        page=page,
        limit=limit,
    )
    return TimetableListOut(
        count=len(result.items),
        total=result.total,
        pagination=PaginationOut(page=result.page, limit=result.limit, pages=result.pages),
        data=[serialize_timetable(item) for item in result.items],
    )


@router.post("", response_model=TimetableOut, status_code=status.HTTP_201_CREATED)
def create_timetable(
    payload: TimetableCreate,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> TimetableOut:
    identity = timetable_store.ClassIdentity(
        year=payload.year,
        branch=payload.branch,
        section=payload.section,
        academic_year=payload.academic_year,
    )
    timetable = timetable_store.create_timetable(
        db,
        identity=identity,
        semester=payload.semester,
        time_slots=payload.time_slots,
        schedule=payload.schedule,
        actor_id=current_user.id,
    )
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        existing = timetable_store.get_by_identity(db, identity)
        raise DuplicateScheduleError(identity.as_dict(), existing.id if existing else "") from exc
    db.refresh(timetable)
    return serialize_timetable(timetable)


@router.get("/stats", response_model=TimetableStatsOut)
def timetable_stats(
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> TimetableStatsOut:
    return TimetableStatsOut.model_validate(timetable_store.timetable_stats(db))


@router.get("/clash", response_model=ClashOut)
def teacher_clash(
    day: str = Query(...),
    slot_key: str | None = Query(default=None, alias="slotKey"),
    time_slot: str | None = Query(default=None, alias="timeSlot"),
    exclude_timetable_id: str | None = Query(default=None, alias="excludeTimetableId"),
    include_drafts: bool = Query(default=True, alias="includeDrafts"),
    year: str | None = Query(default=None),
    branch: str | None = Query(default=None, max_length=50),
    section: str | None = Query(default=None, max_length=10),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ClashOut:
    day = normalize_day(day)
    label = (time_slot or "").strip()
    if not label:
        if not slot_key:
            raise ScheduleValidationError("Either slotKey or timeSlot is required")
        catalog = default_catalog()
        if exclude_timetable_id:
            catalog = catalog_from_stored(timetable_store.get_timetable(db, exclude_timetable_id).time_slots)
        label = resolve_slot(catalog, slot_key).label

    busy = busy_teacher_details(
        db,
        day=day,
        time_slot=label,
        include_drafts=include_drafts,
        exclude_timetable_id=exclude_timetable_id,
        year=_year_param(year) if year else None,
        branch=branch,
        section=section,
    )
    return ClashOut(
        day=day,
        time_slot=label,
        busy_teachers=[item.id for item in busy],
        busy_teacher_usernames=[item.username for item in busy if item.username],
        busy_teachers_details=[
            BusyTeacherOut(
                id=item.id,
                name=item.name,
                username=item.username,
                class_label=item.class_label,
                class_detail=item.class_detail,
                class_info=item.class_info,
                timetable_id=item.timetable_id,
            )
            for item in busy
        ],
    )


@router.get("/view", response_model=TimetableLookupOut)
def view_published_timetable(
    year: str = Query(...),
    branch: str = Query(..., min_length=1, max_length=50),
    section: str = Query(..., min_length=1, max_length=10),
    current_user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> TimetableLookupOut:
    role = current_user.role if current_user else None
    timetable = timetable_store.find_class_timetable(
        db,
        year=_year_param(year),
        branch=branch,
        section=section,
        published_only=role != UserRole.coordinator,
    )
    if timetable is not None and not publication.is_visible_to(timetable, role):
        timetable = None
    return _lookup(timetable)


@router.get("/class", response_model=TimetableOut)
def get_class_timetable(
    year: str = Query(...),
    branch: str = Query(..., min_length=1, max_length=50),
    section: str = Query(..., min_length=1, max_length=10),
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> TimetableOut:
    timetable = timetable_store.find_class_timetable(
        db,
        year=_year_param(year),
        branch=branch,
        section=section,
        published_only=False,
    )
    if timetable is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Timetable not found for this class")
    return serialize_timetable(timetable)


@router.get("/teacher/{teacher_lookup}", response_model=TeacherTimetableOut)
def get_teacher_timetable(teacher_lookup: str, db: Session = Depends(get_db)) -> TeacherTimetableOut:
    teacher = find_teacher(db, teacher_lookup)
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")

    flat: list[TeacherScheduleEntryOut] = []
    classes: list[str] = []
    academic_years: list[str] = []
    for timetable, entry in timetable_store.find_by_teacher(db, teacher.id, only_published=True):
        flat.append(
            TeacherScheduleEntryOut(
                timetable_id=timetable.id,
                academic_year=timetable.academic_year,
                semester=timetable.semester,
                branch=timetable.branch,
                year=timetable.year,
                section=timetable.section,
                day=entry.day,
                slot_key=entry.slot_key,
                time_slot=entry.time_slot,
                subject=entry.subject_name or entry.subject_acronym or "",
                class_label=f"{timetable.year} {timetable.branch} {timetable.section}",
                room=entry.room or "",
                kind=entry.kind,
                batch=entry.batch,
                is_continuation=entry.is_continuation,
            )
        )
        class_name = f"{timetable.year} {timetable.branch} {timetable.section} ({timetable.academic_year})"
        if class_name not in classes:
            classes.append(class_name)
        academic_years.append(timetable.academic_year)

    days = [day for day in DAY_ORDER if any(item.day == day for item in flat)]
    time_slots = sorted({item.time_slot for item in flat}, key=slot_sort_key)
    grid: dict[str, dict[str, list[TeacherScheduleEntryOut]]] = {
        day: {label: [] for label in time_slots} for day in days
    }
    for item in flat:
        grid[item.day][item.time_slot].append(item)

    return TeacherTimetableOut(
        teacher=TeacherSummaryOut(
            id=teacher.id,
            name=teacher.display_name,
            department=teacher.department,
            teacher_code=teacher.teacher_code,
        ),
        meta=TeacherScheduleMetaOut(
            latest_academic_year=max(academic_years) if academic_years else "",
            classes=classes,
        ),
        grid=TeacherGridOut(days=days, time_slots=time_slots, schedule=grid),
        flat=flat,
    )


@router.get("/{branch}/{section}", response_model=TimetableLookupOut)
def get_student_timetable(
    branch: str,
    section: str,
    year: str = Query(...),
    db: Session = Depends(get_db),
) -> TimetableLookupOut:
    timetable = timetable_store.find_class_timetable(
        db,
        year=_year_param(year),
        branch=branch,
        section=section,
        published_only=True,
    )
    return _lookup(timetable)


@router.get("/{timetable_id}", response_model=TimetableOut)
def get_timetable(
    timetable_id: str,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> TimetableOut:
    return serialize_timetable(timetable_store.get_timetable(db, timetable_id))


@router.put("/{timetable_id}", response_model=TimetableOut)
def update_timetable(
    timetable_id: str,
    payload: TimetableUpdate,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> TimetableOut:
    timetable = timetable_store.get_timetable(db, timetable_id)
    timetable_store.update_timetable(
        db,
        timetable,
        semester=payload.semester,
        time_slots=payload.time_slots,
        schedule=payload.schedule,
        actor_id=current_user.id,
    )
    publication.announce_update(db, timetable, actor_id=current_user.id)
    db.commit()
    db.refresh(timetable)
    return serialize_timetable(timetable)


@router.put("/{timetable_id}/cells", response_model=TimetableOut)
def assign_cell(
    timetable_id: str,
    payload: CellUpdate,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> TimetableOut:
    timetable = timetable_store.get_timetable(db, timetable_id)
    assign(
        db,
        timetable,
        day=payload.day,
        slot=payload.slot,
        proposed=payload.assignment,
        actor_id=current_user.id,
    )
    db.commit()
    db.refresh(timetable)
    return serialize_timetable(timetable)


@router.delete("/{timetable_id}/cells", response_model=TimetableOut)
def clear_cell(
    timetable_id: str,
    day: str = Query(...),
    slot: str = Query(...),
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> TimetableOut:
    timetable = timetable_store.get_timetable(db, timetable_id)
    unassign(timetable, day=day, slot=slot, actor_id=current_user.id)
    db.commit()
    db.refresh(timetable)
    return serialize_timetable(timetable)


@router.put("/{timetable_id}/publish", response_model=TimetableOut)
def set_publish_state(
    timetable_id: str,
    payload: PublishRequest,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> TimetableOut:
    timetable = timetable_store.get_timetable(db, timetable_id)
    if payload.is_published:
        publication.publish(db, timetable, actor_id=current_user.id)
    else:
        publication.unpublish(db, timetable, actor_id=current_user.id)
    db.commit()
    db.refresh(timetable)
    return serialize_timetable(timetable)


@router.delete("/{timetable_id}")
def delete_timetable(
    timetable_id: str,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> dict:
    timetable_store.delete_timetable(db, timetable_id)
    db.commit()
    return {"success": True, "message": "Timetable deleted successfully"}
