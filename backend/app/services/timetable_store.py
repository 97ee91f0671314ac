"""Persistence operations for class timetables.

Services here only ``flush``; the calling route owns the transaction and
commits once the whole request has succeeded.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import math

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.exceptions import DuplicateScheduleError, ResourceNotFoundError
from app.models.timetable import Timetable, TimetableEntry
from app.schemas.timetable import CellAssignmentIn, SlotDefinitionIn
from app.services.class_directory import ensure_class_section
from app.services.slot_assignment import apply_catalog, replace_assignments
from app.services.slot_catalog import build_catalog, day_index, slot_sort_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassIdentity:
    year: str
    branch: str
    section: str
    academic_year: str

    def as_dict(self) -> dict[str, str]:
        return {
            "year": self.year,
            "branch": self.branch,
            "section": self.section,
            "academicYear": self.academic_year,
        }


@dataclass
class TimetablePage:
    items: list[Timetable]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def _catalog_input(items: list[SlotDefinitionIn | str] | None) -> list[str | dict] | None:
    if items is None:
        return None
    return [item.model_dump() if isinstance(item, SlotDefinitionIn) else item for item in items]


def get_by_identity(db: Session, identity: ClassIdentity) -> Timetable | None:
    return db.execute(
        select(Timetable).where(
            Timetable.year == identity.year,
            Timetable.branch == identity.branch,
            Timetable.section == identity.section,
            Timetable.academic_year == identity.academic_year,
        )
    ).scalar_one_or_none()


def create_timetable(
    db: Session,
    *,
    identity: ClassIdentity,
    semester: int,
    time_slots: list[SlotDefinitionIn | str] | None,
    schedule: list[CellAssignmentIn],
    actor_id: str | None,
) -> Timetable:
    existing = get_by_identity(db, identity)
    if existing is not None:
        raise DuplicateScheduleError(identity.as_dict(), existing.id)

    catalog = build_catalog(_catalog_input(time_slots))
    timetable = Timetable(
        year=identity.year,
        branch=identity.branch,
        section=identity.section,
        academic_year=identity.academic_year,
        semester=semester,
        time_slots=[item.as_dict() for item in catalog],
        created_by_id=actor_id,
        last_modified_by_id=actor_id,
    )
    db.add(timetable)
    db.flush()
    ensure_class_section(
        db,
        year=identity.year,
        branch=identity.branch,
        section=identity.section,
        academic_year=identity.academic_year,
        semester=semester,
        created_by_id=actor_id,
    )
    replace_assignments(db, timetable, schedule, actor_id=actor_id)
    db.flush()
    logger.info(
        "Created timetable %s for %s %s-%s (%s)",
        timetable.id,
        identity.year,
        identity.branch,
        identity.section,
        identity.academic_year,
    )
    return timetable


def get_timetable(db: Session, timetable_id: str) -> Timetable:
    timetable = db.get(Timetable, timetable_id)
    if timetable is None:
        raise ResourceNotFoundError("Timetable", timetable_id)
    return timetable


def find_class_timetable(
    db: Session,
    *,
    year: str,
    branch: str,
    section: str,
    published_only: bool = True,
) -> Timetable | None:
    """Latest timetable for a class section across academic years."""
    query = select(Timetable).where(
        Timetable.year == year,
        Timetable.branch == branch.strip().upper(),
        Timetable.section == section.strip().upper(),
    )
    if published_only:
        query = query.where(Timetable.is_published.is_(True))
    query = query.order_by(Timetable.academic_year.desc(), Timetable.created_at.desc())
    return db.execute(query.limit(1)).scalars().first()


def update_timetable(
    db: Session,
    timetable: Timetable,
    *,
    semester: int | None = None,
    time_slots: list[SlotDefinitionIn | str] | None = None,
    schedule: list[CellAssignmentIn] | None = None,
    actor_id: str | None,
) -> Timetable:
    if semester is not None:
        timetable.semester = semester
    if time_slots is not None:
        catalog = build_catalog(_catalog_input(time_slots))
        if schedule is None:
            apply_catalog(db, timetable, catalog)
        else:
            timetable.time_slots = [item.as_dict() for item in catalog]
    if schedule is not None:
        replace_assignments(db, timetable, schedule, actor_id=actor_id)
    timetable.last_modified_by_id = actor_id
    db.flush()
    return timetable


def set_published(timetable: Timetable, published: bool) -> Timetable:
    timetable.is_published = published
    timetable.published_at = datetime.now(timezone.utc) if published else None
    return timetable


def delete_timetable(db: Session, timetable_id: str) -> None:
    timetable = get_timetable(db, timetable_id)
    db.delete(timetable)
    db.flush()
    logger.info("Deleted timetable %s (%s %s-%s)", timetable_id, timetable.year, timetable.branch, timetable.section)


def list_timetables(
    db: Session,
    *,
    year: str | None = None,
    branch: str | None = None,
    section: str | None = None,
    is_published: bool | None = None,
    page: int = 1,
    limit: int = 10,
) -> TimetablePage:
    query = select(Timetable)
    if year:
        query = query.where(Timetable.year == year)
    if branch:
        query = query.where(Timetable.branch == branch.strip().upper())
    if section:
        query = query.where(Timetable.section == section.strip().upper())
    if is_published is not None:
        query = query.where(Timetable.is_published.is_(is_published))

    total = db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
    items = list(
        db.execute(
            query.order_by(Timetable.created_at.desc(), Timetable.id)
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars()
    )
    return TimetablePage(items=items, total=total, page=page, limit=limit)


def find_by_teacher(
    db: Session,
    teacher_id: str,
    *,
    only_published: bool = True,
) -> list[tuple[Timetable, TimetableEntry]]:
    query = (
        select(Timetable, TimetableEntry)
        .join(TimetableEntry, TimetableEntry.timetable_id == Timetable.id)
        .where(TimetableEntry.teacher_id == teacher_id)
    )
    if only_published:
        query = query.where(Timetable.is_published.is_(True))
    rows = [(timetable, entry) for timetable, entry in db.execute(query).all()]
    rows.sort(key=lambda row: (day_index(row[1].day), slot_sort_key(row[1].time_slot), row[0].academic_year))
    return rows


def timetable_stats(db: Session) -> dict:
    total = db.execute(select(func.count(Timetable.id))).scalar_one()
    published = db.execute(
        select(func.count(Timetable.id)).where(Timetable.is_published.is_(True))
    ).scalar_one()
    branch_rows = db.execute(
        select(Timetable.branch, func.count(Timetable.id)).group_by(Timetable.branch)
    ).all()
    return {
        "overview": {
            "total_timetables": total,
            "published_timetables": published,
            "draft_timetables": total - published,
        },
        "branch_stats": [{"branch": branch, "count": count} for branch, count in branch_rows],
    }
