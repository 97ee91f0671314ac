"""Teacher availability, computed per request from the stored timetables.

Nothing here is cached: every call scans the entries of the requested day so
the answer always reflects the schedule store as committed.
"""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.timetable import AssignmentKind, Timetable, TimetableEntry
from app.services.slot_catalog import slots_collide

KIND_LABELS = {
    AssignmentKind.lecture: "Lecture",
    AssignmentKind.lab: "Lab",
    AssignmentKind.split_lab: "Split Lab (B1/B2)",
    AssignmentKind.lunch: "Lunch",
    AssignmentKind.break_: "Break",
    AssignmentKind.library: "Library",
    AssignmentKind.mini_project: "Mini Project",
    AssignmentKind.mentor: "Mentor",
}


@dataclass(frozen=True)
class BusyTeacher:
    id: str
    name: str | None
    username: str | None
    timetable_id: str
    class_label: str
    class_detail: str

    @property
    def class_info(self) -> str:
        if self.class_detail:
            return f"{self.class_label} ({self.class_detail})".strip()
        return self.class_label.strip()


def class_label(timetable: Timetable) -> str:
    return f"{timetable.year} {timetable.branch}-{timetable.section}"


def class_detail(entry: TimetableEntry) -> str:
    subject = entry.subject_acronym or entry.subject_name or "Class"
    kind = KIND_LABELS.get(entry.kind, "Lecture")
    return f"{subject} • {kind} • {entry.time_slot}"


def occupying_entries(
    db: Session,
    *,
    day: str,
    time_slot: str,
    include_drafts: bool = True,
    exclude_timetable_id: str | None = None,
    year: str | None = None,
    branch: str | None = None,
    section: str | None = None,
) -> list[tuple[TimetableEntry, Timetable]]:
    query = (
        select(TimetableEntry, Timetable)
        .join(Timetable, TimetableEntry.timetable_id == Timetable.id)
        .where(TimetableEntry.day == day, TimetableEntry.teacher_id.is_not(None))
        .order_by(Timetable.created_at, TimetableEntry.position)
    )
    if not include_drafts:
        query = query.where(Timetable.is_published.is_(True))
    if exclude_timetable_id:
        query = query.where(Timetable.id != exclude_timetable_id)
    if year:
        query = query.where(Timetable.year == year)
    if branch:
        query = query.where(Timetable.branch == branch.strip().upper())
    if section:
        query = query.where(Timetable.section == section.strip().upper())

    rows = db.execute(query).all()
    return [(entry, timetable) for entry, timetable in rows if slots_collide(entry.time_slot, time_slot)]


def busy_teacher_details(
    db: Session,
    *,
    day: str,
    time_slot: str,
    include_drafts: bool = True,
    exclude_timetable_id: str | None = None,
    year: str | None = None,
    branch: str | None = None,
    section: str | None = None,
) -> list[BusyTeacher]:
    details: dict[str, BusyTeacher] = {}
    for entry, timetable in occupying_entries(
        db,
        day=day,
        time_slot=time_slot,
        include_drafts=include_drafts,
        exclude_timetable_id=exclude_timetable_id,
        year=year,
        branch=branch,
        section=section,
    ):
        if entry.teacher_id in details:
            continue
        details[entry.teacher_id] = BusyTeacher(
            id=entry.teacher_id,
            name=entry.teacher_name or None,
            username=entry.teacher_username or None,
            timetable_id=timetable.id,
            class_label=class_label(timetable),
            class_detail=class_detail(entry),
        )
    return list(details.values())


def busy_teachers(
    db: Session,
    *,
    day: str,
    time_slot: str,
    include_drafts: bool = True,
    exclude_timetable_id: str | None = None,
) -> set[str]:
    return {
        item.id
        for item in busy_teacher_details(
            db,
            day=day,
            time_slot=time_slot,
            include_drafts=include_drafts,
            exclude_timetable_id=exclude_timetable_id,
        )
    }
