from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
import logging
import uuid
from typing import Iterable

from sqlalchemy.orm import Session

from app.core.exceptions import (
    AppError,
    ScheduleValidationError,
    SlotUnavailableError,
    TeacherConflictError,
)
from app.models.teacher import Teacher
from app.models.timetable import (
    ACADEMIC_KINDS,
    TWO_SLOT_KINDS,
    AssignmentKind,
    Timetable,
    TimetableEntry,
)
from app.schemas.timetable import (
    AssignmentIn,
    CellAssignmentIn,
    ParallelSessionOut,
    ScheduleCellOut,
    SubjectRef,
    TeacherRef,
)
from app.services.availability import busy_teacher_details
from app.services.slot_catalog import (
    DAY_ORDER,
    SlotDefinition,
    catalog_from_stored,
    day_index,
    next_slot,
    normalize_day,
    resolve_slot,
    slots_collide,
)

logger = logging.getLogger(__name__)

LUNCH_SUBJECT = SubjectRef(acronym="LUNCH", name="Lunch Break")
SPLIT_LAB_BATCHES = 2


@dataclass(frozen=True)
class PlannedSession:
    batch: str | None
    subject: SubjectRef
    teacher: TeacherRef
    room: str | None


def _position(day: str, catalog: list[SlotDefinition], slot_key: str, batch_order: int = 0) -> int:
    keys = [item.key for item in catalog]
    return DAY_ORDER.index(day) * 1000 + keys.index(slot_key) * 10 + batch_order


def entries_at(timetable: Timetable, day: str, slot_key: str) -> list[TimetableEntry]:
    return [entry for entry in timetable.entries if entry.day == day and entry.slot_key == slot_key]


def _cell_with_groups(timetable: Timetable, cells: Iterable[tuple[str, str]]) -> list[TimetableEntry]:
    """Entries at the given cells plus every entry sharing a lab group with them."""
    wanted = set(cells)
    direct = [entry for entry in timetable.entries if (entry.day, entry.slot_key) in wanted]
    group_ids = {entry.group_id for entry in direct if entry.group_id}
    return [
        entry
        for entry in timetable.entries
        if (entry.day, entry.slot_key) in wanted or (entry.group_id and entry.group_id in group_ids)
    ]


def _release(timetable: Timetable, cells: Iterable[tuple[str, str]]) -> None:
    for entry in _cell_with_groups(timetable, cells):
        timetable.entries.remove(entry)


def _entry_signature(values: dict) -> tuple:
    return (
        values["day"],
        values["slot_key"],
        values["batch"] or "",
        values["kind"],
        values["subject_acronym"] or "",
        values["subject_code"] or "",
        values["subject_name"] or "",
        values["teacher_id"] or "",
        values["teacher_name"] or "",
        values["room"] or "",
        values["is_continuation"],
    )


def _existing_signature(entries: list[TimetableEntry]) -> list[tuple]:
    return sorted(
        _entry_signature(
            {
                "day": entry.day,
                "slot_key": entry.slot_key,
                "batch": entry.batch,
                "kind": entry.kind,
                "subject_acronym": entry.subject_acronym,
                "subject_code": entry.subject_code,
                "subject_name": entry.subject_name,
                "teacher_id": entry.teacher_id,
                "teacher_name": entry.teacher_name,
                "room": entry.room,
                "is_continuation": entry.is_continuation,
            }
        )
        for entry in entries
    )


def _resolve_teacher(db: Session, teacher: TeacherRef | None) -> TeacherRef:
    if teacher is None or teacher.is_empty:
        return TeacherRef()
    if teacher.id is None:
        return teacher
    record = db.get(Teacher, teacher.id)
    if record is None:
        if not teacher.name:
            raise ScheduleValidationError(
                "Teacher name is required",
                details={"teacher_id": teacher.id},
            )
        return teacher
    return TeacherRef(
        id=record.id,
        name=teacher.name or record.display_name,
        username=teacher.username or record.username or "",
    )


def _plan_sessions(db: Session, proposed: AssignmentIn) -> list[PlannedSession]:
    kind = proposed.kind
    subject = proposed.subject or SubjectRef()

    if kind == AssignmentKind.split_lab:
        sessions = proposed.parallel_sessions
        if len(sessions) != SPLIT_LAB_BATCHES:
            raise ScheduleValidationError("Split lab requires exactly two parallel sessions")
        batches = [item.batch for item in sessions]
        if len(set(batches)) != len(batches):
            raise ScheduleValidationError("Split lab batches must have distinct labels", details={"batches": batches})
        planned: list[PlannedSession] = []
        for item in sessions:
            session_subject = item.subject if item.subject is not None and not item.subject.is_empty else subject
            if session_subject.is_empty:
                raise ScheduleValidationError(f"Subject is required for batch {item.batch}")
            teacher = _resolve_teacher(db, item.teacher)
            if teacher.is_empty:
                raise ScheduleValidationError(f"Teacher is required for batch {item.batch}")
            planned.append(
                PlannedSession(
                    batch=item.batch,
                    subject=session_subject,
                    teacher=teacher,
                    room=item.room or proposed.room,
                )
            )
        return planned

    teacher = _resolve_teacher(db, proposed.teacher)
    if kind in ACADEMIC_KINDS:
        if subject.is_empty:
            raise ScheduleValidationError("Subject is required")
        if teacher.is_empty:
            raise ScheduleValidationError("Teacher is required")
    if kind == AssignmentKind.break_:
        teacher = TeacherRef()
    return [PlannedSession(batch=None, subject=subject, teacher=teacher, room=proposed.room)]


def _planned_entry_values(
    catalog: list[SlotDefinition],
    day: str,
    span: list[SlotDefinition],
    kind: AssignmentKind,
    sessions: list[PlannedSession],
    group_id: str | None,
) -> list[dict]:
    values: list[dict] = []
    for span_index, definition in enumerate(span):
        for batch_order, session in enumerate(sessions):
            values.append(
                {
                    "day": day,
                    "slot_key": definition.key,
                    "time_slot": definition.label,
                    "position": _position(day, catalog, definition.key, batch_order),
                    "kind": kind,
                    "subject_acronym": session.subject.acronym or None,
                    "subject_code": session.subject.code or None,
                    "subject_name": session.subject.name or session.subject.acronym or None,
                    "teacher_id": session.teacher.id,
                    "teacher_name": session.teacher.name or None,
                    "teacher_username": session.teacher.username or None,
                    "room": session.room,
                    "batch": session.batch,
                    "group_id": group_id,
                    "is_continuation": span_index > 0,
                }
            )
    return values


def _own_conflicts(
    timetable: Timetable,
    *,
    day: str,
    span: list[SlotDefinition],
    sessions: list[PlannedSession],
    replaced: list[TimetableEntry],
) -> list[dict]:
    replaced_ids = {id(entry) for entry in replaced}
    teacher_ids = {session.teacher.id for session in sessions if session.teacher.id}
    conflicts: list[dict] = []
    for entry in timetable.entries:
        if id(entry) in replaced_ids or entry.day != day or entry.teacher_id not in teacher_ids:
            continue
        for definition in span:
            if slots_collide(entry.time_slot, definition.label):
                conflicts.append(
                    {
                        "teacher_id": entry.teacher_id,
                        "teacher_name": entry.teacher_name,
                        "day": day,
                        "slot_key": definition.key,
                        "time_slot": definition.label,
                        "timetable_id": timetable.id,
                        "class_info": f"{timetable.year} {timetable.branch}-{timetable.section}",
                    }
                )
    return conflicts


def _cross_conflicts(
    db: Session,
    timetable: Timetable,
    *,
    day: str,
    span: list[SlotDefinition],
    sessions: list[PlannedSession],
) -> list[dict]:
    teacher_ids = {session.teacher.id for session in sessions if session.teacher.id}
    if not teacher_ids:
        return []
    conflicts: list[dict] = []
    for definition in span:
        for busy in busy_teacher_details(
            db,
            day=day,
            time_slot=definition.label,
            include_drafts=True,
            exclude_timetable_id=timetable.id,
        ):
            if busy.id not in teacher_ids:
                continue
            conflicts.append(
                {
                    "teacher_id": busy.id,
                    "teacher_name": busy.name,
                    "day": day,
                    "slot_key": definition.key,
                    "time_slot": definition.label,
                    "timetable_id": busy.timetable_id,
                    "class_info": busy.class_info,
                }
            )
    return conflicts


def _assign_lunch(timetable: Timetable, catalog: list[SlotDefinition], definition: SlotDefinition) -> bool:
    wanted = [
        _entry_signature(
            {
                "day": day,
                "slot_key": definition.key,
                "batch": None,
                "kind": AssignmentKind.lunch,
                "subject_acronym": LUNCH_SUBJECT.acronym,
                "subject_code": None,
                "subject_name": LUNCH_SUBJECT.name,
                "teacher_id": None,
                "teacher_name": None,
                "room": None,
                "is_continuation": False,
            }
        )
        for day in DAY_ORDER
    ]
    cells = [(day, definition.key) for day in DAY_ORDER]
    if _existing_signature(_cell_with_groups(timetable, cells)) == sorted(wanted):
        return False

    _release(timetable, cells)
    for day in DAY_ORDER:
        timetable.entries.append(
            TimetableEntry(
                day=day,
                slot_key=definition.key,
                time_slot=definition.label,
                position=_position(day, catalog, definition.key),
                kind=AssignmentKind.lunch,
                subject_acronym=LUNCH_SUBJECT.acronym,
                subject_name=LUNCH_SUBJECT.name,
            )
        )
    return True


def assign(
    db: Session,
    timetable: Timetable,
    *,
    day: str,
    slot: str,
    proposed: AssignmentIn,
    actor_id: str | None = None,
) -> Timetable:
    """Validate ``proposed`` and write it into the cell at ``day``/``slot``.

    Lunch fills the slot on every day. Labs and split labs take the slot and
    the one after it; the second cell is stored as a continuation sharing the
    group id of the first. Any teacher already holding a colliding slot in
    another timetable (published or draft) rejects the whole assignment.
    Re-submitting what the cell already holds is a no-op.
    """
    day = normalize_day(day)
    catalog = catalog_from_stored(timetable.time_slots)
    definition = resolve_slot(catalog, slot)

    if proposed.kind == AssignmentKind.lunch:
        if _assign_lunch(timetable, catalog, definition):
            timetable.last_modified_by_id = actor_id
        return timetable

    current = entries_at(timetable, day, definition.key)
    if any(entry.is_continuation for entry in current):
        raise ScheduleValidationError(
            "This slot continues a two-slot session; edit the session's first slot instead",
            details={"day": day, "slot_key": definition.key},
        )

    sessions = _plan_sessions(db, proposed)

    span = [definition]
    if proposed.kind in TWO_SLOT_KINDS:
        following = next_slot(catalog, day, definition.key)
        if following is None:
            raise SlotUnavailableError(details={"day": day, "slot_key": definition.key})
        own_group_ids = {entry.group_id for entry in current if entry.group_id}
        blocking = [
            entry
            for entry in entries_at(timetable, day, following.slot.key)
            if entry.has_content and not (entry.group_id and entry.group_id in own_group_ids)
        ]
        if blocking:
            raise SlotUnavailableError(
                details={"day": day, "slot_key": definition.key, "next_slot_key": following.slot.key},
            )
        span.append(following.slot)

    replaced = _cell_with_groups(timetable, [(day, item.key) for item in span])
    planned = _planned_entry_values(catalog, day, span, proposed.kind, sessions, group_id=None)
    if _existing_signature(replaced) == sorted(_entry_signature(values) for values in planned):
        return timetable

    conflicts = _own_conflicts(timetable, day=day, span=span, sessions=sessions, replaced=replaced)
    conflicts.extend(_cross_conflicts(db, timetable, day=day, span=span, sessions=sessions))
    if conflicts:
        logger.warning(
            "Rejected %s for %s %s-%s on %s %s: teacher(s) %s already assigned",
            proposed.kind.value,
            timetable.year,
            timetable.branch,
            timetable.section,
            day,
            definition.label,
            ", ".join(sorted({item["teacher_id"] for item in conflicts})),
        )
        raise TeacherConflictError(conflicts)

    group_id = str(uuid.uuid4()) if len(span) > 1 else None
    for entry in replaced:
        timetable.entries.remove(entry)
    for values in _planned_entry_values(catalog, day, span, proposed.kind, sessions, group_id):
        timetable.entries.append(TimetableEntry(**values))
    timetable.last_modified_by_id = actor_id
    return timetable


def unassign(timetable: Timetable, *, day: str, slot: str, actor_id: str | None = None) -> Timetable:
    day = normalize_day(day)
    catalog = catalog_from_stored(timetable.time_slots)
    definition = resolve_slot(catalog, slot)
    if not entries_at(timetable, day, definition.key):
        return timetable
    _release(timetable, [(day, definition.key)])
    timetable.last_modified_by_id = actor_id
    return timetable


def _is_blank(cell: CellAssignmentIn) -> bool:
    return (
        cell.kind in ACADEMIC_KINDS
        and (cell.subject is None or cell.subject.is_empty)
        and (cell.teacher is None or cell.teacher.is_empty)
        and not cell.parallel_sessions
    )


def replace_assignments(
    db: Session,
    timetable: Timetable,
    cells: list[CellAssignmentIn],
    *,
    actor_id: str | None = None,
) -> Timetable:
    catalog = catalog_from_stored(timetable.time_slots)
    timetable.entries.clear()

    def order(cell: CellAssignmentIn) -> tuple[bool, int, int]:
        return (
            cell.kind != AssignmentKind.lunch,
            day_index(cell.day),
            catalog.index(resolve_slot(catalog, cell.slot)),
        )

    for cell in sorted(cells, key=order):
        if cell.is_continuation or _is_blank(cell):
            continue
        try:
            assign(db, timetable, day=cell.day, slot=cell.slot, proposed=cell, actor_id=actor_id)
        except AppError as exc:
            exc.details.setdefault("cell", {"day": cell.day, "slot": cell.slot})
            raise
    timetable.last_modified_by_id = actor_id
    return timetable


def _broken_spans(entries: list[TimetableEntry], catalog: list[SlotDefinition]) -> list[dict]:
    """Two-slot sessions whose halves would no longer sit in consecutive slots."""
    keys = [item.key for item in catalog]
    halves: dict[str, dict[bool, set[tuple[str, str]]]] = defaultdict(lambda: {False: set(), True: set()})
    for entry in entries:
        if entry.group_id:
            halves[entry.group_id][entry.is_continuation].add((entry.day, entry.slot_key))

    broken: list[dict] = []
    for group in halves.values():
        if len(group[False]) != 1 or len(group[True]) != 1:
            continue
        [(day, first_key)] = group[False]
        [(_, second_key)] = group[True]
        if keys.index(second_key) != keys.index(first_key) + 1:
            broken.append({"day": day, "slot_key": first_key, "continuation_slot_key": second_key})
    return broken


def _catalog_conflicts(
    db: Session,
    timetable: Timetable,
    entries: list[TimetableEntry],
    labels: dict[str, str],
) -> list[dict]:
    """Teacher clashes created by moving ``entries`` onto the relabelled slots."""
    class_info = f"{timetable.year} {timetable.branch}-{timetable.section}"
    taught = [entry for entry in entries if entry.teacher_id]
    busy_by_slot: dict[tuple[str, str], list] = {}
    conflicts: list[dict] = []

    for index, entry in enumerate(taught):
        label = labels[entry.slot_key]
        record = {
            "teacher_id": entry.teacher_id,
            "teacher_name": entry.teacher_name,
            "day": entry.day,
            "slot_key": entry.slot_key,
            "time_slot": label,
        }
        for other in taught[index + 1 :]:
            if other.teacher_id != entry.teacher_id or other.day != entry.day:
                continue
            if entry.group_id and entry.group_id == other.group_id:
                continue
            if slots_collide(label, labels[other.slot_key]):
                conflicts.append({**record, "timetable_id": timetable.id, "class_info": class_info})

        cache_key = (entry.day, label)
        if cache_key not in busy_by_slot:
            busy_by_slot[cache_key] = busy_teacher_details(
                db,
                day=entry.day,
                time_slot=label,
                include_drafts=True,
                exclude_timetable_id=timetable.id,
            )
        for busy in busy_by_slot[cache_key]:
            if busy.id == entry.teacher_id:
                conflicts.append({**record, "timetable_id": busy.timetable_id, "class_info": busy.class_info})
    return conflicts


def apply_catalog(db: Session, timetable: Timetable, catalog: list[SlotDefinition]) -> None:
    """Store a new slot catalog, dropping sessions that touch a removed slot.

    The change is refused, leaving the timetable untouched, when it would
    separate the two halves of a lab or put a teacher into a slot they
    already hold elsewhere.
    """
    keys = {item.key for item in catalog}
    labels = {item.key: item.label for item in catalog}
    removed = [(entry.day, entry.slot_key) for entry in timetable.entries if entry.slot_key not in keys]
    dropped = {id(entry) for entry in _cell_with_groups(timetable, removed)}
    kept = [entry for entry in timetable.entries if id(entry) not in dropped]

    broken = _broken_spans(kept, catalog)
    if broken:
        raise ScheduleValidationError(
            "Slot change would separate the two slots of a lab session",
            details={"sessions": broken},
        )
    conflicts = _catalog_conflicts(db, timetable, kept, labels)
    if conflicts:
        logger.warning(
            "Rejected slot change for %s %s-%s: teacher(s) %s already assigned",
            timetable.year,
            timetable.branch,
            timetable.section,
            ", ".join(sorted({item["teacher_id"] for item in conflicts})),
        )
        raise TeacherConflictError(conflicts)

    if removed:
        _release(timetable, removed)
    timetable.time_slots = [item.as_dict() for item in catalog]
    for entry in timetable.entries:
        entry.time_slot = labels[entry.slot_key]
        batch_order = 1 if entry.batch and entry.position % 10 else 0
        entry.position = _position(entry.day, catalog, entry.slot_key, batch_order)


def build_cells(timetable: Timetable) -> list[ScheduleCellOut]:
    grouped: dict[tuple[str, str], list[TimetableEntry]] = defaultdict(list)
    for entry in sorted(timetable.entries, key=lambda item: item.position):
        grouped[(entry.day, entry.slot_key)].append(entry)

    cells: list[ScheduleCellOut] = []
    for (day, slot_key), entries in grouped.items():
        first = entries[0]
        parallel: list[ParallelSessionOut] = []
        if first.kind == AssignmentKind.split_lab:
            parallel = [
                ParallelSessionOut(
                    batch=entry.batch or "",
                    subject=SubjectRef(
                        acronym=entry.subject_acronym,
                        code=entry.subject_code,
                        name=entry.subject_name,
                    ),
                    teacher=TeacherRef(
                        id=entry.teacher_id,
                        name=entry.teacher_name,
                        username=entry.teacher_username,
                    ),
                    room=entry.room,
                )
                for entry in entries
            ]
        cells.append(
            ScheduleCellOut(
                day=day,
                slot_key=slot_key,
                time_slot=first.time_slot,
                kind=first.kind,
                subject=SubjectRef(acronym=first.subject_acronym, code=first.subject_code, name=first.subject_name),
                teacher=TeacherRef(id=first.teacher_id, name=first.teacher_name, username=first.teacher_username),
                room=first.room,
                is_continuation=first.is_continuation,
                group_id=first.group_id,
                parallel_sessions=parallel,
            )
        )
    return cells
