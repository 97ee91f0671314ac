from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import (
    DuplicateScheduleError,
    ResourceNotFoundError,
    ScheduleValidationError,
    TeacherConflictError,
)
from app.models.teacher import Teacher
from app.schemas.timetable import AssignmentIn
from app.services import timetable_store
from app.services.publication import publish
from app.services.slot_assignment import assign


def identity(section="A", academic_year="2025-2026", branch="CSE"):
    return timetable_store.ClassIdentity(
        year="1st Year",
        branch=branch,
        section=section,
        academic_year=academic_year,
    )


def create(db, ident, time_slots=None):
    return timetable_store.create_timetable(
        db,
        identity=ident,
        semester=1,
        time_slots=time_slots,
        schedule=[],
        actor_id="coordinator-1",
    )


def test_duplicate_identity_is_rejected_and_original_untouched(db_session):
    original = create(db_session, identity())
    original_slots = list(original.time_slots)

    with pytest.raises(DuplicateScheduleError) as exc_info:
        create(db_session, identity(), time_slots=["09:00-10:00"])

    assert exc_info.value.status_code == 409
    assert exc_info.value.details["existing_id"] == original.id
    assert timetable_store.get_timetable(db_session, original.id).time_slots == original_slots


def test_same_section_in_another_academic_year_is_a_new_identity(db_session):
    create(db_session, identity())
    create(db_session, identity(academic_year="2026-2027"))

    assert timetable_store.list_timetables(db_session).total == 2


def test_get_missing_timetable_raises_not_found(db_session):
    with pytest.raises(ResourceNotFoundError) as exc_info:
        timetable_store.get_timetable(db_session, "missing")
    assert exc_info.value.status_code == 404


def test_list_timetables_is_newest_first_and_paged(db_session):
    base = datetime(2025, 1, 1, tzinfo=timezone.utc)
    for offset, section in enumerate(["A", "B", "C"]):
        timetable = create(db_session, identity(section))
        timetable.created_at = base + timedelta(days=offset)
    db_session.flush()

    first_page = timetable_store.list_timetables(db_session, page=1, limit=2)
    second_page = timetable_store.list_timetables(db_session, page=2, limit=2)

    assert first_page.total == 3
    assert first_page.pages == 2
    assert [item.section for item in first_page.items] == ["C", "B"]
    assert [item.section for item in second_page.items] == ["A"]
    assert timetable_store.list_timetables(db_session, section="b").total == 1


def test_update_catalog_drops_entries_in_removed_slots(db_session):
    teacher = Teacher(teacher_code="CSE-001", display_name="Ada Lovelace", department="CSE")
    db_session.add(teacher)
    db_session.flush()
    timetable = create(db_session, identity(), time_slots=["09:00-10:00", "10:00-11:00", "11:00-12:00"])
    proposed = AssignmentIn.model_validate({"subject": "DS", "teacher": {"id": teacher.id}})
    assign(db_session, timetable, day="Monday", slot="TS1", proposed=proposed)
    assign(db_session, timetable, day="Monday", slot="TS3", proposed=proposed)

    timetable_store.update_timetable(
        db_session,
        timetable,
        semester=2,
        time_slots=[{"key": "TS1", "label": "09:00-09:55"}, {"key": "TS2", "label": "10:00-11:00"}],
        actor_id="coordinator-2",
    )

    assert timetable.semester == 2
    assert [(entry.slot_key, entry.time_slot) for entry in timetable.entries] == [("TS1", "09:00-09:55")]
    assert timetable.last_modified_by_id == "coordinator-2"


def test_delete_cascades_entries(db_session):
    teacher = Teacher(teacher_code="CSE-001", display_name="Ada Lovelace", department="CSE")
    db_session.add(teacher)
    db_session.flush()
    timetable = create(db_session, identity())
    assign(
        db_session,
        timetable,
        day="Monday",
        slot="TS1",
        proposed=AssignmentIn.model_validate({"subject": "DS", "teacher": {"id": teacher.id}}),
    )
    db_session.flush()

    timetable_store.delete_timetable(db_session, timetable.id)

    assert timetable_store.find_by_teacher(db_session, teacher.id, only_published=False) == []
    with pytest.raises(ResourceNotFoundError):
        timetable_store.delete_timetable(db_session, timetable.id)


def test_find_by_teacher_only_returns_published_by_default(db_session):
    teacher = Teacher(teacher_code="CSE-001", display_name="Ada Lovelace", department="CSE")
    db_session.add(teacher)
    db_session.flush()
    draft = create(db_session, identity("A"))
    live = create(db_session, identity("B"))
    proposed = AssignmentIn.model_validate({"subject": "DS", "teacher": {"id": teacher.id}})
    assign(db_session, draft, day="Tuesday", slot="TS1", proposed=proposed)
    assign(db_session, live, day="Monday", slot="TS2", proposed=proposed)
    publish(db_session, live, actor_id="coordinator-1")

    published_rows = timetable_store.find_by_teacher(db_session, teacher.id)
    all_rows = timetable_store.find_by_teacher(db_session, teacher.id, only_published=False)

    assert [(row[0].section, row[1].day) for row in published_rows] == [("B", "Monday")]
    assert [row[1].day for row in all_rows] == ["Monday", "Tuesday"]


def test_find_class_timetable_prefers_latest_academic_year(db_session):
    older = create(db_session, identity(academic_year="2024-2025"))
    newer = create(db_session, identity(academic_year="2025-2026"))

    found = timetable_store.find_class_timetable(
        db_session, year="1st Year", branch="cse", section="a", published_only=False
    )
    assert found.id == newer.id
    assert older.id != newer.id
    assert timetable_store.find_class_timetable(db_session, year="1st Year", branch="CSE", section="A") is None


def test_stats_counts_published_drafts_and_branches(db_session):
    create(db_session, identity("A"))
    create(db_session, identity("B"))
    ece = create(db_session, identity("A", branch="ECE"))
    publish(db_session, ece, actor_id="coordinator-1")

    stats = timetable_store.timetable_stats(db_session)

    assert stats["overview"] == {"total_timetables": 3, "published_timetables": 1, "draft_timetables": 2}
    assert sorted((item["branch"], item["count"]) for item in stats["branch_stats"]) == [("CSE", 2), ("ECE", 1)]


def test_relabelling_a_slot_onto_a_busy_time_is_rejected(db_session):
    teacher = Teacher(teacher_code="CSE-001", display_name="Ada Lovelace", department="CSE")
    db_session.add(teacher)
    db_session.flush()
    proposed = AssignmentIn.model_validate({"subject": "DS", "teacher": {"id": teacher.id}})
    section_a = create(db_session, identity("A"), time_slots=["09:00-10:00", "10:00-11:00"])
    section_b = create(db_session, identity("B"), time_slots=["10:00-11:00", "11:00-12:00"])
    assign(db_session, section_a, day="Monday", slot="TS1", proposed=proposed)
    assign(db_session, section_b, day="Monday", slot="TS1", proposed=proposed)
    db_session.flush()
    slots_before = list(section_b.time_slots)

    with pytest.raises(TeacherConflictError) as exc_info:
        timetable_store.update_timetable(
            db_session,
            section_b,
            time_slots=[{"key": "TS1", "label": "09:00-10:00"}, {"key": "TS2", "label": "11:00-12:00"}],
            actor_id="coordinator-2",
        )

    assert exc_info.value.details["teacher_ids"] == [teacher.id]
    assert exc_info.value.details["conflicts"][0]["timetable_id"] == section_a.id
    assert section_b.time_slots == slots_before
    assert [entry.time_slot for entry in section_b.entries] == ["10:00-11:00"]
    rows = timetable_store.find_by_teacher(db_session, teacher.id, only_published=False)
    assert sorted(row[1].time_slot for row in rows) == ["09:00-10:00", "10:00-11:00"]


def test_relabelling_two_slots_of_one_timetable_onto_each_other_is_rejected(db_session):
    teacher = Teacher(teacher_code="CSE-001", display_name="Ada Lovelace", department="CSE")
    db_session.add(teacher)
    db_session.flush()
    proposed = AssignmentIn.model_validate({"subject": "DS", "teacher": {"id": teacher.id}})
    timetable = create(db_session, identity(), time_slots=["09:00-10:00", "10:00-11:00"])
    assign(db_session, timetable, day="Monday", slot="TS1", proposed=proposed)
    assign(db_session, timetable, day="Monday", slot="TS2", proposed=proposed)

    with pytest.raises(TeacherConflictError):
        timetable_store.update_timetable(
            db_session,
            timetable,
            time_slots=[{"key": "TS1", "label": "09:00-10:00"}, {"key": "TS2", "label": "09:30-10:30"}],
            actor_id="coordinator-2",
        )


@pytest.mark.parametrize(
    "new_slots",
    [
        [
            {"key": "TS2", "label": "10:00-11:00"},
            {"key": "TS3", "label": "11:00-12:00"},
            {"key": "TS1", "label": "12:00-13:00"},
        ],
        [
            {"key": "TS1", "label": "09:00-10:00"},
            {"key": "TS9", "label": "10:00-10:15"},
            {"key": "TS2", "label": "10:15-11:00"},
            {"key": "TS3", "label": "11:00-12:00"},
        ],
    ],
)
def test_slot_change_cannot_separate_lab_halves(db_session, new_slots):
    teacher = Teacher(teacher_code="CSE-001", display_name="Ada Lovelace", department="CSE")
    db_session.add(teacher)
    db_session.flush()
    timetable = create(db_session, identity(), time_slots=["09:00-10:00", "10:00-11:00", "11:00-12:00"])
    assign(
        db_session,
        timetable,
        day="Monday",
        slot="TS1",
        proposed=AssignmentIn.model_validate({"kind": "lab", "subject": "DSL", "teacher": {"id": teacher.id}}),
    )
    slots_before = list(timetable.time_slots)

    with pytest.raises(ScheduleValidationError) as exc_info:
        timetable_store.update_timetable(db_session, timetable, time_slots=new_slots, actor_id="coordinator-2")

    assert exc_info.value.details["sessions"] == [
        {"day": "Monday", "slot_key": "TS1", "continuation_slot_key": "TS2"}
    ]
    assert timetable.time_slots == slots_before
    assert sorted((entry.slot_key, entry.is_continuation) for entry in timetable.entries) == [
        ("TS1", False),
        ("TS2", True),
    ]


def test_relabelling_that_keeps_labs_contiguous_is_applied(db_session):
    teacher = Teacher(teacher_code="CSE-001", display_name="Ada Lovelace", department="CSE")
    db_session.add(teacher)
    db_session.flush()
    timetable = create(db_session, identity(), time_slots=["09:00-10:00", "10:00-11:00", "11:00-12:00"])
    assign(
        db_session,
        timetable,
        day="Monday",
        slot="TS1",
        proposed=AssignmentIn.model_validate({"kind": "lab", "subject": "DSL", "teacher": {"id": teacher.id}}),
    )

    timetable_store.update_timetable(
        db_session,
        timetable,
        time_slots=[
            {"key": "TS1", "label": "08:50-09:40"},
            {"key": "TS2", "label": "09:40-10:30"},
            {"key": "TS3", "label": "10:30-11:20"},
        ],
        actor_id="coordinator-2",
    )

    assert sorted(entry.time_slot for entry in timetable.entries) == ["08:50-09:40", "09:40-10:30"]
