import pytest
from sqlalchemy import select

from app.core.exceptions import ScheduleValidationError
from app.models.notification import Notification, NotificationPriority, NotificationType
from app.models.user import UserRole
from app.services import publication, timetable_store


def create(db, section="A"):
    return timetable_store.create_timetable(
        db,
        identity=timetable_store.ClassIdentity(
            year="3rd Year",
            branch="IT",
            section=section,
            academic_year="2025-2026",
        ),
        semester=5,
        time_slots=None,
        schedule=[],
        actor_id="coordinator-1",
    )


def test_publish_records_version_and_notifies(db_session):
    timetable = create(db_session)

    publication.publish(db_session, timetable, actor_id="coordinator-9")

    assert timetable.is_published is True
    assert timetable.published_at is not None
    assert timetable.published_version == 1
    assert timetable.revision_history[0]["version"] == 1
    assert timetable.revision_history[0]["updatedBy"] == "coordinator-9"

    [notification] = db_session.execute(select(Notification)).scalars().all()
    assert notification.notification_type == NotificationType.timetable_published
    assert notification.title == "New Timetable Published"
    assert notification.message == "Timetable for 3rd Year IT Section A has been published."
    assert notification.priority == NotificationPriority.high
    assert notification.related_timetable_id == timetable.id


def test_republishing_appends_revision_history(db_session):
    timetable = create(db_session)
    publication.publish(db_session, timetable, actor_id="coordinator-1")
    publication.unpublish(db_session, timetable, actor_id="coordinator-1")

    assert timetable.is_published is False
    assert timetable.published_at is None

    publication.publish(db_session, timetable, actor_id="coordinator-2")

    assert timetable.published_version == 2
    assert [item["version"] for item in timetable.revision_history] == [1, 2]


def test_notification_failure_does_not_block_publish(db_session, monkeypatch):
    def broken_notifier(*args, **kwargs):
        raise RuntimeError("notification sink unavailable")

    monkeypatch.setattr(publication, "notify_timetable_event", broken_notifier)
    timetable = create(db_session)

    publication.publish(db_session, timetable, actor_id="coordinator-1")

    assert timetable.is_published is True
    assert db_session.execute(select(Notification)).scalars().all() == []


def test_publish_requires_class_identity(db_session):
    timetable = create(db_session)
    timetable.section = " "

    with pytest.raises(ScheduleValidationError):
        publication.publish(db_session, timetable, actor_id="coordinator-1")
    assert timetable.is_published is False


def test_update_announcement_only_for_published_timetables(db_session):
    draft = create(db_session, "A")
    live = create(db_session, "B")
    publication.publish(db_session, live, actor_id="coordinator-1")

    publication.announce_update(db_session, draft, actor_id="coordinator-1")
    publication.announce_update(db_session, live, actor_id="coordinator-1")
    db_session.flush()

    kinds = sorted(item.notification_type.value for item in db_session.execute(select(Notification)).scalars())
    assert kinds == ["timetable_published", "timetable_updated"]


def test_visibility_depends_on_role_and_state(db_session):
    timetable = create(db_session)

    assert publication.is_visible_to(timetable, UserRole.coordinator)
    assert not publication.is_visible_to(timetable, UserRole.teacher)
    assert not publication.is_visible_to(timetable, None)

    publication.publish(db_session, timetable, actor_id="coordinator-1")

    assert publication.is_visible_to(timetable, UserRole.teacher)
    assert publication.is_visible_to(timetable, None)
