from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.exceptions import ScheduleValidationError
from app.models.notification import NotificationType
from app.models.timetable import Timetable
from app.models.user import UserRole
from app.services.notifications import notify_timetable_event
from app.services.timetable_store import set_published

logger = logging.getLogger(__name__)


def _require_identity(timetable: Timetable) -> None:
    missing = [
        name
        for name, value in (("year", timetable.year), ("branch", timetable.branch), ("section", timetable.section))
        if not (value or "").strip()
    ]
    if missing:
        raise ScheduleValidationError(
            "Timetable is missing class identity fields",
            details={"missing": missing},
        )


def _emit(db: Session, timetable: Timetable, actor_id: str | None, kind: NotificationType) -> None:
    try:
        with db.begin_nested():
            notify_timetable_event(
                db,
                kind=kind,
                timetable=timetable,
                actor_id=actor_id,
            )
    except Exception:
        logger.warning("%s notification failed for timetable %s", kind.value, timetable.id, exc_info=True)


def publish(db: Session, timetable: Timetable, *, actor_id: str | None) -> Timetable:
    """Make ``timetable`` visible to students and teachers and record a revision."""
    _require_identity(timetable)
    set_published(timetable, True)
    timetable.published_version = (timetable.published_version or 0) + 1
    timetable.revision_history = [
        *(timetable.revision_history or []),
        {
            "version": timetable.published_version,
            "updatedAt": timetable.published_at.isoformat(),
            "updatedBy": actor_id,
        },
    ]
    timetable.last_modified_by_id = actor_id
    db.flush()
    logger.info(
        "Published timetable %s (%s %s-%s) as version %s",
        timetable.id,
        timetable.year,
        timetable.branch,
        timetable.section,
        timetable.published_version,
    )
    _emit(db, timetable, actor_id, NotificationType.timetable_published)
    return timetable


def unpublish(db: Session, timetable: Timetable, *, actor_id: str | None) -> Timetable:
    set_published(timetable, False)
    timetable.last_modified_by_id = actor_id
    db.flush()
    logger.info("Unpublished timetable %s", timetable.id)
    return timetable


def is_visible_to(timetable: Timetable, role: UserRole | None) -> bool:
    if role == UserRole.coordinator:
        return True
    return bool(timetable.is_published)


def announce_update(db: Session, timetable: Timetable, *, actor_id: str | None) -> None:
    """Tell readers that an already published timetable changed."""
    if timetable.is_published:
        _emit(db, timetable, actor_id, NotificationType.timetable_updated)
