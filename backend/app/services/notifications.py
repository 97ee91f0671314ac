from __future__ import annotations

from datetime import datetime, timezone
import logging

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.notification import Notification, NotificationPriority, NotificationType, TargetAudience
from app.models.timetable import Timetable

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"

TIMETABLE_EVENTS: dict[NotificationType, tuple[str, str]] = {
    NotificationType.timetable_published: (
        "New Timetable Published",
        "Timetable for {year} {branch} Section {section} has been published.",
    ),
    NotificationType.timetable_updated: (
        "Timetable Updated",
        "Timetable for {year} {branch} Section {section} has been updated.",
    ),
}


def create_notification(
    db: Session,
    *,
    title: str,
    message: str,
    created_by_id: str | None,
    notification_type: NotificationType = NotificationType.system,
    target_audience: TargetAudience = TargetAudience.all,
    priority: NotificationPriority = NotificationPriority.medium,
    related_timetable_id: str | None = None,
    expires_at: datetime | None = None,
) -> Notification:
    record = Notification(
        title=title,
        message=message,
        notification_type=notification_type,
        target_audience=target_audience,
        priority=priority,
        related_timetable_id=related_timetable_id,
        expires_at=expires_at,
        created_by_id=created_by_id or SYSTEM_ACTOR,
    )
    db.add(record)
    db.flush()
    return record


def notify_timetable_event(
    db: Session,
    *,
    kind: NotificationType,
    timetable: Timetable,
    actor_id: str | None,
) -> Notification | None:
    if not get_settings().notify_on_publish:
        return None
    title, template = TIMETABLE_EVENTS[kind]
    return create_notification(
        db,
        title=title,
        message=template.format(year=timetable.year, branch=timetable.branch, section=timetable.section),
        created_by_id=actor_id,
        notification_type=kind,
        target_audience=TargetAudience.all,
        priority=NotificationPriority.high,
        related_timetable_id=timetable.id,
    )


def list_notifications(
    db: Session,
    *,
    target_audience: TargetAudience | None = None,
    notification_type: NotificationType | None = None,
    is_read: bool | None = None,
    limit: int = 50,
) -> list[Notification]:
    now = datetime.now(timezone.utc)
    query = select(Notification).order_by(Notification.created_at.desc(), Notification.id)
    if target_audience is not None:
        query = query.where(Notification.target_audience.in_([target_audience, TargetAudience.all]))
    if notification_type is not None:
        query = query.where(Notification.notification_type == notification_type)
    if is_read is not None:
        query = query.where(Notification.is_read == is_read)
    query = query.where(or_(Notification.expires_at.is_(None), Notification.expires_at > now))
    return list(db.execute(query.limit(limit)).scalars())
