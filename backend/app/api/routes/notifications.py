from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.core.config import get_settings
from app.models.notification import Notification, NotificationType, TargetAudience
from app.models.user import User, UserRole
from app.schemas.notification import NotificationCreate, NotificationOut
from app.services.notifications import create_notification, list_notifications

router = APIRouter()

settings = get_settings()


@router.get("/notifications", response_model=list[NotificationOut])
def get_notifications(
    target_audience: TargetAudience | None = Query(default=None, alias="targetAudience"),
    notification_type: NotificationType | None = Query(default=None, alias="type"),
    is_read: bool | None = Query(default=None, alias="isRead"),
    db: Session = Depends(get_db),
) -> list[NotificationOut]:
    return list_notifications(
        db,
        target_audience=target_audience,
        notification_type=notification_type,
        is_read=is_read,
        limit=settings.notifications_list_limit,
    )


@router.post("/notifications", response_model=NotificationOut, status_code=status.HTTP_201_CREATED)
def post_notification(
    payload: NotificationCreate,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> NotificationOut:
    notification = create_notification(db, **payload.model_dump(), created_by_id=current_user.id)
    db.commit()
    db.refresh(notification)
    return notification


@router.put("/notifications/{notification_id}/read", response_model=NotificationOut)
def mark_notification_read(notification_id: str, db: Session = Depends(get_db)) -> NotificationOut:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


@router.delete("/notifications/{notification_id}")
def delete_notification(
    notification_id: str,
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db),
) -> dict:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    db.delete(notification)
    db.commit()
    return {"success": True}
