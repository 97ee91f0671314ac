from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.models.notification import NotificationPriority, NotificationType, TargetAudience


class NotificationCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=5000)
    notification_type: NotificationType = NotificationType.announcement
    target_audience: TargetAudience = TargetAudience.all
    priority: NotificationPriority = NotificationPriority.medium
    related_timetable_id: str | None = Field(default=None, max_length=36)
    expires_at: datetime | None = None

    @field_validator("title", "message")
    @classmethod
    def strip_text(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Value cannot be empty")
        return trimmed


class NotificationOut(BaseModel):
    id: str
    title: str
    message: str
    notification_type: NotificationType
    target_audience: TargetAudience
    priority: NotificationPriority
    related_timetable_id: str | None = None
    is_read: bool
    expires_at: datetime | None = None
    created_by_id: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
