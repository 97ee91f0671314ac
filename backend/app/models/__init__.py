from app.models.class_section import ClassSection  # noqa: F401
from app.models.notification import (  # noqa: F401
    Notification,
    NotificationPriority,
    NotificationType,
    TargetAudience,
)
from app.models.subject import Subject, SubjectType  # noqa: F401
from app.models.teacher import Teacher, TeacherCodeCounter  # noqa: F401
from app.models.timetable import AssignmentKind, Timetable, TimetableEntry  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
