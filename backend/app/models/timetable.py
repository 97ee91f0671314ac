import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AssignmentKind(str, Enum):
    lecture = "lecture"
    lab = "lab"
    split_lab = "split-lab"
    lunch = "lunch"
    break_ = "break"
    library = "library"
    mini_project = "mini-project"
    mentor = "mentor"


TWO_SLOT_KINDS = frozenset({AssignmentKind.lab, AssignmentKind.split_lab})
ACADEMIC_KINDS = frozenset({AssignmentKind.lecture, AssignmentKind.lab, AssignmentKind.split_lab})


class Timetable(Base):
    __tablename__ = "timetables"
    __table_args__ = (
        UniqueConstraint("year", "branch", "section", "academic_year", name="uq_timetables_class_identity"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    year: Mapped[str] = mapped_column(String(20), nullable=False)
    branch: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    section: Mapped[str] = mapped_column(String(10), nullable=False)
    semester: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    time_slots: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    published_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    revision_history: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    created_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    last_modified_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=_utcnow)

    entries: Mapped[list["TimetableEntry"]] = relationship(
        back_populates="timetable",
        cascade="all, delete-orphan",
        order_by="TimetableEntry.position",
    )


class TimetableEntry(Base):
    __tablename__ = "timetable_entries"
    __table_args__ = (Index("ix_timetable_entries_day_teacher", "day", "teacher_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    timetable_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("timetables.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    day: Mapped[str] = mapped_column(String(10), nullable=False)
    slot_key: Mapped[str] = mapped_column(String(20), nullable=False)
    time_slot: Mapped[str] = mapped_column(String(50), nullable=False)
    kind: Mapped[AssignmentKind] = mapped_column(
        SAEnum(AssignmentKind, name="assignment_kind"),
        nullable=False,
        default=AssignmentKind.lecture,
    )
    subject_acronym: Mapped[str | None] = mapped_column(String(50), nullable=True)
    subject_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    subject_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    teacher_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    teacher_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    teacher_username: Mapped[str | None] = mapped_column(String(100), nullable=True)
    room: Mapped[str | None] = mapped_column(String(100), nullable=True)
    batch: Mapped[str | None] = mapped_column(String(20), nullable=True)
    group_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    is_continuation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    timetable: Mapped[Timetable] = relationship(back_populates="entries")

    @property
    def has_content(self) -> bool:
        return bool(self.subject_acronym or self.subject_name or self.teacher_id or self.teacher_name)
