from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from app.models.timetable import AssignmentKind

YEAR_VALUES = ("1st Year", "2nd Year", "3rd Year", "4th Year")
YEAR_SHORTHAND = {
    "1": "1st Year",
    "2": "2nd Year",
    "3": "3rd Year",
    "4": "4th Year",
}


def normalize_year(value: str) -> str:
    cleaned = (value or "").strip()
    year = YEAR_SHORTHAND.get(cleaned, cleaned)
    for allowed in YEAR_VALUES:
        if allowed.lower() == year.lower():
            return allowed
    raise ValueError(f"Year must be one of: {', '.join(YEAR_VALUES)}")


class ApiModel(BaseModel):
    model_config = {"populate_by_name": True}


class SubjectRef(BaseModel):
    acronym: str = Field(default="", max_length=50)
    code: str = Field(default="", max_length=50)
    name: str = Field(default="", max_length=200)

    @field_validator("acronym", "code", "name", mode="before")
    @classmethod
    def strip_text(cls, value: str | None) -> str:
        return (value or "").strip()

    @property
    def is_empty(self) -> bool:
        return not (self.acronym or self.code or self.name)

    @property
    def display(self) -> str:
        return self.acronym or self.name or self.code


class TeacherRef(BaseModel):
    id: str | None = Field(default=None, max_length=36)
    name: str = Field(default="", max_length=200)
    username: str = Field(default="", max_length=100)

    @field_validator("name", "username", mode="before")
    @classmethod
    def strip_text(cls, value: str | None) -> str:
        return (value or "").strip()

    @field_validator("id", mode="before")
    @classmethod
    def blank_id_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

    @property
    def is_empty(self) -> bool:
        return not (self.id or self.name or self.username)


def _coerce_subject(value):
    # Older clients send the subject as a bare acronym string.
    if isinstance(value, str):
        return {"acronym": value, "name": value}
    return value


def _coerce_teacher(value):
    if isinstance(value, str):
        return {"name": value}
    return value


class ParallelSession(BaseModel):
    batch: str = Field(min_length=1, max_length=20)
    subject: SubjectRef | None = None
    teacher: TeacherRef | None = None
    room: str | None = Field(default=None, max_length=100)

    @field_validator("batch")
    @classmethod
    def normalize_batch(cls, value: str) -> str:
        cleaned = value.strip().upper()
        if not cleaned:
            raise ValueError("Batch label cannot be empty")
        return cleaned

    @field_validator("subject", mode="before")
    @classmethod
    def coerce_subject(cls, value):
        return _coerce_subject(value)

    @field_validator("teacher", mode="before")
    @classmethod
    def coerce_teacher(cls, value):
        return _coerce_teacher(value)


class AssignmentIn(BaseModel):
    kind: AssignmentKind = Field(
        default=AssignmentKind.lecture,
        validation_alias=AliasChoices("kind", "type"),
    )
    subject: SubjectRef | None = None
    teacher: TeacherRef | None = None
    room: str | None = Field(default=None, max_length=100)
    parallel_sessions: list[ParallelSession] = Field(
        default_factory=list,
        validation_alias=AliasChoices("parallelSessions", "parallel_sessions"),
    )

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, value):
        if isinstance(value, str):
            return value.strip().lower().replace(" ", "-")
        return value

    @field_validator("subject", mode="before")
    @classmethod
    def coerce_subject(cls, value):
        return _coerce_subject(value)

    @field_validator("teacher", mode="before")
    @classmethod
    def coerce_teacher(cls, value):
        return _coerce_teacher(value)

    @field_validator("room", mode="before")
    @classmethod
    def strip_room(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return str(value).strip() or None


class CellAssignmentIn(AssignmentIn):
    day: str = Field(min_length=1, max_length=20)
    slot: str = Field(
        min_length=1,
        max_length=50,
        validation_alias=AliasChoices("slot", "slotKey", "timeSlot"),
    )
    is_continuation: bool = Field(
        default=False,
        validation_alias=AliasChoices("isContinuation", "is_continuation"),
    )


class SlotDefinitionIn(BaseModel):
    key: str | None = Field(default=None, max_length=20)
    label: str = Field(min_length=1, max_length=50)


class SlotDefinitionOut(BaseModel):
    key: str
    label: str


class TimetableCreate(BaseModel):
    year: str
    branch: str = Field(min_length=1, max_length=50)
    section: str = Field(min_length=1, max_length=10)
    semester: int = Field(default=1, ge=1, le=8)
    academic_year: str = Field(min_length=4, max_length=20, alias="academicYear")
    time_slots: list[SlotDefinitionIn | str] | None = Field(default=None, alias="timeSlots")
    schedule: list[CellAssignmentIn] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @field_validator("year")
    @classmethod
    def validate_year(cls, value: str) -> str:
        return normalize_year(value)

    @field_validator("branch", "section")
    @classmethod
    def normalize_upper(cls, value: str) -> str:
        cleaned = value.strip().upper()
        if not cleaned:
            raise ValueError("Value cannot be empty")
        return cleaned

    @field_validator("academic_year")
    @classmethod
    def strip_academic_year(cls, value: str) -> str:
        return value.strip()


class TimetableUpdate(BaseModel):
    semester: int | None = Field(default=None, ge=1, le=8)
    time_slots: list[SlotDefinitionIn | str] | None = Field(default=None, alias="timeSlots")
    schedule: list[CellAssignmentIn] | None = None

    model_config = {"populate_by_name": True}


class CellUpdate(BaseModel):
    day: str = Field(min_length=1, max_length=20)
    slot: str = Field(
        min_length=1,
        max_length=50,
        validation_alias=AliasChoices("slot", "slotKey", "timeSlot"),
    )
    assignment: AssignmentIn


class PublishRequest(BaseModel):
    is_published: bool = Field(alias="isPublished")

    model_config = {"populate_by_name": True}


class ParallelSessionOut(ApiModel):
    batch: str
    subject: SubjectRef
    teacher: TeacherRef
    room: str | None = None


class ScheduleCellOut(ApiModel):
    day: str
    slot_key: str = Field(alias="slotKey")
    time_slot: str = Field(alias="timeSlot")
    kind: AssignmentKind = Field(alias="type")
    subject: SubjectRef
    teacher: TeacherRef
    room: str | None = None
    is_continuation: bool = Field(default=False, alias="isContinuation")
    group_id: str | None = Field(default=None, alias="groupId")
    parallel_sessions: list[ParallelSessionOut] = Field(
        default_factory=list,
        alias="parallelSessions",
    )


class RevisionEntry(ApiModel):
    version: int
    updated_at: datetime = Field(alias="updatedAt")
    updated_by: str | None = Field(default=None, alias="updatedBy")


class TimetableOut(ApiModel):
    id: str
    year: str
    branch: str
    section: str
    semester: int
    academic_year: str = Field(alias="academicYear")
    days: list[str]
    time_slots: list[SlotDefinitionOut] = Field(alias="timeSlots")
    schedule: list[ScheduleCellOut]
    is_published: bool = Field(alias="isPublished")
    published_at: datetime | None = Field(default=None, alias="publishedAt")
    published_version: int = Field(alias="publishedVersion")
    revision_history: list[RevisionEntry] = Field(default_factory=list, alias="revisionHistory")
    created_by: str | None = Field(default=None, alias="createdBy")
    last_modified_by: str | None = Field(default=None, alias="lastModifiedBy")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class TimetableLookupOut(ApiModel):
    data: TimetableOut | None = None
    message: str | None = None


class PaginationOut(ApiModel):
    page: int
    limit: int
    pages: int


class TimetableListOut(ApiModel):
    count: int
    total: int
    pagination: PaginationOut
    data: list[TimetableOut]


class BusyTeacherOut(ApiModel):
    id: str
    name: str | None = None
    username: str | None = None
    busy: bool = True
    class_label: str = Field(alias="classLabel")
    class_detail: str = Field(alias="classDetail")
    class_info: str = Field(alias="classInfo")
    timetable_id: str = Field(alias="timetableId")


class ClashOut(ApiModel):
    day: str
    time_slot: str = Field(alias="timeSlot")
    busy_teachers: list[str] = Field(alias="busyTeachers")
    busy_teacher_usernames: list[str] = Field(alias="busyTeacherUsernames")
    busy_teachers_details: list[BusyTeacherOut] = Field(alias="busyTeachersDetails")


class TeacherScheduleEntryOut(ApiModel):
    timetable_id: str = Field(alias="timetableId")
    academic_year: str = Field(alias="academicYear")
    semester: int
    branch: str
    year: str
    section: str
    day: str
    slot_key: str = Field(alias="slotKey")
    time_slot: str = Field(alias="timeSlot")
    subject: str
    class_label: str = Field(alias="class")
    room: str
    kind: AssignmentKind = Field(alias="type")
    batch: str | None = None
    is_continuation: bool = Field(default=False, alias="isContinuation")


class TeacherSummaryOut(ApiModel):
    id: str
    name: str
    department: str
    teacher_code: str = Field(alias="teacherId")


class TeacherScheduleMetaOut(ApiModel):
    latest_academic_year: str = Field(alias="latestAcademicYear")
    classes: list[str]


class TeacherGridOut(ApiModel):
    days: list[str]
    time_slots: list[str] = Field(alias="timeSlots")
    schedule: dict[str, dict[str, list[TeacherScheduleEntryOut]]]


class TeacherTimetableOut(ApiModel):
    teacher: TeacherSummaryOut
    meta: TeacherScheduleMetaOut
    grid: TeacherGridOut
    flat: list[TeacherScheduleEntryOut]


class BranchCount(ApiModel):
    branch: str
    count: int


class TimetableOverview(ApiModel):
    total_timetables: int = Field(alias="totalTimetables")
    published_timetables: int = Field(alias="publishedTimetables")
    draft_timetables: int = Field(alias="draftTimetables")


class TimetableStatsOut(ApiModel):
    overview: TimetableOverview
    branch_stats: list[BranchCount] = Field(alias="branchStats")

    @model_validator(mode="after")
    def sort_branches(self) -> "TimetableStatsOut":
        self.branch_stats.sort(key=lambda item: item.branch)
        return self
