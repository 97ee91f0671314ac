from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.schemas.timetable import normalize_year


class ClassSectionBase(BaseModel):
    year: str
    branch: str = Field(min_length=1, max_length=50)
    section: str = Field(min_length=1, max_length=10)
    semester: int = Field(default=1, ge=1, le=8)
    academic_year: str = Field(min_length=4, max_length=20)
    total_students: int = Field(default=0, ge=0)
    class_teacher_id: str | None = None

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


class ClassSectionCreate(ClassSectionBase):
    pass


class ClassSectionUpdate(BaseModel):
    semester: int | None = Field(default=None, ge=1, le=8)
    total_students: int | None = Field(default=None, ge=0)
    class_teacher_id: str | None = None
    is_active: bool | None = None


class ClassTeacherOut(BaseModel):
    id: str
    display_name: str
    username: str | None = None

    model_config = {"from_attributes": True}


class ClassSectionOut(ClassSectionBase):
    id: str
    is_active: bool
    class_teacher: ClassTeacherOut | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class ClassOptionsOut(BaseModel):
    years: list[str]
    branches: list[str]
    sections: list[str]
