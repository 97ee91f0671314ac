from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator


class TeacherBase(BaseModel):
    display_name: str = Field(min_length=1, max_length=200)
    department: str = Field(default="General", min_length=1, max_length=200)
    designation: str = Field(default="Assistant Professor", min_length=1, max_length=200)
    email: EmailStr | None = None
    username: str | None = Field(default=None, min_length=1, max_length=100)

    @field_validator("display_name", "department", "designation")
    @classmethod
    def strip_text(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Value cannot be empty")
        return trimmed

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return value.strip().lower() if value else None

    @field_validator("username")
    @classmethod
    def normalize_username(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().lower() or None


class TeacherCreate(TeacherBase):
    pass


class TeacherUpdate(BaseModel):
    display_name: str | None = Field(default=None, min_length=1, max_length=200)
    department: str | None = Field(default=None, min_length=1, max_length=200)
    designation: str | None = Field(default=None, min_length=1, max_length=200)
    email: EmailStr | None = None
    username: str | None = Field(default=None, min_length=1, max_length=100)
    is_active: bool | None = None


class TeacherOut(TeacherBase):
    id: str
    teacher_code: str
    is_active: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class TeacherListOut(BaseModel):
    count: int
    data: list[TeacherOut]


class TeacherGroupOut(BaseModel):
    department: str
    teachers: list[TeacherOut]


class TeacherGroupedOut(BaseModel):
    count: int
    data: list[TeacherGroupOut]
