from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.subject import SubjectType


def _normalize_branches(value: list[str]) -> list[str]:
    seen: set[str] = set()
    branches: list[str] = []
    for item in value:
        branch = item.strip().upper()
        if not branch or branch in seen:
            continue
        seen.add(branch)
        branches.append(branch)
    return branches


class SubjectBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    code: str = Field(min_length=1, max_length=50)
    acronym: str | None = Field(default=None, max_length=50)
    type: SubjectType = SubjectType.theory
    credit_hours: int = Field(default=3, ge=0, le=10)
    year: int = Field(ge=1, le=4)
    semester: int = Field(ge=1, le=8)
    branches: list[str] = Field(default_factory=list, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        code = value.strip().upper()
        if not code:
            raise ValueError("Code cannot be empty")
        return code

    @field_validator("acronym")
    @classmethod
    def normalize_acronym(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().upper() or None

    @field_validator("branches")
    @classmethod
    def normalize_branches(cls, value: list[str]) -> list[str]:
        return _normalize_branches(value)


class SubjectCreate(SubjectBase):
    @model_validator(mode="after")
    def default_acronym(self) -> "SubjectCreate":
        if not self.acronym:
            self.acronym = self.code
        return self


class SubjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    code: str | None = Field(default=None, min_length=1, max_length=50)
    acronym: str | None = Field(default=None, min_length=1, max_length=50)
    type: SubjectType | None = None
    credit_hours: int | None = Field(default=None, ge=0, le=10)
    year: int | None = Field(default=None, ge=1, le=4)
    semester: int | None = Field(default=None, ge=1, le=8)
    branches: list[str] | None = Field(default=None, max_length=50)
    is_active: bool | None = None

    @field_validator("code", "acronym")
    @classmethod
    def normalize_upper(cls, value: str | None) -> str | None:
        return value.strip().upper() if value else value

    @field_validator("branches")
    @classmethod
    def normalize_branches(cls, value: list[str] | None) -> list[str] | None:
        return _normalize_branches(value) if value is not None else None


class SubjectOut(SubjectBase):
    id: str
    acronym: str
    is_active: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
