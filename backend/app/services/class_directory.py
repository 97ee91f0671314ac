"""Class sections known to the institute, used to fill timetable pickers."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.class_section import ClassSection
from app.schemas.timetable import YEAR_VALUES

logger = logging.getLogger(__name__)

DEFAULT_BRANCHES = ("CSE", "ECE", "EEE", "MECH", "CIVIL", "IT")
DEFAULT_SECTIONS = ("A", "B", "C", "D")


def _year_rank(year: str) -> int:
    return YEAR_VALUES.index(year) if year in YEAR_VALUES else len(YEAR_VALUES)


def class_options(db: Session) -> dict[str, list[str]]:
    """Distinct years, branches and sections; each falls back to the defaults when none are stored."""
    rows = db.execute(
        select(ClassSection.year, ClassSection.branch, ClassSection.section).where(ClassSection.is_active.is_(True))
    ).all()
    years = {row.year for row in rows}
    branches = {row.branch for row in rows}
    sections = {row.section for row in rows}
    return {
        "years": [item for item in YEAR_VALUES if item in years] or list(YEAR_VALUES),
        "branches": sorted(branches) or list(DEFAULT_BRANCHES),
        "sections": sorted(sections) or list(DEFAULT_SECTIONS),
    }


def list_classes(
    db: Session,
    *,
    year: str | None = None,
    branch: str | None = None,
    section: str | None = None,
) -> list[ClassSection]:
    query = select(ClassSection)
    if year:
        query = query.where(ClassSection.year == year)
    if branch:
        query = query.where(ClassSection.branch == branch.strip().upper())
    if section:
        query = query.where(ClassSection.section == section.strip().upper())
    classes = list(db.execute(query).scalars())
    classes.sort(key=lambda item: (_year_rank(item.year), item.branch, item.section, item.academic_year))
    return classes


def find_class(db: Session, *, year: str, branch: str, section: str, academic_year: str) -> ClassSection | None:
    return db.execute(
        select(ClassSection).where(
            ClassSection.year == year,
            ClassSection.branch == branch,
            ClassSection.section == section,
            ClassSection.academic_year == academic_year,
        )
    ).scalar_one_or_none()


def ensure_class_section(
    db: Session,
    *,
    year: str,
    branch: str,
    section: str,
    academic_year: str,
    semester: int,
    created_by_id: str | None = None,
) -> ClassSection:
    """Register the class behind a timetable if it is not known yet."""
    existing = find_class(db, year=year, branch=branch, section=section, academic_year=academic_year)
    if existing is not None:
        return existing
    record = ClassSection(
        year=year,
        branch=branch,
        section=section,
        academic_year=academic_year,
        semester=semester,
        created_by_id=created_by_id,
    )
    db.add(record)
    db.flush()
    logger.info("Registered class section %s %s-%s (%s)", year, branch, section, academic_year)
    return record
