from __future__ import annotations

import logging

from sqlalchemy import inspect, text

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role", "branch", "department"},
    "teachers": {"id", "teacher_code", "display_name", "department", "is_active"},
    "subjects": {"id", "code", "acronym", "year", "semester", "branches"},
    "timetables": {
        "id",
        "year",
        "branch",
        "section",
        "academic_year",
        "time_slots",
        "is_published",
        "published_version",
        "revision_history",
    },
    "timetable_entries": {"id", "timetable_id", "day", "slot_key", "time_slot", "teacher_id", "group_id"},
    "class_sections": {"id", "year", "branch", "section", "academic_year", "class_teacher_id"},
    "notifications": {"id", "title", "target_audience", "related_timetable_id", "is_read"},
}


def _ensure_timetable_revision_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "timetables" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("timetables")}
        if "published_version" not in column_names:
            connection.execute(
                text("ALTER TABLE timetables ADD COLUMN published_version INTEGER NOT NULL DEFAULT 0")
            )
        if "revision_history" in column_names:
            return
        if connection.dialect.name == "postgresql":
            connection.execute(
                text(
                    "ALTER TABLE timetables "
                    "ADD COLUMN revision_history JSONB NOT NULL DEFAULT '[]'::jsonb"
                )
            )
            return
        connection.execute(
            text(
                "ALTER TABLE timetables "
                "ADD COLUMN revision_history JSON NOT NULL DEFAULT '[]'"
            )
        )


def find_schema_gaps(connection) -> tuple[list[str], dict[str, list[str]]]:
    """Return (missing tables, missing columns per table) for the live schema."""
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
    missing_columns: dict[str, list[str]] = {}
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        gaps = sorted(required - existing)
        if gaps:
            missing_columns[table_name] = gaps
    return missing_tables, missing_columns


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        missing_tables, missing_columns = find_schema_gaps(connection)
    if missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        flat = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise RuntimeError(f"Missing required columns: {', '.join(flat)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        _ensure_timetable_revision_columns()
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
