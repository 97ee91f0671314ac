from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import get_settings
from app.db.bootstrap import find_schema_gaps
from app.db.session import engine
from app.models.timetable import Timetable

router = APIRouter()
logger = logging.getLogger(__name__)

settings = get_settings()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
def health() -> dict:
    return {"status": "ok", "service": settings.project_name}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": _now()}


@router.get("/health/ready")
def health_ready() -> JSONResponse:
    database: dict = {"ok": True, "schema_ok": False, "missing_tables": [], "missing_columns": {}, "error": None}
    timetables: dict | None = None

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            missing_tables, missing_columns = find_schema_gaps(connection)
            database.update(
                schema_ok=not missing_tables and not missing_columns,
                missing_tables=missing_tables,
                missing_columns=missing_columns,
            )
            if database["schema_ok"]:
                total, published = connection.execute(
                    select(func.count(Timetable.id), func.count(Timetable.id).filter(Timetable.is_published.is_(True)))
                ).one()
                timetables = {"total": total, "published": published}
    except SQLAlchemyError as exc:
        logger.warning("Readiness check could not reach the database", exc_info=True)
        database.update(ok=False, error=str(exc))

    ready = database["ok"] and database["schema_ok"]
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": _now(),
        "database": database,
        "timetables": timetables,
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
