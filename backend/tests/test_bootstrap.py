import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import StaticPool

from app.db import bootstrap


def _raise_error(message: str):
    raise RuntimeError(message)


def _scratch_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(bootstrap, "_ensure_timetable_revision_columns", lambda: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility()


def test_legacy_timetables_table_gains_revision_columns(monkeypatch):
    engine = _scratch_engine()
    with engine.begin() as connection:
        connection.execute(text("CREATE TABLE timetables (id VARCHAR(36) PRIMARY KEY, year VARCHAR(20))"))
    monkeypatch.setattr(bootstrap, "engine", engine)

    bootstrap._ensure_timetable_revision_columns()
    bootstrap._ensure_timetable_revision_columns()

    columns = {item["name"] for item in inspect(engine).get_columns("timetables")}
    assert {"published_version", "revision_history"} <= columns


def test_missing_tables_are_reported(monkeypatch):
    monkeypatch.setattr(bootstrap, "engine", _scratch_engine())

    with pytest.raises(RuntimeError, match="Missing required tables"):
        bootstrap._assert_required_columns()


def test_full_bootstrap_on_empty_database(monkeypatch):
    engine = _scratch_engine()
    monkeypatch.setattr(bootstrap, "engine", engine)

    bootstrap.ensure_runtime_schema_compatibility()

    assert set(bootstrap.REQUIRED_COLUMNS) <= set(inspect(engine).get_table_names())
