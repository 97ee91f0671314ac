"""Seed the coordinator account, CSE faculty, subjects and class sections.

Run:
  PYTHONPATH=backend python scripts/seed_directory.py
"""

from __future__ import annotations

import os

from sqlalchemy import func, select

from app.db.bootstrap import ensure_runtime_schema_compatibility
from app.db.session import SessionLocal
from app.models.class_section import ClassSection
from app.models.subject import Subject
from app.models.teacher import Teacher
from app.services.directory_seed import COORDINATOR_PROFILE, seed_directory

DEFAULT_PASSWORD = os.getenv("SEED_DEFAULT_PASSWORD", "coordinator123")
RESET_PASSWORDS = os.getenv("SEED_RESET_PASSWORDS", "false").strip().lower() in {"1", "true", "yes", "on"}
ACADEMIC_YEAR = os.getenv("SEED_ACADEMIC_YEAR", "2025-2026").strip() or "2025-2026"


def main() -> None:
    ensure_runtime_schema_compatibility()
    with SessionLocal() as session:
        summary = seed_directory(
            session,
            password=DEFAULT_PASSWORD,
            academic_year=ACADEMIC_YEAR,
            reset_password=RESET_PASSWORDS,
        )
        session.commit()

        teacher_count = session.execute(select(func.count(Teacher.id))).scalar_one()
        subject_count = session.execute(select(func.count(Subject.id))).scalar_one()
        class_count = session.execute(select(func.count(ClassSection.id))).scalar_one()

    print("Directory data seeded successfully.")
    print("")
    print(f"Coordinator login: {COORDINATOR_PROFILE['email']}")
    print(f"Teachers: {teacher_count} ({summary.created['teachers']} new)")
    print(f"Subjects: {subject_count} ({summary.created['subjects']} new)")
    print(f"Class sections for {ACADEMIC_YEAR}: {class_count} ({summary.created['classes']} new)")


if __name__ == "__main__":
    main()
