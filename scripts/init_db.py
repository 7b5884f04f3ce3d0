#!/usr/bin/env python3
"""
Create the survey validation schema, optionally with demo data.

Usage:
    python scripts/init_db.py                 # schema only
    python scripts/init_db.py --seed          # schema plus a small demo queue
    python scripts/init_db.py --database-url sqlite:///./demo.db --seed
"""

from __future__ import annotations

import argparse
import sys
from datetime import date, timedelta
from pathlib import Path

from sqlalchemy import func, select
from sqlalchemy.orm import Session

# Add project root to path so the script runs from a checkout
sys.path.insert(0, str(Path(__file__).parent.parent))

from api.settings import get_settings  # noqa: E402
from survey_validation.db import (  # noqa: E402
    Barangay,
    DatabaseConfig,
    DatabaseManager,
    SKOfficial,
    Staff,
    SurveyBatch,
    SurveyResponse,
    ValidationQueueEntry,
    YouthProfile,
)
from survey_validation.logging_config import configure_logging, get_logger  # noqa: E402
from survey_validation.shared.date_utils import utc_now  # noqa: E402

logger = get_logger(__name__)

DEMO_NOTES = (
    "POTENTIAL DUPLICATE: same name and birthday but different contact info. "
    "Existing: 09171234567 / maria.old@example.com. New: 09179876543 / maria.santos@example.com."
)


def seed_demo_data(session: Session) -> int:
    """Insert a small demo queue. Returns the number of queued responses created."""
    if session.execute(select(func.count()).select_from(Barangay)).scalar_one():
        logger.info("Database already has data; skipping seed")
        return 0

    now = utc_now()
    session.add_all(
        [
            Barangay(barangay_id="BRG001", barangay_name="Poblacion"),
            Barangay(barangay_id="BRG002", barangay_name="San Isidro"),
            SurveyBatch(batch_id="BAT2026Q1", batch_name="KK Survey 2026 Q1"),
            Staff(lydo_id="LYDO001", first_name="Ana", last_name="Reyes", role_name="admin"),
            SKOfficial(
                sk_id="SK001",
                first_name="Paolo",
                last_name="Cruz",
                position="SK Chairperson",
                role_name="sk_official",
                barangay_id="BRG002",
            ),
        ]
    )
    session.flush()

    youths = [
        ("YTH001", "Maria", "Santos", 19, "F", "BRG001", "maria.old@example.com"),
        ("YTH002", "Juan", "Dela Cruz", 22, "M", "BRG001", "juan@example.com"),
        ("YTH003", "Liza", "Garcia", 17, "F", "BRG002", None),
    ]
    for youth_id, first, last, age, gender, barangay_id, email in youths:
        session.add(
            YouthProfile(
                youth_id=youth_id,
                first_name=first,
                last_name=last,
                age=age,
                gender=gender,
                birth_date=date(now.year - age, 6, 1),
                contact_number="09171234567",
                email=email,
                barangay_id=barangay_id,
            )
        )
    session.flush()

    # Maria already has a validated response; her resubmission carries new contact details
    session.add(
        SurveyResponse(
            response_id="RES001",
            youth_id="YTH001",
            batch_id="BAT2026Q1",
            validation_status="validated",
            validated_by="LYDO001",
            validation_date=now - timedelta(days=3),
            created_at=now - timedelta(days=4),
        )
    )
    queued = [
        ("RES002", "YTH001", DEMO_NOTES, "partial", 70, timedelta(hours=5)),
        ("RES003", "YTH002", None, "exact", 95, timedelta(hours=3)),
        ("RES004", "YTH003", None, "none", 40, timedelta(hours=1)),
    ]
    for index, (response_id, youth_id, notes, match, score, age) in enumerate(queued, start=1):
        session.add(
            SurveyResponse(
                response_id=response_id,
                youth_id=youth_id,
                batch_id="BAT2026Q1",
                validation_comments=notes,
                created_at=now - age,
            )
        )
        session.flush()
        session.add(
            ValidationQueueEntry(
                queue_id=f"VQ{index:03d}",
                response_id=response_id,
                youth_id=youth_id,
                voter_match_type=match,
                validation_score=score,
                created_at=now - age,
            )
        )
    return len(queued)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Create the survey validation database schema")
    parser.add_argument("--database-url", help="SQLAlchemy URL (defaults to DATABASE_URL / settings)")
    parser.add_argument("--seed", action="store_true", help="Insert a small demo validation queue")
    args = parser.parse_args()

    configure_logging(source="init-db")

    settings = get_settings()
    config = DatabaseConfig(url=args.database_url or settings.database_url, echo=settings.database_echo)
    manager = DatabaseManager(config)
    try:
        manager.create_all()
        if args.seed:
            with manager.session_scope() as session:
                created = seed_demo_data(session)
            logger.info(f"Seeded {created} queued responses")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)
        sys.exit(1)
    finally:
        manager.dispose()


if __name__ == "__main__":
    main()
