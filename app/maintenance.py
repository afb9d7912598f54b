"""
Out-of-band consistency checks for the declarations table.

    python -m app.maintenance validate   # rows pagination cannot see
    python -m app.maintenance migrate    # recover created_at from completed_at
    python -m app.maintenance orphans    # leftovers of an interrupted customer delete
"""
from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from app.models.records import CustomerModel, DeclarationModel

logger = logging.getLogger(__name__)


@dataclass
class Problem:
    declaration_id: str
    reason: str


def validate_created_at(db: Session) -> List[Problem]:
    """List declarations whose ordering key is missing or not a timestamp."""
    problems: List[Problem] = []
    rows = db.query(DeclarationModel).all()
    for row in rows:
        if row.created_at is None:
            if row.completed_at is not None:
                reason = "created_at missing, completed_at present"
            else:
                reason = "created_at missing"
            problems.append(Problem(row.id, reason))
        elif not isinstance(row.created_at, datetime):
            problems.append(Problem(row.id, f"created_at is {type(row.created_at).__name__}"))

    logger.info("Checked %d declarations, %d problems", len(rows), len(problems))
    return problems


def migrate_missing_created_at(db: Session) -> int:
    """Move ``completed_at`` into ``created_at`` where only the former exists."""
    rows = (
        db.query(DeclarationModel)
        .filter(
            DeclarationModel.created_at.is_(None),
            DeclarationModel.completed_at.isnot(None),
        )
        .all()
    )
    for row in rows:
        logger.info("Repairing declaration %s", row.id)
        row.created_at = row.completed_at
        row.completed_at = None

    if rows:
        db.commit()
    logger.info("Repaired %d declarations", len(rows))
    return len(rows)


def find_orphaned_declarations(db: Session) -> List[str]:
    """Ids of declarations whose customer no longer exists."""
    known = {row.id for row in db.query(CustomerModel.id).all()}
    orphans = [
        row.id
        for row in db.query(DeclarationModel.id, DeclarationModel.customer_id).all()
        if row.customer_id not in known
    ]
    if orphans:
        logger.warning("%d orphaned declarations found", len(orphans))
    return orphans


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)-5s  %(message)s")
    parser = argparse.ArgumentParser(prog="python -m app.maintenance")
    parser.add_argument("command", choices=["validate", "migrate", "orphans"])
    args = parser.parse_args(argv)

    from app import models  # noqa: F401
    from app.database import Base, SessionLocal, engine

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if args.command == "validate":
            problems = validate_created_at(db)
            for problem in problems:
                logger.error("ID: %s, reason: %s", problem.declaration_id, problem.reason)
            return 1 if problems else 0
        if args.command == "migrate":
            migrate_missing_created_at(db)
            return 0
        orphans = find_orphaned_declarations(db)
        for declaration_id in orphans:
            logger.error("Orphaned declaration: %s", declaration_id)
        return 1 if orphans else 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
