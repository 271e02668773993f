"""Management command: recompute credibility scores for every person in a store."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from skillcred.config import Settings
from skillcred.service import CredibilityService
from skillcred.storage import SkillLedgerRepository, SQLiteBackend

logger = logging.getLogger(__name__)


def recalculate_all(service: CredibilityService, person_ids: Optional[Sequence[str]] = None) -> dict[str, int]:
    """Recompute the given persons (default: all). Returns person_id → overall score.

    A person whose cycle raises is logged and left out of the result.
    """
    repo = service.repo
    ids = list(person_ids) if person_ids else repo.list_person_ids()
    logger.info("Recalculating scores for %d persons...", len(ids))

    results: dict[str, int] = {}
    for person_id in ids:
        logger.info("Processing: %s", person_id)
        try:
            service.recompute_person_skills(person_id)
            person = repo.get_person(person_id)
        except Exception as e:
            logger.error("  Failed: %s", e)
            continue
        results[person_id] = person.overall_credibility_score
        logger.info("  → Overall: %s", person.overall_credibility_score)
        for record in person.skills:
            logger.info("    %s: %s (verified=%s)", record.skill_id, record.credibility_score, record.is_verified)

    logger.info("Done!")
    return results


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skillcred-recalculate",
        description="Recompute skill and overall credibility scores.",
    )
    parser.add_argument("--db", help="SQLite store (default: $SKILLCRED_DB_PATH or skillcred.db)")
    parser.add_argument("--person", action="append", dest="persons", metavar="ID",
                        help="Only recompute this person (repeatable)")
    parser.add_argument("--log-level", help="Log level (default: $SKILLCRED_LOG_LEVEL or INFO)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings(db_path=args.db, log_level=args.log_level)
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(message)s")

    backend = SQLiteBackend(settings.db_path)
    try:
        service = CredibilityService(SkillLedgerRepository(backend), settings=settings)
        ids = args.persons or service.repo.list_person_ids()
        results = recalculate_all(service, ids)
    finally:
        backend.close()
    return 0 if len(results) == len(ids) else 1


if __name__ == "__main__":
    sys.exit(main())
