"""
skillcred.grading — Resolve pass/fail for a challenge submission.

The passing threshold always comes from the referenced challenge; a
submission whose challenge cannot be found is an error, not a default.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from skillcred.models import ChallengeSubmission, utcnow
from skillcred.storage import SkillLedgerRepository

logger = logging.getLogger(__name__)


@dataclass
class GradeResult:
    submission: ChallengeSubmission
    passing_score: float

    @property
    def is_passed(self) -> bool:
        return self.submission.is_passed


def grade_submission(
    repo: SkillLedgerRepository,
    submission_id: str,
    score: float,
    now: Optional[datetime] = None,
) -> GradeResult:
    """Record score on the submission and derive is_passed from its challenge.

    Passed submissions are verified on the spot.

    Raises:
        MissingReferenceError: submission or challenge not found.
        ValueError: score outside 0-100, or content kind differs from the challenge's.
    """
    if not 0 <= score <= 100:
        raise ValueError(f"score must be within 0-100, got {score}")

    submission = repo.get_submission(submission_id)
    challenge = repo.get_challenge(submission.challenge_id)

    if (
        challenge.content is not None
        and submission.content is not None
        and submission.content.kind != challenge.content.kind
    ):
        raise ValueError(
            f"submission content kind {submission.content.kind!r} does not match "
            f"challenge {challenge.challenge_id} ({challenge.content.kind!r})"
        )

    submission.score = score
    submission.is_passed = score >= challenge.passing_score
    if submission.is_passed:
        submission.is_verified = True
        submission.verified_at = now or utcnow()
    repo.save_submission(submission)

    logger.info("Graded %s: %.1f/%.1f passed=%s",
                submission_id, score, challenge.passing_score, submission.is_passed)
    return GradeResult(submission=submission, passing_score=challenge.passing_score)
