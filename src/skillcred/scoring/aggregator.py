"""
Credibility aggregation for one (person, skill) pair.

    total = round((challenge * 0.40 + endorsement * 0.35 + proficiency * 0.25) * decay)
    verified = challenge >= 30 or endorsement >= 40     (pre-decay components)

Failures never escape compute(): they resolve to a zero result carrying
the error message, and a score.failed event when a bus is attached.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from skillcred.config import DEFAULT_CONFIG, ScoringConfig
from skillcred.models import utcnow
from skillcred.scoring.decay import DecayCalculator
from skillcred.scoring.evidence import (
    ChallengeEvidenceCalculator,
    EndorsementEvidenceCalculator,
    ProficiencyEvidenceCalculator,
    clamp_score,
)
from skillcred.storage import SkillLedgerRepository

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class ScoreBreakdown:
    challenge_score: float = 0.0
    endorsement_score: float = 0.0
    proficiency_score: float = 0.0
    decay_factor: float = 1.0

    def to_dict(self) -> dict:
        return {
            "challengeScore": self.challenge_score,
            "endorsementScore": self.endorsement_score,
            "proficiencyScore": self.proficiency_score,
            "decayFactor": self.decay_factor,
        }


@dataclass
class CredibilityResult:
    total_score: int
    breakdown: ScoreBreakdown
    is_verified: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        payload = {
            "totalScore": self.total_score,
            "breakdown": self.breakdown.to_dict(),
            "isVerified": self.is_verified,
        }
        if self.error:
            payload["error"] = self.error
        return payload


class CredibilityAggregator:
    """Combines the three evidence signals with decay into one skill score."""

    def __init__(
        self,
        repo: SkillLedgerRepository,
        config: ScoringConfig = DEFAULT_CONFIG,
        *,
        clock: Callable[[], datetime] = utcnow,
        event_bus=None,
    ):
        self.repo = repo
        self.config = config
        self.clock = clock
        self.event_bus = event_bus
        self.challenges = ChallengeEvidenceCalculator(repo, config.challenge)
        self.endorsements = EndorsementEvidenceCalculator(repo, config.endorsement)
        self.proficiency = ProficiencyEvidenceCalculator(repo, config.proficiency)
        self.decay = DecayCalculator(config.decay)

    def compute(self, person_id: str, skill_id: str, *, notify: bool = True) -> CredibilityResult:
        """Score one skill. With notify=False a failure is not published;
        callers holding the person lock publish it after releasing it.
        """
        try:
            return self._compute(person_id, skill_id)
        except Exception as e:
            logger.exception("Credibility computation failed for %s/%s", person_id, skill_id)
            result = CredibilityResult(
                total_score=0,
                breakdown=ScoreBreakdown(),
                is_verified=False,
                error=str(e) or type(e).__name__,
            )
            if notify:
                self.publish_failure(person_id, skill_id, result)
            return result

    def publish_failure(self, person_id: str, skill_id: str, result: CredibilityResult) -> None:
        if self.event_bus is not None:
            self.event_bus.emit(
                "score.failed",
                {"person_id": person_id, "skill_id": skill_id, "error": result.error},
                source=person_id,
            )

    def _compute(self, person_id: str, skill_id: str) -> CredibilityResult:
        now = self.clock()
        challenge = self.challenges.compute(person_id, skill_id, now=now)
        endorsement = self.endorsements.compute(person_id, skill_id)
        proficiency = self.proficiency.compute(person_id, skill_id)
        record = self.repo.get_person_skill_record(person_id, skill_id)
        decay = self.decay.compute(record.last_updated if record else None, now=now)

        w = self.config.aggregate
        weighted = challenge * w.challenge + endorsement * w.endorsement + proficiency * w.proficiency
        total = round_half_up(clamp_score(weighted * decay))
        is_verified = (
            challenge >= w.verify_challenge_threshold
            or endorsement >= w.verify_endorsement_threshold
        )

        logger.debug(
            "Scored %s/%s: challenge=%.1f endorsement=%.1f proficiency=%.1f decay=%.3f → %d",
            person_id, skill_id, challenge, endorsement, proficiency, decay, total,
        )
        return CredibilityResult(
            total_score=total,
            breakdown=ScoreBreakdown(
                challenge_score=challenge,
                endorsement_score=endorsement,
                proficiency_score=proficiency,
                decay_factor=decay,
            ),
            is_verified=is_verified,
        )
