"""
Evidence calculators — one 0-100 score per signal for a (person, skill) pair.

Challenge:
    per submission  c = (PASS_BASE + score/100 * SCORE_WEIGHT) * difficulty
                        + recency * RECENCY_WEIGHT
    recency         = max(0, 1 - days/365)
    score           = min(100, 100 * Σc / Σ(100 * difficulty))

Endorsement:
    level   = Σlevel / (4n) * LEVEL_WEIGHT
    weight  = Σ(endorser_credibility * weight) / (100n) * ENDORSER_WEIGHT
    count   = min(2n, COUNT_WEIGHT)
    score   = min(100, level + weight + count)

Proficiency:
    score = BASE + level/10 * LEVEL_WEIGHT + min(years, 10)/10 * EXPERIENCE_WEIGHT
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Optional

from skillcred.config import (
    DEFAULT_CONFIG,
    ChallengeWeights,
    EndorsementWeights,
    ProficiencyWeights,
)
from skillcred.errors import ComputationError
from skillcred.models import utcnow
from skillcred.scoring.decay import days_between
from skillcred.storage import SkillLedgerRepository

logger = logging.getLogger(__name__)


def clamp_score(value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ComputationError(f"non-finite score: {value}")
    return max(0.0, min(value, 100.0))


class ChallengeEvidenceCalculator:
    """Scores passed, verified challenge submissions."""

    def __init__(self, repo: SkillLedgerRepository, config: ChallengeWeights = DEFAULT_CONFIG.challenge):
        self.repo = repo
        self.config = config

    def recency_factor(self, submitted_at: datetime, now: datetime) -> float:
        """max(0, 1 - days/365), with future-dated submissions capped at 1 (days < 0 count as 0)."""
        days = max(0.0, days_between(submitted_at, now))
        return max(0.0, 1 - days / self.config.recency_window_days)

    def compute(self, person_id: str, skill_id: str, now: Optional[datetime] = None) -> float:
        now = now or utcnow()
        submissions = [
            s for s in self.repo.list_passed_verified_submissions(person_id)
            if s.skill_id == skill_id
        ]
        if not submissions:
            return 0.0

        cfg = self.config
        total = 0.0
        max_possible = 0.0
        for sub in submissions:
            multiplier = cfg.difficulty_multipliers.get(sub.difficulty.value, 1.0)
            component = cfg.pass_base + (sub.achieved_score / 100) * cfg.score_weight
            component *= multiplier
            component += self.recency_factor(sub.submitted_at, now) * cfg.recency_weight
            total += component
            max_possible += 100 * multiplier

        logger.debug("challenge evidence %s/%s: %d submissions, %.2f/%.2f",
                     person_id, skill_id, len(submissions), total, max_possible)
        return clamp_score(100 * total / max_possible)


class EndorsementEvidenceCalculator:
    """Scores valid peer endorsements, weighted by endorser credibility at read time."""

    def __init__(self, repo: SkillLedgerRepository, config: EndorsementWeights = DEFAULT_CONFIG.endorsement):
        self.repo = repo
        self.config = config

    def compute(self, person_id: str, skill_id: str) -> float:
        endorsements = self.repo.list_valid_endorsements(person_id, skill_id)
        if not endorsements:
            return 0.0

        cfg = self.config
        count = len(endorsements)
        level_sum = 0.0
        weight_sum = 0.0
        for e in endorsements:
            level_sum += cfg.level_values.get(e.level.value, 1)
            endorser_credibility = self.repo.get_overall_credibility(e.endorser_id)
            weight_sum += endorser_credibility * e.weight

        normalized_level = level_sum / (cfg.max_level_value * count) * cfg.level_weight
        normalized_weight = weight_sum / (100 * count) * cfg.endorser_weight
        count_bonus = min(count * cfg.count_step, cfg.count_weight)
        return clamp_score(normalized_level + normalized_weight + count_bonus)


class ProficiencyEvidenceCalculator:
    """Scores the person's self-declared level and experience."""

    def __init__(self, repo: SkillLedgerRepository, config: ProficiencyWeights = DEFAULT_CONFIG.proficiency):
        self.repo = repo
        self.config = config

    def compute(self, person_id: str, skill_id: str) -> float:
        record = self.repo.get_person_skill_record(person_id, skill_id)
        if record is None:
            return 0.0
        cfg = self.config
        years = min(record.years_of_experience, cfg.experience_cap_years)
        score = (
            cfg.base
            + (record.proficiency_level / cfg.max_level) * cfg.level_weight
            + (years / cfg.experience_cap_years) * cfg.experience_weight
        )
        return clamp_score(score)
