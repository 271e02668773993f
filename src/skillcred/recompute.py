"""
skillcred.recompute — Keep a person's skill scores and overall score consistent.

RecomputeOrchestrator runs one full cycle for a person: score every owned
skill through the aggregator, write the results, then derive the overall
score as a weighted average

    overall = round(Σ(score * w) / Σw),   w = proficiency * (years + 1)

RecomputeQueue serializes cycles per person. Triggers mark the person
dirty; whichever caller finds no drain running for that person drains
until the person is clean.
"""

from __future__ import annotations

import logging
import math
import threading
from datetime import datetime
from typing import Callable, Optional

from skillcred.models import PersonSkillRecord, utcnow
from skillcred.scoring.aggregator import CredibilityAggregator, CredibilityResult, round_half_up
from skillcred.scoring.evidence import clamp_score
from skillcred.storage import SkillLedgerRepository

logger = logging.getLogger(__name__)


def skill_weight(record: PersonSkillRecord) -> float:
    return record.proficiency_level * (record.years_of_experience + 1)


def weighted_overall(records: list[PersonSkillRecord]) -> int:
    """Experience-weighted average of skill scores; 0 with no skills.

    Records whose weight is not finite (corrupt claims) are left out.
    """
    records = [r for r in records if math.isfinite(skill_weight(r))]
    total_weight = sum(skill_weight(r) for r in records)
    if not records or total_weight <= 0:
        return 0
    weighted_sum = sum(r.credibility_score * skill_weight(r) for r in records)
    return round_half_up(clamp_score(weighted_sum / total_weight))


class RecomputeOrchestrator:
    """Recomputes and persists every skill score and the overall score of a person."""

    def __init__(
        self,
        repo: SkillLedgerRepository,
        aggregator: CredibilityAggregator,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        event_bus=None,
    ):
        self.repo = repo
        self.aggregator = aggregator
        self.clock = clock or aggregator.clock or utcnow
        self.event_bus = event_bus

    def compute_overall_credibility(self, person_id: str) -> int:
        person = self.repo.find_person(person_id)
        if person is None:
            return 0
        return weighted_overall(person.skills)

    def recompute_person_skills(self, person_id: str) -> dict[str, CredibilityResult]:
        """Rescore all of the person's skills and the overall score.

        Runs under the person's lock. Every skill is scored before anything
        is written, so all scores in one cycle see the same evidence.
        score.failed and score.updated are published after the lock is released.
        """
        with self.repo.locked(person_id):
            skill_ids = self.repo.list_owned_skills(person_id)
            results = {sid: self.aggregator.compute(person_id, sid, notify=False) for sid in skill_ids}

            now = self.clock()
            for skill_id, result in results.items():
                self.repo.update_skill_score(
                    person_id,
                    skill_id,
                    credibility_score=result.total_score,
                    is_verified=result.is_verified,
                    last_updated=now,
                )
                logger.debug("  %s/%s → %d (verified=%s)",
                             person_id, skill_id, result.total_score, result.is_verified)

            overall = self.compute_overall_credibility(person_id)
            if self.repo.find_person(person_id) is not None:
                self.repo.update_overall_score(person_id, overall)

        logger.info("Recomputed %s: %d skills, overall=%d", person_id, len(results), overall)
        for skill_id, result in results.items():
            if result.error:
                self.aggregator.publish_failure(person_id, skill_id, result)
        if self.event_bus is not None:
            self.event_bus.emit(
                "score.updated",
                {
                    "person_id": person_id,
                    "overall_credibility_score": overall,
                    "skills": {sid: r.total_score for sid, r in results.items()},
                },
                source=person_id,
            )
        return results


class RecomputeQueue:
    """Per-person dirty set drained by the first caller that finds it idle.

    Cycles for one person never overlap, and every request is followed by
    a cycle that started after the request was made.
    """

    def __init__(self, orchestrator: RecomputeOrchestrator):
        self.orchestrator = orchestrator
        self._lock = threading.Lock()
        self._dirty: set[str] = set()
        self._draining: set[str] = set()
        self.recompute_count = 0

    def request(self, person_id: str) -> bool:
        """Mark person_id dirty. Returns True if this call drained the queue for it.

        A failing cycle does not end the drain: requests that arrived
        meanwhile still get their cycle, and the first failure is re-raised
        once the person is clean.
        """
        with self._lock:
            self._dirty.add(person_id)
            if person_id in self._draining:
                return False
            self._draining.add(person_id)

        error: Optional[Exception] = None
        try:
            while True:
                with self._lock:
                    if person_id not in self._dirty:
                        self._draining.discard(person_id)
                        break
                    self._dirty.discard(person_id)
                    self.recompute_count += 1
                try:
                    self.orchestrator.recompute_person_skills(person_id)
                except Exception as e:
                    logger.exception("Recompute cycle failed for %s", person_id)
                    if error is None:
                        error = e
        except BaseException:
            with self._lock:
                self._draining.discard(person_id)
            raise

        if error is not None:
            raise error
        return True

    def pending(self) -> set[str]:
        with self._lock:
            return set(self._dirty)
