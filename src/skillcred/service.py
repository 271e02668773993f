"""
skillcred.service — The engine's entry points for the API layer.

CredibilityService wires the repository, scoring engine, recompute queue
and event bus together. Evidence mutations publish an event; the
recompute trigger subscribed to those events queues a recompute for the
affected person.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from skillcred.config import DEFAULT_CONFIG, ScoringConfig, Settings
from skillcred.events import EVIDENCE_EVENTS, Event, EventBus, EventType
from skillcred.grading import GradeResult, grade_submission
from skillcred.models import Endorsement, EndorsementLevel, PersonSkillRecord, utcnow
from skillcred.recompute import RecomputeOrchestrator, RecomputeQueue
from skillcred.scoring import CredibilityAggregator, CredibilityResult, EndorsementWeightAssigner
from skillcred.storage import SkillLedgerRepository

logger = logging.getLogger(__name__)


class CredibilityService:
    """Facade over the credibility engine."""

    def __init__(
        self,
        repo: Optional[SkillLedgerRepository] = None,
        config: ScoringConfig = DEFAULT_CONFIG,
        *,
        clock: Callable[[], datetime] = utcnow,
        event_bus: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
    ):
        self.repo = repo or SkillLedgerRepository()
        self.config = config
        self.clock = clock
        self.event_bus = event_bus or EventBus()
        self.aggregator = CredibilityAggregator(self.repo, config, clock=clock, event_bus=self.event_bus)
        self.orchestrator = RecomputeOrchestrator(self.repo, self.aggregator, clock=clock, event_bus=self.event_bus)
        self.weight_assigner = EndorsementWeightAssigner(self.repo, config.endorsement_weight)
        self.queue = RecomputeQueue(self.orchestrator)

        self.event_bus.subscribe(EVIDENCE_EVENTS, self._on_evidence_changed, subscriber_id="recompute")
        if settings is not None and settings.webhook_url:
            self.event_bus.add_webhook(settings.webhook_url, ["score.*"])

    # ── exposed operations ──

    def compute_skill_credibility(self, person_id: str, skill_id: str) -> CredibilityResult:
        return self.aggregator.compute(person_id, skill_id)

    def recompute_person_skills(self, person_id: str) -> None:
        self.queue.request(person_id)

    def compute_overall_credibility(self, person_id: str) -> int:
        return self.orchestrator.compute_overall_credibility(person_id)

    def assign_endorsement_weight(self, endorsement_id: str) -> float:
        return self.weight_assigner.assign(endorsement_id)

    # ── recompute trigger ──

    def _on_evidence_changed(self, event: Event) -> None:
        person_id = event.data.get("person_id")
        if not person_id:
            return
        if event.event_type == EventType.SUBMISSION_GRADED and not event.data.get("is_passed"):
            return
        self.queue.request(person_id)

    def _publish(self, event_type: EventType, person_id: str, **data) -> None:
        self.event_bus.emit(event_type, {"person_id": person_id, **data}, source=person_id)

    # ── skills ──

    def add_skill(self, person_id: str, skill_id: str, proficiency_level: int, years_of_experience: float = 0) -> None:
        with self.repo.locked(person_id):
            self.repo.add_person_skill(person_id, PersonSkillRecord(
                skill_id=skill_id,
                proficiency_level=proficiency_level,
                years_of_experience=years_of_experience,
                last_updated=self.clock(),
            ))
        self._publish(EventType.SKILL_ADDED, person_id, skill_id=skill_id)

    def update_skill(
        self,
        person_id: str,
        skill_id: str,
        *,
        proficiency_level: Optional[int] = None,
        years_of_experience: Optional[float] = None,
    ) -> None:
        with self.repo.locked(person_id):
            self.repo.update_person_skill(
                person_id,
                skill_id,
                proficiency_level=proficiency_level,
                years_of_experience=years_of_experience,
            )
        self._publish(EventType.SKILL_UPDATED, person_id, skill_id=skill_id)

    def remove_skill(self, person_id: str, skill_id: str) -> bool:
        with self.repo.locked(person_id):
            removed = self.repo.remove_person_skill(person_id, skill_id)
        if removed:
            self._publish(EventType.SKILL_REMOVED, person_id, skill_id=skill_id)
        return removed

    # ── endorsements ──

    def _check_not_duplicate(
        self, recipient_id: str, skill_id: str, endorser_id: str, exclude_id: Optional[str] = None
    ) -> None:
        for existing in self.repo.list_valid_endorsements(recipient_id, skill_id):
            if existing.endorser_id == endorser_id and existing.endorsement_id != exclude_id:
                raise ValueError(f"{endorser_id} already endorsed {recipient_id} for {skill_id}")

    def record_endorsement(self, endorsement: Endorsement) -> float:
        """Store a new endorsement, snapshot its weight, and rescore the recipient.

        Raises:
            MissingReferenceError: recipient does not exist.
            ValueError: recipient does not own the skill, or the endorser
                already holds a valid endorsement for it.
        """
        recipient_id = endorsement.recipient_id
        with self.repo.locked(recipient_id):
            recipient = self.repo.get_person(recipient_id)
            if recipient.skill(endorsement.skill_id) is None:
                raise ValueError(f"{recipient_id} does not have skill {endorsement.skill_id}")
            self._check_not_duplicate(recipient_id, endorsement.skill_id, endorsement.endorser_id)
            self.repo.save_endorsement(endorsement)
            weight = self.weight_assigner.assign(endorsement.endorsement_id)
        self._publish(EventType.ENDORSEMENT_CREATED, recipient_id, endorsement_id=endorsement.endorsement_id)
        return weight

    def update_endorsement(
        self,
        endorsement_id: str,
        *,
        level: Optional[EndorsementLevel] = None,
        comment: Optional[str] = None,
        weight: Optional[float] = None,
        endorser_id: Optional[str] = None,
    ) -> Endorsement:
        """Edit an endorsement. A weight or endorser change re-snapshots the weight.

        Raises:
            MissingReferenceError: endorsement not found.
            ValueError: the new endorser already holds a valid endorsement
                for the same recipient and skill.
        """
        # recipient_id is immutable; the record is re-read under its lock.
        recipient_id = self.repo.get_endorsement(endorsement_id).recipient_id
        with self.repo.locked(recipient_id):
            endorsement = self.repo.get_endorsement(endorsement_id)
            if endorser_id is not None and endorsement.is_valid:
                self._check_not_duplicate(recipient_id, endorsement.skill_id, endorser_id, exclude_id=endorsement_id)
            if level is not None:
                endorsement.level = EndorsementLevel(level)
            if comment is not None:
                endorsement.comment = comment
            if weight is not None:
                endorsement.weight = weight
            if endorser_id is not None:
                endorsement.endorser_id = endorser_id
            self.repo.save_endorsement(endorsement)
            if weight is not None or endorser_id is not None:
                endorsement.weight = self.weight_assigner.assign(endorsement_id)
        self._publish(EventType.ENDORSEMENT_UPDATED, recipient_id, endorsement_id=endorsement_id)
        return endorsement

    def revoke_endorsement(self, endorsement_id: str) -> None:
        """Invalidate an endorsement; the record is kept."""
        recipient_id = self.repo.get_endorsement(endorsement_id).recipient_id
        with self.repo.locked(recipient_id):
            endorsement = self.repo.get_endorsement(endorsement_id)
            endorsement.is_valid = False
            self.repo.save_endorsement(endorsement)
        self._publish(EventType.ENDORSEMENT_REVOKED, recipient_id, endorsement_id=endorsement_id)

    # ── challenges ──

    def grade_submission(self, submission_id: str, score: float) -> GradeResult:
        # grading.grade_submission re-reads the submission under the lock.
        person_id = self.repo.get_submission(submission_id).person_id
        with self.repo.locked(person_id):
            result = grade_submission(self.repo, submission_id, score, now=self.clock())
        self._publish(
            EventType.SUBMISSION_GRADED,
            person_id,
            submission_id=submission_id,
            is_passed=result.is_passed,
        )
        return result
