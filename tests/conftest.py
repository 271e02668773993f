"""Shared fixtures: a fixed clock, an in-memory repository and record builders."""

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from skillcred.events import EventBus
from skillcred.models import (
    Challenge,
    ChallengeSubmission,
    Difficulty,
    Endorsement,
    EndorsementLevel,
    Person,
    PersonSkillRecord,
)
from skillcred.service import CredibilityService
from skillcred.storage import MemoryBackend, SkillLedgerRepository

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def repo():
    return SkillLedgerRepository(MemoryBackend())


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def service(repo, clock, bus):
    return CredibilityService(repo, clock=clock, event_bus=bus)


@pytest.fixture
def make_person(repo):
    """make_person("alice", ("python", 5, 3), overall=0, stale_days=0)"""
    def _make(person_id, *skills, overall=0, stale_days=0, name=""):
        records = [
            PersonSkillRecord(
                skill_id=skill_id,
                proficiency_level=level,
                years_of_experience=years,
                last_updated=NOW - timedelta(days=stale_days),
            )
            for skill_id, level, years in skills
        ]
        person = Person(person_id=person_id, name=name, overall_credibility_score=overall, skills=records)
        repo.save_person(person)
        return person
    return _make


@pytest.fixture
def make_submission(repo):
    """Challenge + submission in one call; passed and verified by default."""
    ids = itertools.count(1)

    def _make(person_id, skill_id, difficulty="easy", score=100, days_ago=0,
              passed=True, verified=True, passing_score=60):
        n = next(ids)
        challenge = Challenge(
            challenge_id=f"ch{n}",
            skill_id=skill_id,
            difficulty=Difficulty(difficulty),
            passing_score=passing_score,
        )
        submission = ChallengeSubmission(
            submission_id=f"sub{n}",
            person_id=person_id,
            challenge_id=challenge.challenge_id,
            score=score,
            is_passed=passed,
            is_verified=verified,
            submitted_at=NOW - timedelta(days=days_ago),
        )
        repo.save_challenge(challenge)
        repo.save_submission(submission)
        return submission
    return _make


@pytest.fixture
def make_endorsement(repo):
    """Stores an endorsement as-is (weight is not re-derived)."""
    ids = itertools.count(1)

    def _make(endorser_id, recipient_id, skill_id, level="expert", weight=1.0, is_valid=True):
        endorsement = Endorsement(
            endorsement_id=f"e{next(ids)}",
            endorser_id=endorser_id,
            recipient_id=recipient_id,
            skill_id=skill_id,
            level=EndorsementLevel(level),
            weight=weight,
            is_valid=is_valid,
            endorsed_at=NOW,
        )
        repo.save_endorsement(endorsement)
        return endorsement
    return _make
