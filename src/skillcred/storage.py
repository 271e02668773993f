"""
skillcred.storage — Document store backends and the repository the engine reads through.

Backends: MemoryBackend, SQLiteBackend
Repository: SkillLedgerRepository (typed access + per-person locking)

Key layout:
    person:<id>        Person with embedded PersonSkillRecords
    skill:<id>         Skill catalog entry
    challenge:<id>     Challenge
    submission:<id>    ChallengeSubmission
    endorsement:<id>   Endorsement
"""

from __future__ import annotations

import json
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from skillcred.errors import MissingReferenceError
from skillcred.models import (
    Challenge,
    ChallengeSubmission,
    Endorsement,
    Person,
    PersonSkillRecord,
    QualifyingSubmission,
    Skill,
)


# ─── Abstract Backend ──────────────────────────────────────────────

class StorageBackend(ABC):
    """Abstract persistence interface."""

    @abstractmethod
    def save(self, key: str, data: dict) -> None: ...

    @abstractmethod
    def load(self, key: str) -> Optional[dict]: ...

    @abstractmethod
    def delete(self, key: str) -> bool: ...

    @abstractmethod
    def list_keys(self, prefix: str = "") -> list[str]: ...

    def exists(self, key: str) -> bool:
        return self.load(key) is not None

    # Bulk operations (default impls, backends may override)
    def save_many(self, items: dict[str, dict]) -> None:
        for k, v in items.items():
            self.save(k, v)

    def load_prefix(self, prefix: str) -> list[dict]:
        docs = []
        for key in self.list_keys(prefix):
            data = self.load(key)
            if data is not None:
                docs.append(data)
        return docs

    def query_by_owner(self, owner_id: str, prefix: str = "") -> list[dict]:
        """All documents under prefix whose owner is owner_id."""
        return [d for d in self.load_prefix(prefix) if _owner_of(d) == owner_id]

    def close(self) -> None:
        pass


def _owner_of(data: dict) -> Optional[str]:
    """The person a document belongs to (submitter, recipient, or the person itself)."""
    return data.get("person_id") or data.get("recipient_id")


# ─── Memory Backend ────────────────────────────────────────────────

class MemoryBackend(StorageBackend):
    """In-memory dict storage (default, for testing)."""

    def __init__(self):
        self._store: dict[str, str] = {}
        self._lock = threading.Lock()

    # Documents are stored serialized so callers never share mutable state.
    def save(self, key: str, data: dict) -> None:
        with self._lock:
            self._store[key] = json.dumps(data)

    def load(self, key: str) -> Optional[dict]:
        with self._lock:
            raw = self._store.get(key)
        return json.loads(raw) if raw is not None else None

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    def list_keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            return sorted(k for k in self._store if k.startswith(prefix))

    def save_many(self, items: dict[str, dict]) -> None:
        encoded = {k: json.dumps(v) for k, v in items.items()}
        with self._lock:
            self._store.update(encoded)


# ─── SQLite Backend ────────────────────────────────────────────────

class SQLiteBackend(StorageBackend):
    """File-based SQLite with WAL mode, thread-safe."""

    def __init__(self, db_path: str = "skillcred.db"):
        self._db_path = db_path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                key TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                owner_id TEXT,
                updated_at TEXT DEFAULT (datetime('now'))
            )
        """)
        self._conn.execute("CREATE INDEX IF NOT EXISTS idx_owner ON documents(owner_id)")
        self._conn.commit()

    def _upsert(self, key: str, data: dict) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO documents (key, data, owner_id, updated_at) VALUES (?, ?, ?, ?)",
            (key, json.dumps(data), _owner_of(data), datetime.now(timezone.utc).isoformat()),
        )

    def save(self, key: str, data: dict) -> None:
        with self._lock:
            self._upsert(key, data)
            self._conn.commit()

    def load(self, key: str) -> Optional[dict]:
        with self._lock:
            row = self._conn.execute("SELECT data FROM documents WHERE key = ?", (key,)).fetchone()
        return json.loads(row[0]) if row else None

    def delete(self, key: str) -> bool:
        with self._lock:
            cur = self._conn.execute("DELETE FROM documents WHERE key = ?", (key,))
            self._conn.commit()
            return cur.rowcount > 0

    def list_keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT key FROM documents WHERE key LIKE ? ORDER BY key", (prefix + "%",)
            ).fetchall()
        return [r[0] for r in rows]

    def load_prefix(self, prefix: str) -> list[dict]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT data FROM documents WHERE key LIKE ? ORDER BY key", (prefix + "%",)
            ).fetchall()
        return [json.loads(r[0]) for r in rows]

    def query_by_owner(self, owner_id: str, prefix: str = "") -> list[dict]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT data FROM documents WHERE owner_id = ? AND key LIKE ? ORDER BY key",
                (owner_id, prefix + "%"),
            ).fetchall()
        return [json.loads(r[0]) for r in rows]

    def save_many(self, items: dict[str, dict]) -> None:
        """All items are written in a single transaction."""
        with self._lock:
            for k, data in items.items():
                self._upsert(k, data)
            self._conn.commit()

    def close(self):
        self._conn.close()


# ─── Repository ────────────────────────────────────────────────────

PERSON = "person:"
SKILL = "skill:"
CHALLENGE = "challenge:"
SUBMISSION = "submission:"
ENDORSEMENT = "endorsement:"


class SkillLedgerRepository:
    """Typed record access over a StorageBackend.

    Read methods used by the calculators return empty results (or None)
    for missing records. Methods that need an existing record raise
    MissingReferenceError.
    """

    def __init__(self, backend: Optional[StorageBackend] = None):
        self._backend = backend or MemoryBackend()
        self._person_locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    # ── locking ──

    @contextmanager
    def locked(self, person_id: str) -> Iterator[None]:
        """Hold the re-entrant lock that serializes all work on one person."""
        with self._locks_guard:
            lock = self._person_locks.setdefault(person_id, threading.RLock())
        with lock:
            yield

    # ── persons ──

    def save_person(self, person: Person) -> None:
        self._backend.save(PERSON + person.person_id, person.to_dict())

    def find_person(self, person_id: str) -> Optional[Person]:
        data = self._backend.load(PERSON + person_id)
        return Person.from_dict(data) if data else None

    def get_person(self, person_id: str) -> Person:
        person = self.find_person(person_id)
        if person is None:
            raise MissingReferenceError("person", person_id)
        return person

    def list_person_ids(self) -> list[str]:
        return [k[len(PERSON):] for k in self._backend.list_keys(PERSON)]

    def list_persons(self) -> list[Person]:
        return [Person.from_dict(d) for d in self._backend.load_prefix(PERSON)]

    def get_overall_credibility(self, person_id: str) -> float:
        person = self.find_person(person_id)
        return person.overall_credibility_score if person else 0

    def update_overall_score(self, person_id: str, score: float) -> None:
        person = self.get_person(person_id)
        person.overall_credibility_score = score
        self.save_person(person)

    # ── person skills ──

    def list_owned_skills(self, person_id: str) -> list[str]:
        person = self.find_person(person_id)
        return [s.skill_id for s in person.skills] if person else []

    def get_person_skill_record(self, person_id: str, skill_id: str) -> Optional[PersonSkillRecord]:
        person = self.find_person(person_id)
        return person.skill(skill_id) if person else None

    def add_person_skill(self, person_id: str, record: PersonSkillRecord) -> None:
        person = self.get_person(person_id)
        if person.skill(record.skill_id) is not None:
            raise ValueError(f"{person_id} already owns skill {record.skill_id}")
        person.skills.append(record)
        self.save_person(person)

    def update_person_skill(
        self,
        person_id: str,
        skill_id: str,
        *,
        proficiency_level: Optional[int] = None,
        years_of_experience: Optional[float] = None,
    ) -> PersonSkillRecord:
        person = self.get_person(person_id)
        record = person.skill(skill_id)
        if record is None:
            raise MissingReferenceError("person skill", f"{person_id}/{skill_id}")
        if proficiency_level is not None:
            record.proficiency_level = proficiency_level
        if years_of_experience is not None:
            record.years_of_experience = years_of_experience
        self.save_person(person)
        return record

    def remove_person_skill(self, person_id: str, skill_id: str) -> bool:
        person = self.get_person(person_id)
        kept = [s for s in person.skills if s.skill_id != skill_id]
        if len(kept) == len(person.skills):
            return False
        person.skills = kept
        self.save_person(person)
        return True

    def update_skill_score(
        self,
        person_id: str,
        skill_id: str,
        *,
        credibility_score: float,
        is_verified: bool,
        last_updated: datetime,
    ) -> None:
        person = self.get_person(person_id)
        record = person.skill(skill_id)
        if record is None:
            raise MissingReferenceError("person skill", f"{person_id}/{skill_id}")
        record.credibility_score = credibility_score
        record.is_verified = is_verified
        record.last_updated = last_updated
        self.save_person(person)

    # ── skill catalog ──

    def save_skill(self, skill: Skill) -> None:
        self._backend.save(SKILL + skill.skill_id, skill.to_dict())

    def find_skill(self, skill_id: str) -> Optional[Skill]:
        data = self._backend.load(SKILL + skill_id)
        return Skill.from_dict(data) if data else None

    # ── challenges & submissions ──

    def save_challenge(self, challenge: Challenge) -> None:
        self._backend.save(CHALLENGE + challenge.challenge_id, challenge.to_dict())

    def get_challenge(self, challenge_id: str) -> Challenge:
        data = self._backend.load(CHALLENGE + challenge_id)
        if data is None:
            raise MissingReferenceError("challenge", challenge_id)
        return Challenge.from_dict(data)

    def save_submission(self, submission: ChallengeSubmission) -> None:
        self._backend.save(SUBMISSION + submission.submission_id, submission.to_dict())

    def get_submission(self, submission_id: str) -> ChallengeSubmission:
        data = self._backend.load(SUBMISSION + submission_id)
        if data is None:
            raise MissingReferenceError("submission", submission_id)
        return ChallengeSubmission.from_dict(data)

    def list_submissions(self, person_id: str) -> list[ChallengeSubmission]:
        return [
            ChallengeSubmission.from_dict(d)
            for d in self._backend.query_by_owner(person_id, SUBMISSION)
        ]

    def list_passed_verified_submissions(self, person_id: str) -> list[QualifyingSubmission]:
        """Passed and verified submissions joined with their challenge.

        Submissions whose challenge record is gone are skipped.
        """
        results = []
        for sub in self.list_submissions(person_id):
            if not (sub.is_passed and sub.is_verified):
                continue
            data = self._backend.load(CHALLENGE + sub.challenge_id)
            if data is None:
                continue
            challenge = Challenge.from_dict(data)
            results.append(QualifyingSubmission(
                skill_id=challenge.skill_id,
                difficulty=challenge.difficulty,
                achieved_score=sub.score,
                submitted_at=sub.submitted_at,
            ))
        return results

    # ── endorsements ──

    def save_endorsement(self, endorsement: Endorsement) -> None:
        self._backend.save(ENDORSEMENT + endorsement.endorsement_id, endorsement.to_dict())

    def get_endorsement(self, endorsement_id: str) -> Endorsement:
        data = self._backend.load(ENDORSEMENT + endorsement_id)
        if data is None:
            raise MissingReferenceError("endorsement", endorsement_id)
        return Endorsement.from_dict(data)

    def list_endorsements_received(self, recipient_id: str) -> list[Endorsement]:
        return [
            Endorsement.from_dict(d)
            for d in self._backend.query_by_owner(recipient_id, ENDORSEMENT)
        ]

    def list_valid_endorsements(self, recipient_id: str, skill_id: str) -> list[Endorsement]:
        return [
            e for e in self.list_endorsements_received(recipient_id)
            if e.is_valid and e.skill_id == skill_id
        ]

    def set_endorsement_weight(self, endorsement_id: str, weight: float) -> None:
        endorsement = self.get_endorsement(endorsement_id)
        endorsement.weight = weight
        self.save_endorsement(endorsement)


__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "SQLiteBackend",
    "SkillLedgerRepository",
]
