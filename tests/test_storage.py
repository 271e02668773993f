"""Tests for skillcred.storage — backends and the ledger repository."""

import threading

import pytest

from skillcred.errors import MissingReferenceError
from skillcred.models import (
    Challenge,
    ChallengeSubmission,
    Difficulty,
    Person,
    PersonSkillRecord,
    Skill,
)
from skillcred.storage import MemoryBackend, SkillLedgerRepository, SQLiteBackend


@pytest.fixture
def memory():
    return MemoryBackend()

@pytest.fixture
def sqlite_backend(tmp_path):
    db = SQLiteBackend(str(tmp_path / "test.db"))
    yield db
    db.close()


# ─── StorageBackend interface (parametrized) ───────────────────────

ALL_BACKENDS = ["memory", "sqlite_backend"]


@pytest.mark.parametrize("backend_name", ALL_BACKENDS)
class TestStorageBackendInterface:
    def test_save_and_load(self, backend_name, request):
        backend = request.getfixturevalue(backend_name)
        backend.save("k1", {"a": 1})
        assert backend.load("k1") == {"a": 1}

    def test_load_missing(self, backend_name, request):
        backend = request.getfixturevalue(backend_name)
        assert backend.load("nope") is None

    def test_overwrite(self, backend_name, request):
        backend = request.getfixturevalue(backend_name)
        backend.save("k", {"v": 1})
        backend.save("k", {"v": 2})
        assert backend.load("k") == {"v": 2}

    def test_delete(self, backend_name, request):
        backend = request.getfixturevalue(backend_name)
        backend.save("k", {"v": 1})
        assert backend.delete("k") is True
        assert backend.delete("k") is False
        assert not backend.exists("k")

    def test_list_keys_prefix(self, backend_name, request):
        backend = request.getfixturevalue(backend_name)
        backend.save("person:b", {})
        backend.save("person:a", {})
        backend.save("skill:x", {})
        assert backend.list_keys("person:") == ["person:a", "person:b"]
        assert len(backend.list_keys()) == 3

    def test_save_many_and_load_prefix(self, backend_name, request):
        backend = request.getfixturevalue(backend_name)
        backend.save_many({"s:1": {"n": 1}, "s:2": {"n": 2}, "t:1": {"n": 3}})
        assert [d["n"] for d in backend.load_prefix("s:")] == [1, 2]

    def test_query_by_owner(self, backend_name, request):
        backend = request.getfixturevalue(backend_name)
        backend.save("submission:1", {"person_id": "alice"})
        backend.save("submission:2", {"person_id": "bob"})
        backend.save("endorsement:1", {"recipient_id": "alice"})
        assert len(backend.query_by_owner("alice")) == 2
        assert backend.query_by_owner("alice", "endorsement:") == [{"recipient_id": "alice"}]

    def test_stored_copy_is_isolated(self, backend_name, request):
        backend = request.getfixturevalue(backend_name)
        doc = {"items": [1]}
        backend.save("k", doc)
        doc["items"].append(2)
        assert backend.load("k") == {"items": [1]}


def test_sqlite_persists_across_connections(tmp_path):
    path = str(tmp_path / "persist.db")
    db = SQLiteBackend(path)
    db.save("person:alice", {"person_id": "alice"})
    db.close()

    db = SQLiteBackend(path)
    assert db.load("person:alice") == {"person_id": "alice"}
    db.close()


# ─── Repository ────────────────────────────────────────────────────

@pytest.fixture(params=ALL_BACKENDS)
def ledger(request):
    return SkillLedgerRepository(request.getfixturevalue(request.param))


class TestPersons:
    def test_save_and_find(self, ledger):
        ledger.save_person(Person(person_id="alice", name="Alice"))
        assert ledger.find_person("alice").name == "Alice"
        assert ledger.find_person("bob") is None

    def test_get_missing_raises(self, ledger):
        with pytest.raises(MissingReferenceError, match="person not found: bob"):
            ledger.get_person("bob")

    def test_overall_credibility(self, ledger):
        ledger.save_person(Person(person_id="alice", overall_credibility_score=64))
        assert ledger.get_overall_credibility("alice") == 64
        assert ledger.get_overall_credibility("ghost") == 0

    def test_list_person_ids(self, ledger):
        ledger.save_person(Person(person_id="b"))
        ledger.save_person(Person(person_id="a"))
        assert ledger.list_person_ids() == ["a", "b"]
        assert {p.person_id for p in ledger.list_persons()} == {"a", "b"}


class TestPersonSkills:
    @pytest.fixture(autouse=True)
    def alice(self, ledger):
        ledger.save_person(Person(person_id="alice", skills=[PersonSkillRecord("python", 5, 3)]))

    def test_owned_skills(self, ledger):
        assert ledger.list_owned_skills("alice") == ["python"]
        assert ledger.list_owned_skills("ghost") == []

    def test_add_duplicate_rejected(self, ledger):
        with pytest.raises(ValueError):
            ledger.add_person_skill("alice", PersonSkillRecord("python", 2))

    def test_add_and_remove(self, ledger):
        ledger.add_person_skill("alice", PersonSkillRecord("sql", 2))
        assert ledger.list_owned_skills("alice") == ["python", "sql"]
        assert ledger.remove_person_skill("alice", "sql") is True
        assert ledger.remove_person_skill("alice", "sql") is False

    def test_update_claim(self, ledger):
        ledger.update_person_skill("alice", "python", years_of_experience=7)
        record = ledger.get_person_skill_record("alice", "python")
        assert record.years_of_experience == 7
        assert record.proficiency_level == 5

    def test_update_unknown_skill(self, ledger):
        with pytest.raises(MissingReferenceError):
            ledger.update_person_skill("alice", "rust", proficiency_level=3)

    def test_update_skill_score(self, ledger, now):
        ledger.update_skill_score("alice", "python", credibility_score=72, is_verified=True, last_updated=now)
        record = ledger.get_person_skill_record("alice", "python")
        assert record.credibility_score == 72
        assert record.is_verified is True
        assert record.last_updated == now


class TestEvidenceQueries:
    def test_passed_verified_join(self, ledger, now):
        ledger.save_challenge(Challenge("c1", "python", Difficulty.HARD, 70))
        ledger.save_submission(ChallengeSubmission("s1", "alice", "c1", 85, True, True, submitted_at=now))
        ledger.save_submission(ChallengeSubmission("s2", "alice", "c1", 40, False, False, submitted_at=now))
        ledger.save_submission(ChallengeSubmission("s3", "bob", "c1", 90, True, True, submitted_at=now))

        rows = ledger.list_passed_verified_submissions("alice")
        assert len(rows) == 1
        assert rows[0].skill_id == "python"
        assert rows[0].difficulty == Difficulty.HARD
        assert rows[0].achieved_score == 85
        assert rows[0].submitted_at == now

    def test_missing_challenge_skipped(self, ledger, now):
        ledger.save_submission(ChallengeSubmission("s1", "alice", "gone", 85, True, True, submitted_at=now))
        assert ledger.list_passed_verified_submissions("alice") == []

    def test_missing_challenge_raises_on_get(self, ledger):
        with pytest.raises(MissingReferenceError):
            ledger.get_challenge("gone")

    def test_skill_catalog(self, ledger):
        ledger.save_skill(Skill("python", "Python", "Programming"))
        assert ledger.find_skill("python").category == "Programming"
        assert ledger.find_skill("cobol") is None


class TestEndorsementQueries:
    def test_valid_filter(self, repo, make_endorsement):
        make_endorsement("bob", "alice", "python")
        make_endorsement("carol", "alice", "python", is_valid=False)
        make_endorsement("dave", "alice", "sql")
        assert [e.endorser_id for e in repo.list_valid_endorsements("alice", "python")] == ["bob"]
        assert len(repo.list_endorsements_received("alice")) == 3

    def test_set_weight(self, repo, make_endorsement):
        e = make_endorsement("bob", "alice", "python", weight=0.5)
        repo.set_endorsement_weight(e.endorsement_id, 0.8)
        assert repo.get_endorsement(e.endorsement_id).weight == 0.8

    def test_missing_endorsement(self, repo):
        with pytest.raises(MissingReferenceError):
            repo.get_endorsement("nope")


def test_person_lock_is_reentrant(repo):
    with repo.locked("alice"):
        with repo.locked("alice"):
            pass


def test_person_lock_blocks_other_threads(repo):
    entered = threading.Event()

    def worker():
        with repo.locked("alice"):
            entered.set()

    with repo.locked("alice"):
        t = threading.Thread(target=worker)
        t.start()
        assert not entered.wait(0.05)
    t.join(timeout=2)
    assert entered.is_set()
