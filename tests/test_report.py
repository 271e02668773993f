"""Tests for the per-person credibility summary and markdown report."""

import pytest

from skillcred.errors import MissingReferenceError
from skillcred.models import Skill
from skillcred.report import credibility_summary, generate_credibility_report


@pytest.fixture
def alice(service, repo, make_person, make_submission, make_endorsement):
    make_person("alice", ("python", 5, 3), ("sql", 2, 0), name="Alice")
    repo.save_skill(Skill("python", "Python", "Programming"))
    make_submission("alice", "python", difficulty="easy", score=100)
    make_submission("alice", "python", score=20, passed=False, verified=False)
    make_endorsement("bob", "alice", "python")
    make_endorsement("carol", "alice", "python", is_valid=False)
    service.recompute_person_skills("alice")


def test_summary_counts(repo, alice):
    summary = credibility_summary(repo, "alice")
    assert summary["name"] == "Alice"
    assert summary["total_skills"] == 2
    assert summary["total_endorsements"] == 1
    assert summary["challenges_attempted"] == 2
    assert summary["challenges_passed"] == 1
    assert summary["verified_skills"] == 1
    assert summary["overall_score"] == repo.get_person("alice").overall_credibility_score

def test_summary_skill_rows(repo, alice, now):
    rows = {r["skill_id"]: r for r in credibility_summary(repo, "alice")["skills"]}
    assert rows["python"]["name"] == "Python"
    assert rows["python"]["category"] == "Programming"
    assert rows["sql"]["name"] is None
    assert rows["python"]["last_updated"] == now.isoformat()

def test_summary_missing_person(repo):
    with pytest.raises(MissingReferenceError):
        credibility_summary(repo, "ghost")

def test_report_markdown(repo, alice, now):
    report = generate_credibility_report(repo, "alice", now=now)
    assert report.startswith("# Credibility Report: Alice")
    assert f"**Generated:** {now.isoformat()}" in report
    assert "## Skills" in report
    assert "| Python |" in report
    assert "| `sql` |" in report
    assert "**Challenges:** 1 passed of 2 attempted" in report

def test_report_rows_sorted_by_score(repo, alice, now):
    report = generate_credibility_report(repo, "alice", now=now)
    assert report.index("| Python |") < report.index("| `sql` |")

def test_report_without_skills(repo, make_person, now):
    make_person("bob")
    report = generate_credibility_report(repo, "bob", now=now)
    assert report.startswith("# Credibility Report: bob")
    assert "_No skills on record._" in report
