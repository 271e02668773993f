"""Tests for endorsement weight assignment."""

import pytest

from skillcred.config import EndorsementWeightConfig
from skillcred.errors import MissingReferenceError
from skillcred.scoring.weights import EndorsementWeightAssigner, endorsement_weight


@pytest.mark.parametrize("credibility,expected", [
    (0, 0.5),
    (40, 0.7),
    (80, 0.9),
    (100, 1.0),
])
def test_weight_formula(credibility, expected):
    assert endorsement_weight(credibility) == pytest.approx(expected)

def test_weight_capped():
    assert endorsement_weight(150) == 1.0
    assert endorsement_weight(100, EndorsementWeightConfig(cap=0.8)) == 0.8


class TestAssigner:
    def test_snapshots_endorser_credibility(self, repo, make_person, make_endorsement):
        make_person("bob", overall=80)
        e = make_endorsement("bob", "alice", "python", weight=0.5)
        assert EndorsementWeightAssigner(repo).assign(e.endorsement_id) == pytest.approx(0.9)
        assert repo.get_endorsement(e.endorsement_id).weight == pytest.approx(0.9)

    def test_unknown_endorser(self, repo, make_endorsement):
        e = make_endorsement("ghost", "alice", "python", weight=1.0)
        assert EndorsementWeightAssigner(repo).assign(e.endorsement_id) == 0.5

    def test_not_refreshed_by_later_changes(self, repo, make_person, make_endorsement):
        bob = make_person("bob", overall=80)
        e = make_endorsement("bob", "alice", "python")
        EndorsementWeightAssigner(repo).assign(e.endorsement_id)
        bob.overall_credibility_score = 10
        repo.save_person(bob)
        assert repo.get_endorsement(e.endorsement_id).weight == pytest.approx(0.9)

    def test_missing_endorsement(self, repo):
        with pytest.raises(MissingReferenceError):
            EndorsementWeightAssigner(repo).assign("nope")
