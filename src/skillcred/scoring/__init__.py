"""Scoring engine — evidence calculators, decay, aggregation and endorsement weights."""

from .aggregator import CredibilityAggregator, CredibilityResult, ScoreBreakdown, round_half_up
from .decay import DecayCalculator, decay_multiplier
from .evidence import (
    ChallengeEvidenceCalculator,
    EndorsementEvidenceCalculator,
    ProficiencyEvidenceCalculator,
)
from .weights import EndorsementWeightAssigner, endorsement_weight

__all__ = [
    "CredibilityAggregator",
    "CredibilityResult",
    "ScoreBreakdown",
    "round_half_up",
    "DecayCalculator",
    "decay_multiplier",
    "ChallengeEvidenceCalculator",
    "EndorsementEvidenceCalculator",
    "ProficiencyEvidenceCalculator",
    "EndorsementWeightAssigner",
    "endorsement_weight",
]
