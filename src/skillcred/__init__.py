"""skillcred — Per-skill credibility scoring from challenges, endorsements and self-reported proficiency."""

from skillcred.config import ScoringConfig, Settings, DEFAULT_CONFIG
from skillcred.errors import SkillCredError, MissingReferenceError, ComputationError
from skillcred.events import Event, EventBus, EventType
from skillcred.models import (
    Challenge, ChallengeSubmission, Difficulty,
    Endorsement, EndorsementContext, EndorsementLevel,
    Person, PersonSkillRecord, Skill,
    CodeContent, TextContent, UrlContent, QuizContent,
)
from skillcred.recompute import RecomputeOrchestrator, RecomputeQueue
from skillcred.scoring import (
    ChallengeEvidenceCalculator, EndorsementEvidenceCalculator, ProficiencyEvidenceCalculator,
    DecayCalculator, CredibilityAggregator, CredibilityResult, ScoreBreakdown,
    EndorsementWeightAssigner,
)
from skillcred.service import CredibilityService
from skillcred.storage import MemoryBackend, SQLiteBackend, SkillLedgerRepository, StorageBackend

__version__ = "0.1.0"

__all__ = [
    "ScoringConfig",
    "Settings",
    "DEFAULT_CONFIG",
    "SkillCredError",
    "MissingReferenceError",
    "ComputationError",
    "Event",
    "EventBus",
    "EventType",
    "Challenge",
    "ChallengeSubmission",
    "Difficulty",
    "Endorsement",
    "EndorsementContext",
    "EndorsementLevel",
    "Person",
    "PersonSkillRecord",
    "Skill",
    "CodeContent",
    "TextContent",
    "UrlContent",
    "QuizContent",
    "RecomputeOrchestrator",
    "RecomputeQueue",
    "ChallengeEvidenceCalculator",
    "EndorsementEvidenceCalculator",
    "ProficiencyEvidenceCalculator",
    "DecayCalculator",
    "CredibilityAggregator",
    "CredibilityResult",
    "ScoreBreakdown",
    "EndorsementWeightAssigner",
    "CredibilityService",
    "MemoryBackend",
    "SQLiteBackend",
    "SkillLedgerRepository",
    "StorageBackend",
]
