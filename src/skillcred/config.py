"""
skillcred.config — Scoring constants and runtime settings.

ScoringConfig groups every tunable constant of the scoring engine into
validated sub-models. Defaults reproduce the production weights.

Settings holds process-level knobs read from the environment:
    SKILLCRED_DB_PATH      — SQLite file for the document store (default skillcred.db)
    SKILLCRED_WEBHOOK_URL  — optional URL receiving score events
    SKILLCRED_LOG_LEVEL    — log level for the management command (default INFO)
"""

from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ChallengeWeights(BaseModel):
    pass_base: float = 40
    score_weight: float = 30
    recency_weight: float = 20
    recency_window_days: float = Field(default=365, gt=0)
    difficulty_multipliers: dict[str, float] = Field(
        default_factory=lambda: {"easy": 1.0, "medium": 1.5, "hard": 2.0, "expert": 3.0}
    )

    @field_validator("difficulty_multipliers")
    @classmethod
    def _positive_multipliers(cls, v: dict[str, float]) -> dict[str, float]:
        for name, mult in v.items():
            if mult <= 0:
                raise ValueError(f"difficulty multiplier for {name!r} must be positive")
        return v


class EndorsementWeights(BaseModel):
    level_weight: float = 50
    endorser_weight: float = 30
    count_weight: float = 20
    count_step: float = 2
    level_values: dict[str, int] = Field(
        default_factory=lambda: {"beginner": 1, "intermediate": 2, "advanced": 3, "expert": 4}
    )

    @property
    def max_level_value(self) -> int:
        return max(self.level_values.values())


class ProficiencyWeights(BaseModel):
    base: float = 25
    level_weight: float = 50
    experience_weight: float = 25
    max_level: int = Field(default=10, gt=0)
    experience_cap_years: float = Field(default=10, gt=0)


class DecayConfig(BaseModel):
    grace_days: float = Field(default=90, ge=0)
    window_days: float = Field(default=365 * 2, gt=0)
    floor: float = Field(default=0.5, gt=0, le=1)


class AggregateWeights(BaseModel):
    challenge: float = 0.4
    endorsement: float = 0.35
    proficiency: float = 0.25
    verify_challenge_threshold: float = 30
    verify_endorsement_threshold: float = 40

    @model_validator(mode="after")
    def _weights_sum_to_one(self) -> "AggregateWeights":
        total = self.challenge + self.endorsement + self.proficiency
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"aggregate weights must sum to 1, got {total}")
        return self


class EndorsementWeightConfig(BaseModel):
    base: float = 0.5
    divisor: float = Field(default=200, gt=0)
    cap: float = Field(default=1.0, gt=0, le=1)


class ScoringConfig(BaseModel):
    """All constants used by the calculators, aggregator and orchestrator."""

    challenge: ChallengeWeights = Field(default_factory=ChallengeWeights)
    endorsement: EndorsementWeights = Field(default_factory=EndorsementWeights)
    proficiency: ProficiencyWeights = Field(default_factory=ProficiencyWeights)
    decay: DecayConfig = Field(default_factory=DecayConfig)
    aggregate: AggregateWeights = Field(default_factory=AggregateWeights)
    endorsement_weight: EndorsementWeightConfig = Field(default_factory=EndorsementWeightConfig)


DEFAULT_CONFIG = ScoringConfig()


class Settings:
    """Runtime settings. Explicit arguments win over environment variables."""

    def __init__(
        self,
        *,
        db_path: Optional[str] = None,
        webhook_url: Optional[str] = None,
        log_level: Optional[str] = None,
    ):
        self.db_path = db_path or os.environ.get("SKILLCRED_DB_PATH", "skillcred.db")
        self.webhook_url = webhook_url or os.environ.get("SKILLCRED_WEBHOOK_URL") or None
        self.log_level = (log_level or os.environ.get("SKILLCRED_LOG_LEVEL", "INFO")).upper()

    def __repr__(self):
        return f"Settings(db_path={self.db_path!r}, webhook_url={self.webhook_url!r}, log_level={self.log_level!r})"
