"""
Staleness decay for a person's skill record.

No penalty during the grace period (90 days); afterwards the multiplier
falls linearly over a two-year window and is floored at 0.5.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from skillcred.config import DEFAULT_CONFIG, DecayConfig
from skillcred.models import utcnow

SECONDS_PER_DAY = 86400.0


def days_between(earlier: datetime, later: datetime) -> float:
    """Fractional days from earlier to later."""
    return (later - earlier).total_seconds() / SECONDS_PER_DAY


def decay_multiplier(days_since_update: float, config: DecayConfig = DEFAULT_CONFIG.decay) -> float:
    if days_since_update < config.grace_days:
        return 1.0
    decay = 1 - (days_since_update - config.grace_days) / config.window_days
    return max(config.floor, min(decay, 1.0))


class DecayCalculator:
    """Aging multiplier in [floor, 1] for a PersonSkillRecord.last_updated."""

    def __init__(self, config: DecayConfig = DEFAULT_CONFIG.decay):
        self.config = config

    def compute(self, last_updated: Optional[datetime], now: Optional[datetime] = None) -> float:
        # A missing record carries no staleness.
        if last_updated is None:
            return 1.0
        now = now or utcnow()
        return decay_multiplier(days_between(last_updated, now), self.config)
