"""Endorsement influence weight, assigned once when the endorsement is written."""

from __future__ import annotations

import logging

from skillcred.config import DEFAULT_CONFIG, EndorsementWeightConfig
from skillcred.storage import SkillLedgerRepository

logger = logging.getLogger(__name__)


def endorsement_weight(endorser_credibility: float, config: EndorsementWeightConfig = DEFAULT_CONFIG.endorsement_weight) -> float:
    return min(config.base + endorser_credibility / config.divisor, config.cap)


class EndorsementWeightAssigner:
    """Snapshots the endorser's overall credibility into Endorsement.weight.

    The weight is not refreshed when the endorser's score changes later.
    """

    def __init__(self, repo: SkillLedgerRepository, config: EndorsementWeightConfig = DEFAULT_CONFIG.endorsement_weight):
        self.repo = repo
        self.config = config

    def assign(self, endorsement_id: str) -> float:
        endorsement = self.repo.get_endorsement(endorsement_id)
        credibility = self.repo.get_overall_credibility(endorsement.endorser_id)
        weight = endorsement_weight(credibility, self.config)
        self.repo.set_endorsement_weight(endorsement_id, weight)
        logger.debug("Endorsement %s weight=%.3f (endorser %s credibility %.1f)",
                     endorsement_id, weight, endorsement.endorser_id, credibility)
        return weight
