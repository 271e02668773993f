"""
Candidate analytics — search, score distribution, per-skill statistics.

Everything here reads the scores stored by the recompute cycle; nothing
is rescored.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

from skillcred.models import Person
from skillcred.storage import SkillLedgerRepository

# (label, lower bound) from highest to lowest
DISTRIBUTION_BUCKETS = [
    ("80-100", 80),
    ("60-79", 60),
    ("40-59", 40),
    ("20-39", 20),
    ("0-19", 0),
]


@dataclass
class SearchPage:
    persons: list[Person] = field(default_factory=list)
    page: int = 1
    limit: int = 10
    total: int = 0

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> dict:
        return {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages}


@dataclass
class SkillStats:
    skill_id: str
    name: str
    count: int = 0
    avg_proficiency: float = 0.0
    avg_credibility: float = 0.0


def _matches(
    person: Person,
    skill_ids: Optional[set[str]],
    min_credibility: Optional[float],
    max_credibility: Optional[float],
    min_proficiency: Optional[int],
) -> bool:
    if skill_ids and not any(s.skill_id in skill_ids for s in person.skills):
        return False
    if min_credibility is not None and person.overall_credibility_score < min_credibility:
        return False
    if max_credibility is not None and person.overall_credibility_score > max_credibility:
        return False
    if min_proficiency is not None and not any(s.proficiency_level >= min_proficiency for s in person.skills):
        return False
    return True


def search_candidates(
    repo: SkillLedgerRepository,
    skill_ids: Optional[list[str]] = None,
    min_credibility: Optional[float] = None,
    max_credibility: Optional[float] = None,
    min_proficiency: Optional[int] = None,
    page: int = 1,
    limit: int = 10,
) -> SearchPage:
    """Filter persons and rank them by overall credibility (highest first).

    Args:
        skill_ids: Keep persons owning at least one of these skills.
        min_credibility / max_credibility: Inclusive bounds on the overall score.
        min_proficiency: Keep persons with any skill at or above this level.
        page: 1-based page number.
        limit: Page size.
    """
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be positive")
    wanted = set(skill_ids) if skill_ids else None
    matches = [
        p for p in repo.list_persons()
        if _matches(p, wanted, min_credibility, max_credibility, min_proficiency)
    ]
    matches.sort(key=lambda p: (-p.overall_credibility_score, p.person_id))
    start = (page - 1) * limit
    return SearchPage(persons=matches[start:start + limit], page=page, limit=limit, total=len(matches))


def credibility_distribution(repo: SkillLedgerRepository) -> dict[str, int]:
    """Count persons per overall-score bucket. Every bucket is present."""
    counts = {label: 0 for label, _ in reversed(DISTRIBUTION_BUCKETS)}
    for person in repo.list_persons():
        for label, lower in DISTRIBUTION_BUCKETS:
            if person.overall_credibility_score >= lower:
                counts[label] += 1
                break
    return counts


def skill_statistics(repo: SkillLedgerRepository, limit: int = 10) -> list[SkillStats]:
    """Most-held skills with average proficiency and credibility."""
    totals: dict[str, list] = {}
    for person in repo.list_persons():
        for record in person.skills:
            entry = totals.setdefault(record.skill_id, [0, 0.0, 0.0])
            entry[0] += 1
            entry[1] += record.proficiency_level
            entry[2] += record.credibility_score

    stats = []
    for skill_id, (count, prof_sum, cred_sum) in totals.items():
        skill = repo.find_skill(skill_id)
        stats.append(SkillStats(
            skill_id=skill_id,
            name=skill.name if skill else skill_id,
            count=count,
            avg_proficiency=round(prof_sum / count, 2),
            avg_credibility=round(cred_sum / count, 2),
        ))
    stats.sort(key=lambda s: (-s.count, s.name))
    return stats[:limit]
