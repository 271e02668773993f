"""
skillcred.models — Records read and written by the credibility engine.

Persons own PersonSkillRecords (embedded, like a profile document), and
evidence arrives as ChallengeSubmissions and Endorsements. Every record
round-trips through to_dict()/from_dict() so it can live in any
StorageBackend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_dt(value) -> Optional[datetime]:
    """Parse an ISO-8601 string (or pass a datetime through) as aware UTC."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"


class EndorsementLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class EndorsementContext(str, Enum):
    COLLEAGUE = "colleague"
    MANAGER = "manager"
    CLIENT = "client"
    MENTOR = "mentor"
    PEER = "peer"
    TEAM_MEMBER = "team-member"


# ─── Challenge content (closed tagged variant) ─────────────────────

@dataclass
class CodeContent:
    language: str = ""
    source: str = ""
    test_cases: list[dict] = field(default_factory=list)
    kind: str = field(default="code", init=False)


@dataclass
class TextContent:
    body: str = ""
    min_words: int = 0
    kind: str = field(default="text", init=False)


@dataclass
class UrlContent:
    url: str = ""
    allowed_domains: list[str] = field(default_factory=list)
    kind: str = field(default="url", init=False)


@dataclass
class QuizContent:
    # question id -> chosen/expected option
    answers: dict[str, str] = field(default_factory=dict)
    kind: str = field(default="quiz", init=False)


ChallengeContent = Union[CodeContent, TextContent, UrlContent, QuizContent]

CONTENT_TYPES: dict[str, type] = {
    "code": CodeContent,
    "text": TextContent,
    "url": UrlContent,
    "quiz": QuizContent,
}


def content_to_dict(content: Optional[ChallengeContent]) -> Optional[dict]:
    if content is None:
        return None
    data = dict(content.__dict__)
    data["kind"] = content.kind
    return data


def content_from_dict(data: Optional[dict]) -> Optional[ChallengeContent]:
    """Rebuild a content variant from its dict form. Unknown kinds are rejected."""
    if data is None:
        return None
    kind = data.get("kind")
    cls = CONTENT_TYPES.get(kind)
    if cls is None:
        raise ValueError(f"unknown content kind: {kind!r}")
    fields = {k: v for k, v in data.items() if k != "kind"}
    return cls(**fields)


# ─── Catalog & person records ──────────────────────────────────────

@dataclass
class Skill:
    skill_id: str
    name: str
    category: str = ""

    def to_dict(self) -> dict:
        return {"skill_id": self.skill_id, "name": self.name, "category": self.category}

    @classmethod
    def from_dict(cls, data: dict) -> "Skill":
        return cls(skill_id=data["skill_id"], name=data["name"], category=data.get("category", ""))


@dataclass
class PersonSkillRecord:
    """A person's claim on one skill plus the score derived for it."""

    skill_id: str
    proficiency_level: int
    years_of_experience: float = 0
    credibility_score: float = 0
    is_verified: bool = False
    last_updated: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "skill_id": self.skill_id,
            "proficiency_level": self.proficiency_level,
            "years_of_experience": self.years_of_experience,
            "credibility_score": self.credibility_score,
            "is_verified": self.is_verified,
            "last_updated": _iso(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PersonSkillRecord":
        return cls(
            skill_id=data["skill_id"],
            proficiency_level=data["proficiency_level"],
            years_of_experience=data.get("years_of_experience", 0),
            credibility_score=data.get("credibility_score", 0),
            is_verified=data.get("is_verified", False),
            last_updated=parse_dt(data.get("last_updated")) or utcnow(),
        )


@dataclass
class Person:
    person_id: str
    name: str = ""
    overall_credibility_score: float = 0
    skills: list[PersonSkillRecord] = field(default_factory=list)

    def skill(self, skill_id: str) -> Optional[PersonSkillRecord]:
        for record in self.skills:
            if record.skill_id == skill_id:
                return record
        return None

    def to_dict(self) -> dict:
        return {
            "person_id": self.person_id,
            "name": self.name,
            "overall_credibility_score": self.overall_credibility_score,
            "skills": [s.to_dict() for s in self.skills],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Person":
        return cls(
            person_id=data["person_id"],
            name=data.get("name", ""),
            overall_credibility_score=data.get("overall_credibility_score", 0),
            skills=[PersonSkillRecord.from_dict(s) for s in data.get("skills", [])],
        )


# ─── Evidence ──────────────────────────────────────────────────────

@dataclass
class Challenge:
    challenge_id: str
    skill_id: str
    difficulty: Difficulty
    passing_score: float
    title: str = ""
    category: str = ""
    content: Optional[ChallengeContent] = None

    def to_dict(self) -> dict:
        return {
            "challenge_id": self.challenge_id,
            "skill_id": self.skill_id,
            "difficulty": self.difficulty.value,
            "passing_score": self.passing_score,
            "title": self.title,
            "category": self.category,
            "content": content_to_dict(self.content),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Challenge":
        return cls(
            challenge_id=data["challenge_id"],
            skill_id=data["skill_id"],
            difficulty=Difficulty(data["difficulty"]),
            passing_score=data["passing_score"],
            title=data.get("title", ""),
            category=data.get("category", ""),
            content=content_from_dict(data.get("content")),
        )


@dataclass
class ChallengeSubmission:
    submission_id: str
    person_id: str
    challenge_id: str
    score: float = 0
    is_passed: bool = False
    is_verified: bool = False
    submitted_at: datetime = field(default_factory=utcnow)
    verified_at: Optional[datetime] = None
    attempt_number: int = 1
    content: Optional[ChallengeContent] = None

    def to_dict(self) -> dict:
        return {
            "submission_id": self.submission_id,
            "person_id": self.person_id,
            "challenge_id": self.challenge_id,
            "score": self.score,
            "is_passed": self.is_passed,
            "is_verified": self.is_verified,
            "submitted_at": _iso(self.submitted_at),
            "verified_at": _iso(self.verified_at),
            "attempt_number": self.attempt_number,
            "content": content_to_dict(self.content),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChallengeSubmission":
        return cls(
            submission_id=data["submission_id"],
            person_id=data["person_id"],
            challenge_id=data["challenge_id"],
            score=data.get("score", 0),
            is_passed=data.get("is_passed", False),
            is_verified=data.get("is_verified", False),
            submitted_at=parse_dt(data.get("submitted_at")) or utcnow(),
            verified_at=parse_dt(data.get("verified_at")),
            attempt_number=data.get("attempt_number", 1),
            content=content_from_dict(data.get("content")),
        )


@dataclass
class QualifyingSubmission:
    """A passed, verified submission joined with its challenge."""

    skill_id: str
    difficulty: Difficulty
    achieved_score: float
    submitted_at: datetime


@dataclass
class Endorsement:
    endorsement_id: str
    endorser_id: str
    recipient_id: str
    skill_id: str
    level: EndorsementLevel
    weight: float = 0.5
    is_valid: bool = True
    endorsed_at: datetime = field(default_factory=utcnow)
    comment: str = ""
    context: EndorsementContext = EndorsementContext.PEER

    def to_dict(self) -> dict:
        return {
            "endorsement_id": self.endorsement_id,
            "endorser_id": self.endorser_id,
            "recipient_id": self.recipient_id,
            "skill_id": self.skill_id,
            "level": self.level.value,
            "weight": self.weight,
            "is_valid": self.is_valid,
            "endorsed_at": _iso(self.endorsed_at),
            "comment": self.comment,
            "context": self.context.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Endorsement":
        return cls(
            endorsement_id=data["endorsement_id"],
            endorser_id=data["endorser_id"],
            recipient_id=data["recipient_id"],
            skill_id=data["skill_id"],
            level=EndorsementLevel(data["level"]),
            weight=data.get("weight", 0.5),
            is_valid=data.get("is_valid", True),
            endorsed_at=parse_dt(data.get("endorsed_at")) or utcnow(),
            comment=data.get("comment", ""),
            context=EndorsementContext(data.get("context", "peer")),
        )
