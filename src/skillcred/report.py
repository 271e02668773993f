"""
Credibility report — per-person score summary and its markdown rendering.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from skillcred.storage import SkillLedgerRepository


def credibility_summary(repo: SkillLedgerRepository, person_id: str) -> dict:
    """Overall score, evidence counts and per-skill rows for one person.

    Raises:
        MissingReferenceError: person not found.
    """
    person = repo.get_person(person_id)
    submissions = repo.list_submissions(person_id)
    endorsements = [e for e in repo.list_endorsements_received(person_id) if e.is_valid]

    skills = []
    for record in person.skills:
        skill = repo.find_skill(record.skill_id)
        skills.append({
            "skill_id": record.skill_id,
            "name": skill.name if skill else None,
            "category": skill.category if skill else None,
            "credibility_score": record.credibility_score,
            "is_verified": record.is_verified,
            "proficiency_level": record.proficiency_level,
            "years_of_experience": record.years_of_experience,
            "last_updated": record.last_updated.isoformat(),
        })

    return {
        "person_id": person.person_id,
        "name": person.name,
        "overall_score": person.overall_credibility_score,
        "total_skills": len(person.skills),
        "verified_skills": sum(1 for s in person.skills if s.is_verified),
        "total_endorsements": len(endorsements),
        "challenges_attempted": len(submissions),
        "challenges_passed": sum(1 for s in submissions if s.is_passed),
        "skills": skills,
    }


def generate_credibility_report(
    repo: SkillLedgerRepository,
    person_id: str,
    now: Optional[datetime] = None,
) -> str:
    """Markdown report of a person's credibility summary."""
    now = now or datetime.now(timezone.utc)
    summary = credibility_summary(repo, person_id)
    lines: list[str] = []

    # ── Header ──
    title = summary["name"] or summary["person_id"]
    lines.append(f"# Credibility Report: {title}")
    lines.append("")
    lines.append(f"**Generated:** {now.isoformat()}")
    lines.append(f"**Overall Score:** {summary['overall_score']}")
    lines.append(f"**Skills:** {summary['total_skills']} ({summary['verified_skills']} verified)")
    lines.append(f"**Endorsements Received:** {summary['total_endorsements']}")
    lines.append(
        f"**Challenges:** {summary['challenges_passed']} passed of {summary['challenges_attempted']} attempted"
    )
    lines.append("")

    # ── Skills ──
    lines.append("## Skills")
    lines.append("")
    if not summary["skills"]:
        lines.append("_No skills on record._")
        lines.append("")
        return "\n".join(lines)

    lines.append("| Skill | Score | Verified | Proficiency | Years | Last Updated |")
    lines.append("|-------|-------|----------|-------------|-------|--------------|")
    for row in sorted(summary["skills"], key=lambda r: -r["credibility_score"]):
        verified = "yes" if row["is_verified"] else "no"
        name = row["name"] or f"`{row['skill_id']}`"
        lines.append(
            f"| {name} | {row['credibility_score']} | {verified} | "
            f"{row['proficiency_level']}/10 | {row['years_of_experience']} | {row['last_updated']} |"
        )
    lines.append("")
    return "\n".join(lines)
