"""Career matching: scores catalog entries against a user's profile."""

import json
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from careerfeed.models.career import CareerEntry, ScoredCareer

SKILL_WEIGHT = 2
INTEREST_WEIGHT = 1


def find_overlap(a: Iterable[str] | None, b: Sequence[str] | None) -> list[str]:
    """Items of ``b`` that also appear in ``a``, in ``b``'s order."""
    seen = set(a or [])
    return [item for item in (b or []) if item in seen]


def contains_any(text: str, items: Iterable[str]) -> bool:
    """Check whether ``text`` contains the first word of any item, ignoring case."""
    lower_text = text.lower()
    for item in items:
        if not item.strip():
            continue
        if item.lower().split()[0] in lower_text:
            return True
    return False


def score_careers(
    profile: Mapping[str, Any], catalog: Sequence[CareerEntry]
) -> list[ScoredCareer]:
    """
    Score every catalog entry against a profile, best match first.

    Each skill the profile shares with the entry is worth 2 points; one more
    point is added when an interest's first word appears in the title. Ties
    keep catalog order.

    Args:
        profile: Mapping with optional ``skills`` and ``interests`` lists
        catalog: Career entries to score

    Returns:
        List of ScoredCareer sorted by descending score
    """
    skills = profile.get("skills") or []
    interests = profile.get("interests") or []

    scored = []
    for career in catalog:
        matched = find_overlap(skills, career.skills)
        interest_hits = 1 if contains_any(career.title, interests) else 0
        scored.append(
            ScoredCareer(
                **career.model_dump(),
                score=len(matched) * SKILL_WEIGHT + interest_hits * INTEREST_WEIGHT,
                skill_hits=len(matched),
                matched_skills=matched,
            )
        )

    return sorted(scored, key=lambda career: career.score, reverse=True)


def calculate_profile_completion(profile: Mapping[str, Any]) -> float:
    """Percentage (0-100) of name, education, skills and interests filled in."""
    fields = [
        profile.get("full_name") or profile.get("name"),
        profile.get("education"),
        len(profile.get("skills") or []),
        len(profile.get("interests") or []),
    ]
    completed = sum(1 for value in fields if value)
    return min(completed / len(fields) * 100, 100.0)


def load_catalog(path: Path | str) -> list[CareerEntry]:
    """Load the career catalog from a JSON array file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return [CareerEntry.model_validate(item) for item in data]
