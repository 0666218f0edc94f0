"""Career catalog data models."""

from pydantic import BaseModel, Field


class CareerEntry(BaseModel):
    """One opportunity in the career catalog."""

    id: str
    title: str
    company: str = ""
    location: str = ""
    description: str = ""
    skills: list[str] = Field(default_factory=list)


class ScoredCareer(CareerEntry):
    """Catalog entry annotated with its match against a profile.

    Attributes:
        score: 2 points per matched skill, plus 1 if an interest hits the title
        skill_hits: Number of catalog skills the profile lists
        matched_skills: The matched skills, in catalog order
    """

    score: int = 0
    skill_hits: int = 0
    matched_skills: list[str] = Field(default_factory=list)
