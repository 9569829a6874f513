"""Profile domain models shared by the scoring engine, services and repositories."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field, field_validator


def _now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_terms(values: Iterable[str]) -> List[str]:
    """Strip entries, drop blanks and keep the first spelling of case-insensitive duplicates."""
    seen: set[str] = set()
    cleaned: List[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        trimmed = value.strip()
        key = trimmed.lower()
        if not trimmed or key in seen:
            continue
        seen.add(key)
        cleaned.append(trimmed)
    return cleaned


def _clean_achievements(values: Iterable[str]) -> List[str]:
    return [value.strip() for value in values if isinstance(value, str) and value.strip()]


class WorkExperience(BaseModel):
    title: str
    company: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    current: bool = False
    description: str = ""
    achievements: List[str] = Field(default_factory=list)

    @field_validator("achievements")
    @classmethod
    def _strip_achievements(cls, value: List[str]) -> List[str]:
        return _clean_achievements(value)


class ProjectRecord(BaseModel):
    title: str
    description: str = ""
    technologies: List[str] = Field(default_factory=list)
    url: Optional[str] = None
    achievements: List[str] = Field(default_factory=list)

    @field_validator("achievements")
    @classmethod
    def _strip_achievements(cls, value: List[str]) -> List[str]:
        return _clean_achievements(value)


class Certification(BaseModel):
    name: str
    organization: str = ""
    date: Optional[str] = None


class ProfileSnapshot(BaseModel):
    """The subset of a profile the points rules read."""

    bio: str = ""
    skills: List[str] = Field(default_factory=list)
    learning_goals: List[str] = Field(default_factory=list)
    work_experience: List[WorkExperience] = Field(default_factory=list)
    projects: List[ProjectRecord] = Field(default_factory=list)
    certifications: List[Certification] = Field(default_factory=list)

    @field_validator("skills", "learning_goals")
    @classmethod
    def _normalize(cls, value: List[str]) -> List[str]:
        return normalize_terms(value)


class Profile(ProfileSnapshot):
    id: str
    username: str
    full_name: str = ""
    points: int = 0
    rank: str = "starspark"
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    def snapshot(self) -> ProfileSnapshot:
        return ProfileSnapshot.model_validate(
            self.model_dump(include=set(ProfileSnapshot.model_fields))
        )


__all__ = [
    "Certification",
    "Profile",
    "ProfileSnapshot",
    "ProjectRecord",
    "WorkExperience",
    "normalize_terms",
]
