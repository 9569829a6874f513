"""Skill extraction and experience analysis for onboarding."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .llm_client import LLMClient, LLMError
from .points import compute_capped_total
from .profile import normalize_terms

logger = logging.getLogger(__name__)

MAX_YEARS_EXPERIENCE = 50

COMMON_SKILLS: tuple[str, ...] = (
    "javascript",
    "python",
    "react",
    "node",
    "design",
    "marketing",
    "data",
    "machine learning",
    "ai",
    "ui",
    "ux",
    "writing",
    "teaching",
    "project management",
    "leadership",
    "communication",
    "angular",
    "vue",
    "typescript",
    "sql",
    "database",
    "cloud",
    "aws",
    "azure",
    "devops",
    "music",
    "art",
    "public speaking",
    "coaching",
    "analytics",
)

ANALYSIS_INSTRUCTIONS = (
    "Analyze the user's CV or experience description and extract: total years of experience, "
    "technical skills, certifications and significant projects. Respond only with JSON: "
    '{"years_experience": number, "skills": string[], "certifications": string[], "projects": string[]}. '
    "Flag unrealistic claims (for example 50 years) by lowering them, include only relevant technical "
    "skills, only real certification names and only substantial projects."
)

_TOKEN_SPLIT = re.compile(r"[\s,.]+")


def _title_case(skill: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in skill.split(" "))


def extract_skills(text: str) -> List[str]:
    """Keyword skill extraction over the lower-cased tokens of ``text``.

    Single-word keywords match when any token contains them; phrases match
    against the re-joined token stream.
    """
    if not text or not text.strip():
        raise ValueError("Text is required.")
    words = [word for word in _TOKEN_SPLIT.split(text.lower()) if word]
    joined = " ".join(words)
    return [
        _title_case(skill)
        for skill in COMMON_SKILLS
        if (" " in skill and skill in joined) or any(skill in word for word in words)
    ]


class ExperienceAnalysis(BaseModel):
    years_experience: int = Field(default=0, ge=0, le=MAX_YEARS_EXPERIENCE)
    skills: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)
    projects: List[str] = Field(default_factory=list)

    @field_validator("years_experience", mode="before")
    @classmethod
    def _clamp_years(cls, value: Any) -> int:
        try:
            years = int(float(value))
        except (TypeError, ValueError):
            return 0
        return min(max(years, 0), MAX_YEARS_EXPERIENCE)

    @field_validator("skills", "certifications", "projects", mode="before")
    @classmethod
    def _clean_list(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return normalize_terms(str(item) for item in value if item is not None)

    @property
    def capped_points(self) -> int:
        return compute_capped_total(
            self.years_experience,
            len(self.skills),
            len(self.certifications),
            len(self.projects),
        )


class AnalysisResult(BaseModel):
    analysis: ExperienceAnalysis
    source: Literal["llm", "fallback"]
    warning: Optional[str] = None


def _coerce_analysis(payload: Any) -> ExperienceAnalysis:
    if isinstance(payload, str):
        payload = json.loads(payload)
    if not isinstance(payload, dict):
        raise TypeError(f"Unsupported analysis payload type: {type(payload).__name__}")
    data = dict(payload)
    if "yearsExperience" in data and "years_experience" not in data:
        data["years_experience"] = data.pop("yearsExperience")
    return ExperienceAnalysis.model_validate(data)


def analyze_experience(text: str, llm: Optional[LLMClient] = None) -> AnalysisResult:
    """Extract experience signals with the LLM, falling back to keyword extraction."""
    skills = extract_skills(text)
    if llm is not None and llm.configured:
        try:
            analysis = _coerce_analysis(llm.complete_json(ANALYSIS_INSTRUCTIONS, text))
            return AnalysisResult(analysis=analysis, source="llm")
        except (ValidationError, ValueError, TypeError) as exc:
            logger.warning("Experience analysis returned an invalid payload: %s", exc)
            warning = "invalid analysis payload"
        except LLMError as exc:
            logger.warning("Experience analysis failed: %s", exc)
            warning = str(exc)
    else:
        warning = "language model not configured"

    return AnalysisResult(
        analysis=ExperienceAnalysis(skills=skills),
        source="fallback",
        warning=warning,
    )


__all__ = [
    "AnalysisResult",
    "COMMON_SKILLS",
    "ExperienceAnalysis",
    "analyze_experience",
    "extract_skills",
]
