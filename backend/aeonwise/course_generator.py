"""Course outline generation."""

from __future__ import annotations

import logging
from typing import Any, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator

from .llm_client import LLMClient, LLMError

logger = logging.getLogger(__name__)

CourseLevel = Literal["beginner", "intermediate", "advanced"]

TEMPLATE_MODULES: Tuple[Tuple[str, int], ...] = (
    ("Introduction to the Topic", 30),
    ("Core Concepts and Principles", 45),
    ("Practical Applications", 60),
    ("Advanced Techniques", 45),
    ("Case Studies and Examples", 60),
    ("Hands-on Project", 90),
    ("Final Assessment", 30),
)

COURSE_INSTRUCTIONS = (
    "You design concise online courses for a skill-sharing platform. Given a topic and level, respond only "
    'with JSON: {"title": string, "description": string, "modules": [{"title": string, "duration": '
    "integer minutes}]}. Use 5 to 8 modules that progress from fundamentals to a hands-on project."
)


class CourseModule(BaseModel):
    title: str = Field(..., min_length=1)
    duration: int = Field(..., ge=5, le=600)


class Course(BaseModel):
    title: str
    description: str
    level: CourseLevel
    duration_hours: int
    modules: int
    module_details: List[CourseModule]
    source: Literal["llm", "template"] = "template"


def _has_title(item: Any) -> bool:
    if isinstance(item, CourseModule):
        return bool(item.title.strip())
    return isinstance(item, dict) and bool(str(item.get("title", "")).strip())


class _CourseDraft(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    modules: List[CourseModule] = Field(..., min_length=1)

    @field_validator("modules", mode="before")
    @classmethod
    def _drop_blank(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [item for item in value if _has_title(item)]
        return value


def _assemble(draft: _CourseDraft, level: CourseLevel, source: Literal["llm", "template"]) -> Course:
    total_minutes = sum(module.duration for module in draft.modules)
    return Course(
        title=draft.title,
        description=draft.description,
        level=level,
        duration_hours=round(total_minutes / 60),
        modules=len(draft.modules),
        module_details=list(draft.modules),
        source=source,
    )


def template_course(topic: str, level: CourseLevel = "beginner") -> Course:
    draft = _CourseDraft(
        title=f"Mastering {topic}: A Comprehensive Guide",
        description=(
            f"This {level}-level course covers all aspects of {topic}, from foundational concepts to advanced "
            "techniques. Learn through practical examples, hands-on exercises, and real-world case studies."
        ),
        modules=[CourseModule(title=title, duration=minutes) for title, minutes in TEMPLATE_MODULES],
    )
    return _assemble(draft, level, "template")


def generate_course(topic: str, level: Optional[CourseLevel] = None, llm: Optional[LLMClient] = None) -> Course:
    cleaned = (topic or "").strip()
    if not cleaned:
        raise ValueError("Topic is required.")
    resolved_level: CourseLevel = level or "beginner"
    if llm is None or not llm.configured:
        return template_course(cleaned, resolved_level)

    try:
        payload = llm.complete_json(COURSE_INSTRUCTIONS, f"Topic: {cleaned}\nLevel: {resolved_level}")
        return _assemble(_CourseDraft.model_validate(payload), resolved_level, "llm")
    except ValidationError as exc:
        logger.warning("Course draft for %r failed validation: %s", cleaned, exc)
    except LLMError as exc:
        logger.warning("Course generation failed for %r: %s", cleaned, exc)
    return template_course(cleaned, resolved_level)


__all__ = ["Course", "CourseLevel", "CourseModule", "generate_course", "template_course"]
