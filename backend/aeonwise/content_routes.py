"""Skill extraction and course generation endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from .api_models import CourseRequest, CourseResponse, SkillExtractionRequest, SkillExtractionResponse
from .course_generator import generate_course
from .dependencies import provide_llm_client
from .http_errors import service_errors
from .llm_client import LLMClient
from .skill_extraction import extract_skills

router = APIRouter(prefix="/api", tags=["content"])
logger = logging.getLogger(__name__)


@router.post("/skills/extract", response_model=SkillExtractionResponse)
def extract_skill_keywords(payload: SkillExtractionRequest) -> SkillExtractionResponse:
    with service_errors("extracting skills"):
        skills = extract_skills(payload.text)
    return SkillExtractionResponse(skills=skills)


@router.post("/courses/generate", response_model=CourseResponse)
def create_course(payload: CourseRequest, llm: LLMClient = Depends(provide_llm_client)) -> CourseResponse:
    with service_errors("generating a course"):
        course = generate_course(payload.topic, payload.level, llm)
    logger.info("Generated %s course '%s' with %d modules", course.source, course.title, course.modules)
    return CourseResponse(course=course)


__all__ = ["router"]
