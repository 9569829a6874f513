"""Lesson and skill-swap completion endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from .api_models import (
    AwardPayload,
    LessonCompletionPayload,
    LessonCompletionRequest,
    SwapCompletionPayload,
    SwapCompletionRequest,
)
from .dependencies import provide_profile_service
from .http_errors import require_ledger_entry, service_errors
from .profile_service import ProfileService

router = APIRouter(prefix="/api/activity", tags=["activity"])


@router.post("/lessons/complete", response_model=LessonCompletionPayload)
def complete_lesson(
    payload: LessonCompletionRequest,
    service: ProfileService = Depends(provide_profile_service),
) -> LessonCompletionPayload:
    with service_errors("completing a lesson"):
        result = service.complete_lesson(payload.user_id, payload.course_id, payload.lesson_id, payload.skill)
    require_ledger_entry(result.award)
    award = result.award
    return LessonCompletionPayload(
        success=award.success,
        points_awarded=award.entry.points if award.entry else 0,
        points=result.profile.points,
        rank=result.profile.rank,
        skill_added=result.skill_added,
        award=AwardPayload.from_result(award),
    )


@router.post("/swaps/complete", response_model=SwapCompletionPayload)
def complete_swap(
    payload: SwapCompletionRequest,
    service: ProfileService = Depends(provide_profile_service),
) -> SwapCompletionPayload:
    with service_errors("completing a skill swap"):
        result = service.complete_swap(payload.user_id, payload.match_id, payload.skills_shared)
    require_ledger_entry(result.award)
    return SwapCompletionPayload(
        success=result.award.success,
        points_earned=result.points_earned,
        points=result.profile.points,
        rank=result.profile.rank,
        award=AwardPayload.from_result(result.award),
    )


__all__ = ["router"]
