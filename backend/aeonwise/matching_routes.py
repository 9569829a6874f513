"""Skill-swap matching endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from .api_models import MatchPayload, MatchRequest, MatchResponse
from .config import Settings, get_settings
from .dependencies import provide_profile_service
from .http_errors import service_errors
from .profile_service import ProfileService

router = APIRouter(prefix="/api/matching", tags=["matching"])


@router.post("", response_model=MatchResponse)
def find_matches(
    payload: MatchRequest,
    service: ProfileService = Depends(provide_profile_service),
    settings: Settings = Depends(get_settings),
) -> MatchResponse:
    with service_errors("matching profiles"):
        matches = service.find_matches(
            payload.user_id,
            payload.skills,
            payload.learning_goals,
            limit=payload.limit or settings.match_limit,
        )
    return MatchResponse(matches=[MatchPayload.from_scored(match) for match in matches])


__all__ = ["router"]
