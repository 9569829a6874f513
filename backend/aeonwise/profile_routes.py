"""Profile REST endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from .api_models import (
    AwardPayload,
    ProfileCreateRequest,
    ProfilePayload,
    ProfileUpdatePayload,
    ProfileUpdateRequest,
)
from .dependencies import provide_profile_service
from .http_errors import require_ledger_entry, service_errors
from .profile import ProfileSnapshot
from .profile_service import ProfileService

router = APIRouter(prefix="/api/profiles", tags=["profiles"])
logger = logging.getLogger(__name__)


@router.post("", response_model=ProfilePayload, status_code=status.HTTP_201_CREATED)
def create_profile(
    payload: ProfileCreateRequest,
    service: ProfileService = Depends(provide_profile_service),
) -> ProfilePayload:
    with service_errors("creating a profile"):
        profile = service.create_profile(payload.username, full_name=payload.full_name, user_id=payload.id)
    logger.info("Created profile %s (%s)", profile.id, profile.username)
    return ProfilePayload.from_profile(profile)


@router.get("/{user_id}", response_model=ProfilePayload)
def get_profile(user_id: str, service: ProfileService = Depends(provide_profile_service)) -> ProfilePayload:
    with service_errors("loading a profile"):
        profile = service.get_profile(user_id)
    return ProfilePayload.from_profile(profile)


@router.put("/{user_id}", response_model=ProfileUpdatePayload)
def update_profile(
    user_id: str,
    payload: ProfileUpdateRequest,
    service: ProfileService = Depends(provide_profile_service),
) -> ProfileUpdatePayload:
    snapshot = ProfileSnapshot(
        bio=payload.bio,
        skills=payload.skills,
        learning_goals=payload.learning_goals,
        work_experience=payload.work_experience,
        projects=payload.projects,
        certifications=payload.certifications,
    )
    with service_errors("updating a profile"):
        result = service.update_profile(user_id, snapshot, full_name=payload.full_name)
    require_ledger_entry(result.award)
    return ProfileUpdatePayload(
        profile=ProfilePayload.from_profile(result.profile),
        profile_points=result.profile_points,
        previous_profile_points=result.previous_profile_points,
        award=AwardPayload.from_result(result.award) if result.award else None,
    )


__all__ = ["router"]
