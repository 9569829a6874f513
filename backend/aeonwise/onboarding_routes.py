"""Onboarding endpoints: experience analysis, grant import and first recommendations."""

from __future__ import annotations

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends

from .api_models import (
    AnalyzeRequest,
    AwardPayload,
    MatchPayload,
    MatchResponse,
    OnboardingGrantPayload,
    OnboardingImportRequest,
)
from .config import Settings, get_settings
from .dependencies import provide_llm_client, provide_profile_service
from .http_errors import require_ledger_entry, service_errors
from .llm_client import LLMClient
from .profile_service import OnboardingGrantResult, ProfileService
from .skill_extraction import ExperienceAnalysis, analyze_experience

router = APIRouter(prefix="/api/onboarding", tags=["onboarding"])
logger = logging.getLogger(__name__)


def _grant_payload(
    result: OnboardingGrantResult,
    analysis: ExperienceAnalysis,
    analysis_source: Literal["llm", "fallback", "import"],
    warning: Optional[str] = None,
) -> OnboardingGrantPayload:
    return OnboardingGrantPayload(
        analysis=analysis,
        analysis_source=analysis_source,
        warning=warning,
        points=result.profile.points,
        rank=result.profile.rank,
        granted_total=result.granted_total,
        previous_points=result.previous_points,
        award=AwardPayload.from_result(result.award),
    )


@router.post("/{user_id}/analyze", response_model=OnboardingGrantPayload)
def analyze_profile(
    user_id: str,
    payload: AnalyzeRequest,
    service: ProfileService = Depends(provide_profile_service),
    llm: LLMClient = Depends(provide_llm_client),
) -> OnboardingGrantPayload:
    with service_errors("analyzing onboarding experience"):
        service.get_profile(user_id)
        analysis = analyze_experience(payload.text, llm)
        result = service.apply_onboarding_grant(user_id, analysis.analysis)
    require_ledger_entry(result.award)
    logger.info(
        "Onboarding analysis for user_id=%s source=%s granted=%s",
        user_id,
        analysis.source,
        result.granted_total,
    )
    return _grant_payload(result, analysis.analysis, analysis.source, analysis.warning)


@router.post("/{user_id}/import", response_model=OnboardingGrantPayload)
def import_experience(
    user_id: str,
    payload: OnboardingImportRequest,
    service: ProfileService = Depends(provide_profile_service),
) -> OnboardingGrantPayload:
    analysis = ExperienceAnalysis(
        years_experience=payload.years_experience,
        skills=payload.skills,
        certifications=payload.certifications,
        projects=payload.projects,
    )
    with service_errors("importing onboarding experience"):
        result = service.apply_onboarding_grant(user_id, analysis)
    require_ledger_entry(result.award)
    return _grant_payload(result, analysis, "import")


@router.get("/{user_id}/recommendations", response_model=MatchResponse)
def recommendations(
    user_id: str,
    service: ProfileService = Depends(provide_profile_service),
    settings: Settings = Depends(get_settings),
) -> MatchResponse:
    with service_errors("building onboarding recommendations"):
        matches = service.recommendations(user_id, limit=settings.recommendation_limit)
    return MatchResponse(matches=[MatchPayload.from_scored(match) for match in matches])


__all__ = ["router"]
