"""Points ledger and rank endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from .api_models import (
    AwardPayload,
    AwardRequest,
    PointsLedgerEntryPayload,
    RankProgressPayload,
    RankThresholdPayload,
    ReconciliationPayload,
)
from .dependencies import provide_points_ledger, provide_profile_service
from .http_errors import require_ledger_entry, service_errors
from .points_ledger import PointsLedger
from .profile_service import ProfileService
from .ranks import RANK_LADDER

router = APIRouter(prefix="/api/points", tags=["points"])

MAX_HISTORY_LIMIT = 500


@router.get("/ranks", response_model=List[RankThresholdPayload])
def list_ranks() -> List[RankThresholdPayload]:
    return [
        RankThresholdPayload(rank=threshold.rank, label=threshold.label, min_points=threshold.min_points)
        for threshold in RANK_LADDER.thresholds
    ]


@router.get("/{user_id}/history", response_model=List[PointsLedgerEntryPayload])
def points_history(
    user_id: str,
    limit: Optional[int] = Query(default=None, ge=1, le=MAX_HISTORY_LIMIT),
    service: ProfileService = Depends(provide_profile_service),
) -> List[PointsLedgerEntryPayload]:
    with service_errors("reading points history"):
        service.get_profile(user_id)
        entries = service.ledger.history(user_id, limit=limit)
    return [PointsLedgerEntryPayload.from_entry(entry) for entry in entries]


@router.get("/{user_id}/rank", response_model=RankProgressPayload)
def rank_standing(user_id: str, ledger: PointsLedger = Depends(provide_points_ledger)) -> RankProgressPayload:
    with service_errors("reading rank standing"):
        progress = ledger.standing(user_id)
    return RankProgressPayload.from_progress(progress)


@router.post("/{user_id}/award", response_model=AwardPayload)
def award_points(
    user_id: str,
    payload: AwardRequest,
    ledger: PointsLedger = Depends(provide_points_ledger),
) -> AwardPayload:
    with service_errors("awarding points"):
        result = ledger.award(user_id, payload.source, payload.points, payload.details)
    require_ledger_entry(result)
    return AwardPayload.from_result(result)


@router.post("/{user_id}/reconcile", response_model=ReconciliationPayload)
def reconcile_points(user_id: str, ledger: PointsLedger = Depends(provide_points_ledger)) -> ReconciliationPayload:
    with service_errors("reconciling points"):
        result = ledger.reconcile(user_id)
    return ReconciliationPayload.from_result(result)


__all__ = ["router"]
