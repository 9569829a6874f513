"""FastAPI dependency providers for the service layer."""

from __future__ import annotations

from fastapi import Depends

from .config import Settings, get_settings
from .db.session import SessionFactory, get_session_factory
from .llm_client import LLMClient
from .points_ledger import PointsLedger
from .profile_service import ProfileService
from .ranks import RANK_LADDER


def provide_session_factory() -> SessionFactory:
    return get_session_factory()


def provide_points_ledger(
    session_factory: SessionFactory = Depends(provide_session_factory),
) -> PointsLedger:
    return PointsLedger(session_factory, ladder=RANK_LADDER)


def provide_profile_service(
    session_factory: SessionFactory = Depends(provide_session_factory),
    ledger: PointsLedger = Depends(provide_points_ledger),
) -> ProfileService:
    return ProfileService(session_factory, ledger)


def provide_llm_client(settings: Settings = Depends(get_settings)) -> LLMClient:
    return LLMClient(settings)


__all__ = [
    "provide_llm_client",
    "provide_points_ledger",
    "provide_profile_service",
    "provide_session_factory",
]
