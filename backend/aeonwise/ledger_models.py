"""Ledger entry, source and result types for the points ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class PointsSource(str, Enum):
    PROFILE_UPDATE = "profile_update"
    LESSON_COMPLETION = "lesson_completion"
    SKILL_SWAP = "skill_swap"
    ACHIEVEMENT = "achievement"
    DECAY = "decay"
    ONBOARDING = "onboarding"
    OTHER = "other"

    @classmethod
    def coerce(cls, value: "PointsSource | str") -> "PointsSource":
        """Map stored strings to a source; unknown values read back as ``OTHER``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


class PointsValidationError(ValueError):
    """Raised before any write when an award request is malformed."""


class PointsLedgerEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    source: PointsSource
    points: int
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


@dataclass(frozen=True)
class AwardResult:
    success: bool
    user_id: str
    entry: Optional[PointsLedgerEntry] = None
    total_points: Optional[int] = None
    rank: Optional[str] = None
    drift: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class ReconciliationResult:
    user_id: str
    cached_points: int
    ledger_points: int
    rank: str
    repaired: bool
    entry_count: int = 0

    @property
    def drift(self) -> int:
        return self.ledger_points - self.cached_points


@dataclass(frozen=True)
class ReconciliationSummary:
    checked: int = 0
    repaired: int = 0
    failed: int = 0
    repaired_user_ids: list[str] = field(default_factory=list)


__all__ = [
    "AwardResult",
    "PointsLedgerEntry",
    "PointsSource",
    "PointsValidationError",
    "ReconciliationResult",
    "ReconciliationSummary",
]
