"""Append-only storage for points ledger entries."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..db.models import PointsLedgerEntryModel
from ..ledger_models import PointsLedgerEntry, PointsSource


class PointsLedgerRepository:
    """Insert and query ledger rows; rows are never updated or deleted."""

    def append(
        self,
        session: Session,
        user_id: str,
        source: PointsSource,
        points: int,
        details: Optional[Dict[str, Any]] = None,
    ) -> PointsLedgerEntry:
        model = PointsLedgerEntryModel(
            user_id=user_id,
            source=source.value,
            points=int(points),
            details=dict(details or {}),
            created_at=datetime.now(timezone.utc),
        )
        session.add(model)
        session.flush()
        return self._to_domain(model)

    def history(self, session: Session, user_id: str, limit: Optional[int] = None) -> List[PointsLedgerEntry]:
        stmt = (
            select(PointsLedgerEntryModel)
            .where(PointsLedgerEntryModel.user_id == user_id)
            .order_by(PointsLedgerEntryModel.created_at.desc(), PointsLedgerEntryModel.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [self._to_domain(model) for model in session.execute(stmt).scalars()]

    def latest(self, session: Session, user_id: str, source: PointsSource) -> Optional[PointsLedgerEntry]:
        stmt = (
            select(PointsLedgerEntryModel)
            .where(
                PointsLedgerEntryModel.user_id == user_id,
                PointsLedgerEntryModel.source == source.value,
            )
            .order_by(PointsLedgerEntryModel.created_at.desc(), PointsLedgerEntryModel.id.desc())
            .limit(1)
        )
        model = session.execute(stmt).scalars().first()
        return self._to_domain(model) if model is not None else None

    def total(self, session: Session, user_id: str) -> int:
        stmt = select(func.coalesce(func.sum(PointsLedgerEntryModel.points), 0)).where(
            PointsLedgerEntryModel.user_id == user_id
        )
        return int(session.execute(stmt).scalar_one())

    def count(self, session: Session, user_id: str) -> int:
        stmt = select(func.count(PointsLedgerEntryModel.id)).where(PointsLedgerEntryModel.user_id == user_id)
        return int(session.execute(stmt).scalar_one())

    def _to_domain(self, model: PointsLedgerEntryModel) -> PointsLedgerEntry:
        return PointsLedgerEntry(
            id=model.id,
            user_id=model.user_id,
            source=PointsSource.coerce(model.source),
            points=model.points,
            details=dict(model.details or {}),
            created_at=model.created_at,
        )


points_ledger_entries = PointsLedgerRepository()

__all__ = ["PointsLedgerRepository", "points_ledger_entries"]
