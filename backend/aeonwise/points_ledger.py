"""Points ledger service: the only code path that changes a profile's point total.

Every award is written in two steps. The ledger entry is committed first, in its
own transaction; the cached ``profiles.points`` total and ``rank`` are updated in
a second transaction. When the second step fails the entry is kept and the
cached total lags behind the ledger sum until :meth:`PointsLedger.reconcile`
(or any :meth:`PointsLedger.standing` read) rewrites it from the ledger.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError

from .db.session import SessionFactory, session_scope
from .ledger_models import (
    AwardResult,
    PointsLedgerEntry,
    PointsSource,
    PointsValidationError,
    ReconciliationResult,
    ReconciliationSummary,
)
from .ranks import RANK_LADDER, RankLadder, RankProgress
from .repositories.points_ledger import PointsLedgerRepository, points_ledger_entries
from .repositories.profiles import ProfileNotFoundError, ProfileRepository, profiles
from .telemetry import emit_event

logger = logging.getLogger(__name__)


class PointsLedger:
    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        ledger_repository: PointsLedgerRepository = points_ledger_entries,
        profile_repository: ProfileRepository = profiles,
        ladder: RankLadder = RANK_LADDER,
    ) -> None:
        self._session_factory = session_factory
        self._entries = ledger_repository
        self._profiles = profile_repository
        self._ladder = ladder

    @property
    def ladder(self) -> RankLadder:
        return self._ladder

    def award(
        self,
        user_id: str,
        source: PointsSource | str,
        delta: int,
        details: Optional[Mapping[str, Any]] = None,
    ) -> AwardResult:
        resolved_source = self._validate(user_id, source, delta, details)

        try:
            with session_scope(self._session_factory) as session:
                if not self._profiles.exists(session, user_id):
                    raise ProfileNotFoundError(f"Profile '{user_id}' was not found.")
                entry = self._entries.append(session, user_id, resolved_source, delta, dict(details or {}))
        except ProfileNotFoundError:
            raise
        except SQLAlchemyError as exc:
            logger.exception("Failed to append ledger entry for user_id=%s source=%s", user_id, resolved_source.value)
            return AwardResult(success=False, user_id=user_id, error=f"ledger append failed: {exc.__class__.__name__}")

        try:
            with session_scope(self._session_factory) as session:
                profile = self._profiles.apply_points_delta(session, user_id, delta)
        except (SQLAlchemyError, ProfileNotFoundError) as exc:
            logger.warning(
                "Ledger entry %s recorded but balance update failed for user_id=%s: %s",
                entry.id,
                user_id,
                exc,
            )
            emit_event(
                "points_balance_drift",
                user_id=user_id,
                entry_id=entry.id,
                source=resolved_source,
                points=delta,
                error=str(exc),
            )
            return AwardResult(
                success=False,
                user_id=user_id,
                entry=entry,
                drift=True,
                error="balance update failed; pending reconciliation",
            )

        emit_event(
            "points_awarded",
            user_id=user_id,
            entry_id=entry.id,
            source=resolved_source,
            points=delta,
            total_points=profile.points,
            rank=profile.rank,
        )
        return AwardResult(
            success=True,
            user_id=user_id,
            entry=entry,
            total_points=profile.points,
            rank=profile.rank,
        )

    def history(self, user_id: str, limit: Optional[int] = None) -> List[PointsLedgerEntry]:
        if not user_id:
            raise PointsValidationError("user_id is required.")
        with session_scope(self._session_factory, commit=False) as session:
            return self._entries.history(session, user_id, limit=limit)

    def latest_entry(self, user_id: str, source: PointsSource) -> Optional[PointsLedgerEntry]:
        with session_scope(self._session_factory, commit=False) as session:
            return self._entries.latest(session, user_id, source)

    def ledger_total(self, user_id: str) -> int:
        with session_scope(self._session_factory, commit=False) as session:
            return self._entries.total(session, user_id)

    def reconcile(self, user_id: str) -> ReconciliationResult:
        """Rewrite the cached total and rank from the ledger sum when they disagree."""
        if not user_id:
            raise PointsValidationError("user_id is required.")
        with session_scope(self._session_factory) as session:
            profile = self._profiles.get(session, user_id)
            if profile is None:
                raise ProfileNotFoundError(f"Profile '{user_id}' was not found.")
            ledger_points = self._entries.total(session, user_id)
            entry_count = self._entries.count(session, user_id)
            expected_rank = self._ladder.lookup(ledger_points)
            repaired = profile.points != ledger_points or profile.rank != expected_rank
            if repaired:
                self._profiles.set_points(session, user_id, ledger_points)

        result = ReconciliationResult(
            user_id=user_id,
            cached_points=profile.points,
            ledger_points=ledger_points,
            rank=expected_rank,
            repaired=repaired,
            entry_count=entry_count,
        )
        if repaired:
            logger.info(
                "Reconciled points for user_id=%s cached=%s ledger=%s",
                user_id,
                profile.points,
                ledger_points,
            )
            emit_event(
                "points_reconciled",
                user_id=user_id,
                cached_points=profile.points,
                ledger_points=ledger_points,
                rank=expected_rank,
            )
        return result

    def reconcile_all(self) -> ReconciliationSummary:
        with session_scope(self._session_factory, commit=False) as session:
            user_ids = self._profiles.list_ids(session)
        repaired: List[str] = []
        failed = 0
        for user_id in user_ids:
            try:
                if self.reconcile(user_id).repaired:
                    repaired.append(user_id)
            except (SQLAlchemyError, ProfileNotFoundError):
                failed += 1
                logger.exception("Reconciliation failed for user_id=%s", user_id)
        return ReconciliationSummary(
            checked=len(user_ids),
            repaired=len(repaired),
            failed=failed,
            repaired_user_ids=repaired,
        )

    def standing(self, user_id: str) -> RankProgress:
        """Reconciled points and rank progress for ``user_id``."""
        result = self.reconcile(user_id)
        return self._ladder.progress(result.ledger_points)

    def _validate(
        self,
        user_id: str,
        source: PointsSource | str,
        delta: int,
        details: Optional[Mapping[str, Any]],
    ) -> PointsSource:
        if not isinstance(user_id, str) or not user_id.strip():
            raise PointsValidationError("user_id is required.")
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise PointsValidationError("delta must be an integer.")
        if details is not None and not isinstance(details, Mapping):
            raise PointsValidationError("details must be a mapping.")
        if isinstance(source, PointsSource):
            return source
        try:
            return PointsSource(str(source).strip().lower())
        except ValueError:
            allowed = ", ".join(item.value for item in PointsSource)
            raise PointsValidationError(f"Unknown points source '{source}'. Expected one of: {allowed}.") from None


def entry_details(**fields: Any) -> Dict[str, Any]:
    """Drop ``None`` values so ledger detail payloads stay compact."""
    return {key: value for key, value in fields.items() if value is not None}


__all__ = ["PointsLedger", "entry_details"]
