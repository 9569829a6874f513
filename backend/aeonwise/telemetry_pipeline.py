"""Telemetry listener that persists points events to the audit trail."""

from __future__ import annotations

import logging
from typing import FrozenSet, Optional

from sqlalchemy.exc import SQLAlchemyError

from .db.session import SessionFactory, session_scope
from .repositories.profiles import ProfileRepository, profiles
from .telemetry import TelemetryEvent, register_listener, unregister_listener

logger = logging.getLogger(__name__)

MONITORED_EVENTS: FrozenSet[str] = frozenset(
    {
        "points_balance_drift",
        "points_reconciled",
        "onboarding_grant_applied",
    }
)


class AuditTrailListener:
    def __init__(self, session_factory: SessionFactory, repository: ProfileRepository = profiles) -> None:
        self._session_factory = session_factory
        self._profiles = repository

    def __call__(self, event: TelemetryEvent) -> None:
        if event.name not in MONITORED_EVENTS:
            return
        user_id = event.payload.get("user_id")
        if not isinstance(user_id, str) or not user_id.strip():
            return
        try:
            with session_scope(self._session_factory) as session:
                self._profiles.record_audit_event(session, user_id, event.name, dict(event.payload), actor="telemetry")
        except SQLAlchemyError:
            logger.exception("Failed to persist telemetry event %s for user_id=%s", event.name, user_id)


_installed: Optional[AuditTrailListener] = None


def install_audit_listener(session_factory: SessionFactory) -> AuditTrailListener:
    """Register (or replace) the process-wide audit listener."""
    global _installed
    if _installed is not None:
        unregister_listener(_installed)
    _installed = AuditTrailListener(session_factory)
    register_listener(_installed)
    return _installed


__all__ = ["AuditTrailListener", "MONITORED_EVENTS", "install_audit_listener"]
