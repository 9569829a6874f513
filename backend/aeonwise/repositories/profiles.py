"""Database-backed profile repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..db.models import PersistenceAuditEventModel, ProfileModel
from ..profile import Certification, Profile, ProfileSnapshot, ProjectRecord, WorkExperience
from ..ranks import RANK_LADDER, RankLadder


class ProfileNotFoundError(LookupError):
    """Raised when a profile id does not resolve to a stored profile."""


def _normalize_username(username: str) -> str:
    normalized = username.strip().lower()
    if not normalized:
        raise ValueError("Username cannot be empty.")
    return normalized


class ProfileRepository:
    """Session-scoped persistence for profiles; callers own the transaction."""

    def __init__(self, ladder: RankLadder = RANK_LADDER) -> None:
        self._ladder = ladder

    def get(self, session: Session, user_id: str) -> Profile | None:
        model = session.get(ProfileModel, user_id)
        return self._to_domain(model) if model else None

    def exists(self, session: Session, user_id: str) -> bool:
        return session.get(ProfileModel, user_id) is not None

    def list_ids(self, session: Session) -> List[str]:
        return list(session.execute(select(ProfileModel.id).order_by(ProfileModel.created_at.asc())).scalars())

    def list_others(self, session: Session, exclude_user_id: Optional[str] = None) -> List[Profile]:
        stmt = select(ProfileModel).order_by(ProfileModel.created_at.asc(), ProfileModel.id.asc())
        if exclude_user_id:
            stmt = stmt.where(ProfileModel.id != exclude_user_id)
        return [self._to_domain(model) for model in session.execute(stmt).scalars()]

    def create(
        self,
        session: Session,
        username: str,
        *,
        full_name: str = "",
        user_id: Optional[str] = None,
    ) -> Profile:
        normalized = _normalize_username(username)
        existing = session.execute(
            select(ProfileModel.id).where(ProfileModel.username == normalized)
        ).scalar_one_or_none()
        if existing is not None:
            raise ValueError(f"Username '{normalized}' is already taken.")
        model = ProfileModel(
            username=normalized,
            full_name=full_name.strip(),
            points=0,
            rank=self._ladder.lookup(0),
        )
        if user_id:
            model.id = user_id
        session.add(model)
        session.flush()
        self._record_audit(session, model.id, "profile_created", {"username": normalized})
        return self._to_domain(model)

    def save_snapshot(
        self,
        session: Session,
        user_id: str,
        snapshot: ProfileSnapshot,
        *,
        full_name: Optional[str] = None,
    ) -> Profile:
        """Persist profile content. Points and rank are never written here."""
        model = self._require_model(session, user_id)
        model.bio = snapshot.bio
        model.skills = list(snapshot.skills)
        model.learning_goals = list(snapshot.learning_goals)
        model.work_experience = [record.model_dump(mode="json") for record in snapshot.work_experience]
        model.projects = [record.model_dump(mode="json") for record in snapshot.projects]
        model.certifications = [record.model_dump(mode="json") for record in snapshot.certifications]
        if full_name is not None:
            model.full_name = full_name.strip()
        model.updated_at = datetime.now(timezone.utc)
        session.flush()
        self._record_audit(
            session,
            model.id,
            "profile_updated",
            {"skills": len(model.skills), "learning_goals": len(model.learning_goals)},
        )
        return self._to_domain(model)

    def apply_points_delta(self, session: Session, user_id: str, delta: int) -> Profile:
        """Add ``delta`` to the cached total in one UPDATE, then rewrite the rank from the ladder."""
        result = session.execute(
            update(ProfileModel)
            .where(ProfileModel.id == user_id)
            .values(points=ProfileModel.points + delta, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ProfileNotFoundError(f"Profile '{user_id}' was not found.")
        model = self._require_model(session, user_id)
        session.refresh(model)
        model.rank = self._ladder.lookup(model.points)
        session.flush()
        return self._to_domain(model)

    def set_points(self, session: Session, user_id: str, points: int) -> Profile:
        model = self._require_model(session, user_id)
        model.points = int(points)
        model.rank = self._ladder.lookup(model.points)
        model.updated_at = datetime.now(timezone.utc)
        session.flush()
        return self._to_domain(model)

    def record_audit_event(
        self,
        session: Session,
        user_id: Optional[str],
        event_type: str,
        payload: Dict[str, Any],
        *,
        actor: str = "system",
    ) -> None:
        if user_id is not None and not self.exists(session, user_id):
            user_id = None
        self._record_audit(session, user_id, event_type, payload, actor=actor)

    def recent_audit_events(self, session: Session, user_id: str, limit: int = 50) -> List[PersistenceAuditEventModel]:
        stmt = (
            select(PersistenceAuditEventModel)
            .where(PersistenceAuditEventModel.user_id == user_id)
            .order_by(PersistenceAuditEventModel.created_at.desc())
            .limit(limit)
        )
        return list(session.execute(stmt).scalars())

    def _require_model(self, session: Session, user_id: str) -> ProfileModel:
        model = session.get(ProfileModel, user_id)
        if model is None:
            raise ProfileNotFoundError(f"Profile '{user_id}' was not found.")
        return model

    def _to_domain(self, model: ProfileModel) -> Profile:
        return Profile(
            id=model.id,
            username=model.username,
            full_name=model.full_name or "",
            bio=model.bio or "",
            skills=list(model.skills or []),
            learning_goals=list(model.learning_goals or []),
            work_experience=[WorkExperience.model_validate(entry) for entry in model.work_experience or []],
            projects=[ProjectRecord.model_validate(entry) for entry in model.projects or []],
            certifications=[Certification.model_validate(entry) for entry in model.certifications or []],
            points=model.points,
            rank=model.rank,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _record_audit(
        self,
        session: Session,
        user_id: Optional[str],
        event_type: str,
        payload: Dict[str, Any],
        *,
        actor: str = "system",
    ) -> None:
        session.add(
            PersistenceAuditEventModel(
                user_id=user_id,
                event_type=event_type,
                payload=payload,
                actor=actor,
            )
        )


profiles = ProfileRepository()

__all__ = ["ProfileNotFoundError", "ProfileRepository", "profiles"]
