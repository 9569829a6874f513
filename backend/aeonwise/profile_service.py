"""Profile workflows that turn domain events into ledger entries."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import List, Optional, Sequence

from .db.session import SessionFactory, session_scope
from .ledger_models import AwardResult, PointsSource
from .matching import DEFAULT_MATCH_LIMIT, ONBOARDING_MATCH_LIMIT, ScoredCandidate, rank_candidates
from .points import LESSON_COMPLETION_POINTS, compute_total, profile_breakdown, swap_points
from .points_ledger import PointsLedger, entry_details
from .profile import Profile, ProfileSnapshot, normalize_terms
from .repositories.profiles import ProfileNotFoundError, ProfileRepository, profiles
from .skill_extraction import ExperienceAnalysis
from .telemetry import emit_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfileUpdateResult:
    profile: Profile
    profile_points: int
    previous_profile_points: int
    award: Optional[AwardResult] = None


@dataclass(frozen=True)
class OnboardingGrantResult:
    profile: Profile
    granted_total: int
    previous_points: int
    award: AwardResult


@dataclass(frozen=True)
class LessonCompletionResult:
    profile: Profile
    award: AwardResult
    skill_added: bool


@dataclass(frozen=True)
class SwapCompletionResult:
    profile: Profile
    award: AwardResult
    points_earned: int


class ProfileService:
    def __init__(
        self,
        session_factory: SessionFactory,
        ledger: PointsLedger,
        *,
        repository: ProfileRepository = profiles,
    ) -> None:
        self._session_factory = session_factory
        self._ledger = ledger
        self._profiles = repository

    @property
    def ledger(self) -> PointsLedger:
        return self._ledger

    def create_profile(self, username: str, *, full_name: str = "", user_id: Optional[str] = None) -> Profile:
        with session_scope(self._session_factory) as session:
            return self._profiles.create(session, username, full_name=full_name, user_id=user_id)

    def get_profile(self, user_id: str) -> Profile:
        if not user_id:
            raise ValueError("user_id is required.")
        with session_scope(self._session_factory, commit=False) as session:
            profile = self._profiles.get(session, user_id)
        if profile is None:
            raise ProfileNotFoundError(f"Profile '{user_id}' was not found.")
        return profile

    def update_profile(
        self,
        user_id: str,
        snapshot: ProfileSnapshot,
        *,
        full_name: Optional[str] = None,
    ) -> ProfileUpdateResult:
        """Store new profile content and log the change in profile points as one ledger entry.

        The change is measured against the profile points last credited through a
        ``profile_update`` entry, so skills added by lessons or onboarding never
        count twice. If the ledger append fails the previous content is restored.
        """
        current = self.get_profile(user_id)
        previous_points = self._credited_profile_points(user_id)
        new_points = compute_total(snapshot)

        with session_scope(self._session_factory) as session:
            self._profiles.save_snapshot(session, user_id, snapshot, full_name=full_name)

        award: Optional[AwardResult] = None
        delta = new_points - previous_points
        if delta != 0:
            award = self._ledger.award(
                user_id,
                PointsSource.PROFILE_UPDATE,
                delta,
                {
                    "profile_points": new_points,
                    "previous_profile_points": previous_points,
                    "breakdown": asdict(profile_breakdown(snapshot)),
                },
            )
            if award.entry is None:
                self._restore_snapshot(current)
        return ProfileUpdateResult(
            profile=self.get_profile(user_id),
            profile_points=new_points,
            previous_profile_points=previous_points,
            award=award,
        )

    def apply_onboarding_grant(self, user_id: str, analysis: ExperienceAnalysis) -> OnboardingGrantResult:
        """Move the balance to the capped onboarding total with a single ``onboarding`` entry."""
        profile = self.get_profile(user_id)
        granted_total = analysis.capped_points
        previous_points = self._ledger.ledger_total(user_id)

        merged_skills = normalize_terms([*profile.skills, *analysis.skills])
        skills_changed = merged_skills != profile.skills
        if skills_changed:
            snapshot = profile.snapshot().model_copy(update={"skills": merged_skills})
            with session_scope(self._session_factory) as session:
                self._profiles.save_snapshot(session, user_id, snapshot)

        award = self._ledger.award(
            user_id,
            PointsSource.ONBOARDING,
            granted_total - previous_points,
            {
                "years_experience": analysis.years_experience,
                "skill_count": len(analysis.skills),
                "cert_count": len(analysis.certifications),
                "project_count": len(analysis.projects),
                "granted_total": granted_total,
                "previous_points": previous_points,
            },
        )
        if award.entry is None and skills_changed:
            self._restore_snapshot(profile)
        emit_event(
            "onboarding_grant_applied",
            user_id=user_id,
            granted_total=granted_total,
            previous_points=previous_points,
            success=award.success,
        )
        return OnboardingGrantResult(
            profile=self.get_profile(user_id),
            granted_total=granted_total,
            previous_points=previous_points,
            award=award,
        )

    def complete_lesson(
        self,
        user_id: str,
        course_id: str,
        lesson_id: str,
        skill: Optional[str] = None,
    ) -> LessonCompletionResult:
        if not user_id or not course_id or not lesson_id:
            raise ValueError("User ID, course ID, and lesson ID are required.")
        profile = self.get_profile(user_id)
        skill_name = (skill or "").strip()
        known = {existing.lower() for existing in profile.skills}
        skill_added = bool(skill_name) and skill_name.lower() not in known
        if skill_added:
            snapshot = profile.snapshot().model_copy(update={"skills": [*profile.skills, skill_name]})
            with session_scope(self._session_factory) as session:
                self._profiles.save_snapshot(session, user_id, snapshot)

        award = self._ledger.award(
            user_id,
            PointsSource.LESSON_COMPLETION,
            LESSON_COMPLETION_POINTS,
            entry_details(course_id=course_id, lesson_id=lesson_id, skill=skill_name or None, skill_added=skill_added),
        )
        if award.entry is None and skill_added:
            self._restore_snapshot(profile)
            skill_added = False
        return LessonCompletionResult(profile=self.get_profile(user_id), award=award, skill_added=skill_added)

    def complete_swap(self, user_id: str, match_id: str, skills_shared: int) -> SwapCompletionResult:
        if not user_id or not match_id:
            raise ValueError("User ID, match ID, and skills shared are required.")
        if user_id == match_id:
            raise ValueError("A skill swap needs two different users.")
        if skills_shared < 1:
            raise ValueError("skills_shared must be at least 1.")
        self.get_profile(match_id)
        earned = swap_points(skills_shared)
        award = self._ledger.award(
            user_id,
            PointsSource.SKILL_SWAP,
            earned,
            {"match_id": match_id, "skills_shared": skills_shared},
        )
        return SwapCompletionResult(profile=self.get_profile(user_id), award=award, points_earned=earned)

    def find_matches(
        self,
        user_id: str,
        skills: Optional[Sequence[str]] = None,
        learning_goals: Optional[Sequence[str]] = None,
        *,
        limit: int = DEFAULT_MATCH_LIMIT,
    ) -> List[ScoredCandidate[Profile]]:
        """Rank every other profile against the requester's skills and goals."""
        if not user_id:
            raise ValueError("user_id is required.")
        if skills is None or learning_goals is None:
            requester = self.get_profile(user_id)
            skills = requester.skills if skills is None else skills
            learning_goals = requester.learning_goals if learning_goals is None else learning_goals
        cleaned_skills = normalize_terms(skills)
        cleaned_goals = normalize_terms(learning_goals)
        if not cleaned_skills and not cleaned_goals:
            raise ValueError("Skills or learning goals are required to find matches.")

        with session_scope(self._session_factory, commit=False) as session:
            candidates = self._profiles.list_others(session, exclude_user_id=user_id)
        matches = rank_candidates(cleaned_skills, cleaned_goals, candidates, limit=limit)
        logger.debug("Ranked %d candidates for user_id=%s; %d matched", len(candidates), user_id, len(matches))
        return matches

    def recommendations(self, user_id: str, *, limit: int = ONBOARDING_MATCH_LIMIT) -> List[ScoredCandidate[Profile]]:
        return self.find_matches(user_id, limit=limit)

    def _credited_profile_points(self, user_id: str) -> int:
        last = self._ledger.latest_entry(user_id, PointsSource.PROFILE_UPDATE)
        if last is None:
            return 0
        return int(last.details.get("profile_points", 0))

    def _restore_snapshot(self, profile: Profile) -> None:
        logger.warning("Ledger append failed for user_id=%s; restoring previous profile content", profile.id)
        with session_scope(self._session_factory) as session:
            self._profiles.save_snapshot(session, profile.id, profile.snapshot(), full_name=profile.full_name)


__all__ = [
    "LessonCompletionResult",
    "OnboardingGrantResult",
    "ProfileService",
    "ProfileUpdateResult",
    "SwapCompletionResult",
]
