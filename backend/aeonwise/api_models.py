"""Request and response payloads for the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .course_generator import Course
from .ledger_models import AwardResult, PointsLedgerEntry, PointsSource, ReconciliationResult
from .matching import ScoredCandidate
from .profile import Certification, Profile, ProjectRecord, WorkExperience
from .ranks import RANK_LADDER, RankProgress
from .skill_extraction import ExperienceAnalysis


class ProfileCreateRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=128)
    full_name: str = ""
    id: Optional[str] = Field(default=None, min_length=1, max_length=36)


class ProfileUpdateRequest(BaseModel):
    full_name: Optional[str] = None
    bio: str = ""
    skills: List[str] = Field(default_factory=list)
    learning_goals: List[str] = Field(default_factory=list)
    work_experience: List[WorkExperience] = Field(default_factory=list)
    projects: List[ProjectRecord] = Field(default_factory=list)
    certifications: List[Certification] = Field(default_factory=list)


class ProfilePayload(BaseModel):
    id: str
    username: str
    full_name: str
    bio: str
    skills: List[str]
    learning_goals: List[str]
    work_experience: List[WorkExperience]
    projects: List[ProjectRecord]
    certifications: List[Certification]
    points: int
    rank: str
    rank_label: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_profile(cls, profile: Profile) -> "ProfilePayload":
        return cls(
            id=profile.id,
            username=profile.username,
            full_name=profile.full_name,
            bio=profile.bio,
            skills=list(profile.skills),
            learning_goals=list(profile.learning_goals),
            work_experience=list(profile.work_experience),
            projects=list(profile.projects),
            certifications=list(profile.certifications),
            points=profile.points,
            rank=profile.rank,
            rank_label=RANK_LADDER.label_for(profile.rank),
            created_at=profile.created_at,
            updated_at=profile.updated_at,
        )


class PointsLedgerEntryPayload(BaseModel):
    id: str
    user_id: str
    source: PointsSource
    points: int
    details: Dict[str, Any]
    created_at: datetime

    @classmethod
    def from_entry(cls, entry: PointsLedgerEntry) -> "PointsLedgerEntryPayload":
        return cls.model_validate(entry.model_dump())


class AwardPayload(BaseModel):
    success: bool
    user_id: str
    entry: Optional[PointsLedgerEntryPayload] = None
    points: Optional[int] = None
    rank: Optional[str] = None
    drift: bool = False
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: AwardResult) -> "AwardPayload":
        return cls(
            success=result.success,
            user_id=result.user_id,
            entry=PointsLedgerEntryPayload.from_entry(result.entry) if result.entry else None,
            points=result.total_points,
            rank=result.rank,
            drift=result.drift,
            error=result.error,
        )


class ProfileUpdatePayload(BaseModel):
    profile: ProfilePayload
    profile_points: int
    previous_profile_points: int
    award: Optional[AwardPayload] = None


class AwardRequest(BaseModel):
    source: PointsSource
    points: int
    details: Dict[str, Any] = Field(default_factory=dict)


class RankProgressPayload(BaseModel):
    points: int
    rank: str
    label: str
    threshold: int
    next_rank: str
    next_label: str
    points_needed: int
    percent: float

    @classmethod
    def from_progress(cls, progress: RankProgress) -> "RankProgressPayload":
        return cls(**progress.__dict__)


class RankThresholdPayload(BaseModel):
    rank: str
    label: str
    min_points: int


class ReconciliationPayload(BaseModel):
    user_id: str
    cached_points: int
    ledger_points: int
    rank: str
    repaired: bool
    entry_count: int

    @classmethod
    def from_result(cls, result: ReconciliationResult) -> "ReconciliationPayload":
        return cls(
            user_id=result.user_id,
            cached_points=result.cached_points,
            ledger_points=result.ledger_points,
            rank=result.rank,
            repaired=result.repaired,
            entry_count=result.entry_count,
        )


class MatchRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    skills: Optional[List[str]] = None
    learning_goals: Optional[List[str]] = None
    limit: Optional[int] = Field(default=None, ge=1, le=50)


class MatchPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str
    full_name: str
    match_score: int = Field(..., alias="matchScore")
    skills: List[str]
    learning_goals: List[str]
    points: int
    rank: str

    @classmethod
    def from_scored(cls, scored: ScoredCandidate[Profile]) -> "MatchPayload":
        candidate = scored.candidate
        return cls(
            id=candidate.id,
            username=candidate.username,
            full_name=candidate.full_name,
            match_score=scored.score,
            skills=list(candidate.skills),
            learning_goals=list(candidate.learning_goals),
            points=candidate.points,
            rank=candidate.rank,
        )


class MatchResponse(BaseModel):
    matches: List[MatchPayload]


class AnalyzeRequest(BaseModel):
    text: str = Field(..., min_length=1)


class OnboardingImportRequest(BaseModel):
    years_experience: int = Field(default=0, ge=0, le=50)
    skills: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)
    projects: List[str] = Field(default_factory=list)


class OnboardingGrantPayload(BaseModel):
    analysis: ExperienceAnalysis
    analysis_source: Literal["llm", "fallback", "import"]
    warning: Optional[str] = None
    points: int
    rank: str
    granted_total: int
    previous_points: int
    award: AwardPayload


class LessonCompletionRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)
    lesson_id: str = Field(..., min_length=1)
    skill: Optional[str] = None


class LessonCompletionPayload(BaseModel):
    success: bool
    points_awarded: int
    points: int
    rank: str
    skill_added: bool
    award: AwardPayload


class SwapCompletionRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    match_id: str = Field(..., min_length=1)
    skills_shared: int = Field(..., ge=1)


class SwapCompletionPayload(BaseModel):
    success: bool
    points_earned: int
    points: int
    rank: str
    award: AwardPayload


class SkillExtractionRequest(BaseModel):
    text: str = Field(..., min_length=1)


class SkillExtractionResponse(BaseModel):
    skills: List[str]


class CourseRequest(BaseModel):
    topic: str = Field(..., min_length=1)
    level: Optional[Literal["beginner", "intermediate", "advanced"]] = None


class CourseResponse(BaseModel):
    course: Course
