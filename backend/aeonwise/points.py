"""Deterministic point rules for profiles, onboarding grants and activity events."""

from __future__ import annotations

from dataclasses import dataclass

from .profile import ProfileSnapshot

BIO_POINTS = 50
SKILL_POINTS = 10
LEARNING_GOAL_POINTS = 5
WORK_EXPERIENCE_POINTS = 50
PROJECT_POINTS = 30
ACHIEVEMENT_POINTS = 10
CERTIFICATION_POINTS = 40

# Onboarding grant weights (per year / skill / certification / project).
ONBOARDING_YEAR_POINTS = 75
ONBOARDING_SKILL_POINTS = 40
ONBOARDING_CERTIFICATION_POINTS = 80
ONBOARDING_PROJECT_POINTS = 60
ONBOARDING_POINTS_CAP = 1800

LESSON_COMPLETION_POINTS = 50
SWAP_POINTS_PER_SKILL = 50
SWAP_POINTS_CAP = 500


@dataclass(frozen=True)
class PointsBreakdown:
    bio: int = 0
    skills: int = 0
    learning_goals: int = 0
    work_experience: int = 0
    projects: int = 0
    certifications: int = 0

    @property
    def total(self) -> int:
        return (
            self.bio
            + self.skills
            + self.learning_goals
            + self.work_experience
            + self.projects
            + self.certifications
        )


def profile_breakdown(snapshot: ProfileSnapshot) -> PointsBreakdown:
    return PointsBreakdown(
        bio=BIO_POINTS if snapshot.bio.strip() else 0,
        skills=len(snapshot.skills) * SKILL_POINTS,
        learning_goals=len(snapshot.learning_goals) * LEARNING_GOAL_POINTS,
        work_experience=sum(
            WORK_EXPERIENCE_POINTS + ACHIEVEMENT_POINTS * len(record.achievements)
            for record in snapshot.work_experience
        ),
        projects=sum(
            PROJECT_POINTS + ACHIEVEMENT_POINTS * len(record.achievements)
            for record in snapshot.projects
        ),
        certifications=len(snapshot.certifications) * CERTIFICATION_POINTS,
    )


def compute_total(snapshot: ProfileSnapshot) -> int:
    """Uncapped profile points. Reads only the snapshot, never stored point values."""
    return profile_breakdown(snapshot).total


def compute_capped_total(
    years_experience: int,
    skill_count: int,
    cert_count: int,
    project_count: int,
) -> int:
    raw = (
        max(int(years_experience), 0) * ONBOARDING_YEAR_POINTS
        + max(int(skill_count), 0) * ONBOARDING_SKILL_POINTS
        + max(int(cert_count), 0) * ONBOARDING_CERTIFICATION_POINTS
        + max(int(project_count), 0) * ONBOARDING_PROJECT_POINTS
    )
    return min(raw, ONBOARDING_POINTS_CAP)


def swap_points(skills_shared: int) -> int:
    return min(max(int(skills_shared), 0) * SWAP_POINTS_PER_SKILL, SWAP_POINTS_CAP)


__all__ = [
    "LESSON_COMPLETION_POINTS",
    "ONBOARDING_POINTS_CAP",
    "PointsBreakdown",
    "compute_capped_total",
    "compute_total",
    "profile_breakdown",
    "swap_points",
]
