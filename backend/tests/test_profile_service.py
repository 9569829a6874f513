"""Profile workflows that feed the points ledger."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from aeonwise.db.session import SessionFactory
from aeonwise.ledger_models import PointsSource
from aeonwise.points_ledger import PointsLedger
from aeonwise.profile import ProfileSnapshot
from aeonwise.profile_service import ProfileService
from aeonwise.repositories.points_ledger import PointsLedgerRepository
from aeonwise.repositories.profiles import ProfileNotFoundError
from aeonwise.skill_extraction import ExperienceAnalysis


class _FailingAppendRepository(PointsLedgerRepository):
    def append(self, session, user_id, source, points, details=None):  # type: ignore[no-untyped-def]
        raise OperationalError("INSERT INTO points_ledger_entries", {}, Exception("database is locked"))


def _starter_snapshot() -> ProfileSnapshot:
    return ProfileSnapshot(
        bio="I teach Python on weekends.",
        skills=["python", "sql", "docker"],
        learning_goals=["design", "guitar"],
    )


def test_create_profile_rejects_duplicate_usernames(service: ProfileService) -> None:
    created = service.create_profile("  Ada ", full_name="Ada Lovelace")
    assert created.username == "ada"
    assert created.points == 0
    assert created.rank == "starspark"
    with pytest.raises(ValueError):
        service.create_profile("ADA")


def test_get_missing_profile(service: ProfileService) -> None:
    with pytest.raises(ProfileNotFoundError):
        service.get_profile("nobody")


def test_update_profile_awards_only_the_change(service: ProfileService, ledger: PointsLedger) -> None:
    profile = service.create_profile("hopper")

    first = service.update_profile(profile.id, _starter_snapshot())
    assert first.profile_points == 90
    assert first.previous_profile_points == 0
    assert first.award is not None and first.award.success
    assert first.profile.points == 90
    assert first.profile.rank == "starspark"

    unchanged = service.update_profile(profile.id, _starter_snapshot())
    assert unchanged.award is None
    assert unchanged.profile.points == 90

    trimmed = _starter_snapshot().model_copy(update={"skills": ["python", "sql"]})
    shrunk = service.update_profile(profile.id, trimmed)
    assert shrunk.award is not None
    assert shrunk.award.entry is not None and shrunk.award.entry.points == -10
    assert shrunk.profile.points == 80

    history = ledger.history(profile.id)
    assert len(history) == 2
    assert {entry.source for entry in history} == {PointsSource.PROFILE_UPDATE}
    assert ledger.ledger_total(profile.id) == shrunk.profile.points


def test_update_profile_measures_change_from_last_credited_content(service: ProfileService, ledger: PointsLedger) -> None:
    profile = service.create_profile("dennis")
    service.complete_lesson(profile.id, "course-1", "lesson-1", skill="Rust")

    cleared = service.update_profile(profile.id, ProfileSnapshot(bio="", skills=[]))
    assert cleared.previous_profile_points == 0
    assert cleared.award is None
    assert cleared.profile.points == 50

    filled = service.update_profile(profile.id, _starter_snapshot())
    assert filled.previous_profile_points == 0
    assert filled.award is not None and filled.award.entry is not None
    assert filled.award.entry.points == 90
    assert filled.profile.points == 140
    assert ledger.ledger_total(profile.id) == 140


def test_update_profile_restores_content_when_ledger_append_fails(
    session_factory: SessionFactory,
    service: ProfileService,
    ledger: PointsLedger,
) -> None:
    profile = service.create_profile("grace", full_name="Grace Hopper")
    flaky = ProfileService(session_factory, PointsLedger(session_factory, ledger_repository=_FailingAppendRepository()))

    failed = flaky.update_profile(profile.id, _starter_snapshot(), full_name="Admiral Hopper")
    assert failed.award is not None
    assert failed.award.success is False
    assert failed.award.drift is False
    assert failed.award.entry is None
    assert failed.profile.skills == []
    assert failed.profile.full_name == "Grace Hopper"
    assert failed.profile.points == 0
    assert ledger.history(profile.id) == []

    retried = service.update_profile(profile.id, _starter_snapshot())
    assert retried.award is not None and retried.award.entry is not None
    assert retried.award.entry.points == 90
    assert retried.profile.points == 90


def test_complete_lesson_keeps_skills_when_ledger_append_fails(session_factory: SessionFactory, service: ProfileService) -> None:
    profile = service.create_profile("edsger")
    flaky = ProfileService(session_factory, PointsLedger(session_factory, ledger_repository=_FailingAppendRepository()))

    result = flaky.complete_lesson(profile.id, "course-1", "lesson-1", skill="Haskell")
    assert result.award.success is False
    assert result.skill_added is False
    assert result.profile.skills == []
    assert result.profile.points == 0


def test_onboarding_grant_sets_capped_total(service: ProfileService, ledger: PointsLedger) -> None:
    profile = service.create_profile("katherine")
    service.update_profile(profile.id, _starter_snapshot())

    analysis = ExperienceAnalysis(
        years_experience=10,
        skills=["Python", "React", "AWS", "SQL", "Leadership"],
        certifications=["AWS SA", "CKA"],
        projects=["Billing", "Search", "Mobile app"],
    )
    result = service.apply_onboarding_grant(profile.id, analysis)

    assert result.granted_total == 1290
    assert result.previous_points == 90
    assert result.award.entry is not None and result.award.entry.points == 1200
    assert result.profile.points == 1290
    assert result.profile.rank == "galactic_guide"
    assert "React" in result.profile.skills
    assert result.profile.skills.count("python") == 1

    smaller = service.apply_onboarding_grant(profile.id, ExperienceAnalysis(years_experience=2))
    assert smaller.granted_total == 150
    assert smaller.profile.points == 150
    assert ledger.ledger_total(profile.id) == 150


def test_complete_lesson_adds_skill_without_profile_points(service: ProfileService, ledger: PointsLedger) -> None:
    profile = service.create_profile("barbara")

    result = service.complete_lesson(profile.id, "course-1", "lesson-1", skill="Rust")
    assert result.skill_added is True
    assert result.award.entry is not None and result.award.entry.points == 50
    assert result.profile.points == 50
    assert "Rust" in result.profile.skills

    repeat = service.complete_lesson(profile.id, "course-1", "lesson-2", skill="rust")
    assert repeat.skill_added is False
    assert repeat.profile.points == 100
    assert [entry.source for entry in ledger.history(profile.id)] == [PointsSource.LESSON_COMPLETION] * 2

    with pytest.raises(ValueError):
        service.complete_lesson(profile.id, "", "lesson-3")


def test_complete_swap_caps_points(service: ProfileService) -> None:
    mentor = service.create_profile("mentor")
    learner = service.create_profile("learner")

    result = service.complete_swap(mentor.id, learner.id, 20)
    assert result.points_earned == 500
    assert result.profile.points == 500
    assert service.get_profile(learner.id).points == 0

    with pytest.raises(ValueError):
        service.complete_swap(mentor.id, mentor.id, 1)
    with pytest.raises(ValueError):
        service.complete_swap(mentor.id, learner.id, 0)
    with pytest.raises(ProfileNotFoundError):
        service.complete_swap(mentor.id, "ghost", 1)


def test_find_matches_excludes_requester_and_zero_scores(service: ProfileService) -> None:
    requester = service.create_profile("requester")
    service.update_profile(requester.id, ProfileSnapshot(skills=["figma"], learning_goals=["python"]))

    strong = service.create_profile("strong")
    service.update_profile(strong.id, ProfileSnapshot(skills=["python"], learning_goals=["design"]))
    weak = service.create_profile("weak")
    service.update_profile(weak.id, ProfileSnapshot(skills=["python"]))
    unrelated = service.create_profile("unrelated")
    service.update_profile(unrelated.id, ProfileSnapshot(skills=["knitting"], learning_goals=["chess"]))

    matches = service.find_matches(requester.id)
    assert [match.candidate.username for match in matches] == ["strong", "weak"]
    assert [match.score for match in matches] == [4, 2]

    override = service.find_matches(requester.id, skills=["knitting"], learning_goals=["chess"])
    assert override == []

    assert len(service.recommendations(requester.id, limit=1)) == 1


def test_find_matches_requires_terms(service: ProfileService) -> None:
    profile = service.create_profile("blank")
    with pytest.raises(ValueError):
        service.find_matches(profile.id)
