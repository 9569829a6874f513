"""HTTP API tests against an in-memory database."""

from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from aeonwise.config import Settings
from aeonwise.db.session import SessionFactory
from aeonwise.dependencies import provide_llm_client, provide_points_ledger, provide_session_factory
from aeonwise.llm_client import LLMClient
from aeonwise.main import app
from aeonwise.points_ledger import PointsLedger
from aeonwise.repositories.points_ledger import PointsLedgerRepository


@pytest.fixture
def client(session_factory: SessionFactory) -> Iterator[TestClient]:
    app.dependency_overrides[provide_session_factory] = lambda: session_factory
    app.dependency_overrides[provide_llm_client] = lambda: LLMClient(Settings(OPENAI_API_KEY=None))
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _create(client: TestClient, username: str) -> str:
    response = client.post("/api/profiles", json={"username": username})
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _set_profile(client: TestClient, user_id: str, **fields: object) -> dict:
    response = client.put(f"/api/profiles/{user_id}", json=fields)
    assert response.status_code == 200, response.text
    return response.json()


def test_profile_lifecycle(client: TestClient) -> None:
    user_id = _create(client, "Ada")

    fetched = client.get(f"/api/profiles/{user_id}")
    assert fetched.status_code == 200
    assert fetched.json()["username"] == "ada"
    assert fetched.json()["rank_label"] == "Starspark"

    updated = _set_profile(
        client,
        user_id,
        bio="Teaches Python.",
        skills=["python", "sql", "docker"],
        learning_goals=["design", "guitar"],
    )
    assert updated["profile_points"] == 90
    assert updated["profile"]["points"] == 90
    assert updated["award"]["entry"]["source"] == "profile_update"

    assert client.post("/api/profiles", json={"username": "ADA"}).status_code == 400
    assert client.post("/api/profiles", json={"username": ""}).status_code == 422
    assert client.get("/api/profiles/missing").status_code == 404


def test_award_history_rank_and_reconcile(client: TestClient) -> None:
    user_id = _create(client, "grace")

    award = client.post(f"/api/points/{user_id}/award", json={"source": "achievement", "points": 300})
    assert award.status_code == 200
    assert award.json()["points"] == 300
    assert award.json()["rank"] == "nebula_novice"
    client.post(f"/api/points/{user_id}/award", json={"source": "decay", "points": -20, "details": {"days": 30}})

    history = client.get(f"/api/points/{user_id}/history", params={"limit": 1})
    assert history.status_code == 200
    assert [entry["source"] for entry in history.json()] == ["decay"]

    standing = client.get(f"/api/points/{user_id}/rank").json()
    assert standing["points"] == 280
    assert standing["rank"] == "nebula_novice"
    assert standing["next_rank"] == "astral_apprentice"
    assert standing["points_needed"] == 221

    reconcile = client.post(f"/api/points/{user_id}/reconcile").json()
    assert reconcile["repaired"] is False
    assert reconcile["ledger_points"] == 280


def test_award_validation_and_missing_profile(client: TestClient) -> None:
    user_id = _create(client, "linus")
    assert client.post(f"/api/points/{user_id}/award", json={"source": "jackpot", "points": 5}).status_code == 422
    assert client.post("/api/points/ghost/award", json={"source": "achievement", "points": 5}).status_code == 404
    assert client.get("/api/points/ghost/history").status_code == 404
    assert client.get("/api/points/ghost/rank").status_code == 404


def test_rank_ladder_listing(client: TestClient) -> None:
    ranks = client.get("/api/points/ranks").json()
    assert [entry["rank"] for entry in ranks][0] == "starspark"
    assert ranks[-1] == {"rank": "cosmic_sage", "label": "Cosmic Sage", "min_points": 1601}


def test_matching_uses_stable_field_names(client: TestClient) -> None:
    requester = _create(client, "requester")
    _set_profile(client, requester, skills=["figma"], learning_goals=["python"])
    partner = _create(client, "partner")
    _set_profile(client, partner, skills=["python"], learning_goals=["design"])
    loner = _create(client, "loner")
    _set_profile(client, loner, skills=["knitting"])

    response = client.post("/api/matching", json={"user_id": requester})
    assert response.status_code == 200
    matches = response.json()["matches"]
    assert len(matches) == 1
    assert matches[0]["id"] == partner
    assert matches[0]["matchScore"] == 4
    assert {"skills", "learning_goals", "points", "rank"} <= set(matches[0])

    blank = _create(client, "blank")
    assert client.post("/api/matching", json={"user_id": blank}).status_code == 400
    assert client.post("/api/matching", json={"user_id": blank, "skills": ["design"]}).status_code == 200


def test_onboarding_import_analyze_and_recommendations(client: TestClient) -> None:
    user_id = _create(client, "katherine")
    mentor = _create(client, "mentor")
    _set_profile(client, mentor, skills=["react"], learning_goals=["sql"])

    imported = client.post(
        f"/api/onboarding/{user_id}/import",
        json={
            "years_experience": 10,
            "skills": ["Python", "React", "AWS", "SQL", "Leadership"],
            "certifications": ["AWS SA", "CKA"],
            "projects": ["Billing", "Search", "Mobile app"],
        },
    )
    assert imported.status_code == 200
    body = imported.json()
    assert body["granted_total"] == 1290
    assert body["points"] == 1290
    assert body["rank"] == "galactic_guide"
    assert body["analysis_source"] == "import"

    analyzed = client.post(f"/api/onboarding/{user_id}/analyze", json={"text": "I write SQL and JavaScript."})
    assert analyzed.status_code == 200
    assert analyzed.json()["analysis_source"] == "fallback"
    assert analyzed.json()["points"] == analyzed.json()["granted_total"]

    recommendations = client.get(f"/api/onboarding/{user_id}/recommendations").json()["matches"]
    assert [match["id"] for match in recommendations] == [mentor]

    assert client.post("/api/onboarding/ghost/analyze", json={"text": "python"}).status_code == 404


def test_activity_endpoints(client: TestClient) -> None:
    learner = _create(client, "learner")
    partner = _create(client, "partner")

    lesson = client.post(
        "/api/activity/lessons/complete",
        json={"user_id": learner, "course_id": "c-1", "lesson_id": "l-1", "skill": "Rust"},
    ).json()
    assert lesson["points_awarded"] == 50
    assert lesson["skill_added"] is True
    assert lesson["points"] == 50

    swap = client.post(
        "/api/activity/swaps/complete",
        json={"user_id": learner, "match_id": partner, "skills_shared": 3},
    ).json()
    assert swap["points_earned"] == 150
    assert swap["points"] == 200

    same = client.post(
        "/api/activity/swaps/complete",
        json={"user_id": learner, "match_id": learner, "skills_shared": 1},
    )
    assert same.status_code == 400


def test_skill_extraction_and_course_generation(client: TestClient) -> None:
    skills = client.post("/api/skills/extract", json={"text": "React and Python, plus public speaking."}).json()
    assert {"React", "Python", "Public Speaking"} <= set(skills["skills"])

    course = client.post("/api/courses/generate", json={"topic": "Pottery"}).json()["course"]
    assert course["title"] == "Mastering Pottery: A Comprehensive Guide"
    assert course["modules"] == 7
    assert course["source"] == "template"

    assert client.post("/api/courses/generate", json={"topic": "   "}).status_code == 400
    assert client.post("/api/courses/generate", json={"topic": "x", "level": "expert"}).status_code == 422


class _LockedLedgerRepository(PointsLedgerRepository):
    def append(self, session, user_id, source, points, details=None):  # type: ignore[no-untyped-def]
        raise OperationalError("INSERT INTO points_ledger_entries", {}, Exception("database is locked"))


def test_unrecorded_awards_return_503(client: TestClient, session_factory: SessionFactory) -> None:
    learner = _create(client, "learner")
    partner = _create(client, "partner")
    app.dependency_overrides[provide_points_ledger] = lambda: PointsLedger(
        session_factory, ledger_repository=_LockedLedgerRepository()
    )

    update = client.put(f"/api/profiles/{learner}", json={"skills": ["python"]})
    assert update.status_code == 503
    lesson = client.post(
        "/api/activity/lessons/complete",
        json={"user_id": learner, "course_id": "c-1", "lesson_id": "l-1", "skill": "Rust"},
    )
    assert lesson.status_code == 503
    swap = client.post("/api/activity/swaps/complete", json={"user_id": learner, "match_id": partner, "skills_shared": 1})
    assert swap.status_code == 503
    onboarding = client.post(f"/api/onboarding/{learner}/import", json={"years_experience": 3, "skills": ["Go"]})
    assert onboarding.status_code == 503
    award = client.post(f"/api/points/{learner}/award", json={"source": "achievement", "points": 10})
    assert award.status_code == 503

    del app.dependency_overrides[provide_points_ledger]
    profile = client.get(f"/api/profiles/{learner}").json()
    assert profile["skills"] == []
    assert profile["points"] == 0
    assert client.get(f"/api/points/{learner}/history").json() == []
