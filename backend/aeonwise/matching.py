"""Skill-swap compatibility scoring.

A pair of users scores points for every teachable skill on one side that is
related to a learning goal on the other side. Two terms are related when one
contains the other (case-insensitive) or when both belong to the same topic of
``SKILL_TAXONOMY``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import FrozenSet, Generic, Iterable, List, Mapping, Protocol, Sequence, TypeVar

RELATED_PAIR_POINTS = 2
DEFAULT_MATCH_LIMIT = 10
ONBOARDING_MATCH_LIMIT = 3

SKILL_TAXONOMY: Mapping[str, FrozenSet[str]] = {
    "web development": frozenset(
        {"html", "css", "javascript", "typescript", "react", "vue", "angular", "frontend", "backend", "node"}
    ),
    "data science": frozenset(
        {"data", "analytics", "statistics", "pandas", "data analysis", "data visualization", "sql"}
    ),
    "machine learning": frozenset(
        {"ml", "ai", "artificial intelligence", "deep learning", "neural networks", "tensorflow", "pytorch", "nlp"}
    ),
    "design": frozenset(
        {"ui", "ux", "graphic design", "figma", "user experience", "user interface", "illustration"}
    ),
    "mobile development": frozenset(
        {"ios", "android", "swift", "kotlin", "flutter", "react native", "mobile"}
    ),
    "cloud computing": frozenset({"cloud", "aws", "azure", "gcp", "google cloud", "serverless"}),
    "devops": frozenset({"docker", "kubernetes", "ci/cd", "terraform", "infrastructure", "deployment"}),
    "databases": frozenset({"database", "sql", "postgresql", "mysql", "mongodb", "nosql"}),
    "marketing": frozenset({"seo", "content marketing", "social media", "branding", "copywriting"}),
    "music": frozenset({"guitar", "piano", "singing", "music production", "composition"}),
    "languages": frozenset({"english", "spanish", "french", "german", "japanese", "mandarin"}),
    "communication": frozenset({"public speaking", "presentation", "writing", "storytelling", "coaching"}),
}


class SkillHolder(Protocol):
    skills: List[str]
    learning_goals: List[str]


C = TypeVar("C", bound=SkillHolder)


@dataclass(frozen=True)
class ScoredCandidate(Generic[C]):
    candidate: C
    score: int


def _normalize(term: str) -> str:
    return " ".join(term.lower().split())


def _contains_phrase(text: str, phrase: str) -> bool:
    return re.search(rf"(?<![\w]){re.escape(phrase)}(?![\w])", text) is not None


@lru_cache(maxsize=2048)
def _topics_for(term: str) -> FrozenSet[str]:
    topics = set()
    for topic, synonyms in SKILL_TAXONOMY.items():
        for vocabulary in (topic, *synonyms):
            if _contains_phrase(term, vocabulary) or _contains_phrase(vocabulary, term):
                topics.add(topic)
                break
    return frozenset(topics)


def related_topics(term: str) -> FrozenSet[str]:
    """Taxonomy topics ``term`` falls under (empty for blank terms)."""
    normalized = _normalize(term)
    if not normalized:
        return frozenset()
    return _topics_for(normalized)


def are_related(left: str, right: str) -> bool:
    a = _normalize(left)
    b = _normalize(right)
    if not a or not b:
        return False
    if a in b or b in a:
        return True
    return bool(_topics_for(a) & _topics_for(b))


def _directional_score(teaches: Iterable[str], learns: Sequence[str]) -> int:
    return sum(
        RELATED_PAIR_POINTS
        for skill in teaches
        for goal in learns
        if are_related(skill, goal)
    )


def score(
    skills_a: Sequence[str],
    goals_a: Sequence[str],
    skills_b: Sequence[str],
    goals_b: Sequence[str],
) -> int:
    """Score A teaching B plus B teaching A; each related (skill, goal) pair is worth 2."""
    return _directional_score(skills_a, goals_b) + _directional_score(skills_b, goals_a)


def rank_candidates(
    skills: Sequence[str],
    goals: Sequence[str],
    candidates: Iterable[C],
    limit: int = DEFAULT_MATCH_LIMIT,
) -> List[ScoredCandidate[C]]:
    """Score candidates, drop zero scores, sort descending (stable) and keep ``limit``."""
    if limit <= 0:
        return []
    scored = [
        ScoredCandidate(candidate=candidate, score=score(skills, goals, candidate.skills, candidate.learning_goals))
        for candidate in candidates
    ]
    positive = [entry for entry in scored if entry.score > 0]
    positive.sort(key=lambda entry: entry.score, reverse=True)
    return positive[:limit]


__all__ = [
    "DEFAULT_MATCH_LIMIT",
    "ONBOARDING_MATCH_LIMIT",
    "SKILL_TAXONOMY",
    "ScoredCandidate",
    "are_related",
    "rank_candidates",
    "related_topics",
    "score",
]
