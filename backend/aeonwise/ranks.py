"""Rank ladder mapping point totals to the six AeonWise tiers."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class RankThreshold:
    rank: str
    label: str
    min_points: int


@dataclass(frozen=True)
class RankProgress:
    points: int
    rank: str
    label: str
    threshold: int
    next_rank: str
    next_label: str
    points_needed: int
    percent: float


DEFAULT_THRESHOLDS: Tuple[RankThreshold, ...] = (
    RankThreshold("starspark", "Starspark", 0),
    RankThreshold("nebula_novice", "Nebula Novice", 251),
    RankThreshold("astral_apprentice", "Astral Apprentice", 501),
    RankThreshold("comet_crafter", "Comet Crafter", 801),
    RankThreshold("galactic_guide", "Galactic Guide", 1201),
    RankThreshold("cosmic_sage", "Cosmic Sage", 1601),
)


class RankLadder:
    """Ordered, immutable threshold table.

    Thresholds must start at zero and strictly increase so that every
    non-negative total maps to exactly one rank.
    """

    def __init__(self, thresholds: Iterable[RankThreshold]) -> None:
        ordered = tuple(thresholds)
        if not ordered:
            raise ValueError("A rank ladder needs at least one threshold.")
        if ordered[0].min_points != 0:
            raise ValueError("The lowest rank threshold must be 0.")
        for lower, upper in zip(ordered, ordered[1:]):
            if upper.min_points <= lower.min_points:
                raise ValueError(
                    f"Rank thresholds must strictly increase ({lower.rank}={lower.min_points}, "
                    f"{upper.rank}={upper.min_points})."
                )
        self._thresholds = ordered
        self._floors: List[int] = [entry.min_points for entry in ordered]
        self._by_rank: Dict[str, RankThreshold] = {entry.rank: entry for entry in ordered}

    @property
    def thresholds(self) -> Sequence[RankThreshold]:
        return self._thresholds

    @property
    def top(self) -> RankThreshold:
        return self._thresholds[-1]

    def _index(self, points: int) -> int:
        return bisect_right(self._floors, max(int(points), 0)) - 1

    def lookup(self, points: int) -> str:
        return self._thresholds[self._index(points)].rank

    def next_rank(self, points: int) -> Tuple[str, int]:
        """Return the next tier and the gap to it; ``(top, 0)`` once the top tier is reached."""
        index = self._index(points)
        if index == len(self._thresholds) - 1:
            return self.top.rank, 0
        upcoming = self._thresholds[index + 1]
        return upcoming.rank, upcoming.min_points - max(int(points), 0)

    def progress(self, points: int) -> RankProgress:
        clamped = max(int(points), 0)
        current = self._thresholds[self._index(clamped)]
        next_rank, needed = self.next_rank(clamped)
        if needed == 0:
            percent = 100.0
        else:
            percent = round(min(100.0, clamped / (clamped + needed) * 100.0), 2)
        return RankProgress(
            points=clamped,
            rank=current.rank,
            label=current.label,
            threshold=current.min_points,
            next_rank=next_rank,
            next_label=self._by_rank[next_rank].label,
            points_needed=needed,
            percent=percent,
        )

    def get_threshold(self, rank: str) -> RankThreshold:
        try:
            return self._by_rank[rank]
        except KeyError:
            raise KeyError(f"Unknown rank '{rank}'.") from None

    def label_for(self, rank: str) -> str:
        return self.get_threshold(rank).label

    def find(self, rank: str) -> Optional[RankThreshold]:
        return self._by_rank.get(rank)


RANK_LADDER = RankLadder(DEFAULT_THRESHOLDS)


def rank_for_points(points: int) -> str:
    return RANK_LADDER.lookup(points)


__all__ = [
    "DEFAULT_THRESHOLDS",
    "RANK_LADDER",
    "RankLadder",
    "RankProgress",
    "RankThreshold",
    "rank_for_points",
]
