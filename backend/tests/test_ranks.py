from __future__ import annotations

import pytest

from aeonwise.ranks import DEFAULT_THRESHOLDS, RANK_LADDER, RankLadder, RankThreshold, rank_for_points


@pytest.mark.parametrize(
    ("points", "rank"),
    [
        (0, "starspark"),
        (250, "starspark"),
        (251, "nebula_novice"),
        (500, "nebula_novice"),
        (501, "astral_apprentice"),
        (800, "astral_apprentice"),
        (801, "comet_crafter"),
        (1200, "comet_crafter"),
        (1201, "galactic_guide"),
        (1600, "galactic_guide"),
        (1601, "cosmic_sage"),
        (50_000, "cosmic_sage"),
    ],
)
def test_lookup_boundaries(points: int, rank: str) -> None:
    assert RANK_LADDER.lookup(points) == rank


def test_negative_totals_clamp_to_lowest_rank() -> None:
    assert rank_for_points(-40) == "starspark"
    assert RANK_LADDER.progress(-40).points == 0


def test_next_rank_reports_gap_and_top_tier() -> None:
    assert RANK_LADDER.next_rank(0) == ("nebula_novice", 251)
    assert RANK_LADDER.next_rank(1200) == ("galactic_guide", 1)
    assert RANK_LADDER.next_rank(1601) == ("cosmic_sage", 0)
    assert RANK_LADDER.next_rank(9999) == ("cosmic_sage", 0)


def test_progress_percent() -> None:
    progress = RANK_LADDER.progress(90)
    assert progress.rank == "starspark"
    assert progress.label == "Starspark"
    assert progress.next_rank == "nebula_novice"
    assert progress.points_needed == 161
    assert progress.percent == round(90 / 251 * 100, 2)

    top = RANK_LADDER.progress(2000)
    assert top.rank == "cosmic_sage"
    assert top.points_needed == 0
    assert top.percent == 100.0


def test_ladder_rejects_unordered_thresholds() -> None:
    with pytest.raises(ValueError):
        RankLadder([RankThreshold("a", "A", 0), RankThreshold("b", "B", 0)])
    with pytest.raises(ValueError):
        RankLadder([RankThreshold("a", "A", 10)])
    with pytest.raises(ValueError):
        RankLadder([])


def test_labels_and_unknown_rank() -> None:
    assert [entry.rank for entry in RANK_LADDER.thresholds] == [entry.rank for entry in DEFAULT_THRESHOLDS]
    assert RANK_LADDER.label_for("galactic_guide") == "Galactic Guide"
    assert RANK_LADDER.find("moon_master") is None
    with pytest.raises(KeyError):
        RANK_LADDER.get_threshold("moon_master")
