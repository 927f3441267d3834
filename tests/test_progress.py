import pytest

from numbermatch.constants import Difficulty
from numbermatch.systems.board_ops import (
    advance_progress,
    combo_multiplier,
    progress_threshold,
    score_for_merge,
)


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_threshold_strictly_increases_with_level(difficulty):
    thresholds = [progress_threshold(difficulty, level) for level in range(12)]
    assert all(b > a for a, b in zip(thresholds, thresholds[1:]))


def test_base_thresholds_and_compounding():
    assert progress_threshold(Difficulty.KIDS, 0) == 500
    assert progress_threshold(Difficulty.NORMAL, 0) == 1000
    assert progress_threshold(Difficulty.HARD, 0) == 2000
    assert progress_threshold(Difficulty.NORMAL, 1) == 1350
    assert progress_threshold(Difficulty.NORMAL, 2) == 1823  # 1822.5 rounds up


def test_advance_wraps_points_on_level_up():
    advance = advance_progress(900, 0, 250, Difficulty.NORMAL)
    assert (advance.points, advance.level, advance.rewards) == (150, 1, 1)


def test_advance_below_threshold_accumulates():
    advance = advance_progress(100, 2, 50, Difficulty.NORMAL)
    assert (advance.points, advance.level, advance.rewards) == (150, 2, 0)


def test_single_level_up_per_merge_carries_the_surplus():
    advance = advance_progress(0, 0, 5000, Difficulty.KIDS)
    assert advance.level == 1
    assert advance.points == 4500


def test_combo_multiplier_is_capped():
    assert [combo_multiplier(c) for c in range(6)] == [1, 2, 3, 4, 4, 4]


def test_score_applies_combo():
    assert score_for_merge(64, 0, Difficulty.NORMAL) == 64
    assert score_for_merge(64, 2, Difficulty.HARD) == 192
