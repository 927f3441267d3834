from __future__ import annotations

from dataclasses import dataclass, field
from typing import Set


@dataclass(slots=True)
class ProgressState:
    """Progress toward periodic rewards plus one-way milestone bookkeeping.

    progress_points: points toward the next level, wrapped on level-up.
    progress_level: number of level-ups so far.
    highest_number: largest value produced this game.
    eliminated_numbers: spawn values permanently removed from the pool.
    unlocked_milestones: power-up milestone values that already paid out.
    """
    progress_points: int = 0
    progress_level: int = 0
    highest_number: int = 2
    eliminated_numbers: Set[int] = field(default_factory=set)
    unlocked_milestones: Set[int] = field(default_factory=set)
