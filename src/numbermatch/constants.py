"""Static tables for the number-merge engine.

Legal tile values, their display labels and colors, milestone effects and
per-difficulty tuning. Everything here is read-only at runtime.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

# Legal tile values: 2 .. 2**20
NUMBER_VALUES: Tuple[int, ...] = tuple(2 ** exponent for exponent in range(1, 21))

NUMBER_LABELS: Dict[int, str] = {
    2: "2", 4: "4", 8: "8", 16: "16", 32: "32", 64: "64",
    128: "128", 256: "256", 512: "512", 1024: "1024",
    2048: "2K", 4096: "4K", 8192: "8K", 16384: "16K",
    32768: "32K", 65536: "64K", 131072: "131K", 262144: "262K",
    524288: "524K", 1048576: "1M",
}

NUMBER_COLORS: Dict[int, Tuple[int, int, int]] = {
    2:       (74, 144, 164),    # #4A90A4
    4:       (93, 163, 181),    # #5DA3B5
    8:       (112, 182, 198),   # #70B6C6
    16:      (131, 201, 215),   # #83C9D7
    32:      (45, 134, 89),     # #2D8659
    64:      (63, 169, 111),    # #3FA96F
    128:     (82, 188, 130),    # #52BC82
    256:     (101, 207, 149),   # #65CF95
    512:     (212, 166, 85),    # #D4A655
    1024:    (230, 184, 101),   # #E6B865
    2048:    (248, 202, 117),   # #F8CA75
    4096:    (199, 94, 118),    # #C75E76
    8192:    (217, 113, 137),   # #D97189
    16384:   (235, 132, 156),   # #EB849C
    32768:   (122, 75, 148),    # #7A4B94
    65536:   (141, 94, 167),    # #8D5EA7
    131072:  (160, 113, 186),   # #A071BA
    262144:  (179, 132, 205),   # #B384CD
    524288:  (199, 151, 64),    # #C79740
    1048576: (218, 165, 80),    # #DAA550
}
FALLBACK_COLOR: Tuple[int, int, int] = (136, 136, 136)

# First production of one of these values grants one pending reward.
POWERUP_MILESTONES: Tuple[int, ...] = (128, 512, 2048, 8192, 32768, 131072, 524288, 1048576)

# Produced value -> spawn value removed from the pool (and from the grid).
ELIMINATION_MILESTONES: Dict[int, int] = {
    1048576: 16,
    524288: 8,
    262144: 4,
    131072: 2,
}

# Spawn pool before any eliminations.
STARTING_NUMBERS: Tuple[int, ...] = (2, 4, 8, 16, 32, 64)

MAX_POWERUP_COUNT = 5
INITIAL_POWERUP_COUNT = 1

PROGRESS_THRESHOLD_SCALING = 0.35  # compounding per level
BEST_PROGRESS_LEVEL_WEIGHT = 1000

# Combo multiplier applied to score never exceeds this.
MAX_COMBO_MULTIPLIER = 4

SNAPSHOT_SCHEMA_VERSION = 1


class Difficulty(str, Enum):
    KIDS = "kids"
    NORMAL = "normal"
    HARD = "hard"


@dataclass(frozen=True, slots=True)
class DifficultyConfig:
    label: str
    description: str
    rows: int
    cols: int
    score_multiplier: float
    power_up_multiplier: float
    base_threshold: int


DIFFICULTY_CONFIGS: Mapping[Difficulty, DifficultyConfig] = MappingProxyType({
    Difficulty.KIDS: DifficultyConfig(
        label="Play",
        description="Smaller grid, easier gameplay",
        rows=5,
        cols=4,
        score_multiplier=1.0,
        power_up_multiplier=1.2,
        base_threshold=500,
    ),
    Difficulty.NORMAL: DifficultyConfig(
        label="Normal",
        description="Standard challenge",
        rows=7,
        cols=5,
        score_multiplier=1.0,
        power_up_multiplier=1.0,
        base_threshold=1000,
    ),
    Difficulty.HARD: DifficultyConfig(
        label="Hard",
        description="For puzzle masters",
        rows=7,
        cols=5,
        score_multiplier=1.0,
        power_up_multiplier=0.7,
        base_threshold=2000,
    ),
})


def parse_difficulty(value: Difficulty | str | None) -> Difficulty:
    """Coerce a difficulty name; anything unrecognised maps to NORMAL."""
    if isinstance(value, Difficulty):
        return value
    try:
        return Difficulty(value)
    except ValueError:
        return Difficulty.NORMAL


def get_difficulty_config(difficulty: Difficulty | str | None) -> DifficultyConfig:
    return DIFFICULTY_CONFIGS[parse_difficulty(difficulty)]


@dataclass(frozen=True, slots=True)
class ValueInfo:
    """Catalog entry for one legal tile value."""
    value: int
    label: str
    color: Tuple[int, int, int]
    grants_power_up: bool = False
    eliminates: Optional[int] = None


def _build_value_catalog() -> Mapping[int, ValueInfo]:
    legal = set(NUMBER_VALUES)
    if set(NUMBER_LABELS) != legal:
        raise ValueError("NUMBER_LABELS must cover exactly the legal tile values")
    if set(NUMBER_COLORS) != legal:
        raise ValueError("NUMBER_COLORS must cover exactly the legal tile values")
    unknown = (set(POWERUP_MILESTONES) | set(ELIMINATION_MILESTONES)) - legal
    if unknown:
        raise ValueError(f"Milestones reference illegal values: {sorted(unknown)}")
    bad_targets = set(ELIMINATION_MILESTONES.values()) - set(STARTING_NUMBERS)
    if bad_targets:
        raise ValueError(f"Elimination targets must be spawn values: {sorted(bad_targets)}")
    catalog = {
        value: ValueInfo(
            value=value,
            label=NUMBER_LABELS[value],
            color=NUMBER_COLORS[value],
            grants_power_up=value in POWERUP_MILESTONES,
            eliminates=ELIMINATION_MILESTONES.get(value),
        )
        for value in NUMBER_VALUES
    }
    return MappingProxyType(catalog)


VALUE_CATALOG: Mapping[int, ValueInfo] = _build_value_catalog()


def is_legal_value(value: int) -> bool:
    return value in VALUE_CATALOG


def format_number(value: int) -> str:
    info = VALUE_CATALOG.get(value)
    return info.label if info is not None else str(value)


def tile_color(value: int) -> Tuple[int, int, int]:
    info = VALUE_CATALOG.get(value)
    return info.color if info is not None else FALLBACK_COLOR
