"""Grid engine: chain validation, merge resolution, gravity/refill, power-ups.

Every function here is pure with respect to its inputs: grids are immutable
tuples of tuples and each operation returns a new snapshot. Randomness comes
from an optional ``random.Random``; without one the module-level generator is used.
"""
from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, replace
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from numbermatch.components.power_ups import PowerUpKind, PowerUps
from numbermatch.components.tile import Cell, Grid, Tile, generate_tile_id
from numbermatch.constants import (
    MAX_COMBO_MULTIPLIER,
    PROGRESS_THRESHOLD_SCALING,
    STARTING_NUMBERS,
    VALUE_CATALOG,
    Difficulty,
    get_difficulty_config,
)

logger = logging.getLogger(__name__)

Position = Tuple[int, int]
TileRef = Union[Tile, Position]

NEIGHBOR_OFFSETS: Tuple[Position, ...] = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1),           (0, 1),
    (1, -1),  (1, 0),  (1, 1),
)


@dataclass(frozen=True, slots=True)
class GravityMove:
    source: Position
    target: Position
    value: int


@dataclass(frozen=True, slots=True)
class MergeResult:
    result_value: int
    progress_yield: int


@dataclass(frozen=True, slots=True)
class MergeApplication:
    """Grid after a merge plus the milestone bookkeeping it caused."""
    grid: Grid
    result_value: int
    result_position: Position
    highest_number: int
    eliminated_numbers: FrozenSet[int]
    unlocked_milestones: FrozenSet[int]
    milestone_reached: Optional[int] = None
    eliminated_value: Optional[int] = None
    cleared_positions: Tuple[Position, ...] = ()


@dataclass(frozen=True, slots=True)
class PowerUpResult:
    grid: Grid
    inventory: PowerUps
    affected: Tuple[Position, ...] = ()


@dataclass(frozen=True, slots=True)
class MergeAllResult:
    grid: Grid
    inventory: PowerUps
    result_value: int
    progress_yield: int
    result_position: Position
    consumed: Tuple[Position, ...]


@dataclass(frozen=True, slots=True)
class ProgressAdvance:
    points: int
    level: int
    rewards: int = 0


# ---------------------------------------------------------------------------
# Grid model
# ---------------------------------------------------------------------------

def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def spawn_pool(eliminated: Iterable[int] = ()) -> List[int]:
    """Starting values minus eliminated ones, in ascending order."""
    removed = set(eliminated)
    pool = [value for value in STARTING_NUMBERS if value not in removed]
    if not pool:
        raise ValueError("Spawn pool is empty; every starting value has been eliminated")
    return pool


def create_random_tile(
    row: int,
    col: int,
    eliminated: Iterable[int] = (),
    rng: random.Random | None = None,
) -> Tile:
    chooser = rng if rng is not None else random
    return Tile(
        id=generate_tile_id(),
        value=chooser.choice(spawn_pool(eliminated)),
        row=row,
        col=col,
        is_new=True,
    )


def create_grid(
    eliminated: Iterable[int] = (),
    rows: int = 7,
    cols: int = 5,
    rng: random.Random | None = None,
) -> Grid:
    """Fully populated grid, each cell sampled uniformly from the spawn pool."""
    eliminated = frozenset(eliminated)
    return tuple(
        tuple(create_random_tile(row, col, eliminated, rng) for col in range(cols))
        for row in range(rows)
    )


def grid_from_values(values: Sequence[Sequence[Optional[int]]]) -> Grid:
    """Build a grid from nested values (None for an empty cell)."""
    return tuple(
        tuple(
            None if value is None else Tile(id=generate_tile_id(), value=value, row=row, col=col)
            for col, value in enumerate(row_values)
        )
        for row, row_values in enumerate(values)
    )


def grid_values(grid: Grid) -> List[List[Optional[int]]]:
    return [[None if tile is None else tile.value for tile in row] for row in grid]


def grid_dimensions(grid: Grid) -> Tuple[int, int]:
    rows = len(grid)
    cols = len(grid[0]) if rows else 0
    return rows, cols


def tile_at(grid: Grid, row: int, col: int) -> Cell:
    rows, cols = grid_dimensions(grid)
    if 0 <= row < rows and 0 <= col < cols:
        return grid[row][col]
    return None


def _position_of(ref: TileRef) -> Position:
    if isinstance(ref, Tile):
        return ref.row, ref.col
    return int(ref[0]), int(ref[1])


def _thaw(grid: Grid) -> List[List[Cell]]:
    return [list(row) for row in grid]


def _freeze(cells: List[List[Cell]]) -> Grid:
    return tuple(tuple(row) for row in cells)


def adjacent(a: Tile, b: Tile) -> bool:
    """Moore-neighbourhood adjacency: diagonals count, a tile is not its own neighbour."""
    row_diff = abs(a.row - b.row)
    col_diff = abs(a.col - b.col)
    return row_diff <= 1 and col_diff <= 1 and (row_diff > 0 or col_diff > 0)


# ---------------------------------------------------------------------------
# Chain validation
# ---------------------------------------------------------------------------

def is_valid_chain_connection(path: Sequence[Tile], candidate: Tile) -> bool:
    """Return True if candidate may extend path.

    Same-tier: candidate equals the last value.
    Tier-advance: the path holds at least two tiles of its base value and the
    candidate is exactly double the last value and above everything chained so far.
    """
    if not path:
        return False
    last = path[-1]
    if not adjacent(last, candidate):
        return False
    if candidate.value == last.value:
        return True
    base_value = path[0].value
    base_count = sum(1 for tile in path if tile.value == base_value)
    current_max = max(tile.value for tile in path)
    return base_count >= 2 and candidate.value == last.value * 2 and candidate.value > current_max


def extend_selection(path: Sequence[Tile], candidate: Tile) -> Tuple[Tile, ...]:
    """Apply one "enter tile" event to a selection path."""
    path = tuple(path)
    if not path:
        return (candidate,)
    if len(path) >= 2 and path[-2].id == candidate.id:
        return path[:-1]
    if any(tile.id == candidate.id for tile in path):
        return path
    if is_valid_chain_connection(path, candidate):
        return path + (candidate,)
    return path


# ---------------------------------------------------------------------------
# Merge resolution
# ---------------------------------------------------------------------------

def merge_value(values: Sequence[int]) -> int:
    """Value produced by merging the given chain values in order.

    A single-tier chain doubles once per extra tile. A multi-tier chain folds
    the base cluster first, then doubles once for every tile above the base tier.
    """
    if not values:
        raise ValueError("Cannot merge an empty chain")
    base_value = values[0]
    tiers = sorted(set(values))
    result = base_value
    if len(tiers) == 1:
        for _ in values[1:]:
            result *= 2
        return result
    base_count = sum(1 for value in values if value == base_value)
    for _ in range(base_count - 1):
        result *= 2
    for tier in tiers[1:]:
        for _ in range(sum(1 for value in values if value == tier)):
            result *= 2
    return result


def progress_yield(values: Iterable[int], difficulty: Difficulty | str) -> int:
    config = get_difficulty_config(difficulty)
    return round_half_up(sum(values) * config.power_up_multiplier)


def resolve_merge(path: Sequence[Tile], difficulty: Difficulty | str) -> MergeResult:
    if len(path) < 2:
        raise ValueError("A merge needs at least two tiles")
    values = [tile.value for tile in path]
    return MergeResult(result_value=merge_value(values), progress_yield=progress_yield(values, difficulty))


def clear_value(grid: Grid, value: int) -> Tuple[Grid, Tuple[Position, ...]]:
    cells = _thaw(grid)
    cleared: List[Position] = []
    for row, row_cells in enumerate(cells):
        for col, tile in enumerate(row_cells):
            if tile is not None and tile.value == value:
                row_cells[col] = None
                cleared.append((row, col))
    return _freeze(cells), tuple(cleared)


def apply_milestones(
    grid: Grid,
    result_value: int,
    result_position: Position,
    *,
    eliminated: Iterable[int] = (),
    unlocked: Iterable[int] = (),
    highest_number: int = 0,
) -> MergeApplication:
    """Record a newly produced value: highest number, reward milestone, elimination."""
    eliminated_set = frozenset(eliminated)
    unlocked_set = frozenset(unlocked)
    info = VALUE_CATALOG.get(result_value)
    milestone: Optional[int] = None
    if info is not None and info.grants_power_up and result_value not in unlocked_set:
        unlocked_set = unlocked_set | {result_value}
        milestone = result_value
    eliminated_value: Optional[int] = None
    cleared: Tuple[Position, ...] = ()
    target = info.eliminates if info is not None else None
    if target is not None and target not in eliminated_set:
        eliminated_set = eliminated_set | {target}
        eliminated_value = target
        grid, cleared = clear_value(grid, target)
        logger.debug("Reached %s: eliminated %s from spawn pool, cleared %d tiles",
                     result_value, target, len(cleared))
    return MergeApplication(
        grid=grid,
        result_value=result_value,
        result_position=result_position,
        highest_number=max(highest_number, result_value),
        eliminated_numbers=eliminated_set,
        unlocked_milestones=unlocked_set,
        milestone_reached=milestone,
        eliminated_value=eliminated_value,
        cleared_positions=cleared,
    )


def apply_merge_to_grid(
    grid: Grid,
    path: Sequence[Tile],
    result_value: int,
    *,
    eliminated: Iterable[int] = (),
    unlocked: Iterable[int] = (),
    highest_number: int = 0,
) -> MergeApplication:
    """Consume the path's cells and place a fresh result tile on the last one."""
    if not path:
        raise ValueError("Cannot apply an empty path")
    cells = _thaw(grid)
    for tile in path[:-1]:
        cells[tile.row][tile.col] = None
    last = path[-1]
    cells[last.row][last.col] = Tile(
        id=generate_tile_id(),
        value=result_value,
        row=last.row,
        col=last.col,
        is_new=True,
    )
    logger.debug("Merged %d tiles into %s at %s", len(path), result_value, (last.row, last.col))
    return apply_milestones(
        _freeze(cells),
        result_value,
        (last.row, last.col),
        eliminated=eliminated,
        unlocked=unlocked,
        highest_number=highest_number,
    )


def combo_multiplier(combo: int) -> int:
    if combo <= 0:
        return 1
    return min(combo + 1, MAX_COMBO_MULTIPLIER)


def score_for_merge(result_value: int, combo: int, difficulty: Difficulty | str) -> int:
    config = get_difficulty_config(difficulty)
    return round_half_up(result_value * config.score_multiplier * combo_multiplier(combo))


def progress_threshold(difficulty: Difficulty | str, level: int) -> int:
    config = get_difficulty_config(difficulty)
    return round_half_up(config.base_threshold * (1 + PROGRESS_THRESHOLD_SCALING) ** max(level, 0))


def advance_progress(points: int, level: int, earned: int, difficulty: Difficulty | str) -> ProgressAdvance:
    total = points + earned
    threshold = progress_threshold(difficulty, level)
    if total >= threshold:
        return ProgressAdvance(points=total - threshold, level=level + 1, rewards=1)
    return ProgressAdvance(points=total, level=level)


# ---------------------------------------------------------------------------
# Gravity / refill
# ---------------------------------------------------------------------------

def _is_consumed(tile: Cell) -> bool:
    return tile is None or tile.is_merging


def compute_gravity_moves(grid: Grid) -> List[GravityMove]:
    """Per-column moves that stable compaction toward the bottom would make."""
    rows, cols = grid_dimensions(grid)
    moves: List[GravityMove] = []
    for col in range(cols):
        write_row = rows - 1
        for row in range(rows - 1, -1, -1):
            tile = grid[row][col]
            if _is_consumed(tile):
                continue
            if row != write_row:
                moves.append(GravityMove(source=(row, col), target=(write_row, col), value=tile.value))
            write_row -= 1
    return moves


def drop_and_refill(
    grid: Grid,
    eliminated: Iterable[int] = (),
    rng: random.Random | None = None,
) -> Grid:
    """Compact every column toward the bottom, then spawn tiles into the gaps above."""
    eliminated = frozenset(eliminated)
    rows, cols = grid_dimensions(grid)
    cells: List[List[Cell]] = [[None] * cols for _ in range(rows)]
    for col in range(cols):
        write_row = rows - 1
        for row in range(rows - 1, -1, -1):
            tile = grid[row][col]
            if _is_consumed(tile):
                continue
            cells[write_row][col] = replace(tile, row=write_row, is_new=False)
            write_row -= 1
        for row in range(write_row + 1):
            cells[row][col] = create_random_tile(row, col, eliminated, rng)
    return _freeze(cells)


def empty_positions(grid: Grid) -> List[Position]:
    return [
        (row, col)
        for row, row_cells in enumerate(grid)
        for col, tile in enumerate(row_cells)
        if tile is None
    ]


# ---------------------------------------------------------------------------
# Game over
# ---------------------------------------------------------------------------

def has_legal_move(grid: Grid) -> bool:
    """True if any occupied cell has a Moore neighbour of equal value."""
    for row, row_cells in enumerate(grid):
        for col, tile in enumerate(row_cells):
            if tile is None:
                continue
            for d_row, d_col in NEIGHBOR_OFFSETS:
                neighbor = tile_at(grid, row + d_row, col + d_col)
                if neighbor is not None and neighbor.value == tile.value:
                    return True
    return False


# ---------------------------------------------------------------------------
# Power-ups
# ---------------------------------------------------------------------------

def find_tiles_of_value(grid: Grid, value: int) -> List[Tile]:
    """Tiles holding value, in row-major scan order."""
    return [tile for row in grid for tile in row if tile is not None and tile.value == value]


def mergeable_values(grid: Grid) -> List[Tuple[int, int]]:
    """(value, count) for every value present at least twice, ascending by value."""
    counts: dict[int, int] = {}
    for row in grid:
        for tile in row:
            if tile is not None:
                counts[tile.value] = counts.get(tile.value, 0) + 1
    return sorted((value, count) for value, count in counts.items() if count >= 2)


def execute_remove(grid: Grid, target: TileRef, inventory: PowerUps) -> Optional[PowerUpResult]:
    if not inventory.has(PowerUpKind.REMOVE):
        return None
    row, col = _position_of(target)
    if tile_at(grid, row, col) is None:
        return None
    cells = _thaw(grid)
    cells[row][col] = None
    return PowerUpResult(
        grid=_freeze(cells),
        inventory=inventory.consume(PowerUpKind.REMOVE),
        affected=((row, col),),
    )


def execute_swap(grid: Grid, a: TileRef, b: TileRef, inventory: PowerUps) -> Optional[PowerUpResult]:
    """Exchange two tiles; both come out with fresh ids."""
    if not inventory.has(PowerUpKind.SWAP):
        return None
    pos_a = _position_of(a)
    pos_b = _position_of(b)
    if pos_a == pos_b:
        return None
    tile_a = tile_at(grid, *pos_a)
    tile_b = tile_at(grid, *pos_b)
    if tile_a is None or tile_b is None:
        return None
    cells = _thaw(grid)
    cells[pos_b[0]][pos_b[1]] = replace(tile_a, id=generate_tile_id(), row=pos_b[0], col=pos_b[1])
    cells[pos_a[0]][pos_a[1]] = replace(tile_b, id=generate_tile_id(), row=pos_a[0], col=pos_a[1])
    return PowerUpResult(
        grid=_freeze(cells),
        inventory=inventory.consume(PowerUpKind.SWAP),
        affected=(pos_a, pos_b),
    )


def execute_merge_all(
    grid: Grid,
    target_value: int,
    inventory: PowerUps,
    difficulty: Difficulty | str,
) -> Optional[MergeAllResult]:
    """Collapse every tile of target_value onto the last one found in row-major order."""
    if not inventory.has(PowerUpKind.MERGE_ALL):
        return None
    tiles = find_tiles_of_value(grid, target_value)
    if len(tiles) < 2:
        logger.debug("Merge-all on %s rejected: %d tile(s) present", target_value, len(tiles))
        return None
    values = [tile.value for tile in tiles]
    result_value = merge_value(values)
    cells = _thaw(grid)
    for tile in tiles[:-1]:
        cells[tile.row][tile.col] = None
    last = tiles[-1]
    cells[last.row][last.col] = Tile(
        id=generate_tile_id(),
        value=result_value,
        row=last.row,
        col=last.col,
        is_new=True,
    )
    return MergeAllResult(
        grid=_freeze(cells),
        inventory=inventory.consume(PowerUpKind.MERGE_ALL),
        result_value=result_value,
        progress_yield=progress_yield(values, difficulty),
        result_position=(last.row, last.col),
        consumed=tuple(tile.position for tile in tiles),
    )
