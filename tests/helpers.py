from __future__ import annotations

import random
from typing import Optional, Sequence

from esper import World

from numbermatch.components.tile import Grid
from numbermatch.constants import Difficulty
from numbermatch.events.bus import EVENT_TILE_ENTER, EVENT_TILE_PRESS, EVENT_TILE_RELEASE, EventBus
from numbermatch.systems.board import BoardSystem
from numbermatch.systems.board_ops import grid_from_values
from numbermatch.systems.game_flow_system import GameFlowSystem
from numbermatch.systems.merge_system import MergeSystem
from numbermatch.systems.power_up_system import PowerUpSystem
from numbermatch.systems.progress_system import ProgressSystem
from numbermatch.utils.game_state import get_board
from numbermatch.world import create_world

# 7x5 board with no two equal Moore neighbours anywhere.
STALEMATE_7X5 = [
    [2, 4, 2, 4, 2],
    [8, 16, 8, 16, 8],
    [2, 4, 2, 4, 2],
    [8, 16, 8, 16, 8],
    [2, 4, 2, 4, 2],
    [8, 16, 8, 16, 8],
    [2, 4, 2, 4, 2],
]


def build_session(
    values: Optional[Sequence[Sequence[Optional[int]]]] = None,
    *,
    difficulty: Difficulty = Difficulty.NORMAL,
    seed: int = 0,
) -> tuple[World, EventBus]:
    """World plus every gameplay system, optionally with a fixed starting grid."""
    bus = EventBus()
    world = create_world(difficulty, rng=random.Random(seed))
    if values is not None:
        set_grid(world, grid_from_values(values))
    BoardSystem(world, bus)
    MergeSystem(world, bus)
    PowerUpSystem(world, bus)
    ProgressSystem(world, bus)
    GameFlowSystem(world, bus)
    return world, bus


def set_grid(world: World, grid: Grid) -> None:
    board = get_board(world)
    board.rows = len(grid)
    board.cols = len(grid[0]) if grid else 0
    board.grid = grid


def capture(bus: EventBus, name: str) -> list[dict]:
    """Subscribe to name and collect each payload."""
    received: list[dict] = []
    bus.subscribe(name, lambda sender, **payload: received.append(payload))
    return received


def drag(bus: EventBus, *positions: tuple[int, int]) -> None:
    """Press the first position, enter the rest, release."""
    first, *rest = positions
    bus.emit(EVENT_TILE_PRESS, row=first[0], col=first[1])
    for row, col in rest:
        bus.emit(EVENT_TILE_ENTER, row=row, col=col)
    bus.emit(EVENT_TILE_RELEASE)
