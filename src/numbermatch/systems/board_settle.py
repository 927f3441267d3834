from __future__ import annotations

from esper import World

from numbermatch.components.game_state import GameMode
from numbermatch.components.progress_state import ProgressState
from numbermatch.components.score_state import ScoreState
from numbermatch.components.tile import Grid
from numbermatch.events.bus import (
    EVENT_BOARD_SETTLED,
    EVENT_GAME_OVER,
    EVENT_GRAVITY_APPLIED,
    EVENT_REFILL_COMPLETED,
    EventBus,
)
from numbermatch.systems.board_ops import (
    compute_gravity_moves,
    drop_and_refill,
    has_legal_move,
)
from numbermatch.utils.game_state import game_component, get_board, set_game_mode, world_rng


def settle_board(
    world: World,
    event_bus: EventBus,
    grid: Grid,
    *,
    reason: str,
    gravity: bool = True,
) -> bool:
    """Store grid as the board snapshot, optionally compacting/refilling it first.

    Runs the game-over check on the result. Returns True if a legal move remains.
    """
    board = get_board(world)
    if gravity:
        progress = game_component(world, ProgressState)
        moves = compute_gravity_moves(grid)
        settled = drop_and_refill(grid, progress.eliminated_numbers, world_rng(world))
        new_tiles = [
            (row, col)
            for row, row_cells in enumerate(settled)
            for col, tile in enumerate(row_cells)
            if tile is not None and tile.is_new
        ]
        board.grid = settled
        event_bus.emit(EVENT_GRAVITY_APPLIED, moves=moves)
        if new_tiles:
            event_bus.emit(EVENT_REFILL_COMPLETED, new_tiles=new_tiles)
    else:
        board.grid = grid
    has_moves = has_legal_move(board.grid)
    if not has_moves:
        set_game_mode(world, event_bus, GameMode.GAME_OVER)
        progress = game_component(world, ProgressState)
        score = game_component(world, ScoreState)
        event_bus.emit(EVENT_GAME_OVER, highest_number=progress.highest_number, score=score.score)
    event_bus.emit(EVENT_BOARD_SETTLED, reason=reason, has_moves=has_moves)
    return has_moves
