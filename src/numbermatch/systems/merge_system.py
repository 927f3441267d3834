from __future__ import annotations

import logging

from esper import World

from numbermatch.components.game_state import GameState
from numbermatch.components.progress_state import ProgressState
from numbermatch.components.selection import Selection
from numbermatch.components.targeting_state import PowerUpTargeting
from numbermatch.events.bus import (
    EVENT_CHAIN_DISCARDED,
    EVENT_MERGE_RESOLVED,
    EVENT_MILESTONE_UNLOCKED,
    EVENT_NUMBER_ELIMINATED,
    EVENT_TILE_RELEASE,
    EventBus,
)
from numbermatch.systems.board_ops import MergeApplication, apply_merge_to_grid, resolve_merge
from numbermatch.systems.board_settle import settle_board
from numbermatch.utils.game_state import game_component, get_board

logger = logging.getLogger(__name__)


def record_merge_application(world: World, event_bus: EventBus, applied: MergeApplication) -> None:
    """Copy milestone bookkeeping from a merge into ProgressState and announce it."""
    progress = game_component(world, ProgressState)
    progress.highest_number = applied.highest_number
    progress.unlocked_milestones = set(applied.unlocked_milestones)
    progress.eliminated_numbers = set(applied.eliminated_numbers)
    if applied.milestone_reached is not None:
        event_bus.emit(EVENT_MILESTONE_UNLOCKED, value=applied.milestone_reached)
    if applied.eliminated_value is not None:
        logger.info("Value %s eliminated after reaching %s", applied.eliminated_value, applied.result_value)
        event_bus.emit(
            EVENT_NUMBER_ELIMINATED,
            value=applied.eliminated_value,
            positions=list(applied.cleared_positions),
            milestone=applied.result_value,
        )


class MergeSystem:
    """Resolves a released chain: merge, milestones, then gravity and the game-over check.

    Logic:
      - Release with fewer than two tiles discards the chain and resets the combo.
      - Otherwise the chain collapses onto its last tile, progress/score listeners get
        EVENT_MERGE_RESOLVED, and the board settles.
    """
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_TILE_RELEASE, self.on_tile_release)

    def on_tile_release(self, sender, **kwargs):
        if game_component(self.world, PowerUpTargeting).active:
            return
        selection = game_component(self.world, Selection)
        path = selection.path
        selection.path = ()
        if len(path) < 2:
            selection.combo = 0
            if path:
                self.event_bus.emit(EVENT_CHAIN_DISCARDED, length=len(path))
            return
        state = game_component(self.world, GameState)
        if not state.accepts_input:
            return
        board = get_board(self.world)
        progress = game_component(self.world, ProgressState)
        result = resolve_merge(path, state.difficulty)
        applied = apply_merge_to_grid(
            board.grid,
            path,
            result.result_value,
            eliminated=progress.eliminated_numbers,
            unlocked=progress.unlocked_milestones,
            highest_number=progress.highest_number,
        )
        record_merge_application(self.world, self.event_bus, applied)
        combo = selection.combo
        selection.combo += 1
        self.event_bus.emit(
            EVENT_MERGE_RESOLVED,
            result_value=result.result_value,
            progress_yield=result.progress_yield,
            position=applied.result_position,
            consumed=[tile.position for tile in path],
            combo=combo,
            source="chain",
        )
        settle_board(self.world, self.event_bus, applied.grid, reason="merge")
