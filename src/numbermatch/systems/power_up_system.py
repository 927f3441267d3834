from __future__ import annotations

from esper import World

from numbermatch.components.game_state import GameState
from numbermatch.components.power_ups import PowerUpInventory, PowerUpKind
from numbermatch.components.progress_state import ProgressState
from numbermatch.components.selection import Selection
from numbermatch.components.targeting_state import PowerUpTargeting
from numbermatch.events.bus import (
    EventBus,
    EVENT_MERGE_ALL_CONFIRM,
    EVENT_MERGE_ALL_HIGHLIGHT,
    EVENT_MERGE_ALL_SELECT,
    EVENT_MERGE_RESOLVED,
    EVENT_POWERUP_ACTIVATE,
    EVENT_POWERUP_APPLIED,
    EVENT_POWERUP_CANCEL,
    EVENT_POWERUP_CANCELLED,
    EVENT_POWERUP_REJECTED,
    EVENT_POWERUP_TARGET_MODE,
    EVENT_SWAP_FIRST_SELECTED,
    EVENT_POWERUP_TILE_TARGET,
)
from numbermatch.systems.board_ops import (
    apply_milestones,
    execute_merge_all,
    execute_remove,
    execute_swap,
    find_tiles_of_value,
    tile_at,
)
from numbermatch.systems.board_settle import settle_board
from numbermatch.systems.merge_system import record_merge_application
from numbermatch.utils.game_state import game_component, get_board


class PowerUpSystem:
    """Handles power-up activation and the target selection flow for each kind.

    Remove and swap take their targets from tile presses; merge-all takes a value
    via EVENT_MERGE_ALL_SELECT and commits on EVENT_MERGE_ALL_CONFIRM.
    """

    def __init__(self, world: World, event_bus: EventBus) -> None:
        self.world = world
        self.event_bus = event_bus
        event_bus.subscribe(EVENT_POWERUP_ACTIVATE, self.on_activate_request)
        event_bus.subscribe(EVENT_POWERUP_CANCEL, self.on_cancel)
        event_bus.subscribe(EVENT_POWERUP_TILE_TARGET, self.on_tile_target)
        event_bus.subscribe(EVENT_MERGE_ALL_SELECT, self.on_merge_all_select)
        event_bus.subscribe(EVENT_MERGE_ALL_CONFIRM, self.on_merge_all_confirm)

    def on_activate_request(self, sender, **payload) -> None:
        if not self._accepts_input():
            return
        try:
            kind = PowerUpKind(payload.get("kind"))
        except ValueError:
            return
        inventory = game_component(self.world, PowerUpInventory)
        if not inventory.power_ups.has(kind):
            self._reject(kind, "empty")
            return
        targeting = self._targeting()
        targeting.clear()
        targeting.kind = kind
        game_component(self.world, Selection).path = ()
        self.event_bus.emit(EVENT_POWERUP_TARGET_MODE, kind=kind)

    def on_cancel(self, sender, **payload) -> None:
        targeting = self._targeting()
        if not targeting.active:
            return
        kind = targeting.kind
        targeting.clear()
        self.event_bus.emit(EVENT_POWERUP_CANCELLED, kind=kind, reason=payload.get("reason", "cancel"))

    def on_tile_target(self, sender, **payload) -> None:
        if not self._accepts_input():
            return
        targeting = self._targeting()
        if targeting.kind not in (PowerUpKind.REMOVE, PowerUpKind.SWAP):
            return
        row = payload.get("row")
        col = payload.get("col")
        if row is None or col is None:
            return
        tile = tile_at(get_board(self.world).grid, row, col)
        if tile is None:
            return
        if targeting.kind == PowerUpKind.REMOVE:
            self._execute_remove(row, col)
        else:
            self._handle_swap_tap(row, col)

    def on_merge_all_select(self, sender, **payload) -> None:
        if not self._accepts_input():
            return
        targeting = self._targeting()
        if targeting.kind != PowerUpKind.MERGE_ALL:
            return
        value = payload.get("value")
        positions = [tile.position for tile in find_tiles_of_value(get_board(self.world).grid, value)]
        if len(positions) < 2:
            targeting.merge_all_target = None
            self._reject(PowerUpKind.MERGE_ALL, "too_few_tiles")
            return
        targeting.merge_all_target = value
        self.event_bus.emit(EVENT_MERGE_ALL_HIGHLIGHT, value=value, positions=positions)

    def on_merge_all_confirm(self, sender, **payload) -> None:
        if not self._accepts_input():
            return
        targeting = self._targeting()
        if targeting.kind != PowerUpKind.MERGE_ALL or targeting.merge_all_target is None:
            return
        state = game_component(self.world, GameState)
        inventory = game_component(self.world, PowerUpInventory)
        board = get_board(self.world)
        result = execute_merge_all(board.grid, targeting.merge_all_target, inventory.power_ups, state.difficulty)
        if result is None:
            # Target vanished since it was nominated; merge-all stays active for another pick.
            targeting.merge_all_target = None
            self._reject(PowerUpKind.MERGE_ALL, "target_vanished")
            return
        targeting.clear()
        inventory.power_ups = result.inventory
        progress = game_component(self.world, ProgressState)
        applied = apply_milestones(
            result.grid,
            result.result_value,
            result.result_position,
            eliminated=progress.eliminated_numbers,
            unlocked=progress.unlocked_milestones,
            highest_number=progress.highest_number,
        )
        record_merge_application(self.world, self.event_bus, applied)
        self.event_bus.emit(
            EVENT_POWERUP_APPLIED,
            kind=PowerUpKind.MERGE_ALL,
            affected=list(result.consumed),
            inventory=inventory.power_ups.as_dict(),
        )
        self.event_bus.emit(
            EVENT_MERGE_RESOLVED,
            result_value=result.result_value,
            progress_yield=result.progress_yield,
            position=result.result_position,
            consumed=list(result.consumed),
            combo=0,
            source="merge_all",
        )
        settle_board(self.world, self.event_bus, applied.grid, reason="merge_all")

    def _execute_remove(self, row: int, col: int) -> None:
        inventory = game_component(self.world, PowerUpInventory)
        result = execute_remove(get_board(self.world).grid, (row, col), inventory.power_ups)
        if result is None:
            self._reject(PowerUpKind.REMOVE, "empty")
            return
        self._targeting().clear()
        inventory.power_ups = result.inventory
        self.event_bus.emit(
            EVENT_POWERUP_APPLIED,
            kind=PowerUpKind.REMOVE,
            affected=list(result.affected),
            inventory=inventory.power_ups.as_dict(),
        )
        settle_board(self.world, self.event_bus, result.grid, reason="remove")

    def _handle_swap_tap(self, row: int, col: int) -> None:
        targeting = self._targeting()
        first = targeting.swap_first
        if first is None:
            targeting.swap_first = tile_at(get_board(self.world).grid, row, col)
            self.event_bus.emit(EVENT_SWAP_FIRST_SELECTED, row=row, col=col)
            return
        if first.position == (row, col):
            return
        inventory = game_component(self.world, PowerUpInventory)
        result = execute_swap(get_board(self.world).grid, first.position, (row, col), inventory.power_ups)
        if result is None:
            self._reject(PowerUpKind.SWAP, "empty")
            return
        targeting.clear()
        inventory.power_ups = result.inventory
        self.event_bus.emit(
            EVENT_POWERUP_APPLIED,
            kind=PowerUpKind.SWAP,
            affected=list(result.affected),
            inventory=inventory.power_ups.as_dict(),
        )
        settle_board(self.world, self.event_bus, result.grid, reason="swap", gravity=False)

    def _targeting(self) -> PowerUpTargeting:
        return game_component(self.world, PowerUpTargeting)

    def _accepts_input(self) -> bool:
        return game_component(self.world, GameState).accepts_input

    def _reject(self, kind: PowerUpKind | None, reason: str) -> None:
        self.event_bus.emit(EVENT_POWERUP_REJECTED, kind=kind, reason=reason)
