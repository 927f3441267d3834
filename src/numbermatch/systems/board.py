from esper import World

from numbermatch.components.game_state import GameState
from numbermatch.components.progress_state import ProgressState
from numbermatch.components.selection import Selection
from numbermatch.components.targeting_state import PowerUpTargeting
from numbermatch.events.bus import (
    EVENT_POWERUP_TILE_TARGET,
    EVENT_SELECTION_CHANGED,
    EVENT_TILE_ENTER,
    EVENT_TILE_PRESS,
    EventBus,
)
from numbermatch.systems.board_ops import create_grid, extend_selection, tile_at
from numbermatch.utils.game_state import game_component, get_board, world_rng


class BoardSystem:
    """Owns the board snapshot and turns press/enter gestures into a chain selection.

    While a power-up waits for a target, presses are forwarded as
    EVENT_POWERUP_TILE_TARGET instead of starting a chain.
    """

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_TILE_PRESS, self.on_tile_press)
        self.event_bus.subscribe(EVENT_TILE_ENTER, self.on_tile_enter)
        self._init_board()

    def _init_board(self):
        board = get_board(self.world)
        if board.grid:
            return
        progress = game_component(self.world, ProgressState)
        board.grid = create_grid(progress.eliminated_numbers, board.rows, board.cols, world_rng(self.world))

    def on_tile_press(self, sender, **kwargs):
        row = kwargs.get('row')
        col = kwargs.get('col')
        if row is None or col is None:
            return
        if not game_component(self.world, GameState).accepts_input:
            return
        if game_component(self.world, PowerUpTargeting).active:
            self.event_bus.emit(EVENT_POWERUP_TILE_TARGET, row=row, col=col)
            return
        tile = tile_at(get_board(self.world).grid, row, col)
        if tile is None:
            return
        selection = game_component(self.world, Selection)
        selection.path = extend_selection((), tile)
        self._emit_selection(selection)

    def on_tile_enter(self, sender, **kwargs):
        row = kwargs.get('row')
        col = kwargs.get('col')
        if row is None or col is None:
            return
        if not game_component(self.world, GameState).accepts_input:
            return
        if game_component(self.world, PowerUpTargeting).active:
            return
        selection = game_component(self.world, Selection)
        # Dragging over tiles without a press first does nothing.
        if not selection.path:
            return
        tile = tile_at(get_board(self.world).grid, row, col)
        if tile is None:
            return
        new_path = extend_selection(selection.path, tile)
        if new_path == selection.path:
            return
        selection.path = new_path
        self._emit_selection(selection)

    def _emit_selection(self, selection: Selection):
        self.event_bus.emit(
            EVENT_SELECTION_CHANGED,
            positions=[tile.position for tile in selection.path],
            values=[tile.value for tile in selection.path],
        )
