import random

import pytest

from numbermatch.components.board import Board
from numbermatch.components.game_state import GameState
from numbermatch.constants import Difficulty
from numbermatch.events.bus import EventBus
from numbermatch.systems.board import BoardSystem
from numbermatch.systems.board_ops import grid_dimensions
from numbermatch.utils.game_state import get_game_entity, world_rng
from numbermatch.world import create_world
from esper import World


def test_board_component_exists():
    bus = EventBus(); world = create_world(Difficulty.KIDS, rng=random.Random(0))
    BoardSystem(world, bus)
    boards = list(world.get_component(Board))
    assert boards, 'Board component missing'
    ent, comp = boards[0]
    assert comp.rows == 5 and comp.cols == 4
    assert grid_dimensions(comp.grid) == (5, 4)


def test_world_starts_with_empty_grid_until_board_system_runs():
    world = create_world("hard")
    board = next(comp for _, comp in world.get_component(Board))
    assert board.grid == ()
    state = next(comp for _, comp in world.get_component(GameState))
    assert state.difficulty == Difficulty.HARD


def test_injected_rng_is_exposed_on_world():
    rng = random.Random(5)
    world = create_world(rng=rng)
    assert world_rng(world) is rng


def test_missing_game_entity_raises():
    with pytest.raises(RuntimeError):
        get_game_entity(World())
