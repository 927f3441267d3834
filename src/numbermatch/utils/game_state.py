from __future__ import annotations

import random
from typing import Type, TypeVar

from esper import World

from numbermatch.components.board import Board
from numbermatch.components.game_state import GameMode, GameState
from numbermatch.components.power_ups import PowerUpInventory, PowerUps
from numbermatch.components.progress_state import ProgressState
from numbermatch.components.reward_queue import RewardQueue
from numbermatch.components.score_state import ScoreState
from numbermatch.components.selection import Selection
from numbermatch.components.targeting_state import PowerUpTargeting
from numbermatch.constants import Difficulty, get_difficulty_config, parse_difficulty
from numbermatch.events.bus import EVENT_GAME_MODE_CHANGED, EventBus
from numbermatch.systems.board_ops import create_grid

C = TypeVar("C")


def get_game_entity(world: World) -> int:
    for entity, _ in world.get_component(GameState):
        return entity
    raise RuntimeError("GameState entity not found")


def game_component(world: World, component_type: Type[C]) -> C:
    """Return a component attached to the single game entity."""
    return world.component_for_entity(get_game_entity(world), component_type)


def get_game_state(world: World) -> GameState:
    return game_component(world, GameState)


def get_board(world: World) -> Board:
    return game_component(world, Board)


def world_rng(world: World) -> random.Random | None:
    candidate = getattr(world, "random", None)
    return candidate if isinstance(candidate, random.Random) else None


def set_game_mode(world: World, event_bus: EventBus, mode: GameMode) -> None:
    """Update the game mode and emit a change event when it differs."""
    state = get_game_state(world)
    previous_mode = state.mode
    if previous_mode == mode:
        return
    state.mode = mode
    event_bus.emit(EVENT_GAME_MODE_CHANGED, previous_mode=previous_mode, new_mode=mode)


def reset_session(world: World, difficulty: Difficulty | str | None = None) -> None:
    """Start a fresh game in place; best progress and settings survive."""
    entity = get_game_entity(world)
    state = world.component_for_entity(entity, GameState)
    if difficulty is not None:
        state.difficulty = parse_difficulty(difficulty)
    state.mode = GameMode.PLAYING
    config = get_difficulty_config(state.difficulty)
    world.add_component(entity, Board(
        rows=config.rows,
        cols=config.cols,
        grid=create_grid((), config.rows, config.cols, world_rng(world)),
    ))
    world.add_component(entity, Selection())
    world.add_component(entity, PowerUpInventory(power_ups=PowerUps()))
    world.add_component(entity, ProgressState())
    world.add_component(entity, PowerUpTargeting())
    world.add_component(entity, RewardQueue())
    score = world.component_for_entity(entity, ScoreState)
    score.score = 0
