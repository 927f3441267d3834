import random

from esper import World

from numbermatch.components.board import Board
from numbermatch.components.game_state import GameMode, GameState
from numbermatch.components.power_ups import PowerUpInventory
from numbermatch.components.progress_state import ProgressState
from numbermatch.components.reward_queue import RewardQueue
from numbermatch.components.score_state import ScoreState
from numbermatch.components.selection import Selection
from numbermatch.components.settings import Settings
from numbermatch.components.targeting_state import PowerUpTargeting
from numbermatch.constants import Difficulty, get_difficulty_config, parse_difficulty


def create_world(
    difficulty: Difficulty | str = Difficulty.NORMAL,
    *,
    rng: random.Random | None = None,
) -> World:
    """Create the session world with one game entity carrying every session component.

    The grid starts empty; BoardSystem populates it when it is constructed.
    """
    world = World()
    setattr(world, "random", rng or random.Random())

    difficulty = parse_difficulty(difficulty)
    config = get_difficulty_config(difficulty)
    world.create_entity(
        GameState(mode=GameMode.PLAYING, difficulty=difficulty),
        Board(rows=config.rows, cols=config.cols),
        Selection(),
        PowerUpInventory(),
        ProgressState(),
        ScoreState(),
        PowerUpTargeting(),
        RewardQueue(),
        Settings(),
    )
    return world
