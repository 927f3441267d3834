"""Game state resource describing the active high-level mode."""
from dataclasses import dataclass
from enum import Enum, auto

from numbermatch.constants import Difficulty


class GameMode(Enum):
    """High-level modes that gate which inputs are accepted."""
    PLAYING = auto()
    PAUSED = auto()
    GAME_OVER = auto()


@dataclass(slots=True)
class GameState:
    """Singleton component storing the active mode and the game's difficulty."""
    mode: GameMode = GameMode.PLAYING
    difficulty: Difficulty = Difficulty.NORMAL

    @property
    def accepts_input(self) -> bool:
        return self.mode == GameMode.PLAYING
