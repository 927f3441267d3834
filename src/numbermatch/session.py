"""Wires the world, event bus and systems into one playable session."""
from __future__ import annotations

import random
from pathlib import Path

from numbermatch.constants import Difficulty
from numbermatch.events.bus import EventBus
from numbermatch.systems.board import BoardSystem
from numbermatch.systems.game_flow_system import GameFlowSystem
from numbermatch.systems.merge_system import MergeSystem
from numbermatch.systems.persistence_system import PersistenceSystem
from numbermatch.systems.power_up_system import PowerUpSystem
from numbermatch.systems.progress_system import ProgressSystem
from numbermatch.world import create_world


class GameSession:
    """Owns one world and the systems that drive it.

    Callers feed input through ``event_bus.emit`` and read state from the world's
    components. Persistence is only attached when ``save_path`` is given.
    """

    def __init__(
        self,
        difficulty: Difficulty | str = Difficulty.NORMAL,
        *,
        rng: random.Random | None = None,
        save_path: Path | str | None = None,
        load_existing: bool = True,
    ) -> None:
        self.event_bus = EventBus()
        self.world = create_world(difficulty, rng=rng)
        self.board_system = BoardSystem(self.world, self.event_bus)
        self.merge_system = MergeSystem(self.world, self.event_bus)
        self.power_up_system = PowerUpSystem(self.world, self.event_bus)
        self.progress_system = ProgressSystem(self.world, self.event_bus)
        self.game_flow_system = GameFlowSystem(self.world, self.event_bus)
        self.persistence_system = None
        if save_path is not None:
            self.persistence_system = PersistenceSystem(
                self.world,
                self.event_bus,
                save_path=save_path,
                load_existing=load_existing,
            )
