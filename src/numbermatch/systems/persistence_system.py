from __future__ import annotations

import json
import logging
from pathlib import Path

from esper import World

from numbermatch.components.game_state import GameState
from numbermatch.events.bus import (
    EVENT_BOARD_SETTLED,
    EVENT_GAME_LOADED,
    EVENT_GAME_MODE_CHANGED,
    EVENT_GAME_RESTARTED,
    EVENT_GAME_SAVED,
    EVENT_LOAD_FAILED,
    EVENT_LOAD_REQUEST,
    EVENT_REWARD_CLAIMED,
    EVENT_SAVE_REQUEST,
    EVENT_SETTINGS_CHANGED,
    EventBus,
)
from numbermatch.utils.game_state import game_component, reset_session
from numbermatch.utils.snapshot import (
    LoadFailure,
    capture_snapshot,
    decode_snapshot,
    encode_snapshot,
    restore_snapshot,
)

logger = logging.getLogger(__name__)


class PersistenceSystem:
    """Saves the session to a JSON file after every settled transition and restores it on request.

    A missing file leaves the current session untouched. An unreadable or invalid
    file is reported with EVENT_LOAD_FAILED and replaced by a fresh game.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        save_path: Path | str | None = None,
        load_existing: bool = True,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self._save_path = Path(save_path) if save_path is not None else self._default_save_path()

        self.event_bus.subscribe(EVENT_BOARD_SETTLED, self._on_autosave)
        self.event_bus.subscribe(EVENT_GAME_MODE_CHANGED, self._on_autosave)
        self.event_bus.subscribe(EVENT_GAME_RESTARTED, self._on_autosave)
        self.event_bus.subscribe(EVENT_REWARD_CLAIMED, self._on_autosave)
        self.event_bus.subscribe(EVENT_SETTINGS_CHANGED, self._on_autosave)
        self.event_bus.subscribe(EVENT_SAVE_REQUEST, self._on_save_request)
        self.event_bus.subscribe(EVENT_LOAD_REQUEST, self._on_load_request)

        if load_existing:
            self.load_game()

    @staticmethod
    def _default_save_path() -> Path:
        return Path(__file__).resolve().parents[3] / "data" / "numbermatch_save.json"

    @property
    def save_path(self) -> Path:
        return self._save_path

    def save_game(self) -> None:
        payload = encode_snapshot(capture_snapshot(self.world))
        self._save_path.parent.mkdir(parents=True, exist_ok=True)
        with self._save_path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)
        logger.debug("Saved session to %s", self._save_path)
        self.event_bus.emit(EVENT_GAME_SAVED, path=str(self._save_path))

    def load_game(self) -> bool:
        """Restore the stored session; returns False when nothing usable was stored."""
        try:
            with self._save_path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
            snapshot = decode_snapshot(payload)
        except FileNotFoundError:
            logger.debug("No saved session at %s", self._save_path)
            return False
        except (json.JSONDecodeError, UnicodeDecodeError, LoadFailure) as exc:
            self._fall_back_to_fresh_game(exc)
            return False
        except OSError as exc:
            # The path itself is unusable, so the fresh game is not written back.
            self._fall_back_to_fresh_game(exc, rewrite=False)
            return False
        restore_snapshot(self.world, snapshot)
        logger.info("Loaded session from %s", self._save_path)
        self.event_bus.emit(EVENT_GAME_LOADED, path=str(self._save_path))
        return True

    def _fall_back_to_fresh_game(self, exc: Exception, *, rewrite: bool = True) -> None:
        logger.warning("Discarding saved session at %s: %s", self._save_path, exc)
        self.event_bus.emit(EVENT_LOAD_FAILED, path=str(self._save_path), error=str(exc))
        state = game_component(self.world, GameState)
        reset_session(self.world, state.difficulty)
        if rewrite:
            self.save_game()

    # Event handlers -----------------------------------------------------

    def _on_autosave(self, sender, **payload) -> None:
        self.save_game()

    def _on_save_request(self, sender, **payload) -> None:
        self.save_game()

    def _on_load_request(self, sender, **payload) -> None:
        self.load_game()
