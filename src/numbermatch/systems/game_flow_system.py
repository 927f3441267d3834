"""Pause, restart and settings handling for a running session."""
from __future__ import annotations

import logging

from esper import World

from numbermatch.components.game_state import GameMode, GameState
from numbermatch.components.settings import Settings
from numbermatch.events.bus import (
    EVENT_GAME_MODE_CHANGED,
    EVENT_GAME_RESTARTED,
    EVENT_PAUSE_TOGGLE,
    EVENT_RESTART_REQUEST,
    EVENT_SETTINGS_CHANGED,
    EVENT_SETTINGS_UPDATE,
    EventBus,
)
from numbermatch.utils.game_state import game_component, reset_session, set_game_mode

logger = logging.getLogger(__name__)


class GameFlowSystem:
    """Coordinates mode transitions that are not driven by the board itself."""

    def __init__(self, world: World, event_bus: EventBus) -> None:
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_PAUSE_TOGGLE, self._on_pause_toggle)
        self.event_bus.subscribe(EVENT_RESTART_REQUEST, self._on_restart_request)
        self.event_bus.subscribe(EVENT_SETTINGS_UPDATE, self._on_settings_update)

    def _on_pause_toggle(self, sender, **payload) -> None:
        state = game_component(self.world, GameState)
        if state.mode == GameMode.GAME_OVER:
            return
        target = GameMode.PAUSED if state.mode == GameMode.PLAYING else GameMode.PLAYING
        set_game_mode(self.world, self.event_bus, target)

    def _on_restart_request(self, sender, **payload) -> None:
        state = game_component(self.world, GameState)
        previous_mode = state.mode
        reason = payload.get("reason") or "restart"
        reset_session(self.world, payload.get("difficulty"))
        logger.info("Session restarted (%s) on %s", reason, state.difficulty.value)
        self.event_bus.emit(EVENT_GAME_RESTARTED, difficulty=state.difficulty, reason=reason)
        if previous_mode != state.mode:
            self.event_bus.emit(EVENT_GAME_MODE_CHANGED, previous_mode=previous_mode, new_mode=state.mode)

    def _on_settings_update(self, sender, **payload) -> None:
        if "sound_enabled" not in payload:
            return
        settings = game_component(self.world, Settings)
        settings.sound_enabled = bool(payload["sound_enabled"])
        self.event_bus.emit(EVENT_SETTINGS_CHANGED, sound_enabled=settings.sound_enabled)
