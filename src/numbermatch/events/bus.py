from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # weak=False keeps bound methods of systems nobody else references alive.
        sig.connect(fn, weak=False)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# INPUT & INTERACTION
# ============================================================================
EVENT_TILE_PRESS = "tile_press"        # payload: row, col
EVENT_TILE_ENTER = "tile_enter"        # payload: row, col
EVENT_TILE_RELEASE = "tile_release"    # payload: None


# ============================================================================
# CHAIN SELECTION
# ============================================================================
EVENT_SELECTION_CHANGED = "selection_changed"    # payload: positions=[(r,c),...], values=[int,...]
EVENT_CHAIN_DISCARDED = "chain_discarded"        # payload: length=int


# ============================================================================
# MERGE & BOARD
# ============================================================================
EVENT_MERGE_RESOLVED = "merge_resolved"          # payload: result_value=int, progress_yield=int, position=(r,c), consumed=[(r,c),...], combo=int, source=str
EVENT_NUMBER_ELIMINATED = "number_eliminated"    # payload: value=int, positions=[(r,c),...], milestone=int
EVENT_GRAVITY_APPLIED = "gravity_applied"        # payload: moves=[GravityMove,...]
EVENT_REFILL_COMPLETED = "refill_completed"      # payload: new_tiles=[(r,c),...]
EVENT_BOARD_SETTLED = "board_settled"            # payload: reason=str, has_moves=bool


# ============================================================================
# POWER-UPS
# ============================================================================
EVENT_POWERUP_ACTIVATE = "powerup_activate"              # payload: kind=PowerUpKind|str
EVENT_POWERUP_TARGET_MODE = "powerup_target_mode"        # payload: kind=PowerUpKind
EVENT_POWERUP_TILE_TARGET = "powerup_tile_target"        # payload: row, col
EVENT_POWERUP_CANCEL = "powerup_cancel"                  # payload: None
EVENT_POWERUP_CANCELLED = "powerup_cancelled"            # payload: kind=PowerUpKind, reason=str
EVENT_POWERUP_REJECTED = "powerup_rejected"              # payload: kind=PowerUpKind|None, reason=str
EVENT_POWERUP_APPLIED = "powerup_applied"                # payload: kind=PowerUpKind, affected=[(r,c),...], inventory=dict[str,int]
EVENT_SWAP_FIRST_SELECTED = "swap_first_selected"        # payload: row, col
EVENT_MERGE_ALL_SELECT = "merge_all_select"              # payload: value=int
EVENT_MERGE_ALL_HIGHLIGHT = "merge_all_highlight"        # payload: value=int, positions=[(r,c),...]
EVENT_MERGE_ALL_CONFIRM = "merge_all_confirm"            # payload: None


# ============================================================================
# PROGRESS & REWARDS
# ============================================================================
EVENT_PROGRESS_CHANGED = "progress_changed"      # payload: points=int, level=int, threshold=int, delta=int
EVENT_LEVEL_UP = "level_up"                      # payload: level=int
EVENT_MILESTONE_UNLOCKED = "milestone_unlocked"  # payload: value=int
EVENT_SCORE_CHANGED = "score_changed"            # payload: score=int, delta=int, combo=int
EVENT_REWARD_PENDING = "reward_pending"          # payload: pending=int, reason=str
EVENT_REWARD_CLAIM = "reward_claim"              # payload: kind=PowerUpKind|str
EVENT_REWARD_CLAIMED = "reward_claimed"          # payload: kind=PowerUpKind, pending=int, inventory=dict[str,int]
EVENT_REWARD_DEFER = "reward_defer"              # payload: None


# ============================================================================
# GAME FLOW & STATE
# ============================================================================
EVENT_GAME_MODE_CHANGED = "game_mode_changed"    # payload: previous_mode=GameMode|None, new_mode=GameMode
EVENT_PAUSE_TOGGLE = "pause_toggle"              # payload: None
EVENT_RESTART_REQUEST = "restart_request"        # payload: reason=str|None, difficulty=Difficulty|str|None
EVENT_GAME_RESTARTED = "game_restarted"          # payload: difficulty=Difficulty, reason=str
EVENT_GAME_OVER = "game_over"                    # payload: highest_number=int, score=int
EVENT_SETTINGS_UPDATE = "settings_update"        # payload: sound_enabled=bool
EVENT_SETTINGS_CHANGED = "settings_changed"      # payload: sound_enabled=bool


# ============================================================================
# PERSISTENCE
# ============================================================================
EVENT_SAVE_REQUEST = "save_request"      # payload: None
EVENT_LOAD_REQUEST = "load_request"      # payload: None
EVENT_GAME_SAVED = "game_saved"          # payload: path=str
EVENT_GAME_LOADED = "game_loaded"        # payload: path=str
EVENT_LOAD_FAILED = "load_failed"        # payload: path=str, error=str
