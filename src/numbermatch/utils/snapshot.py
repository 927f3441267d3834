"""JSON-friendly snapshot of a session and its validation on the way back in."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Set

from esper import World

from numbermatch.components.board import Board
from numbermatch.components.game_state import GameMode, GameState
from numbermatch.components.power_ups import PowerUpInventory, PowerUpKind, PowerUps
from numbermatch.components.progress_state import ProgressState
from numbermatch.components.reward_queue import RewardQueue
from numbermatch.components.score_state import ScoreState
from numbermatch.components.selection import Selection
from numbermatch.components.settings import Settings
from numbermatch.components.targeting_state import PowerUpTargeting
from numbermatch.components.tile import Grid, Tile
from numbermatch.constants import (
    ELIMINATION_MILESTONES,
    MAX_POWERUP_COUNT,
    POWERUP_MILESTONES,
    SNAPSHOT_SCHEMA_VERSION,
    Difficulty,
    get_difficulty_config,
)
from numbermatch.systems.board_ops import has_legal_move
from numbermatch.utils.game_state import get_game_entity


class LoadFailure(Exception):
    """Raised when a stored snapshot cannot be turned back into a session."""


@dataclass(slots=True)
class SessionSnapshot:
    """Everything about a session that outlives the process.

    Transient state (selection path, active power-up, swap/merge-all picks,
    pause, tile animation flags) is deliberately absent.
    """
    difficulty: Difficulty
    grid: Grid
    score: int = 0
    best_progress: int = 0
    combo: int = 0
    power_ups: PowerUps = field(default_factory=PowerUps)
    highest_number: int = 2
    eliminated_numbers: Set[int] = field(default_factory=set)
    progress_points: int = 0
    progress_level: int = 0
    unlocked_milestones: Set[int] = field(default_factory=set)
    pending_rewards: int = 0
    sound_enabled: bool = True


def capture_snapshot(world: World) -> SessionSnapshot:
    entity = get_game_entity(world)

    def comp(component_type):
        return world.component_for_entity(entity, component_type)

    progress = comp(ProgressState)
    score = comp(ScoreState)
    return SessionSnapshot(
        difficulty=comp(GameState).difficulty,
        grid=comp(Board).grid,
        score=score.score,
        best_progress=score.best_progress,
        combo=comp(Selection).combo,
        power_ups=comp(PowerUpInventory).power_ups,
        highest_number=progress.highest_number,
        eliminated_numbers=set(progress.eliminated_numbers),
        progress_points=progress.progress_points,
        progress_level=progress.progress_level,
        unlocked_milestones=set(progress.unlocked_milestones),
        pending_rewards=comp(RewardQueue).pending,
        sound_enabled=comp(Settings).sound_enabled,
    )


def restore_snapshot(world: World, snapshot: SessionSnapshot) -> None:
    """Replace the session components with the snapshot's contents.

    The game resumes in PLAYING unless the stored board has no legal move.
    """
    entity = get_game_entity(world)
    config = get_difficulty_config(snapshot.difficulty)
    state = world.component_for_entity(entity, GameState)
    state.difficulty = snapshot.difficulty
    state.mode = GameMode.PLAYING if has_legal_move(snapshot.grid) else GameMode.GAME_OVER
    world.add_component(entity, Board(rows=config.rows, cols=config.cols, grid=snapshot.grid))
    world.add_component(entity, Selection(combo=snapshot.combo))
    world.add_component(entity, PowerUpInventory(power_ups=snapshot.power_ups))
    world.add_component(entity, ProgressState(
        progress_points=snapshot.progress_points,
        progress_level=snapshot.progress_level,
        highest_number=snapshot.highest_number,
        eliminated_numbers=set(snapshot.eliminated_numbers),
        unlocked_milestones=set(snapshot.unlocked_milestones),
    ))
    world.add_component(entity, ScoreState(score=snapshot.score, best_progress=snapshot.best_progress))
    world.add_component(entity, PowerUpTargeting())
    world.add_component(entity, RewardQueue(
        pending=snapshot.pending_rewards,
        prompt_open=snapshot.pending_rewards > 0,
    ))
    world.add_component(entity, Settings(sound_enabled=snapshot.sound_enabled))


def encode_snapshot(snapshot: SessionSnapshot) -> Dict[str, Any]:
    return {
        "schema_version": SNAPSHOT_SCHEMA_VERSION,
        "state": {
            "difficulty": snapshot.difficulty.value,
            "grid": [
                [None if tile is None else {"id": tile.id, "value": tile.value} for tile in row]
                for row in snapshot.grid
            ],
            "score": snapshot.score,
            "best_progress": snapshot.best_progress,
            "combo": snapshot.combo,
            "power_ups": snapshot.power_ups.as_dict(),
            "highest_number": snapshot.highest_number,
            "eliminated_numbers": sorted(snapshot.eliminated_numbers),
            "progress_points": snapshot.progress_points,
            "progress_level": snapshot.progress_level,
            "unlocked_milestones": sorted(snapshot.unlocked_milestones),
            "pending_rewards": snapshot.pending_rewards,
            "settings": {"sound_enabled": snapshot.sound_enabled},
        },
    }


def decode_snapshot(payload: Any) -> SessionSnapshot:
    """Validate a decoded JSON payload; raises LoadFailure on anything unusable."""
    if not isinstance(payload, Mapping):
        raise LoadFailure("snapshot is not an object")
    version = payload.get("schema_version")
    if version != SNAPSHOT_SCHEMA_VERSION:
        raise LoadFailure(f"unsupported schema version {version!r}")
    state = payload.get("state")
    if not isinstance(state, Mapping):
        raise LoadFailure("snapshot has no state")

    try:
        difficulty = Difficulty(state.get("difficulty"))
    except ValueError:
        raise LoadFailure(f"unknown difficulty {state.get('difficulty')!r}") from None

    settings = state.get("settings", {})
    if not isinstance(settings, Mapping):
        raise LoadFailure("settings must be an object")

    grid = _decode_grid(state.get("grid"), difficulty)
    highest_number = _power_of_two(state.get("highest_number", 2), "highest_number")
    eliminated = _decode_eliminated(state, grid, highest_number)
    unlocked = _value_set(state, "unlocked_milestones")
    stray = unlocked - set(POWERUP_MILESTONES)
    if stray:
        raise LoadFailure(f"unlocked_milestones holds non-milestone values {sorted(stray)}")

    return SessionSnapshot(
        difficulty=difficulty,
        grid=grid,
        score=_count(state, "score"),
        best_progress=_count(state, "best_progress"),
        combo=_count(state, "combo"),
        power_ups=_decode_power_ups(state.get("power_ups")),
        highest_number=highest_number,
        eliminated_numbers=eliminated,
        progress_points=_count(state, "progress_points"),
        progress_level=_count(state, "progress_level"),
        unlocked_milestones=unlocked,
        pending_rewards=_count(state, "pending_rewards"),
        sound_enabled=bool(settings.get("sound_enabled", True)),
    )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _count(state: Mapping[str, Any], key: str) -> int:
    value = state.get(key, 0)
    if not _is_int(value) or value < 0:
        raise LoadFailure(f"{key} must be a non-negative integer, got {value!r}")
    return value


def _power_of_two(value: Any, label: str) -> int:
    # Merges can outgrow the display catalog, so any power of two from 2 up is legal.
    if not _is_int(value) or value < 2 or value & (value - 1):
        raise LoadFailure(f"{label} must be a power of two, got {value!r}")
    return value


def _value_set(state: Mapping[str, Any], key: str) -> Set[int]:
    raw = state.get(key, [])
    if not isinstance(raw, list):
        raise LoadFailure(f"{key} must be a list")
    return {_power_of_two(value, key) for value in raw}


def _decode_eliminated(state: Mapping[str, Any], grid: Grid, highest_number: int) -> Set[int]:
    """Eliminated spawn values must each be backed by a reached milestone and gone from the grid."""
    eliminated = _value_set(state, "eliminated_numbers")
    milestone_for = {target: milestone for milestone, target in ELIMINATION_MILESTONES.items()}
    for value in sorted(eliminated):
        milestone = milestone_for.get(value)
        if milestone is None:
            raise LoadFailure(f"eliminated_numbers holds {value}, which no milestone eliminates")
        if highest_number < milestone:
            raise LoadFailure(f"{value} is eliminated but highest_number {highest_number} is below {milestone}")
    for row in grid:
        for tile in row:
            if tile.value in eliminated:
                raise LoadFailure(f"grid cell ({tile.row}, {tile.col}) holds eliminated value {tile.value}")
    return eliminated


def _decode_power_ups(raw: Any) -> PowerUps:
    if raw is None:
        return PowerUps()
    if not isinstance(raw, Mapping):
        raise LoadFailure("power_ups must be an object")
    counts: Dict[str, int] = {}
    for kind in PowerUpKind:
        value = raw.get(kind.value, 0)
        if not _is_int(value) or not 0 <= value <= MAX_POWERUP_COUNT:
            raise LoadFailure(f"power-up {kind.value} count out of range: {value!r}")
        counts[kind.value] = value
    return PowerUps(
        remove=counts[PowerUpKind.REMOVE.value],
        swap=counts[PowerUpKind.SWAP.value],
        merge_all=counts[PowerUpKind.MERGE_ALL.value],
    )


def _decode_grid(raw: Any, difficulty: Difficulty) -> Grid:
    config = get_difficulty_config(difficulty)
    if not isinstance(raw, list) or len(raw) != config.rows:
        raise LoadFailure(f"grid must have {config.rows} rows for {difficulty.value}")
    rows: List[tuple] = []
    seen_ids: Set[str] = set()
    for r, raw_row in enumerate(raw):
        if not isinstance(raw_row, list) or len(raw_row) != config.cols:
            raise LoadFailure(f"grid row {r} must have {config.cols} cells")
        row = []
        for c, cell in enumerate(raw_row):
            if not isinstance(cell, Mapping):
                raise LoadFailure(f"grid cell ({r}, {c}) is not a tile")
            tile_id = cell.get("id")
            if not isinstance(tile_id, str) or not tile_id or tile_id in seen_ids:
                raise LoadFailure(f"grid cell ({r}, {c}) has a missing or duplicate id")
            seen_ids.add(tile_id)
            value = _power_of_two(cell.get("value"), f"grid cell ({r}, {c})")
            row.append(Tile(id=tile_id, value=value, row=r, col=c))
        rows.append(tuple(row))
    return tuple(rows)
