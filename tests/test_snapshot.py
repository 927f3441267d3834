import copy

import pytest

from helpers import STALEMATE_7X5, build_session

from numbermatch.components.game_state import GameMode, GameState
from numbermatch.components.power_ups import PowerUpInventory, PowerUpKind, PowerUps
from numbermatch.components.progress_state import ProgressState
from numbermatch.components.reward_queue import RewardQueue
from numbermatch.components.selection import Selection
from numbermatch.components.targeting_state import PowerUpTargeting
from numbermatch.constants import Difficulty
from numbermatch.systems.board_ops import grid_from_values
from numbermatch.utils.game_state import game_component, get_board
from numbermatch.utils.snapshot import (
    LoadFailure,
    capture_snapshot,
    decode_snapshot,
    encode_snapshot,
    restore_snapshot,
)


def _kids_payload():
    world, _ = build_session(difficulty=Difficulty.KIDS)
    return encode_snapshot(capture_snapshot(world))


def test_encoded_snapshot_shape():
    payload = _kids_payload()
    assert payload["schema_version"] == 1
    state = payload["state"]
    assert state["difficulty"] == "kids"
    assert len(state["grid"]) == 5 and len(state["grid"][0]) == 4
    assert set(state["grid"][0][0]) == {"id", "value"}
    assert state["power_ups"] == {"remove": 1, "swap": 1, "mergeAll": 1}
    assert state["settings"] == {"sound_enabled": True}


def test_restore_resets_transient_state():
    world, _ = build_session([[2, 2], [8, 16]])
    progress = game_component(world, ProgressState)
    progress.eliminated_numbers = {2}
    progress.unlocked_milestones = {128, 512}
    game_component(world, RewardQueue).pending = 2
    game_component(world, Selection).combo = 3
    game_component(world, PowerUpInventory).power_ups = PowerUps(remove=4, swap=0, merge_all=2)
    payload = encode_snapshot(capture_snapshot(world))

    target, _ = build_session(difficulty=Difficulty.KIDS)
    board = get_board(target)
    restore_kids = copy.deepcopy(payload)
    restore_kids["state"]["difficulty"] = "kids"
    restore_kids["state"]["highest_number"] = 131072
    restore_kids["state"]["grid"] = [
        [{"id": f"k{r}{c}", "value": 2 ** (2 + (r + c) % 3)} for c in range(4)] for r in range(5)
    ]
    game_component(target, PowerUpTargeting).kind = PowerUpKind.SWAP
    game_component(target, GameState).mode = GameMode.PAUSED
    game_component(target, Selection).path = (board.grid[0][0],)

    restore_snapshot(target, decode_snapshot(restore_kids))

    assert game_component(target, PowerUpTargeting).kind is None
    selection = game_component(target, Selection)
    assert selection.path == () and selection.combo == 3
    restored = get_board(target).grid
    assert restored[0][0].id == "k00"
    assert not any(tile.is_new or tile.is_merging for row in restored for tile in row)
    assert game_component(target, ProgressState).unlocked_milestones == {128, 512}
    assert game_component(target, PowerUpInventory).power_ups == PowerUps(remove=4, swap=0, merge_all=2)
    queue = game_component(target, RewardQueue)
    assert queue.pending == 2 and queue.prompt_open


def test_restore_of_stalemated_board_is_game_over():
    world, _ = build_session()
    snapshot = capture_snapshot(world)
    snapshot.grid = grid_from_values(STALEMATE_7X5)
    restore_snapshot(world, snapshot)
    assert game_component(world, GameState).mode == GameMode.GAME_OVER


@pytest.mark.parametrize("mutate,message", [
    (lambda p: p.update(schema_version=2), "schema"),
    (lambda p: p["state"].update(difficulty="nightmare"), "difficulty"),
    (lambda p: p["state"]["grid"].pop(), "rows"),
    (lambda p: p["state"]["grid"][0].pop(), "cells"),
    (lambda p: p["state"]["grid"][0].__setitem__(0, {"id": "x", "value": 3}), "power of two"),
    (lambda p: p["state"]["grid"][0].__setitem__(0, None), "not a tile"),
    (lambda p: p["state"]["grid"][1].__setitem__(0, dict(p["state"]["grid"][0][0])), "duplicate"),
    (lambda p: p["state"]["power_ups"].update(swap=6), "out of range"),
    (lambda p: p["state"].update(score=-1), "non-negative"),
    (lambda p: p["state"].update(eliminated_numbers=[5]), "power of two"),
    (lambda p: p["state"].update(eliminated_numbers=[2, 4, 8, 16, 32, 64], highest_number=1048576),
     "no milestone eliminates"),
    (lambda p: p["state"].update(eliminated_numbers=[2]), "below 131072"),
    (lambda p: (
        p["state"].update(eliminated_numbers=[2], highest_number=131072),
        p["state"]["grid"][0].__setitem__(0, {"id": "two", "value": 2}),
    ), "holds eliminated value 2"),
    (lambda p: p["state"].update(unlocked_milestones=[256]), "non-milestone"),
])
def test_decode_rejects_invalid_payloads(mutate, message):
    payload = _kids_payload()
    mutate(payload)
    with pytest.raises(LoadFailure, match=message):
        decode_snapshot(payload)


def test_decode_rejects_non_object():
    with pytest.raises(LoadFailure):
        decode_snapshot([1, 2, 3])


def test_decode_accepts_values_beyond_the_catalog():
    payload = _kids_payload()
    payload["state"]["grid"][0][0] = {"id": "big", "value": 2 ** 21}
    payload["state"]["highest_number"] = 2 ** 21
    snapshot = decode_snapshot(payload)
    assert snapshot.grid[0][0].value == 2 ** 21
    assert snapshot.highest_number == 2 ** 21


def test_decode_accepts_eliminations_backed_by_milestones():
    payload = _kids_payload()
    state = payload["state"]
    state["highest_number"] = 1048576
    state["eliminated_numbers"] = [2, 4, 8, 16]
    state["grid"] = [[{"id": f"g{r}{c}", "value": 32 if (r + c) % 2 else 64} for c in range(4)] for r in range(5)]
    snapshot = decode_snapshot(payload)
    assert snapshot.eliminated_numbers == {2, 4, 8, 16}
