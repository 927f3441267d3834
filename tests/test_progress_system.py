from helpers import build_session, capture, drag

from numbermatch.components.power_ups import PowerUpInventory, PowerUpKind, PowerUps
from numbermatch.components.progress_state import ProgressState
from numbermatch.components.reward_queue import RewardQueue
from numbermatch.components.score_state import ScoreState
from numbermatch.constants import Difficulty
from numbermatch.events.bus import (
    EVENT_LEVEL_UP,
    EVENT_MERGE_RESOLVED,
    EVENT_MILESTONE_UNLOCKED,
    EVENT_PROGRESS_CHANGED,
    EVENT_REWARD_CLAIM,
    EVENT_REWARD_CLAIMED,
    EVENT_REWARD_DEFER,
    EVENT_REWARD_PENDING,
    EVENT_SCORE_CHANGED,
)
from numbermatch.utils.game_state import game_component


def test_merge_adds_progress_and_score():
    world, bus = build_session([[2, 2], [8, 16]])
    progress_events = capture(bus, EVENT_PROGRESS_CHANGED)
    score_events = capture(bus, EVENT_SCORE_CHANGED)

    drag(bus, (0, 0), (0, 1))

    assert progress_events == [{"points": 4, "level": 0, "threshold": 1000, "delta": 4}]
    assert score_events == [{"score": 4, "delta": 4, "combo": 0}]
    assert game_component(world, ProgressState).progress_points == 4


def test_reaching_threshold_levels_up_and_queues_reward():
    world, bus = build_session([[2, 4], [8, 16]])
    progress = game_component(world, ProgressState)
    progress.progress_points = 990
    levels = capture(bus, EVENT_LEVEL_UP)
    pending = capture(bus, EVENT_REWARD_PENDING)

    bus.emit(EVENT_MERGE_RESOLVED, result_value=32, progress_yield=30, combo=0)

    assert (progress.progress_points, progress.progress_level) == (20, 1)
    assert levels == [{"level": 1}]
    assert pending == [{"pending": 1, "reason": "level_up"}]
    queue = game_component(world, RewardQueue)
    assert queue.pending == 1 and queue.prompt_open
    assert game_component(world, ScoreState).best_progress == 1020


def test_level_threshold_uses_difficulty():
    world, bus = build_session([[2, 4], [8, 16]], difficulty=Difficulty.KIDS)

    bus.emit(EVENT_MERGE_RESOLVED, result_value=512, progress_yield=600, combo=0)

    progress = game_component(world, ProgressState)
    assert (progress.progress_points, progress.progress_level) == (100, 1)


def test_first_power_up_milestone_queues_one_reward():
    world, bus = build_session([[64, 64], [64, 64]])
    milestones = capture(bus, EVENT_MILESTONE_UNLOCKED)

    drag(bus, (0, 0), (0, 1))
    drag(bus, (1, 0), (1, 1))

    assert milestones == [{"value": 128}]
    assert game_component(world, RewardQueue).pending == 1
    assert 128 in game_component(world, ProgressState).unlocked_milestones


def test_claim_grants_chosen_power_up_and_consumes_reward():
    world, bus = build_session([[2, 4], [8, 16]])
    queue = game_component(world, RewardQueue)
    queue.pending, queue.prompt_open = 2, True
    claimed = capture(bus, EVENT_REWARD_CLAIMED)

    bus.emit(EVENT_REWARD_CLAIM, kind="swap")

    assert claimed == [{
        "kind": PowerUpKind.SWAP,
        "pending": 1,
        "inventory": {"remove": 1, "swap": 2, "mergeAll": 1},
    }]
    assert queue.prompt_open

    bus.emit(EVENT_REWARD_CLAIM, kind=PowerUpKind.REMOVE)
    assert queue.pending == 0
    assert not queue.prompt_open


def test_claim_without_pending_reward_does_nothing():
    world, bus = build_session([[2, 4], [8, 16]])
    claimed = capture(bus, EVENT_REWARD_CLAIM)
    granted = capture(bus, EVENT_REWARD_CLAIMED)

    bus.emit(EVENT_REWARD_CLAIM, kind="remove")

    assert len(claimed) == 1
    assert granted == []
    assert game_component(world, PowerUpInventory).power_ups.remove == 1


def test_claim_is_capped_at_max_count():
    world, bus = build_session([[2, 4], [8, 16]])
    game_component(world, PowerUpInventory).power_ups = PowerUps(merge_all=5)
    game_component(world, RewardQueue).pending = 1

    bus.emit(EVENT_REWARD_CLAIM, kind="mergeAll")

    assert game_component(world, PowerUpInventory).power_ups.merge_all == 5
    assert game_component(world, RewardQueue).pending == 0


def test_defer_closes_prompt_but_keeps_rewards():
    world, bus = build_session([[2, 4], [8, 16]])
    queue = game_component(world, RewardQueue)
    queue.pending, queue.prompt_open = 1, True

    bus.emit(EVENT_REWARD_DEFER)

    assert queue.pending == 1
    assert not queue.prompt_open


def test_best_progress_is_a_high_water_mark():
    world, bus = build_session([[2, 4], [8, 16]])
    score = game_component(world, ScoreState)
    score.best_progress = 5000

    bus.emit(EVENT_MERGE_RESOLVED, result_value=8, progress_yield=8, combo=0)

    assert score.best_progress == 5000
