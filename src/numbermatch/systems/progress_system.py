from esper import World

from numbermatch.components.game_state import GameState
from numbermatch.components.power_ups import PowerUpInventory, PowerUpKind
from numbermatch.components.progress_state import ProgressState
from numbermatch.components.reward_queue import RewardQueue
from numbermatch.components.score_state import ScoreState
from numbermatch.constants import BEST_PROGRESS_LEVEL_WEIGHT
from numbermatch.events.bus import (
    EventBus,
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
from numbermatch.systems.board_ops import advance_progress, progress_threshold, score_for_merge
from numbermatch.utils.game_state import game_component


class ProgressSystem:
    """Tracks progress, score and pending rewards, and turns rewards into power-ups.

    Logic:
      - On EVENT_MERGE_RESOLVED: add the merge's progress yield, level up once when the
        threshold is met (queuing a reward), add score, raise best progress.
      - On EVENT_MILESTONE_UNLOCKED: queue a reward.
      - On EVENT_REWARD_CLAIM: grant one power-up of the chosen kind (capped) per pending reward.
      - On EVENT_REWARD_DEFER: close the reward prompt; pending rewards are kept.
    """
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_MERGE_RESOLVED, self.on_merge_resolved)
        self.event_bus.subscribe(EVENT_MILESTONE_UNLOCKED, self.on_milestone_unlocked)
        self.event_bus.subscribe(EVENT_REWARD_CLAIM, self.on_reward_claim)
        self.event_bus.subscribe(EVENT_REWARD_DEFER, self.on_reward_defer)

    def on_merge_resolved(self, sender, **kwargs):
        earned = self._coerce_positive(kwargs.get('progress_yield'))
        result_value = self._coerce_positive(kwargs.get('result_value'))
        combo = self._coerce_positive(kwargs.get('combo'))
        difficulty = game_component(self.world, GameState).difficulty
        progress = game_component(self.world, ProgressState)

        advance = advance_progress(progress.progress_points, progress.progress_level, earned, difficulty)
        progress.progress_points = advance.points
        progress.progress_level = advance.level
        self.event_bus.emit(
            EVENT_PROGRESS_CHANGED,
            points=advance.points,
            level=advance.level,
            threshold=progress_threshold(difficulty, advance.level),
            delta=earned,
        )
        if advance.rewards:
            self.event_bus.emit(EVENT_LEVEL_UP, level=advance.level)
            self._queue_rewards(advance.rewards, reason='level_up')

        score = game_component(self.world, ScoreState)
        gained = score_for_merge(result_value, combo, difficulty) if result_value else 0
        if gained:
            score.score += gained
            self.event_bus.emit(EVENT_SCORE_CHANGED, score=score.score, delta=gained, combo=combo)
        total_progress = progress.progress_points + progress.progress_level * BEST_PROGRESS_LEVEL_WEIGHT
        score.best_progress = max(score.best_progress, total_progress)

    def on_milestone_unlocked(self, sender, **kwargs):
        self._queue_rewards(1, reason='milestone')

    def on_reward_claim(self, sender, **kwargs):
        try:
            kind = PowerUpKind(kwargs.get('kind'))
        except ValueError:
            return
        queue = game_component(self.world, RewardQueue)
        if queue.pending <= 0:
            return
        inventory = game_component(self.world, PowerUpInventory)
        inventory.power_ups = inventory.power_ups.grant(kind)
        queue.pending -= 1
        queue.prompt_open = queue.pending > 0
        self.event_bus.emit(
            EVENT_REWARD_CLAIMED,
            kind=kind,
            pending=queue.pending,
            inventory=inventory.power_ups.as_dict(),
        )

    def on_reward_defer(self, sender, **kwargs):
        game_component(self.world, RewardQueue).prompt_open = False

    def _queue_rewards(self, amount: int, *, reason: str) -> None:
        queue = game_component(self.world, RewardQueue)
        queue.pending += amount
        queue.prompt_open = True
        self.event_bus.emit(EVENT_REWARD_PENDING, pending=queue.pending, reason=reason)

    @staticmethod
    def _coerce_positive(value, *, default: int = 0) -> int:
        try:
            amount = int(value)
        except (TypeError, ValueError):
            return default
        return amount if amount > 0 else default
