from dataclasses import dataclass


@dataclass(slots=True)
class RewardQueue:
    """Rewards earned but not yet turned into power-ups."""
    pending: int = 0
    # True while the caller should be showing the reward chooser.
    prompt_open: bool = False
