from dataclasses import dataclass


@dataclass(slots=True)
class ScoreState:
    score: int = 0
    # High-water mark of progress_points + progress_level * BEST_PROGRESS_LEVEL_WEIGHT
    best_progress: int = 0
