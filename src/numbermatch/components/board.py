from dataclasses import dataclass

from numbermatch.components.tile import Grid


@dataclass(slots=True)
class Board:
    rows: int
    cols: int
    # Current settled snapshot; systems replace it, never mutate it.
    grid: Grid = ()
