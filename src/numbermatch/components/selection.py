from dataclasses import dataclass
from typing import Tuple

from numbermatch.components.tile import Tile


@dataclass(slots=True)
class Selection:
    """In-progress chain gesture.

    Fields:
      path: tiles in the order the gesture connected them.
      combo: consecutive successful merges; reset when a gesture is discarded.
    """
    path: Tuple[Tile, ...] = ()
    combo: int = 0
