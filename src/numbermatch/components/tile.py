from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional, Tuple


def generate_tile_id() -> str:
    return f"tile_{uuid.uuid4().hex}"


@dataclass(frozen=True, slots=True)
class Tile:
    """A numbered occupant of one grid cell.

    Immutable; any change of value or identity produces a new Tile with a fresh id.
    ``row``/``col`` always mirror the slot the tile is stored in.
    """
    id: str
    value: int
    row: int
    col: int
    is_new: bool = False
    is_merging: bool = False

    @property
    def position(self) -> Tuple[int, int]:
        return self.row, self.col


Cell = Optional[Tile]
Grid = Tuple[Tuple[Cell, ...], ...]
