from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from numbermatch.components.power_ups import PowerUpKind
from numbermatch.components.tile import Tile


@dataclass(slots=True)
class PowerUpTargeting:
    """Marks that a power-up is waiting for its target.

    Fields:
      kind: the active power-up, None when not targeting.
      swap_first: first tile picked during a swap.
      merge_all_target: value nominated for merge-all, awaiting confirm.
    """
    kind: Optional[PowerUpKind] = None
    swap_first: Optional[Tile] = None
    merge_all_target: Optional[int] = None

    @property
    def active(self) -> bool:
        return self.kind is not None

    def clear(self) -> None:
        self.kind = None
        self.swap_first = None
        self.merge_all_target = None
