from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from numbermatch.constants import INITIAL_POWERUP_COUNT, MAX_POWERUP_COUNT


class PowerUpKind(str, Enum):
    REMOVE = "remove"
    SWAP = "swap"
    MERGE_ALL = "mergeAll"


_FIELDS = {
    PowerUpKind.REMOVE: "remove",
    PowerUpKind.SWAP: "swap",
    PowerUpKind.MERGE_ALL: "merge_all",
}


def _clamp(count: int) -> int:
    return max(0, min(int(count), MAX_POWERUP_COUNT))


@dataclass(frozen=True, slots=True)
class PowerUps:
    """Immutable power-up counts, each bounded to [0, MAX_POWERUP_COUNT]."""
    remove: int = INITIAL_POWERUP_COUNT
    swap: int = INITIAL_POWERUP_COUNT
    merge_all: int = INITIAL_POWERUP_COUNT

    def __post_init__(self) -> None:
        for name in _FIELDS.values():
            object.__setattr__(self, name, _clamp(getattr(self, name)))

    def count(self, kind: PowerUpKind | str) -> int:
        return getattr(self, _FIELDS[PowerUpKind(kind)])

    def has(self, kind: PowerUpKind | str) -> bool:
        return self.count(kind) > 0

    def consume(self, kind: PowerUpKind | str) -> PowerUps:
        kind = PowerUpKind(kind)
        return replace(self, **{_FIELDS[kind]: self.count(kind) - 1})

    def grant(self, kind: PowerUpKind | str, amount: int = 1) -> PowerUps:
        kind = PowerUpKind(kind)
        return replace(self, **{_FIELDS[kind]: self.count(kind) + amount})

    def as_dict(self) -> dict[str, int]:
        return {kind.value: self.count(kind) for kind in PowerUpKind}


@dataclass(slots=True)
class PowerUpInventory:
    power_ups: PowerUps = field(default_factory=PowerUps)
