from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set, Tuple

Coord = Tuple[int, int]


class CellState(Enum):
    UNKNOWN = "unknown"
    WATER = "water"
    MISS = "miss"
    HIT = "hit"
    SUNK = "sunk"


class Outcome(Enum):
    MISS = "miss"
    HIT = "hit"
    SUNK = "sunk"

    @classmethod
    def parse(cls, value) -> "Outcome":
        if isinstance(value, Outcome):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            # some hosts report a non-lethal hit as "damaged"
            if key == "damaged":
                return cls.HIT
            return cls(key)
        raise ValueError(f"unsupported outcome: {value!r}")


class Orientation(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @property
    def step(self) -> Coord:
        return (1, 0) if self is Orientation.HORIZONTAL else (0, 1)


ORIENTATIONS = (Orientation.HORIZONTAL, Orientation.VERTICAL)


@dataclass
class Ship:
    id: int
    length: int
    cells: Tuple[Coord, ...]
    hit_count: int = 0
    sunk: bool = False
    struck: Set[Coord] = field(default_factory=set)

    @property
    def orientation(self) -> Optional[Orientation]:
        if len(self.cells) < 2:
            return None
        if self.cells[0][0] == self.cells[1][0]:
            return Orientation.VERTICAL
        return Orientation.HORIZONTAL

    def copy(self) -> "Ship":
        return Ship(self.id, self.length, self.cells, self.hit_count, self.sunk, set(self.struck))


@dataclass(frozen=True)
class Move:
    x: int
    y: int
    is_guaranteed: bool = False
    alternates: Tuple[Coord, ...] = ()
    source: str = ""

    def as_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "isGuaranteed": self.is_guaranteed,
            "alternates": [{"x": ax, "y": ay} for ax, ay in self.alternates],
        }


@dataclass(frozen=True)
class CellUpdate:
    x: int
    y: int
    state: CellState

    def as_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "newState": self.state.value}


@dataclass(frozen=True)
class OutcomeReport:
    updated_cells: Tuple[CellUpdate, ...]
    game_over: bool = False
    won: bool = False

    def as_dict(self) -> dict:
        return {
            "updatedCells": [u.as_dict() for u in self.updated_cells],
            "gameOver": self.game_over,
            "won": self.won,
        }


@dataclass(frozen=True)
class StrikeReport:
    hit: bool
    sunk_cells: Optional[Tuple[Coord, ...]] = None
    already_struck: bool = False
    game_over: bool = False

    def as_dict(self) -> dict:
        sunk: Optional[List[dict]] = None
        if self.sunk_cells is not None:
            sunk = [{"x": x, "y": y} for x, y in self.sunk_cells]
        return {
            "hit": self.hit,
            "sunkCells": sunk,
            "alreadyStruck": self.already_struck,
            "gameOver": self.game_over,
        }
