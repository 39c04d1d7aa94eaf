from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from .board import Board
from .types import CellState, Coord, Ship, StrikeReport

STRUCK_STATES = (CellState.MISS, CellState.HIT, CellState.SUNK)


class FleetLedger:
    """Remaining opponent ships, counted by length."""

    def __init__(self, lengths: Iterable[int]):
        self.counts: Dict[int, int] = dict(Counter(int(v) for v in lengths))
        self.initial_ships = sum(self.counts.values())

    def remaining_lengths(self) -> List[int]:
        out: List[int] = []
        for length in sorted(self.counts, reverse=True):
            out.extend([length] * self.counts[length])
        return out

    def remaining_ships(self) -> int:
        return sum(self.counts.values())

    def total_ship_cells(self) -> int:
        return sum(length * n for length, n in self.counts.items())

    def smallest_remaining(self) -> Optional[int]:
        alive = [length for length, n in self.counts.items() if n > 0]
        return min(alive) if alive else None

    def ships_left_ratio(self) -> float:
        if self.initial_ships <= 0:
            return 0.0
        return self.remaining_ships() / float(self.initial_ships)

    def has(self, length: int) -> bool:
        return self.counts.get(length, 0) > 0

    def confirm_sunk(self, length: int) -> bool:
        """Decrement the count for ``length``; False if none of that length remain."""
        if not self.has(length):
            return False
        self.counts[length] -= 1
        return True

    def all_sunk(self) -> bool:
        return self.remaining_ships() == 0

    def copy(self) -> "FleetLedger":
        clone = FleetLedger(())
        clone.counts = dict(self.counts)
        clone.initial_ships = self.initial_ships
        return clone

    def __eq__(self, other) -> bool:
        if not isinstance(other, FleetLedger):
            return NotImplemented
        return self.remaining_lengths() == other.remaining_lengths() and self.initial_ships == other.initial_ships

    def __repr__(self) -> str:
        return f"FleetLedger({self.remaining_lengths()})"


class OwnFleet:
    """The engine's own ships and the board the opponent shoots at."""

    def __init__(self, size: int, middle_segment_sinks_three: bool = False):
        self.board = Board(size, fill=CellState.WATER)
        self.ships: List[Ship] = []
        self.middle_segment_sinks_three = middle_segment_sinks_three

    @classmethod
    def from_cells(
        cls,
        size: int,
        ships: Sequence[Sequence[Coord]],
        middle_segment_sinks_three: bool = False,
    ) -> "OwnFleet":
        fleet = cls(size, middle_segment_sinks_three)
        for cells in ships:
            fleet.add_ship(cells)
        return fleet

    def add_ship(self, cells: Sequence[Coord]) -> Ship:
        ship = Ship(id=len(self.ships), length=len(cells), cells=tuple(cells))
        self.ships.append(ship)
        self.board.assign_ship(ship.id, ship.cells)
        return ship

    def strike(self, x: int, y: int) -> StrikeReport:
        state = self.board.get(x, y)
        ship_id = self.board.ship_at(x, y)
        if state in STRUCK_STATES:
            return StrikeReport(
                hit=ship_id is not None,
                sunk_cells=None,
                already_struck=True,
                game_over=self.all_sunk(),
            )
        if ship_id is None:
            self.board.set(x, y, CellState.MISS)
            return StrikeReport(hit=False, game_over=self.all_sunk())

        ship = self.ships[ship_id]
        ship.struck.add((x, y))
        ship.hit_count += 1
        self.board.set(x, y, CellState.HIT)

        sunk = ship.hit_count >= ship.length
        if (
            not sunk
            and self.middle_segment_sinks_three
            and ship.length == 3
            and (x, y) == ship.cells[1]
        ):
            sunk = True

        sunk_cells = None
        if sunk:
            ship.sunk = True
            for cx, cy in ship.cells:
                self.board.set(cx, cy, CellState.SUNK)
            sunk_cells = ship.cells
        return StrikeReport(hit=True, sunk_cells=sunk_cells, game_over=self.all_sunk())

    def all_sunk(self) -> bool:
        return bool(self.ships) and all(s.sunk for s in self.ships)

    def ships_left_ratio(self) -> float:
        if not self.ships:
            return 0.0
        return sum(1 for s in self.ships if not s.sunk) / float(len(self.ships))

    def flat_grid(self) -> List[int]:
        size = self.board.size
        return [
            0 if self.board.ship_at(x, y) is None else 1
            for y in range(size)
            for x in range(size)
        ]

    def copy(self) -> "OwnFleet":
        clone = OwnFleet.__new__(OwnFleet)
        clone.board = self.board.copy()
        clone.ships = [s.copy() for s in self.ships]
        clone.middle_segment_sinks_three = self.middle_segment_sinks_three
        return clone

    def __eq__(self, other) -> bool:
        if not isinstance(other, OwnFleet):
            return NotImplemented
        return self.board == other.board and self.ships == other.ships
