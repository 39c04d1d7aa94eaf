from typing import Iterable, Iterator, List, Optional

import numpy as np

from .types import CellState, Coord

NEIGHBOURS4 = ((0, -1), (0, 1), (-1, 0), (1, 0))
NEIGHBOURS8 = tuple((dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if dx or dy)


def cell_index(x: int, y: int, board_size: int) -> int:
    return y * board_size + x


def make_mask(cells: Iterable[Coord], board_size: int) -> int:
    m = 0
    for x, y in cells:
        m |= 1 << cell_index(x, y, board_size)
    return m


class Board:
    """Square grid of cell states.

    The opponent board starts UNKNOWN everywhere. The engine's own board
    starts as WATER and additionally records which ship owns each cell.
    """

    def __init__(self, size: int, fill: CellState = CellState.UNKNOWN):
        if size <= 0:
            raise ValueError("board size must be positive")
        self.size = size
        self.grid: List[List[CellState]] = [[fill for _ in range(size)] for _ in range(size)]
        self.ship_ids: List[List[Optional[int]]] = [[None for _ in range(size)] for _ in range(size)]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def get(self, x: int, y: int) -> CellState:
        return self.grid[y][x]

    def set(self, x: int, y: int, state: CellState) -> None:
        self.grid[y][x] = state

    def ship_at(self, x: int, y: int) -> Optional[int]:
        return self.ship_ids[y][x]

    def assign_ship(self, ship_id: int, cells: Iterable[Coord]) -> None:
        for x, y in cells:
            self.ship_ids[y][x] = ship_id

    def neighbours4(self, x: int, y: int) -> Iterator[Coord]:
        for dx, dy in NEIGHBOURS4:
            nx, ny = x + dx, y + dy
            if 0 <= nx < self.size and 0 <= ny < self.size:
                yield nx, ny

    def neighbours8(self, x: int, y: int) -> Iterator[Coord]:
        for dx, dy in NEIGHBOURS8:
            nx, ny = x + dx, y + dy
            if 0 <= nx < self.size and 0 <= ny < self.size:
                yield nx, ny

    def cells(self, state: CellState) -> List[Coord]:
        return [
            (x, y)
            for y in range(self.size)
            for x in range(self.size)
            if self.grid[y][x] is state
        ]

    def count(self, state: CellState) -> int:
        return sum(1 for row in self.grid for cell in row if cell is state)

    def unknown_cells(self) -> List[Coord]:
        return self.cells(CellState.UNKNOWN)

    def state_mask(self, *states: CellState) -> np.ndarray:
        """Boolean (size, size) array, True where the cell is in one of ``states``."""
        wanted = set(states)
        return np.array(
            [[cell in wanted for cell in row] for row in self.grid],
            dtype=bool,
        )

    def copy(self) -> "Board":
        clone = Board.__new__(Board)
        clone.size = self.size
        clone.grid = [row[:] for row in self.grid]
        clone.ship_ids = [row[:] for row in self.ship_ids]
        return clone

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.size == other.size and self.grid == other.grid and self.ship_ids == other.ship_ids

    def __repr__(self) -> str:
        return f"Board(size={self.size})"
