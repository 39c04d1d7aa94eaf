import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from salvo.domain.board import Board, make_mask
from salvo.domain.types import ORIENTATIONS, CellState, Coord, Orientation

# Cells a ship may never cover on the opponent board.
BLOCKED_STATES = (CellState.MISS, CellState.SUNK)

# Random picks tried before falling back to scanning the whole catalogue.
_RANDOM_PICKS = 24


@dataclass(frozen=True)
class LayoutPlacement:
    length: int
    orientation: Orientation
    x: int
    y: int
    cells: Tuple[Coord, ...]
    mask: int
    adjacency_mask: int


def line_cells(x: int, y: int, length: int, orientation: Orientation) -> Tuple[Coord, ...]:
    dx, dy = orientation.step
    return tuple((x + dx * i, y + dy * i) for i in range(length))


def _adjacency_mask(cells: Iterable[Coord], board_size: int) -> int:
    mask = 0
    for x, y in cells:
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                xx = x + dx
                yy = y + dy
                if 0 <= xx < board_size and 0 <= yy < board_size:
                    mask |= 1 << (yy * board_size + xx)
    return mask


def generate_line_placements(length: int, board_size: int) -> List[LayoutPlacement]:
    """Every in-bounds placement of a straight ship of ``length``."""
    placements: List[LayoutPlacement] = []
    if length <= 0 or length > board_size:
        return placements
    orientations = ORIENTATIONS if length > 1 else (Orientation.HORIZONTAL,)
    for orient in orientations:
        dx, dy = orient.step
        for y0 in range(board_size - dy * (length - 1)):
            for x0 in range(board_size - dx * (length - 1)):
                cells = line_cells(x0, y0, length, orient)
                placements.append(
                    LayoutPlacement(
                        length,
                        orient,
                        x0,
                        y0,
                        cells,
                        make_mask(cells, board_size),
                        _adjacency_mask(cells, board_size),
                    )
                )
    return placements


def can_place(
    board: Board,
    x: int,
    y: int,
    length: int,
    orientation: Orientation,
    no_touch: bool = False,
) -> bool:
    """Whether a ship of ``length`` anchored at (x, y) fits the board.

    Covered cells must be in bounds and not MISS or SUNK. With ``no_touch``
    the covered cells and their 8-neighbourhood must also be free of other
    ships in the board's own-ship index.
    """
    if length <= 0:
        return False
    for cx, cy in line_cells(x, y, length, orientation):
        if not board.in_bounds(cx, cy):
            return False
        if board.get(cx, cy) in BLOCKED_STATES:
            return False
        if no_touch:
            if board.ship_at(cx, cy) is not None:
                return False
            for nx, ny in board.neighbours8(cx, cy):
                if board.ship_at(nx, ny) is not None:
                    return False
    return True


def feasible_anchors(board: Board, length: int, orientation: Orientation) -> np.ndarray:
    """Boolean (size, size) grid of anchors where ``can_place`` holds.

    Indexed ``[y, x]`` like the board. Equivalent to calling ``can_place``
    with ``no_touch=False`` for every anchor.
    """
    size = board.size
    ok = np.zeros((size, size), dtype=bool)
    if length <= 0 or length > size:
        return ok
    blocked = board.state_mask(*BLOCKED_STATES).astype(np.int32)
    vertical = orientation is Orientation.VERTICAL
    if vertical:
        blocked = blocked.T
    csum = np.zeros((size, size + 1), dtype=np.int32)
    csum[:, 1:] = np.cumsum(blocked, axis=1)
    span = csum[:, length:] - csum[:, :-length]
    ok[:, : size - length + 1] = span == 0
    return ok.T.copy() if vertical else ok


def fleet_conflicts(placements: Sequence[LayoutPlacement]) -> List[str]:
    """Pairs of placements that overlap or touch (8-neighbourhood)."""
    problems: List[str] = []
    for i, a in enumerate(placements):
        for j in range(i + 1, len(placements)):
            b = placements[j]
            if a.mask & b.mask:
                problems.append(f"ships {i} and {j} overlap")
            elif a.adjacency_mask & b.mask:
                problems.append(f"ships {i} and {j} touch")
    return problems


def is_valid_fleet(board_size: int, lengths: Sequence[int], placements: Sequence[LayoutPlacement]) -> bool:
    if sorted(int(v) for v in lengths) != sorted(p.length for p in placements):
        return False
    for p in placements:
        if len(p.cells) != p.length:
            return False
        for x, y in p.cells:
            if not (0 <= x < board_size and 0 <= y < board_size):
                return False
    return not fleet_conflicts(placements)


def random_fleet(
    board_size: int,
    lengths: Sequence[int],
    rng: random.Random,
    order: Optional[Sequence[int]] = None,
    catalogue=None,
    forbidden_mask: int = 0,
) -> Optional[List[LayoutPlacement]]:
    """Seat a whole no-touch fleet at random, largest ship first by default.

    Returns ``None`` as soon as a ship cannot be seated.
    """
    if catalogue is None:
        from .cache import DEFAULT_PLACEMENT_CACHE

        catalogue = DEFAULT_PLACEMENT_CACHE
    seq = list(order) if order is not None else sorted((int(v) for v in lengths), reverse=True)
    forbidden = forbidden_mask
    chosen: List[LayoutPlacement] = []
    for length in seq:
        options = catalogue.get(board_size, length)
        if not options:
            return None
        pick = None
        for _ in range(_RANDOM_PICKS):
            cand = options[rng.randrange(len(options))]
            if not (cand.mask & forbidden):
                pick = cand
                break
        if pick is None:
            free = [p for p in options if not (p.mask & forbidden)]
            if not free:
                return None
            pick = rng.choice(free)
        chosen.append(pick)
        forbidden |= pick.adjacency_mask
    return chosen
