import random
from typing import Iterable, List, Optional, Sequence, Set

import numpy as np

from salvo.domain.board import Board
from salvo.domain.types import CellState, Coord


def opening_candidates(size: int) -> List[Coord]:
    """The four cells around the board centre."""
    if size <= 2:
        return [(x, y) for y in range(size) for x in range(size)]
    h = size // 2
    if size % 2 == 0:
        return [(h - 1, h - 1), (h, h - 1), (h - 1, h), (h, h)]
    return [(h, h - 1), (h - 1, h), (h + 1, h), (h, h + 1)]


def opening_move(size: int, rng: random.Random) -> Coord:
    return rng.choice(opening_candidates(size))


def _colinear(hits: Sequence[Coord]) -> Optional[str]:
    if len({y for _, y in hits}) == 1:
        return "row"
    if len({x for x, _ in hits}) == 1:
        return "col"
    return None


def _order(cells: Iterable[Coord], board: Board, scores: Optional[np.ndarray]) -> List[Coord]:
    uniq = list(dict.fromkeys(cells))
    size = board.size
    if scores is None:
        return sorted(uniq, key=lambda c: c[1] * size + c[0])
    return sorted(uniq, key=lambda c: (-float(scores[c[1], c[0]]), c[1] * size + c[0]))


def rebuild_queue(board: Board, current_hits: Sequence[Coord], scores: Optional[np.ndarray] = None) -> List[Coord]:
    """Candidate cells for the ship being targeted.

    One hit queues its unknown 4-neighbours. Two or more colinear hits
    queue only the unknown cells on their line: gaps first, then the two
    extension cells past the extreme hits.
    """
    hits = [h for h in current_hits if board.get(h[0], h[1]) is CellState.HIT]
    if not hits:
        return []

    line = _colinear(hits) if len(hits) >= 2 else None
    if line is not None:
        if line == "row":
            y = hits[0][1]
            xs = sorted(x for x, _ in hits)
            gaps = [(x, y) for x in range(xs[0] + 1, xs[-1])]
            ends = [(xs[0] - 1, y), (xs[-1] + 1, y)]
        else:
            x = hits[0][0]
            ys = sorted(y for _, y in hits)
            gaps = [(x, y) for y in range(ys[0] + 1, ys[-1])]
            ends = [(x, ys[0] - 1), (x, ys[-1] + 1)]
        gap_cells = [c for c in gaps if board.get(c[0], c[1]) is CellState.UNKNOWN]
        end_cells = [
            c for c in ends
            if board.in_bounds(c[0], c[1]) and board.get(c[0], c[1]) is CellState.UNKNOWN
        ]
        return _order(gap_cells, board, scores) + _order(end_cells, board, scores)

    cells: List[Coord] = []
    for hx, hy in hits:
        for nx, ny in board.neighbours4(hx, hy):
            if board.get(nx, ny) is CellState.UNKNOWN:
                cells.append((nx, ny))
    return _order(cells, board, scores)


def hit_extent(board: Board, x: int, y: int) -> List[Coord]:
    """4-connected HIT cells reachable from (x, y), sorted by flat index."""
    if board.get(x, y) is not CellState.HIT:
        return []
    seen: Set[Coord] = {(x, y)}
    stack = [(x, y)]
    while stack:
        cx, cy = stack.pop()
        for nx, ny in board.neighbours4(cx, cy):
            if (nx, ny) not in seen and board.get(nx, ny) is CellState.HIT:
                seen.add((nx, ny))
                stack.append((nx, ny))
    return sorted(seen, key=lambda c: (c[1], c[0]))


def surrounding_unknown(board: Board, cells: Sequence[Coord]) -> List[Coord]:
    """UNKNOWN cells in the 8-neighbourhood of ``cells``."""
    ship = set(cells)
    out: Set[Coord] = set()
    for cx, cy in cells:
        for nx, ny in board.neighbours8(cx, cy):
            if (nx, ny) not in ship and board.get(nx, ny) is CellState.UNKNOWN:
                out.add((nx, ny))
    return sorted(out, key=lambda c: (c[1], c[0]))
