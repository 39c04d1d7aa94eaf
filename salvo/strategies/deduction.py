from typing import List, Optional, Sequence, Set, Tuple

import numpy as np

from salvo.domain.board import Board
from salvo.domain.fleet import FleetLedger
from salvo.domain.types import ORIENTATIONS, CellState, Coord, Orientation
from salvo.layouts.placements import feasible_anchors, line_cells

from .density import placement_coverage

Pocket = List[Coord]


def find_pockets(board: Board) -> List[Pocket]:
    """Maximal 4-connected groups of UNKNOWN cells, each sorted by flat index."""
    size = board.size
    seen: Set[Coord] = set()
    pockets: List[Pocket] = []
    for y in range(size):
        for x in range(size):
            if (x, y) in seen or board.get(x, y) is not CellState.UNKNOWN:
                continue
            stack = [(x, y)]
            seen.add((x, y))
            pocket: Pocket = []
            while stack:
                cx, cy = stack.pop()
                pocket.append((cx, cy))
                for nx, ny in board.neighbours4(cx, cy):
                    if (nx, ny) not in seen and board.get(nx, ny) is CellState.UNKNOWN:
                        seen.add((nx, ny))
                        stack.append((nx, ny))
            pocket.sort(key=lambda c: (c[1], c[0]))
            pockets.append(pocket)
    return pockets


def length_multisets(lengths: Sequence[int], total: int) -> List[Tuple[int, ...]]:
    """Distinct sub-multisets of ``lengths`` summing to ``total``."""
    pool = sorted(lengths, reverse=True)
    out: List[Tuple[int, ...]] = []

    def walk(start: int, remaining: int, picked: List[int]) -> None:
        if remaining == 0:
            out.append(tuple(picked))
            return
        prev = None
        for i in range(start, len(pool)):
            v = pool[i]
            if v == prev or v > remaining:
                continue
            prev = v
            picked.append(v)
            walk(i + 1, remaining - v, picked)
            picked.pop()

    walk(0, total, [])
    return out


def count_tilings(pocket: Sequence[Coord], lengths: Sequence[int], limit: int = 2) -> Tuple[int, Optional[List[Tuple[Coord, ...]]]]:
    """Count exact placements of ``lengths`` covering ``pocket``, stopping at ``limit``.

    Returns the count and the first solution found.
    """
    cells = set(pocket)
    covered: Set[Coord] = set()
    remaining = sorted(lengths, reverse=True)
    placed: List[Tuple[Coord, ...]] = []
    found = [0]
    first: List[List[Tuple[Coord, ...]]] = []

    def next_free() -> Optional[Coord]:
        for c in pocket:
            if c not in covered:
                return c
        return None

    def walk() -> None:
        if found[0] >= limit:
            return
        anchor = next_free()
        if anchor is None:
            found[0] += 1
            if not first:
                first.append(list(placed))
            return
        tried = set()
        for i, length in enumerate(remaining):
            if length in tried:
                continue
            tried.add(length)
            orientations = ORIENTATIONS if length > 1 else (Orientation.HORIZONTAL,)
            for orient in orientations:
                ship = line_cells(anchor[0], anchor[1], length, orient)
                if any(c not in cells or c in covered for c in ship):
                    continue
                covered.update(ship)
                placed.append(ship)
                remaining.pop(i)
                walk()
                remaining.insert(i, length)
                placed.pop()
                covered.difference_update(ship)
                if found[0] >= limit:
                    return

    walk()
    return found[0], (first[0] if first else None)


def find_guaranteed_hit(board: Board, ledger: FleetLedger) -> Optional[Coord]:
    """A cell proven to hold a ship, or None.

    Only applies when no HIT is unresolved and the unknown area exactly
    matches the remaining ship cells; a pocket then qualifies when a single
    length multiset fits it and that multiset tiles it in exactly one way.
    """
    if board.count(CellState.HIT) > 0:
        return None
    pockets = find_pockets(board)
    total_unknown = sum(len(p) for p in pockets)
    if total_unknown == 0 or total_unknown != ledger.total_ship_cells():
        return None

    lengths = ledger.remaining_lengths()
    for pocket in pockets:
        combos = length_multisets(lengths, len(pocket))
        if len(combos) != 1:
            continue
        count, solution = count_tilings(pocket, combos[0])
        if count == 1 and solution:
            return solution[0][0]
    return None


def dead_cells(board: Board, ledger: FleetLedger) -> List[Coord]:
    """UNKNOWN cells that no feasible placement of any remaining ship covers."""
    lengths = sorted({length for length, n in ledger.counts.items() if n > 0})
    if not lengths:
        return []
    size = board.size
    covered = np.zeros((size, size), dtype=bool)
    for length in lengths:
        orientations = ORIENTATIONS if length > 1 else (Orientation.HORIZONTAL,)
        for orient in orientations:
            anchors = feasible_anchors(board, length, orient)
            if anchors.any():
                covered |= placement_coverage(anchors, length, orient) > 0
    unknown = board.state_mask(CellState.UNKNOWN)
    ys, xs = np.nonzero(unknown & ~covered)
    return sorted(((int(x), int(y)) for y, x in zip(ys, xs)), key=lambda c: (c[1], c[0]))
