"""Placement-counting density estimator.

The score of a cell is the number of feasible placements of the remaining
ships that cover it. This is a heuristic ranking, not an exact hit
probability: placements are counted independently of each other and the
parity down-weight only reorders the search.
"""

from typing import Dict, List, Optional

import numpy as np

from salvo.domain.board import Board
from salvo.domain.config import PARITY_DAMPING
from salvo.domain.fleet import FleetLedger
from salvo.domain.types import ORIENTATIONS, CellState, Coord, Orientation
from salvo.layouts.placements import feasible_anchors


def placement_coverage(anchors: np.ndarray, length: int, orientation: Orientation) -> np.ndarray:
    """Number of feasible placements (given by their anchors) covering each cell."""
    size = anchors.shape[0]
    cover = np.zeros((size, size), dtype=np.int64)
    a = anchors.astype(np.int64)
    for k in range(length):
        if orientation is Orientation.HORIZONTAL:
            cover[:, k:] += a[:, : size - k]
        else:
            cover[k:, :] += a[: size - k, :]
    return cover


def parity_mask(size: int, modulus: int) -> np.ndarray:
    """True on cells with ``(x + y) % modulus == 0``."""
    ys, xs = np.indices((size, size))
    return (xs + ys) % modulus == 0


def density_map(
    board: Board,
    ledger: FleetLedger,
    parity_damping: float = PARITY_DAMPING,
    prior: Optional[np.ndarray] = None,
    orientation_weights: Optional[Dict[Orientation, float]] = None,
) -> np.ndarray:
    """Placement counts over the UNKNOWN cells, indexed ``[y, x]``.

    Each remaining ship is counted once per remaining unit. ``prior``
    multiplies the raw counts. Cells off the smallest remaining length's
    lattice are multiplied by ``parity_damping`` rather than dropped.
    """
    size = board.size
    scores = np.zeros((size, size), dtype=float)
    for length, count in ledger.counts.items():
        if count <= 0:
            continue
        orientations = ORIENTATIONS if length > 1 else (Orientation.HORIZONTAL,)
        for orient in orientations:
            anchors = feasible_anchors(board, length, orient)
            if not anchors.any():
                continue
            weight = orientation_weights.get(orient, 1.0) if orientation_weights else 1.0
            scores += count * weight * placement_coverage(anchors, length, orient)

    if prior is not None:
        scores *= prior

    m = ledger.smallest_remaining()
    if m is not None and m > 1:
        scores[~parity_mask(size, m)] *= parity_damping

    scores[~board.state_mask(CellState.UNKNOWN)] = 0.0
    return scores


def ranked_cells(
    scores: np.ndarray,
    board: Board,
    positive_only: bool = False,
    reverse: bool = False,
) -> List[Coord]:
    """UNKNOWN cells by descending score (ascending with ``reverse``).

    Ties break on the flat index, lowest first.
    """
    size = board.size
    cells = []
    for y in range(size):
        for x in range(size):
            if board.grid[y][x] is not CellState.UNKNOWN:
                continue
            s = float(scores[y, x])
            if positive_only and s <= 0.0:
                continue
            cells.append((s, y * size + x, (x, y)))
    if reverse:
        cells.sort(key=lambda t: (t[0], t[1]))
    else:
        cells.sort(key=lambda t: (-t[0], t[1]))
    return [c for _, _, c in cells]
