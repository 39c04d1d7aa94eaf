import random
from typing import List, Optional, Sequence, Set, Tuple

import numpy as np

from .board import Board, cell_index
from .config import ENSEMBLE_ATTEMPT_FACTOR, ENSEMBLE_TARGET
from .types import CellState, Outcome

Evidence = Tuple[int, int, bool]


def _binary_entropy(p: np.ndarray) -> np.ndarray:
    p = np.clip(p, 0.0, 1.0)
    with np.errstate(divide="ignore", invalid="ignore"):
        h = -(p * np.log2(p) + (1.0 - p) * np.log2(1.0 - p))
    return np.nan_to_num(h, nan=0.0, posinf=0.0, neginf=0.0)


class Ensemble:
    """Bounded set of complete candidate opponent layouts.

    Each row of ``layouts`` is a flat ``size * size`` boolean ship/water
    grid. The set is sampled once and only ever filtered afterwards, and
    every row agrees with all evidence recorded so far.
    """

    def __init__(self, size: int, layouts: np.ndarray, evidence: Optional[List[Evidence]] = None):
        self.size = size
        self.layouts = layouts.reshape(-1, size * size).astype(bool, copy=False)
        self.evidence: List[Evidence] = list(evidence or [])

    @classmethod
    def generate(
        cls,
        size: int,
        lengths: Sequence[int],
        rng: random.Random,
        target: int = ENSEMBLE_TARGET,
        attempt_factor: int = ENSEMBLE_ATTEMPT_FACTOR,
        catalogue=None,
    ) -> "Ensemble":
        from salvo.layouts.placements import random_fleet

        n = size * size
        seen: Set[int] = set()
        rows: List[np.ndarray] = []
        attempts = 0
        max_attempts = max(1, int(target) * max(1, int(attempt_factor)))
        while len(rows) < target and attempts < max_attempts:
            attempts += 1
            fleet = random_fleet(size, lengths, rng, catalogue=catalogue)
            if fleet is None:
                continue
            union_mask = 0
            for p in fleet:
                union_mask |= p.mask
            if union_mask in seen:
                continue
            seen.add(union_mask)
            row = np.zeros(n, dtype=bool)
            for p in fleet:
                for x, y in p.cells:
                    row[cell_index(x, y, size)] = True
            rows.append(row)

        layouts = np.array(rows, dtype=bool) if rows else np.zeros((0, n), dtype=bool)
        return cls(size, layouts)

    def __len__(self) -> int:
        return int(self.layouts.shape[0])

    def is_exhausted(self) -> bool:
        return len(self) == 0

    def filter(self, x: int, y: int, is_ship: bool) -> int:
        """Keep the layouts agreeing with one piece of evidence; return how many were dropped."""
        idx = cell_index(x, y, self.size)
        self.evidence.append((x, y, bool(is_ship)))
        keep = self.layouts[:, idx] == bool(is_ship)
        removed = int(len(self) - int(keep.sum()))
        if removed:
            self.layouts = self.layouts[keep]
        return removed

    def apply_outcome(self, x: int, y: int, outcome) -> int:
        outcome = Outcome.parse(outcome)
        return self.filter(x, y, outcome in (Outcome.HIT, Outcome.SUNK))

    def counts(self) -> np.ndarray:
        """Per-cell number of layouts with a ship there, indexed ``[y, x]``."""
        return self.layouts.sum(axis=0).reshape(self.size, self.size)

    def probability_map(self) -> np.ndarray:
        if self.is_exhausted():
            return np.zeros((self.size, self.size), dtype=float)
        return self.counts() / float(len(self))

    def minimax_scores(self, board: Board) -> np.ndarray:
        """Worst-case number of layouts eliminated by shooting each unknown cell.

        Cells that are not UNKNOWN score -1.
        """
        n_ship = self.counts().astype(float)
        n_water = float(len(self)) - n_ship
        scores = np.minimum(n_ship, n_water)
        unknown = board.state_mask(CellState.UNKNOWN)
        return np.where(unknown, scores, -1.0)

    def expected_entropy(self, board: Board) -> np.ndarray:
        """Expected entropy of the unknown cells after shooting each candidate.

        Lower is better. Cells that are not UNKNOWN (or every cell, when the
        ensemble is empty) score +inf.
        """
        size = self.size
        out = np.full((size, size), np.inf)
        unknown = board.state_mask(CellState.UNKNOWN).reshape(-1)
        cand = np.flatnonzero(unknown)
        total = len(self)
        if total == 0 or cand.size == 0:
            return out

        f = self.layouts[:, cand].astype(float)
        joint = f.T @ f
        c = np.diag(joint).copy()
        miss = total - c

        with np.errstate(divide="ignore", invalid="ignore"):
            p_hit_branch = np.where(c[:, None] > 0, joint / c[:, None], 0.0)
            p_miss_branch = np.where(miss[:, None] > 0, (c[None, :] - joint) / miss[:, None], 0.0)
        h_hit = _binary_entropy(p_hit_branch).sum(axis=1)
        h_miss = _binary_entropy(p_miss_branch).sum(axis=1)

        expected = (c / total) * h_hit + (miss / total) * h_miss
        flat = out.reshape(-1)
        flat[cand] = expected
        return flat.reshape(size, size)

    def is_consistent(self, layout) -> bool:
        """Replay every recorded piece of evidence against one layout."""
        grid = np.asarray(layout, dtype=bool).reshape(-1)
        for x, y, is_ship in self.evidence:
            if bool(grid[cell_index(x, y, self.size)]) != is_ship:
                return False
        return True

    def copy(self) -> "Ensemble":
        return Ensemble(self.size, self.layouts.copy(), list(self.evidence))
