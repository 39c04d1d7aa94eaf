import math
import random
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import numpy as np

from salvo.domain.board import Board
from salvo.domain.config import PARITY_DAMPING, ROLLOUT_DEPTH_FRACTION, UCB_C, SearchBudget
from salvo.domain.fleet import FleetLedger
from salvo.domain.types import CellState, Coord, Orientation
from salvo.utils.debug import debug_event, get_logger

from .density import density_map, ranked_cells

log = get_logger("search")


@dataclass
class SearchResult:
    ranked: List[Coord]
    iterations: int
    elapsed: float
    timed_out: bool = False


class SearchNode:
    """One hypothetical shot sequence; the board has every move on the path marked MISS."""

    def __init__(
        self,
        board: Board,
        ledger: FleetLedger,
        parent: Optional["SearchNode"] = None,
        move: Optional[Coord] = None,
        move_probability: float = 0.0,
        prior: Optional[np.ndarray] = None,
        orientation_weights: Optional[Dict[Orientation, float]] = None,
    ):
        self.board = board
        self.ledger = ledger
        self.parent = parent
        self.move = move
        self.move_probability = move_probability
        # Opponent-profile weighting, shared by the whole tree.
        self.prior = prior
        self.orientation_weights = orientation_weights
        self.visits = 0
        self.score = 0.0
        self.children: List["SearchNode"] = []
        self._untried: Optional[List[Coord]] = None
        self._ranking: List[Coord] = []
        self._probabilities: Dict[Coord, float] = {}

    def expand_candidates(self, cautious: bool, parity_damping: float) -> List[Coord]:
        """Untried moves, best last so that ``pop()`` takes the next one to expand."""
        if self._untried is None:
            scores = density_map(self.board, self.ledger, parity_damping, self.prior, self.orientation_weights)
            ranking = ranked_cells(scores, self.board, positive_only=True)
            self._ranking = ranking
            unknown = self.board.count(CellState.UNKNOWN)
            ships = remaining_ship_cells(self.board, self.ledger)
            base = ships / float(unknown) if unknown > 0 else 0.0
            positive = [float(scores[y, x]) for x, y in ranking]
            mean = sum(positive) / len(positive) if positive else 0.0
            for (x, y), s in zip(ranking, positive):
                self._probabilities[(x, y)] = min(1.0, base * s / mean) if mean > 0 else base
            ordered = list(reversed(ranking)) if cautious else list(ranking)
            self._untried = list(reversed(ordered))
        return self._untried

    def ucb(self, c: float) -> float:
        if self.visits == 0:
            return float("inf")
        exploit = self.score / self.visits
        explore = c * math.sqrt(math.log(self.parent.visits) / self.visits) if self.parent else 0.0
        return exploit + explore

    def expand(self, cautious: bool, parity_damping: float) -> Optional["SearchNode"]:
        untried = self.expand_candidates(cautious, parity_damping)
        if not untried:
            return None
        x, y = untried.pop()
        board = self.board.copy()
        board.set(x, y, CellState.MISS)
        child = SearchNode(
            board,
            self.ledger.copy(),
            self,
            (x, y),
            self._probabilities.get((x, y), 0.0),
            self.prior,
            self.orientation_weights,
        )
        self.children.append(child)
        return child


def remaining_ship_cells(board: Board, ledger: FleetLedger) -> int:
    return max(0, ledger.total_ship_cells() - board.count(CellState.HIT))


def _rollout(
    node: SearchNode,
    rng: random.Random,
    depth_fraction: float,
    parity_damping: float,
    cautious: bool = False,
) -> float:
    """Simulated hit rate along the density ranking, mapped to [-1, 1].

    The node's own move is the first shot, at its density-scaled hit
    probability; later shots use the remaining ship-to-unknown ratio.
    """
    node.expand_candidates(cautious, parity_damping)
    unknown = node.board.count(CellState.UNKNOWN) + 1
    ships = remaining_ship_cells(node.board, node.ledger)
    depth = max(1, int(depth_fraction * unknown))

    hits = 0
    shots = 1
    if rng.random() < node.move_probability:
        hits += 1
        ships -= 1
    unknown -= 1

    for _cell in node._ranking:
        if shots >= depth or unknown <= 0 or ships <= 0:
            break
        if rng.random() < ships / float(unknown):
            hits += 1
            ships -= 1
        unknown -= 1
        shots += 1
    return 2.0 * hits / shots - 1.0


def plan(
    board: Board,
    ledger: FleetLedger,
    budget: SearchBudget,
    rng: random.Random,
    ceiling_seconds: float = 2.0,
    parity_damping: float = PARITY_DAMPING,
    ucb_c: float = UCB_C,
    depth_fraction: float = ROLLOUT_DEPTH_FRACTION,
    prior: Optional[np.ndarray] = None,
    orientation_weights: Optional[Dict[Orientation, float]] = None,
    clock: Callable[[], float] = time.perf_counter,
) -> SearchResult:
    """Monte Carlo tree search over hypothetical shot sequences.

    Returns the root's moves ordered by visit count. The deadline is
    ``min(budget.seconds, ceiling_seconds)`` and is checked between
    iterations; expiry is not an error. ``prior`` and
    ``orientation_weights`` bias the density ranking every node expands
    from, as they do for the density strategy.
    """
    start = clock()
    limit = ceiling_seconds if budget.seconds is None else min(budget.seconds, ceiling_seconds)
    deadline = start + max(0.0, limit)

    root = SearchNode(board.copy(), ledger.copy(), prior=prior, orientation_weights=orientation_weights)
    root.expand_candidates(budget.cautious, parity_damping)

    iterations = 0
    timed_out = False
    for _ in range(max(0, budget.iterations)):
        if clock() >= deadline:
            timed_out = True
            break
        node = root
        while node.children and not node.expand_candidates(budget.cautious, parity_damping):
            node = max(node.children, key=lambda n: n.ucb(ucb_c))
        child = node.expand(budget.cautious, parity_damping)
        if child is None:
            if node is root:
                break
            child = node
        value = _rollout(child, rng, depth_fraction, parity_damping, budget.cautious)
        cur: Optional[SearchNode] = child
        while cur is not None:
            cur.visits += 1
            cur.score += value
            cur = cur.parent
        iterations += 1

    elapsed = clock() - start
    if timed_out:
        hard = budget.seconds is None or ceiling_seconds < budget.seconds
        debug_event(
            "Search deadline",
            f"stopped after {iterations}/{budget.iterations} iterations in {elapsed:.3f}s",
            level="warning" if hard else "debug",
            source=log,
        )

    order = sorted(range(len(root.children)), key=lambda i: (-root.children[i].visits, i))
    ranked = [root.children[i].move for i in order]
    return SearchResult(ranked=ranked, iterations=iterations, elapsed=elapsed, timed_out=timed_out)
