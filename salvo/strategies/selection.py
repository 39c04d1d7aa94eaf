import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from salvo.domain.board import Board
from salvo.domain.config import PARITY_DAMPING, ROLLOUT_DEPTH_FRACTION, UCB_C, SearchBudget
from salvo.domain.ensemble import Ensemble
from salvo.domain.fleet import FleetLedger
from salvo.domain.types import CellState, Coord, Orientation
from salvo.utils.debug import debug_event, get_logger

from .density import density_map, ranked_cells
from .search import plan

log = get_logger("selection")


@dataclass
class HuntContext:
    board: Board
    ledger: FleetLedger
    rng: random.Random
    ensemble: Optional[Ensemble] = None
    budget: SearchBudget = field(default_factory=lambda: SearchBudget(iterations=240, seconds=None))
    ceiling_seconds: float = 2.0
    parity_damping: float = PARITY_DAMPING
    prior: Optional[np.ndarray] = None
    orientation_weights: Optional[Dict[Orientation, float]] = None
    params: Dict[str, float] = field(default_factory=dict)


def _unknown_order(board: Board, primary: np.ndarray, secondary: np.ndarray, ascending: bool) -> List[Coord]:
    size = board.size
    sign = 1.0 if ascending else -1.0
    rows = []
    for y in range(size):
        for x in range(size):
            if board.grid[y][x] is not CellState.UNKNOWN:
                continue
            p = float(primary[y, x])
            if not np.isfinite(p):
                continue
            rows.append((sign * p, -float(secondary[y, x]), y * size + x, (x, y)))
    rows.sort(key=lambda r: r[:3])
    return [r[3] for r in rows]


class HuntStrategy:
    """Ranks candidate cells while no ship is being targeted.

    An empty ranking means the strategy cannot decide.
    """

    key = ""

    def rank(self, ctx: HuntContext) -> List[Coord]:
        raise NotImplementedError


class DensityStrategy(HuntStrategy):
    key = "density"

    def rank(self, ctx: HuntContext) -> List[Coord]:
        damping = float(ctx.params.get("parity_damping", ctx.parity_damping))
        scores = density_map(ctx.board, ctx.ledger, damping, ctx.prior, ctx.orientation_weights)
        return ranked_cells(scores, ctx.board)


class MinimaxStrategy(HuntStrategy):
    key = "minimax"

    def rank(self, ctx: HuntContext) -> List[Coord]:
        if ctx.ensemble is None or ctx.ensemble.is_exhausted():
            return []
        scores = ctx.ensemble.minimax_scores(ctx.board)
        return _unknown_order(ctx.board, scores, ctx.ensemble.counts(), ascending=False)


class EntropyStrategy(HuntStrategy):
    key = "entropy"

    def rank(self, ctx: HuntContext) -> List[Coord]:
        if ctx.ensemble is None or ctx.ensemble.is_exhausted():
            return []
        scores = ctx.ensemble.expected_entropy(ctx.board)
        return _unknown_order(ctx.board, scores, ctx.ensemble.counts(), ascending=True)


class MctsStrategy(HuntStrategy):
    key = "mcts"

    def rank(self, ctx: HuntContext) -> List[Coord]:
        budget = ctx.budget
        if "iterations" in ctx.params:
            budget = SearchBudget(int(ctx.params["iterations"]), budget.seconds, budget.cautious)
        result = plan(
            ctx.board,
            ctx.ledger,
            budget,
            ctx.rng,
            ceiling_seconds=ctx.ceiling_seconds,
            parity_damping=float(ctx.params.get("parity_damping", ctx.parity_damping)),
            ucb_c=float(ctx.params.get("ucb_c", UCB_C)),
            depth_fraction=float(ctx.params.get("rollout_depth", ROLLOUT_DEPTH_FRACTION)),
            prior=ctx.prior,
            orientation_weights=ctx.orientation_weights,
        )
        return result.ranked


STRATEGIES: Dict[str, HuntStrategy] = {
    s.key: s for s in (DensityStrategy(), MinimaxStrategy(), EntropyStrategy(), MctsStrategy())
}


def get_strategy(key: str) -> HuntStrategy:
    try:
        return STRATEGIES[key]
    except KeyError:
        raise ValueError(f"unknown hunt strategy: {key!r} (known: {sorted(STRATEGIES)})") from None


def rank_hunt_cells(key: str, ctx: HuntContext) -> Tuple[List[Coord], str]:
    """Ask the configured strategy, degrading to density when it cannot decide.

    Returns the ranking and the key of the strategy that produced it.
    """
    strategy = get_strategy(key)
    ranked = strategy.rank(ctx)
    if ranked or strategy.key == DensityStrategy.key:
        return ranked, strategy.key

    reason = "ensemble exhausted" if ctx.ensemble is not None and ctx.ensemble.is_exhausted() else "no candidates"
    debug_event(
        "Strategy fallback",
        f"{strategy.key} -> density ({reason})",
        level="info",
        source=log,
    )
    return STRATEGIES[DensityStrategy.key].rank(ctx), DensityStrategy.key
