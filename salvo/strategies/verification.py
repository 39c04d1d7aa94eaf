from typing import List, Sequence

import numpy as np

from salvo.domain.board import Board
from salvo.domain.types import CellState, Coord

HIT_SCORE = 10
RUN_SCORE = 100


def contiguity_score(hits: np.ndarray) -> int:
    """10 per hit plus 100 per horizontally or vertically adjacent pair of hits."""
    pairs = np.count_nonzero(hits[:, 1:] & hits[:, :-1]) + np.count_nonzero(hits[1:, :] & hits[:-1, :])
    return HIT_SCORE * int(np.count_nonzero(hits)) + RUN_SCORE * int(pairs)


def _hit_neighbours(hits: np.ndarray) -> np.ndarray:
    counts = np.zeros(hits.shape, dtype=int)
    counts[1:, :] += hits[:-1, :]
    counts[:-1, :] += hits[1:, :]
    counts[:, 1:] += hits[:, :-1]
    counts[:, :-1] += hits[:, 1:]
    return counts


def lookahead_score(board: Board, move: Coord) -> int:
    """Two-ply value of assuming ``move`` hits.

    The opponent reply is a pass, so the search collapses to the best
    single follow-up hit on an UNKNOWN cell, scored by contiguity.
    """
    x, y = move
    hits = board.state_mask(CellState.HIT)
    unknown = board.state_mask(CellState.UNKNOWN)
    hits[y, x] = True
    unknown[y, x] = False
    score = contiguity_score(hits)
    if not unknown.any():
        return score
    gains = HIT_SCORE + RUN_SCORE * _hit_neighbours(hits)
    return score + int(gains[unknown].max())


def verify_moves(board: Board, candidates: Sequence[Coord], top_k: int) -> List[Coord]:
    """Move the best of the first ``top_k`` candidates to the front.

    Ties keep the earlier candidate; the rest of the order is unchanged.
    """
    ordered = list(candidates)
    if top_k < 2 or len(ordered) < 2:
        return ordered
    head = ordered[:top_k]
    best = head[0]
    best_score = lookahead_score(board, best)
    for move in head[1:]:
        score = lookahead_score(board, move)
        if score > best_score:
            best, best_score = move, score
    return [best] + [c for c in ordered if c != best]
