import unittest

import numpy as np

from salvo.domain.board import Board
from salvo.domain.types import CellState
from salvo.strategies.verification import contiguity_score, lookahead_score, verify_moves


class ContiguityTests(unittest.TestCase):
    def test_score_rewards_adjacent_hits(self):
        hits = np.zeros((5, 5), dtype=bool)
        hits[1, 1] = True
        self.assertEqual(contiguity_score(hits), 10)
        hits[1, 2] = True
        self.assertEqual(contiguity_score(hits), 120)
        hits[3, 3] = True
        self.assertEqual(contiguity_score(hits), 130)
        hits[2, 2] = True
        self.assertEqual(contiguity_score(hits), 240)

    def test_lookahead_adds_the_best_follow_up(self):
        board = Board(5)
        board.set(2, 2, CellState.HIT)
        # isolated: 20 for two hits, then 110 for extending either one
        self.assertEqual(lookahead_score(board, (4, 4)), 130)
        # adjacent: 120 for the pair, then 110 for extending the line
        self.assertEqual(lookahead_score(board, (2, 3)), 230)

    def test_lookahead_on_a_closed_board(self):
        board = Board(2, fill=CellState.MISS)
        board.set(0, 0, CellState.UNKNOWN)
        self.assertEqual(lookahead_score(board, (0, 0)), 10)


class VerifyMovesTests(unittest.TestCase):
    def test_prefers_the_move_that_extends_a_line(self):
        board = Board(5)
        board.set(2, 2, CellState.HIT)
        self.assertEqual(verify_moves(board, [(4, 4), (2, 3)], 5), [(2, 3), (4, 4)])

    def test_ties_and_small_windows_keep_the_order(self):
        board = Board(5)
        board.set(2, 2, CellState.HIT)
        cells = [(4, 4), (0, 0), (2, 3)]
        self.assertEqual(verify_moves(board, cells, 2), cells)
        self.assertEqual(verify_moves(board, cells, 1), cells)
        self.assertEqual(verify_moves(board, cells, 0), cells)
        self.assertEqual(verify_moves(board, [], 5), [])

        neighbours = [(1, 2), (3, 2), (2, 1), (2, 3)]
        self.assertEqual(verify_moves(board, neighbours, 4), neighbours)


if __name__ == "__main__":
    unittest.main()
