import random
import unittest

import numpy as np

from salvo.domain.board import Board
from salvo.domain.types import CellState
from salvo.strategies.targeting import (
    hit_extent,
    opening_candidates,
    opening_move,
    rebuild_queue,
    surrounding_unknown,
)


class OpeningTests(unittest.TestCase):
    def test_even_board_uses_central_block(self):
        self.assertEqual(opening_candidates(10), [(4, 4), (5, 4), (4, 5), (5, 5)])

    def test_odd_board_uses_centre_neighbours(self):
        self.assertEqual(opening_candidates(9), [(4, 3), (3, 4), (5, 4), (4, 5)])

    def test_tiny_board_uses_every_cell(self):
        self.assertEqual(opening_candidates(2), [(0, 0), (1, 0), (0, 1), (1, 1)])
        self.assertIn(opening_move(10, random.Random(3)), opening_candidates(10))


class QueueTests(unittest.TestCase):
    def test_single_hit_queues_neighbours(self):
        board = Board(10)
        board.set(0, 0, CellState.HIT)
        self.assertEqual(rebuild_queue(board, [(0, 0)]), [(1, 0), (0, 1)])

    def test_scores_order_neighbours(self):
        board = Board(5)
        board.set(2, 2, CellState.HIT)
        scores = np.zeros((5, 5))
        scores[3, 2] = 9.0
        self.assertEqual(rebuild_queue(board, [(2, 2)], scores)[0], (2, 3))

    def test_colinear_hits_queue_the_line_only(self):
        board = Board(10)
        board.set(3, 3, CellState.HIT)
        board.set(4, 3, CellState.HIT)
        self.assertEqual(rebuild_queue(board, [(3, 3), (4, 3)]), [(2, 3), (5, 3)])

    def test_gaps_come_before_extensions(self):
        board = Board(10)
        board.set(5, 1, CellState.HIT)
        board.set(5, 3, CellState.HIT)
        board.set(5, 0, CellState.MISS)
        self.assertEqual(rebuild_queue(board, [(5, 1), (5, 3)]), [(5, 2), (5, 4)])

    def test_resolved_hits_are_ignored(self):
        board = Board(4)
        board.set(1, 1, CellState.SUNK)
        self.assertEqual(rebuild_queue(board, [(1, 1)]), [])


class ExtentTests(unittest.TestCase):
    def test_hit_extent_and_surroundings(self):
        board = Board(5)
        board.set(0, 0, CellState.HIT)
        board.set(1, 0, CellState.HIT)
        board.set(3, 3, CellState.HIT)
        self.assertEqual(hit_extent(board, 1, 0), [(0, 0), (1, 0)])
        self.assertEqual(hit_extent(board, 2, 2), [])
        self.assertEqual(
            surrounding_unknown(board, [(0, 0), (1, 0)]),
            [(2, 0), (0, 1), (1, 1), (2, 1)],
        )


if __name__ == "__main__":
    unittest.main()
