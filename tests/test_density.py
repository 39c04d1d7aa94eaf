import unittest

import numpy as np

from salvo.domain.board import Board
from salvo.domain.fleet import FleetLedger
from salvo.domain.types import CellState, Orientation
from salvo.strategies.density import density_map, parity_mask, ranked_cells


class DensityMapTests(unittest.TestCase):
    def test_counts_placements_with_parity_damping(self):
        board = Board(10)
        scores = density_map(board, FleetLedger([2]), parity_damping=0.1)
        # (0, 0): one horizontal and one vertical placement, on the lattice
        self.assertAlmostEqual(scores[0, 0], 2.0)
        # (1, 0): two horizontal plus one vertical, off the lattice
        self.assertAlmostEqual(scores[0, 1], 0.3)

    def test_total_mass_without_damping(self):
        board = Board(10)
        scores = density_map(board, FleetLedger([3]), parity_damping=1.0)
        # 2 orientations * 10 lines * 8 anchors, 3 cells each
        self.assertAlmostEqual(float(scores.sum()), 480.0)

    def test_resolved_cells_score_zero_and_block(self):
        board = Board(10)
        board.set(5, 5, CellState.MISS)
        board.set(0, 9, CellState.HIT)
        scores = density_map(board, FleetLedger([2]), parity_damping=1.0)
        self.assertEqual(scores[5, 5], 0.0)
        self.assertEqual(scores[9, 0], 0.0)
        self.assertAlmostEqual(scores[5, 4], 3.0)

    def test_prior_and_orientation_weights_scale_scores(self):
        board = Board(6)
        prior = np.ones((6, 6))
        prior[0, 0] = 2.0
        scores = density_map(board, FleetLedger([2]), parity_damping=1.0, prior=prior)
        self.assertAlmostEqual(scores[0, 0], 4.0)

        weights = {Orientation.HORIZONTAL: 1.0, Orientation.VERTICAL: 0.0}
        scores = density_map(board, FleetLedger([2]), parity_damping=1.0, orientation_weights=weights)
        self.assertAlmostEqual(scores[0, 0], 1.0)

    def test_parity_mask(self):
        mask = parity_mask(4, 2)
        self.assertTrue(mask[0, 0])
        self.assertFalse(mask[0, 1])
        self.assertEqual(int(mask.sum()), 8)


class RankedCellsTests(unittest.TestCase):
    def test_ties_break_on_flat_index(self):
        board = Board(4)
        board.set(1, 0, CellState.MISS)
        scores = density_map(board, FleetLedger([1]))
        self.assertEqual(ranked_cells(scores, board)[:3], [(0, 0), (2, 0), (3, 0)])

    def test_positive_only_and_reverse(self):
        board = Board(3)
        scores = np.zeros((3, 3))
        scores[1, 1] = 5.0
        scores[2, 0] = 1.0
        self.assertEqual(ranked_cells(scores, board, positive_only=True), [(1, 1), (0, 2)])
        self.assertEqual(ranked_cells(scores, board, reverse=True)[-1], (1, 1))


if __name__ == "__main__":
    unittest.main()
