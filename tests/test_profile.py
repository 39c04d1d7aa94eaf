import json
import math
import unittest

import numpy as np

from salvo.domain.profile import OpponentProfile, cell_region
from salvo.domain.types import Orientation


class RegionTests(unittest.TestCase):
    def test_cell_regions(self):
        self.assertEqual(cell_region(0, 0, 10), "corner")
        self.assertEqual(cell_region(1, 8, 10), "corner")
        self.assertEqual(cell_region(5, 0, 10), "edge")
        self.assertEqual(cell_region(5, 5, 10), "center")
        self.assertEqual(cell_region(2, 5, 10), "center")
        self.assertIsNone(cell_region(1, 5, 10))


class OpponentProfileTests(unittest.TestCase):
    def test_observing_an_edge_ship(self):
        profile = OpponentProfile()
        profile.observe_ship([(3, 0), (4, 0), (5, 0)], 10, learning_rate=0.2)
        self.assertAlmostEqual(profile.placement_bias["edge"], 0.8 / 3.0 + 0.2)
        self.assertAlmostEqual(profile.placement_bias["center"], 0.8 / 3.0)
        self.assertAlmostEqual(profile.orientation_bias["vertical"], 0.4)
        self.assertAlmostEqual(profile.orientation_bias["horizontal"], 0.6)
        self.assertEqual(profile.ships_observed, 1)

    def test_dict_round_trip(self):
        profile = OpponentProfile()
        profile.observe_ship([(0, 0), (0, 1)], 10)
        profile.matches = 3
        blob = json.loads(json.dumps(profile.to_dict()))
        self.assertEqual(OpponentProfile.from_dict(blob), profile)

    def test_from_dict_tolerates_garbage(self):
        self.assertEqual(OpponentProfile.from_dict(None), OpponentProfile())
        profile = OpponentProfile.from_dict(
            {
                "placementBias": {"edge": "x", "corner": 5, "center": float("nan")},
                "orientationBias": {"vertical": -2},
                "shipsObserved": -3,
                "matches": "many",
            }
        )
        self.assertAlmostEqual(profile.placement_bias["edge"], 1.0 / 3.0)
        self.assertEqual(profile.placement_bias["corner"], 1.0)
        self.assertAlmostEqual(profile.placement_bias["center"], 1.0 / 3.0)
        self.assertEqual(profile.orientation_bias, {"vertical": 0.0, "horizontal": 1.0})
        self.assertEqual(profile.ships_observed, 0)
        self.assertEqual(profile.matches, 0)
        for value in profile.placement_bias.values():
            self.assertFalse(math.isnan(value))

    def test_fresh_profile_adopts_merged_profile(self):
        learned = OpponentProfile()
        learned.observe_ship([(3, 0), (4, 0)], 10)
        learned.matches = 2

        fresh = OpponentProfile()
        fresh.merge(learned, weight=0.7)
        self.assertEqual(fresh.placement_bias, learned.placement_bias)
        self.assertEqual(fresh.ships_observed, 1)
        self.assertEqual(fresh.matches, 2)

    def test_merge_blends_with_weight(self):
        own = OpponentProfile()
        own.observe_ship([(5, 5), (5, 6)], 10)
        other = OpponentProfile()
        other.observe_ship([(3, 0), (4, 0)], 10)

        before = own.placement_bias["edge"]
        own.merge(other, weight=0.7)
        expected = 0.3 * before + 0.7 * other.placement_bias["edge"]
        self.assertAlmostEqual(own.placement_bias["edge"], expected)
        self.assertEqual(own.ships_observed, 2)

    def test_cell_prior(self):
        neutral = OpponentProfile().cell_prior(10)
        self.assertTrue(np.allclose(neutral, 1.0))

        profile = OpponentProfile()
        for _ in range(5):
            profile.observe_ship([(3, 0), (4, 0), (5, 0)], 10, learning_rate=0.5)
        prior = profile.cell_prior(10, strength=0.5)
        self.assertGreater(prior[0, 5], 1.0)
        self.assertLess(prior[5, 5], 1.0)
        self.assertEqual(prior[5, 1], 1.0)

        weights = profile.orientation_weights(0.5)
        self.assertGreater(weights[Orientation.HORIZONTAL], weights[Orientation.VERTICAL])


if __name__ == "__main__":
    unittest.main()
