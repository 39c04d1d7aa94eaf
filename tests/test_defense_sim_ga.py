import random
import unittest

from salvo.domain.config import FitnessWeights
from salvo.domain.errors import PlacementInfeasibleError
from salvo.layouts.cache import DEFAULT_PLACEMENT_CACHE
from salvo.layouts.placements import is_valid_fleet
from salvo.sim.defense_sim import (
    crossover,
    fitness,
    mutate,
    random_individual,
    recommend_layout_ga,
    stealth,
)


class DefenseSimGATests(unittest.TestCase):
    def test_ga_returns_valid_layout(self):
        cases = [
            (10, [5, 4, 3, 3, 2]),
            (8, [4, 3, 2, 2]),
            (12, [5, 4, 4, 3, 3, 3, 2, 2]),
        ]
        for board_size, lengths in cases:
            for seed in range(3):
                result = recommend_layout_ga(
                    board_size,
                    lengths,
                    rng_seed=seed,
                    generations=3,
                    population_size=8,
                )
                self.assertTrue(is_valid_fleet(board_size, lengths, result.placements))
                self.assertEqual(sorted(p.length for p in result.placements), sorted(lengths))

                mask = result.union_mask()
                self.assertEqual(bin(mask).count("1"), sum(lengths))
                self.assertGreaterEqual(result.fitness, 0.0)
                self.assertLessEqual(result.fitness, 1.0)
                for name, value in result.terms.items():
                    self.assertGreaterEqual(value, 0.0, name)
                    self.assertLessEqual(value, 1.0, name)

    def test_same_seed_gives_same_layout(self):
        a = recommend_layout_ga(10, [5, 4, 3, 3, 2], rng_seed=11, generations=2, population_size=6)
        b = recommend_layout_ga(10, [5, 4, 3, 3, 2], rng_seed=11, generations=2, population_size=6)
        self.assertEqual(a.ships(), b.ships())

    def test_unseatable_fleet_raises(self):
        with self.assertRaises(PlacementInfeasibleError) as ctx:
            recommend_layout_ga(3, [3, 3, 3], rng_seed=0, generations=1, population_size=2, layout_restarts=3)
        self.assertEqual(ctx.exception.board_size, 3)
        with self.assertRaises(PlacementInfeasibleError):
            recommend_layout_ga(4, [5], rng_seed=0)

    def test_operators_keep_layouts_valid(self):
        rng = random.Random(5)
        lengths = [5, 4, 3, 3, 2]
        for _ in range(20):
            a = random_individual(10, lengths, rng)
            b = random_individual(10, lengths, rng)
            child = crossover(a, b, 10, rng)
            if child is not None:
                self.assertTrue(is_valid_fleet(10, lengths, child))
            self.assertTrue(is_valid_fleet(10, lengths, mutate(a, 10, rng)))

    def test_stealth_rewards_avoiding_the_lattice(self):
        # Ships on odd rows never sit on the step-2 lattice.
        row1 = next(p for p in DEFAULT_PLACEMENT_CACHE.get(10, 3) if (p.x, p.y) == (0, 1) and p.length == 3)
        row0 = next(p for p in DEFAULT_PLACEMENT_CACHE.get(10, 3) if (p.x, p.y) == (0, 0) and p.cells[1] == (1, 0))
        self.assertEqual(stealth((row1,), 10), 1.0)
        self.assertLess(stealth((row0,), 10), 1.0)

    def test_fitness_is_weighted_sum_of_terms(self):
        individual = random_individual(10, [3, 2], random.Random(2))
        weights = FitnessWeights(parity=1.0, ambiguity=0.0, balance=0.0, stealth=0.0, orientation=0.0)
        score, terms = fitness(individual, 10, weights)
        self.assertAlmostEqual(score, terms["parity"])


if __name__ == "__main__":
    unittest.main()
