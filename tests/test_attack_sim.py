import random
import unittest

from salvo.domain.config import EngineConfig, SearchBudget
from salvo.domain.types import Outcome
from salvo.layouts.cache import DEFAULT_PLACEMENT_CACHE
from salvo.sim.attack_sim import Referee, SimProfiler, run_batch, simulate_duel, simulate_engine_game


def quick_config(**overrides):
    budget = SearchBudget(iterations=20, seconds=None)
    values = dict(
        ensemble_target=100,
        ga_generations=2,
        ga_population=6,
        search_budgets={"aggressive": budget, "balanced": budget, "cautious": budget},
        deterministic_search=True,
        search_ceiling_seconds=60.0,
        seed=0,
    )
    values.update(overrides)
    return EngineConfig(**values)


class RefereeTests(unittest.TestCase):
    def test_answers_follow_the_hidden_fleet(self):
        ship = next(p for p in DEFAULT_PLACEMENT_CACHE.get(5, 2) if (p.x, p.y) == (1, 1))
        referee = Referee(5, [ship])
        first, second = ship.cells
        self.assertIs(referee.answer(4, 4), Outcome.MISS)
        self.assertIs(referee.answer(*first), Outcome.HIT)
        self.assertFalse(referee.all_sunk())
        self.assertIs(referee.answer(*second), Outcome.SUNK)
        self.assertTrue(referee.all_sunk())


class SelfPlayTests(unittest.TestCase):
    def test_engine_sinks_a_random_fleet(self):
        for strategy in ("density", "mcts"):
            profiler = SimProfiler()
            stats = simulate_engine_game(
                6,
                (3, 2),
                quick_config(hunt_strategy=strategy),
                rng=random.Random(3),
                profiler=profiler,
            )
            self.assertTrue(stats.won, strategy)
            self.assertEqual(stats.hits, 5)
            self.assertLessEqual(stats.shots, 36)
            self.assertEqual(profiler.shots, stats.shots)
            self.assertEqual(sum(stats.sources.values()), stats.shots)
            self.assertIn("[SIM_PROFILE]", profiler.format_summary(strategy))

    def test_batch_uses_one_seed_per_game(self):
        results = run_batch("density", 2, 6, (3, 2), seed=5, config=quick_config())
        self.assertEqual(len(results), 2)
        self.assertTrue(all(r.won for r in results))

    def test_duel_finishes(self):
        winner, turns = simulate_duel(6, (3, 2), quick_config(seed=1), quick_config(seed=2))
        self.assertIn(winner, (0, 1))
        self.assertLessEqual(turns, 72)


if __name__ == "__main__":
    unittest.main()
