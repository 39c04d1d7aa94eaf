import random

from salvo.domain.config import EngineConfig, SearchBudget
from salvo.sim.attack_sim import simulate_engine_game


def main() -> None:
    budget = SearchBudget(iterations=20, seconds=None)
    config = EngineConfig(
        ensemble_target=100,
        ga_generations=2,
        ga_population=6,
        search_budgets={"aggressive": budget, "balanced": budget, "cautious": budget},
        deterministic_search=True,
        seed=0,
    )
    stats = simulate_engine_game(6, (3, 2), config, rng=random.Random(0))
    print(f"Smoke OK: shots={stats.shots} won={stats.won}")


if __name__ == "__main__":
    main()
