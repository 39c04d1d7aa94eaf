import os
from dataclasses import dataclass, field, replace
from typing import Dict, Optional

# Match defaults (classic fleet)
BOARD_SIZE = 10
SHIP_LENGTHS = (5, 4, 3, 3, 2)

ENSEMBLE_TARGET = 1500
ENSEMBLE_ATTEMPT_FACTOR = 8

# Cells off the smallest-ship lattice keep this fraction of their score.
PARITY_DAMPING = 0.1

UCB_C = 2 ** 0.5
ROLLOUT_DEPTH_FRACTION = 0.3

MODE_AGGRESSIVE = "aggressive"
MODE_BALANCED = "balanced"
MODE_CAUTIOUS = "cautious"


@dataclass(frozen=True)
class SearchBudget:
    iterations: int
    seconds: Optional[float]
    cautious: bool = False


@dataclass(frozen=True)
class FitnessWeights:
    parity: float = 0.35
    ambiguity: float = 0.25
    balance: float = 0.20
    stealth: float = 0.10
    orientation: float = 0.10


def _default_budgets() -> Dict[str, SearchBudget]:
    return {
        MODE_AGGRESSIVE: SearchBudget(iterations=120, seconds=0.25, cautious=False),
        MODE_BALANCED: SearchBudget(iterations=240, seconds=0.5, cautious=False),
        MODE_CAUTIOUS: SearchBudget(iterations=400, seconds=0.9, cautious=True),
    }


@dataclass(frozen=True)
class EngineConfig:
    hunt_strategy: str = "mcts"
    alternates: int = 3
    parity_damping: float = PARITY_DAMPING
    # Per-strategy tunables, keyed as in PARAM_SPECS.
    strategy_params: Dict[str, float] = field(default_factory=dict)

    ensemble_target: int = ENSEMBLE_TARGET
    ensemble_attempt_factor: int = ENSEMBLE_ATTEMPT_FACTOR

    search_budgets: Dict[str, SearchBudget] = field(default_factory=_default_budgets)
    # Applies regardless of tactical mode.
    search_ceiling_seconds: float = 2.0
    # When set, budgets are iteration counts only (reproducible planning).
    deterministic_search: bool = False

    ga_generations: int = 30
    ga_population: int = 40
    ga_elite_fraction: float = 0.1
    ga_tournament_size: int = 5
    ga_mutation_rate: float = 0.1
    ga_repair_retries: int = 25
    ga_layout_restarts: int = 200
    fitness_weights: FitnessWeights = field(default_factory=FitnessWeights)

    tactical_window: int = 10
    advantage_threshold: float = 0.25
    high_hit_rate: float = 0.5
    low_hit_rate: float = 0.15

    profile_learning_rate: float = 0.2
    profile_blend: float = 0.7
    profile_strength: float = 0.5

    # Re-check this many leading candidates with a contiguity look-ahead; below 2 disables it.
    verify_top_k: int = 0

    # Own-board rule variant: a length-3 ship sinks when its middle segment is struck.
    middle_segment_sinks_three: bool = False

    seed: Optional[int] = None

    def budget_for(self, mode: str) -> SearchBudget:
        budget = self.search_budgets.get(mode) or self.search_budgets[MODE_BALANCED]
        if self.deterministic_search:
            return replace(budget, seconds=None)
        return budget

    @classmethod
    def from_env(cls, **overrides) -> "EngineConfig":
        values = {
            "hunt_strategy": os.getenv("SALVO_STRATEGY", cls.hunt_strategy),
            "ensemble_target": _env_int("SALVO_ENSEMBLE", cls.ensemble_target),
            "ga_generations": _env_int("SALVO_GA_GENERATIONS", cls.ga_generations),
            "ga_population": _env_int("SALVO_GA_POPULATION", cls.ga_population),
            "deterministic_search": _env_flag("SALVO_DETERMINISTIC", cls.deterministic_search),
            "middle_segment_sinks_three": _env_flag("SALVO_MIDDLE_SINKS", cls.middle_segment_sinks_three),
            "search_ceiling_seconds": _env_float("SALVO_SEARCH_CEILING", cls.search_ceiling_seconds),
        }
        seed = os.getenv("SALVO_SEED")
        if seed is not None:
            try:
                values["seed"] = int(seed.strip())
            except ValueError:
                pass
        values.update(overrides)
        return cls(**values)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return str(raw).strip().lower() not in {"0", "false", "no", "off"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
        return value if value > 0 else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(str(raw).strip())
        return value if value > 0 else default
    except ValueError:
        return default


# Tunables surfaced to hosts and the strategy harness.
PARAM_SPECS = {
    "density": [
        {"key": "parity_damping", "label": "Parity damping", "default": PARITY_DAMPING, "min": 0.0, "max": 1.0, "step": 0.05}
    ],
    "mcts": [
        {"key": "iterations", "label": "Iterations", "default": 240, "min": 10, "max": 5000, "step": 10},
        {"key": "ucb_c", "label": "Exploration (C)", "default": UCB_C, "min": 0.1, "max": 3.0, "step": 0.1},
        {"key": "rollout_depth", "label": "Rollout depth (fraction of unknown)", "default": ROLLOUT_DEPTH_FRACTION, "min": 0.05, "max": 1.0, "step": 0.05},
    ],
    "minimax": [],
    "entropy": [],
}


def check_params(strategy: str, params: Dict[str, float]) -> Dict[str, float]:
    """Validate tunable overrides for ``strategy`` against ``PARAM_SPECS``.

    Unknown keys and non-numeric values raise ``ValueError``; values
    outside the declared range are clamped to it.
    """
    specs = {str(p["key"]): p for p in PARAM_SPECS.get(strategy, [])}
    cleaned: Dict[str, float] = {}
    for key, raw in (params or {}).items():
        spec = specs.get(key)
        if spec is None:
            known = ", ".join(sorted(specs)) or "none"
            raise ValueError(f"unknown parameter '{key}' for strategy '{strategy}' (known: {known})")
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise ValueError(f"parameter '{key}' must be a number, got {raw!r}") from None
        value = max(float(spec["min"]), min(float(spec["max"]), value))
        cleaned[key] = int(round(value)) if isinstance(spec["default"], int) else value
    return cleaned
