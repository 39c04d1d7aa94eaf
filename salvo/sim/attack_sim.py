import random
import time
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple

from salvo.app.engine import Engine
from salvo.domain.config import EngineConfig
from salvo.domain.errors import InconsistentOutcomeError, PlacementInfeasibleError
from salvo.domain.types import Coord, Outcome, StrikeReport
from salvo.layouts.placements import LayoutPlacement, random_fleet
from salvo.utils.debug import debug_event, get_logger

log = get_logger("attack")


class SimProfiler:
    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.games = 0
        self.shots = 0
        self.setup_time = 0.0
        self.decision_time = 0.0
        self.outcome_time = 0.0

    def record_setup(self, dt: float) -> None:
        self.setup_time += float(dt)

    def record_decision(self, dt: float) -> None:
        self.decision_time += float(dt)

    def record_outcome(self, dt: float) -> None:
        self.outcome_time += float(dt)

    def record_shot(self) -> None:
        self.shots += 1

    def record_game(self) -> None:
        self.games += 1

    def format_summary(self, label: str) -> str:
        games = max(1, self.games)
        shots = max(1, self.shots)
        return (
            f"[SIM_PROFILE] {label}\n"
            f"  games={self.games} shots={self.shots} ({self.shots / games:.1f}/game)\n"
            f"  setup_time={self.setup_time / games:.4f}s/game\n"
            f"  decision_time={self.decision_time:.4f}s ({self.decision_time / shots:.6f}s/shot)\n"
            f"  outcome_time={self.outcome_time:.4f}s ({self.outcome_time / shots:.6f}s/shot)"
        )


class Referee:
    """Holds a hidden fleet and answers shots against it."""

    def __init__(self, board_size: int, placements: Sequence[LayoutPlacement]):
        self.board_size = board_size
        self.placements = list(placements)
        self.cell_to_ship: Dict[Coord, int] = {}
        for i, p in enumerate(self.placements):
            for c in p.cells:
                self.cell_to_ship[c] = i
        self.remaining = [set(p.cells) for p in self.placements]
        self.shot: set = set()

    @classmethod
    def random(cls, board_size: int, lengths: Sequence[int], rng: random.Random, tries: int = 200) -> "Referee":
        for _ in range(tries):
            fleet = random_fleet(board_size, lengths, rng)
            if fleet is not None:
                return cls(board_size, fleet)
        raise PlacementInfeasibleError("referee could not seat the fleet", board_size, lengths)

    def answer(self, x: int, y: int) -> Outcome:
        self.shot.add((x, y))
        ship = self.cell_to_ship.get((x, y))
        if ship is None:
            return Outcome.MISS
        self.remaining[ship].discard((x, y))
        return Outcome.SUNK if not self.remaining[ship] else Outcome.HIT

    def all_sunk(self) -> bool:
        return all(not cells for cells in self.remaining)


@dataclass
class GameStats:
    shots: int = 0
    hits: int = 0
    won: bool = False
    sources: Dict[str, int] = field(default_factory=dict)


def simulate_engine_game(
    board_size: int,
    lengths: Sequence[int],
    config: Optional[EngineConfig] = None,
    rng: Optional[random.Random] = None,
    max_shots: Optional[int] = None,
    profiler: Optional[SimProfiler] = None,
) -> GameStats:
    """Let one engine hunt a random hidden fleet until it is destroyed."""
    if rng is None:
        rng = random.Random()
    if max_shots is None:
        max_shots = board_size * board_size

    setup_start = time.perf_counter()
    engine = Engine(config)
    engine.new_match(board_size, lengths)
    referee = Referee.random(board_size, lengths, rng)
    if profiler is not None:
        profiler.record_setup(time.perf_counter() - setup_start)

    stats = GameStats()
    while stats.shots < max_shots and not engine.game_over:
        t0 = time.perf_counter()
        move = engine.next_move()
        t1 = time.perf_counter()
        outcome = referee.answer(move.x, move.y)
        engine.apply_outcome(move.x, move.y, outcome)
        t2 = time.perf_counter()

        stats.shots += 1
        if outcome is not Outcome.MISS:
            stats.hits += 1
        stats.sources[move.source] = stats.sources.get(move.source, 0) + 1
        if profiler is not None:
            profiler.record_decision(t1 - t0)
            profiler.record_outcome(t2 - t1)
            profiler.record_shot()

    stats.won = engine.won and referee.all_sunk()
    if profiler is not None:
        profiler.record_game()
    return stats


def _strike_outcome(report: StrikeReport) -> Outcome:
    if not report.hit:
        return Outcome.MISS
    if report.sunk_cells is not None:
        return Outcome.SUNK
    return Outcome.HIT


def simulate_duel(
    board_size: int,
    lengths: Sequence[int],
    config_a: Optional[EngineConfig] = None,
    config_b: Optional[EngineConfig] = None,
    max_turns: Optional[int] = None,
) -> Tuple[Optional[int], int]:
    """Two engines shoot at each other's optimised fleets, A first.

    Returns the winner (0 for A, 1 for B, None when the turn limit is hit)
    and the number of turns played.
    """
    engines = [Engine(config_a), Engine(config_b)]
    for engine in engines:
        engine.new_match(board_size, lengths)
    if max_turns is None:
        max_turns = 2 * board_size * board_size

    for turn in range(max_turns):
        attacker = engines[turn % 2]
        defender = engines[(turn + 1) % 2]
        move = attacker.next_move()
        report = defender.apply_strike_on_own_board(move.x, move.y)
        try:
            attacker.apply_outcome(move.x, move.y, _strike_outcome(report))
        except InconsistentOutcomeError as exc:
            # Rule variants can sink a ship before every segment is hit.
            debug_event("Duel", str(exc), level="debug", source=log)
        if report.game_over:
            return turn % 2, turn + 1
    return None, max_turns


def run_batch(
    strategy: str,
    games: int,
    board_size: int,
    lengths: Sequence[int],
    seed: int = 0,
    config: Optional[EngineConfig] = None,
    profiler: Optional[SimProfiler] = None,
) -> List[GameStats]:
    """Self-play ``games`` matches for one hunt strategy on fixed seeds."""
    base = config or EngineConfig()
    results: List[GameStats] = []
    for i in range(games):
        cfg = replace(base, hunt_strategy=strategy, seed=seed + i)
        rng = random.Random(10_000 + seed + i)
        results.append(simulate_engine_game(board_size, lengths, cfg, rng, profiler=profiler))
    return results
