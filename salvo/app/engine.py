import numbers
import random
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from salvo.domain.board import Board
from salvo.domain.config import EngineConfig, check_params
from salvo.domain.ensemble import Ensemble
from salvo.domain.errors import EngineError, InconsistentOutcomeError, InvalidCoordinateError, PlacementInfeasibleError
from salvo.domain.fleet import FleetLedger, OwnFleet
from salvo.domain.phase import PHASE_TARGET, TargetingState
from salvo.domain.profile import OpponentProfile
from salvo.domain.types import CellState, CellUpdate, Coord, Move, Outcome, OutcomeReport, StrikeReport
from salvo.layouts.builtins import fleet_from_lengths
from salvo.layouts.validation import validate_fleet
from salvo.sim.defense_sim import recommend_layout_ga
from salvo.strategies.deduction import dead_cells, find_guaranteed_hit
from salvo.strategies.density import density_map
from salvo.strategies.selection import HuntContext, rank_hunt_cells
from salvo.strategies.tactics import TacticalController
from salvo.strategies.targeting import hit_extent, opening_candidates, rebuild_queue, surrounding_unknown
from salvo.strategies.verification import verify_moves
from salvo.utils.debug import debug_event, get_logger

log = get_logger("engine")


@dataclass
class EngineSnapshot:
    """Value copy of everything one match owns."""

    board: Board
    ledger: FleetLedger
    targeting: TargetingState
    ensemble: Ensemble
    tactics: TacticalController
    own_fleet: OwnFleet
    profile: OpponentProfile
    rng_state: object
    game_over: bool
    won: bool


class Engine:
    """Decision engine for one match at a time.

    Owns the opponent board, the fleet ledger, the targeting state, the
    ensemble, the tactical controller, its own fleet and the RNG. The
    opponent profile outlives matches and is exchanged as a plain dict.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.rng = random.Random(self.config.seed)
        self.profile = OpponentProfile()
        self.board: Optional[Board] = None
        self.ledger: Optional[FleetLedger] = None
        self.targeting = TargetingState()
        self.ensemble: Optional[Ensemble] = None
        self.tactics = self._new_tactics()
        self.own_fleet: Optional[OwnFleet] = None
        self.game_over = False
        self.won = False
        self.params: Dict[str, float] = {}

    def _new_tactics(self) -> TacticalController:
        cfg = self.config
        return TacticalController(cfg.tactical_window, cfg.advantage_threshold, cfg.high_hit_rate, cfg.low_hit_rate)

    # ------------------------------------------------------------------
    # match lifecycle

    def new_match(self, board_size: int, ship_lengths: Sequence[int]) -> List[int]:
        """Start a match and return the own-fleet grid as flat row-major 0/1 values."""
        cfg = self.config
        fleet = fleet_from_lengths(board_size, ship_lengths)
        errors = validate_fleet(fleet)
        if errors:
            raise PlacementInfeasibleError("; ".join(errors), board_size, ship_lengths)
        lengths = fleet.lengths()
        self.params = check_params(cfg.hunt_strategy, cfg.strategy_params)

        self.board = Board(board_size)
        self.ledger = FleetLedger(lengths)
        self.targeting = TargetingState()
        self.tactics = self._new_tactics()
        self.game_over = False
        self.won = False

        self.ensemble = Ensemble.generate(
            board_size,
            lengths,
            self.rng,
            target=cfg.ensemble_target,
            attempt_factor=cfg.ensemble_attempt_factor,
        )
        if self.ensemble.is_exhausted():
            debug_event("Ensemble exhausted", "no layouts sampled at match start", level="warning", source=log)

        layout = recommend_layout_ga(
            board_size,
            lengths,
            generations=cfg.ga_generations,
            population_size=cfg.ga_population,
            elite_fraction=cfg.ga_elite_fraction,
            tournament_size=cfg.ga_tournament_size,
            mutation_rate=cfg.ga_mutation_rate,
            weights=cfg.fitness_weights,
            repair_retries=cfg.ga_repair_retries,
            layout_restarts=cfg.ga_layout_restarts,
            rng=self.rng,
        )
        self.own_fleet = OwnFleet.from_cells(board_size, layout.ships(), cfg.middle_segment_sinks_three)
        self.profile.matches += 1

        debug_event(
            "Match start",
            f"{board_size}x{board_size}, fleet {list(lengths)}",
            details=f"ensemble: {len(self.ensemble)} layouts\nstrategy: {cfg.hunt_strategy}",
            source=log,
        )
        return self.own_fleet.flat_grid()

    def _require_match(self) -> Board:
        if self.board is None:
            raise InvalidCoordinateError("no match in progress; call new_match first")
        return self.board

    def _check_coord(self, x: int, y: int) -> None:
        board = self._require_match()
        if not isinstance(x, numbers.Integral) or not isinstance(y, numbers.Integral) or not board.in_bounds(x, y):
            raise InvalidCoordinateError(f"coordinate ({x!r}, {y!r}) is outside the {board.size}x{board.size} board")

    # ------------------------------------------------------------------
    # attacking

    def _prior(self):
        if self.profile.ships_observed <= 0:
            return None, None
        strength = self.config.profile_strength
        return self.profile.cell_prior(self.board.size, strength), self.profile.orientation_weights(strength)

    def _density(self):
        prior, orient = self._prior()
        return density_map(self.board, self.ledger, self.config.parity_damping, prior, orient)

    def next_move(self) -> Move:
        board = self._require_match()
        if self.game_over:
            raise EngineError("the match is over")
        unknown = board.unknown_cells()
        if not unknown:
            raise EngineError("no unknown cells left to shoot")
        n_alt = max(0, self.config.alternates)

        if self.targeting.mode == PHASE_TARGET:
            if self.targeting.queue:
                queue = verify_moves(board, self.targeting.queue, self.config.verify_top_k)
                x, y = queue[0]
                return Move(x, y, False, tuple(queue[1 : 1 + n_alt]), "target")
            debug_event("Target queue empty", "no sunk confirmation; re-entering HUNT", source=log)
            self.targeting.enter_hunt()

        if not self.targeting.opened:
            candidates = [c for c in opening_candidates(board.size) if board.get(c[0], c[1]) is CellState.UNKNOWN]
            if candidates:
                x, y = self.rng.choice(candidates)
                others = tuple(c for c in candidates if c != (x, y))[:n_alt]
                return Move(x, y, False, others, "opening")

        guaranteed = find_guaranteed_hit(board, self.ledger)
        if guaranteed is not None:
            debug_event("Deduction", f"guaranteed hit at {guaranteed}", source=log)
            return Move(guaranteed[0], guaranteed[1], True, (), "deduction")

        mode = self.tactics.update(self.own_fleet.ships_left_ratio(), self.ledger.ships_left_ratio())
        prior, orient = self._prior()
        ctx = HuntContext(
            board=board,
            ledger=self.ledger,
            rng=self.rng,
            ensemble=self.ensemble,
            budget=self.config.budget_for(mode),
            ceiling_seconds=self.config.search_ceiling_seconds,
            parity_damping=self.config.parity_damping,
            prior=prior,
            orientation_weights=orient,
            params=self.params,
        )
        ranked, source = rank_hunt_cells(self.config.hunt_strategy, ctx)
        if not ranked:
            ranked = unknown
        ranked = verify_moves(board, ranked, self.config.verify_top_k)
        x, y = ranked[0]
        return Move(x, y, False, tuple(ranked[1 : 1 + n_alt]), source)

    def _rebuild_queue(self) -> None:
        self.targeting.queue = rebuild_queue(self.board, self.targeting.current_hits, self._density())

    def _mark(self, updates: Dict[Coord, CellState], x: int, y: int, state: CellState) -> None:
        self.board.set(x, y, state)
        updates[(x, y)] = state

    def _filter_ensemble(self, x: int, y: int, is_ship: bool) -> None:
        was_empty = self.ensemble.is_exhausted()
        self.ensemble.filter(x, y, is_ship)
        if not was_empty and self.ensemble.is_exhausted():
            debug_event(
                "Ensemble exhausted",
                f"no sampled layout agrees with the evidence at ({x}, {y})",
                details=f"evidence items: {len(self.ensemble.evidence)}",
                level="info",
                source=log,
            )

    @staticmethod
    def _report(updates: Dict[Coord, CellState]) -> List[CellUpdate]:
        return [CellUpdate(x, y, s) for (x, y), s in updates.items()]

    def apply_outcome(self, x: int, y: int, outcome) -> OutcomeReport:
        """Record the opponent's answer to a shot at (x, y)."""
        self._check_coord(x, y)
        if self.game_over:
            raise EngineError("the match is over")
        outcome = Outcome.parse(outcome)
        board = self.board
        state = board.get(x, y)
        if state in (CellState.MISS, CellState.SUNK) or (state is CellState.HIT and outcome is Outcome.MISS):
            raise InvalidCoordinateError(f"cell ({x}, {y}) is already resolved as {state.value}")

        updates: Dict[Coord, CellState] = OrderedDict()
        self.targeting.opened = True
        is_ship = outcome is not Outcome.MISS
        if state is not CellState.HIT:
            self.tactics.record(is_ship)
            self._filter_ensemble(x, y, is_ship)

        if outcome is Outcome.MISS:
            self._mark(updates, x, y, CellState.MISS)
            if self.targeting.mode == PHASE_TARGET:
                self._rebuild_queue()
        elif outcome is Outcome.HIT:
            self._mark(updates, x, y, CellState.HIT)
            if (x, y) not in self.targeting.current_hits:
                self.targeting.current_hits.append((x, y))
            self.targeting.mode = PHASE_TARGET
            self._rebuild_queue()
        else:
            self._mark(updates, x, y, CellState.HIT)
            extent = hit_extent(board, x, y)
            length = len(extent)
            if not self.ledger.has(length):
                if (x, y) not in self.targeting.current_hits:
                    self.targeting.current_hits.append((x, y))
                self.targeting.mode = PHASE_TARGET
                self._rebuild_queue()
                report = self._report(updates)
                debug_event(
                    "Inconsistent outcome",
                    f"sunk ship of length {length} reported at ({x}, {y})",
                    details=f"remaining: {self.ledger.remaining_lengths()}\ncells: {extent}",
                    level="warning",
                    source=log,
                )
                raise InconsistentOutcomeError(length, extent, self.ledger.remaining_lengths(), report)

            for cx, cy in extent:
                self._mark(updates, cx, cy, CellState.SUNK)
            self.ledger.confirm_sunk(length)
            for cx, cy in surrounding_unknown(board, extent):
                self._mark(updates, cx, cy, CellState.MISS)
                self._filter_ensemble(cx, cy, False)
            self.profile.observe_ship(extent, board.size, self.config.profile_learning_rate)

            leftover = [h for h in self.targeting.current_hits if board.get(h[0], h[1]) is CellState.HIT]
            if leftover:
                self.targeting.current_hits = leftover
                self.targeting.mode = PHASE_TARGET
                self._rebuild_queue()
            else:
                self.targeting.enter_hunt()

        if not self.ledger.all_sunk():
            for cx, cy in dead_cells(board, self.ledger):
                self._mark(updates, cx, cy, CellState.WATER)
                self._filter_ensemble(cx, cy, False)
            if self.targeting.mode == PHASE_TARGET:
                self._rebuild_queue()
        else:
            self.game_over = True
            self.won = True
            self.targeting.enter_hunt()

        return OutcomeReport(tuple(self._report(updates)), self.game_over, self.won)

    # ------------------------------------------------------------------
    # defending

    def apply_strike_on_own_board(self, x: int, y: int) -> StrikeReport:
        self._check_coord(x, y)
        report = self.own_fleet.strike(x, y)
        if report.game_over and not self.game_over:
            self.game_over = True
            self.won = False
            debug_event("Match lost", "own fleet destroyed", source=log)
        return report

    # ------------------------------------------------------------------
    # profile

    def get_opponent_profile(self) -> dict:
        return self.profile.to_dict()

    def load_opponent_profile(self, data) -> None:
        self.profile.merge(OpponentProfile.from_dict(data), self.config.profile_blend)

    # ------------------------------------------------------------------
    # undo

    def snapshot(self) -> EngineSnapshot:
        self._require_match()
        return EngineSnapshot(
            board=self.board.copy(),
            ledger=self.ledger.copy(),
            targeting=self.targeting.copy(),
            ensemble=self.ensemble.copy(),
            tactics=self.tactics.copy(),
            own_fleet=self.own_fleet.copy(),
            profile=self.profile.copy(),
            rng_state=self.rng.getstate(),
            game_over=self.game_over,
            won=self.won,
        )

    def restore(self, snapshot: EngineSnapshot) -> None:
        self.board = snapshot.board.copy()
        self.ledger = snapshot.ledger.copy()
        self.targeting = snapshot.targeting.copy()
        self.ensemble = snapshot.ensemble.copy()
        self.tactics = snapshot.tactics.copy()
        self.own_fleet = snapshot.own_fleet.copy()
        self.profile = snapshot.profile.copy()
        self.rng.setstate(snapshot.rng_state)
        self.game_over = snapshot.game_over
        self.won = snapshot.won

    # ------------------------------------------------------------------
    # read-only helpers

    def opponent_grid(self) -> List[List[str]]:
        board = self._require_match()
        return [[cell.value for cell in row] for row in board.grid]

    def own_grid(self) -> List[List[str]]:
        self._require_match()
        board = self.own_fleet.board
        out = []
        for y in range(board.size):
            row = []
            for x in range(board.size):
                state = board.get(x, y)
                if state is CellState.WATER and board.ship_at(x, y) is not None:
                    row.append("ship")
                else:
                    row.append(state.value)
            out.append(row)
        return out

    def remaining_ships(self) -> List[int]:
        self._require_match()
        return self.ledger.remaining_lengths()

    @property
    def mode(self) -> str:
        return self.targeting.mode

    @property
    def tactical_mode(self) -> str:
        return self.tactics.mode
