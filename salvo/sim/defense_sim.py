import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from salvo.domain.config import FitnessWeights
from salvo.domain.errors import PlacementInfeasibleError
from salvo.domain.types import Coord, Orientation
from salvo.layouts.cache import DEFAULT_PLACEMENT_CACHE, PlacementCache
from salvo.layouts.placements import LayoutPlacement, is_valid_fleet, random_fleet
from salvo.utils.debug import debug_event, get_logger

log = get_logger("defense")

Individual = Tuple[LayoutPlacement, ...]

STEALTH_SHOTS = 15


@dataclass
class GAResult:
    placements: Individual
    fitness: float
    terms: Dict[str, float] = field(default_factory=dict)
    generations: int = 0

    def ships(self) -> List[Tuple[Coord, ...]]:
        return [p.cells for p in self.placements]

    def union_mask(self) -> int:
        m = 0
        for p in self.placements:
            m |= p.mask
        return m


def random_individual(
    board_size: int,
    lengths: Sequence[int],
    rng: random.Random,
    catalogue: PlacementCache = DEFAULT_PLACEMENT_CACHE,
    restarts: int = 200,
) -> Individual:
    """Greedy largest-first layout with bounded whole-layout restarts."""
    order = sorted((int(v) for v in lengths), reverse=True)
    for _ in range(max(1, restarts)):
        fleet = random_fleet(board_size, order, rng, order=order, catalogue=catalogue)
        if fleet is not None:
            return tuple(fleet)
    raise PlacementInfeasibleError(
        f"could not seat fleet {order} on a {board_size}x{board_size} board after {restarts} restarts",
        board_size,
        order,
    )


def _ship_cells(individual: Individual) -> List[Coord]:
    return [c for p in individual for c in p.cells]


def parity_resistance(individual: Individual, board_size: int) -> float:
    """Fraction of the board a checkerboard sweep covers before every ship is touched."""
    owner: Dict[Coord, int] = {}
    for i, p in enumerate(individual):
        for c in p.cells:
            owner[c] = i
    sweep = [(x, y) for y in range(board_size) for x in range(board_size) if (x + y) % 2 == 0]
    sweep += [(x, y) for y in range(board_size) for x in range(board_size) if (x + y) % 2 == 1]
    touched = set()
    for shots, cell in enumerate(sweep, start=1):
        ship = owner.get(cell)
        if ship is not None:
            touched.add(ship)
            if len(touched) == len(individual):
                return shots / float(board_size * board_size)
    return 1.0


def ambiguity(individual: Individual) -> float:
    """Share of ship cells with another ship in their distance-2 ring."""
    owner: Dict[Coord, int] = {}
    for i, p in enumerate(individual):
        for c in p.cells:
            owner[c] = i
    if not owner:
        return 0.0
    near = 0
    for (x, y), i in owner.items():
        found = False
        for dy in range(-2, 3):
            for dx in range(-2, 3):
                if max(abs(dx), abs(dy)) != 2:
                    continue
                j = owner.get((x + dx, y + dy))
                if j is not None and j != i:
                    found = True
                    break
            if found:
                break
        if found:
            near += 1
    return near / float(len(owner))


def balance(individual: Individual, board_size: int) -> float:
    """Centroid near the centre, ships spread out, even distances from the centroid."""
    cells = np.array(_ship_cells(individual), dtype=float)
    if cells.size == 0:
        return 0.0
    centre = np.array([(board_size - 1) / 2.0, (board_size - 1) / 2.0])
    max_dist = float(np.linalg.norm(centre)) or 1.0
    centroid = cells.mean(axis=0)
    proximity = 1.0 - min(1.0, float(np.linalg.norm(centroid - centre)) / max_dist)

    ship_centroids = np.array([np.mean(np.array(p.cells, dtype=float), axis=0) for p in individual])
    dists = np.linalg.norm(ship_centroids - centroid, axis=1)
    spread = min(1.0, float(dists.mean()) / (max_dist / 2.0))
    evenness = 1.0 / (1.0 + float(dists.var()))
    return (proximity + spread + evenness) / 3.0


def stealth(individual: Individual, board_size: int, shots: int = STEALTH_SHOTS) -> float:
    """Share of the first coarse-lattice shots that miss."""
    occupied = set(_ship_cells(individual))
    lattice = [(x, y) for y in range(0, board_size, 2) for x in range(0, board_size, 2)][:shots]
    if not lattice:
        return 1.0
    hits = sum(1 for c in lattice if c in occupied)
    return 1.0 - hits / float(len(lattice))


def orientation_balance(individual: Individual) -> float:
    if not individual:
        return 0.0
    vertical = sum(1 for p in individual if p.length > 1 and p.orientation is Orientation.VERTICAL)
    horizontal = len(individual) - vertical
    return 1.0 - abs(vertical - horizontal) / float(len(individual))


def fitness_terms(individual: Individual, board_size: int) -> Dict[str, float]:
    return {
        "parity": parity_resistance(individual, board_size),
        "ambiguity": ambiguity(individual),
        "balance": balance(individual, board_size),
        "stealth": stealth(individual, board_size),
        "orientation": orientation_balance(individual),
    }


def fitness(individual: Individual, board_size: int, weights: FitnessWeights) -> Tuple[float, Dict[str, float]]:
    terms = fitness_terms(individual, board_size)
    score = (
        weights.parity * terms["parity"]
        + weights.ambiguity * terms["ambiguity"]
        + weights.balance * terms["balance"]
        + weights.stealth * terms["stealth"]
        + weights.orientation * terms["orientation"]
    )
    return score, terms


def tournament(population: Sequence[Individual], scores: Sequence[float], k: int, rng: random.Random) -> Individual:
    picks = [rng.randrange(len(population)) for _ in range(max(1, k))]
    best = max(picks, key=lambda i: scores[i])
    return population[best]


def _relocate(
    length: int,
    forbidden: int,
    board_size: int,
    rng: random.Random,
    catalogue: PlacementCache,
    retries: int,
    avoid: Optional[LayoutPlacement] = None,
) -> Optional[LayoutPlacement]:
    options = catalogue.get(board_size, length)
    if not options:
        return None
    for _ in range(max(1, retries)):
        cand = options[rng.randrange(len(options))]
        if cand is avoid or (cand.mask & forbidden):
            continue
        return cand
    return None


def crossover(
    a: Individual,
    b: Individual,
    board_size: int,
    rng: random.Random,
    catalogue: PlacementCache = DEFAULT_PLACEMENT_CACHE,
    retries: int = 25,
) -> Optional[Individual]:
    """Alternate genes from both parents, repairing conflicts by random relocation.

    Returns None when a gene cannot be repaired within ``retries``.
    """
    genes = [a[i] if i % 2 == 0 else b[i] for i in range(len(a))]
    forbidden = 0
    child: List[LayoutPlacement] = []
    for gene in genes:
        if gene.mask & forbidden:
            gene = _relocate(gene.length, forbidden, board_size, rng, catalogue, retries)
            if gene is None:
                return None
        child.append(gene)
        forbidden |= gene.adjacency_mask
    return tuple(child)


def mutate(
    individual: Individual,
    board_size: int,
    rng: random.Random,
    catalogue: PlacementCache = DEFAULT_PLACEMENT_CACHE,
    retries: int = 25,
) -> Individual:
    """Move one ship to a random free placement; unchanged if none is found."""
    i = rng.randrange(len(individual))
    forbidden = 0
    for j, p in enumerate(individual):
        if j != i:
            forbidden |= p.adjacency_mask
    moved = _relocate(individual[i].length, forbidden, board_size, rng, catalogue, retries, avoid=individual[i])
    if moved is None:
        return individual
    genes = list(individual)
    genes[i] = moved
    return tuple(genes)


def recommend_layout_ga(
    board_size: int,
    lengths: Sequence[int],
    rng_seed: Optional[int] = None,
    generations: int = 30,
    population_size: int = 40,
    elite_fraction: float = 0.1,
    tournament_size: int = 5,
    mutation_rate: float = 0.1,
    weights: Optional[FitnessWeights] = None,
    repair_retries: int = 25,
    layout_restarts: int = 200,
    rng: Optional[random.Random] = None,
    catalogue: PlacementCache = DEFAULT_PLACEMENT_CACHE,
) -> GAResult:
    """Evolve a no-touch layout for the engine's own fleet.

    Returns the best individual seen across all generations.
    """
    if rng is None:
        rng = random.Random(rng_seed)
    if weights is None:
        weights = FitnessWeights()
    order = sorted((int(v) for v in lengths), reverse=True)
    if not order or order[-1] <= 0 or order[0] > board_size:
        raise PlacementInfeasibleError(
            f"fleet {order} does not fit a {board_size}x{board_size} board",
            board_size,
            order,
        )

    pop_size = max(2, int(population_size))
    population = [random_individual(board_size, order, rng, catalogue, layout_restarts) for _ in range(pop_size)]
    n_elite = max(1, int(round(elite_fraction * pop_size)))

    best: Optional[Individual] = None
    best_score = -1.0
    best_terms: Dict[str, float] = {}

    for gen in range(max(0, generations) + 1):
        evaluated = [fitness(ind, board_size, weights) for ind in population]
        scores = [s for s, _ in evaluated]
        for ind, (s, terms) in zip(population, evaluated):
            if s > best_score:
                best, best_score, best_terms = ind, s, terms
        if gen == generations:
            break

        ranked = sorted(range(pop_size), key=lambda i: -scores[i])
        nxt = [population[i] for i in ranked[:n_elite]]
        while len(nxt) < pop_size:
            p1 = tournament(population, scores, tournament_size, rng)
            p2 = tournament(population, scores, tournament_size, rng)
            child = crossover(p1, p2, board_size, rng, catalogue, repair_retries)
            if child is None:
                child = random_individual(board_size, order, rng, catalogue, layout_restarts)
            if rng.random() < mutation_rate:
                child = mutate(child, board_size, rng, catalogue, repair_retries)
            nxt.append(child)
        population = nxt

    if best is None or not is_valid_fleet(board_size, order, best):
        raise PlacementInfeasibleError("optimiser produced no valid layout", board_size, order)

    debug_event(
        "GA result",
        f"fitness {best_score:.3f} after {generations} generations",
        details="\n".join(f"{k}: {v:.3f}" for k, v in best_terms.items()),
        source=log,
    )
    return GAResult(placements=best, fitness=best_score, terms=best_terms, generations=generations)
