#!/usr/bin/env python3
import argparse
import hashlib
import random
import statistics
import time
from dataclasses import replace
from typing import Dict, Iterable, List

from salvo.domain.config import PARAM_SPECS, EngineConfig, SearchBudget, check_params
from salvo.layouts.builtins import builtin_fleets, classic_fleet
from salvo.layouts.cache import DEFAULT_PLACEMENT_CACHE
from salvo.sim.attack_sim import SimProfiler, simulate_engine_game
from salvo.strategies.registry import model_defs
from salvo.utils.debug import configure_logging


def _stable_seed(global_seed: int, model_key: str, game_index: int) -> int:
    payload = f"{int(global_seed)}|{model_key}|{int(game_index)}".encode("utf-8")
    digest = hashlib.blake2b(payload, digest_size=8).digest()
    return int.from_bytes(digest, "little") & 0x7FFFFFFF


def _percentile(values: List[int], pct: float) -> float:
    if not values:
        return 0.0
    if pct <= 0:
        return float(values[0])
    if pct >= 100:
        return float(values[-1])
    k = (len(values) - 1) * (pct / 100.0)
    f = int(k)
    c = min(f + 1, len(values) - 1)
    if f == c:
        return float(values[f])
    d0 = values[f] * (c - k)
    d1 = values[c] * (k - f)
    return float(d0 + d1)


def _resolve_fleet(name: str):
    name = (name or "classic").strip().lower()
    if name in {"classic", "10x10", "standard"}:
        return classic_fleet()
    for fleet in builtin_fleets():
        if fleet.fleet_id == name or f"{fleet.board_size}x{fleet.board_size}" == name:
            return fleet
    raise ValueError(f"Unknown fleet '{name}'. Use classic, extended or armada.")


def _resolve_models(raw: str) -> List[str]:
    all_keys = [md.get("key") for md in model_defs() if md.get("key")]
    if not raw or raw.strip().lower() in {"all", "*"}:
        return list(all_keys)
    keys = [k.strip() for k in raw.split(",") if k.strip()]
    resolved = []
    for key in keys:
        if key not in all_keys:
            raise ValueError(f"Unknown model key '{key}'.")
        resolved.append(key)
    return resolved


def _parse_params(raw: List[str], models: List[str]) -> Dict[str, Dict[str, float]]:
    """Split KEY=VALUE overrides across the selected strategies.

    A key applies to every selected strategy that declares it and must
    match at least one of them.
    """
    pairs = {}
    for item in raw or []:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Bad --param '{item}', expected KEY=VALUE.")
        pairs[key] = value.strip()

    per_model: Dict[str, Dict[str, float]] = {key: {} for key in models}
    for key, value in pairs.items():
        owners = [m for m in models if any(p["key"] == key for p in PARAM_SPECS.get(m, []))]
        if not owners:
            raise ValueError(f"Parameter '{key}' is not tunable for {', '.join(models)}.")
        for model in owners:
            per_model[model][key] = value
    return {key: check_params(key, params) for key, params in per_model.items()}


def _format_params(models: List[str]) -> str:
    lines = []
    for key in models:
        specs = PARAM_SPECS.get(key, [])
        if not specs:
            lines.append(f"{key}: (no tunables)")
            continue
        lines.append(f"{key}:")
        for p in specs:
            lines.append(f"  {p['key']:<16} {p['label']} [default {p['default']}, range {p['min']}..{p['max']}]")
    return "\n".join(lines)


def _run_model(model_key: str, fleet, games: int, seed: int, base: EngineConfig, profiler=None, params=None) -> dict:
    shots: List[int] = []
    start = time.perf_counter()
    for i in range(games):
        rng_seed = _stable_seed(seed, model_key, i)
        cfg = replace(base, hunt_strategy=model_key, seed=rng_seed, strategy_params=dict(params or {}))
        stats = simulate_engine_game(
            fleet.board_size,
            fleet.lengths(),
            cfg,
            rng=random.Random(rng_seed ^ 0x5A5A),
            profiler=profiler,
        )
        shots.append(stats.shots)
    elapsed = time.perf_counter() - start
    shots_sorted = sorted(shots)
    return {
        "games": games,
        "mean": statistics.mean(shots) if shots else 0.0,
        "median": statistics.median(shots_sorted) if shots_sorted else 0.0,
        "p90": _percentile(shots_sorted, 90.0),
        "p95": _percentile(shots_sorted, 95.0),
        "min": shots_sorted[0] if shots_sorted else 0,
        "max": shots_sorted[-1] if shots_sorted else 0,
        "time": elapsed,
    }


def main(argv: Iterable[str] = None) -> int:
    parser = argparse.ArgumentParser(description="Strategy harness: compare hunt strategies in self-play on fixed RNG seeds.")
    parser.add_argument("--fleet", default="classic", help="Fleet preset (classic|extended|armada)")
    parser.add_argument("--games", type=int, default=20, help="Games per strategy")
    parser.add_argument("--seed", type=int, default=1337, help="Global seed")
    parser.add_argument("--models", default="all", help="Comma-separated strategy keys or 'all'")
    parser.add_argument("--ensemble", type=int, default=None, help="Ensemble size override")
    parser.add_argument("--iterations", type=int, default=None, help="Fixed MCTS iterations (disables wall-clock budgets)")
    parser.add_argument("--param", action="append", default=[], metavar="KEY=VALUE", help="Strategy tunable override (repeatable)")
    parser.add_argument("--list-params", action="store_true", help="Print the tunables of the selected strategies and exit")
    parser.add_argument("--profile", action="store_true", help="Print timing summaries")
    parser.add_argument("--debug", action="store_true", help="Verbose engine logging")
    args = parser.parse_args(list(argv) if argv is not None else None)

    configure_logging("debug" if args.debug else "warning")

    fleet = _resolve_fleet(args.fleet)
    runtime = DEFAULT_PLACEMENT_CACHE.fleet(fleet)
    n_placements = sum(len(p) for p in runtime.placements.values())

    base = EngineConfig.from_env()
    if args.ensemble:
        base = replace(base, ensemble_target=args.ensemble)
    if args.iterations:
        budgets = {mode: SearchBudget(args.iterations, None, b.cautious) for mode, b in base.search_budgets.items()}
        base = replace(base, search_budgets=budgets, deterministic_search=True)

    models = _resolve_models(args.models)
    if args.list_params:
        print(_format_params(models))
        return 0
    params = _parse_params(args.param, models)

    print(f"Fleet: {fleet.name} ({fleet.board_size}x{fleet.board_size}), ships {list(fleet.lengths())}")
    print(f"Placements in catalogue: {n_placements}")
    print(f"Games per strategy: {args.games}, Seed: {args.seed}")
    for key in models:
        if params.get(key):
            print(f"Params for {key}: {params[key]}")
    print()

    rows = []
    for key in models:
        profiler = SimProfiler() if args.profile else None
        stats = _run_model(key, fleet, args.games, args.seed, base, profiler, params.get(key))
        rows.append((key, stats))
        if profiler is not None:
            print(profiler.format_summary(key))

    header = f"{'Strategy':<24} {'Mean':>6} {'Median':>6} {'P90':>6} {'P95':>6} {'Min':>5} {'Max':>5} {'Time(s)':>8}"
    print(header)
    print("-" * len(header))
    for key, s in rows:
        print(
            f"{key:<24} {s['mean']:>6.2f} {s['median']:>6.0f} {s['p90']:>6.0f} {s['p95']:>6.0f} "
            f"{s['min']:>5} {s['max']:>5} {s['time']:>8.2f}"
        )

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
