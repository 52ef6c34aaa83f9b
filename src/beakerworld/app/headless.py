from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from dataclasses import replace
from pathlib import Path
from typing import Optional

from ..sim.core.config import SimulationConfig
from ..sim.core.events import DeathCause
from ..sim.core.world import World
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)


def _header(heat_buckets: int) -> list[str]:
    return (
        ["tick", "population", "resources", "births", "deaths"]
        + [cause.value for cause in DeathCause]
        + ["avg_energy"]
        + [f"heat_{index}" for index in range(heat_buckets)]
        + ["tick_ms"]
    )


def _format_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return (
        [metrics.tick, metrics.population, metrics.resources, metrics.births, metrics.deaths]
        + [metrics.deaths_by_cause.get(cause.value, 0) for cause in DeathCause]
        + [f"{metrics.average_energy:.4f}"]
        + list(metrics.heat_counts)
        + [f"{tick_ms:.3f}"]
    )


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p99": _percentile(sorted_values, 0.99),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    summary_path: Optional[Path] = None,
    config: Optional[SimulationConfig] = None,
    print_interval: int = 0,
) -> World:
    config = config if config is not None else SimulationConfig()
    if seed is not None:
        config = replace(config, seed=seed)
    world = World(config)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_header(config.heat_buckets))

    tick_ms_series: list[float] = []
    population_series: list[float] = []
    births_total = 0
    deaths_total = 0
    peak_population = (-1, -1)
    extinct_at: Optional[int] = None

    try:
        for tick in range(steps):
            metrics = world.step(tick)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            births_total += metrics.births
            deaths_total += metrics.deaths
            tick_ms_series.append(tick_ms)
            population_series.append(float(metrics.population))
            if metrics.population > peak_population[0]:
                peak_population = (metrics.population, tick)

            if writer:
                writer.writerow(_format_row(metrics, tick_ms))
            if print_interval > 0 and tick % print_interval == 0:
                logger.info(
                    "tick %d: population %d, resources %d, heat %s",
                    tick,
                    metrics.population,
                    metrics.resources,
                    metrics.heat_counts,
                )
            if metrics.population == 0:
                extinct_at = tick
                logger.info("population went extinct at tick %d", tick)
                break
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        summary = {
            "steps": steps,
            "ticks_run": len(tick_ms_series),
            "seed": config.seed,
            "deterministic_log": deterministic_log,
            "births": births_total,
            "deaths": deaths_total,
            "deaths_by_cause": {cause.value: count for cause, count in world.deaths_by_cause.items()},
            "extinct_at": extinct_at,
            "final_heat_counts": world.metrics.heat_counts if world.metrics else [],
            "resolver_misuse": world.resolver_misuse_count,
            "tick_ms": _summary_stats(tick_ms_series),
            "population": _summary_stats(population_series),
            "peaks": {
                "population": {"value": peak_population[0], "tick": peak_population[1]},
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    return world


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Headless beaker world simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML file overriding the default configuration")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument(
        "--print-interval",
        type=int,
        default=0,
        help="Log a progress line every N ticks (0 disables).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        summary_path=args.summary,
        config=config,
        print_interval=args.print_interval,
    )


if __name__ == "__main__":
    main()
