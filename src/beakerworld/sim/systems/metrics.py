from __future__ import annotations

from typing import TYPE_CHECKING, List, Tuple

from ..types.metrics import TickMetrics
from ..utils.math2d import _safe_mean

if TYPE_CHECKING:
    from ..core.world import World


def heat_statistics(world: World) -> Tuple[List[int], List[float], float]:
    """Recount live agents per heat class from the store.

    Returns per-class counts, per-class mean radius and the population's mean
    energy. Classes are re-derived from each agent's current radius with the
    same classifier the resolver and spawner use.
    """
    buckets = world._heat.buckets
    counts = [0] * buckets
    radius_sums = [0.0] * buckets
    energy_sum = 0.0
    surface = world._surface
    for agent in world._agents.values():
        radius = surface.get_radius(agent.handle)
        heat = world._heat(radius)
        counts[heat] += 1
        radius_sums[heat] += radius
        energy_sum += agent.energy
    averages = [_safe_mean(total, count) for total, count in zip(radius_sums, counts)]
    return counts, averages, _safe_mean(energy_sum, len(world._agents))


def create_metrics(world: World, tick: int, births: int, deaths: int, duration_ms: float) -> TickMetrics:
    counts, averages, average_energy = heat_statistics(world)
    return TickMetrics(
        tick=tick,
        population=len(world._agents),
        resources=len(world._resources),
        births=births,
        deaths=deaths,
        average_energy=average_energy,
        heat_counts=counts,
        heat_average_radius=averages,
        deaths_by_cause={cause.value: count for cause, count in world._deaths_by_cause.items()},
        tick_duration_ms=duration_ms,
    )
