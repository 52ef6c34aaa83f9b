from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Tuple

from ..core.errors import NotFound
from ..core.events import Birth, Consume, DeathCause, Kill
from .offspring import spawn_offspring

if TYPE_CHECKING:
    from ..core.world import World

logger = logging.getLogger(__name__)


def apply_bookkeeping(world: World) -> None:
    """Charge metabolism and queue starvation deaths or births, one pass over live agents."""
    organism = world._config.organism
    events = world._events
    for agent_id in world._agents.ids():
        agent = world._agents.get(agent_id)
        agent.energy -= organism.metabolic_cost
        if agent.energy <= 0.0:
            events.mark_kill(agent_id, DeathCause.STARVATION)
        elif agent.energy > organism.reproduction_threshold and not events.is_pending_kill(agent_id):
            cost = agent.energy * organism.reproduction_cost_fraction
            if events.mark_birth(agent_id, cost):
                agent.energy -= cost


def drain_events(world: World) -> Tuple[int, int]:
    """Apply queued intents in FIFO order; returns ``(births, deaths)`` for the tick."""
    births = 0
    deaths = 0
    for event in world._events.drain():
        if isinstance(event, Kill):
            deaths += apply_kill(world, event.agent_id, event.cause)
        elif isinstance(event, Consume):
            apply_consume(world, event)
        elif isinstance(event, Birth):
            born, evicted = apply_birth(world, event)
            births += born
            deaths += evicted
    return births, deaths


def apply_kill(world: World, agent_id: int, cause: DeathCause) -> bool:
    try:
        agent = world._agents.remove(agent_id)
    except NotFound:
        # A second Kill for an agent already removed this tick.
        return False
    world._surface.remove_body(agent.handle)
    world._heat_counts[agent.heat] -= 1
    world._deaths_by_cause[cause] += 1
    logger.debug("agent %d died (%s)", agent_id, cause.value)
    return True


def apply_consume(world: World, event: Consume) -> bool:
    claimant = world._agents.find(event.claimant_id)
    if claimant is None:
        logger.debug(
            "resource %d stays put: claimant %d died first", event.resource_id, event.claimant_id
        )
        return False
    config = world._config
    claimant.energy = min(config.organism.max_energy, claimant.energy + config.environment.resource_energy)
    resource = world._resources.get(event.resource_id)
    resource.times_consumed += 1
    world._surface.set_center(resource.handle, world._rng.next_point(config.world_width, config.world_height))
    return True


def apply_birth(world: World, event: Birth) -> Tuple[int, int]:
    """Returns ``(births, evictions)`` caused by this event."""
    parent_id = event.agent_id
    if parent_id not in world._events.pending_birth or parent_id not in world._agents:
        return 0, 0
    evicted = 0
    if len(world._agents) >= world._config.max_population:
        if world._config.evict_on_full and _evict_for(world, parent_id):
            evicted = 1
        else:
            _drop_birth(world, event)
            return 0, 0
    child_id = spawn_offspring(world, parent_id)
    logger.debug("agent %d gave birth to %d", parent_id, child_id)
    return 1, evicted


def _evict_for(world: World, parent_id: int) -> bool:
    events = world._events
    candidates = [i for i in world._agents.ids() if i != parent_id and not events.is_pending_kill(i)]
    victim = world._rng.sample_choice(candidates)
    if victim is None:
        return False
    # The queued Kill drains later as a duplicate and changes nothing.
    events.mark_kill(victim, DeathCause.EVICTION)
    return apply_kill(world, victim, DeathCause.EVICTION)


def _drop_birth(world: World, event: Birth) -> None:
    if world._config.refund_dropped_birth:
        parent = world._agents.get(event.agent_id)
        parent.energy = min(world._config.organism.max_energy, parent.energy + event.cost)
    logger.debug("birth for agent %d dropped at capacity", event.agent_id)
