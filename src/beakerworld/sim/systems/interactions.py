"""Overlap rules applied during the behavior phase.

Every rule here records intents in the world's event queue; none of them
removes, creates or relocates anything. Energy credited to a predator is the
one immediate effect, because a predator's energy is not terminal state.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict, Tuple

from ..core.agent import Agent
from ..core.config import EdibilityPolicy, EnvironmentConfig, OrganismConfig
from ..core.errors import InteractionError
from ..core.events import DeathCause
from ..core.surface import PairKind

if TYPE_CHECKING:
    from ..core.world import World

logger = logging.getLogger(__name__)


def edibility_window(
    predator_radius: float,
    min_ratio: float,
    max_ratio: float,
    policy: EdibilityPolicy = EdibilityPolicy.PROPORTIONAL,
) -> Tuple[float, float]:
    """Open interval of prey radii a predator of ``predator_radius`` may eat."""
    if policy is EdibilityPolicy.SUBTRACTIVE:
        lower = predator_radius - predator_radius * min_ratio
    else:
        lower = predator_radius * min_ratio
    upper = predator_radius + predator_radius * max_ratio
    return lower, upper


def consumption_threshold(organism: OrganismConfig, environment: EnvironmentConfig) -> float:
    """Largest agent radius that can still eat a resource."""
    span = organism.max_radius - organism.min_radius
    return span * environment.consume_resource_threshold + organism.min_radius


def is_edible(world: World, predator: Agent, prey: Agent) -> bool:
    environment = world._config.environment
    if environment.edibility_policy is EdibilityPolicy.HEAT_RANK:
        return predator.heat > prey.heat
    lower, upper = edibility_window(
        world._surface.get_radius(predator.handle),
        environment.min_consume_ratio,
        environment.max_consume_ratio,
        environment.edibility_policy,
    )
    prey_radius = world._surface.get_radius(prey.handle)
    return lower < prey_radius < upper


def _resolve_predation(world: World, actor_id: int, other_id: int) -> None:
    events = world._events
    if events.is_pending_kill(other_id):
        return
    predator = world._agents.get(actor_id)
    prey = world._agents.get(other_id)
    if not is_edible(world, predator, prey):
        return
    organism = world._config.organism
    gain = prey.energy / world._config.environment.predation_energy_divisor
    predator.energy = min(organism.max_energy, predator.energy + gain)
    events.mark_kill(other_id, DeathCause.PREDATION)
    logger.debug("agent %d claims prey %d (+%.3f energy)", actor_id, other_id, gain)


def _resolve_consumption(world: World, actor_id: int, other_id: int) -> None:
    events = world._events
    if events.is_claimed(other_id):
        return
    agent = world._agents.get(actor_id)
    threshold = consumption_threshold(world._config.organism, world._config.environment)
    if world._surface.get_radius(agent.handle) > threshold:
        return
    events.claim_resource(other_id, actor_id)


def _resolve_resource_pair(world: World, actor_id: int, other_id: int) -> None:
    # Resources never act, so a resource-resource pair means the resolver was misused.
    world.resolver_misuse_count += 1
    logger.warning("resource-resource overlap routed to resolver (%d, %d)", actor_id, other_id)


def _resolve_resource_agent(world: World, actor_id: int, other_id: int) -> None:
    # Agent-resource pairs are resolved from the agent's side only.
    world.resolver_misuse_count += 1
    logger.warning("resource-agent overlap routed to resolver (%d, %d)", actor_id, other_id)


_HANDLERS: Dict[PairKind, Callable[[World, int, int], None]] = {
    PairKind.AGENT_AGENT: _resolve_predation,
    PairKind.AGENT_RESOURCE: _resolve_consumption,
    PairKind.RESOURCE_RESOURCE: _resolve_resource_pair,
    PairKind.RESOURCE_AGENT: _resolve_resource_agent,
}


def resolve_pair(world: World, actor_id: int, other_id: int, kind: PairKind) -> None:
    """Apply the rule for one overlapping pair, ``actor_id`` being the querying body's owner."""
    handler = _HANDLERS.get(kind)
    if handler is None:
        raise InteractionError(f"no interaction rule for pair kind {kind!r}")
    if kind in (PairKind.AGENT_AGENT, PairKind.AGENT_RESOURCE) and world._events.is_pending_kill(actor_id):
        return
    handler(world, actor_id, other_id)


def resolve_overlaps(world: World, actor_id: int) -> int:
    """Query the surface around an agent and resolve each overlap in handle order."""
    agent = world._agents.get(actor_id)
    resolved = 0
    for other_handle, kind in world._surface.find_overlap(agent.handle):
        _, other_id = world._surface.owner(other_handle)
        resolve_pair(world, actor_id, other_id, kind)
        resolved += 1
    return resolved
