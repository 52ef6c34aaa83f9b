from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.agent import Agent, ExecutionCore
from ..core.config import MutationConfig, OrganismConfig
from ..core.rng import DeterministicRng
from ..utils.math2d import _clamp_value

if TYPE_CHECKING:
    from ..core.world import World


def mutate_radius(
    radius: float, rng: DeterministicRng, organism: OrganismConfig, mutation: MutationConfig
) -> float:
    if not rng.chance(mutation.radius_mutation_rate):
        return radius
    drifted = radius + rng.next_normal(0.0, mutation.radius_mutation_sigma)
    return _clamp_value(drifted, organism.min_radius, organism.max_radius)


def spawn_offspring(world: World, parent_id: int) -> int:
    """Create a child next to ``parent_id`` and return the child's stable id.

    The child's heat class comes from its own, possibly drifted, radius; it is
    never copied from the parent.
    """
    config = world._config
    rng = world._rng
    parent = world._agents.get(parent_id)
    center = world._surface.get_center(parent.handle)
    radius = mutate_radius(world._surface.get_radius(parent.handle), rng, config.organism, config.mutation)
    child = Agent(
        handle=-1,
        energy=parent.energy,
        heat=world._heat(radius),
        facing=rng.next_degrees(),
        program=world._mutator.apply_mutations(parent.program, rng),
        core=ExecutionCore(),
        generation=parent.generation + 1,
        parent_id=parent.id,
        born_tick=world._tick,
    )
    return world._register_agent(child, center, radius)
