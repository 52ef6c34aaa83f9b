from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple
from time import perf_counter

from pygame.math import Vector2

from .agent import Agent, Program, Resource
from .config import SimulationConfig
from .events import DeathCause, EventQueue
from .rng import DeterministicRng
from .store import PopulationStore
from .surface import BodyKind, Surface
from ..systems import interactions, lifecycle, metrics as metrics_system
from ..systems.behavior import BehaviorEngine, ScriptedBehavior, random_program
from ..systems.heat import HeatScale
from ..systems.mutation import ProgramMutator
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld

logger = logging.getLogger(__name__)


class World:
    """Agents, resources and the per-tick phase order that mutates them.

    A tick runs five phases, always in this order:

    1. behavior: every live agent runs its program; overlaps only record intents
    2. bookkeeping: metabolism, starvation and birth intents
    3. drain: the event queue is applied FIFO, the only place entities die or are born
    4. reset: pending registries and queue are cleared
    5. statistics: per-heat-class counts and radii are recomputed from the store
    """

    def __init__(self, config: SimulationConfig, behavior: BehaviorEngine | None = None):
        self._config = config.validate()
        self._rng = DeterministicRng(config.seed)
        self._surface = Surface(config.world_width, config.world_height, config.cell_size)
        self._agents: PopulationStore[Agent] = PopulationStore()
        self._resources: PopulationStore[Resource] = PopulationStore()
        self._events = EventQueue()
        self._heat = HeatScale(config.organism.min_radius, config.organism.max_radius, config.heat_buckets)
        self._behavior: BehaviorEngine = behavior if behavior is not None else ScriptedBehavior()
        self._mutator = ProgramMutator(config.mutation, config.program.max_program_length)
        self._heat_counts: List[int] = [0] * config.heat_buckets
        self._deaths_by_cause: Dict[DeathCause, int] = {cause: 0 for cause in DeathCause}
        self._tick = 0
        self._metrics: TickMetrics | None = None
        self.resolver_misuse_count = 0
        self._bootstrap_population()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def agents(self) -> PopulationStore[Agent]:
        return self._agents

    @property
    def resources(self) -> PopulationStore[Resource]:
        return self._resources

    @property
    def surface(self) -> Surface:
        return self._surface

    @property
    def events(self) -> EventQueue:
        return self._events

    @property
    def heat_scale(self) -> HeatScale:
        return self._heat

    @property
    def heat_counts(self) -> List[int]:
        return list(self._heat_counts)

    @property
    def deaths_by_cause(self) -> Dict[DeathCause, int]:
        return dict(self._deaths_by_cause)

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def reset(self) -> None:
        self._agents.clear()
        self._resources.clear()
        self._surface.clear()
        self._events.reset()
        self._rng.reset()
        self._heat_counts = [0] * self._config.heat_buckets
        self._deaths_by_cause = {cause: 0 for cause in DeathCause}
        self._tick = 0
        self._metrics = None
        self.resolver_misuse_count = 0
        self._bootstrap_population()

    def spawn_agent(
        self,
        center: Vector2,
        radius: float,
        energy: float | None = None,
        program: Program | None = None,
        facing: float = 0.0,
    ) -> int:
        agent = Agent(
            handle=-1,
            energy=self._config.organism.initial_energy if energy is None else energy,
            heat=self._heat(radius),
            facing=facing,
            program=program if program is not None else random_program(self._rng, self._config.program),
            born_tick=self._tick,
        )
        return self._register_agent(agent, center, radius)

    def spawn_resource(self, center: Vector2, radius: float | None = None) -> int:
        radius = self._config.environment.resource_radius if radius is None else radius
        resource_id = self._resources.insert(Resource(handle=-1))
        handle = self._surface.add_body(BodyKind.RESOURCE, resource_id, center, radius)
        self._resources.get(resource_id).handle = handle
        return resource_id

    def radius_of(self, agent_id: int) -> float:
        return self._surface.get_radius(self._agents.get(agent_id).handle)

    def consume(self, agent_id: int) -> int:
        """The consume/attack instruction: resolve every overlap around ``agent_id``."""
        return interactions.resolve_overlaps(self, agent_id)

    def step(self, tick: int) -> TickMetrics:
        start = perf_counter()
        self._tick = tick
        self._behavior_phase()
        self._bookkeeping_phase()
        births, deaths = self._drain_phase()
        self._reset_phase()
        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = self._statistics_phase(tick, births, deaths, elapsed_ms)
        if births or deaths:
            logger.debug("tick %d: %d births, %d deaths, population %d", tick, births, deaths, metrics.population)
        return metrics

    def snapshot(self, tick: int) -> Snapshot:
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.create_metrics(self, tick, 0, 0, 0.0)
        config = self._config
        return Snapshot(
            tick=tick,
            metrics=metrics,
            agents=[self._agent_snapshot(agent) for agent in self._agents.values()],
            resources=[self._resource_snapshot(resource) for resource in self._resources.values()],
            world=SnapshotWorld(width=config.world_width, height=config.world_height),
            metadata=SnapshotMetadata(
                seed=config.seed,
                heat_buckets=config.heat_buckets,
                min_radius=config.organism.min_radius,
                max_radius=config.organism.max_radius,
                config_version=config.config_version,
            ),
        )

    def _behavior_phase(self) -> None:
        cycle_budget = self._config.cycle_budget
        events = self._events
        for agent_id in self._agents.ids():
            if events.is_pending_kill(agent_id):
                continue
            self._behavior.execute(self, agent_id, cycle_budget)

    def _bookkeeping_phase(self) -> None:
        lifecycle.apply_bookkeeping(self)

    def _drain_phase(self) -> Tuple[int, int]:
        return lifecycle.drain_events(self)

    def _reset_phase(self) -> None:
        self._events.reset()

    def _statistics_phase(self, tick: int, births: int, deaths: int, elapsed_ms: float) -> TickMetrics:
        self._metrics = metrics_system.create_metrics(self, tick, births, deaths, elapsed_ms)
        return self._metrics

    def _bootstrap_population(self) -> None:
        config = self._config
        organism = config.organism
        for _ in range(config.initial_population):
            center = self._rng.next_point(config.world_width, config.world_height)
            radius = self._rng.next_range(organism.min_radius, organism.max_radius)
            self.spawn_agent(center, radius, facing=self._rng.next_degrees())
        for _ in range(config.environment.num_resources):
            self.spawn_resource(self._rng.next_point(config.world_width, config.world_height))

    def _register_agent(self, agent: Agent, center: Vector2, radius: float) -> int:
        agent_id = self._agents.insert(agent)
        agent.handle = self._surface.add_body(BodyKind.AGENT, agent_id, center, radius)
        self._heat_counts[agent.heat] += 1
        return agent_id

    def _agent_snapshot(self, agent: Agent) -> Dict[str, Any]:
        center = self._surface.get_center(agent.handle)
        return {
            "id": agent.id,
            "x": center.x,
            "y": center.y,
            "radius": self._surface.get_radius(agent.handle),
            "heat": agent.heat,
            "energy": agent.energy,
            "facing": agent.facing,
            "generation": agent.generation,
            "parent_id": agent.parent_id,
        }

    def _resource_snapshot(self, resource: Resource) -> Dict[str, Any]:
        center = self._surface.get_center(resource.handle)
        return {
            "id": resource.id,
            "x": center.x,
            "y": center.y,
            "radius": self._surface.get_radius(resource.handle),
            "heat": self._heat.resource_heat,
            "times_consumed": resource.times_consumed,
        }
