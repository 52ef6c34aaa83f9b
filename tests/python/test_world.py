from __future__ import annotations

import pytest
from pygame.math import Vector2
from pytest import approx

from beakerworld.sim.core.config import EnvironmentConfig, MutationConfig, OrganismConfig, SimulationConfig
from beakerworld.sim.core.errors import ConfigurationError
from beakerworld.sim.core.events import DeathCause
from beakerworld.sim.core.world import World
from beakerworld.sim.systems import lifecycle


def run_steps(config: SimulationConfig, steps: int):
    world = World(config)
    series = []
    for tick in range(steps):
        metrics = world.step(tick)
        series.append(
            (metrics.population, metrics.births, metrics.deaths, round(metrics.average_energy, 4), tuple(metrics.heat_counts))
        )
    return series


def _dense_config(**overrides) -> SimulationConfig:
    params = dict(
        world_width=160.0,
        world_height=160.0,
        initial_population=80,
        max_population=100,
        seed=1234,
        environment=EnvironmentConfig(num_resources=60),
    )
    params.update(overrides)
    return SimulationConfig(**params)


def test_deterministic_steps():
    assert run_steps(_dense_config(), 40) == run_steps(_dense_config(), 40)


def test_reset_replays_the_same_run():
    world = World(_dense_config())
    first = [world.step(tick).population for tick in range(20)]
    world.reset()
    second = [world.step(tick).population for tick in range(20)]
    assert first == second
    assert world.resolver_misuse_count == 0


def test_bootstrap_places_population_and_resources():
    config = _dense_config()
    world = World(config)
    assert len(world.agents) == 80
    assert len(world.resources) == 60
    assert len(world.surface) == 140
    assert sum(world.heat_counts) == 80
    for agent in world.agents:
        radius = world.radius_of(agent.id)
        assert config.organism.min_radius <= radius <= config.organism.max_radius
        assert agent.heat == world.heat_scale(radius)
        assert agent.energy == approx(config.organism.initial_energy)


def test_invalid_config_rejected_before_first_tick():
    with pytest.raises(ConfigurationError):
        World(SimulationConfig(heat_buckets=0))


def test_population_bookkeeping_stays_consistent():
    config = _dense_config(max_population=90)
    world = World(config)
    for tick in range(60):
        metrics = world.step(tick)
        assert len(world.agents) <= config.max_population
        assert metrics.population == len(world.agents)
        assert metrics.heat_counts == world.heat_counts
        assert len(world.surface) == len(world.agents) + len(world.resources)
        assert len(world.events) == 0
        assert not world.events.pending_kill


def test_no_overlap_only_metabolism(quiet_world):
    world = quiet_world(environment=EnvironmentConfig(num_resources=0))
    a = world.spawn_agent(Vector2(50, 50), 5.0, energy=1000.0, program=("consume",))
    b = world.spawn_agent(Vector2(200, 200), 6.0, energy=1000.0, program=("consume",))
    resource = world.spawn_resource(Vector2(350, 350))

    metrics = world.step(0)

    assert world.agents.get(a).energy == approx(999.0)
    assert world.agents.get(b).energy == approx(999.0)
    assert world.resources.get(resource).times_consumed == 0
    assert metrics.births == 0
    assert metrics.deaths == 0
    assert metrics.population == 2


def test_prey_outside_window_survives_tick(quiet_world):
    world = quiet_world()
    predator = world.spawn_agent(Vector2(100, 100), 8.0, energy=1000.0, program=("consume",))
    prey = world.spawn_agent(Vector2(105, 100), 6.0, energy=400.0, program=("nop",))

    metrics = world.step(0)

    assert metrics.deaths == 0
    assert world.agents.get(predator).energy == approx(999.0)
    assert world.agents.get(prey).energy == approx(399.0)


def test_prey_inside_window_is_eaten(quiet_world):
    world = quiet_world()
    predator = world.spawn_agent(Vector2(100, 100), 8.0, energy=1000.0, program=("consume",))
    prey = world.spawn_agent(Vector2(105, 100), 7.0, energy=400.0, program=("nop",))
    prey_heat = world.heat_scale(7.0)
    before = world.heat_counts[prey_heat]

    metrics = world.step(0)

    assert prey not in world.agents
    assert world.agents.get(predator).energy == approx(1000.0 + 400.0 / 4.0 - 1.0)
    assert world.heat_counts[prey_heat] == before - 1
    assert metrics.heat_counts[prey_heat] == before - 1
    assert world.deaths_by_cause[DeathCause.PREDATION] == 1
    assert metrics.deaths_by_cause["predation"] == 1


def test_predation_gain_is_capped(quiet_world):
    world = quiet_world(organism=OrganismConfig(reproduction_threshold=5000.0))
    predator = world.spawn_agent(Vector2(100, 100), 8.0, energy=2990.0, program=("consume",))
    world.spawn_agent(Vector2(105, 100), 7.0, energy=400.0, program=("nop",))

    world.step(0)

    assert world.agents.get(predator).energy == approx(3000.0 - 1.0)


def test_predated_and_starving_prey_dies_once(quiet_world):
    world = quiet_world()
    world.spawn_agent(Vector2(100, 100), 8.0, energy=1000.0, program=("consume",))
    prey = world.spawn_agent(Vector2(105, 100), 7.0, energy=0.5, program=("nop",))

    metrics = world.step(0)

    assert prey not in world.agents
    assert metrics.deaths == 1
    assert world.deaths_by_cause[DeathCause.PREDATION] == 1
    assert world.deaths_by_cause[DeathCause.STARVATION] == 0


def test_duplicate_kill_changes_nothing(quiet_world):
    world = quiet_world()
    agent = world.spawn_agent(Vector2(100, 100), 5.0, program=("nop",))
    heat = world.heat_scale(5.0)

    assert lifecycle.apply_kill(world, agent, DeathCause.STARVATION)
    counts = world.heat_counts
    causes = world.deaths_by_cause
    assert not lifecycle.apply_kill(world, agent, DeathCause.PREDATION)

    assert world.heat_counts == counts
    assert world.heat_counts[heat] == 0
    assert world.deaths_by_cause == causes
    assert len(world.surface) == 0


def test_starvation(quiet_world):
    world = quiet_world()
    agent = world.spawn_agent(Vector2(100, 100), 5.0, energy=0.5, program=("nop",))

    metrics = world.step(0)

    assert agent not in world.agents
    assert metrics.deaths == 1
    assert metrics.deaths_by_cause == {"starvation": 1, "predation": 0, "eviction": 0}


def test_resource_consumed_exactly_once(quiet_world):
    world = quiet_world()
    first = world.spawn_agent(Vector2(100, 100), 4.0, energy=1000.0, program=("consume",))
    second = world.spawn_agent(Vector2(104, 100), 4.0, energy=1000.0, program=("consume",))
    resource = world.spawn_resource(Vector2(102, 100))
    handle = world.resources.get(resource).handle

    world.step(0)

    assert world.agents.get(first).energy == approx(1000.0 - 1.0 + 300.0)
    assert world.agents.get(second).energy == approx(999.0)
    assert world.resources.get(resource).times_consumed == 1
    assert world.surface.get_center(handle) != Vector2(102, 100)


def test_dead_claimant_forfeits_resource(quiet_world):
    world = quiet_world()
    agent = world.spawn_agent(Vector2(100, 100), 4.0, energy=1000.0, program=("nop",))
    resource = world.spawn_resource(Vector2(102, 100))
    handle = world.resources.get(resource).handle
    world.events.mark_kill(agent, DeathCause.PREDATION)
    world.events.claim_resource(resource, agent)

    births, deaths = lifecycle.drain_events(world)

    assert (births, deaths) == (0, 1)
    assert world.resources.get(resource).times_consumed == 0
    assert world.surface.get_center(handle) == Vector2(102, 100)


def test_birth_creates_child_from_parent(quiet_world):
    world = quiet_world(max_population=10)
    parent = world.spawn_agent(Vector2(100, 100), 6.5, energy=2500.0, program=("nop", "spin_left"))

    metrics = world.step(3)

    assert metrics.births == 1
    assert len(world.agents) == 2
    child = next(agent for agent in world.agents if agent.id != parent)
    parent_record = world.agents.get(parent)
    assert parent_record.energy == approx(2499.0 / 2.0)
    assert child.energy == approx(parent_record.energy)
    assert child.id > parent
    assert child.parent_id == parent
    assert child.generation == 1
    assert child.born_tick == 3
    assert child.program == ("nop", "spin_left")
    assert child.core.pointer == 0
    assert world.radius_of(child.id) == approx(6.5)
    assert child.heat == parent_record.heat
    assert world.surface.get_center(child.handle) == world.surface.get_center(parent_record.handle)


def test_child_heat_follows_mutated_radius(quiet_world):
    mutation = MutationConfig(
        radius_mutation_rate=1.0,
        radius_mutation_sigma=50.0,
        instruction_substitution_rate=0.0,
        instruction_insertion_rate=0.0,
        instruction_deletion_rate=0.0,
    )
    world = quiet_world(max_population=10, mutation=mutation)
    parent = world.spawn_agent(Vector2(100, 100), 6.0, energy=2500.0, program=("nop",))

    world.step(0)

    child = next(agent for agent in world.agents if agent.id != parent)
    radius = world.radius_of(child.id)
    assert 4.0 <= radius <= 8.0
    assert child.heat == world.heat_scale(radius)
    assert sum(world.heat_counts) == 2


def test_birth_dropped_at_capacity_keeps_deduction(quiet_world):
    world = quiet_world(max_population=1)
    parent = world.spawn_agent(Vector2(100, 100), 5.0, energy=2500.0, program=("nop",))

    metrics = world.step(0)

    assert metrics.births == 0
    assert len(world.agents) == 1
    assert world.agents.get(parent).energy == approx(2499.0 / 2.0)


def test_dropped_birth_refund_policy(quiet_world):
    world = quiet_world(max_population=1, refund_dropped_birth=True)
    parent = world.spawn_agent(Vector2(100, 100), 5.0, energy=2500.0, program=("nop",))

    world.step(0)

    assert world.agents.get(parent).energy == approx(2499.0)


def test_eviction_makes_room_for_child(quiet_world):
    world = quiet_world(max_population=2, evict_on_full=True)
    parent = world.spawn_agent(Vector2(100, 100), 5.0, energy=2500.0, program=("nop",))
    victim = world.spawn_agent(Vector2(300, 300), 5.0, energy=1000.0, program=("nop",))

    metrics = world.step(0)

    assert victim not in world.agents
    assert parent in world.agents
    assert len(world.agents) == 2
    assert metrics.births == 1
    assert metrics.deaths == 1
    assert world.deaths_by_cause[DeathCause.EVICTION] == 1


def test_agents_pending_kill_skip_behavior(quiet_world):
    world = quiet_world()
    predator = world.spawn_agent(Vector2(100, 100), 8.0, energy=1000.0, program=("consume",))
    prey = world.spawn_agent(Vector2(105, 100), 7.0, energy=400.0, program=("spin_left",))

    world._behavior_phase()

    prey_record = world.agents.get(prey)
    assert world.events.is_pending_kill(prey)
    assert prey_record.core.cycles == 0
    assert prey_record.facing == approx(0.0)
    assert world.agents.get(predator).core.cycles == 1


def test_snapshot_contains_metadata_and_entities(quiet_world):
    world = quiet_world(seed=7)
    agent = world.spawn_agent(Vector2(20, 30), 5.0, energy=900.0, program=("nop",), facing=45.0)
    world.spawn_resource(Vector2(60, 70))

    world.step(0)
    snapshot = world.snapshot(1)

    assert snapshot.tick == 1
    assert snapshot.world.width == approx(400.0)
    assert snapshot.metadata.seed == 7
    assert snapshot.metadata.heat_buckets == 6
    assert snapshot.metrics.population == 1
    payload = snapshot.agents[0]
    assert payload["id"] == agent
    assert payload["x"] == approx(20.0)
    assert payload["y"] == approx(30.0)
    assert payload["energy"] == approx(899.0)
    assert payload["facing"] == approx(45.0)
    assert snapshot.resources[0]["heat"] == 6
