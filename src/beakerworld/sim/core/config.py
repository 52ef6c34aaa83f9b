from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict

import yaml

from .errors import ConfigurationError


class EdibilityPolicy(str, Enum):
    # lower bound = predator_radius * min_consume_ratio
    PROPORTIONAL = "proportional"
    # lower bound = predator_radius - predator_radius * min_consume_ratio
    SUBTRACTIVE = "subtractive"
    # predator heat class strictly above prey heat class, radius window ignored
    HEAT_RANK = "heat_rank"


@dataclass
class OrganismConfig:
    initial_energy: float = 1000.0
    max_energy: float = 3000.0
    metabolic_cost: float = 1.0
    reproduction_threshold: float = 2000.0
    reproduction_cost_fraction: float = 0.5
    min_radius: float = 4.0
    max_radius: float = 8.0


@dataclass
class EnvironmentConfig:
    num_resources: int = 500
    resource_radius: float = 3.0
    resource_energy: float = 300.0
    min_consume_ratio: float = 0.8
    max_consume_ratio: float = 0.0
    consume_resource_threshold: float = 0.5
    predation_energy_divisor: float = 4.0
    edibility_policy: EdibilityPolicy = EdibilityPolicy.PROPORTIONAL


@dataclass
class MutationConfig:
    radius_mutation_rate: float = 0.001
    radius_mutation_sigma: float = 1.0
    instruction_substitution_rate: float = 0.001
    instruction_insertion_rate: float = 0.001
    instruction_deletion_rate: float = 0.001


@dataclass
class ProgramConfig:
    min_program_length: int = 8
    max_program_length: int = 32


@dataclass
class SimulationConfig:
    world_width: float = 1400.0
    world_height: float = 900.0
    initial_population: int = 500
    max_population: int = 3000
    heat_buckets: int = 6
    cycle_budget: int = 7
    cell_size: float = 16.0
    seed: int = 2
    evict_on_full: bool = False
    refund_dropped_birth: bool = False
    config_version: str = "v1"
    organism: OrganismConfig = field(default_factory=OrganismConfig)
    environment: EnvironmentConfig = field(default_factory=EnvironmentConfig)
    mutation: MutationConfig = field(default_factory=MutationConfig)
    program: ProgramConfig = field(default_factory=ProgramConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path}: expected a mapping at the top level")
        return load_config(data)

    def validate(self) -> "SimulationConfig":
        """Reject configurations the tick engine cannot run with.

        Called by ``World`` before the first tick; returns ``self`` so it can be
        chained after construction.
        """
        organism = self.organism
        environment = self.environment
        mutation = self.mutation
        program = self.program

        _require_types(self, "")
        for section_name in _SECTIONS:
            _require_types(getattr(self, section_name), f"{section_name}.")

        if self.heat_buckets <= 0:
            raise ConfigurationError(f"heat_buckets must be positive, got {self.heat_buckets}")
        if not organism.min_radius < organism.max_radius:
            raise ConfigurationError(
                f"min_radius ({organism.min_radius}) must be below max_radius ({organism.max_radius})"
            )
        if organism.min_radius <= 0.0:
            raise ConfigurationError(f"min_radius must be positive, got {organism.min_radius}")
        if self.world_width <= 0.0 or self.world_height <= 0.0:
            raise ConfigurationError("world dimensions must be positive")
        if self.cell_size <= 0.0:
            raise ConfigurationError(f"cell_size must be positive, got {self.cell_size}")
        if environment.predation_energy_divisor <= 0.0:
            raise ConfigurationError("predation_energy_divisor must be positive")
        if organism.max_energy <= 0.0:
            raise ConfigurationError("max_energy must be positive")
        if environment.resource_radius <= 0.0:
            raise ConfigurationError("resource_radius must be positive")

        _require_non_negative(
            initial_population=self.initial_population,
            max_population=self.max_population,
            cycle_budget=self.cycle_budget,
            initial_energy=organism.initial_energy,
            metabolic_cost=organism.metabolic_cost,
            reproduction_threshold=organism.reproduction_threshold,
            num_resources=environment.num_resources,
            resource_energy=environment.resource_energy,
            min_consume_ratio=environment.min_consume_ratio,
            max_consume_ratio=environment.max_consume_ratio,
            consume_resource_threshold=environment.consume_resource_threshold,
            radius_mutation_sigma=mutation.radius_mutation_sigma,
        )
        _require_probability(
            reproduction_cost_fraction=organism.reproduction_cost_fraction,
            radius_mutation_rate=mutation.radius_mutation_rate,
            instruction_substitution_rate=mutation.instruction_substitution_rate,
            instruction_insertion_rate=mutation.instruction_insertion_rate,
            instruction_deletion_rate=mutation.instruction_deletion_rate,
        )
        if not 1 <= program.min_program_length <= program.max_program_length:
            raise ConfigurationError(
                "program lengths must satisfy 1 <= min_program_length <= max_program_length"
            )
        if not isinstance(environment.edibility_policy, EdibilityPolicy):
            raise ConfigurationError(f"unknown edibility policy {environment.edibility_policy!r}")
        return self


def _require_types(section: Any, prefix: str) -> None:
    """Check each scalar field against the type of its default.

    Float fields accept ints; int fields reject bools.
    """
    for f in fields(section):
        if f.name in _SECTIONS or f.name == "edibility_policy":
            continue
        value = getattr(section, f.name)
        expected = type(f.default)
        if expected is bool:
            ok = isinstance(value, bool)
        elif expected is int:
            ok = isinstance(value, int) and not isinstance(value, bool)
        elif expected is float:
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        else:
            ok = isinstance(value, expected)
        if not ok:
            raise ConfigurationError(
                f"{prefix}{f.name} must be {expected.__name__}, got {type(value).__name__} {value!r}"
            )


def _require_non_negative(**values: float) -> None:
    for name, value in values.items():
        if math.isnan(value) or value < 0:
            raise ConfigurationError(f"{name} must be non-negative, got {value}")


def _require_probability(**values: float) -> None:
    for name, value in values.items():
        if math.isnan(value) or not 0.0 <= value <= 1.0:
            raise ConfigurationError(f"{name} must lie in [0, 1], got {value}")


def _build_section(cls: type, raw: Any, name: str):
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ConfigurationError(f"section '{name}' must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(f"unknown keys in '{name}': {', '.join(unknown)}")
    return cls(**raw)


_SECTIONS = {
    "organism": OrganismConfig,
    "environment": EnvironmentConfig,
    "mutation": MutationConfig,
    "program": ProgramConfig,
}


def load_config(raw: Dict[str, Any]) -> SimulationConfig:
    sections = {name: _build_section(cls, raw.get(name), name) for name, cls in _SECTIONS.items()}

    environment = sections["environment"]
    try:
        environment.edibility_policy = EdibilityPolicy(environment.edibility_policy)
    except ValueError as exc:
        raise ConfigurationError(f"unknown edibility policy {environment.edibility_policy!r}") from exc

    sim_values = {k: v for k, v in raw.items() if k not in _SECTIONS}
    known = {f.name for f in fields(SimulationConfig)} - set(_SECTIONS)
    unknown = sorted(set(sim_values) - known)
    if unknown:
        raise ConfigurationError(f"unknown configuration keys: {', '.join(unknown)}")
    return SimulationConfig(**sections, **sim_values)
