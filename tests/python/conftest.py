import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
src_root = ROOT / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from beakerworld.sim.core.config import (  # noqa: E402
    EnvironmentConfig,
    MutationConfig,
    OrganismConfig,
    SimulationConfig,
)
from beakerworld.sim.core.world import World  # noqa: E402


def make_quiet_config(**overrides) -> SimulationConfig:
    """An empty arena with mutation switched off, for hand-placed scenarios."""
    environment = overrides.pop("environment", EnvironmentConfig(num_resources=0))
    mutation = overrides.pop(
        "mutation",
        MutationConfig(
            radius_mutation_rate=0.0,
            instruction_substitution_rate=0.0,
            instruction_insertion_rate=0.0,
            instruction_deletion_rate=0.0,
        ),
    )
    organism = overrides.pop("organism", OrganismConfig())
    params = dict(
        world_width=400.0,
        world_height=400.0,
        initial_population=0,
        cycle_budget=1,
        seed=11,
        organism=organism,
        environment=environment,
        mutation=mutation,
    )
    params.update(overrides)
    return SimulationConfig(**params)


@pytest.fixture
def quiet_world():
    def _build(**overrides) -> World:
        return World(make_quiet_config(**overrides))

    return _build


@pytest.fixture
def quiet_config():
    return make_quiet_config
