from __future__ import annotations

from typing import List, Sequence

from ..core.agent import Program
from ..core.config import MutationConfig
from ..core.rng import DeterministicRng
from .behavior import INSTRUCTIONS


class ProgramMutator:
    """Per-instruction substitution, insertion and deletion.

    A program never shrinks below one instruction nor grows past
    ``max_length``.
    """

    def __init__(
        self,
        config: MutationConfig,
        max_length: int,
        instructions: Sequence[str] = INSTRUCTIONS,
    ) -> None:
        self._config = config
        self._max_length = max_length
        self._instructions = tuple(instructions)

    def apply_mutations(self, program: Program, rng: DeterministicRng) -> Program:
        config = self._config
        mutated: List[str] = []
        remaining = len(program)
        for instruction in program:
            remaining -= 1
            if len(mutated) + remaining >= 1 and rng.chance(config.instruction_deletion_rate):
                continue
            if rng.chance(config.instruction_substitution_rate):
                instruction = self._random_instruction(rng)
            mutated.append(instruction)
            if len(mutated) + remaining < self._max_length and rng.chance(config.instruction_insertion_rate):
                mutated.append(self._random_instruction(rng))
        if not mutated:
            mutated.append(self._random_instruction(rng))
        return tuple(mutated)

    def _random_instruction(self, rng: DeterministicRng) -> str:
        return self._instructions[rng.next_int(len(self._instructions))]
