"""Stable-id slot map for agents and resources.

Records live in a list of slots. Removing a record tombstones its slot and puts
the slot index on a free list; a later insert reclaims it. Slots never move, and
nothing outside the store holds a record across a tick boundary: callers keep
stable ids and resolve them with ``get`` each time.

Stable ids are minted from a monotonically increasing counter, separate from
slot indices, so an id is never reused even when its slot is.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterator, List, Protocol, Tuple, TypeVar

from .errors import NotFound


class Identified(Protocol):
    id: int


T = TypeVar("T", bound=Identified)


@dataclass(slots=True)
class _Slot:
    stable_id: int
    record: Any

    @property
    def tombstoned(self) -> bool:
        return self.record is None


class PopulationStore(Generic[T]):
    def __init__(self, first_id: int = 1) -> None:
        self._first_id = first_id
        self._next_id = first_id
        self._slots: List[_Slot] = []
        self._free: List[int] = []
        self._index: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, stable_id: object) -> bool:
        return stable_id in self._index

    def __iter__(self) -> Iterator[T]:
        return self.values()

    def insert(self, record: T) -> int:
        stable_id = self._next_id
        self._next_id += 1
        record.id = stable_id
        if self._free:
            slot_index = self._free.pop()
            slot = self._slots[slot_index]
            slot.stable_id = stable_id
            slot.record = record
        else:
            slot_index = len(self._slots)
            self._slots.append(_Slot(stable_id, record))
        self._index[stable_id] = slot_index
        return stable_id

    def remove(self, stable_id: int) -> T:
        slot_index = self._index.pop(stable_id, None)
        if slot_index is None:
            raise NotFound(stable_id)
        slot = self._slots[slot_index]
        record = slot.record
        slot.record = None
        self._free.append(slot_index)
        return record

    def get(self, stable_id: int) -> T:
        slot_index = self._index.get(stable_id)
        if slot_index is None:
            raise NotFound(stable_id)
        return self._slots[slot_index].record

    def find(self, stable_id: int) -> T | None:
        slot_index = self._index.get(stable_id)
        if slot_index is None:
            return None
        return self._slots[slot_index].record

    def ids(self) -> List[int]:
        """Live ids in slot order, copied so the caller may mutate the store while walking them."""
        return [slot.stable_id for slot in self._slots if not slot.tombstoned]

    def values(self) -> Iterator[T]:
        for slot in self._slots:
            if not slot.tombstoned:
                yield slot.record

    def items(self) -> Iterator[Tuple[int, T]]:
        for slot in self._slots:
            if not slot.tombstoned:
                yield slot.stable_id, slot.record

    def tombstones(self) -> int:
        return len(self._free)

    def clear(self) -> None:
        self._slots.clear()
        self._free.clear()
        self._index.clear()
        self._next_id = self._first_id
