"""Secondary key -> entity lookup, rebuilt wholesale by its manager.

An Index is not kept consistent with in-place field mutations. Its manager
rebuilds every index after a download and after each sync pass, and indexes
newly created entities immediately.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Generic, TypeVar

E = TypeVar("E")


class Index(Generic[E]):
    """Maps every key produced by ``keys_for`` to its entity.

    Duplicate keys within one rebuild resolve to the last entity added.

    Args:
        keys_for: Extracts zero or more string keys from an entity.
    """

    def __init__(self, keys_for: Callable[[E], Iterable[str]]) -> None:
        self._keys_for = keys_for
        self._map: dict[str, E] = {}

    def __len__(self) -> int:
        return len(self._map)

    def clear(self) -> None:
        self._map.clear()

    def add_indexes_for(self, entities: Iterable[E]) -> None:
        for entity in entities:
            for key in self._keys_for(entity):
                self._map[key] = entity

    def remove_indexes_for(self, entities: Iterable[E]) -> None:
        """Drop the keys of ``entities`` that still point at them."""
        for entity in entities:
            for key in self._keys_for(entity):
                if self._map.get(key) is entity:
                    del self._map[key]

    def rebuild(self, entities: Iterable[E]) -> None:
        self.clear()
        self.add_indexes_for(entities)

    def get(self, key: str) -> E | None:
        return self._map.get(key)
