"""MaterializationCache — payload values rebuilt from bare identifiers.

Nodes store ids only. The first time an id is dereferenced the payload is
built by the genealogy's factory and kept; later lookups return that same
object. One cache belongs to one genealogy and is shared by ``lookup`` and
every children view or cursor handed out by it.

Entries are never evicted, including for ids that have since been removed.
"""

from __future__ import annotations

from typing import Any, Generic

from lineagectl.domain.types import EntityFactory, EntityT, IdT


class MaterializationCache(Generic[IdT, EntityT]):
    """First-write-wins store of materialized payload values."""

    def __init__(self, factory: EntityFactory[IdT, EntityT]) -> None:
        self._factory = factory
        self._values: dict[Any, EntityT] = {}

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._values

    def __len__(self) -> int:
        return len(self._values)

    def materialize(self, node_id: IdT) -> EntityT:
        """Return the cached payload for *node_id*, building it on first use.

        Errors raised by the factory propagate and leave the cache unchanged.
        """
        try:
            return self._values[node_id]
        except KeyError:
            pass
        value = self._factory(node_id)
        return self._values.setdefault(node_id, value)
