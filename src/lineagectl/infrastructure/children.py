"""Lazy views over one node's children.

A view or cursor captures the node's child-id tuple at the moment it is
obtained (records are immutable, so the tuple never changes underneath it)
and materializes payload values through the owning genealogy's cache only
when a position is dereferenced.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Generic, overload

from lineagectl.domain.types import EntityT, IdT
from lineagectl.infrastructure.cache import MaterializationCache


class ChildCursor(Generic[IdT, EntityT]):
    """Bidirectional position within a node's children.

    Two cursors are equal when they belong to the same node and point at the
    same position of the same child snapshot. Payload equality plays no part.
    """

    __slots__ = ("_cache", "_ids", "_parent_id", "_pos")

    def __init__(
        self,
        parent_id: IdT,
        ids: tuple[IdT, ...],
        pos: int,
        cache: MaterializationCache[IdT, EntityT],
    ) -> None:
        self._parent_id = parent_id
        self._ids = ids
        self._pos = pos
        self._cache = cache

    @property
    def position(self) -> int:
        return self._pos

    @property
    def at_end(self) -> bool:
        return self._pos == len(self._ids)

    @property
    def id(self) -> IdT:
        """Identifier of the child at this position."""
        if not 0 <= self._pos < len(self._ids):
            raise IndexError(f"Cursor position {self._pos} is out of range")
        return self._ids[self._pos]

    @property
    def value(self) -> EntityT:
        """Materialized payload of the child at this position."""
        return self._cache.materialize(self.id)

    def advance(self) -> ChildCursor[IdT, EntityT]:
        """Move one position forward in place and return ``self``."""
        self._pos += 1
        return self

    def retreat(self) -> ChildCursor[IdT, EntityT]:
        """Move one position backward in place and return ``self``."""
        self._pos -= 1
        return self

    def __add__(self, offset: int) -> ChildCursor[IdT, EntityT]:
        return ChildCursor(self._parent_id, self._ids, self._pos + offset, self._cache)

    def __sub__(self, offset: int) -> ChildCursor[IdT, EntityT]:
        return ChildCursor(self._parent_id, self._ids, self._pos - offset, self._cache)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChildCursor):
            return NotImplemented
        return (
            self._parent_id == other._parent_id
            and self._ids is other._ids
            and self._pos == other._pos
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ChildCursor(position={self._pos}, size={len(self._ids)})"


class ChildrenView(Sequence[EntityT], Generic[IdT, EntityT]):
    """Restartable, reversible sequence of a node's child payloads.

    Iteration order is ascending by identifier. Each pass materializes
    values lazily; values already in the cache are reused.
    """

    __slots__ = ("_cache", "_ids", "_parent_id")

    def __init__(
        self,
        parent_id: IdT,
        ids: tuple[IdT, ...],
        cache: MaterializationCache[IdT, EntityT],
    ) -> None:
        self._parent_id = parent_id
        self._ids = ids
        self._cache = cache

    @property
    def parent_id(self) -> IdT:
        return self._parent_id

    @property
    def ids(self) -> tuple[IdT, ...]:
        """Child identifiers in ascending order."""
        return self._ids

    def begin(self) -> ChildCursor[IdT, EntityT]:
        return ChildCursor(self._parent_id, self._ids, 0, self._cache)

    def end(self) -> ChildCursor[IdT, EntityT]:
        return ChildCursor(self._parent_id, self._ids, len(self._ids), self._cache)

    def __len__(self) -> int:
        return len(self._ids)

    @overload
    def __getitem__(self, index: int) -> EntityT: ...

    @overload
    def __getitem__(self, index: slice) -> list[EntityT]: ...

    def __getitem__(self, index: int | slice) -> EntityT | list[EntityT]:
        if isinstance(index, slice):
            return [self._cache.materialize(child_id) for child_id in self._ids[index]]
        return self._cache.materialize(self._ids[index])

    def __iter__(self) -> Iterator[EntityT]:
        for child_id in self._ids:
            yield self._cache.materialize(child_id)

    def __reversed__(self) -> Iterator[EntityT]:
        for child_id in reversed(self._ids):
            yield self._cache.materialize(child_id)

    def __repr__(self) -> str:
        return f"ChildrenView(parent_id={self._parent_id!r}, ids={list(self._ids)!r})"
