"""Identifier and payload contracts.

A genealogy stores bare identifiers. Payload values are rebuilt on demand
from an identifier by a factory, so any payload type works as long as it can
be built from its id and hands the id back via ``get_id()``.

INVARIANT: Identifiers are permanent. Once a node exists its id never changes.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar


class Identifier(Protocol):
    """Hashable, totally ordered, immutable key."""

    def __hash__(self) -> int: ...

    def __eq__(self, other: object, /) -> bool: ...

    def __lt__(self, other: Any, /) -> bool: ...


class Entity(Protocol):
    """Payload stored in a genealogy."""

    def get_id(self) -> Any: ...


IdT = TypeVar("IdT", bound=Identifier)
EntityT = TypeVar("EntityT", bound=Entity)

# Builds a payload value from its identifier.
EntityFactory = Callable[[IdT], EntityT]


@dataclass(frozen=True, order=True)
class Virus:
    """Default payload: a strain named by its identifier."""

    id: Any

    def get_id(self) -> Any:
        return self.id
