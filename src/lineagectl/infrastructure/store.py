"""NodeTable — identifier-keyed storage with stage-then-commit transactions.

Node records are immutable: edits produce replacement records. A transaction
therefore only needs a shallow copy of the id -> record mapping to stage a
change, and commits by rebinding a single attribute. If anything raises
while the staged copy is being built (an identifier comparison, a hash), the
copy is dropped and the live table is left exactly as it was.
"""

from __future__ import annotations

import logging
from bisect import bisect_left
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Generic

from lineagectl.domain.errors import NotFound
from lineagectl.domain.types import IdT

logger = logging.getLogger(__name__)


# ── Sorted tuple helpers ─────────────────────────────────────────────


def sorted_ids(ids: Iterable[IdT]) -> tuple[IdT, ...]:
    """Return *ids* deduplicated and in ascending order."""
    result: list[IdT] = []
    for node_id in ids:
        pos = bisect_left(result, node_id)
        if pos == len(result) or result[pos] != node_id:
            result.insert(pos, node_id)
    return tuple(result)


def _index_of(ids: tuple[IdT, ...], node_id: IdT) -> int:
    """Position of *node_id* in the sorted tuple *ids*, or -1."""
    pos = bisect_left(ids, node_id)
    if pos < len(ids) and ids[pos] == node_id:
        return pos
    return -1


def _insert(ids: tuple[IdT, ...], node_id: IdT) -> tuple[IdT, ...]:
    pos = bisect_left(ids, node_id)
    if pos < len(ids) and ids[pos] == node_id:
        return ids
    return (*ids[:pos], node_id, *ids[pos:])


def _discard(ids: tuple[IdT, ...], node_id: IdT) -> tuple[IdT, ...]:
    pos = _index_of(ids, node_id)
    if pos < 0:
        return ids
    return ids[:pos] + ids[pos + 1 :]


# ── Records ──────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class NodeRecord(Generic[IdT]):
    """One genealogy node: its id plus sorted parent and child ids."""

    id: IdT
    parents: tuple[IdT, ...] = ()
    children: tuple[IdT, ...] = ()

    def has_parent(self, parent_id: IdT) -> bool:
        return _index_of(self.parents, parent_id) >= 0

    def has_child(self, child_id: IdT) -> bool:
        return _index_of(self.children, child_id) >= 0

    def with_parent(self, parent_id: IdT) -> NodeRecord[IdT]:
        return replace(self, parents=_insert(self.parents, parent_id))

    def without_parent(self, parent_id: IdT) -> NodeRecord[IdT]:
        return replace(self, parents=_discard(self.parents, parent_id))

    def with_child(self, child_id: IdT) -> NodeRecord[IdT]:
        return replace(self, children=_insert(self.children, child_id))

    def without_child(self, child_id: IdT) -> NodeRecord[IdT]:
        return replace(self, children=_discard(self.children, child_id))


# ── Table ────────────────────────────────────────────────────────────


class StagedTable(Generic[IdT]):
    """Scratch copy of the node mapping handed out by :meth:`NodeTable.transaction`."""

    def __init__(self, nodes: dict[Any, NodeRecord[IdT]]) -> None:
        self.nodes = nodes

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def get(self, node_id: IdT) -> NodeRecord[IdT]:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise NotFound(f"Node {node_id!r} not found", node_id=node_id) from None

    def put(self, record: NodeRecord[IdT]) -> None:
        self.nodes[record.id] = record

    def discard(self, node_id: IdT) -> None:
        self.nodes.pop(node_id, None)


class NodeTable(Generic[IdT]):
    """Mapping from identifier to :class:`NodeRecord`, rooted at a permanent stem.

    Reads go straight to the live mapping. Writes go through
    :meth:`transaction`, which stages edits on a copy and installs the copy
    only when the ``with`` block finishes without raising.
    """

    def __init__(self, stem_id: IdT) -> None:
        self._stem_id = stem_id
        self._nodes: dict[Any, NodeRecord[IdT]] = {stem_id: NodeRecord(stem_id)}

    @property
    def stem_id(self) -> IdT:
        return self._stem_id

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[IdT]:
        return iter(sorted(self._nodes))

    def get(self, node_id: IdT) -> NodeRecord[IdT]:
        """Return the record for *node_id*.

        Raises:
            NotFound: *node_id* is not in the table.
        """
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NotFound(f"Node {node_id!r} not found", node_id=node_id) from None

    def records(self) -> Iterator[NodeRecord[IdT]]:
        """Iterate over records in ascending id order."""
        nodes = self._nodes
        for node_id in sorted(nodes):
            yield nodes[node_id]

    @contextmanager
    def transaction(self) -> Iterator[StagedTable[IdT]]:
        """Stage edits on a copy; commit with a single rebind on success.

        Usage::

            with table.transaction() as staged:
                staged.put(staged.get(parent_id).with_child(child_id))
                staged.put(NodeRecord(child_id, parents=(parent_id,)))
        """
        staged = StagedTable(self._nodes.copy())
        try:
            yield staged
        except BaseException:
            logger.debug("Transaction rolled back; staged copy discarded")
            raise
        self._nodes = staged.nodes
