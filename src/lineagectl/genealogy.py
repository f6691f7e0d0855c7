"""Genealogy — a rooted DAG of entities with all-or-nothing mutation.

A genealogy starts with a single permanent *stem*. Every other node is
created under one or more existing parents, may gain further parents via
:meth:`Genealogy.connect`, and disappears via :meth:`Genealogy.remove`,
which also removes every descendant left without a parent.

INVARIANTS (hold between any two calls):

- The stem exists, has no parents, and is never removed.
- Every non-stem node has at least one parent.
- Parent and child links are symmetric.

Each mutation validates first, then stages its edits on a copy of the node
table and installs the copy in one step. A failure at any point, including a
user-supplied comparison or hash raising, leaves the genealogy unchanged
and re-raises the original exception.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any, Generic, NoReturn

from lineagectl.domain.errors import (
    AlreadyExists,
    CycleDetected,
    EmptyParents,
    NotFound,
    RemoveStemForbidden,
)
from lineagectl.domain.types import EntityFactory, EntityT, IdT, Virus
from lineagectl.infrastructure.cache import MaterializationCache
from lineagectl.infrastructure.children import ChildCursor, ChildrenView
from lineagectl.infrastructure.store import NodeRecord, NodeTable, sorted_ids

logger = logging.getLogger(__name__)


class Genealogy(Generic[IdT, EntityT]):
    """In-memory genealogy rooted at *stem_id*.

    Args:
        stem_id: Identifier of the permanent root.
        factory: Builds a payload value from an identifier. Defaults to
            :class:`~lineagectl.domain.types.Virus`.
        enforce_acyclic: Reject :meth:`connect` calls that would make a node
            its own ancestor. When False, links are trusted as given.

    A genealogy is the unique owner of its state: it cannot be copied or
    pickled.
    """

    def __init__(
        self,
        stem_id: IdT,
        factory: EntityFactory[IdT, EntityT] = Virus,  # type: ignore[assignment]
        *,
        enforce_acyclic: bool = True,
    ) -> None:
        self._table: NodeTable[IdT] = NodeTable(stem_id)
        self._cache: MaterializationCache[IdT, EntityT] = MaterializationCache(factory)
        self._enforce_acyclic = enforce_acyclic

    # ── Ownership ────────────────────────────────────────────────────

    def _refuse_copy(self, *_args: Any) -> NoReturn:
        raise TypeError(f"{type(self).__name__} objects cannot be copied or pickled")

    __copy__ = _refuse_copy
    __deepcopy__ = _refuse_copy
    __reduce_ex__ = _refuse_copy  # type: ignore[assignment]

    # ── Reads ────────────────────────────────────────────────────────

    @property
    def stem_id(self) -> IdT:
        return self._table.stem_id

    @property
    def enforce_acyclic(self) -> bool:
        return self._enforce_acyclic

    def get_stem_id(self) -> IdT:
        """Return the identifier of the stem."""
        return self._table.stem_id

    def exists(self, node_id: IdT) -> bool:
        """Whether *node_id* is in the genealogy."""
        return node_id in self._table

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._table

    def __len__(self) -> int:
        return len(self._table)

    def __iter__(self) -> Iterator[IdT]:
        return iter(self._table)

    def lookup(self, node_id: IdT) -> EntityT:
        """Return the payload value for *node_id*.

        The value is built on first access and reused afterwards.

        Raises:
            NotFound: *node_id* is not in the genealogy.
        """
        record = self._table.get(node_id)
        return self._cache.materialize(record.id)

    def __getitem__(self, node_id: IdT) -> EntityT:
        return self.lookup(node_id)

    def get_parents(self, node_id: IdT) -> list[IdT]:
        """Return the parent ids of *node_id* in ascending order."""
        return list(self._table.get(node_id).parents)

    def get_children(self, node_id: IdT) -> list[IdT]:
        """Return the child ids of *node_id* in ascending order."""
        return list(self._table.get(node_id).children)

    def children(self, node_id: IdT) -> ChildrenView[IdT, EntityT]:
        """Return a lazy view of *node_id*'s child payloads."""
        record = self._table.get(node_id)
        return ChildrenView(record.id, record.children, self._cache)

    def children_begin(self, node_id: IdT) -> ChildCursor[IdT, EntityT]:
        """Cursor at the first child of *node_id*."""
        return self.children(node_id).begin()

    def children_end(self, node_id: IdT) -> ChildCursor[IdT, EntityT]:
        """Cursor one past the last child of *node_id*."""
        return self.children(node_id).end()

    def records(self) -> Iterator[NodeRecord[IdT]]:
        """Iterate over node records in ascending id order."""
        return self._table.records()

    # ── create ───────────────────────────────────────────────────────

    def create(self, node_id: IdT, parent_id: IdT | list[IdT]) -> None:
        """Create *node_id* as a child of *parent_id*.

        A ``list`` of parents is forwarded to :meth:`create_many`.

        Raises:
            AlreadyExists: *node_id* is already present.
            NotFound: the parent is absent.
        """
        if isinstance(parent_id, list):
            self.create_many(node_id, parent_id)
            return
        self._check_new(node_id)
        self._table.get(parent_id)
        self._insert(node_id, (parent_id,))

    def create_many(self, node_id: IdT, parent_ids: Iterable[IdT]) -> None:
        """Create *node_id* as a child of every id in *parent_ids*.

        All parents are validated before anything changes. Repeated parent
        ids collapse into a single link.

        Raises:
            AlreadyExists: *node_id* is already present.
            NotFound: any parent is absent.
            EmptyParents: *parent_ids* is empty.
        """
        parents = list(parent_ids)
        self._check_new(node_id)
        for parent_id in parents:
            self._table.get(parent_id)
        if not parents:
            raise EmptyParents(f"Node {node_id!r} needs at least one parent", node_id=node_id)
        self._insert(node_id, parents)

    def _check_new(self, node_id: IdT) -> None:
        if node_id in self._table:
            raise AlreadyExists(f"Node {node_id!r} already exists", node_id=node_id)

    def _insert(self, node_id: IdT, parent_ids: Iterable[IdT]) -> None:
        with self._table.transaction() as staged:
            record = NodeRecord(node_id, parents=sorted_ids(parent_ids))
            for parent_id in record.parents:
                staged.put(staged.get(parent_id).with_child(node_id))
            staged.put(record)
        logger.debug("Created %r under %r", node_id, list(record.parents))

    # ── connect ──────────────────────────────────────────────────────

    def connect(self, child_id: IdT, parent_id: IdT) -> None:
        """Add *parent_id* as a parent of *child_id*.

        Linking an existing pair again is a no-op.

        Raises:
            NotFound: either id is absent.
            CycleDetected: the link would make *child_id* its own ancestor
                (only when ``enforce_acyclic`` is on).
        """
        child = self._table.get(child_id)
        self._table.get(parent_id)
        if child.has_parent(parent_id):
            return
        if self._enforce_acyclic and self._is_ancestor(child_id, parent_id):
            raise CycleDetected(
                f"Linking {child_id!r} under {parent_id!r} would create a cycle",
                child_id=child_id,
                parent_id=parent_id,
            )

        with self._table.transaction() as staged:
            staged.put(staged.get(child_id).with_parent(parent_id))
            staged.put(staged.get(parent_id).with_child(child_id))
        logger.debug("Connected %r under %r", child_id, parent_id)

    def _is_ancestor(self, candidate: IdT, node_id: IdT) -> bool:
        """Whether *candidate* is *node_id* or one of its ancestors."""
        pending = [node_id]
        seen: set[Any] = set()
        while pending:
            current = pending.pop()
            if current == candidate:
                return True
            if current in seen:
                continue
            seen.add(current)
            pending.extend(self._table.get(current).parents)
        return False

    # ── remove ───────────────────────────────────────────────────────

    def remove(self, node_id: IdT) -> list[IdT]:
        """Remove *node_id* and every descendant left without a parent.

        Returns the removed ids in removal order, *node_id* first.

        Raises:
            NotFound: *node_id* is absent.
            RemoveStemForbidden: *node_id* is the stem.
        """
        self._table.get(node_id)
        stem_id = self._table.stem_id
        if node_id == stem_id:
            raise RemoveStemForbidden(f"Cannot remove stem {node_id!r}", node_id=node_id)

        removed: list[IdT] = []
        with self._table.transaction() as staged:
            pending = [node_id]
            while pending:
                current = pending.pop()
                if current not in staged:
                    continue
                record = staged.get(current)

                for parent_id in record.parents:
                    if parent_id != current and parent_id in staged:
                        staged.put(staged.get(parent_id).without_child(current))

                for child_id in record.children:
                    if child_id == current or child_id not in staged:
                        continue
                    child = staged.get(child_id)
                    # The stem can only gain a parent through a permissive link.
                    if len(child.parents) == 1 and child_id != stem_id:
                        pending.append(child_id)
                    else:
                        staged.put(child.without_parent(current))

                staged.discard(current)
                removed.append(current)

        logger.debug("Removed %r (cascade: %d)", node_id, len(removed) - 1)
        return removed

    def __repr__(self) -> str:
        return f"Genealogy(stem_id={self.stem_id!r}, size={len(self)})"
