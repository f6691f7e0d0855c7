"""GenealogyService — genealogy operations as ServiceResults.

Translates :class:`~lineagectl.domain.errors.GenealogyError` into error
results and fires lifecycle hooks after committed mutations. Exceptions
that do not come from the genealogy's own checks (a payload factory or an
identifier comparison raising) are not translated: they propagate after the
genealogy has rolled back.
"""

from __future__ import annotations

from typing import Any

from lineagectl.domain.errors import GenealogyError
from lineagectl.services.base import BaseService
from lineagectl.services.result import ServiceResult
from lineagectl.services.telemetry import trace_span, traced


class GenealogyService(BaseService):
    """Create, link, remove, and inspect genealogy nodes."""

    @traced
    def create(self, node_id: Any, parent_ids: list[Any]) -> ServiceResult:
        """Create *node_id* under every id in *parent_ids*."""
        try:
            if len(parent_ids) == 1:
                self._genealogy.create(node_id, parent_ids[0])
            else:
                self._genealogy.create_many(node_id, parent_ids)
        except GenealogyError as exc:
            return ServiceResult.failure("create", exc)

        warnings: list[str] = []
        parents = self._genealogy.get_parents(node_id)
        self._dispatch_event(
            "post_create",
            {"node_id": node_id, "parent_ids": parents},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op="create",
            data={"id": node_id, "parents": parents},
            warnings=warnings,
        )

    @traced
    def connect(self, child_id: Any, parent_id: Any) -> ServiceResult:
        """Link *child_id* under *parent_id*; linking twice is not an error."""
        try:
            already_linked = parent_id in self._genealogy.get_parents(child_id)
            self._genealogy.connect(child_id, parent_id)
        except GenealogyError as exc:
            return ServiceResult.failure("connect", exc)

        warnings: list[str] = []
        if already_linked:
            warnings.append(f"{child_id!r} already has parent {parent_id!r}")
        else:
            self._dispatch_event(
                "post_connect",
                {"child_id": child_id, "parent_id": parent_id},
                warnings,
            )
        return ServiceResult(
            ok=True,
            op="connect",
            data={
                "child": child_id,
                "parent": parent_id,
                "changed": not already_linked,
                "parents": self._genealogy.get_parents(child_id),
            },
            warnings=warnings,
        )

    @traced
    def remove(self, node_id: Any) -> ServiceResult:
        """Remove *node_id* and every descendant left without a parent."""
        with trace_span("cascade") as span:
            try:
                removed = self._genealogy.remove(node_id)
            except GenealogyError as exc:
                return ServiceResult.failure("remove", exc)
            if span:
                span.annotate("removed", len(removed))

        warnings: list[str] = []
        self._dispatch_event(
            "post_remove",
            {"node_id": node_id, "removed_ids": removed},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op="remove",
            data={"id": node_id, "removed": removed, "count": len(removed)},
            warnings=warnings,
        )

    @traced
    def describe(self, node_id: Any) -> ServiceResult:
        """Return the parents and children of *node_id*."""
        try:
            parents = self._genealogy.get_parents(node_id)
            children = self._genealogy.get_children(node_id)
        except GenealogyError as exc:
            return ServiceResult.failure("describe", exc)

        return ServiceResult(
            ok=True,
            op="describe",
            data={
                "id": node_id,
                "stem": node_id == self._genealogy.stem_id,
                "parents": parents,
                "children": children,
            },
        )
