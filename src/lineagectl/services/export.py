"""ExportService — render a genealogy as Graphviz DOT or node-link JSON.

The genealogy is copied into a ``networkx.DiGraph`` (edges point from parent
to child) and serialized from there.
"""

from __future__ import annotations

import json
from typing import Any

import networkx as nx

from lineagectl.domain.errors import ErrorKind
from lineagectl.genealogy import Genealogy
from lineagectl.services.base import BaseService
from lineagectl.services.result import ServiceError, ServiceResult
from lineagectl.services.telemetry import traced

EXPORT_FORMATS = ("dot", "json")


def to_digraph(genealogy: Genealogy[Any, Any]) -> nx.DiGraph:
    """Build a DiGraph with one node per genealogy node and parent -> child edges."""
    g = nx.DiGraph()
    stem_id = genealogy.stem_id
    for record in genealogy.records():
        g.add_node(record.id, stem=record.id == stem_id)
    for record in genealogy.records():
        for child_id in record.children:
            g.add_edge(record.id, child_id)
    return g


def to_node_link(genealogy: Genealogy[Any, Any]) -> dict[str, Any]:
    """Return ``{"stem", "nodes", "links"}`` with nodes and links in id order."""
    g = to_digraph(genealogy)
    return {
        "stem": genealogy.stem_id,
        "nodes": [{"id": node_id, "stem": attrs["stem"]} for node_id, attrs in g.nodes(data=True)],
        "links": [{"source": src, "target": tgt} for src, tgt in g.edges()],
    }


class ExportService(BaseService):
    """Serializes the wrapped genealogy."""

    @traced
    def export_graph(self, *, fmt: str = "dot") -> ServiceResult:
        """Export the genealogy.

        Formats:
        - ``dot`` — Graphviz DOT language
        - ``json`` — ``{"stem": ..., "nodes": [...], "links": [...]}``

        Returns the content as a string in ``data["content"]``.
        """
        if fmt not in EXPORT_FORMATS:
            return ServiceResult(
                ok=False,
                op="export_graph",
                error=ServiceError(
                    code="INVALID_FORMAT",
                    message=f"Unknown graph format: {fmt}",
                    detail={"format": fmt, "valid": list(EXPORT_FORMATS)},
                ),
            )

        g = to_digraph(self._genealogy)
        if fmt == "dot":
            content = self._to_dot(g)
        else:
            content = json.dumps(to_node_link(self._genealogy), indent=2, default=str) + "\n"

        return ServiceResult(
            ok=True,
            op="export_graph",
            data={
                "format": fmt,
                "content": content,
                "node_count": g.number_of_nodes(),
                "edge_count": g.number_of_edges(),
            },
        )

    @traced
    def tree(self, *, max_depth: int = 32) -> ServiceResult:
        """Return the genealogy as nested ``{"id", "children"}`` dicts from the stem.

        A node with several parents is expanded under its first parent in
        traversal order; later occurrences are marked ``"repeat": True``.
        """
        if max_depth < 1:
            return ServiceResult(
                ok=False,
                op="tree",
                error=ServiceError(
                    code="INVALID_ARGUMENT",
                    message="max_depth must be at least 1",
                    detail={"max_depth": max_depth},
                ),
            )

        root: dict[str, Any] = {"id": self._genealogy.stem_id, "children": []}
        scheduled: set[Any] = {root["id"]}
        # Explicit stack of (genealogy id, output dict, depth).
        pending: list[tuple[Any, dict[str, Any], int]] = [(root["id"], root, 0)]
        truncated = False
        while pending:
            node_id, out, depth = pending.pop()
            children = self._genealogy.get_children(node_id)
            if children and depth >= max_depth:
                out["truncated"] = True
                truncated = True
                continue
            for child_id in children:
                child_out: dict[str, Any] = {"id": child_id, "children": []}
                out["children"].append(child_out)
            for child_out in reversed(out["children"]):
                if child_out["id"] in scheduled:
                    child_out["repeat"] = True
                else:
                    scheduled.add(child_out["id"])
                    pending.append((child_out["id"], child_out, depth + 1))

        warnings = [f"Tree truncated at depth {max_depth}"] if truncated else []
        return ServiceResult(
            ok=True,
            op="tree",
            data={"stem": root["id"], "node_count": len(self._genealogy), "tree": root},
            warnings=warnings,
        )

    @staticmethod
    def _to_dot(g: nx.DiGraph) -> str:
        """Generate Graphviz DOT notation from the genealogy DiGraph."""
        lines = ["digraph genealogy {", "  rankdir=TB;", "  node [shape=box];"]
        for node_id, attrs in g.nodes(data=True):
            safe = _dot_escape(node_id)
            shape = ' shape="doubleoctagon"' if attrs.get("stem") else ""
            lines.append(f'  "{safe}" [label="{safe}"{shape}];')
        for src, tgt in g.edges():
            lines.append(f'  "{_dot_escape(src)}" -> "{_dot_escape(tgt)}";')
        lines.append("}")
        return "\n".join(lines) + "\n"


def _dot_escape(node_id: Any) -> str:
    """Quote-safe text for a DOT string literal; backslashes go first."""
    return str(node_id).replace("\\", "\\\\").replace('"', '\\"')
