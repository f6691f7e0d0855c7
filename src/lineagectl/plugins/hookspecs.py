"""Pluggy hook specifications for genealogy lifecycle events.

Hooks fire synchronously, after the mutation has been committed.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("lineagectl")
hookimpl = pluggy.HookimplMarker("lineagectl")


class LineageHookSpec:
    """Hook specifications for the lineagectl plugin system."""

    @hookspec
    def post_create(self, node_id: Any, parent_ids: list[Any]) -> None:
        """Called after a node is created."""

    @hookspec
    def post_connect(self, child_id: Any, parent_id: Any) -> None:
        """Called after a new parent link is added."""

    @hookspec
    def post_remove(self, node_id: Any, removed_ids: list[Any]) -> None:
        """Called after a removal, with every id the cascade removed."""
