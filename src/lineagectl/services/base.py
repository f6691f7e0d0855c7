"""BaseService — shared foundation for lineagectl services.

Every service wraps one :class:`~lineagectl.genealogy.Genealogy` and an
optional :class:`~lineagectl.plugins.manager.PluginManager`. Lifecycle hooks
fire only after a mutation has been committed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lineagectl.genealogy import Genealogy
    from lineagectl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class GenealogyService(BaseService):
            def remove(self, node_id) -> ServiceResult:
                removed = self._genealogy.remove(node_id)
                ...
    """

    def __init__(
        self,
        genealogy: Genealogy[Any, Any],
        plugin_manager: PluginManager | None = None,
    ) -> None:
        self._genealogy = genealogy
        self._plugins = plugin_manager

    @property
    def genealogy(self) -> Genealogy[Any, Any]:
        return self._genealogy

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Call *hook_name* on every registered plugin. No-op without plugins.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        if self._plugins is None:
            return
        try:
            getattr(self._plugins.hook, hook_name)(**payload)
        except Exception:
            logger.warning("Hook %s failed", hook_name, exc_info=True)
            warnings.append(f"Hook {hook_name} failed")
