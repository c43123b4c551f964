"""Per-execution handler resolution."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from ..exceptions import ToolError

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 8


class ToolScope:
    """Resolves tool handler instances for one logical execution.

    A scope caches one instance per owner type.  Two executions that must
    not observe each other's handler state (two end-user sessions, two
    concurrent requests) each get their own scope; a scope is not meant to
    be shared between unrelated executions.

    Args:
        factories: Owner type → zero-argument factory.  Owners without a
            factory are instantiated with ``owner()``.
        context: Free-form values handlers can read through
            ``tool_scope.context``.
        name: Label used in log messages.
    """

    def __init__(
        self,
        factories: Optional[Mapping[type, Callable[[], Any]]] = None,
        *,
        context: Optional[Dict[str, Any]] = None,
        name: Optional[str] = None,
        depth: int = 0,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._factories: Dict[type, Callable[[], Any]] = dict(factories or {})
        self._instances: Dict[type, Any] = {}
        self._context = dict(context or {})
        self.name = name or f"scope-{id(self):x}"
        self._depth = depth
        self._max_depth = max_depth

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def context(self) -> Dict[str, Any]:
        """Return a shallow copy of the scope context."""
        return dict(self._context)

    def register_factory(self, owner: type, factory: Callable[[], Any]) -> None:
        self._factories[owner] = factory

    def provide(self, owner: type, instance: Any) -> None:
        """Pin *instance* as this scope's handler for *owner*."""
        self._instances[owner] = instance

    def resolve(
        self, owner: type, default_factory: Optional[Callable[[], Any]] = None
    ) -> Any:
        instance = self._instances.get(owner)
        if instance is None:
            factory = self._factories.get(owner) or default_factory or owner
            instance = factory()
            self._instances[owner] = instance
            logger.debug("Scope %s created %s instance", self.name, owner.__name__)
        return instance

    def child(
        self,
        *,
        context: Optional[Dict[str, Any]] = None,
        name: Optional[str] = None,
    ) -> "ToolScope":
        """Fresh scope with the same factories and no shared instances."""
        next_depth = self._depth + 1
        if next_depth > self._max_depth:
            raise ToolError(f"Maximum tool scope depth ({self._max_depth}) exceeded.")

        merged_context = dict(self._context)
        if context:
            merged_context.update(context)
        return ToolScope(
            self._factories,
            context=merged_context,
            name=name,
            depth=next_depth,
            max_depth=self._max_depth,
        )
