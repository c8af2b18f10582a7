"""Lifecycle hook storage and dispatch.

Each hook identifier has exactly one callback slot. Registering a second
callback for the same identifier replaces the first: last write wins.
Callbacks are invoked as ``callback(task, data)``. A ``None`` return
counts as a pass (``True``); anything else is handed back to the caller
unchanged, which lets ``beforeRun`` veto a run and ``afterRun`` replace
the run's return value.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Union

from taskbalance.core.exceptions import ConfigurationError
from taskbalance.core.models import HookName

if TYPE_CHECKING:
    from taskbalance.balancer.task import Task

logger = logging.getLogger("taskbalance.balancer.hooks")

HookCallback = Callable[["Task", Any], Any]


def resolve_hook_name(hook: Union[HookName, str]) -> HookName:
    """Coerce a string identifier to a HookName, rejecting unknown ones."""
    if isinstance(hook, HookName):
        return hook
    try:
        return HookName(hook)
    except ValueError:
        supported = ", ".join(h.value for h in HookName)
        raise ConfigurationError(
            f"Unsupported hook '{hook}'. Supported hooks: {supported}"
        ) from None


class HookRegistry:
    """Single-slot callback table keyed by HookName."""

    def __init__(self):
        self._handlers: dict[HookName, HookCallback] = {}

    def register(self, hook: Union[HookName, str], callback: HookCallback) -> None:
        name = resolve_hook_name(hook)
        if not callable(callback):
            raise ConfigurationError(f"Hook '{name.value}' needs a callable handler")
        if name in self._handlers:
            logger.debug("Replacing handler for hook '%s'", name.value)
        self._handlers[name] = callback

    def register_many(self, handlers: Mapping[Union[HookName, str], HookCallback]) -> None:
        for hook, callback in handlers.items():
            self.register(hook, callback)

    def unregister(self, hook: Union[HookName, str]) -> None:
        self._handlers.pop(resolve_hook_name(hook), None)

    def get(self, hook: Union[HookName, str]) -> Optional[HookCallback]:
        return self._handlers.get(resolve_hook_name(hook))

    def has(self, hook: Union[HookName, str]) -> bool:
        return resolve_hook_name(hook) in self._handlers

    def dispatch(self, hook: HookName, task: Task, data: Any = None) -> Any:
        """Invoke the hook's callback, if any.

        Returns True when no callback is registered or the callback returns
        None; otherwise the callback's return value. Exceptions raised by
        the callback propagate.
        """
        callback = self._handlers.get(hook)
        if callback is None:
            return True
        logger.debug("[%s] Dispatching hook '%s'", task.name, hook.value)
        result = callback(task, data)
        if result is None:
            return True
        return result

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, hook: object) -> bool:
        if not isinstance(hook, (HookName, str)):
            return False
        try:
            return self.has(hook)
        except ConfigurationError:
            return False
