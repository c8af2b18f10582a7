"""Name-to-task registry for callers juggling several tasks."""

from __future__ import annotations

import logging
import random
from typing import Any, Optional

from taskbalance.balancer.task import Initializer, Task
from taskbalance.core.exceptions import TaskNotFoundError

logger = logging.getLogger("taskbalance.balancer.facade")


class Balancer:
    """Holds tasks by name. Not a singleton: create one per owner."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._tasks: dict[str, Task] = {}
        self._rng = rng

    def task(self, name: str, data: Any = None, work: Optional[Initializer] = None) -> Task:
        """Return the task called ``name``, creating it on first use.

        For an existing task, non-None ``data`` replaces its data and
        ``work`` is ignored.
        """
        existing = self._tasks.get(name)
        if existing is not None:
            if data is not None:
                existing.set_data(data)
            return existing

        task = Task.create(name, data=data, work=work, rng=self._rng)
        self._tasks[name] = task
        logger.debug("Registered task '%s'", name)
        return task

    def run(self, name: str, data: Any = None, driver: Optional[str] = None) -> Any:
        """Run a registered task. See Task.run() for the return value."""
        task = self.get_task(name)
        if data is not None:
            task.set_data(data)
        return task.run(driver)

    def get_task(self, name: str) -> Task:
        task = self._tasks.get(name)
        if task is None:
            raise TaskNotFoundError(name)
        return task

    def has_task(self, name: str) -> bool:
        return name in self._tasks

    def destroy(self, name: str) -> None:
        if self._tasks.pop(name, None) is not None:
            logger.debug("Removed task '%s'", name)

    def names(self) -> list[str]:
        return list(self._tasks)
