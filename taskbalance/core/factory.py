"""Task factory for taskbalance.

Turns a TaskSpec loaded from YAML/JSON into a ready Task: each driver's
``work`` import reference is resolved to a callable and the driver is
registered with its weight and backup flag.
"""

from __future__ import annotations

import importlib
import logging
import random
from pathlib import Path
from typing import Any, Callable, Optional

from taskbalance.balancer.task import Task
from taskbalance.core.config import AppConfig, TaskSpec, load_task_spec
from taskbalance.core.exceptions import ConfigurationError
from taskbalance.core.models import DriverSpec

logger = logging.getLogger("taskbalance.core.factory")


def resolve_work(reference: str) -> Callable[..., Any]:
    """Import ``package.module:attribute`` and return the callable it names.

    Dotted attributes after the colon are followed, so ``mod:Class.method``
    works too.
    """
    module_name, _, attr_path = reference.partition(":")
    if not module_name or not attr_path:
        raise ConfigurationError(f"Work reference must be 'module:callable', got '{reference}'")

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Could not import module '{module_name}': {e}") from e

    for part in attr_path.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise ConfigurationError(f"'{reference}' does not resolve: {e}") from e

    if not callable(target):
        raise ConfigurationError(f"'{reference}' is not callable")
    return target


class TaskFactory:
    """Builds tasks from specs.

    Usage:
        task = TaskFactory(config).from_file(Path("task.yaml"))
        task.run()
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or AppConfig()

    def make_rng(self) -> random.Random:
        seed = self.config.balancer.random_seed
        if seed is not None:
            logger.debug("Seeding driver selection with %d", seed)
        return random.Random(seed)

    def build(self, spec: TaskSpec) -> Task:
        def setup(task: Task) -> None:
            for row in spec.drivers:
                work = resolve_work(row.work) if row.work else None
                task.register_driver(DriverSpec(
                    name=row.name,
                    weight=row.weight,
                    backup=row.backup,
                    work=work,
                    data=row.data,
                ))

        task = Task.create(spec.name, data=spec.data, work=setup, rng=self.make_rng())
        logger.info(
            "Built task '%s' with drivers %s (backups: %s)",
            task.name, list(task.drivers), task.backup_drivers,
        )
        return task

    def from_file(self, path: Path) -> Task:
        return self.build(load_task_spec(path))
