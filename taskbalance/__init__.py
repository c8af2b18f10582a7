"""Run one task through weighted drivers with backup failover and lifecycle hooks."""

from taskbalance.balancer import Balancer, Driver, Task, define_driver
from taskbalance.core.exceptions import (
    ConfigurationError,
    InternalInvariantError,
    MissingDriverError,
    TaskBalanceError,
    TaskNotFoundError,
)
from taskbalance.core.models import AttemptRecord, DriverSpec, HookName, TaskStatus

__all__ = [
    "AttemptRecord",
    "Balancer",
    "ConfigurationError",
    "Driver",
    "DriverSpec",
    "HookName",
    "InternalInvariantError",
    "MissingDriverError",
    "Task",
    "TaskBalanceError",
    "TaskNotFoundError",
    "TaskStatus",
    "define_driver",
]
