"""Custom exception hierarchy for taskbalance.

All exceptions inherit from TaskBalanceError so callers can catch broadly
or narrowly as needed. A driver that reports failure is not an error: the
failover cascade consumes it.
"""


class TaskBalanceError(Exception):
    """Base exception for all taskbalance errors."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class ConfigurationError(TaskBalanceError):
    """Invalid hook, driver registration, task spec or config file."""


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

class MissingDriverError(TaskBalanceError):
    """A run or failover step referenced a driver the task does not have."""

    def __init__(self, task_name: str, driver_name: str | None):
        self.task_name = task_name
        self.driver_name = driver_name
        if driver_name is None:
            message = f"Task '{task_name}' has no drivers to select from"
        else:
            message = (
                f"Driver '{driver_name}' not found in task '{task_name}'. "
                "Register it before running."
            )
        super().__init__(message)


class TaskNotFoundError(TaskBalanceError):
    """No task registered under the requested name."""

    def __init__(self, task_name: str):
        self.task_name = task_name
        super().__init__(f"Task '{task_name}' is not registered")


# ---------------------------------------------------------------------------
# Internal
# ---------------------------------------------------------------------------

class InternalInvariantError(TaskBalanceError):
    """An algorithm reached a state that should be unreachable."""
