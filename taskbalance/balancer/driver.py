"""Driver: a named, weighted strategy a task can execute.

The driver's work is an opaque callable invoked as ``work(driver, data)``.
The work reports its outcome by calling ``driver.mark_success()`` or
``driver.mark_failure()``; a driver that never marks success counts as
failed. An exception raised by the work is logged and recorded as a
failed attempt so the owning task can fail over.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Callable, Optional

from taskbalance.core.exceptions import ConfigurationError
from taskbalance.core.models import AttemptRecord, DriverSpec

if TYPE_CHECKING:
    from taskbalance.balancer.task import Task

logger = logging.getLogger("taskbalance.balancer.driver")

Work = Callable[["Driver", Any], Any]


class Driver:
    """One execution strategy registered on a task."""

    def __init__(
        self,
        task: Task,
        name: str,
        weight: int = 1,
        is_backup: bool = False,
        work: Optional[Work] = None,
        data: Any = None,
    ):
        self.task = task
        self.name = name
        self.weight = _validate_weight(weight)
        self.is_backup = is_backup
        self.work = work
        self._data = data

        self.success = False
        self.result: Any = None
        self.error: Optional[str] = None
        self.started_at: Optional[datetime] = None
        self.finished_at: Optional[datetime] = None
        self.duration_seconds = 0.0

    @classmethod
    def from_spec(cls, task: Task, spec: DriverSpec) -> Driver:
        return cls(
            task,
            spec.name,
            weight=spec.weight,
            is_backup=spec.backup,
            work=spec.work,
            data=spec.data,
        )

    @property
    def data(self) -> Any:
        """Driver-local data, or the owning task's data when unset."""
        if self._data is not None:
            return self._data
        return self.task.data

    def run(self) -> Any:
        """Execute the work once and return its result.

        Resets the outcome fields first, so after the call ``success``,
        ``result``, ``error`` and ``duration_seconds`` describe this
        attempt only.
        """
        self.success = False
        self.result = None
        self.error = None
        self.started_at = datetime.now(UTC)
        start = time.monotonic()

        try:
            if self.work is not None:
                self.result = self.work(self, self.data)
        except Exception as e:
            self.success = False
            self.error = f"{type(e).__name__}: {e}"
            logger.error(
                "[%s] Driver '%s' work raised: %s",
                self.task.name, self.name, e, exc_info=True,
            )

        self.duration_seconds = time.monotonic() - start
        self.finished_at = datetime.now(UTC)
        logger.debug(
            "[%s] Driver '%s' finished: success=%s (%.3fs)",
            self.task.name, self.name, self.success, self.duration_seconds,
        )
        return self.result

    def to_record(self) -> AttemptRecord:
        """Snapshot the latest attempt for the task's result log."""
        return AttemptRecord(
            driver=self.name,
            duration_seconds=self.duration_seconds,
            success=self.success,
            result=self.result,
            error=self.error,
            started_at=self.started_at or datetime.now(UTC),
        )

    # ------------------------------------------------------------------
    # Outcome markers, called from inside the work
    # ------------------------------------------------------------------

    def mark_success(self) -> Driver:
        self.success = True
        return self

    def mark_failure(self) -> Driver:
        self.success = False
        return self

    # ------------------------------------------------------------------
    # Setters
    # ------------------------------------------------------------------

    def set_weight(self, weight: int) -> Driver:
        self.weight = _validate_weight(weight)
        return self

    def set_backup(self, is_backup: bool = True) -> Driver:
        """Flag or unflag as backup, keeping the task's backup list in sync."""
        if is_backup:
            self.task.add_to_backup_drivers(self.name)
        else:
            self.task.remove_from_backup_drivers(self.name)
        return self

    def set_work(self, work: Optional[Work]) -> Driver:
        if work is not None and not callable(work):
            raise ConfigurationError(f"Work for driver '{self.name}' must be callable")
        self.work = work
        return self

    def set_data(self, data: Any) -> Driver:
        self._data = data
        return self

    def __repr__(self) -> str:
        return (
            f"Driver(name={self.name!r}, weight={self.weight}, "
            f"is_backup={self.is_backup}, success={self.success})"
        )


def _validate_weight(weight: int) -> int:
    if isinstance(weight, bool) or not isinstance(weight, int) or weight < 0:
        raise ConfigurationError(f"Driver weight must be a non-negative integer, got {weight!r}")
    return weight
