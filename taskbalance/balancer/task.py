"""Task: weighted driver selection with sequential backup failover.

A task owns a set of drivers, a priority-ordered backup list, one hook
slot per lifecycle point and a result log. ``run()`` picks a driver by
weight (or takes the one it is given), runs it, and on failure walks the
backup list forward until a driver succeeds or the list runs out. Every
attempt lands in the result log.

Status moves idle -> running -> finished. A run is rejected outright
while another is in progress; callers that need to serialize runs must
poll ``status`` themselves.
"""

from __future__ import annotations

import logging
import random
import threading
from datetime import UTC, datetime
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError

from taskbalance.balancer.backups import BackupList
from taskbalance.balancer.driver import Driver, Work
from taskbalance.balancer.hooks import HookCallback, HookRegistry
from taskbalance.balancer.results import ResultLog
from taskbalance.balancer.selection import select_by_weight
from taskbalance.core.exceptions import ConfigurationError, MissingDriverError
from taskbalance.core.models import AttemptRecord, DriverSpec, HookName, TaskStatus

logger = logging.getLogger("taskbalance.balancer.task")

Initializer = Callable[["Task"], Any]


class Task:
    """A named unit of work that can be carried out by any of its drivers.

    Usage:
        task = Task.create("sms", data={"to": "555-0100"}, work=setup)
        results = task.run()
        if not task.success:
            ...
    """

    def __init__(self, name: str, data: Any = None, rng: Optional[random.Random] = None):
        self._name = name
        self.data = data
        self._rng = rng or random.Random()

        self._status = TaskStatus.IDLE
        self._drivers: dict[str, Driver] = {}
        self._backups = BackupList()
        self._hooks = HookRegistry()
        self._results = ResultLog()
        self._current_driver: Optional[Driver] = None
        self._success: Optional[bool] = None
        self._started_at: Optional[datetime] = None
        self._finished_at: Optional[datetime] = None
        self._lock = threading.RLock()

    @classmethod
    def create(
        cls,
        name: str,
        data: Any = None,
        work: Optional[Initializer] = None,
        rng: Optional[random.Random] = None,
    ) -> Task:
        """Build a task and run its initializer.

        The initializer receives the new task and registers drivers and
        hooks on it. The ``ready`` hook fires once, right after the
        initializer returns.
        """
        task = cls(name, data=data, rng=rng)
        if work is not None:
            task._initialize(work)
        return task

    def _initialize(self, work: Initializer) -> None:
        work(self)
        self._hooks.dispatch(HookName.READY, self)
        logger.debug(
            "[%s] Ready with %d driver(s), backups=%s",
            self._name, len(self._drivers), self._backups.names(),
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def status(self) -> TaskStatus:
        return self._status

    @property
    def drivers(self) -> dict[str, Driver]:
        return dict(self._drivers)

    @property
    def backup_drivers(self) -> list[str]:
        return self._backups.names()

    @property
    def current_driver(self) -> Optional[Driver]:
        return self._current_driver

    @property
    def results(self) -> list[AttemptRecord]:
        return self._results.records()

    @property
    def result_log(self) -> ResultLog:
        return self._results

    @property
    def success(self) -> Optional[bool]:
        """Outcome of the latest cascade, None if none has completed."""
        return self._success

    @property
    def started_at(self) -> Optional[datetime]:
        return self._started_at

    @property
    def finished_at(self) -> Optional[datetime]:
        return self._finished_at

    def is_running(self) -> bool:
        return self._status is TaskStatus.RUNNING

    def set_data(self, data: Any) -> Task:
        self.data = data
        return self

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def hook(self, hook: Union[HookName, str], callback: HookCallback) -> Task:
        """Attach a callback to a lifecycle point, replacing any previous one."""
        self._hooks.register(hook, callback)
        return self

    def hooks(self, handlers: Mapping[Union[HookName, str], HookCallback]) -> Task:
        self._hooks.register_many(handlers)
        return self

    # ------------------------------------------------------------------
    # Drivers
    # ------------------------------------------------------------------

    def register_driver(self, spec: DriverSpec) -> Driver:
        """Create a driver from spec, or return the one already named so.

        Creation hooks fire only when a driver is actually created. A new
        backup driver is appended to the backup list.
        """
        existing = self._drivers.get(spec.name)
        if existing is not None:
            return existing

        self._hooks.dispatch(HookName.BEFORE_CREATE_DRIVER, self, spec)
        driver = Driver.from_spec(self, spec)
        self._drivers[spec.name] = driver
        if spec.backup:
            self._backups.add(spec.name)
        self._hooks.dispatch(HookName.AFTER_CREATE_DRIVER, self, driver)

        logger.debug(
            "[%s] Created driver '%s' (weight=%d, backup=%s)",
            self._name, spec.name, spec.weight, spec.backup,
        )
        return driver

    def add_driver(
        self,
        name: str,
        work: Optional[Work] = None,
        weight: int = 1,
        backup: bool = False,
        data: Any = None,
    ) -> Driver:
        try:
            spec = DriverSpec(name=name, work=work, weight=weight, backup=backup, data=data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid driver '{name}' for task '{self._name}': {e}") from e
        return self.register_driver(spec)

    def has_driver(self, name: str) -> bool:
        return name in self._drivers

    def get_driver(self, name: str) -> Optional[Driver]:
        return self._drivers.get(name)

    # ------------------------------------------------------------------
    # Backup list
    # ------------------------------------------------------------------

    def add_to_backup_drivers(self, driver: Union[Driver, str]) -> None:
        name = driver.name if isinstance(driver, Driver) else driver
        if name not in self._drivers:
            raise MissingDriverError(self._name, name)
        self._backups.add(name)
        self._drivers[name].is_backup = True

    def remove_from_backup_drivers(self, driver: Union[Driver, str]) -> None:
        name = driver.name if isinstance(driver, Driver) else driver
        self._backups.remove(name)
        if name in self._drivers:
            self._drivers[name].is_backup = False

    def resort_backup_drivers(self, name: str) -> None:
        """Move ``name`` to the head of the backup list if it is a backup."""
        if self._backups.promote(name):
            logger.debug("[%s] Backup order now %s", self._name, self._backups.names())

    def get_next_backup_driver_name(self, current: Optional[str] = None) -> Optional[str]:
        """Backup to try after ``current`` (default: the current driver) failed."""
        if current is None and self._current_driver is not None:
            current = self._current_driver.name
        return self._backups.next_after(current)

    def get_driver_name_by_weight(self) -> str:
        name = select_by_weight(self._drivers.values(), self._rng)
        if name is None:
            raise MissingDriverError(self._name, None)
        return name

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def run(self, driver_name: Optional[str] = None) -> Any:
        """Run the task once.

        Returns False if the task is already running or the ``beforeRun``
        hook denied the run. Otherwise returns every attempt record logged
        since the last reset, unless the ``afterRun`` hook returned a
        non-boolean value, which is returned instead. Read ``success`` for
        the outcome of this run's cascade.

        Raises:
            MissingDriverError: If a driver to run is not registered.
            InternalInvariantError: If weighted selection breaks down.
        """
        with self._lock:
            if self._status is TaskStatus.RUNNING:
                logger.warning("[%s] Already running, rejecting run", self._name)
                return False
            if not self._hooks.dispatch(HookName.BEFORE_RUN, self):
                logger.info("[%s] Run denied by beforeRun hook", self._name)
                return False
            self._status = TaskStatus.RUNNING
            self._success = None
            self._started_at = datetime.now(UTC)
            self._finished_at = None

        try:
            if not driver_name:
                driver_name = self.get_driver_name_by_weight()
            logger.info("[%s] Starting run with driver '%s'", self._name, driver_name)
            self.resort_backup_drivers(driver_name)
            self._success = self.run_driver(driver_name)
        except BaseException:
            self._finish()
            raise

        self._finish()
        logger.info(
            "[%s] Run finished: success=%s, attempts=%d",
            self._name, self._success, len(self._results),
        )

        results = self._results.records()
        outcome = self._hooks.dispatch(HookName.AFTER_RUN, self, results)
        if isinstance(outcome, bool):
            return results
        return outcome

    def run_driver(self, name: str) -> bool:
        """Run ``name``, then fail over through the backup list on failure.

        Returns the success of the last attempt made. The result log holds
        the full history of the cascade.
        """
        next_name: Optional[str] = name
        success = False
        while next_name is not None:
            driver = self._drivers.get(next_name)
            if driver is None:
                raise MissingDriverError(self._name, next_name)

            self._current_driver = driver
            self._hooks.dispatch(HookName.BEFORE_RUN_DRIVER, self, driver)
            driver.run()
            record = driver.to_record()
            self._results.append(record)
            self._hooks.dispatch(HookName.AFTER_RUN_DRIVER, self, record)

            success = record.success
            if success:
                break

            next_name = self.get_next_backup_driver_name(driver.name)
            if next_name is None:
                logger.warning(
                    "[%s] Driver '%s' failed and no backup driver is left",
                    self._name, driver.name,
                )
            else:
                logger.info(
                    "[%s] Driver '%s' failed, failing over to '%s'",
                    self._name, driver.name, next_name,
                )
        return success

    def _finish(self) -> None:
        self._status = TaskStatus.FINISHED
        self._finished_at = datetime.now(UTC)

    def reset(self) -> Task:
        """Return to idle and clear the result log.

        Drivers, hooks and the backup list (including any reordering from
        earlier runs) are kept. A task that is running is left untouched.
        """
        with self._lock:
            if self._status is TaskStatus.RUNNING:
                logger.warning("[%s] Run in progress, ignoring reset", self._name)
                return self
            self._status = TaskStatus.IDLE
            self._success = None
            self._results.clear()
        return self

    def __repr__(self) -> str:
        return (
            f"Task(name={self._name!r}, status={self._status.value}, "
            f"drivers={list(self._drivers)}, backups={self._backups.names()})"
        )
