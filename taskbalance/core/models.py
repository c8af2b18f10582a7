"""Data models shared by the balancer, loader and CLI.

Enums for task status and hook identifiers, the per-attempt record kept
in a task's result log, and the validated driver definition consumed by
Task.register_driver().
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field, field_validator


def _now() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TaskStatus(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"  # reserved, no transition reaches it
    FINISHED = "finished"


class HookName(str, enum.Enum):
    """Closed set of lifecycle points a task can attach a callback to."""
    BEFORE_CREATE_DRIVER = "beforeCreateDriver"
    AFTER_CREATE_DRIVER = "afterCreateDriver"
    READY = "ready"
    BEFORE_RUN = "beforeRun"
    BEFORE_RUN_DRIVER = "beforeRunDriver"
    AFTER_RUN_DRIVER = "afterRunDriver"
    AFTER_RUN = "afterRun"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class AttemptRecord(BaseModel):
    """Outcome of a single Driver.run() call within a task run."""
    driver: str
    duration_seconds: float = 0.0
    success: bool = False
    result: Any = None
    error: Optional[str] = None
    started_at: datetime = Field(default_factory=_now)


# ---------------------------------------------------------------------------
# Driver definitions
# ---------------------------------------------------------------------------

class DriverSpec(BaseModel):
    """Named fields for creating a driver on a task."""
    name: str
    weight: int = Field(default=1, ge=0)
    backup: bool = False
    work: Optional[Callable[..., Any]] = None
    data: Any = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("driver name must not be blank")
        return value
