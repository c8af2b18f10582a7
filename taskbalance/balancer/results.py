"""Append-only log of driver attempts for one task."""

from __future__ import annotations

from typing import Any, Iterator, Optional

from pydantic_core import to_jsonable_python

from taskbalance.core.models import AttemptRecord


class ResultLog:
    """Ordered attempt records. Survives successive runs until clear()."""

    def __init__(self):
        self._records: list[AttemptRecord] = []

    def append(self, record: AttemptRecord) -> None:
        self._records.append(record)

    def clear(self) -> None:
        self._records.clear()

    def records(self) -> list[AttemptRecord]:
        """Return a copy of the records in execution order."""
        return list(self._records)

    def last(self) -> Optional[AttemptRecord]:
        return self._records[-1] if self._records else None

    def succeeded(self) -> list[AttemptRecord]:
        return [r for r in self._records if r.success]

    def failed(self) -> list[AttemptRecord]:
        return [r for r in self._records if not r.success]

    def drivers(self) -> list[str]:
        """Driver names in attempt order, repeats included."""
        return [r.driver for r in self._records]

    def to_dicts(self) -> list[dict[str, Any]]:
        """JSON-safe dicts; results of unknown types are stringified."""
        return [_record_to_dict(r) for r in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[AttemptRecord]:
        return iter(list(self._records))

    def __bool__(self) -> bool:
        return bool(self._records)


def _record_to_dict(record: AttemptRecord) -> dict[str, Any]:
    payload = record.model_dump(mode="json", exclude={"result"})
    payload["result"] = to_jsonable_python(record.result, serialize_unknown=True)
    return payload
