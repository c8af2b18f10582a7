"""Priority-ordered list of backup driver names.

The failover scan only ever moves forward: after the last entry there is
no next backup, and the list never wraps around to its start.
"""

from __future__ import annotations

from typing import Iterator, Optional


class BackupList:
    """Ordered, duplicate-free driver names eligible for failover."""

    def __init__(self, names: Optional[list[str]] = None):
        self._names: list[str] = []
        for name in names or []:
            self.add(name)

    def add(self, name: str) -> bool:
        """Append name unless already present. Returns True if appended."""
        if name in self._names:
            return False
        self._names.append(name)
        return True

    def remove(self, name: str) -> bool:
        if name not in self._names:
            return False
        self._names.remove(name)
        return True

    def promote(self, name: str) -> bool:
        """Move name to the front, keeping the others in order.

        Only applies when the list holds at least two names and contains
        name. Returns True if the order changed.
        """
        if len(self._names) < 2 or name not in self._names:
            return False
        if self._names[0] == name:
            return False
        self._names.remove(name)
        self._names.insert(0, name)
        return True

    def next_after(self, current: Optional[str]) -> Optional[str]:
        """Name of the backup to try after ``current`` failed, or None."""
        if not self._names:
            return None
        if current not in self._names:
            return self._names[0]
        if len(self._names) == 1:
            return None
        index = self._names.index(current)
        if index + 1 < len(self._names):
            return self._names[index + 1]
        return None

    def names(self) -> list[str]:
        return list(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))
