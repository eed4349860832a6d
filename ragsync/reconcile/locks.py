"""Per-project serialization of reconciliations.

Only one reconciliation may touch a project's manifest at a time;
different projects proceed in parallel.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class ProjectLocks:
    """Hands out one lock per project id.

    A project's lock exists only while some thread holds or waits for it,
    so the map never outgrows the projects currently being reconciled.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._users: dict[str, int] = {}

    @contextmanager
    def hold(self, project_id: str) -> Iterator[None]:
        """Hold the project's lock for the duration of the block."""
        with self._guard:
            lock = self._locks.setdefault(project_id, threading.Lock())
            self._users[project_id] = self._users.get(project_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[project_id] -= 1
                if not self._users[project_id]:
                    del self._users[project_id]
                    del self._locks[project_id]

    def is_held(self, project_id: str) -> bool:
        with self._guard:
            lock = self._locks.get(project_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
