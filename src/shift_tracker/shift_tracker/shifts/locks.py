from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Iterator


class EmployeeLocks:
    """One mutex per employee id, created on first use.

    Actions for the same employee run one at a time; actions for different
    employees never wait on each other.
    """

    def __init__(self):
        self._registry_lock = Lock()
        # Grows by one small lock per employee id ever seen and is never pruned.
        # Bounded by the size of the staff.
        self._locks: dict[int, Lock] = {}

    def _lock_for(self, employee_id: int) -> Lock:
        with self._registry_lock:
            lock = self._locks.get(employee_id)
            if lock is None:
                lock = Lock()
                self._locks[employee_id] = lock
            return lock

    @contextmanager
    def hold(self, employee_id: int) -> Iterator[None]:
        lock = self._lock_for(int(employee_id))
        with lock:
            yield
