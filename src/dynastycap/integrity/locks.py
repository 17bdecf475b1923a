"""Process-local locks that serialize roster rebuilds per league.

These locks only coordinate threads inside one process. Deployments running
several API workers against the same database need an external lock as well.
"""

from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Dict, Iterator


_REGISTRY_LOCK = Lock()
_LEAGUE_LOCKS: Dict[str, Lock] = {}


class RebuildInProgressError(RuntimeError):
    """Raised when another rebuild for the same league holds the lock."""

    def __init__(self, league_id: str, timeout_s: float | None):
        super().__init__(f"Rebuild already in progress for league {league_id} (waited {timeout_s}s)")
        self.league_id = league_id
        self.timeout_s = timeout_s


def _lock_for(league_id: str) -> Lock:
    with _REGISTRY_LOCK:
        lock = _LEAGUE_LOCKS.get(league_id)
        if lock is None:
            lock = Lock()
            _LEAGUE_LOCKS[league_id] = lock
        return lock


@contextmanager
def league_rebuild_lock(league_id: str, *, timeout_s: float | None = None) -> Iterator[None]:
    """Hold the rebuild lock for ``league_id``.

    ``timeout_s=None`` waits forever; ``0`` fails immediately when the lock is
    taken.

    Raises:
        RebuildInProgressError: the lock was not acquired within ``timeout_s``.
    """

    lock = _lock_for(league_id)
    if timeout_s is None:
        acquired = lock.acquire()
    else:
        acquired = lock.acquire(timeout=max(0.0, float(timeout_s)))
    if not acquired:
        raise RebuildInProgressError(league_id, timeout_s)
    try:
        yield
    finally:
        lock.release()


def is_rebuild_running(league_id: str) -> bool:
    return _lock_for(league_id).locked()
