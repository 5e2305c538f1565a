"""
Per-tournament mutual exclusion for mutating engine operations.

Pairing creation, round starts and result recording for one tournament run
one at a time inside this process. Different tournaments never block each
other. Cross-process safety comes from the round_pairing unique key and the
conditional start_time updates, not from these locks.
"""
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

_registry_lock = threading.Lock()
_tournament_locks: Dict[int, threading.RLock] = {}


def get_tournament_lock(tournament_id: int) -> threading.RLock:
    with _registry_lock:
        lock = _tournament_locks.get(tournament_id)
        if lock is None:
            lock = threading.RLock()
            _tournament_locks[tournament_id] = lock
        return lock


@contextmanager
def tournament_lock(tournament_id: int) -> Iterator[None]:
    """Hold the tournament's lock for the duration of the block."""
    lock = get_tournament_lock(tournament_id)
    with lock:
        yield


def discard_tournament_lock(tournament_id: int) -> None:
    """Forget the lock of a tournament that reached a terminal status."""
    with _registry_lock:
        _tournament_locks.pop(tournament_id, None)
