"""
Per-key mutual exclusion for in-process critical sections.
"""
import threading
from contextlib import contextmanager


class KeyedLock:
    """
    Hands out one lock per key so that work on the same key is serialized
    while different keys proceed in parallel.

    Locks are reference counted and dropped once no thread holds or waits on
    them, so stale keys do not accumulate.
    """

    def __init__(self):
        self._master_lock = threading.Lock()
        self._locks = {}  # key -> [lock, holders]

    @contextmanager
    def hold(self, key):
        with self._master_lock:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1

        try:
            with entry[0]:
                yield
        finally:
            with self._master_lock:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self):
        with self._master_lock:
            return len(self._locks)
