"""Per-application mutual exclusion."""

from contextlib import contextmanager
from threading import Lock, RLock
from typing import Dict, Generator


class _Entry:
    def __init__(self):
        self.lock = RLock()
        self.users = 0


class KeyedLock:
    """
    Re-entrant lock per key.

    Entries are reference counted and dropped once no thread holds or
    waits on them.
    """

    def __init__(self):
        self._entries: Dict[str, _Entry] = {}
        self._guard = Lock()

    @contextmanager
    def hold(self, key: str) -> Generator[None, None, None]:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1

        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[key]

    def active_keys(self) -> int:
        with self._guard:
            return len(self._entries)
