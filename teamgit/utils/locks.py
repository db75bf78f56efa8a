"""Lock registry keyed by arbitrary strings."""

from __future__ import annotations

import threading
import weakref


class KeyLock:
    """A ``threading.Lock`` that the registry can reference weakly."""

    __slots__ = ("_lock", "__weakref__")

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def acquire(self, blocking: bool = True, timeout: float = -1) -> bool:
        return self._lock.acquire(blocking, timeout)

    def release(self) -> None:
        self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()

    def __enter__(self) -> "KeyLock":
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._lock.release()


class KeyedLocks:
    """Hand out one lock per key.

    A key's lock lives only while some caller holds a reference to it, so
    the registry does not grow with every key ever seen. Callers asking for
    the same key while the lock is in use always get the same lock.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, KeyLock] = weakref.WeakValueDictionary()

    def get(self, key: str) -> KeyLock:
        """Return the lock associated with ``key``."""

        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = KeyLock()
                self._locks[key] = lock
            return lock

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


__all__ = ["KeyLock", "KeyedLocks"]
