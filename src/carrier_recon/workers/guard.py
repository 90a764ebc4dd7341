"""Single-slot reentrancy guard for periodic workers."""

from __future__ import annotations

from threading import Lock


class RunGuard:
    """Non-blocking lock; a tick that cannot acquire it is skipped, not queued."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = Lock()

    def try_acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()

    @property
    def held(self) -> bool:
        return self._lock.locked()


__all__ = ["RunGuard"]
