"""Non-blocking concurrency limiter."""

from __future__ import annotations

import threading


class Limiter:
    """Grants at most ``max_concurrent`` slots; acquire never blocks."""

    def __init__(self, max_concurrent: int) -> None:
        if max_concurrent < 0:
            raise ValueError("max_concurrent must not be negative")
        self._sem = threading.BoundedSemaphore(max_concurrent) if max_concurrent else None

    def acquire(self) -> bool:
        """Take a slot; return False when the limiter is saturated."""
        if self._sem is None:
            return False
        return self._sem.acquire(blocking=False)

    def release(self) -> None:
        """Return a slot. Raises ValueError if no slot is held."""
        if self._sem is None:
            raise ValueError("release without a held slot")
        try:
            self._sem.release()
        except ValueError as exc:
            raise ValueError("release without a held slot") from exc