"""Per-peer sliding-window rate limiting."""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, Optional

Handler = Callable[[Hashable, Any], Any]


@dataclass
class RateLimiterConfig:
    """Rate limiter settings; durations are in seconds."""

    limit: int = 100
    window: float = 1.0
    ttl: float = 300.0


class RateLimitExceeded(Exception):
    """Raised when a peer has used up its request budget."""

    def __init__(self, message: str = "rate limit exceeded") -> None:
        super().__init__(message)


@dataclass
class _PeerWindow:
    last_seen: float
    requests: deque = field(default_factory=deque)


class RateLimiter:
    """Allows ``limit`` requests per peer within a sliding ``window``.

    A background thread drops peers not seen for longer than ``ttl``; call
    :meth:`stop` (or use the limiter as a context manager) to end it.
    """

    def __init__(
        self,
        limit: int,
        window: float,
        ttl: float,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.limit = limit
        self.window = window
        self.ttl = ttl
        self._clock = clock or time.monotonic
        self._peers: dict[Hashable, _PeerWindow] = {}
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._thread = threading.Thread(
            target=self._cleanup_loop, name="ratelimit-cleanup", daemon=True
        )
        self._thread.start()

    def __enter__(self) -> "RateLimiter":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def __contains__(self, peer_id: object) -> bool:
        with self._lock:
            return peer_id in self._peers

    def __len__(self) -> int:
        with self._lock:
            return len(self._peers)

    def wrap(self, handler: Handler) -> Handler:
        """Return a handler that rejects over-limit peers before calling ``handler``."""

        def limited(peer_id: Hashable, msg: Any) -> Any:
            if not self.allow(peer_id):
                raise RateLimitExceeded()
            return handler(peer_id, msg)

        return limited

    def allow(self, peer_id: Hashable) -> bool:
        """Record a request from ``peer_id`` if it is within its budget."""
        with self._lock:
            now = self._clock()
            pw = self._peers.get(peer_id)
            if pw is None:
                pw = self._peers[peer_id] = _PeerWindow(last_seen=now)
            pw.last_seen = now

            cutoff = now - self.window
            pw.requests = deque(t for t in pw.requests if t > cutoff)

            if len(pw.requests) >= self.limit:
                return False
            pw.requests.append(now)
            return True

    def cleanup(self) -> None:
        """Forget peers idle for longer than the TTL."""
        with self._lock:
            now = self._clock()
            stale = [pid for pid, pw in self._peers.items() if now - pw.last_seen > self.ttl]
            for pid in stale:
                del self._peers[pid]

    def stop(self) -> None:
        """Stop the background cleanup thread."""
        self._stopped.set()

    def _cleanup_loop(self) -> None:
        while not self._stopped.wait(self.ttl):
            self.cleanup()