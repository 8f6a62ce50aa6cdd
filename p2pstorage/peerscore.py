"""Peer reputation scoring with exponential decay and latency penalty."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Hashable, Iterable, Optional, Protocol

DECAY_HALF_LIFE = timedelta(minutes=5)
LATENCY_PENALTY_WEIGHT = 0.1
LATENCY_EMA_ALPHA = 0.3


class Clock(Protocol):
    def now(self) -> datetime: ...


class RealClock:
    """Clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


@dataclass
class Score:
    last_updated: datetime
    weighted_success: float = 0.0
    weighted_failure: float = 0.0
    avg_latency: timedelta = timedelta(0)


def decay_factor(elapsed: timedelta) -> float:
    """Weight remaining after ``elapsed``: exp(-elapsed / half-life)."""
    return math.exp(-elapsed.total_seconds() / DECAY_HALF_LIFE.total_seconds())


def compute_score(score: Score) -> float:
    """Successes minus failures, less a penalty proportional to average latency."""
    value = score.weighted_success - score.weighted_failure
    if score.avg_latency > timedelta(0):
        value -= score.avg_latency.total_seconds() * LATENCY_PENALTY_WEIGHT
    return value


class PeerScorer:
    """Tracks per-peer outcomes and ranks peers by decayed score."""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self.clock: Clock = clock or RealClock()
        self._scores: dict[Hashable, Score] = {}
        self._lock = threading.Lock()

    def __getitem__(self, peer_id: Hashable) -> Score:
        """Return a copy of the stored score record for ``peer_id``."""
        with self._lock:
            return replace(self._scores[peer_id])

    def __len__(self) -> int:
        with self._lock:
            return len(self._scores)

    def _entry(self, peer_id: Hashable) -> Score:
        score = self._scores.get(peer_id)
        if score is None:
            score = self._scores[peer_id] = Score(last_updated=self.clock.now())
        return score

    def _apply_decay(self, score: Score) -> None:
        now = self.clock.now()
        elapsed = now - score.last_updated
        if elapsed <= timedelta(0):
            return
        factor = decay_factor(elapsed)
        score.weighted_success *= factor
        score.weighted_failure *= factor
        score.last_updated = now

    def record_success(self, peer_id: Hashable, latency: timedelta) -> None:
        with self._lock:
            score = self._entry(peer_id)
            self._apply_decay(score)
            score.weighted_success += 1
            if score.avg_latency == timedelta(0):
                score.avg_latency = latency
            else:
                score.avg_latency = timedelta(
                    seconds=score.avg_latency.total_seconds() * (1 - LATENCY_EMA_ALPHA)
                    + latency.total_seconds() * LATENCY_EMA_ALPHA
                )

    def record_failure(self, peer_id: Hashable) -> None:
        with self._lock:
            score = self._entry(peer_id)
            self._apply_decay(score)
            score.weighted_failure += 1

    def get_score(self, peer_id: Hashable) -> float:
        """Current decayed score; 0 for unknown peers."""
        with self._lock:
            score = self._scores.get(peer_id)
            if score is None:
                return 0.0
            self._apply_decay(score)
            return compute_score(score)

    def best_peers(self, peers: Iterable[Hashable], n: int) -> list:
        """Return up to ``n`` of ``peers``, highest score first."""
        with self._lock:
            ranked = []
            for peer_id in peers:
                score = self._scores.get(peer_id)
                if score is None:
                    ranked.append((peer_id, 0.0))
                    continue
                self._apply_decay(score)
                ranked.append((peer_id, compute_score(score)))

        ranked.sort(key=lambda pair: pair[1], reverse=True)
        return [peer_id for peer_id, _ in ranked[: max(n, 0)]]