"""
Baseline storage contract and the in-memory implementation.

get_by_id answers None for unknown or expired ids; callers decide whether that
is an error. The Postgres implementation lives with the API service.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from .baseline import Baseline, BaselineId, utc_now
from .exceptions import RepositoryError


class BaselineRepository(ABC):
    @abstractmethod
    def create(self, baseline: Baseline) -> BaselineId:
        """Persist a baseline; duplicate ids raise RepositoryError."""

    @abstractmethod
    def get_by_id(self, baseline_id: BaselineId) -> Optional[Baseline]:
        """Return the baseline, or None when unknown or expired."""

    @abstractmethod
    def list_recent(self, count: int) -> List[Baseline]:
        """Up to count baselines, newest first."""

    @abstractmethod
    def delete(self, baseline_id: BaselineId) -> bool:
        """Remove a baseline; True when something was removed."""

    def exists(self, baseline_id: BaselineId) -> bool:
        return self.get_by_id(baseline_id) is not None


class InMemoryBaselineRepository(BaselineRepository):
    """Dict-backed store with optional time-to-live, safe to share across threads."""

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], datetime] = utc_now):
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._ttl = timedelta(seconds=ttl_seconds) if ttl_seconds is not None else None
        self._clock = clock
        self._lock = threading.Lock()
        self._items: Dict[str, Baseline] = {}
        self._stored_at: Dict[str, datetime] = {}

    def _expired(self, key: str, now: datetime) -> bool:
        if self._ttl is None:
            return False
        return now - self._stored_at[key] >= self._ttl

    def _purge(self, now: datetime) -> None:
        """Drop expired entries; caller holds the lock."""
        if self._ttl is None:
            return
        for key in [k for k in self._items if self._expired(k, now)]:
            del self._items[key]
            del self._stored_at[key]

    def create(self, baseline: Baseline) -> BaselineId:
        key = str(baseline.id)
        with self._lock:
            now = self._clock()
            self._purge(now)
            if key in self._items:
                raise RepositoryError('create', f"Baseline '{key}' already exists")
            self._items[key] = baseline
            self._stored_at[key] = now
        return baseline.id

    def get_by_id(self, baseline_id: BaselineId) -> Optional[Baseline]:
        key = str(baseline_id)
        with self._lock:
            if key not in self._items:
                return None
            if self._expired(key, self._clock()):
                del self._items[key]
                del self._stored_at[key]
                return None
            return self._items[key]

    def list_recent(self, count: int) -> List[Baseline]:
        if count <= 0:
            return []
        with self._lock:
            self._purge(self._clock())
            live = list(self._items.values())
        live.sort(key=lambda b: (b.created_at, str(b.id)), reverse=True)
        return live[:count]

    def delete(self, baseline_id: BaselineId) -> bool:
        key = str(baseline_id)
        with self._lock:
            self._stored_at.pop(key, None)
            return self._items.pop(key, None) is not None

    def __len__(self) -> int:
        with self._lock:
            self._purge(self._clock())
            return len(self._items)
