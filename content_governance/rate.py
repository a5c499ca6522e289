from __future__ import annotations

import threading
from typing import Optional

from .errors import CounterStoreUnavailable, RateLimitExceeded
from .ext.interfaces import CounterStore
from .logging import log_event
from .models import ANONYMOUS, RateReservation
from .utils import now_ts


class RateGovernor:
    """Sliding-window posting cap per author.

    The check and the increment happen in one store call, so an author's
    concurrent submissions behave as if serialized at this step. The reported
    reset time is ``now + window``: a fixed-horizon backoff hint, not the
    expiry of the oldest counted submission.

    Every ``purge_every`` reservations the store is asked to drop expired
    events; ``0`` disables the sweep.
    """

    def __init__(self, store: CounterStore, window_seconds: int = 3600, cap: int = 30, purge_every: int = 500) -> None:
        self._store = store
        self.window_seconds = window_seconds
        self.cap = cap
        self.purge_every = purge_every
        self._since_purge = 0
        self._purge_lock = threading.Lock()

    def check_and_reserve(
        self,
        author_id: Optional[str],
        window_seconds: Optional[int] = None,
        cap: Optional[int] = None,
    ) -> RateReservation | None:
        if not author_id or author_id == ANONYMOUS:
            return None
        window = self.window_seconds if window_seconds is None else window_seconds
        limit = self.cap if cap is None else cap
        now = now_ts()
        try:
            reserved, current = self._store.reserve_slot(author_id, now, window, limit)
        except CounterStoreUnavailable as exc:
            log_event("rate.store_unavailable", level="error", user_id=author_id, error=str(exc))
            return None
        if not reserved:
            log_event("rate.limited", level="warning", user_id=author_id, post_count=current, limit=limit)
            raise RateLimitExceeded(limit=limit, current=current, reset_time=now + window)
        self._maybe_purge(now)
        return RateReservation(current=current, limit=limit)

    def _maybe_purge(self, now: int) -> None:
        if self.purge_every <= 0:
            return
        with self._purge_lock:
            self._since_purge += 1
            if self._since_purge < self.purge_every:
                return
            self._since_purge = 0
        try:
            removed = self._store.purge_expired(now, self.window_seconds)
        except CounterStoreUnavailable as exc:
            log_event("rate.purge_failed", level="error", error=str(exc))
            return
        log_event("rate.purged", removed=removed)
