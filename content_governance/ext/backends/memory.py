import threading
from collections import deque
from contextlib import contextmanager

from ...logging import log_event
from ...models import Report, ReportStatus
from ...utils import now_ts


class InMemoryStorage:
    """Process-local storage. Reservations are serialized per author, never globally."""

    def __init__(self) -> None:
        self._events: dict[str, deque[int]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._arena_lock = threading.Lock()
        self._data_lock = threading.Lock()
        self._posts: list[dict] = []
        self._blocks: list[dict] = []
        self._reports: dict[str, Report] = {}

    def init(self) -> None:
        log_event("db.init", db_path=":memory:")

    def _author_lock(self, author_id: str) -> threading.Lock:
        with self._arena_lock:
            lock = self._locks.get(author_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[author_id] = lock
            return lock

    @contextmanager
    def _locked(self, author_id: str):
        # purge_expired may retire a lock between lookup and acquire; retry with the live one
        while True:
            lock = self._author_lock(author_id)
            lock.acquire()
            if self._locks.get(author_id) is lock:
                break
            lock.release()
        try:
            yield
        finally:
            lock.release()

    def _expire(self, events: deque[int], now: int, window_seconds: int) -> None:
        cutoff = now - window_seconds
        while events and events[0] < cutoff:
            events.popleft()

    def reserve_slot(self, author_id: str, now: int, window_seconds: int, cap: int) -> tuple[bool, int]:
        with self._locked(author_id):
            events = self._events.setdefault(author_id, deque())
            self._expire(events, now, window_seconds)
            if len(events) >= cap:
                return False, len(events)
            events.append(now)
            return True, len(events)

    def count_recent(self, author_id: str, now: int, window_seconds: int) -> int:
        with self._locked(author_id):
            events = self._events.get(author_id)
            if not events:
                return 0
            self._expire(events, now, window_seconds)
            return len(events)

    def purge_expired(self, now: int, window_seconds: int) -> int:
        """Expire old events and retire idle authors together with their locks.

        Authors whose lock is held right now are skipped until the next sweep.
        """
        removed = 0
        with self._arena_lock:
            for author_id in list(self._locks):
                lock = self._locks[author_id]
                if not lock.acquire(blocking=False):
                    continue
                try:
                    events = self._events.get(author_id)
                    if events:
                        before = len(events)
                        self._expire(events, now, window_seconds)
                        removed += before - len(events)
                    if not events:
                        self._events.pop(author_id, None)
                        del self._locks[author_id]
                finally:
                    lock.release()
        return removed

    def create_post(self, author_id: str, content: str, decision: str, moderation: dict | None) -> int:
        with self._data_lock:
            post_id = len(self._posts) + 1
            self._posts.append({
                "id": post_id,
                "author_id": author_id,
                "content": content,
                "decision": decision,
                "moderation": moderation,
                "created_at": now_ts(),
            })
            return post_id

    def get_post(self, post_id: int) -> dict | None:
        with self._data_lock:
            if 1 <= post_id <= len(self._posts):
                return dict(self._posts[post_id - 1])
            return None

    def record_block(self, author_id: str, moderation: dict) -> None:
        with self._data_lock:
            self._blocks.append({"author_id": author_id, "moderation": moderation, "created_at": now_ts()})

    def save_report(self, report: Report) -> None:
        with self._data_lock:
            self._reports[report.report_id] = report

    def get_report(self, report_id: str) -> Report | None:
        with self._data_lock:
            return self._reports.get(report_id)

    def list_reports(self, status: ReportStatus | None = None, limit: int = 50) -> list[Report]:
        with self._data_lock:
            items = [r for r in self._reports.values() if status is None or r.status == status]
        items.sort(key=lambda r: r.report_id, reverse=True)
        return items[:limit]

    def metrics(self) -> dict:
        with self._data_lock:
            return {
                "posts": len(self._posts),
                "flagged_posts": sum(1 for p in self._posts if p["decision"] == "flag"),
                "blocked_submissions": len(self._blocks),
                "reports": len(self._reports),
                "pending_reports": sum(1 for r in self._reports.values() if r.status == ReportStatus.PENDING),
            }
