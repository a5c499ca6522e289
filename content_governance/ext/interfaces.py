from __future__ import annotations

from typing import Protocol

from ..models import ModerationResult, Report, ReportStatus


class CounterStore(Protocol):
    def reserve_slot(self, author_id: str, now: int, window_seconds: int, cap: int) -> tuple[bool, int]:
        """Atomically count the author's events in the window and record one more if under cap.

        Returns ``(reserved, count)`` where ``count`` includes the new event when reserved.
        Raises CounterStoreUnavailable when the store cannot be reached.
        """
        ...

    def count_recent(self, author_id: str, now: int, window_seconds: int) -> int:
        ...

    def purge_expired(self, now: int, window_seconds: int) -> int:
        """Drop events older than the window; returns how many were removed."""
        ...


class ReportStore(Protocol):
    def save_report(self, report: Report) -> None:
        ...

    def get_report(self, report_id: str) -> Report | None:
        ...

    def list_reports(self, status: ReportStatus | None = None, limit: int = 50) -> list[Report]:
        ...


class StorageBackend(CounterStore, ReportStore, Protocol):
    def init(self) -> None:
        ...

    def create_post(self, author_id: str, content: str, decision: str, moderation: dict | None) -> int:
        ...

    def record_block(self, author_id: str, moderation: dict) -> None:
        ...

    def metrics(self) -> dict:
        ...


class Scorer(Protocol):
    def evaluate(self, text: str, metadata: dict) -> ModerationResult:
        ...


class SensitivePolicy(Protocol):
    def check(self, text: str) -> tuple[bool, str | None]:
        ...

    def redact(self, text: str) -> str:
        ...


class EventSink(Protocol):
    def emit(self, event: str, payload: dict) -> None:
        ...
