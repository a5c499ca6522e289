from __future__ import annotations

from typing import Any, Optional

from .errors import GovernanceError, MissingFields, ReportPersistenceFailed, Unauthenticated
from .ext.interfaces import EventSink, ReportStore
from .logging import log_event
from .models import Report, ReportStatus
from .utils import gen_report_id, now_ts


class ReportLedger:
    def __init__(self, store: ReportStore, events: EventSink) -> None:
        self._store = store
        self._events = events

    def submit_report(
        self,
        content_id: Any,
        reporter_id: Optional[str],
        reason: Any,
        category: Any,
    ) -> Report:
        """Record a PENDING report; field values of any type are stored as strings."""
        if not reporter_id:
            raise Unauthenticated()
        fields = {"contentId": content_id, "reason": reason, "category": category}
        missing = [name for name, value in fields.items() if not value or not str(value).strip()]
        if missing:
            raise MissingFields(missing)
        report = Report(
            report_id=gen_report_id(),
            content_id=str(content_id),
            reporter_id=reporter_id,
            reason=str(reason),
            category=str(category),
            status=ReportStatus.PENDING,
            created_at=now_ts(),
        )
        try:
            self._store.save_report(report)
        except GovernanceError:
            raise
        except Exception as exc:
            log_event("report.failed", level="error", exc_info=True, user_id=reporter_id, content_id=content_id)
            raise ReportPersistenceFailed() from exc
        log_event("report.submitted", user_id=reporter_id, content_id=report.content_id, category=report.category, report_id=report.report_id)
        self._events.emit("report.submitted", report.to_dict())
        return report

    def get_report(self, report_id: str) -> Report | None:
        return self._store.get_report(report_id)
