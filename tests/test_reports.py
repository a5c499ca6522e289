import pytest

from content_governance.errors import MissingFields, ReportPersistenceFailed, Unauthenticated
from content_governance.ext.backends.memory import InMemoryStorage
from content_governance.ext.backends.sqlite import SQLiteStorage
from content_governance.ext.events.listeners import ListenerEventSink
from content_governance.ext.events.noop import NoopEventSink
from content_governance.models import ReportStatus
from content_governance.reports import ReportLedger


class CountingStore(InMemoryStorage):
    def __init__(self):
        super().__init__()
        self.saves = 0

    def save_report(self, report):
        self.saves += 1
        super().save_report(report)


def test_requires_reporter():
    store = CountingStore()
    ledger = ReportLedger(store, NoopEventSink())
    with pytest.raises(Unauthenticated) as excinfo:
        ledger.submit_report("post-1", None, "spam", "spam")
    assert excinfo.value.status_code == 401
    assert store.saves == 0


@pytest.mark.parametrize(
    "content_id,reason,category,missing",
    [
        ("post-1", None, "spam", ["reason"]),
        ("post-1", "   ", "spam", ["reason"]),
        (None, "rude", None, ["contentId", "category"]),
        ("", "", "", ["contentId", "reason", "category"]),
    ],
)
def test_missing_fields_do_not_persist(content_id, reason, category, missing):
    store = CountingStore()
    ledger = ReportLedger(store, NoopEventSink())
    with pytest.raises(MissingFields) as excinfo:
        ledger.submit_report(content_id, "userA", reason, category)
    assert excinfo.value.missing == missing
    assert excinfo.value.status_code == 400
    assert store.saves == 0


def test_submit_creates_pending_report():
    store = CountingStore()
    sink = ListenerEventSink()
    seen = []
    sink.register(lambda event, payload: seen.append((event, payload["reportId"])))
    ledger = ReportLedger(store, sink)
    report = ledger.submit_report("post-1", "userA", "harassment", "abuse")
    assert report.status is ReportStatus.PENDING
    assert report.report_id.startswith("report_")
    assert ledger.get_report(report.report_id) == report
    assert seen == [("report.submitted", report.report_id)]


def test_duplicate_reports_are_separate_records():
    store = CountingStore()
    ledger = ReportLedger(store, NoopEventSink())
    first = ledger.submit_report("post-1", "userA", "spam", "spam")
    second = ledger.submit_report("post-1", "userA", "spam", "spam")
    assert first.report_id != second.report_id
    assert store.saves == 2
    assert len(store.list_reports()) == 2


def test_report_ids_unique_and_time_ordered():
    ledger = ReportLedger(InMemoryStorage(), NoopEventSink())
    ids = [ledger.submit_report(f"post-{i}", "userA", "spam", "spam").report_id for i in range(200)]
    assert len(set(ids)) == len(ids)
    prefixes = [rid.split("_")[1] for rid in ids]
    assert prefixes == sorted(prefixes)


def test_store_failure_surfaces_as_report_failed():
    class Broken(InMemoryStorage):
        def save_report(self, report):
            raise OSError("disk full")

    ledger = ReportLedger(Broken(), NoopEventSink())
    with pytest.raises(ReportPersistenceFailed) as excinfo:
        ledger.submit_report("post-1", "userA", "spam", "spam")
    assert excinfo.value.status_code == 500
    assert excinfo.value.code == "report_failed"


def test_sqlite_ledger_roundtrip():
    store = SQLiteStorage()
    store.init()
    ledger = ReportLedger(store, NoopEventSink())
    report = ledger.submit_report("post-9", "userB", "off topic", "spam")
    assert ledger.get_report(report.report_id) == report
    assert store.metrics()["pending_reports"] == 1
