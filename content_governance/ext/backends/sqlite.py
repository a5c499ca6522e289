import json
import sqlite3
from contextlib import closing
from pathlib import Path

from ...config import get_settings
from ...db import ensure_db_dir
from ...errors import CounterStoreUnavailable
from ...logging import log_event
from ...migrations import migrate
from ...models import Report, ReportStatus
from ...utils import now_ts, dumps_json


def _row_to_report(row: sqlite3.Row) -> Report:
    return Report(
        report_id=row["report_id"],
        content_id=row["content_id"],
        reporter_id=row["reporter_id"],
        reason=row["reason"],
        category=row["category"],
        status=ReportStatus(row["status"]),
        created_at=int(row["created_at"]),
    )


class SQLiteStorage:
    def __init__(self) -> None:
        self._settings = get_settings()
        self._db_path = Path(self._settings.db_path)

    def _connect(self) -> sqlite3.Connection:
        ensure_db_dir()
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute(f"PRAGMA busy_timeout={self._settings.busy_timeout_ms};")
        return conn

    def init(self) -> None:
        with closing(self._connect()) as conn, conn:
            migrate(conn)
        log_event("db.init", db_path=str(self._db_path))

    def reserve_slot(self, author_id: str, now: int, window_seconds: int, cap: int) -> tuple[bool, int]:
        try:
            with closing(self._connect()) as conn:
                conn.isolation_level = None
                # IMMEDIATE takes the write lock before the count, so concurrent
                # reservations cannot both observe the same free slot.
                conn.execute("BEGIN IMMEDIATE")
                try:
                    count = conn.execute(
                        "SELECT COUNT(*) AS c FROM rate_events WHERE author_id=? AND created_at >= ?",
                        (author_id, now - window_seconds),
                    ).fetchone()["c"]
                    if count >= cap:
                        conn.execute("ROLLBACK")
                        return False, int(count)
                    conn.execute("INSERT INTO rate_events(author_id, created_at) VALUES(?, ?)", (author_id, now))
                    conn.execute("COMMIT")
                    return True, int(count) + 1
                except BaseException:
                    if conn.in_transaction:
                        conn.execute("ROLLBACK")
                    raise
        except sqlite3.Error as exc:
            raise CounterStoreUnavailable(original=exc) from exc

    def count_recent(self, author_id: str, now: int, window_seconds: int) -> int:
        try:
            with closing(self._connect()) as conn:
                row = conn.execute(
                    "SELECT COUNT(*) AS c FROM rate_events WHERE author_id=? AND created_at >= ?",
                    (author_id, now - window_seconds),
                ).fetchone()
                return int(row["c"])
        except sqlite3.Error as exc:
            raise CounterStoreUnavailable(original=exc) from exc

    def purge_expired(self, now: int, window_seconds: int) -> int:
        try:
            with closing(self._connect()) as conn, conn:
                cursor = conn.execute("DELETE FROM rate_events WHERE created_at < ?", (now - window_seconds,))
                return cursor.rowcount
        except sqlite3.Error as exc:
            raise CounterStoreUnavailable(original=exc) from exc

    def create_post(self, author_id: str, content: str, decision: str, moderation: dict | None) -> int:
        with closing(self._connect()) as conn, conn:
            cursor = conn.execute(
                "INSERT INTO posts(author_id, content, decision, moderation_json, created_at) VALUES(?, ?, ?, ?, ?)",
                (author_id, content, decision, dumps_json(moderation) if moderation else None, now_ts()),
            )
            return int(cursor.lastrowid)

    def get_post(self, post_id: int) -> dict | None:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT * FROM posts WHERE id=?", (post_id,)).fetchone()
            if not row:
                return None
            item = dict(row)
            item["moderation"] = json.loads(item.pop("moderation_json")) if item["moderation_json"] else None
            return item

    def record_block(self, author_id: str, moderation: dict) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO moderation_log(author_id, decision, moderation_json, created_at) VALUES(?, ?, ?, ?)",
                (author_id, "block", dumps_json(moderation), now_ts()),
            )

    def save_report(self, report: Report) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO reports(report_id, content_id, reporter_id, reason, category, status, created_at) VALUES(?, ?, ?, ?, ?, ?, ?)",
                (report.report_id, report.content_id, report.reporter_id, report.reason, report.category, report.status.value, report.created_at),
            )

    def get_report(self, report_id: str) -> Report | None:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT * FROM reports WHERE report_id=?", (report_id,)).fetchone()
            return _row_to_report(row) if row else None

    def list_reports(self, status: ReportStatus | None = None, limit: int = 50) -> list[Report]:
        with closing(self._connect()) as conn:
            if status is None:
                rows = conn.execute("SELECT * FROM reports ORDER BY report_id DESC LIMIT ?", (limit,)).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM reports WHERE status=? ORDER BY report_id DESC LIMIT ?", (status.value, limit)
                ).fetchall()
            return [_row_to_report(row) for row in rows]

    def metrics(self) -> dict:
        with closing(self._connect()) as conn:
            posts = conn.execute("SELECT COUNT(*) as c FROM posts").fetchone()["c"]
            flagged = conn.execute("SELECT COUNT(*) as c FROM posts WHERE decision='flag'").fetchone()["c"]
            blocked = conn.execute("SELECT COUNT(*) as c FROM moderation_log WHERE decision='block'").fetchone()["c"]
            reports = conn.execute("SELECT COUNT(*) as c FROM reports").fetchone()["c"]
            pending = conn.execute("SELECT COUNT(*) as c FROM reports WHERE status='pending'").fetchone()["c"]
            return {
                "posts": int(posts),
                "flagged_posts": int(flagged),
                "blocked_submissions": int(blocked),
                "reports": int(reports),
                "pending_reports": int(pending),
            }
