import json
import re
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path


def now_ts() -> int:
    return int(time.time())


def now_ms() -> int:
    return int(time.time() * 1000)


def iso_ts(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def gen_request_id() -> str:
    return uuid.uuid4().hex


def gen_report_id() -> str:
    # millisecond prefix keeps ids sortable by creation time
    return f"report_{now_ms():013d}_{uuid.uuid4().hex[:12]}"


_DIGIT_RUN = re.compile(r"\d(?:[\d\s-]{2,}\d)")

REDACTED = "[redacted]"


def mask_digits(text: str) -> str:
    """Replace runs of four or more digits (spaces and dashes allowed between them)."""
    return _DIGIT_RUN.sub(lambda m: REDACTED if sum(c.isdigit() for c in m.group()) >= 4 else m.group(), text)


def excerpt(text: str, limit: int = 100) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def dumps_json(value) -> str:
    return json.dumps(value, ensure_ascii=True, separators=(",", ":"))
