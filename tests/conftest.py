import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.environ.setdefault("COVERAGE_FILE", str(ROOT / ".test_tmp" / ".coverage"))


def reset_registry() -> None:
    import content_governance.config as config
    config._settings = None
    import content_governance.ext.registry as registry
    if registry._pipeline is not None:
        registry._pipeline.evaluator.shutdown()
    registry._storage = None
    registry._scorer = None
    registry._sensitive = None
    registry._events = None
    registry._pipeline = None
    registry._ledger = None


@pytest.fixture(autouse=True)
def temp_db(monkeypatch, tmp_path):
    db_path = tmp_path / "test.db"
    monkeypatch.setenv("GOVERNANCE_DB_PATH", str(db_path))
    monkeypatch.setenv("GOVERNANCE_BACKEND", "sqlite")
    monkeypatch.setenv("GOVERNANCE_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("GOVERNANCE_API_KEYS", "testkey-a:userA,testkey-b:userB")
    reset_registry()
    yield
    reset_registry()


@pytest.fixture
def client():
    from content_governance.api import app

    return TestClient(app)


@pytest.fixture
def events(monkeypatch):
    """Capture log_event calls made by the governance stages."""
    captured = []

    def record(event, level="info", exc_info=None, **fields):
        captured.append({"event": event, "level": level, **fields})

    for module in ("rate", "moderation", "pipeline", "reports"):
        monkeypatch.setattr(f"content_governance.{module}.log_event", record)
    return captured


def auth_headers(key: str) -> dict:
    return {"X-API-Key": key}


@pytest.fixture
def anyio_backend():
    return "asyncio"
