import os
from dataclasses import dataclass, field
from pathlib import Path


def _default_db_path() -> Path:
    env = os.getenv("GOVERNANCE_DB_PATH")
    if env:
        return Path(env).expanduser()
    if os.name == "nt":
        appdata = os.getenv("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "ContentGovernance" / "governance.db"
    return Path.home() / ".content_governance" / "governance.db"


def _default_log_dir() -> Path:
    env = os.getenv("GOVERNANCE_LOG_DIR")
    if env:
        return Path(env).expanduser()
    if os.name == "nt":
        appdata = os.getenv("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "ContentGovernance" / "logs"
    return Path.home() / ".content_governance" / "logs"


@dataclass(frozen=True)
class Settings:
    db_path: Path = field(default_factory=_default_db_path)
    log_dir: Path = field(default_factory=_default_log_dir)
    backend: str = field(default_factory=lambda: os.getenv("GOVERNANCE_BACKEND", "sqlite"))
    scorer: str = field(default_factory=lambda: os.getenv("GOVERNANCE_SCORER", "rules"))
    scorer_url: str | None = field(default_factory=lambda: os.getenv("GOVERNANCE_SCORER_URL"))
    scorer_timeout_ms: int = field(default_factory=lambda: int(os.getenv("GOVERNANCE_SCORER_TIMEOUT_MS", "2000")))
    scorer_workers: int = field(default_factory=lambda: int(os.getenv("GOVERNANCE_SCORER_WORKERS", "4")))
    sensitive: str = field(default_factory=lambda: os.getenv("GOVERNANCE_SENSITIVE", "strict"))
    events: str = field(default_factory=lambda: os.getenv("GOVERNANCE_EVENTS", "none"))
    content_field: str = field(default_factory=lambda: os.getenv("GOVERNANCE_CONTENT_FIELD", "content"))
    max_length: int = field(default_factory=lambda: int(os.getenv("GOVERNANCE_MAX_LENGTH", "2000")))
    rate_limit: int = field(default_factory=lambda: int(os.getenv("GOVERNANCE_RATE_LIMIT", "30")))
    rate_window_seconds: int = field(default_factory=lambda: int(os.getenv("GOVERNANCE_RATE_WINDOW_SECONDS", "3600")))
    rate_purge_every: int = field(default_factory=lambda: int(os.getenv("GOVERNANCE_RATE_PURGE_EVERY", "500")))
    flag_confidence_threshold: float = field(default_factory=lambda: float(os.getenv("GOVERNANCE_FLAG_CONFIDENCE_THRESHOLD", "0.4")))
    busy_timeout_ms: int = field(default_factory=lambda: int(os.getenv("GOVERNANCE_BUSY_TIMEOUT_MS", "5000")))


_settings = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
