from .interfaces import StorageBackend, Scorer, SensitivePolicy, EventSink
from .backends.sqlite import SQLiteStorage
from .backends.memory import InMemoryStorage
from .scoring.rules import RuleBasedScorer
from .scoring.remote import RemoteScorer
from .sensitive.strict import StrictDenyPolicy
from .events.noop import NoopEventSink
from .events.listeners import ListenerEventSink
from ..config import get_settings
from ..moderation import ModerationEvaluator
from ..pipeline import GovernancePipeline
from ..rate import RateGovernor
from ..reports import ReportLedger

_storage: StorageBackend | None = None
_scorer: Scorer | None = None
_sensitive: SensitivePolicy | None = None
_events: EventSink | None = None
_pipeline: GovernancePipeline | None = None
_ledger: ReportLedger | None = None


def get_storage() -> StorageBackend:
    global _storage
    if _storage:
        return _storage
    settings = get_settings()
    if settings.backend == "sqlite":
        _storage = SQLiteStorage()
    elif settings.backend == "memory":
        _storage = InMemoryStorage()
    else:
        raise ValueError(f"Unknown backend: {settings.backend}")
    _storage.init()
    return _storage


def get_sensitive_policy() -> SensitivePolicy:
    global _sensitive
    if _sensitive:
        return _sensitive
    settings = get_settings()
    if settings.sensitive == "strict":
        _sensitive = StrictDenyPolicy()
    else:
        raise ValueError(f"Unknown sensitive policy: {settings.sensitive}")
    return _sensitive


def get_scorer() -> Scorer:
    global _scorer
    if _scorer:
        return _scorer
    settings = get_settings()
    if settings.scorer == "rules":
        _scorer = RuleBasedScorer(get_sensitive_policy())
    elif settings.scorer == "remote":
        if not settings.scorer_url:
            raise ValueError("GOVERNANCE_SCORER_URL is required for the remote scorer")
        _scorer = RemoteScorer(settings.scorer_url, timeout=settings.scorer_timeout_ms / 1000)
    else:
        raise ValueError(f"Unknown scorer: {settings.scorer}")
    return _scorer


def get_event_sink() -> EventSink:
    global _events
    if _events:
        return _events
    settings = get_settings()
    if settings.events == "none":
        _events = NoopEventSink()
    elif settings.events == "listeners":
        _events = ListenerEventSink()
    else:
        raise ValueError(f"Unknown events: {settings.events}")
    return _events


def get_pipeline() -> GovernancePipeline:
    global _pipeline
    if _pipeline:
        return _pipeline
    settings = get_settings()
    governor = RateGovernor(
        get_storage(),
        settings.rate_window_seconds,
        settings.rate_limit,
        purge_every=settings.rate_purge_every,
    )
    evaluator = ModerationEvaluator(
        get_scorer(),
        timeout_seconds=settings.scorer_timeout_ms / 1000,
        flag_threshold=settings.flag_confidence_threshold,
        max_workers=settings.scorer_workers,
        redact=get_sensitive_policy().redact,
    )
    _pipeline = GovernancePipeline(governor, evaluator, get_event_sink(), max_length=settings.max_length)
    return _pipeline


def get_report_ledger() -> ReportLedger:
    global _ledger
    if _ledger:
        return _ledger
    _ledger = ReportLedger(get_storage(), get_event_sink())
    return _ledger


def register_event_listener(fn) -> None:
    """Subscribe ``fn(event, payload)`` to moderation events; needs ``GOVERNANCE_EVENTS=listeners``."""
    sink = get_event_sink()
    if not isinstance(sink, ListenerEventSink):
        raise ValueError(f"Event sink {get_settings().events!r} does not accept listeners")
    sink.register(fn)
