from ..interfaces import EventSink
from ...logging import log_event


class ListenerEventSink:
    """Fans moderation events out to in-process listeners; a failing listener never affects the others."""

    def __init__(self) -> None:
        self._listeners = []

    def emit(self, event: str, payload: dict) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception:
                log_event("events.listener_failed", level="warning", exc_info=True, event_name=event)
                continue

    def register(self, fn) -> None:
        self._listeners.append(fn)
