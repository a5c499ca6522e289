from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Callable, Optional

from .ext.interfaces import Scorer
from .logging import log_event
from .models import Decision, ModerationResult, SuggestedAction
from .utils import excerpt, mask_digits


class ModerationEvaluator:
    """Runs the external scorer under a timeout and maps its verdict to a decision.

    Any scorer failure, including a timeout or a malformed verdict, fails open:
    ``evaluate`` logs it and returns ``None`` so the submission continues unscored.
    The scorer is never retried here.
    Logged content is passed through ``redact`` first.
    """

    def __init__(
        self,
        scorer: Scorer,
        timeout_seconds: float = 2.0,
        flag_threshold: float = 0.4,
        max_workers: int = 4,
        redact: Callable[[str], str] = mask_digits,
    ) -> None:
        self._scorer = scorer
        self._redact = redact
        self.timeout_seconds = timeout_seconds
        self.flag_threshold = flag_threshold
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="scorer")

    def evaluate(self, content: str, metadata: dict) -> Optional[ModerationResult]:
        author_id = metadata.get("author_id")
        try:
            future = self._executor.submit(self._scorer.evaluate, content, metadata)
            result = future.result(timeout=self.timeout_seconds)
            if not isinstance(result, ModerationResult):
                raise TypeError(f"scorer returned {type(result).__name__}")
            return result
        except FutureTimeout:
            future.cancel()
            log_event(
                "moderation.scorer_failed",
                level="error",
                user_id=author_id,
                error=f"scorer timed out after {self.timeout_seconds}s",
                content=self.excerpt(content),
            )
        except Exception as exc:
            log_event(
                "moderation.scorer_failed",
                level="error",
                user_id=author_id,
                error=str(exc) or type(exc).__name__,
                content=self.excerpt(content),
            )
        return None

    def excerpt(self, content: str) -> str:
        """Log-safe excerpt: sensitive values are redacted before truncation."""
        return excerpt(self._redact(content))

    def interpret(self, result: Optional[ModerationResult]) -> Decision:
        if result is None:
            return Decision.ALLOW
        if result.is_blocked:
            return Decision.BLOCK
        if result.suggested_action is SuggestedAction.FLAG or result.confidence > self.flag_threshold:
            return Decision.FLAG
        return Decision.ALLOW

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
