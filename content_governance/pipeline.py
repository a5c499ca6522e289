from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import ContentValidationError, EmptyContent, GovernanceError, ModerationBlocked, RateLimitExceeded
from .ext.interfaces import EventSink, StorageBackend
from .logging import log_event
from .models import (
    ANONYMOUS,
    TERMINAL_STAGES,
    Decision,
    ModerationResult,
    RateReservation,
    Stage,
    Submission,
)
from .moderation import ModerationEvaluator
from .rate import RateGovernor
from .sanitize import sanitize
from .utils import now_ts
from .validation import validate


@dataclass
class PipelineOutcome:
    submission: Submission
    state: Stage = Stage.RECEIVED
    trail: list[Stage] = field(default_factory=lambda: [Stage.RECEIVED])
    reservation: Optional[RateReservation] = None
    moderation: Optional[ModerationResult] = None
    decision: Optional[Decision] = None
    error: Optional[GovernanceError] = None

    def advance(self, state: Stage) -> None:
        if self.state in TERMINAL_STAGES:
            raise RuntimeError(f"outcome already terminal: {self.state.value}")
        self.state = state
        self.trail.append(state)

    @property
    def accepted(self) -> bool:
        return self.state in (Stage.ALLOWED, Stage.FLAGGED)

    @property
    def scored(self) -> bool:
        return self.moderation is not None


class GovernancePipeline:
    """Runs one submission through validate → sanitize → rate check → score.

    Format and rate-limit failures end in REJECTED, a BLOCK verdict in BLOCKED;
    both carry the GovernanceError for the caller. Only the scorer is allowed to
    fail open; an unexpected exception from any other stage propagates.
    A rate slot reserved before a BLOCK verdict stays consumed.
    """

    def __init__(
        self,
        governor: RateGovernor,
        evaluator: ModerationEvaluator,
        events: EventSink,
        max_length: int = 2000,
    ) -> None:
        self.governor = governor
        self.evaluator = evaluator
        self.events = events
        self.max_length = max_length

    def process(self, raw_content: Any, author_id: Optional[str] = None, metadata: Optional[dict] = None) -> PipelineOutcome:
        submission = Submission(
            raw_text=raw_content,
            author_id=author_id or ANONYMOUS,
            submitted_at=now_ts(),
            metadata=dict(metadata or {}),
        )
        outcome = PipelineOutcome(submission=submission)
        for step in (self._validate, self._sanitize, self._rate_check, self._score, self._decide):
            step(outcome)
            if outcome.state in TERMINAL_STAGES:
                break
        return outcome

    def _validate(self, outcome: PipelineOutcome) -> None:
        try:
            validate(outcome.submission.raw_text, self.max_length)
        except ContentValidationError as exc:
            log_event("validation.rejected", user_id=outcome.submission.author_id, code=exc.code)
            self._reject(outcome, exc)
            return
        outcome.advance(Stage.VALIDATED)

    def _sanitize(self, outcome: PipelineOutcome) -> None:
        outcome.submission.content = sanitize(outcome.submission.raw_text)
        outcome.advance(Stage.SANITIZED)
        # control characters pass the blank check but sanitize away to nothing
        if not outcome.submission.content:
            log_event("validation.rejected", user_id=outcome.submission.author_id, code=EmptyContent.code)
            self._reject(outcome, EmptyContent())

    def _rate_check(self, outcome: PipelineOutcome) -> None:
        try:
            outcome.reservation = self.governor.check_and_reserve(outcome.submission.author_id)
        except RateLimitExceeded as exc:
            outcome.advance(Stage.RATE_CHECKED)
            self._reject(outcome, exc)
            return
        outcome.advance(Stage.RATE_CHECKED)

    def _score(self, outcome: PipelineOutcome) -> None:
        submission = outcome.submission
        metadata = {
            **submission.metadata,
            "author_id": submission.author_id,
            "post_type": submission.metadata.get("post_type", "user_content"),
            "timestamp": submission.submitted_at,
        }
        outcome.moderation = self.evaluator.evaluate(submission.content, metadata)
        outcome.decision = self.evaluator.interpret(outcome.moderation)
        outcome.advance(Stage.SCORED)

    def _decide(self, outcome: PipelineOutcome) -> None:
        submission = outcome.submission
        result = outcome.moderation
        if outcome.decision is Decision.BLOCK:
            outcome.error = ModerationBlocked(
                reasons=list(result.reasons),
                categories=sorted(result.categories),
                severity=result.severity.value,
            )
            log_event(
                "moderation.blocked",
                level="warning",
                user_id=submission.author_id,
                content=self.evaluator.excerpt(submission.content),
                reasons=list(result.reasons),
                confidence=result.confidence,
            )
            self.events.emit("content.blocked", {"author_id": submission.author_id, "moderation": result.to_dict()})
            outcome.advance(Stage.BLOCKED)
            return
        if outcome.decision is Decision.FLAG:
            log_event(
                "moderation.flagged",
                user_id=submission.author_id,
                reasons=list(result.reasons),
                confidence=result.confidence,
                suggested_action=result.suggested_action.value,
            )
            self.events.emit("content.flagged", {"author_id": submission.author_id, "moderation": result.to_dict()})
            outcome.advance(Stage.FLAGGED)
            return
        outcome.advance(Stage.ALLOWED)

    def _reject(self, outcome: PipelineOutcome, exc: GovernanceError) -> None:
        outcome.error = exc
        outcome.advance(Stage.REJECTED)


def persist_outcome(storage: StorageBackend, outcome: PipelineOutcome) -> Optional[int]:
    """Hand an accepted submission to storage; record blocked ones for moderation stats."""
    submission = outcome.submission
    moderation = outcome.moderation.to_dict() if outcome.moderation else None
    if outcome.state is Stage.BLOCKED:
        storage.record_block(submission.author_id, moderation)
        return None
    if not outcome.accepted:
        return None
    post_id = storage.create_post(submission.author_id, submission.content, outcome.decision.value, moderation)
    log_event("post.created", user_id=submission.author_id, post_id=post_id, decision=outcome.decision.value)
    return post_id
