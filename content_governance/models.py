from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional

ANONYMOUS = "anonymous"


class Severity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SuggestedAction(str, enum.Enum):
    ALLOW = "allow"
    FLAG = "flag"
    BLOCK = "block"


class Decision(str, enum.Enum):
    ALLOW = "allow"
    FLAG = "flag"
    BLOCK = "block"


class ReportStatus(str, enum.Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    DISMISSED = "dismissed"


class Stage(str, enum.Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    SANITIZED = "sanitized"
    RATE_CHECKED = "rate_checked"
    SCORED = "scored"
    ALLOWED = "allowed"
    FLAGGED = "flagged"
    BLOCKED = "blocked"
    REJECTED = "rejected"


TERMINAL_STAGES = frozenset({Stage.ALLOWED, Stage.FLAGGED, Stage.BLOCKED, Stage.REJECTED})


@dataclass
class Submission:
    raw_text: Any
    author_id: str = ANONYMOUS
    submitted_at: int = 0
    metadata: dict = field(default_factory=dict)
    content: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        return not self.author_id or self.author_id == ANONYMOUS


@dataclass(frozen=True)
class ModerationResult:
    is_blocked: bool
    confidence: float
    severity: Severity = Severity.LOW
    suggested_action: SuggestedAction = SuggestedAction.ALLOW
    reasons: tuple[str, ...] = ()
    categories: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence out of range: {self.confidence}")
        if self.is_blocked and self.suggested_action is not SuggestedAction.BLOCK:
            raise ValueError("blocked result must suggest block")

    def to_dict(self) -> dict:
        return {
            "isBlocked": self.is_blocked,
            "confidence": self.confidence,
            "severity": self.severity.value,
            "suggestedAction": self.suggested_action.value,
            "reasons": list(self.reasons),
            "categories": sorted(self.categories),
        }


@dataclass(frozen=True)
class RateReservation:
    current: int
    limit: int


@dataclass(frozen=True)
class Report:
    report_id: str
    content_id: str
    reporter_id: str
    reason: str
    category: str
    status: ReportStatus
    created_at: int

    def to_dict(self) -> dict:
        return {
            "reportId": self.report_id,
            "contentId": self.content_id,
            "reporterId": self.reporter_id,
            "reason": self.reason,
            "category": self.category,
            "status": self.status.value,
            "createdAt": self.created_at,
        }
