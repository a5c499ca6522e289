from __future__ import annotations

from typing import Any, Optional

from .utils import iso_ts


class GovernanceError(Exception):
    """Expected policy rejection or dependency condition with a stable code."""

    code = "governance_error"
    status_code = 400
    default_message = "Request rejected"

    def __init__(self, message: Optional[str] = None, data: Any = None):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.data = data


class ContentValidationError(GovernanceError):
    code = "validation_error"
    status_code = 400


class MissingContent(ContentValidationError):
    code = "missing_content"
    default_message = "Content is required and must be a string"


class EmptyContent(ContentValidationError):
    code = "empty_content"
    default_message = "Content cannot be empty"


class ContentTooLong(ContentValidationError):
    code = "content_too_long"

    def __init__(self, current_length: int, max_length: int):
        super().__init__(
            f"Content exceeds maximum length of {max_length} characters",
            data={"currentLength": current_length, "maxLength": max_length},
        )
        self.current_length = current_length
        self.max_length = max_length


class RateLimitExceeded(GovernanceError):
    code = "rate_limit_exceeded"
    status_code = 429

    def __init__(self, limit: int, current: int, reset_time: int):
        super().__init__(
            "Posting rate limit exceeded. Please wait before posting again.",
            data={"limit": limit, "current": current, "resetTime": iso_ts(reset_time)},
        )
        self.limit = limit
        self.current = current
        self.reset_time = reset_time


class ModerationBlocked(GovernanceError):
    code = "moderation_blocked"
    default_message = "Content violates community guidelines"

    def __init__(self, reasons: list[str], categories: list[str], severity: str):
        super().__init__(data={"reasons": reasons, "categories": categories, "severity": severity})
        self.reasons = reasons
        self.categories = categories
        self.severity = severity


class DependencyFailure(GovernanceError):
    """Raised by collaborators; the pipeline fails open on it and never returns it to callers."""

    code = "dependency_failure"
    status_code = 503
    default_message = "Dependency unavailable"

    def __init__(self, message: Optional[str] = None, original: Optional[BaseException] = None):
        super().__init__(message or (str(original) if original else None))
        self.original = original


class CounterStoreUnavailable(DependencyFailure):
    code = "counter_store_unavailable"


class ScorerUnavailable(DependencyFailure):
    code = "scorer_unavailable"


class InvalidRequest(GovernanceError):
    """Body is not the JSON object shape an endpoint accepts."""

    code = "invalid_request"
    default_message = "Request body is malformed"

    def __init__(self, errors: list):
        super().__init__(data={"errors": errors})


class ReportError(GovernanceError):
    code = "report_error"


class Unauthenticated(ReportError):
    code = "unauthenticated"
    status_code = 401
    default_message = "Authentication required to report content"


class MissingFields(ReportError):
    code = "missing_fields"
    default_message = "contentId, reason, and category are required"

    def __init__(self, missing: list[str]):
        super().__init__(data={"missing": missing})
        self.missing = missing


class ReportPersistenceFailed(ReportError):
    code = "report_failed"
    status_code = 500
    default_message = "Failed to submit content report"
