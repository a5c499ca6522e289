from __future__ import annotations

from typing import Any, Optional

import httpx

from ...errors import ScorerUnavailable
from ...models import ModerationResult, Severity, SuggestedAction

# Verdict vocabularies of third-party scoring services mapped onto ours.
_ACTIONS = {
    "allow": SuggestedAction.ALLOW,
    "approve": SuggestedAction.ALLOW,
    "flag": SuggestedAction.FLAG,
    "escalate": SuggestedAction.FLAG,
    "block": SuggestedAction.BLOCK,
}


def parse_verdict(body: Any) -> ModerationResult:
    if not isinstance(body, dict):
        raise ScorerUnavailable("scorer returned a non-object verdict")
    is_blocked = body.get("isBlocked", False)
    # "false" or 0 from a sloppy service must not read as a block
    if not isinstance(is_blocked, bool):
        raise ScorerUnavailable(f"malformed scorer verdict: isBlocked={is_blocked!r}")
    try:
        action = _ACTIONS[str(body.get("suggestedAction", "allow")).lower()]
        return ModerationResult(
            is_blocked=is_blocked,
            confidence=float(body.get("confidence", 0.0)),
            severity=Severity(str(body.get("severity", "low")).lower()),
            suggested_action=SuggestedAction.BLOCK if is_blocked else action,
            reasons=tuple(str(r) for r in body.get("reasons") or ()),
            categories=frozenset(str(c) for c in body.get("categories") or ()),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ScorerUnavailable(f"malformed scorer verdict: {exc}", original=exc) from exc


class RemoteScorer:
    """Scores text by POSTing ``{"text", "metadata"}`` to a moderation service."""

    def __init__(self, url: str, timeout: float = 2.0, client: Optional[httpx.Client] = None) -> None:
        self.url = url
        self._client = client or httpx.Client(timeout=timeout)

    def evaluate(self, text: str, metadata: dict) -> ModerationResult:
        try:
            res = self._client.post(self.url, json={"text": text, "metadata": metadata})
            res.raise_for_status()
            body = res.json()
        except httpx.HTTPError as exc:
            raise ScorerUnavailable(original=exc) from exc
        except ValueError as exc:
            raise ScorerUnavailable("scorer returned invalid JSON", original=exc) from exc
        return parse_verdict(body)

    def close(self) -> None:
        self._client.close()
