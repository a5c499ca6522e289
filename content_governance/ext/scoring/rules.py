import re

from ..interfaces import SensitivePolicy
from ...logging import log_event
from ...models import ModerationResult, Severity, SuggestedAction

_PROFANITY = {"damn", "hell", "crap", "stupid", "idiot", "moron"}
_HATE_KEYWORDS = ("hate", "nazi", "terrorist", "kill", "die", "murder", "violence", "threat", "bomb", "shoot", "attack")
_VIOLENT_CONTEXT = re.compile(r"(?:kill|murder|die|attack|destroy).{0,20}(?:them|you|people|group)")
_SPAM_PATTERNS = [
    re.compile(r"(.)\1{10,}"),
    re.compile(r"(?:https?://\S+\s*){3,}"),
    re.compile(r"click here|buy now|limited time|act now"),
    re.compile(r"viagra|casino|lottery|winner|congratulations"),
]
_URL = re.compile(r"https?://\S+")
_EMOJI = re.compile("[\U0001f300-\U0001f5ff\U0001f900-\U0001f9ff\U0001f600-\U0001f64f\U0001f680-\U0001f6ff\u2600-\u26ff\u2700-\u27bf]")
_SUSPICIOUS_DOMAINS = ("bit.ly", "tinyurl.com", "shorturl.at")

_SEVERITY_RANK = {Severity.LOW: 0, Severity.MEDIUM: 1, Severity.HIGH: 2, Severity.CRITICAL: 3}


class RuleBasedScorer:
    """Keyword and pattern heuristics. Sub-scores add up and are capped at 1.0."""

    block_threshold = 0.7
    flag_threshold = 0.4

    def __init__(self, sensitive: SensitivePolicy) -> None:
        self._sensitive = sensitive

    def evaluate(self, text: str, metadata: dict) -> ModerationResult:
        lowered = text.lower()
        reasons: list[str] = []
        categories: set[str] = set()
        confidence = 0.0
        severity = Severity.LOW

        def raise_severity(level: Severity) -> None:
            nonlocal severity
            if _SEVERITY_RANK[level] > _SEVERITY_RANK[severity]:
                severity = level

        score = self._profanity(lowered)
        if score:
            reasons.append("Contains profanity")
            categories.add("profanity")
            confidence += score

        score = self._hate_speech(lowered)
        if score:
            reasons.append("Potential hate speech detected")
            categories.add("hate_speech")
            confidence += score
            raise_severity(Severity.HIGH)

        score = self._spam(lowered)
        if score:
            reasons.append("Spam content detected")
            categories.add("spam")
            confidence += score

        hit, _ = self._sensitive.check(text)
        if hit:
            reasons.append("Contains sensitive information")
            categories.add("sensitive_info")
            confidence += 0.6
            raise_severity(Severity.MEDIUM)

        if self._risky_links(text):
            reasons.append("Contains suspicious links")
            categories.add("suspicious_links")
            confidence += 0.4

        confidence = min(confidence, 1.0)
        is_blocked = confidence > self.block_threshold or severity == Severity.CRITICAL
        if is_blocked:
            action = SuggestedAction.BLOCK
        elif confidence > self.flag_threshold or severity in (Severity.MEDIUM, Severity.HIGH):
            action = SuggestedAction.FLAG
        else:
            action = SuggestedAction.ALLOW

        if is_blocked or confidence > 0.5:
            log_event(
                "scorer.verdict",
                level="warning",
                action=action.value,
                confidence=confidence,
                reasons=reasons,
                author_id=metadata.get("author_id"),
                text_length=len(text),
            )
        return ModerationResult(
            is_blocked=is_blocked,
            confidence=confidence,
            severity=severity,
            suggested_action=action,
            reasons=tuple(reasons),
            categories=frozenset(categories),
        )

    def _profanity(self, text: str) -> float:
        found = [w for w in (re.sub(r"[^a-z]", "", word) for word in text.split()) if w in _PROFANITY]
        return min(len(found) * 0.1, 0.3)

    def _hate_speech(self, text: str) -> float:
        if _VIOLENT_CONTEXT.search(text):
            return 0.8
        found = [k for k in _HATE_KEYWORDS if k in text]
        return min(len(found) * 0.2, 0.6)

    def _spam(self, text: str) -> float:
        hits = sum(1 for pat in _SPAM_PATTERNS if pat.search(text))
        excessive_urls = len(_URL.findall(text)) > 3
        if excessive_urls:
            hits += 1
        if len(_EMOJI.findall(text)) > 10:
            hits += 1
        if not hits:
            return 0.0
        return min(hits * 0.15 + (0.3 if excessive_urls else 0.0), 0.5)

    def _risky_links(self, text: str) -> bool:
        for url in _URL.findall(text):
            if any(domain in url for domain in _SUSPICIOUS_DOMAINS) or "malware" in url or "phishing" in url:
                return True
        return False
