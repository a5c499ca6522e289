import re

from ..interfaces import SensitivePolicy
from ...utils import REDACTED, mask_digits


class StrictDenyPolicy:
    _patterns = [
        re.compile(r"\bpassword\b", re.I),
        re.compile(r"\blogin\b", re.I),
        re.compile(r"\bssn\b", re.I),
        re.compile(r"\bsocial\s+security\b", re.I),
        re.compile(r"\bcredit\s*card\b", re.I),
        re.compile(r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b"),
        re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),
    ]
    # keyword followed by the value it introduces, e.g. "password is hunter2"
    _secrets = re.compile(r"\b(password|passcode|pin|login|ssn)\b(\s*(?:is|:|=)?\s*)\S+", re.I)

    def check(self, text: str) -> tuple[bool, str | None]:
        for pat in self._patterns:
            if pat.search(text):
                return True, f"sensitive:{pat.pattern}"
        return False, None

    def redact(self, text: str) -> str:
        text = self._secrets.sub(lambda m: m.group(1) + m.group(2) + REDACTED, text)
        return mask_digits(text)
