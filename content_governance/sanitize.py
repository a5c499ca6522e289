import re

# C0 controls that are not whitespace, plus DEL. Whitespace controls
# (tab, newline, CR, VT, FF, FS..US) are folded into single spaces instead.
_CONTROL = re.compile(r"[\x00-\x08\x0e-\x1b\x7f]")
_WHITESPACE = re.compile(r"\s+")


def sanitize(content: str) -> str:
    """Normalize text: drop control characters, collapse whitespace runs, trim.

    No newline or tab survives. Idempotent.
    """
    text = _CONTROL.sub("", content)
    text = _WHITESPACE.sub(" ", text)
    return text.strip()
