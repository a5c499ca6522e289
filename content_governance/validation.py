from typing import Any

from .errors import ContentTooLong, EmptyContent, MissingContent


def validate(content: Any, max_length: int) -> None:
    """Raise a ContentValidationError when content cannot be accepted.

    Blank content is reported as empty even when its raw length exceeds
    ``max_length``; any other over-long content reports its exact length.
    """
    if content is None or not isinstance(content, str):
        raise MissingContent()
    if len(content.strip()) == 0:
        raise EmptyContent()
    if len(content) > max_length:
        raise ContentTooLong(current_length=len(content), max_length=max_length)
