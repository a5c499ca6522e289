import pytest

from content_governance.errors import ContentTooLong, EmptyContent, MissingContent
from content_governance.validation import validate


@pytest.mark.parametrize("content", [None, 123, ["hi"], {"text": "hi"}, b"hi"])
def test_missing_or_non_string_content(content):
    with pytest.raises(MissingContent) as excinfo:
        validate(content, 2000)
    assert excinfo.value.code == "missing_content"
    assert excinfo.value.status_code == 400


@pytest.mark.parametrize("content", ["", "   ", "\n\t  \r\n", " " * 5000])
def test_blank_content_is_empty_regardless_of_length(content):
    with pytest.raises(EmptyContent) as excinfo:
        validate(content, 2000)
    assert excinfo.value.code == "empty_content"
    assert excinfo.value.data is None


def test_too_long_reports_exact_length():
    content = "a" * 2001
    with pytest.raises(ContentTooLong) as excinfo:
        validate(content, 2000)
    err = excinfo.value
    assert err.current_length == 2001
    assert err.data == {"currentLength": 2001, "maxLength": 2000}


def test_length_counts_surrounding_whitespace():
    with pytest.raises(ContentTooLong) as excinfo:
        validate("  hello  ", 8)
    assert excinfo.value.current_length == 9


def test_boundary_length_accepted():
    assert validate("a" * 2000, 2000) is None
    assert validate("hi", 2000) is None
