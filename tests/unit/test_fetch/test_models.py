"""Unit tests for request and response descriptors."""

import httpx
import pytest
from pydantic import ValidationError

from fetchplus.fetch.models import (
    AttemptContext,
    RequestDescriptor,
    ResponseDescriptor,
    normalize_headers,
    to_httpx_headers,
)


class TestNormalizeHeaders:
    """Tests for header multi-map normalization."""

    def test_lowercases_names(self) -> None:
        """Test that header names are lower-cased."""
        assert normalize_headers({"Content-Type": "text/plain"}) == {
            "content-type": ("text/plain",)
        }

    def test_merges_repeated_pairs(self) -> None:
        """Test that repeated names collect every value."""
        result = normalize_headers([("Set-Cookie", "a=1"), ("set-cookie", "b=2")])

        assert result == {"set-cookie": ("a=1", "b=2")}

    def test_accepts_httpx_headers(self) -> None:
        """Test that httpx.Headers keep repeated values."""
        headers = httpx.Headers([("vary", "accept"), ("vary", "origin")])

        assert normalize_headers(headers) == {"vary": ("accept", "origin")}

    def test_none_is_empty(self) -> None:
        """Test that missing headers normalize to an empty map."""
        assert normalize_headers(None) == {}

    def test_to_httpx_headers_expands_values(self) -> None:
        """Test that a multi-map expands back into repeated headers."""
        headers = to_httpx_headers({"x-a": ("1", "2")})

        assert headers.get_list("x-a") == ["1", "2"]


class TestRequestDescriptor:
    """Tests for RequestDescriptor."""

    def test_defaults_to_get(self) -> None:
        """Test that method defaults to GET and is upper-cased."""
        assert RequestDescriptor(url="http://x.com").method == "GET"
        assert RequestDescriptor(url="http://x.com", method="post").method == "POST"

    def test_header_lookup_case_insensitive(self) -> None:
        """Test that header() ignores case and joins values."""
        request = RequestDescriptor(
            url="http://x.com", headers=[("Accept", "a"), ("accept", "b")]
        )

        assert request.header("ACCEPT") == "a, b"
        assert request.header("missing") is None

    def test_url_kept_as_given(self) -> None:
        """Test that the URL is not normalized for transport."""
        assert RequestDescriptor(url="http://X.com/A").url == "http://X.com/A"

    def test_is_frozen(self) -> None:
        """Test that a request cannot be mutated."""
        request = RequestDescriptor(url="http://x.com")

        with pytest.raises(ValidationError):
            request.url = "http://y.com"  # type: ignore[misc]


class TestResponseDescriptor:
    """Tests for ResponseDescriptor."""

    def test_ok(self) -> None:
        """Test that ok is true only for 2xx."""
        assert ResponseDescriptor(status=204).ok is True
        assert ResponseDescriptor(status=304).ok is False

    def test_text_uses_charset(self) -> None:
        """Test that text decodes using the Content-Type charset."""
        response = ResponseDescriptor(
            status=200,
            headers={"content-type": "text/plain; charset=latin-1"},
            body="café".encode("latin-1"),
        )

        assert response.text == "café"

    def test_json(self) -> None:
        """Test that json() parses the body."""
        response = ResponseDescriptor(status=200, body=b'{"a": 1}')

        assert response.json() == {"a": 1}

    def test_rejects_invalid_status(self) -> None:
        """Test that status codes outside 100-599 are rejected."""
        with pytest.raises(ValidationError):
            ResponseDescriptor(status=42)


class TestAttemptContext:
    """Tests for AttemptContext."""

    def test_elapsed_ms_non_negative(self) -> None:
        """Test that elapsed time is measured from start_time."""
        context = AttemptContext(attempt=1, max_attempts=3)

        assert context.elapsed_ms() >= 0
