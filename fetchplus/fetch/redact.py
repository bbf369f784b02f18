"""Credential redaction for log lines."""

import re
from collections.abc import Mapping, Sequence


# Headers that must never appear in logs
SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "cookie",
        "x-api-key",
        "x-auth-token",
        "proxy-authorization",
        "set-cookie",
    }
)

REDACTED_VALUE = "[REDACTED]"

_URL_CREDENTIALS = re.compile(r"(https?://)([^:/@]+):([^@/]+)@")


def redact_headers(headers: Mapping[str, str | Sequence[str]]) -> dict[str, str]:
    """Redact sensitive headers for logging.

    Repeated values are joined with a comma before logging.

    Args:
        headers: Header mapping, single- or multi-valued.

    Returns:
        New dictionary with sensitive values replaced by [REDACTED].
    """
    result: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            result[key] = REDACTED_VALUE
        elif isinstance(value, str):
            result[key] = value
        else:
            result[key] = ", ".join(value)
    return result


def redact_url_credentials(url: str) -> str:
    """Redact user:password@ credentials embedded in a URL.

    Args:
        url: URL that may contain credentials.

    Returns:
        URL with credentials redacted.
    """
    return _URL_CREDENTIALS.sub(rf"\1{REDACTED_VALUE}:{REDACTED_VALUE}@", url)
