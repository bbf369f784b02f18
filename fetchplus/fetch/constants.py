"""HTTP constants for the fetch layer.

Centralizes all HTTP-related constants to avoid duplication across modules.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300

# Status codes retried by default when a retry policy is enabled
DEFAULT_RETRY_STATUS_CODES = frozenset({408, 500, 502, 503, 504})

# Retry defaults (milliseconds)
DEFAULT_RETRIES = 2
DEFAULT_FACTOR = 2.0
DEFAULT_MIN_TIMEOUT_MS = 1000
