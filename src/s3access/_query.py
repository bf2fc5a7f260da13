"""
Query parameter allow-list for GET/HEAD requests
"""

from typing import FrozenSet, Tuple

# Keys defined by the S3 protocol that callers may pass through.
SUPPORTED_QUERY_VALUES: FrozenSet[str] = frozenset({
    "attributes",
    "partNumber",
    "versionId",
    "response-cache-control",
    "response-content-disposition",
    "response-content-encoding",
    "response-content-language",
    "response-content-type",
    "response-expires",
    "select",
    "select-type",
})

ALLOWED_CUSTOM_QUERY_PREFIXES: Tuple[str, ...] = ("x-minio-",)


def is_standard_query_value(key: str) -> bool:
    return key in SUPPORTED_QUERY_VALUES


def is_custom_query_value(key: str) -> bool:
    return key.startswith(ALLOWED_CUSTOM_QUERY_PREFIXES)


def is_supported_query_value(key: str) -> bool:
    """Return True if ``key`` may be forwarded as a request query parameter."""
    return is_standard_query_value(key) or is_custom_query_value(key)
