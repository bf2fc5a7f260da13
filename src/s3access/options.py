"""
Request options for GET and HEAD object requests
"""

import string
from dataclasses import dataclass, field
from datetime import datetime, UTC
from email.utils import format_datetime
from typing import Dict, List, Optional, Tuple

from ._query import is_supported_query_value
from .encrypt import ServerSide, SseType
from .error import InvalidArgumentException

REPLICATION_PROXY_REQUEST_HEADER = "X-Minio-Source-Proxy-Request"
CHECKSUM_MODE_HEADER = "X-Amz-Checksum-Mode"

_TOKEN_CHARS = frozenset(string.ascii_letters + string.digits + "!#$%&'*+-.^_`|~")


def canonical_header_key(key: str) -> str:
    """
    Return the canonical form of an HTTP header name.

    The first letter and any letter following a hyphen are upper-cased, the
    rest lower-cased. Names that are not RFC 7230 tokens are returned unchanged.
    """
    if not key or any(ch not in _TOKEN_CHARS for ch in key):
        return key
    return "-".join(part[:1].upper() + part[1:].lower() for part in key.split("-"))


def _http_date(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return format_datetime(value.astimezone(UTC), usegmt=True)


def _is_zero_time(value: Optional[datetime]) -> bool:
    return value is None or value.replace(tzinfo=None) == datetime.min


@dataclass
class AdvancedGetOptions:
    """Replication fields used by the server itself; not for client use."""
    replication_delete_marker: bool = False
    is_replication_ready_for_delete_marker: bool = False
    replication_proxy_request: str = ""


@dataclass
class GetObjectOptions:
    """
    Headers and query parameters for a GET or HEAD object request.

    Values are accumulated through the setters and only turned into the
    final request shape by :meth:`header` and :meth:`query_values`, so the
    encryption settings and internal flags always win over headers set by
    hand, whatever order they were configured in.

    Example:
        opts = GetObjectOptions(version_id="3/L4kqtJl40Nr8X8gdRQBpUMLUo")
        opts.set_range(0, 1023)
        opts.set_match_etag("d41d8cd98f00b204e9800998ecf8427e")
        await client.get_object("photos", "2024/img.jpg", out, opts)
    """
    server_side_encryption: Optional[ServerSide] = None
    version_id: str = ""
    part_number: int = 0
    checksum: bool = False
    internal: AdvancedGetOptions = field(default_factory=AdvancedGetOptions)
    _headers: Dict[str, str] = field(default_factory=dict, init=False, repr=False)
    _query_params: Dict[str, List[str]] = field(default_factory=dict, init=False, repr=False)

    def set(self, key: str, value: str) -> None:
        """Set a request header, replacing any previous value."""
        self._headers[canonical_header_key(key)] = value

    def set_req_param(self, key: str, value: str) -> None:
        """
        Set a query parameter, replacing previous values.

        Keys that are neither standard S3 parameters nor carry an allowed
        custom prefix are ignored.
        """
        if not is_supported_query_value(key):
            return
        self._query_params[key] = [value]

    def add_req_param(self, key: str, value: str) -> None:
        """Append a value to a query parameter. Unsupported keys are ignored."""
        if not is_supported_query_value(key):
            return
        self._query_params.setdefault(key, []).append(value)

    def set_match_etag(self, etag: str) -> None:
        if not etag:
            raise InvalidArgumentException("ETag cannot be empty.")
        self.set("If-Match", f'"{etag}"')

    def set_match_etag_except(self, etag: str) -> None:
        if not etag:
            raise InvalidArgumentException("ETag cannot be empty.")
        self.set("If-None-Match", f'"{etag}"')

    def set_unmodified(self, mod_time: datetime) -> None:
        if _is_zero_time(mod_time):
            raise InvalidArgumentException("Unmodified since cannot be empty.")
        self.set("If-Unmodified-Since", _http_date(mod_time))

    def set_modified(self, mod_time: datetime) -> None:
        if _is_zero_time(mod_time):
            raise InvalidArgumentException("Modified since cannot be empty.")
        self.set("If-Modified-Since", _http_date(mod_time))

    def set_range(self, start: int, end: int) -> None:
        """
        Set the byte range of the object to read (RFC 7233, section 3.1).

        - ``start == 0`` and ``end < 0``: the last ``-end`` bytes, ``bytes=-N``
        - ``start > 0`` and ``end == 0``: from ``start`` to the end, ``bytes=N-``
        - ``0 <= start <= end``: ``bytes=N-M``

        Anything else raises :class:`InvalidArgumentException`.
        """
        if start == 0 and end < 0:
            # end already carries the minus sign
            self.set("Range", f"bytes={end}")
        elif start > 0 and end == 0:
            self.set("Range", f"bytes={start}-")
        elif 0 <= start <= end:
            self.set("Range", f"bytes={start}-{end}")
        else:
            raise InvalidArgumentException(
                f"Invalid range specified: start={start} end={end}"
            )

    def header(self) -> Dict[str, str]:
        """Build the request headers without modifying the options."""
        headers = dict(self._headers)
        sse = self.server_side_encryption
        if sse is not None and sse.type == SseType.SSEC:
            sse.marshal(headers)
        # GET/HEAD to one site is proxied to its replication peer when the
        # object or version is missing locally.
        if self.internal.replication_proxy_request:
            headers[REPLICATION_PROXY_REQUEST_HEADER] = self.internal.replication_proxy_request
        if self.checksum:
            headers[CHECKSUM_MODE_HEADER] = "ENABLED"
        return headers

    def query_values(self) -> List[Tuple[str, str]]:
        """Build the request query parameters as ordered ``(key, value)`` pairs."""
        values: List[Tuple[str, str]] = []
        if self.version_id:
            values.append(("versionId", self.version_id))
        if self.part_number > 0:
            values.append(("partNumber", str(self.part_number)))
        for key, params in self._query_params.items():
            for value in params:
                values.append((key, value))
        return values


StatObjectOptions = GetObjectOptions
