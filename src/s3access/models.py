"""
Data models for the s3access SDK
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict


@dataclass
class ObjectMetadata:
    """Represents object metadata returned by GET and HEAD."""
    object_name: str
    bucket_name: str
    size: int = 0
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None
    content_type: Optional[str] = None
    version_id: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ObjectInfo:
    """
    One record of an object listing.

    A record is either an object (or a common prefix when ``is_prefix`` is
    set) or, when ``error`` is set, the terminal record of a failed listing.
    """
    key: str = ""
    size: int = 0
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None
    version_id: Optional[str] = None
    is_prefix: bool = False
    error: Optional[Exception] = None

    @classmethod
    def from_error(cls, error: Exception) -> "ObjectInfo":
        return cls(error=error)


@dataclass
class ListObjectsResult:
    """Represents one page of a list objects operation."""
    objects: List[ObjectInfo] = field(default_factory=list)
    is_truncated: bool = False
    continuation_token: Optional[str] = None
    common_prefixes: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DeleteObject:
    """Identifies an object, optionally a single version of it, to remove."""
    name: str
    version_id: Optional[str] = None


@dataclass(frozen=True)
class RemoveObjectError:
    """A single object the store refused to remove."""
    object_name: str
    message: str
    error_code: Optional[str] = None
    version_id: Optional[str] = None


@dataclass
class DeleteResult:
    """Represents the outcome of one multi-object delete call."""
    deleted: List[DeleteObject] = field(default_factory=list)
    errors: List[RemoveObjectError] = field(default_factory=list)
