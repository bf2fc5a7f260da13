"""
s3access - client-side access layer for S3-compatible object stores
"""

__version__ = "1.0.0"

from .client import S3Client
from .encrypt import SSEC, SSEKMS, SSES3, ServerSide, SseType, default_pbkdf
from .listing import ObjectStream, list_objects, object_names, take
from .models import (
    DeleteObject,
    DeleteResult,
    ListObjectsResult,
    ObjectInfo,
    ObjectMetadata,
    RemoveObjectError,
)
from .options import AdvancedGetOptions, GetObjectOptions, StatObjectOptions
from .removal import MAX_DELETE_BATCH, remove_objects
from .error import (
    S3AccessException,
    InvalidArgumentException,
    TransportException,
    ServerException,
    ObjectNotFoundException,
    AccessDeniedException,
)

__all__ = [
    "S3Client",
    "GetObjectOptions",
    "StatObjectOptions",
    "AdvancedGetOptions",
    "ServerSide",
    "SseType",
    "SSEC",
    "SSES3",
    "SSEKMS",
    "default_pbkdf",
    "ObjectStream",
    "list_objects",
    "take",
    "object_names",
    "remove_objects",
    "MAX_DELETE_BATCH",
    "ObjectInfo",
    "ObjectMetadata",
    "ListObjectsResult",
    "DeleteObject",
    "DeleteResult",
    "RemoveObjectError",
    "S3AccessException",
    "InvalidArgumentException",
    "TransportException",
    "ServerException",
    "ObjectNotFoundException",
    "AccessDeniedException",
]
