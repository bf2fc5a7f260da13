"""
Server-side encryption settings for S3 requests
"""

import base64
import enum
import hashlib
import json
from typing import Dict, Optional

from argon2.low_level import Type, hash_secret_raw

from .error import InvalidArgumentException

SSE_GENERIC_HEADER = "X-Amz-Server-Side-Encryption"
SSE_KMS_KEY_HEADER = "X-Amz-Server-Side-Encryption-Aws-Kms-Key-Id"
SSE_KMS_CONTEXT_HEADER = "X-Amz-Server-Side-Encryption-Context"
SSE_CUSTOMER_ALGORITHM_HEADER = "X-Amz-Server-Side-Encryption-Customer-Algorithm"
SSE_CUSTOMER_KEY_HEADER = "X-Amz-Server-Side-Encryption-Customer-Key"
SSE_CUSTOMER_KEY_MD5_HEADER = "X-Amz-Server-Side-Encryption-Customer-Key-Md5"

# Argon2id cost parameters for password derived SSE-C keys.
PBKDF_TIME_COST = 1
PBKDF_MEMORY_COST = 64 * 1024
PBKDF_PARALLELISM = 4


class SseType(str, enum.Enum):
    SSEC = "SSE-C"
    KMS = "KMS"
    S3 = "S3"


class ServerSide:
    """
    Base for server-side encryption variants.

    A variant writes the headers it owns into a request header mapping,
    replacing any value already present under the same name.
    """

    type: SseType

    def marshal(self, headers: Dict[str, str]) -> None:
        raise NotImplementedError


class SSEC(ServerSide):
    """Server-side encryption with a customer-provided 256-bit key."""

    type = SseType.SSEC

    def __init__(self, key: bytes):
        if len(key) != 32:
            raise InvalidArgumentException("SSE-C keys must be 256 bits long.")
        self._key = bytes(key)

    def marshal(self, headers: Dict[str, str]) -> None:
        headers[SSE_CUSTOMER_ALGORITHM_HEADER] = "AES256"
        headers[SSE_CUSTOMER_KEY_HEADER] = base64.b64encode(self._key).decode()
        headers[SSE_CUSTOMER_KEY_MD5_HEADER] = base64.b64encode(
            hashlib.md5(self._key).digest()
        ).decode()

    def __repr__(self) -> str:
        return "SSEC(key=<redacted>)"


class SSES3(ServerSide):
    """Server-side encryption with keys managed by the store."""

    type = SseType.S3

    def marshal(self, headers: Dict[str, str]) -> None:
        headers[SSE_GENERIC_HEADER] = "AES256"


class SSEKMS(ServerSide):
    """Server-side encryption with a KMS master key."""

    type = SseType.KMS

    def __init__(self, key_id: str, context: Optional[Dict[str, str]] = None):
        self.key_id = key_id
        self.context = context

    def marshal(self, headers: Dict[str, str]) -> None:
        headers[SSE_GENERIC_HEADER] = "aws:kms"
        if self.key_id:
            headers[SSE_KMS_KEY_HEADER] = self.key_id
        if self.context is not None:
            encoded = json.dumps(self.context, sort_keys=True).encode()
            headers[SSE_KMS_CONTEXT_HEADER] = base64.b64encode(encoded).decode()


def default_pbkdf(password: bytes, salt: bytes) -> SSEC:
    """
    Derive an SSE-C key from a password with Argon2id.

    Use the bucket and object name as salt so every object gets its own key.
    """
    key = hash_secret_raw(
        password,
        salt,
        time_cost=PBKDF_TIME_COST,
        memory_cost=PBKDF_MEMORY_COST,
        parallelism=PBKDF_PARALLELISM,
        hash_len=32,
        type=Type.ID,
    )
    return SSEC(key)
