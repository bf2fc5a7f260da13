import base64
import hashlib
import json

import pytest
from argon2.low_level import Type, hash_secret_raw

from s3access.encrypt import SSEC, SSEKMS, SSES3, SseType, default_pbkdf
from s3access.error import InvalidArgumentException


def test_ssec_marshal():
    key = b"0123456789abcdef0123456789abcdef"
    headers = {}
    SSEC(key).marshal(headers)

    assert headers == {
        "X-Amz-Server-Side-Encryption-Customer-Algorithm": "AES256",
        "X-Amz-Server-Side-Encryption-Customer-Key": base64.b64encode(key).decode(),
        "X-Amz-Server-Side-Encryption-Customer-Key-Md5": base64.b64encode(hashlib.md5(key).digest()).decode(),
    }


def test_ssec_requires_256_bit_key():
    with pytest.raises(InvalidArgumentException, match="256 bits"):
        SSEC(b"short")


def test_ssec_repr_hides_key():
    assert "0123" not in repr(SSEC(b"0123456789abcdef0123456789abcdef"))


def test_default_pbkdf_is_deterministic_per_salt():
    first = default_pbkdf(b"correct horse battery staple", b"my-bucketmy-object")
    second = default_pbkdf(b"correct horse battery staple", b"my-bucketmy-object")
    other = default_pbkdf(b"correct horse battery staple", b"my-bucketother-object")

    h1, h2, h3 = {}, {}, {}
    first.marshal(h1)
    second.marshal(h2)
    other.marshal(h3)

    assert first.type == SseType.SSEC
    assert h1 == h2
    assert h1 != h3


def test_sse_s3_and_kms():
    headers = {}
    SSES3().marshal(headers)
    assert headers == {"X-Amz-Server-Side-Encryption": "AES256"}

    headers = {}
    SSEKMS("key-1", {"team": "data"}).marshal(headers)
    assert headers["X-Amz-Server-Side-Encryption"] == "aws:kms"
    assert headers["X-Amz-Server-Side-Encryption-Aws-Kms-Key-Id"] == "key-1"
    context = base64.b64decode(headers["X-Amz-Server-Side-Encryption-Context"])
    assert json.loads(context) == {"team": "data"}


def test_default_pbkdf_uses_argon2id():
    password = b"correct horse battery staple"
    salt = b"my-bucketnamemy-objectname"

    key = default_pbkdf(password, salt)._key

    assert len(key) == 32
    assert key[:5] == b"\xa8t6;\xe5"
    assert key == hash_secret_raw(
        password,
        salt,
        time_cost=1,
        memory_cost=64 * 1024,
        parallelism=4,
        hash_len=32,
        type=Type.ID,
    )
