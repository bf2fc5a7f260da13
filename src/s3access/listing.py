"""
Streaming object listings
"""

import asyncio
import logging
from typing import AsyncIterable, AsyncIterator, Optional, Protocol

from .error import S3AccessException
from .models import DeleteObject, ListObjectsResult, ObjectInfo

DEFAULT_MAX_KEYS = 1000

logger = logging.getLogger(__name__)


class ObjectLister(Protocol):
    async def list_page(
        self,
        bucket_name: str,
        prefix: str = "",
        recursive: bool = False,
        continuation_token: Optional[str] = None,
        max_keys: int = DEFAULT_MAX_KEYS,
        start_after: str = "",
    ) -> ListObjectsResult:
        ...


class ObjectStream:
    """
    Forward-only async iterator over the objects of a bucket.

    A background task fetches pages from the lister and publishes every record
    onto an unbounded queue, so it never waits on a slow reader. A failed page
    fetch publishes a single record with ``error`` set and ends the stream.

    The ``cancel`` event is checked before every page fetch: once it is set
    no new fetch starts. A fetch already in flight runs to completion.

    Example:
        async with client.list_objects("photos", prefix="2024/", recursive=True) as stream:
            async for info in stream:
                if info.error is not None:
                    raise info.error
                print(info.key, info.size)
    """

    def __init__(
        self,
        lister: ObjectLister,
        bucket_name: str,
        prefix: str = "",
        recursive: bool = False,
        cancel: Optional[asyncio.Event] = None,
        max_keys: int = DEFAULT_MAX_KEYS,
        start_after: str = "",
    ):
        self.bucket_name = bucket_name
        self.prefix = prefix
        self.recursive = recursive
        self._lister = lister
        self._max_keys = max_keys
        self._start_after = start_after
        self._cancel = cancel if cancel is not None else asyncio.Event()
        self._queue: asyncio.Queue[Optional[ObjectInfo]] = asyncio.Queue()
        self._exhausted = False
        self._task = asyncio.create_task(self._produce())

    async def _produce(self) -> None:
        continuation_token: Optional[str] = None
        pages = 0
        try:
            while not self._cancel.is_set():
                logger.debug(
                    "[s3access][ListObjects] bucket=%s prefix=%s page=%d",
                    self.bucket_name,
                    self.prefix,
                    pages + 1,
                )
                try:
                    page = await self._lister.list_page(
                        self.bucket_name,
                        prefix=self.prefix,
                        recursive=self.recursive,
                        continuation_token=continuation_token,
                        max_keys=self._max_keys,
                        start_after=self._start_after,
                    )
                except Exception as ex:
                    logger.debug(
                        "[s3access][ListObjects] bucket=%s page=%d failed: %s",
                        self.bucket_name,
                        pages + 1,
                        ex,
                    )
                    self._queue.put_nowait(ObjectInfo.from_error(ex))
                    return
                pages += 1

                for info in page.objects:
                    if self._cancel.is_set():
                        return
                    self._queue.put_nowait(info)
                for common_prefix in page.common_prefixes:
                    if self._cancel.is_set():
                        return
                    self._queue.put_nowait(ObjectInfo(key=common_prefix, is_prefix=True))

                if not page.is_truncated:
                    return
                if not page.continuation_token:
                    self._queue.put_nowait(ObjectInfo.from_error(S3AccessException(
                        "Truncated listing did not return a continuation token."
                    )))
                    return
                continuation_token = page.continuation_token
            logger.info(
                "[s3access][ListObjects] bucket=%s cancelled after %d page(s)",
                self.bucket_name,
                pages,
            )
        finally:
            self._queue.put_nowait(None)

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Stop fetching further pages."""
        self._cancel.set()

    async def aclose(self) -> None:
        """Cancel the listing and wait for the producer task to finish."""
        self.cancel()
        await self._task

    def __aiter__(self) -> "ObjectStream":
        return self

    async def __anext__(self) -> ObjectInfo:
        if self._exhausted:
            raise StopAsyncIteration
        info = await self._queue.get()
        if info is None:
            self._exhausted = True
            raise StopAsyncIteration
        return info

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


def list_objects(
    lister: ObjectLister,
    bucket_name: str,
    prefix: str = "",
    recursive: bool = False,
    cancel: Optional[asyncio.Event] = None,
    max_keys: int = DEFAULT_MAX_KEYS,
    start_after: str = "",
) -> ObjectStream:
    """
    Start listing ``bucket_name`` and return the stream of records.

    Must be called from a running event loop.
    """
    return ObjectStream(
        lister,
        bucket_name,
        prefix=prefix,
        recursive=recursive,
        cancel=cancel,
        max_keys=max_keys,
        start_after=start_after,
    )


async def take(stream: ObjectStream, limit: int) -> AsyncIterator[ObjectInfo]:
    """Yield at most ``limit`` records from ``stream``, then cancel it."""
    if limit <= 0:
        stream.cancel()
        return
    count = 0
    try:
        async for info in stream:
            if info.error is not None:
                yield info
                return
            count += 1
            if count >= limit:
                stream.cancel()
                yield info
                return
            yield info
    finally:
        stream.cancel()


async def object_names(objects: AsyncIterable[ObjectInfo]) -> AsyncIterator[DeleteObject]:
    """
    Turn listing records into removal requests.

    Common prefixes are skipped. A terminal error record raises its error.
    """
    async for info in objects:
        if info.error is not None:
            raise info.error
        if info.is_prefix:
            continue
        yield DeleteObject(info.key, info.version_id)
