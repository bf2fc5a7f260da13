"""
Batched object removal
"""

import logging
from typing import AsyncIterable, AsyncIterator, Iterable, List, Optional, Protocol, Union

from .error import InvalidArgumentException, ServerException
from .models import DeleteObject, DeleteResult, ObjectInfo, RemoveObjectError

# Maximum number of keys accepted by one multi-object delete call.
MAX_DELETE_BATCH = 1000

logger = logging.getLogger(__name__)

RemovableObject = Union[str, DeleteObject, ObjectInfo]


class BatchDeleter(Protocol):
    async def delete_batch(self, bucket_name: str, objects: List[DeleteObject]) -> DeleteResult:
        ...


def _to_delete_object(item: RemovableObject) -> Optional[DeleteObject]:
    if isinstance(item, DeleteObject):
        return item
    if isinstance(item, ObjectInfo):
        if item.error is not None:
            raise item.error
        if item.is_prefix:
            return None
        return DeleteObject(item.key, item.version_id)
    return DeleteObject(item)


async def _iterate(objects):
    if hasattr(objects, "__aiter__"):
        async for item in objects:
            yield item
    else:
        for item in objects:
            yield item


async def _flush(
    deleter: BatchDeleter,
    bucket_name: str,
    batch: List[DeleteObject],
) -> AsyncIterator[RemoveObjectError]:
    logger.debug("[s3access][RemoveObjects] bucket=%s batchSize=%d", bucket_name, len(batch))
    try:
        result = await deleter.delete_batch(bucket_name, batch)
    except ServerException as ex:
        # The store answered but rejected the call; every key in it failed.
        logger.warning(
            "[s3access][RemoveObjects] bucket=%s batch of %d rejected: %s",
            bucket_name,
            len(batch),
            ex,
        )
        for obj in batch:
            yield RemoveObjectError(
                object_name=obj.name,
                message=str(ex),
                error_code=ex.error_code,
                version_id=obj.version_id,
            )
        return

    for failure in result.errors:
        yield failure


async def _remove_objects(
    deleter: BatchDeleter,
    bucket_name: str,
    objects: Union[Iterable[RemovableObject], AsyncIterable[RemovableObject]],
    batch_size: int,
) -> AsyncIterator[RemoveObjectError]:
    batch: List[DeleteObject] = []
    items = _iterate(objects)
    while True:
        try:
            obj = _to_delete_object(await anext(items))
        except StopAsyncIteration:
            break
        except Exception:
            # Upstream failed; keys already collected are still removed.
            if batch:
                async for failure in _flush(deleter, bucket_name, batch):
                    yield failure
            raise
        if obj is None:
            continue
        if not obj.name:
            yield RemoveObjectError(
                object_name=obj.name,
                message="Object name cannot be empty.",
                error_code="InvalidArgument",
                version_id=obj.version_id,
            )
            continue
        batch.append(obj)
        if len(batch) >= batch_size:
            pending, batch = batch, []
            async for failure in _flush(deleter, bucket_name, pending):
                yield failure

    if batch:
        async for failure in _flush(deleter, bucket_name, batch):
            yield failure


def remove_objects(
    deleter: BatchDeleter,
    bucket_name: str,
    objects: Union[Iterable[RemovableObject], AsyncIterable[RemovableObject]],
    batch_size: int = MAX_DELETE_BATCH,
) -> AsyncIterator[RemoveObjectError]:
    """
    Remove ``objects`` from ``bucket_name`` in batches of ``batch_size``.

    Returns an async iterator of the objects that could not be removed;
    removed objects produce nothing. A batch the store rejects as a whole is
    reported object by object and later batches are still attempted. A
    :class:`TransportException` means the store is unreachable and ends the
    iteration.

    ``objects`` may be a sync or async iterable of names, :class:`DeleteObject`
    or :class:`ObjectInfo` values, e.g. an :class:`ObjectStream`. Common prefix
    records are skipped. When the input fails, the objects already collected
    are removed before the error is raised.
    """
    if not 1 <= batch_size <= MAX_DELETE_BATCH:
        raise InvalidArgumentException(
            f"Batch size must be between 1 and {MAX_DELETE_BATCH}, got {batch_size}."
        )
    return _remove_objects(deleter, bucket_name, objects, batch_size)
