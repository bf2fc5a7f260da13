import asyncio

import pytest

from s3access.error import AccessDeniedException, InvalidArgumentException, TransportException
from s3access.listing import list_objects, object_names, take
from s3access.models import (
    DeleteObject,
    DeleteResult,
    ListObjectsResult,
    ObjectInfo,
    RemoveObjectError,
)
from s3access.removal import MAX_DELETE_BATCH, remove_objects


class FakeDeleter:
    def __init__(self, fail_keys=(), reject_batches=(), unreachable=False):
        self.fail_keys = set(fail_keys)
        self.reject_batches = set(reject_batches)
        self.unreachable = unreachable
        self.batches = []

    async def delete_batch(self, bucket_name, objects):
        self.batches.append(list(objects))
        await asyncio.sleep(0)
        if self.unreachable:
            raise TransportException("connection refused")
        if len(self.batches) in self.reject_batches:
            raise AccessDeniedException("Access Denied.")
        return DeleteResult(
            deleted=[obj for obj in objects if obj.name not in self.fail_keys],
            errors=[
                RemoveObjectError(obj.name, "Object is WORM protected", "AccessDenied", obj.version_id)
                for obj in objects
                if obj.name in self.fail_keys
            ],
        )


class FakeStore(FakeDeleter):
    """Lists one page per call and removes from the same key set."""

    def __init__(self, keys, page_size=3, **kwargs):
        super().__init__(**kwargs)
        self.keys = list(keys)
        self._snapshot = list(keys)
        self.page_size = page_size
        self.list_calls = 0

    async def list_page(self, bucket_name, prefix="", recursive=False, continuation_token=None, max_keys=1000, start_after=""):
        self.list_calls += 1
        await asyncio.sleep(0)
        start = int(continuation_token or 0)
        end = start + self.page_size
        truncated = end < len(self._snapshot)
        return ListObjectsResult(
            objects=[ObjectInfo(key=key) for key in self._snapshot[start:end]],
            is_truncated=truncated,
            continuation_token=str(end) if truncated else None,
        )

    async def delete_batch(self, bucket_name, objects):
        result = await super().delete_batch(bucket_name, objects)
        for obj in result.deleted:
            self.keys.remove(obj.name)
        return result


async def _collect(failures):
    return [failure async for failure in failures]


@pytest.mark.asyncio
async def test_single_item_failure_in_second_batch():
    deleter = FakeDeleter(fail_keys={"obj-13"})
    names = [f"obj-{i:02d}" for i in range(25)]

    failures = await _collect(remove_objects(deleter, "bucket", names, batch_size=10))

    assert failures == [RemoveObjectError("obj-13", "Object is WORM protected", "AccessDenied")]
    assert [len(batch) for batch in deleter.batches] == [10, 10, 5]
    assert [obj.name for batch in deleter.batches for obj in batch] == names


@pytest.mark.asyncio
async def test_no_failures_yields_nothing():
    deleter = FakeDeleter()

    failures = await _collect(remove_objects(deleter, "bucket", ["a", "b", "c"]))

    assert failures == []
    assert len(deleter.batches) == 1


@pytest.mark.asyncio
async def test_empty_input_makes_no_calls():
    deleter = FakeDeleter()

    assert await _collect(remove_objects(deleter, "bucket", [])) == []
    assert deleter.batches == []


@pytest.mark.asyncio
async def test_duplicates_are_sent_twice():
    deleter = FakeDeleter()

    await _collect(remove_objects(deleter, "bucket", ["a", DeleteObject("a"), ObjectInfo(key="a")]))

    assert deleter.batches == [[DeleteObject("a")] * 3]


@pytest.mark.asyncio
async def test_rejected_batch_reported_per_item_and_processing_continues():
    deleter = FakeDeleter(reject_batches={2})
    names = ["a", "b", "c", "d", "e"]

    failures = await _collect(remove_objects(deleter, "bucket", names, batch_size=2))

    assert [(f.object_name, f.error_code) for f in failures] == [
        ("c", "AccessDenied"),
        ("d", "AccessDenied"),
    ]
    assert len(deleter.batches) == 3


@pytest.mark.asyncio
async def test_unreachable_store_is_fatal():
    deleter = FakeDeleter(unreachable=True)

    with pytest.raises(TransportException):
        await _collect(remove_objects(deleter, "bucket", ["a", "b"], batch_size=1))

    assert len(deleter.batches) == 1


@pytest.mark.asyncio
async def test_empty_names_reported_without_sending():
    deleter = FakeDeleter()

    failures = await _collect(remove_objects(deleter, "bucket", ["a", "", "b"]))

    assert len(failures) == 1
    assert failures[0].error_code == "InvalidArgument"
    assert deleter.batches == [[DeleteObject("a"), DeleteObject("b")]]


@pytest.mark.parametrize("batch_size", [0, -1, MAX_DELETE_BATCH + 1])
def test_invalid_batch_size_raises_immediately(batch_size):
    with pytest.raises(InvalidArgumentException):
        remove_objects(FakeDeleter(), "bucket", ["a"], batch_size=batch_size)


@pytest.mark.asyncio
async def test_async_input_and_versions():
    deleter = FakeDeleter(fail_keys={"b"})

    async def source():
        yield DeleteObject("a", "v1")
        yield DeleteObject("b", "v2")

    failures = await _collect(remove_objects(deleter, "bucket", source()))

    assert failures == [RemoveObjectError("b", "Object is WORM protected", "AccessDenied", "v2")]
    assert deleter.batches == [[DeleteObject("a", "v1"), DeleteObject("b", "v2")]]


@pytest.mark.asyncio
async def test_listing_piped_into_removal():
    store = FakeStore([f"k{i}" for i in range(8)], fail_keys={"k5"})

    stream = list_objects(store, "bucket", recursive=True)
    failures = await _collect(remove_objects(store, "bucket", object_names(stream), batch_size=3))

    assert [f.object_name for f in failures] == ["k5"]
    assert store.keys == ["k5"]


@pytest.mark.asyncio
async def test_limited_listing_removes_first_n():
    store = FakeStore([f"k{i}" for i in range(20)], page_size=2)

    stream = list_objects(store, "bucket", recursive=True)
    failures = await _collect(remove_objects(store, "bucket", object_names(take(stream, 5))))
    await stream.aclose()

    assert failures == []
    assert store.keys == [f"k{i}" for i in range(5, 20)]
    assert store.list_calls < 10


@pytest.mark.asyncio
async def test_failed_listing_still_removes_collected_keys():
    store = FakeStore(["a", "b", "c", "d"], page_size=2)
    original_list_page = store.list_page

    async def list_page(bucket_name, continuation_token=None, **kwargs):
        if continuation_token:
            raise TransportException("connection reset by peer")
        return await original_list_page(bucket_name, continuation_token=continuation_token, **kwargs)

    store.list_page = list_page
    stream = list_objects(store, "bucket", recursive=True)

    with pytest.raises(TransportException):
        await _collect(remove_objects(store, "bucket", stream))

    assert store.batches == [[DeleteObject("a"), DeleteObject("b")]]
    assert store.keys == ["c", "d"]


@pytest.mark.asyncio
async def test_common_prefix_records_are_not_removed():
    deleter = FakeDeleter()
    records = [ObjectInfo(key="a"), ObjectInfo(key="dir/", is_prefix=True), ObjectInfo(key="b")]

    failures = await _collect(remove_objects(deleter, "bucket", records))

    assert failures == []
    assert deleter.batches == [[DeleteObject("a"), DeleteObject("b")]]
