"""
S3Client - access layer for S3-compatible object stores
"""

import asyncio
import base64
import hashlib
import logging
import xml.etree.ElementTree as ET
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import AsyncIterable, AsyncIterator, BinaryIO, Dict, Iterable, List, Optional, Tuple, Union
from urllib.parse import quote, urljoin

import httpx

from ._http import HttpClient
from .error import (
    AccessDeniedException,
    ObjectNotFoundException,
    ServerException,
    TransportException,
)
from .listing import DEFAULT_MAX_KEYS, ObjectStream, list_objects
from .models import (
    DeleteObject,
    DeleteResult,
    ListObjectsResult,
    ObjectInfo,
    ObjectMetadata,
    RemoveObjectError,
)
from .options import GetObjectOptions, StatObjectOptions
from .removal import MAX_DELETE_BATCH, RemovableObject, remove_objects


def _local_name(tag: str) -> str:
    return tag.split("}")[-1]


def _child_text(node: ET.Element, name: str) -> Optional[str]:
    for child in list(node):
        if _local_name(child.tag) == name:
            return child.text
    return None


class S3Client:
    """
    Client for an S3-compatible object store.

    Example:
        async with S3Client(endpoint="s3.example.com", use_ssl=True, auth=signer) as client:
            opts = GetObjectOptions()
            opts.set_range(0, 1023)
            with open("head.bin", "wb") as out:
                await client.get_object("photos", "2024/img.jpg", out, opts)

            stream = client.list_objects("photos", prefix="tmp/", recursive=True)
            async for failure in client.remove_objects("photos", object_names(stream)):
                print(failure.object_name, failure.message)
    """

    def __init__(
        self,
        endpoint: str = "localhost:9000",
        use_ssl: bool = False,
        auth: Optional[httpx.Auth] = None,
        request_timeout: int = 30,
        max_connections: int = 100,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize S3Client.

        Args:
            endpoint: Server address and port (e.g., "s3.local:9000")
            use_ssl: Use HTTPS instead of HTTP
            auth: httpx auth flow that signs every request
            request_timeout: Request timeout in seconds
            max_connections: Size of the connection pool
            transport: Optional httpx transport, mainly for tests
        """
        self.endpoint = endpoint
        self.use_ssl = use_ssl
        self.base_url = f"{'https' if use_ssl else 'http'}://{endpoint}"

        self._http = HttpClient(
            timeout=request_timeout,
            max_connections=max_connections,
            auth=auth,
            transport=transport,
        )
        self._logger = logging.getLogger(__name__)

    def _url(self, bucket_name: str, object_name: Optional[str] = None) -> str:
        path = f"/{bucket_name}"
        if object_name:
            path += "/" + quote(object_name, safe="/")
        return urljoin(self.base_url, path)

    @staticmethod
    def _error_details(response: httpx.Response) -> Tuple[Optional[str], Optional[str]]:
        body = response.text if response.content else ""
        if not body.strip():
            return None, None
        try:
            doc = ET.fromstring(body)
        except ET.ParseError:
            return None, None
        return _child_text(doc, "Code"), _child_text(doc, "Message")

    def _to_server_exception(
        self,
        response: httpx.Response,
        bucket_name: str,
        object_name: Optional[str],
    ) -> ServerException:
        code, message = self._error_details(response)
        status = response.status_code
        if status == 404 and object_name and code in (None, "NoSuchKey"):
            return ObjectNotFoundException(bucket_name, object_name)
        if status == 403:
            return AccessDeniedException(message or "Access denied.")
        if not message:
            message = f"Request failed with status {status}"
            if status == 404:
                message = "Resource not found"
        return ServerException(message, status, code)

    async def _make_request(
        self,
        method: str,
        bucket_name: str,
        object_name: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        query_params: Optional[List[Tuple[str, str]]] = None,
        content: Optional[bytes] = None,
    ) -> httpx.Response:
        """Make an HTTP request against a bucket or object."""
        url = self._url(bucket_name, object_name)
        self._logger.debug("[s3access][Request] method=%s url=%s", method, url)

        try:
            if method == "GET":
                response = await self._http.get(url, headers=headers, params=query_params)
            elif method == "HEAD":
                response = await self._http.head(url, headers=headers, params=query_params)
            elif method == "POST":
                response = await self._http.post(url, content=content, headers=headers, params=query_params)
            else:
                raise ValueError(f"Unsupported HTTP method: {method}")
        except httpx.RequestError as ex:
            raise TransportException(f"{method} {url} failed: {ex}") from ex

        if response.status_code >= 400:
            raise self._to_server_exception(response, bucket_name, object_name)

        return response

    @staticmethod
    def _object_metadata(response: httpx.Response, bucket_name: str, object_name: str) -> ObjectMetadata:
        last_modified = response.headers.get("Last-Modified")
        etag = response.headers.get("ETag")
        return ObjectMetadata(
            object_name=object_name,
            bucket_name=bucket_name,
            size=int(response.headers.get("Content-Length", 0)),
            etag=etag.strip('"') if etag else None,
            last_modified=parsedate_to_datetime(last_modified) if last_modified else None,
            content_type=response.headers.get("Content-Type"),
            version_id=response.headers.get("x-amz-version-id"),
            metadata={
                key[len("x-amz-meta-"):]: value
                for key, value in response.headers.items()
                if key.lower().startswith("x-amz-meta-")
            },
        )

    # Object operations

    async def get_object(
        self,
        bucket_name: str,
        object_name: str,
        output: BinaryIO,
        opts: Optional[GetObjectOptions] = None,
    ) -> ObjectMetadata:
        """Download an object, honoring range, conditions and encryption in ``opts``."""
        opts = opts or GetObjectOptions()
        response = await self._make_request(
            "GET",
            bucket_name,
            object_name,
            headers=opts.header(),
            query_params=opts.query_values(),
        )
        output.write(response.content)
        return self._object_metadata(response, bucket_name, object_name)

    async def stat_object(
        self,
        bucket_name: str,
        object_name: str,
        opts: Optional[StatObjectOptions] = None,
    ) -> ObjectMetadata:
        """Get object metadata without downloading."""
        opts = opts or StatObjectOptions()
        response = await self._make_request(
            "HEAD",
            bucket_name,
            object_name,
            headers=opts.header(),
            query_params=opts.query_values(),
        )
        return self._object_metadata(response, bucket_name, object_name)

    async def list_page(
        self,
        bucket_name: str,
        prefix: str = "",
        recursive: bool = False,
        continuation_token: Optional[str] = None,
        max_keys: int = DEFAULT_MAX_KEYS,
        start_after: str = "",
    ) -> ListObjectsResult:
        """Fetch one page of a ListObjectsV2 listing."""
        query_params = [
            ("list-type", "2"),
            ("prefix", prefix),
            ("max-keys", str(max_keys)),
        ]
        if not recursive:
            query_params.append(("delimiter", "/"))
        if continuation_token:
            query_params.append(("continuation-token", continuation_token))
        if start_after:
            query_params.append(("start-after", start_after))

        response = await self._make_request("GET", bucket_name, query_params=query_params)

        try:
            doc = ET.fromstring(response.text)
        except ET.ParseError as ex:
            raise ServerException(f"Failed to parse list objects response. {str(ex)}", response.status_code)

        result = ListObjectsResult()
        for node in list(doc):
            tag = _local_name(node.tag)
            if tag == "Contents":
                last_modified = _child_text(node, "LastModified")
                etag = _child_text(node, "ETag")
                result.objects.append(
                    ObjectInfo(
                        key=_child_text(node, "Key") or "",
                        size=int(_child_text(node, "Size") or 0),
                        last_modified=datetime.fromisoformat(last_modified) if last_modified else None,
                        etag=etag.strip('"') if etag else None,
                        version_id=_child_text(node, "VersionId"),
                    )
                )
            elif tag == "CommonPrefixes":
                prefix_text = _child_text(node, "Prefix")
                if prefix_text:
                    result.common_prefixes.append(prefix_text)
            elif tag == "IsTruncated":
                result.is_truncated = (node.text or "").strip().lower() == "true"
            elif tag == "NextContinuationToken":
                result.continuation_token = node.text
        return result

    async def delete_batch(self, bucket_name: str, objects: List[DeleteObject]) -> DeleteResult:
        """Remove up to 1000 objects with one multi-object delete call."""
        delete_el = ET.Element("Delete")
        quiet_el = ET.SubElement(delete_el, "Quiet")
        quiet_el.text = "true"
        for obj in objects:
            obj_el = ET.SubElement(delete_el, "Object")
            key_el = ET.SubElement(obj_el, "Key")
            key_el.text = obj.name
            if obj.version_id:
                version_el = ET.SubElement(obj_el, "VersionId")
                version_el.text = obj.version_id

        xml_payload = ET.tostring(delete_el, encoding="utf-8", method="xml")
        headers = {
            "Content-Type": "application/xml",
            "Content-MD5": base64.b64encode(hashlib.md5(xml_payload).digest()).decode(),
        }
        response = await self._make_request(
            "POST",
            bucket_name,
            headers=headers,
            query_params=[("delete", "")],
            content=xml_payload,
        )

        result = DeleteResult()
        body = response.text or ""
        if not body.strip():
            return result

        try:
            doc = ET.fromstring(body)
        except ET.ParseError as ex:
            raise ServerException(f"Failed to parse delete objects response. {str(ex)}", response.status_code)

        for node in doc.iter():
            tag = _local_name(node.tag)
            if tag == "Deleted":
                result.deleted.append(
                    DeleteObject(_child_text(node, "Key") or "", _child_text(node, "VersionId"))
                )
            elif tag == "Error":
                result.errors.append(
                    RemoveObjectError(
                        object_name=_child_text(node, "Key") or "",
                        message=_child_text(node, "Message") or "",
                        error_code=_child_text(node, "Code"),
                        version_id=_child_text(node, "VersionId"),
                    )
                )
        return result

    # Pipelines

    def list_objects(
        self,
        bucket_name: str,
        prefix: str = "",
        recursive: bool = False,
        cancel: Optional[asyncio.Event] = None,
        max_keys: int = DEFAULT_MAX_KEYS,
        start_after: str = "",
    ) -> ObjectStream:
        """Stream the objects of a bucket. See :class:`ObjectStream`."""
        return list_objects(
            self,
            bucket_name,
            prefix=prefix,
            recursive=recursive,
            cancel=cancel,
            max_keys=max_keys,
            start_after=start_after,
        )

    def remove_objects(
        self,
        bucket_name: str,
        objects: Union[Iterable[RemovableObject], AsyncIterable[RemovableObject]],
        batch_size: int = MAX_DELETE_BATCH,
    ) -> AsyncIterator[RemoveObjectError]:
        """Remove objects in batches and stream back the ones that failed."""
        return remove_objects(self, bucket_name, objects, batch_size=batch_size)

    async def close(self) -> None:
        """Close the client and cleanup resources."""
        await self._http.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
