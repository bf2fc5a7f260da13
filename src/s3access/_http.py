"""
HTTP client utilities for the s3access SDK
"""

import httpx
from typing import Optional, Dict, List, Tuple


class HttpClient:
    """
    HTTP client wrapper with connection pooling.

    Request signing is delegated to the ``auth`` flow handed to httpx.
    """

    def __init__(
        self,
        timeout: int = 30,
        max_connections: int = 100,
        auth: Optional[httpx.Auth] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            timeout=timeout,
            limits=httpx.Limits(max_connections=max_connections, max_keepalive_connections=max_connections),
            auth=auth,
            transport=transport,
        )

    async def get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[List[Tuple[str, str]]] = None,
    ) -> httpx.Response:
        return await self.request("GET", url, headers=headers, params=params)

    async def head(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[List[Tuple[str, str]]] = None,
    ) -> httpx.Response:
        return await self.request("HEAD", url, headers=headers, params=params)

    async def post(
        self,
        url: str,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[List[Tuple[str, str]]] = None,
    ) -> httpx.Response:
        return await self.request("POST", url, headers=headers, params=params, content=content)

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[List[Tuple[str, str]]] = None,
        content: Optional[bytes] = None,
    ) -> httpx.Response:
        """Send a single request. Connection errors surface as ``httpx.RequestError``."""
        return await self._client.request(method, url, headers=headers, params=params, content=content)

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()
