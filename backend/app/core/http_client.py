"""
Shared httpx client base for the external services this API talks to
(payment gateway, WhatsApp provider, object storage)
"""

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class HTTPClientConfig:
    """Configuration for an outbound service client"""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        headers: Dict[str, str] = None,
        auth: Optional[httpx.Auth] = None,
        verify_ssl: bool = True,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = headers or {}
        self.auth = auth
        self.verify_ssl = verify_ssl


class ServiceHTTPClient:
    """
    Thin wrapper around httpx.AsyncClient with a fixed timeout.

    Usable as an async context manager for one-off calls, or kept open for
    the life of the process and closed with ``aclose``.
    """

    def __init__(self, config: HTTPClientConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                headers=self.config.headers,
                auth=self.config.auth,
                verify=self.config.verify_ssl,
                transport=self._transport,
            )
        return self._client

    async def aclose(self):
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def get(self, path: str, params: Dict[str, Any] = None, headers: Dict[str, str] = None) -> httpx.Response:
        """GET and raise httpx.HTTPStatusError on 4xx/5xx"""
        client = self._ensure_client()
        try:
            response = await client.get(path, params=params, headers=headers)
            response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            logger.error(f"HTTP GET failed for {self.config.base_url}{path}: {e}")
            raise

    async def post(
        self,
        path: str,
        data: Dict[str, Any] = None,
        json: Dict[str, Any] = None,
        files: Dict[str, Any] = None,
        headers: Dict[str, str] = None,
    ) -> httpx.Response:
        """POST and raise httpx.HTTPStatusError on 4xx/5xx"""
        client = self._ensure_client()
        try:
            response = await client.post(path, data=data, json=json, files=files, headers=headers)
            response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            logger.error(f"HTTP POST failed for {self.config.base_url}{path}: {e}")
            raise
