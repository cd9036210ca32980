"""
REST transport for the node gateway.

Thin aiohttp client over the endpoints the service needs. Lookups of
unknown entities return None; every other failure raises ``NetworkError``.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..runtime.errors import NetworkError, error_from_status

logger = logging.getLogger(__name__)

TRANSACTION_GROUPS = ("confirmed", "unconfirmed", "partial")


class SymbolRestClient:
    """
    Async REST client for a single node.

    Owns its ``aiohttp.ClientSession`` unless one is passed in; injected
    sessions are left open on ``close()``.
    """

    def __init__(self, node_url: str, timeout: float = 30.0,
                 session: Optional[aiohttp.ClientSession] = None):
        self.node_url = node_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"Content-Type": "application/json"},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None,
                       params: Optional[Dict[str, Any]] = None, allow_not_found: bool = False) -> Any:
        """
        Send a request and decode the JSON response.

        Args:
            method: HTTP method
            path: Path below the node URL
            body: JSON body
            params: Query string parameters
            allow_not_found: Return None on 404 instead of raising

        Raises:
            NetworkError: On transport failures and non-success statuses
        """
        url = f"{self.node_url}{path}"
        session = self._get_session()
        try:
            response = await session.request(method, url, json=body, params=params)
            try:
                if allow_not_found and response.status == 404:
                    return None
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    data = await response.text()
                if response.status >= 400:
                    raise error_from_status(response.status, data, url)
                return data
            finally:
                response.release()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"{method} {url} failed: {e}")
            raise NetworkError(f"{method} {path} failed: {e}", {"url": url}, e)

    async def get_network_properties(self) -> Dict[str, Any]:
        return await self._request("GET", "/network/properties")

    async def get_transaction_fees(self) -> Dict[str, Any]:
        return await self._request("GET", "/network/fees/transaction")

    async def announce(self, payload: str) -> Dict[str, Any]:
        """Announce a signed payload (hex). The node only acknowledges receipt."""
        logger.debug(f"Announcing payload of {len(payload) // 2} bytes")
        return await self._request("PUT", "/transactions", {"payload": payload})

    async def get_transaction_status(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self._request("GET", f"/transactionStatus/{tx_hash}", allow_not_found=True)

    async def get_transaction(self, tx_hash: str, group: str = "confirmed") -> Optional[Dict[str, Any]]:
        if group not in TRANSACTION_GROUPS:
            raise ValueError(f"Unknown transaction group: {group}")
        return await self._request("GET", f"/transactions/{group}/{tx_hash}", allow_not_found=True)

    async def get_metadata(self, composite_hash: str) -> Optional[Dict[str, Any]]:
        return await self._request("GET", f"/metadata/{composite_hash}", allow_not_found=True)

    async def search_metadata(self, page_number: int = 1, page_size: int = 100,
                              **criteria: Any) -> Dict[str, Any]:
        """
        One page of ``GET /metadata``.

        Args:
            page_number: 1-based page
            page_size: Entries per page
            **criteria: sourceAddress, targetAddress, scopedMetadataKey, targetId, metadataType

        Returns:
            Page with ``data`` and ``pagination``
        """
        params = {k: str(v) for k, v in criteria.items() if v is not None}
        params.update(pageNumber=str(page_number), pageSize=str(page_size))
        return await self._request("GET", "/metadata", params=params)
