"""Accounts Gateway HTTP Client.

Client used by the accounts UI layer to talk to the gateway's /api surface.
Works on wire records; mapping to domain models happens in the store.

Each call is a single attempt. A 423 response raises AccountLockedError so
the update coordinator can apply its retry policy; a call that gets no
response raises GatewayConnectionError, which is never retried.
"""

import asyncio
import json
import time
from typing import Any, Dict, Mapping, Optional

import aiohttp

from core.odata.query import ODataQuery
from core.observability.logging import get_logger

logger = get_logger(__name__)

JSON_CONTENT_TYPE = "application/json"
MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"

HTTP_LOCKED = 423


class GatewayError(Exception):
    """Base exception for gateway call failures."""
    def __init__(self, message: str, status_code: int = 0, response_body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class AccountLockedError(GatewayError):
    """The account is locked by another writer (423)."""
    def __init__(self, message: str, status_code: int = HTTP_LOCKED, response_body: str = ""):
        super().__init__(message, status_code, response_body)


class GatewayConnectionError(GatewayError):
    """No response was received from the gateway."""
    pass


def _error_message(action: str, status: int, reason: Optional[str], body: str) -> str:
    detail = reason or ""
    try:
        parsed = json.loads(body) if body else None
    except ValueError:
        parsed = None
    if isinstance(parsed, dict) and parsed.get("error"):
        detail = parsed["error"]
    return f"Failed to {action}: {status} {detail}".rstrip()


class GatewayClient:
    """HTTP client for the Accounts Gateway.

    Usage:
        async with GatewayClient("http://localhost:3000/api") as gateway:
            body = await gateway.fetch_accounts(ODataQuery(top=30, count=True))
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000/api",
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: int = 30,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._session = session
        self._owns_session = session is None

    async def connect(self) -> None:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True

    async def disconnect(self) -> None:
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "GatewayClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.disconnect()

    async def _request(
        self,
        action: str,
        method: str,
        path: str,
        params: Optional[Mapping[str, str]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """Make one gateway request.

        Raises:
            AccountLockedError: 423 response
            GatewayError: Other non-success responses
            GatewayConnectionError: No response received
        """
        if self._session is None:
            raise GatewayConnectionError("Not connected. Call connect() first.")

        request_headers = {"Content-Type": JSON_CONTENT_TYPE, "Accept": JSON_CONTENT_TYPE}
        if headers:
            request_headers.update(headers)

        try:
            async with self._session.request(
                method,
                f"{self.base_url}{path}",
                params=dict(params) if params else None,
                json=data,
                headers=request_headers,
            ) as response:
                text = await response.text()
                if response.status < 400:
                    return json.loads(text) if text else {}

                error_cls = AccountLockedError if response.status == HTTP_LOCKED else GatewayError
                raise error_cls(
                    _error_message(action, response.status, response.reason, text),
                    response.status,
                    text,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Gateway unreachable: {method} {path}: {e!r}")
            raise GatewayConnectionError(f"Failed to {action}: {type(e).__name__}: {e}") from e

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    async def fetch_accounts(self, query: Optional[ODataQuery] = None) -> Dict[str, Any]:
        """List accounts ({"value": [...], "count": n})."""
        params = query.to_params() if query else None
        return await self._request("fetch accounts", "GET", "/accounts", params=params)

    async def fetch_account(self, entity_id: str, fresh: bool = False) -> Dict[str, Any]:
        """Get one account ({"value": {...}}).

        Args:
            entity_id: Account UUID
            fresh: Bypass caches with a timestamp parameter and no-cache header
        """
        params = None
        headers = None
        if fresh:
            params = {"_": str(int(time.time() * 1000))}
            headers = {"Cache-Control": "no-cache"}
        return await self._request(
            "fetch account", "GET", f"/accounts/{entity_id}", params=params, headers=headers
        )

    async def create_account(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("create account", "POST", "/accounts", data=payload)

    async def update_account(
        self,
        entity_id: str,
        payload: Dict[str, Any],
        if_match: str,
    ) -> Dict[str, Any]:
        """Merge-patch an account with the given concurrency token (unquoted)."""
        return await self._request(
            "update account",
            "PATCH",
            f"/accounts/{entity_id}",
            data=payload,
            headers={"Content-Type": MERGE_PATCH_CONTENT_TYPE, "If-Match": if_match},
        )

    async def delete_account(self, entity_id: str) -> None:
        await self._request("delete account", "DELETE", f"/accounts/{entity_id}")

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def fetch_industrial_sectors(self) -> Dict[str, Any]:
        return await self._request("fetch industrial sectors", "GET", "/industrial-sectors")

    async def fetch_contacts(self) -> Dict[str, Any]:
        return await self._request("fetch contacts", "GET", "/contacts")

    async def fetch_employees(self) -> Dict[str, Any]:
        return await self._request("fetch employees", "GET", "/employees")
