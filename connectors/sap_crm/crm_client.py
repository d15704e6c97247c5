"""SAP CRM HTTP Client.

Low-level HTTP client for the CRM account, business-partner, contact-person
and employee services. Handles the Basic authorization header, content types
and error surfacing.

The client performs no retries. Lock-conflict retry policy belongs to the
caller that owns the update sequence (see accounts.store).
"""

import json
from typing import Any, Dict, Mapping, Optional

import aiohttp

from connectors.sap_crm.crm_config import CRMApiConfig
from core.observability.logging import get_logger

logger = get_logger(__name__)

JSON_CONTENT_TYPE = "application/json"
MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"

HTTP_LOCKED = 423


class CRMApiError(Exception):
    """Base exception for CRM API errors."""
    def __init__(self, message: str, status_code: int = 0, response_body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class CRMAuthenticationError(CRMApiError):
    """Authentication failed (401/403)."""
    pass


class CRMNotFoundError(CRMApiError):
    """Resource not found (404)."""
    pass


class CRMLockedError(CRMApiError):
    """Entity is locked by another writer (423)."""
    pass


class PreconditionRequiredError(CRMApiError):
    """Update attempted without a concurrency token; nothing was sent."""
    def __init__(self, message: str = "If-Match header is required for updates"):
        super().__init__(message, 400)


def _error_for_status(status: int):
    if status in (401, 403):
        return CRMAuthenticationError
    if status == 404:
        return CRMNotFoundError
    if status == HTTP_LOCKED:
        return CRMLockedError
    return CRMApiError


def quote_etag(token: str) -> str:
    """Wrap a concurrency token in quotes (ETag format) unless already quoted."""
    token = token.strip()
    if len(token) >= 2 and token.startswith('"') and token.endswith('"'):
        return token
    return f'"{token}"'


class CRMApiClient:
    """HTTP client for the SAP CRM API.

    Provides:
    - Authenticated API calls (fixed Basic header from config)
    - merge-patch content type for PATCH, JSON for everything else
    - Typed errors carrying upstream status and body

    Usage:
        client = CRMApiClient(CRMApiConfig.from_env())
        await client.connect()
        accounts = await client.list_accounts({"$top": "10"})
        await client.disconnect()
    """

    def __init__(self, config: CRMApiConfig, session: Optional[aiohttp.ClientSession] = None):
        """Initialize API client.

        Args:
            config: API configuration with credentials
            session: Optional externally managed session
        """
        self.config = config
        self._session = session
        self._owns_session = session is None

    async def connect(self) -> None:
        """Initialize the HTTP session."""
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True

    async def disconnect(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    def _get_headers(self, method: str, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Get headers for API requests."""
        content_type = MERGE_PATCH_CONTENT_TYPE if method == "PATCH" else JSON_CONTENT_TYPE
        headers = {
            "Authorization": self.config.auth.get_authorization_header(),
            "Content-Type": content_type,
            "Accept": JSON_CONTENT_TYPE,
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, str]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """Make an authenticated API request.

        Args:
            method: HTTP method
            url: Full URL
            params: Query parameters
            data: JSON request body
            headers: Additional headers

        Returns:
            Response JSON ({} for empty bodies)

        Raises:
            CRMAuthenticationError: Authentication failed
            CRMNotFoundError: Resource not found
            CRMLockedError: Entity locked by another writer
            CRMApiError: Other non-success responses
            aiohttp.ClientError: No response received
        """
        if self._session is None:
            raise CRMApiError("Not connected. Call connect() first.")

        async with self._session.request(
            method,
            url,
            headers=self._get_headers(method, headers),
            params=dict(params) if params else None,
            json=data,
        ) as response:
            response_text = await response.text()

            if response.status < 400:
                if response.status == 204 or not response_text:
                    return {}
                return json.loads(response_text)

            logger.error(
                f"[CRM API] {method} {url} failed with {response.status} {response.reason}",
                extra_fields={"status": response.status, "response_body": response_text},
            )
            error_cls = _error_for_status(response.status)
            raise error_cls(
                f"CRM API Error: {response.status} - {response_text}",
                response.status,
                response_text,
            )

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    async def list_accounts(self, params: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        """List accounts with OData query options.

        Args:
            params: OData options ($top, $skip, $orderby, $filter, $count,
                $select, $search), forwarded as given

        Returns:
            {"value": [...], "count": n}
        """
        return await self._request("GET", self.config.account_url(), params=params)

    async def get_account(
        self,
        account_id: str,
        params: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """Get a single account by UUID ({"value": {...}})."""
        return await self._request("GET", self.config.account_url(account_id), params=params)

    async def create_account(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a new account from a full wire record."""
        return await self._request("POST", self.config.account_url(), data=data)

    async def update_account(
        self,
        account_id: str,
        data: Dict[str, Any],
        if_match: Optional[str],
    ) -> Dict[str, Any]:
        """Merge-patch an account.

        Args:
            account_id: Account UUID
            data: Partial wire record
            if_match: Concurrency token (adminData.updatedOn), quoted here
                before forwarding

        Raises:
            PreconditionRequiredError: No token given; nothing is sent
        """
        if not if_match or not if_match.strip():
            raise PreconditionRequiredError()

        logger.info(
            f"[PATCH] account {account_id}",
            extra_fields={"if_match": if_match, "fields": sorted(data)},
        )
        return await self._request(
            "PATCH",
            self.config.account_url(account_id),
            data=data,
            headers={"If-Match": quote_etag(if_match)},
        )

    async def delete_account(self, account_id: str) -> None:
        await self._request("DELETE", self.config.account_url(account_id))

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def list_industrial_sectors(self) -> Dict[str, Any]:
        return await self._request("GET", self.config.url_for(self.config.industrial_sectors_path))

    async def list_contact_persons(self) -> Dict[str, Any]:
        return await self._request(
            "GET",
            self.config.url_for(self.config.contact_persons_path),
            params={"$top": str(self.config.lookup_page_size)},
        )

    async def list_employees(self) -> Dict[str, Any]:
        return await self._request(
            "GET",
            self.config.url_for(self.config.employees_path),
            params={"$top": str(self.config.lookup_page_size)},
        )
