"""Account store and update coordinator.

Holds the currently loaded page of accounts plus dropdown lookup lists, and
runs every create/update/delete through the gateway.

Updates are serialized per account: a new update for an account waits until
the previous one for that account has settled, while updates for different
accounts run concurrently. Each update re-reads the account's concurrency
token (adminData.updatedOn) right before writing, and retries with
exponential backoff while the CRM reports the account as locked (423).
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from accounts.gateway_client import AccountLockedError, GatewayClient, GatewayError
from connectors.sap_crm.crm_mapper import (
    AccountInput,
    MappingMode,
    account_to_wire,
    analytics_row_from_wire,
    contact_option_from_wire,
    employee_option_from_wire,
    industry_option_from_wire,
    map_list_response,
    map_single_response,
)
from core.models.account import (
    Account,
    AccountStatus,
    AnalyticsRow,
    ContactOption,
    EmployeeOption,
    IndustryOption,
)
from core.odata.query import ODataQuery
from core.observability.logging import get_logger, with_correlation

logger = get_logger(__name__)

LOCKED_MESSAGE = "Account is locked by another process. Please try again in a moment."


class AccountNotFoundError(LookupError):
    """Account is not in the loaded list; nothing was sent upstream."""
    def __init__(self, account_id: str):
        super().__init__("Account not found")
        self.account_id = account_id


class MissingConcurrencyTokenError(ValueError):
    """Fetched account has no updatedOn timestamp to use as If-Match."""
    def __init__(self, entity_id: str):
        super().__init__("No updatedOn timestamp found for If-Match header")
        self.entity_id = entity_id


def _written_account(action: str, body: Dict[str, Any]) -> Account:
    """Map a create/update response, rejecting one without a record."""
    if not isinstance(body.get("value"), dict):
        raise GatewayError(f"Failed to {action}: empty response")
    return map_single_response(body)


@dataclass
class RetryConfig:
    """Lock-conflict retry policy."""
    max_retries: int = 3
    base_delay: float = 0.5  # seconds
    exponential_base: float = 2.0

    def get_delay(self, attempt: int) -> float:
        """Delay before retry number attempt+1 (0.5s, 1s, 2s by default)."""
        return self.base_delay * (self.exponential_base ** attempt)


class AccountStore:
    """Client-side account store.

    Usage:
        async with GatewayClient(base_url) as gateway:
            store = AccountStore(gateway)
            await store.fetch_accounts(page=1)
            await store.update_account("1000123", AccountChanges(website="https://example.com"))
    """

    DEFAULT_ORDER_BY = "formattedName asc"
    DEFAULT_PAGE_SIZE = 30
    ANALYTICS_BATCH_SIZE = 999  # CRM $top limit
    ANALYTICS_FIELDS = (
        "customerABCClassificationDescription",
        "industrialSectorDescription",
        "defaultAddress",
    )

    def __init__(self, gateway: GatewayClient, retry_config: Optional[RetryConfig] = None):
        self.gateway = gateway
        self.retry_config = retry_config or RetryConfig()

        self.accounts: List[Account] = []
        self.total_count = 0
        self.analytics_data: List[AnalyticsRow] = []
        self.industries: List[IndustryOption] = []
        self.contacts: List[ContactOption] = []
        self.employees: List[EmployeeOption] = []

        self.loading = False
        self.error: Optional[str] = None
        self.error_analytics: Optional[str] = None
        self.error_industries: Optional[str] = None
        self.error_contacts: Optional[str] = None
        self.error_employees: Optional[str] = None

        # account_id -> task of the latest update queued for that account
        self._update_queue: Dict[str, asyncio.Task] = {}
        self._updates_in_flight = 0

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def updating(self) -> bool:
        return self._updates_in_flight > 0

    @property
    def active_accounts(self) -> List[Account]:
        return [a for a in self.accounts if a.status == AccountStatus.ACTIVE]

    @property
    def accounts_count(self) -> int:
        return len(self.accounts)

    def get_account_by_id(self, account_id: str) -> Optional[Account]:
        for account in self.accounts:
            if account.account_id == account_id:
                return account
        return None

    def _require_account(self, account_id: str) -> Account:
        account = self.get_account_by_id(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def fetch_accounts(
        self,
        page: int = 1,
        items_per_page: int = DEFAULT_PAGE_SIZE,
        search: Optional[str] = None,
        filter: Optional[str] = None,
    ) -> None:
        """Load one page of accounts, ordered by name, with the total count."""
        self.loading = True
        self.error = None
        try:
            body = await self.gateway.fetch_accounts(ODataQuery(
                top=items_per_page,
                skip=(page - 1) * items_per_page,
                orderby=self.DEFAULT_ORDER_BY,
                filter=filter,
                search=search,
                count=True,
            ))
            self.accounts = map_list_response(body)
            self.total_count = body.get("count") or 0
        except GatewayError as e:
            self.error = str(e)
            logger.error(f"Error fetching accounts: {e}")
        finally:
            self.loading = False

    async def fetch_accounts_for_analytics(self) -> List[AnalyticsRow]:
        """Page through all accounts, fetching only the chart fields."""
        rows: List[AnalyticsRow] = []
        skip = 0

        while True:
            body = await self.gateway.fetch_accounts(ODataQuery(
                select=self.ANALYTICS_FIELDS,
                top=self.ANALYTICS_BATCH_SIZE,
                skip=skip,
                count=True,
            ))
            rows.extend(analytics_row_from_wire(record) for record in body.get("value") or [])

            total = body.get("count") or 0
            skip += self.ANALYTICS_BATCH_SIZE
            if skip >= total:
                break

        return rows

    async def fetch_analytics_data(self) -> None:
        self.error_analytics = None
        try:
            self.analytics_data = await self.fetch_accounts_for_analytics()
        except GatewayError as e:
            self.error_analytics = str(e)
            logger.error(f"Error fetching analytics: {e}")

    async def fetch_industries(self) -> None:
        self.error_industries = None
        try:
            body = await self.gateway.fetch_industrial_sectors()
            self.industries = [industry_option_from_wire(r) for r in body.get("value") or []]
        except GatewayError as e:
            self.error_industries = str(e)
            logger.error(f"Error fetching industries: {e}")

    async def fetch_contacts(self) -> None:
        self.error_contacts = None
        try:
            body = await self.gateway.fetch_contacts()
            self.contacts = [contact_option_from_wire(r) for r in body.get("value") or []]
        except GatewayError as e:
            self.error_contacts = str(e)
            logger.error(f"Error fetching contacts: {e}")

    async def fetch_employees(self) -> None:
        self.error_employees = None
        try:
            body = await self.gateway.fetch_employees()
            self.employees = [employee_option_from_wire(r) for r in body.get("value") or []]
        except GatewayError as e:
            self.error_employees = str(e)
            logger.error(f"Error fetching employees: {e}")

    async def fetch_dropdown_data(self) -> None:
        """Load industries, contacts and employees concurrently."""
        await asyncio.gather(
            self.fetch_industries(),
            self.fetch_contacts(),
            self.fetch_employees(),
        )

    async def fetch_single_for_update(self, entity_id: str) -> Tuple[Account, str]:
        """Fetch an account fresh from upstream, with its concurrency token.

        Raises:
            MissingConcurrencyTokenError: The record has no updatedOn
        """
        account = map_single_response(await self.gateway.fetch_account(entity_id, fresh=True))
        if not account.updated_on:
            raise MissingConcurrencyTokenError(entity_id)
        return account, account.updated_on

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def add_account(self, account: AccountInput) -> Account:
        """Create an account and append it to the loaded list."""
        self.loading = True
        self.error = None
        try:
            body = await self.gateway.create_account(account_to_wire(account, MappingMode.CREATE))
            created = _written_account("create account", body)
            self.accounts.append(created)
            return created
        except GatewayError as e:
            self.error = str(e)
            logger.error(f"Error creating account: {e}")
            raise
        finally:
            self.loading = False

    async def delete_account(self, account_id: str) -> None:
        """Delete an account by display id and drop it from the loaded list."""
        self.loading = True
        self.error = None
        try:
            account = self._require_account(account_id)
            with with_correlation(account_id=account_id, entity_id=account.id, operation="delete"):
                await self.gateway.delete_account(account.id)
            self.accounts = [a for a in self.accounts if a.account_id != account_id]
        except (AccountNotFoundError, GatewayError) as e:
            self.error = str(e)
            logger.error(f"Error deleting account: {e}")
            raise
        finally:
            self.loading = False

    async def update_account(self, account_id: str, changes: AccountInput) -> Account:
        """Apply partial changes to an account (by display id).

        Waits for any earlier update of the same account to settle first.
        Once started, the update runs to completion even if the caller stops
        waiting.

        Raises:
            AccountNotFoundError: account_id is not in the loaded list
            MissingConcurrencyTokenError: upstream record has no updatedOn
            AccountLockedError: still locked after all retries
            GatewayError: any other failure, not retried
        """
        previous = self._update_queue.get(account_id)
        task = asyncio.ensure_future(self._run_update(account_id, changes, previous))
        self._update_queue[account_id] = task
        task.add_done_callback(lambda t: self._settle(account_id, t))
        return await asyncio.shield(task)

    def _settle(self, account_id: str, task: asyncio.Task) -> None:
        # Already logged and kept in self.error; the caller may have gone away
        if not task.cancelled():
            task.exception()
        if self._update_queue.get(account_id) is task:
            del self._update_queue[account_id]

    async def _run_update(
        self,
        account_id: str,
        changes: AccountInput,
        previous: Optional[asyncio.Task],
    ) -> Account:
        if previous is not None and not previous.done():
            # Outcome of the earlier update belongs to its own caller
            await asyncio.wait([previous])

        self._updates_in_flight += 1
        self.error = None
        try:
            with with_correlation(account_id=account_id, operation="update"):
                return await self._update_with_retry(account_id, changes)
        except Exception as e:
            self.error = str(e)
            logger.error(f"Error updating account: {e}")
            raise
        finally:
            self._updates_in_flight -= 1

    async def _update_with_retry(self, account_id: str, changes: AccountInput) -> Account:
        retry = self.retry_config
        payload = account_to_wire(changes, MappingMode.UPDATE)

        for attempt in range(retry.max_retries + 1):
            account = self._require_account(account_id)
            with with_correlation(entity_id=account.id, attempt=attempt + 1):
                _, etag = await self.fetch_single_for_update(account.id)
                try:
                    body = await self.gateway.update_account(account.id, payload, etag)
                except AccountLockedError:
                    if attempt < retry.max_retries:
                        delay = retry.get_delay(attempt)
                        logger.warning(
                            f"Account locked (423), retrying in {delay * 1000:.0f}ms "
                            f"(attempt {attempt + 1}/{retry.max_retries})"
                        )
                        await asyncio.sleep(delay)
                        continue
                    raise AccountLockedError(LOCKED_MESSAGE)

            updated = _written_account("update account", body)
            self._replace(account_id, updated)
            logger.info("Account updated", extra_fields={"fields": sorted(payload)})
            return updated

        raise AccountLockedError(LOCKED_MESSAGE)

    def _replace(self, account_id: str, updated: Account) -> None:
        for index, account in enumerate(self.accounts):
            if account.account_id == account_id:
                self.accounts[index] = updated
                return
