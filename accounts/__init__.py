"""Client-side accounts layer.

- GatewayClient: HTTP client for the gateway's /api surface
- AccountStore: loaded accounts, lookups, and the per-account update
  coordinator (serialized updates, fresh If-Match, lock retry)
"""

from accounts.gateway_client import (
    AccountLockedError,
    GatewayClient,
    GatewayConnectionError,
    GatewayError,
)
from accounts.store import (
    LOCKED_MESSAGE,
    AccountNotFoundError,
    AccountStore,
    MissingConcurrencyTokenError,
    RetryConfig,
)

__all__ = [
    "AccountLockedError",
    "GatewayClient",
    "GatewayConnectionError",
    "GatewayError",
    "LOCKED_MESSAGE",
    "AccountNotFoundError",
    "AccountStore",
    "MissingConcurrencyTokenError",
    "RetryConfig",
]
