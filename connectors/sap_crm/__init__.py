"""SAP CRM connector.

Provides:
- CRMApiConfig / CRMAuthConfig: connection settings and Basic auth
- CRMApiClient: aiohttp client for the account and lookup services
- crm_mapper: account wire <-> domain mapping
"""

from connectors.sap_crm.crm_config import (
    ConfigurationError,
    CRMApiConfig,
    CRMAuthConfig,
    ServerSettings,
)
from connectors.sap_crm.crm_client import (
    CRMApiClient,
    CRMApiError,
    CRMAuthenticationError,
    CRMLockedError,
    CRMNotFoundError,
    PreconditionRequiredError,
    quote_etag,
)
from connectors.sap_crm.crm_mapper import (
    MappingMode,
    account_from_wire,
    account_to_wire,
    map_list_response,
    map_single_response,
    status_from_wire,
    status_to_wire,
)

__all__ = [
    "ConfigurationError",
    "CRMApiConfig",
    "CRMAuthConfig",
    "ServerSettings",
    "CRMApiClient",
    "CRMApiError",
    "CRMAuthenticationError",
    "CRMLockedError",
    "CRMNotFoundError",
    "PreconditionRequiredError",
    "quote_etag",
    "MappingMode",
    "account_from_wire",
    "account_to_wire",
    "map_list_response",
    "map_single_response",
    "status_from_wire",
    "status_to_wire",
]
