"""Account domain models.

These models are the internal (UI-facing) representation of CRM accounts.
They are independent of the upstream wire format; translation between the
two lives in connectors/sap_crm/crm_mapper.py.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class DomainBase(BaseModel):
    """Base model for all domain data structures."""
    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)


class AccountStatus(str, Enum):
    """Account lifecycle status."""
    ACTIVE = "Active"
    IN_PREPARATION = "In Preparation"
    BLOCKED = "Blocked"
    OBSOLETE = "Obsolete"


class CustomerRole(str, Enum):
    """Customer role code derived from the prospect flag."""
    PROSPECT = "BUP002"
    CUSTOMER = "CRM000"


# =============================================================================
# Account
# =============================================================================

class Account(DomainBase):
    """A business-partner record as seen by the UI.

    `id` is the upstream UUID and never changes after creation.
    `account_id` is the human-facing display id; the store uses it for
    lookups within the loaded set.
    `updated_on` doubles as the concurrency token for updates.
    """
    account_id: str = ""
    id: str = ""
    company_name: str = ""
    contact_person: str = ""
    primary_contact_id: str = ""
    owner: str = ""
    owner_id: str = ""
    website: str = ""
    industry: str = ""
    industry_code: str = ""
    country: str = ""
    prospect: bool = False
    abc_classification: str = ""
    abc_classification_description: str = ""
    status: AccountStatus = AccountStatus.ACTIVE
    status_code: str = ""
    updated_on: Optional[str] = None


class AccountChanges(DomainBase):
    """A partial set of account attributes.

    Only attributes that are set (not None) take part in a write. In update
    mode an empty string also means "no change".
    """
    company_name: Optional[str] = None
    primary_contact_id: Optional[str] = None
    owner_id: Optional[str] = None
    website: Optional[str] = None
    industry_code: Optional[str] = None
    country: Optional[str] = None
    prospect: Optional[bool] = None
    abc_classification: Optional[str] = None
    status: Optional[AccountStatus] = None


# =============================================================================
# Lookup options (dropdown sources)
# =============================================================================

class IndustryOption(DomainBase):
    id: str = ""
    description: str = ""


class ContactOption(DomainBase):
    id: str = ""
    display_id: str = ""
    formatted_name: str = ""


class EmployeeOption(DomainBase):
    id: str = ""
    display_id: str = ""
    formatted_name: str = ""


class AnalyticsRow(DomainBase):
    """Minimal account projection used for dashboard charts."""
    industry: str = "Unknown"
    priority: str = "Unknown"
    country: str = "Unknown"
