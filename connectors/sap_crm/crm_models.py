"""SAP CRM wire models.

These are CRM-specific models that mirror the account-service JSON schema.
They are separate from the domain models in /core/models/.

All fields are optional: the upstream omits empty attributes and $select
queries return partial records, so parsing a wire record never fails on
missing data.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# SAP CRM API Models
# =============================================================================

class CRMBaseModel(BaseModel):
    """Base model for CRM API entities."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class CRMCommunication(CRMBaseModel):
    web: Optional[str] = None


class CRMAddress(CRMBaseModel):
    country: Optional[str] = None


class CRMAdminData(CRMBaseModel):
    updatedOn: Optional[str] = None
    createdOn: Optional[str] = None


class CRMContactPersonLink(CRMBaseModel):
    """Entry of an account's hasContactPersons list."""
    contactId: Optional[str] = None
    isDefault: Optional[bool] = None


class CRMAccount(CRMBaseModel):
    """SAP CRM account entity.

    Maps to: /sap/c4c/api/v1/account-service/accounts
    """
    id: Optional[str] = None
    displayId: Optional[str] = None
    formattedName: Optional[str] = None
    firstLineName: Optional[str] = None
    isProspect: Optional[bool] = None
    customerRole: Optional[str] = None
    customerABCClassification: Optional[str] = None
    customerABCClassificationDescription: Optional[str] = None
    lifeCycleStatus: Optional[str] = None  # "ACTIVE", "IN_PREPARATION", ...
    lifeCycleStatusDescription: Optional[str] = None
    primaryContactId: Optional[str] = None
    primaryContactformattedName: Optional[str] = None
    ownerId: Optional[str] = None
    ownerFormattedName: Optional[str] = None
    industrialSector: Optional[str] = None
    industrialSectorDescription: Optional[str] = None
    defaultCommunication: Optional[CRMCommunication] = None
    defaultAddress: Optional[CRMAddress] = None
    adminData: Optional[CRMAdminData] = None
    hasContactPersons: List[CRMContactPersonLink] = Field(default_factory=list)

    def default_contact_id(self) -> Optional[str]:
        """Contact id flagged as default in hasContactPersons, if any."""
        for link in self.hasContactPersons:
            if link.isDefault and link.contactId:
                return link.contactId
        return None


class CRMIndustrialSector(CRMBaseModel):
    """Maps to: /sap/c4c/api/v1/business-partner-service/industrialSectors"""
    id: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None


class CRMContactPerson(CRMBaseModel):
    """Maps to: /sap/c4c/api/v1/contact-person-service/contactPersons"""
    id: Optional[str] = None
    displayId: Optional[str] = None
    formattedName: Optional[str] = None


class CRMEmployee(CRMBaseModel):
    """Maps to: /sap/c4c/api/v1/employee-service/employees"""
    id: Optional[str] = None
    displayId: Optional[str] = None
    formattedName: Optional[str] = None
