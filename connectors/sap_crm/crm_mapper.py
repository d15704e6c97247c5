"""SAP CRM account mapping.

Translates between the CRM wire format (camelCase JSON, nested
communication/address/admin blocks) and the domain models in
/core/models/account.py.

Reading is total: every domain field has a fallback, so a partial or
$select-trimmed record always maps. Writing has two modes:

- CREATE: emits the complete wire record, including the customerRole code
  derived from the prospect flag. Unset attributes are left out.
- UPDATE: emits only attributes that are set and not an empty string. An
  empty string means "no change", not "clear the value".
"""

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from connectors.sap_crm.crm_models import (
    CRMAccount,
    CRMContactPerson,
    CRMEmployee,
    CRMIndustrialSector,
)
from core.models.account import (
    Account,
    AccountChanges,
    AccountStatus,
    AnalyticsRow,
    ContactOption,
    CustomerRole,
    EmployeeOption,
    IndustryOption,
)


class MappingMode(str, Enum):
    """Write mode for account_to_wire."""
    CREATE = "create"
    UPDATE = "update"


# =============================================================================
# Status code table
# =============================================================================

STATUS_TO_WIRE: Dict[AccountStatus, str] = {
    AccountStatus.ACTIVE: "ACTIVE",
    AccountStatus.IN_PREPARATION: "IN_PREPARATION",
    AccountStatus.BLOCKED: "BLOCKED",
    AccountStatus.OBSOLETE: "OBSOLETE",
}

STATUS_FROM_WIRE: Dict[str, AccountStatus] = {
    code: status for status, code in STATUS_TO_WIRE.items()
}


def status_from_wire(code: Optional[str]) -> AccountStatus:
    """Map a lifecycle status code to the domain status.

    Descriptions ("In Preparation") are accepted as well as codes
    ("IN_PREPARATION"). Anything unrecognized reads as Active.
    """
    if not code:
        return AccountStatus.ACTIVE
    normalized = code.strip().upper().replace(" ", "_")
    return STATUS_FROM_WIRE.get(normalized, AccountStatus.ACTIVE)


def status_to_wire(status: Union[AccountStatus, str, None]) -> str:
    """Map a domain status to its lifecycle code (ACTIVE if unrecognized)."""
    try:
        return STATUS_TO_WIRE[AccountStatus(status)]
    except ValueError:
        return STATUS_TO_WIRE[AccountStatus.ACTIVE]


def customer_role_for(prospect: Optional[bool]) -> str:
    return CustomerRole.PROSPECT.value if prospect else CustomerRole.CUSTOMER.value


# =============================================================================
# Wire -> domain
# =============================================================================

def account_from_wire(record: Optional[Mapping[str, Any]]) -> Account:
    """Map a CRM account record to the domain Account."""
    wire = CRMAccount.model_validate(dict(record or {}))

    communication = wire.defaultCommunication
    address = wire.defaultAddress
    admin = wire.adminData

    return Account(
        account_id=wire.displayId or "",
        id=wire.id or "",
        company_name=wire.formattedName or wire.firstLineName or "",
        contact_person=wire.primaryContactformattedName or "",
        primary_contact_id=wire.primaryContactId or wire.default_contact_id() or "",
        owner=wire.ownerFormattedName or "",
        owner_id=wire.ownerId or "",
        website=(communication.web if communication else None) or "",
        industry=wire.industrialSectorDescription or "",
        industry_code=wire.industrialSector or "",
        country=(address.country if address else None) or "",
        prospect=wire.isProspect or False,
        abc_classification=wire.customerABCClassification or "",
        abc_classification_description=wire.customerABCClassificationDescription or "",
        status=status_from_wire(wire.lifeCycleStatus or wire.lifeCycleStatusDescription),
        status_code=wire.lifeCycleStatus or "",
        updated_on=admin.updatedOn if admin else None,
    )


def map_single_response(body: Mapping[str, Any]) -> Account:
    """Unwrap a {"value": {...}} response into an Account."""
    return account_from_wire(body.get("value"))


def map_list_response(body: Mapping[str, Any]) -> List[Account]:
    """Unwrap a {"value": [...]} response into a list of Accounts."""
    return [account_from_wire(item) for item in body.get("value") or []]


def analytics_row_from_wire(record: Mapping[str, Any]) -> AnalyticsRow:
    wire = CRMAccount.model_validate(dict(record))
    country = wire.defaultAddress.country if wire.defaultAddress else None
    return AnalyticsRow(
        industry=wire.industrialSectorDescription or "Unknown",
        priority=wire.customerABCClassificationDescription or "Unknown",
        country=country or "Unknown",
    )


def industry_option_from_wire(record: Mapping[str, Any]) -> IndustryOption:
    sector = CRMIndustrialSector.model_validate(dict(record))
    return IndustryOption(id=sector.code or "", description=sector.description or "")


def contact_option_from_wire(record: Mapping[str, Any]) -> ContactOption:
    contact = CRMContactPerson.model_validate(dict(record))
    return ContactOption(
        id=contact.id or "",
        display_id=contact.displayId or "",
        formatted_name=contact.formattedName or "",
    )


def employee_option_from_wire(record: Mapping[str, Any]) -> EmployeeOption:
    employee = CRMEmployee.model_validate(dict(record))
    return EmployeeOption(
        id=employee.id or "",
        display_id=employee.displayId or "",
        formatted_name=employee.formattedName or "",
    )


# =============================================================================
# Domain -> wire
# =============================================================================

AccountInput = Union[Account, AccountChanges, Mapping[str, Any]]


def _as_values(account: AccountInput) -> Dict[str, Any]:
    if isinstance(account, (Account, AccountChanges)):
        return account.model_dump()
    return dict(account)


def _is_set(value: Any) -> bool:
    return value is not None and value != ""


def _contact_links(contact_id: str) -> List[Dict[str, Any]]:
    return [{"contactId": contact_id, "isDefault": True}]


def _drop_unset(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Remove None leaves, and nested blocks left empty by that."""
    result: Dict[str, Any] = {}
    for key, value in payload.items():
        if isinstance(value, dict):
            value = _drop_unset(value)
            if not value:
                continue
        if value is None:
            continue
        result[key] = value
    return result


def account_to_wire(
    account: AccountInput,
    mode: MappingMode = MappingMode.CREATE,
) -> Dict[str, Any]:
    """Map domain account attributes to a CRM wire payload.

    Args:
        account: Full Account, AccountChanges, or a mapping of domain field
            names to values
        mode: CREATE for a POST body, UPDATE for a merge-patch body

    Returns:
        Wire payload dict
    """
    values = _as_values(account)
    if MappingMode(mode) is MappingMode.UPDATE:
        return _update_payload(values)
    return _create_payload(values)


def _create_payload(values: Dict[str, Any]) -> Dict[str, Any]:
    company_name = values.get("company_name")
    prospect = values.get("prospect")

    payload: Dict[str, Any] = {
        "firstLineName": company_name,
        "formattedName": company_name,  # kept for compatibility
        "isProspect": prospect,
        "customerRole": customer_role_for(prospect),
        "customerABCClassification": values.get("abc_classification"),
        "lifeCycleStatus": status_to_wire(values.get("status")),
        "ownerId": values.get("owner_id"),
        "defaultCommunication": {"web": values.get("website")},
        "defaultAddress": {"country": values.get("country")},
    }

    primary_contact_id = values.get("primary_contact_id")
    if primary_contact_id:
        payload["hasContactPersons"] = _contact_links(primary_contact_id)

    industry_code = values.get("industry_code")
    if industry_code:
        payload["industrialSector"] = industry_code

    return _drop_unset(payload)


def _update_payload(values: Dict[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}

    if _is_set(values.get("company_name")):
        payload["firstLineName"] = values["company_name"]
        payload["formattedName"] = values["company_name"]
    if _is_set(values.get("prospect")):
        payload["isProspect"] = values["prospect"]
        payload["customerRole"] = customer_role_for(values["prospect"])
    if _is_set(values.get("abc_classification")):
        payload["customerABCClassification"] = values["abc_classification"]
    if _is_set(values.get("status")):
        payload["lifeCycleStatus"] = status_to_wire(values["status"])
    if _is_set(values.get("primary_contact_id")):
        payload["hasContactPersons"] = _contact_links(values["primary_contact_id"])
    if _is_set(values.get("owner_id")):
        payload["ownerId"] = values["owner_id"]
    if _is_set(values.get("website")):
        payload["defaultCommunication"] = {"web": values["website"]}
    # Industry code is a root-level attribute, not part of defaultCommunication
    if _is_set(values.get("industry_code")):
        payload["industrialSector"] = values["industry_code"]
    if _is_set(values.get("country")):
        payload["defaultAddress"] = {"country": values["country"]}

    return payload
