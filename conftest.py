"""Shared test fixtures."""

import copy
from typing import Any, Dict

import pytest

from connectors.sap_crm.crm_config import CRMApiConfig, CRMAuthConfig, ServerSettings


BASE_WIRE_ACCOUNT: Dict[str, Any] = {
    "id": "11111111-2222-3333-4444-555555555555",
    "displayId": "1000123",
    "formattedName": "Acme Corp",
    "firstLineName": "Acme Corp",
    "isProspect": False,
    "customerRole": "CRM000",
    "customerABCClassification": "A",
    "customerABCClassificationDescription": "A-Account",
    "lifeCycleStatus": "ACTIVE",
    "lifeCycleStatusDescription": "Active",
    "primaryContactId": "contact-1",
    "primaryContactformattedName": "Jane Doe",
    "ownerId": "employee-7",
    "ownerFormattedName": "John Smith",
    "industrialSector": "0001",
    "industrialSectorDescription": "Manufacturing",
    "defaultCommunication": {"web": "https://acme.example.com"},
    "defaultAddress": {"country": "US"},
    "adminData": {"updatedOn": "2024-05-01T10:00:00.000Z"},
}


@pytest.fixture
def wire_account():
    """Factory for CRM wire account records."""
    def _make(**overrides) -> Dict[str, Any]:
        record = copy.deepcopy(BASE_WIRE_ACCOUNT)
        record.update(overrides)
        return record
    return _make


@pytest.fixture
def crm_config() -> CRMApiConfig:
    return CRMApiConfig(
        base_url="https://crm.example.com/",
        auth=CRMAuthConfig(username="svc_user", password="s3cret!"),
    )


@pytest.fixture
def server_settings() -> ServerSettings:
    return ServerSettings()
