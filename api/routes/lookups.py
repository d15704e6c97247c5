"""Lookup list endpoints used to populate dropdowns."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from api.dependencies import get_crm_client
from connectors.sap_crm.crm_client import CRMApiClient


router = APIRouter()


@router.get("/industrial-sectors")
async def list_industrial_sectors(
    client: CRMApiClient = Depends(get_crm_client),
) -> Dict[str, Any]:
    """Industrial sectors (Industry dropdown)."""
    return await client.list_industrial_sectors()


@router.get("/contacts")
async def list_contacts(
    client: CRMApiClient = Depends(get_crm_client),
) -> Dict[str, Any]:
    """Contact persons (Contact Person dropdown), first 100."""
    return await client.list_contact_persons()


@router.get("/employees")
async def list_employees(
    client: CRMApiClient = Depends(get_crm_client),
) -> Dict[str, Any]:
    """Employees (Owner dropdown), first 100."""
    return await client.list_employees()
