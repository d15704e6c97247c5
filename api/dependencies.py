"""FastAPI dependencies."""

from fastapi import Request

from connectors.sap_crm.crm_client import CRMApiClient


def get_crm_client(request: Request) -> CRMApiClient:
    """CRM client created by the application lifespan."""
    return request.app.state.crm_client
