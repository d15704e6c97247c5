"""Account endpoints.

Thin proxy over the CRM account service. Bodies are forwarded as wire
records; mapping to the domain model happens on the client side.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response
from fastapi.responses import JSONResponse

from api.dependencies import get_crm_client
from api.errors import GatewayRequestError
from connectors.sap_crm.crm_client import CRMApiClient, JSON_CONTENT_TYPE, MERGE_PATCH_CONTENT_TYPE
from core.observability.logging import get_logger, with_correlation


router = APIRouter()
logger = get_logger(__name__)

NO_STORE = "no-store, no-cache, must-revalidate, private"


async def _read_json_object(request: Request, accepted_types: tuple) -> Dict[str, Any]:
    """Parse the request body as a JSON object of one of the accepted types."""
    media_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if media_type not in accepted_types:
        raise GatewayRequestError(f"Unsupported content type: {media_type or 'none'}", 415)
    try:
        body = await request.json()
    except ValueError:
        raise GatewayRequestError("Request body must be valid JSON")
    if not isinstance(body, dict):
        raise GatewayRequestError("Request body must be a JSON object")
    return body


@router.get("")
async def list_accounts(
    top: Optional[str] = Query(None, alias="$top"),
    skip: Optional[str] = Query(None, alias="$skip"),
    orderby: Optional[str] = Query(None, alias="$orderby"),
    filter: Optional[str] = Query(None, alias="$filter"),
    count: Optional[str] = Query(None, alias="$count"),
    select: Optional[str] = Query(None, alias="$select"),
    search: Optional[str] = Query(None, alias="$search"),
    client: CRMApiClient = Depends(get_crm_client),
) -> Dict[str, Any]:
    """List accounts. Only the OData options actually supplied are forwarded."""
    supplied = {
        "$top": top,
        "$skip": skip,
        "$orderby": orderby,
        "$filter": filter,
        "$count": count,
        "$select": select,
        "$search": search,
    }
    params = {name: value for name, value in supplied.items() if value}
    return await client.list_accounts(params)


@router.get("/{account_id}")
async def get_account(
    account_id: str,
    request: Request,
    client: CRMApiClient = Depends(get_crm_client),
) -> JSONResponse:
    """Get one account. Query parameters (e.g. a cache buster) pass through."""
    data = await client.get_account(account_id, dict(request.query_params))
    return JSONResponse(content=data, headers={"Cache-Control": NO_STORE})


@router.post("", status_code=201)
async def create_account(
    request: Request,
    client: CRMApiClient = Depends(get_crm_client),
) -> JSONResponse:
    """Create an account from a full wire record."""
    body = await _read_json_object(request, (JSON_CONTENT_TYPE,))
    data = await client.create_account(body)
    return JSONResponse(status_code=201, content=data)


@router.patch("/{account_id}")
async def update_account(
    account_id: str,
    request: Request,
    if_match: Optional[str] = Header(None, alias="If-Match"),
    client: CRMApiClient = Depends(get_crm_client),
) -> Dict[str, Any]:
    """Merge-patch an account.

    The If-Match header carries the unquoted concurrency token
    (adminData.updatedOn); it is quoted before forwarding upstream.
    """
    if not if_match:
        raise GatewayRequestError("If-Match header is required for updates")

    body = await _read_json_object(request, (MERGE_PATCH_CONTENT_TYPE, JSON_CONTENT_TYPE))

    with with_correlation(entity_id=account_id, operation="update"):
        logger.info("Forwarding account update", extra_fields={"payload": body, "if_match": if_match})
        return await client.update_account(account_id, body, if_match)


@router.delete("/{account_id}", status_code=204)
async def delete_account(
    account_id: str,
    client: CRMApiClient = Depends(get_crm_client),
) -> Response:
    """Delete an account."""
    with with_correlation(entity_id=account_id, operation="delete"):
        await client.delete_account(account_id)
    return Response(status_code=204)
