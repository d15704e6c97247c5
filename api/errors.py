"""Gateway error responses.

Upstream failures keep the upstream status code and body so callers can
tell a lock conflict (423) from other errors. Requests that never got an
upstream response become 502.
"""

import asyncio

import aiohttp
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from connectors.sap_crm.crm_client import CRMApiError
from core.observability.logging import get_logger

logger = get_logger(__name__)


class GatewayRequestError(Exception):
    """Inbound request rejected before contacting the CRM."""
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


async def crm_api_error_handler(request: Request, exc: CRMApiError) -> JSONResponse:
    status_code = exc.status_code if exc.status_code >= 400 else 500
    logger.error(
        f"Error handling {request.method} {request.url.path}: {exc}",
        extra_fields={"status": status_code},
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "error": str(exc),
            "status": status_code,
            "upstream_body": exc.response_body,
        },
    )


async def upstream_unreachable_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"CRM unreachable for {request.method} {request.url.path}: {exc!r}")
    return JSONResponse(
        status_code=502,
        content={"error": f"CRM API unreachable: {type(exc).__name__}"},
    )


async def gateway_request_error_handler(request: Request, exc: GatewayRequestError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CRMApiError, crm_api_error_handler)
    app.add_exception_handler(GatewayRequestError, gateway_request_error_handler)
    app.add_exception_handler(aiohttp.ClientError, upstream_unreachable_handler)
    app.add_exception_handler(asyncio.TimeoutError, upstream_unreachable_handler)
