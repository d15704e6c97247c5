"""FastAPI server for the Accounts Gateway.

Main entry point for the API server. Forwards account CRUD and lookup
requests to the SAP CRM with a fixed Basic authorization header.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.errors import register_error_handlers
from api.middleware import RequestIdMiddleware
from api.routes import accounts, health, lookups
from connectors.sap_crm.crm_client import CRMApiClient
from connectors.sap_crm.crm_config import CRMApiConfig, ConfigurationError, ServerSettings
from core.observability.logging import configure_logging, get_logger

logger = get_logger(__name__)


def create_app(
    config: Optional[CRMApiConfig] = None,
    settings: Optional[ServerSettings] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: CRM connection config (read from the environment if None)
        settings: Process settings (read from the environment if None)

    Raises:
        ConfigurationError: If CRM configuration is missing
    """
    config = config or CRMApiConfig.from_env()
    settings = settings or ServerSettings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        client = CRMApiClient(config)
        await client.connect()
        app.state.crm_client = client
        logger.info(f"CRM API configured: {config.base_url}")

        yield

        await client.disconnect()
        logger.info("Accounts Gateway shutting down")

    app = FastAPI(
        title="Accounts Gateway",
        description="Proxy between the accounts UI and the SAP CRM account service",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.crm_config = config
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    register_error_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(accounts.router, prefix="/api/accounts", tags=["Accounts"])
    app.include_router(lookups.router, prefix="/api", tags=["Lookups"])

    return app


def main() -> None:
    """Run the gateway with uvicorn; exit with status 1 on missing config."""
    settings = ServerSettings.from_env()
    configure_logging(level=logging.INFO, json_format=settings.log_json)

    try:
        config = CRMApiConfig.from_env()
    except ConfigurationError as e:
        logger.error(f"ERROR: {e}")
        logger.error("Set CRM_BASE_URL, CRM_USERNAME and CRM_PASSWORD in the environment or .env")
        sys.exit(1)

    logger.info(f"Environment: {settings.environment}")
    logger.info(f"CRM Base URL: {config.base_url}")
    logger.info(f"CRM Username: {config.auth.username}")
    logger.info(f"CRM Password: {config.auth.masked_password()}")

    import uvicorn
    uvicorn.run(create_app(config, settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
