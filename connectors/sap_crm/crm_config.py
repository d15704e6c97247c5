"""SAP CRM connection configuration.

Credentials come from the environment (optionally a .env file at the repo
root). The Basic authorization header is computed once, when the config is
built, and the config object is passed explicitly to the gateway app and the
upstream client.
"""

import base64
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv


REPO_ROOT = Path(__file__).resolve().parents[2]
ENV_PATH = REPO_ROOT / ".env"

REQUIRED_ENV_VARS = ("CRM_BASE_URL", "CRM_USERNAME", "CRM_PASSWORD")


class ConfigurationError(ValueError):
    """Required configuration is missing or invalid."""
    def __init__(self, message: str, missing: tuple = ()):
        super().__init__(message)
        self.missing = missing


@dataclass
class CRMAuthConfig:
    """Basic authentication credentials for the CRM API.

    Attributes:
        username: Technical user name
        password: Technical user password
    """
    username: str
    password: str
    _authorization_header: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        token = base64.b64encode(f"{self.username}:{self.password}".encode("utf-8"))
        self._authorization_header = "Basic " + token.decode("ascii")

    def get_authorization_header(self) -> str:
        """Get the Authorization header value."""
        return self._authorization_header

    def masked_password(self) -> str:
        if not self.password:
            return "NOT SET"
        return "***" + self.password[-2:]

    def __repr__(self) -> str:
        return f"CRMAuthConfig(username={self.username!r}, password={self.masked_password()!r})"


@dataclass
class CRMApiConfig:
    """Configuration for the CRM API client."""
    base_url: str
    auth: CRMAuthConfig
    timeout_seconds: int = 30
    accounts_path: str = "/sap/c4c/api/v1/account-service/accounts"
    industrial_sectors_path: str = "/sap/c4c/api/v1/business-partner-service/industrialSectors"
    contact_persons_path: str = "/sap/c4c/api/v1/contact-person-service/contactPersons"
    employees_path: str = "/sap/c4c/api/v1/employee-service/employees"
    lookup_page_size: int = 100

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")

    def url_for(self, path: str) -> str:
        """Get the full URL for a resource path."""
        return f"{self.base_url}{path}"

    def account_url(self, account_id: Optional[str] = None) -> str:
        url = self.url_for(self.accounts_path)
        if account_id:
            return f"{url}/{account_id}"
        return url

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        env_path: Optional[Path] = ENV_PATH,
    ) -> "CRMApiConfig":
        """Build the config from environment variables.

        Reads:
        - CRM_BASE_URL: CRM tenant base URL
        - CRM_USERNAME: technical user
        - CRM_PASSWORD: technical user password
        - CRM_TIMEOUT_SECONDS: request timeout (optional, default 30)

        Raises:
            ConfigurationError: If any required variable is missing
        """
        if environ is None:
            if env_path is not None and env_path.exists():
                load_dotenv(env_path)
            environ = os.environ

        missing = tuple(name for name in REQUIRED_ENV_VARS if not environ.get(name))
        if missing:
            raise ConfigurationError(
                "Missing required environment variables: " + ", ".join(missing),
                missing=missing,
            )

        timeout = environ.get("CRM_TIMEOUT_SECONDS")
        try:
            timeout_seconds = int(timeout) if timeout else 30
        except ValueError:
            raise ConfigurationError(f"CRM_TIMEOUT_SECONDS must be an integer, got {timeout!r}")

        return cls(
            base_url=environ["CRM_BASE_URL"],
            auth=CRMAuthConfig(
                username=environ["CRM_USERNAME"],
                password=environ["CRM_PASSWORD"],
            ),
            timeout_seconds=timeout_seconds,
        )


@dataclass
class ServerSettings:
    """Gateway process settings."""
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "development"
    log_json: bool = False
    cors_origins: tuple = ("*",)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        environ = os.environ if environ is None else environ
        origins = environ.get("CORS_ORIGINS", "*")
        try:
            port = int(environ.get("PORT", "3000"))
        except ValueError:
            raise ConfigurationError(f"PORT must be an integer, got {environ.get('PORT')!r}")
        return cls(
            host=environ.get("HOST", "0.0.0.0"),
            port=port,
            environment=environ.get("APP_ENV", "development"),
            log_json=environ.get("LOG_JSON", "").lower() in ("1", "true", "yes"),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) or ("*",),
        )
