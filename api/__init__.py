"""API Package.

FastAPI gateway between the accounts UI and the SAP CRM.
"""

from api.server import create_app, main

__all__ = [
    "create_app",
    "main",
]
