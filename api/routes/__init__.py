"""API Routes Package."""

from api.routes import accounts, health, lookups

__all__ = [
    "accounts",
    "health",
    "lookups",
]
