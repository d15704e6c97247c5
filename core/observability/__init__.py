"""
Observability Module for the Accounts Gateway

Provides structured logging with correlation IDs (request, account,
update attempt) shared by the gateway and the client-side store.
"""

from core.observability.logging import (
    CorrelationContext,
    configure_logging,
    get_correlation_context,
    get_logger,
    with_correlation,
)

__all__ = [
    "CorrelationContext",
    "configure_logging",
    "get_correlation_context",
    "get_logger",
    "with_correlation",
]
