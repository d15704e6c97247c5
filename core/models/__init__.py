"""Core data models - domain types independent of the CRM wire format."""

from core.models.account import (
    Account,
    AccountChanges,
    AccountStatus,
    AnalyticsRow,
    ContactOption,
    CustomerRole,
    DomainBase,
    EmployeeOption,
    IndustryOption,
)

__all__ = [
    "Account",
    "AccountChanges",
    "AccountStatus",
    "AnalyticsRow",
    "ContactOption",
    "CustomerRole",
    "DomainBase",
    "EmployeeOption",
    "IndustryOption",
]
