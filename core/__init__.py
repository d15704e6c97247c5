"""Core module - CRM-neutral building blocks.

Domain models, OData query construction and observability. CRM-specific
logic (wire models, field mapping, HTTP client) belongs in /connectors/.
"""

__version__ = "1.0.0"
