"""CRM Connectors - upstream system integrations.

Core models are CRM-neutral. This package handles:
- CRM-specific authentication
- Data transformation (domain <-> wire format)
- API communication
"""
