"""OData query construction for list retrieval and column filtering."""

from core.odata.query import (
    ACCOUNT_FILTERS,
    ColumnFilter,
    FilterRegistry,
    ODataQuery,
    build_filter,
    build_query,
    escape_literal,
    escape_search_term,
    parse_filter_values,
)

__all__ = [
    "ACCOUNT_FILTERS",
    "ColumnFilter",
    "FilterRegistry",
    "ODataQuery",
    "build_filter",
    "build_query",
    "escape_literal",
    "escape_search_term",
    "parse_filter_values",
]
