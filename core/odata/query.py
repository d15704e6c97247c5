"""OData query construction.

Builds the `$top/$skip/$orderby/$filter/$count/$select/$search` query options
used for list retrieval, and `$filter` conjunctions from column filter
selections.

Only free-text search terms and filter values are escaped here. Sort and
filter expressions passed in verbatim must already be valid predicate syntax.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence
from urllib.parse import urlencode


def escape_search_term(term: str) -> str:
    """Escape double quotes and wrap the term in quotes for $search."""
    escaped = term.replace('"', '\\"')
    return f'"{escaped}"'


def escape_literal(value: str) -> str:
    """Escape a string literal for an OData equality clause (' -> '')."""
    return value.replace("'", "''")


@dataclass
class ODataQuery:
    """OData list query options.

    Absent options (None or empty) are omitted from the output, never sent as
    empty values.
    """
    top: Optional[int] = None
    skip: Optional[int] = None
    orderby: Optional[str] = None
    filter: Optional[str] = None
    search: Optional[str] = None
    select: Optional[Sequence[str]] = None
    count: Optional[bool] = None

    def to_params(self) -> Dict[str, str]:
        """Return the query options as an ordered parameter dict."""
        params: Dict[str, str] = {}

        if self.top is not None:
            params["$top"] = str(self.top)
        if self.skip is not None:
            params["$skip"] = str(self.skip)
        if self.orderby:
            params["$orderby"] = self.orderby
        if self.filter:
            params["$filter"] = self.filter
        if self.count is not None:
            params["$count"] = "true" if self.count else "false"
        if self.select:
            params["$select"] = ",".join(self.select)
        if self.search:
            params["$search"] = escape_search_term(self.search)

        return params

    def to_query_string(self) -> str:
        """Return "?..." for the supplied options, or "" when there are none."""
        params = self.to_params()
        return f"?{urlencode(params)}" if params else ""


def build_query(
    top: Optional[int] = None,
    skip: Optional[int] = None,
    orderby: Optional[str] = None,
    filter: Optional[str] = None,
    search: Optional[str] = None,
    select: Optional[Sequence[str]] = None,
    count: Optional[bool] = None,
) -> str:
    """Build an OData query string from the supplied options."""
    return ODataQuery(
        top=top,
        skip=skip,
        orderby=orderby,
        filter=filter,
        search=search,
        select=select,
        count=count,
    ).to_query_string()


# =============================================================================
# Column filters
# =============================================================================

@dataclass(frozen=True)
class ColumnFilter:
    """A filterable column and the OData field path it maps to."""
    key: str
    label: str
    api_field: str
    type: str = "multi"  # "single" or "multi"


@dataclass
class FilterRegistry:
    """Ordered set of column filters.

    Clause order in generated filters follows registration order, so the
    output is deterministic regardless of selection order.
    """
    filters: List[ColumnFilter] = field(default_factory=list)

    def get(self, key: str) -> Optional[ColumnFilter]:
        for column in self.filters:
            if column.key == key:
                return column
        return None

    def keys(self) -> List[str]:
        return [column.key for column in self.filters]

    def build_filter(self, selections: Mapping[str, Iterable[str]]) -> str:
        return build_filter(selections, self)


def _equality(api_field: str, value: str) -> str:
    return f"{api_field} eq '{escape_literal(value)}'"


def build_filter(
    selections: Mapping[str, Iterable[str]],
    registry: FilterRegistry,
) -> str:
    """Build an OData $filter conjunction from column selections.

    One selected value gives `field eq 'v'`; several give
    `(field eq 'a' or field eq 'b')`. Keys without values, or unknown to the
    registry, are skipped.

    Example:
        (lifeCycleStatus eq 'ACTIVE' or lifeCycleStatus eq 'BLOCKED') and defaultAddress/country eq 'US'
    """
    clauses: List[str] = []

    for column in registry.filters:
        values = [value for value in selections.get(column.key) or () if value]
        if not values:
            continue
        if len(values) == 1:
            clauses.append(_equality(column.api_field, values[0]))
        else:
            parts = " or ".join(_equality(column.api_field, value) for value in values)
            clauses.append(f"({parts})")

    return " and ".join(clauses)


def parse_filter_values(raw: Optional[str]) -> List[str]:
    """Split a comma-separated URL parameter into trimmed, non-empty values."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


ACCOUNT_FILTERS = FilterRegistry([
    ColumnFilter(key="status", label="Status", api_field="lifeCycleStatus"),
    ColumnFilter(key="priority", label="Priority", api_field="customerABCClassification"),
    ColumnFilter(key="country", label="Country", api_field="defaultAddress/country"),
    ColumnFilter(key="industry", label="Industry", api_field="industrialSector"),
])
