"""Tests for OData query and filter construction."""

from urllib.parse import parse_qs

from core.odata.query import (
    ACCOUNT_FILTERS,
    ColumnFilter,
    FilterRegistry,
    ODataQuery,
    build_filter,
    build_query,
    escape_search_term,
    parse_filter_values,
)


class TestODataQuery:
    """Query option construction."""

    def test_no_options_gives_empty_string(self):
        assert build_query() == ""
        assert ODataQuery().to_params() == {}

    def test_only_supplied_options_are_emitted(self):
        params = ODataQuery(top=30, orderby="formattedName asc").to_params()
        assert params == {"$top": "30", "$orderby": "formattedName asc"}

    def test_empty_strings_are_treated_as_absent(self):
        params = ODataQuery(filter="", search="", orderby="").to_params()
        assert params == {}

    def test_zero_skip_is_supplied(self):
        assert ODataQuery(skip=0).to_params() == {"$skip": "0"}

    def test_all_options(self):
        params = ODataQuery(
            top=10,
            skip=20,
            orderby="formattedName asc",
            filter="lifeCycleStatus eq 'ACTIVE'",
            search="acme",
            select=["id", "formattedName"],
            count=True,
        ).to_params()

        assert list(params) == ["$top", "$skip", "$orderby", "$filter", "$count", "$select", "$search"]
        assert params["$select"] == "id,formattedName"
        assert params["$count"] == "true"
        assert params["$search"] == '"acme"'

    def test_filter_and_orderby_are_not_escaped(self):
        params = ODataQuery(filter="name eq 'it''s'", orderby="a desc").to_params()
        assert params["$filter"] == "name eq 'it''s'"
        assert params["$orderby"] == "a desc"

    def test_query_string_round_trips_through_url_parsing(self):
        query = build_query(top=5, search='say "hi"')
        assert query.startswith("?")
        parsed = parse_qs(query[1:])
        assert parsed["$top"] == ["5"]
        assert parsed["$search"] == ['"say \\"hi\\""']


class TestSearchEscaping:

    def test_double_quotes_are_escaped_then_wrapped(self):
        assert escape_search_term('say "hi"') == '"say \\"hi\\""'

    def test_plain_term_is_wrapped(self):
        assert escape_search_term("acme") == '"acme"'


class TestFilterBuilder:
    """Column filter conjunctions."""

    registry = FilterRegistry([
        ColumnFilter(key="status", label="Status", api_field="lifeCycleStatus"),
        ColumnFilter(key="country", label="Country", api_field="defaultAddress/country"),
    ])

    def test_single_value_is_one_equality_clause(self):
        assert build_filter({"status": ["ACTIVE"]}, self.registry) == "lifeCycleStatus eq 'ACTIVE'"

    def test_multiple_values_form_parenthesized_disjunction(self):
        result = build_filter({"status": ["ACTIVE", "BLOCKED", "OBSOLETE"]}, self.registry)
        assert result == (
            "(lifeCycleStatus eq 'ACTIVE' or lifeCycleStatus eq 'BLOCKED' "
            "or lifeCycleStatus eq 'OBSOLETE')"
        )
        assert result.count(" or ") == 2

    def test_keys_are_joined_with_and_in_registry_order(self):
        selections = {"country": ["US"], "status": ["ACTIVE", "BLOCKED"]}
        assert build_filter(selections, self.registry) == (
            "(lifeCycleStatus eq 'ACTIVE' or lifeCycleStatus eq 'BLOCKED') "
            "and defaultAddress/country eq 'US'"
        )

    def test_single_quotes_are_doubled(self):
        result = build_filter({"country": ["O'Brien"]}, self.registry)
        assert result == "defaultAddress/country eq 'O''Brien'"

    def test_keys_without_values_are_omitted(self):
        assert build_filter({"status": [], "country": ["DE"]}, self.registry) == \
            "defaultAddress/country eq 'DE'"
        assert build_filter({"status": []}, self.registry) == ""

    def test_empty_string_values_are_skipped(self):
        assert build_filter({"status": ["", "ACTIVE"]}, self.registry) == "lifeCycleStatus eq 'ACTIVE'"

    def test_unknown_keys_are_ignored(self):
        assert build_filter({"color": ["red"]}, self.registry) == ""

    def test_registry_method_and_lookup(self):
        assert self.registry.build_filter({"status": ["ACTIVE"]}) == "lifeCycleStatus eq 'ACTIVE'"
        assert self.registry.get("country").api_field == "defaultAddress/country"
        assert self.registry.get("missing") is None

    def test_default_account_registry(self):
        assert ACCOUNT_FILTERS.keys() == ["status", "priority", "country", "industry"]
        result = ACCOUNT_FILTERS.build_filter({"industry": ["0001"], "priority": ["A"]})
        assert result == "customerABCClassification eq 'A' and industrialSector eq '0001'"


def test_parse_filter_values():
    assert parse_filter_values("ACTIVE, BLOCKED,,  ") == ["ACTIVE", "BLOCKED"]
    assert parse_filter_values("") == []
    assert parse_filter_values(None) == []
