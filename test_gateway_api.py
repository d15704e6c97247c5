"""Tests for the gateway HTTP surface (upstream client replaced by a mock)."""

import json
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_crm_client
from api.server import create_app, main
from connectors.sap_crm.crm_client import CRMApiError, CRMLockedError
from connectors.sap_crm.crm_config import ConfigurationError


@pytest.fixture
def crm_client():
    return AsyncMock()


@pytest.fixture
def http(crm_config, server_settings, crm_client):
    app = create_app(crm_config, server_settings)
    app.dependency_overrides[get_crm_client] = lambda: crm_client
    return TestClient(app)


class TestHealth:

    def test_health(self, http):
        response = http.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "T" in data["timestamp"]

    def test_request_id_is_echoed(self, http):
        response = http.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_is_generated(self, http):
        assert http.get("/health").headers["X-Request-ID"]


class TestListAccounts:

    def test_forwards_only_supplied_options(self, http, crm_client):
        crm_client.list_accounts.return_value = {"value": [], "count": 0}

        response = http.get("/api/accounts", params={"$top": "10", "$search": '"acme"', "$skip": ""})

        assert response.status_code == 200
        assert response.json() == {"value": [], "count": 0}
        crm_client.list_accounts.assert_awaited_once_with({"$top": "10", "$search": '"acme"'})

    def test_all_options(self, http, crm_client):
        crm_client.list_accounts.return_value = {"value": []}
        params = {
            "$top": "30",
            "$skip": "60",
            "$orderby": "formattedName asc",
            "$filter": "lifeCycleStatus eq 'ACTIVE'",
            "$count": "true",
            "$select": "id,formattedName",
            "$search": '"x"',
        }

        http.get("/api/accounts", params=params)

        crm_client.list_accounts.assert_awaited_once_with(params)

    def test_upstream_error_keeps_status_and_body(self, http, crm_client):
        crm_client.list_accounts.side_effect = CRMApiError("CRM API Error: 400 - bad filter", 400, "bad filter")

        response = http.get("/api/accounts")

        assert response.status_code == 400
        assert response.json()["upstream_body"] == "bad filter"

    def test_network_failure_is_bad_gateway(self, http, crm_client):
        crm_client.list_accounts.side_effect = aiohttp.ClientConnectionError("refused")

        response = http.get("/api/accounts")

        assert response.status_code == 502


class TestGetAccount:

    def test_not_cacheable_and_query_passthrough(self, http, crm_client):
        crm_client.get_account.return_value = {"value": {"id": "abc"}}

        response = http.get("/api/accounts/abc", params={"_": "1700000000000"})

        assert response.status_code == 200
        assert response.json() == {"value": {"id": "abc"}}
        assert response.headers["Cache-Control"] == "no-store, no-cache, must-revalidate, private"
        crm_client.get_account.assert_awaited_once_with("abc", {"_": "1700000000000"})


class TestCreateAccount:

    def test_created(self, http, crm_client):
        crm_client.create_account.return_value = {"value": {"id": "new"}}

        response = http.post("/api/accounts", json={"formattedName": "Globex"})

        assert response.status_code == 201
        assert response.json() == {"value": {"id": "new"}}
        crm_client.create_account.assert_awaited_once_with({"formattedName": "Globex"})

    def test_non_object_body_rejected(self, http, crm_client):
        response = http.post("/api/accounts", json=["not", "an", "object"])

        assert response.status_code == 400
        crm_client.create_account.assert_not_awaited()


class TestUpdateAccount:

    def _patch(self, http, body, headers):
        return http.patch("/api/accounts/abc", content=json.dumps(body), headers=headers)

    def test_missing_if_match_is_rejected_without_forwarding(self, http, crm_client):
        response = self._patch(http, {"formattedName": "X"}, {"Content-Type": "application/merge-patch+json"})

        assert response.status_code == 400
        assert response.json() == {"error": "If-Match header is required for updates"}
        crm_client.update_account.assert_not_awaited()

    def test_forwards_merge_patch(self, http, crm_client):
        crm_client.update_account.return_value = {"value": {"id": "abc", "formattedName": "X"}}

        response = self._patch(
            http,
            {"formattedName": "X"},
            {"Content-Type": "application/merge-patch+json", "If-Match": "2024-05-01T10:00:00.000Z"},
        )

        assert response.status_code == 200
        assert response.json()["value"]["formattedName"] == "X"
        crm_client.update_account.assert_awaited_once_with(
            "abc", {"formattedName": "X"}, "2024-05-01T10:00:00.000Z"
        )

    def test_plain_json_is_accepted(self, http, crm_client):
        crm_client.update_account.return_value = {"value": {}}

        response = self._patch(http, {}, {"Content-Type": "application/json", "If-Match": "t"})

        assert response.status_code == 200

    def test_unsupported_content_type(self, http, crm_client):
        response = self._patch(http, {}, {"Content-Type": "text/plain", "If-Match": "t"})

        assert response.status_code == 415
        crm_client.update_account.assert_not_awaited()

    def test_lock_conflict_is_passed_through(self, http, crm_client):
        crm_client.update_account.side_effect = CRMLockedError("CRM API Error: 423 - locked", 423, "locked")

        response = self._patch(
            http, {}, {"Content-Type": "application/merge-patch+json", "If-Match": "t"}
        )

        assert response.status_code == 423
        assert response.json()["status"] == 423


class TestDeleteAndLookups:

    def test_delete(self, http, crm_client):
        crm_client.delete_account.return_value = None

        response = http.delete("/api/accounts/abc")

        assert response.status_code == 204
        assert response.content == b""
        crm_client.delete_account.assert_awaited_once_with("abc")

    @pytest.mark.parametrize("path,method", [
        ("/api/industrial-sectors", "list_industrial_sectors"),
        ("/api/contacts", "list_contact_persons"),
        ("/api/employees", "list_employees"),
    ])
    def test_lookup(self, http, crm_client, path, method):
        getattr(crm_client, method).return_value = {"value": [{"id": "1"}]}

        response = http.get(path)

        assert response.status_code == 200
        assert response.json() == {"value": [{"id": "1"}]}


class TestStartup:

    def test_main_exits_when_configuration_missing(self):
        error = ConfigurationError("Missing required environment variables: CRM_BASE_URL")
        with patch("api.server.CRMApiConfig.from_env", side_effect=error):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == 1

    def test_create_app_requires_configuration(self, server_settings):
        with patch("api.server.CRMApiConfig.from_env", side_effect=ConfigurationError("missing")):
            with pytest.raises(ConfigurationError):
                create_app(settings=server_settings)
