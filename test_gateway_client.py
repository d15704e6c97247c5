"""Tests for the gateway HTTP client against an in-process fake gateway."""

import json
from typing import Any, Dict, List, Tuple

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer as AppServer

from accounts.gateway_client import (
    AccountLockedError,
    GatewayClient,
    GatewayConnectionError,
    GatewayError,
)
from core.odata.query import ODataQuery


class FakeGateway:
    """Records requests and replays queued (status, body) responses."""

    def __init__(self):
        self.requests: List[Dict[str, Any]] = []
        self.responses: List[Tuple[int, Any]] = []
        self.app = web.Application()
        self.app.router.add_route("*", "/api/{tail:.*}", self.handle)

    def respond(self, status: int, body: Any = None) -> None:
        self.responses.append((status, body))

    async def handle(self, request: web.Request) -> web.Response:
        raw = await request.text()
        self.requests.append({
            "method": request.method,
            "path": request.path,
            "query": dict(request.query),
            "headers": dict(request.headers),
            "body": json.loads(raw) if raw else None,
        })
        status, body = self.responses.pop(0) if self.responses else (200, {"value": []})
        if status == 204:
            return web.Response(status=204)
        return web.json_response(body, status=status)


@pytest.fixture
async def fake_gateway():
    fake = FakeGateway()
    server = AppServer(fake.app)
    await server.start_server()
    fake.base_url = str(server.make_url("/api"))
    yield fake
    await server.close()


@pytest.fixture
async def gateway(fake_gateway):
    async with GatewayClient(fake_gateway.base_url) as client:
        yield client


async def test_fetch_accounts_sends_query_options(gateway, fake_gateway):
    fake_gateway.respond(200, {"value": [{"id": "a"}], "count": 41})

    body = await gateway.fetch_accounts(ODataQuery(top=30, skip=0, search='say "hi"', count=True))

    assert body["count"] == 41
    request = fake_gateway.requests[0]
    assert request["path"] == "/api/accounts"
    assert request["query"] == {
        "$top": "30",
        "$skip": "0",
        "$count": "true",
        "$search": '"say \\"hi\\""',
    }


async def test_fresh_fetch_busts_caches(gateway, fake_gateway):
    fake_gateway.respond(200, {"value": {"id": "abc"}})

    await gateway.fetch_account("abc", fresh=True)

    request = fake_gateway.requests[0]
    assert request["path"] == "/api/accounts/abc"
    assert request["query"]["_"].isdigit()
    assert request["headers"]["Cache-Control"] == "no-cache"


async def test_update_sends_unquoted_token_as_merge_patch(gateway, fake_gateway):
    fake_gateway.respond(200, {"value": {"id": "abc"}})

    await gateway.update_account("abc", {"ownerId": "e-1"}, "2024-05-01T10:00:00.000Z")

    request = fake_gateway.requests[0]
    assert request["method"] == "PATCH"
    assert request["headers"]["If-Match"] == "2024-05-01T10:00:00.000Z"
    assert request["headers"]["Content-Type"] == "application/merge-patch+json"
    assert request["body"] == {"ownerId": "e-1"}


async def test_locked_response_raises_account_locked(gateway, fake_gateway):
    fake_gateway.respond(423, {"error": "CRM API Error: 423 - locked", "status": 423})

    with pytest.raises(AccountLockedError) as exc_info:
        await gateway.update_account("abc", {}, "t")

    assert exc_info.value.status_code == 423
    assert len(fake_gateway.requests) == 1


async def test_other_errors_carry_gateway_message(gateway, fake_gateway):
    fake_gateway.respond(500, {"error": "CRM API Error: 500 - boom"})

    with pytest.raises(GatewayError) as exc_info:
        await gateway.create_account({"formattedName": "X"})

    assert not isinstance(exc_info.value, AccountLockedError)
    assert exc_info.value.status_code == 500
    assert "Failed to create account: 500 CRM API Error: 500 - boom" == str(exc_info.value)


async def test_delete_and_lookups(gateway, fake_gateway):
    fake_gateway.respond(204)
    fake_gateway.respond(200, {"value": [{"code": "0001", "description": "Retail"}]})
    fake_gateway.respond(200, {"value": []})
    fake_gateway.respond(200, {"value": []})

    assert await gateway.delete_account("abc") is None
    sectors = await gateway.fetch_industrial_sectors()
    await gateway.fetch_contacts()
    await gateway.fetch_employees()

    assert sectors["value"][0]["code"] == "0001"
    assert [r["path"] for r in fake_gateway.requests] == [
        "/api/accounts/abc",
        "/api/industrial-sectors",
        "/api/contacts",
        "/api/employees",
    ]


async def test_unreachable_gateway_raises_connection_error(unused_tcp_port):
    async with GatewayClient(f"http://127.0.0.1:{unused_tcp_port}/api", timeout_seconds=5) as client:
        with pytest.raises(GatewayConnectionError) as exc_info:
            await client.fetch_account("abc")

    assert exc_info.value.status_code == 0
