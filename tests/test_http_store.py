"""
Tests for the HTTP remote store.

Requests go through httpx.MockTransport; nothing leaves the process.
"""

import asyncio
import json
from decimal import Decimal

import httpx
import pytest
from tenacity import wait_none

from paytrack.config import RemoteStoreSettings
from paytrack.services.remote import (
    AuthenticationError,
    DuplicateError,
    HttpRemoteStore,
    NotFoundError,
    RemoteStoreError,
    StoreConnectionError,
)

from conftest import make_payment


def make_store(handler, max_retries: int = 1) -> tuple[HttpRemoteStore, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    settings = RemoteStoreSettings(
        base_url="https://api.example.test/",
        api_token="secret-token",
        max_retries=max_retries,
    )
    store = HttpRemoteStore(
        settings,
        transport=httpx.MockTransport(recording_handler),
        retry_wait=wait_none(),
    )
    return store, requests


class TestRequests:
    """Requests match the payments API."""

    def test_create_posts_camel_case_json(self):
        payment = make_payment("p-1", "25.5", description="coffee")
        store, requests = make_store(lambda request: httpx.Response(201, json=json.loads(request.content)))

        stored = asyncio.run(store.create(payment))

        [request] = requests
        assert request.method == "POST"
        assert request.url.path == "/payments"
        assert request.headers["Authorization"] == "Bearer secret-token"
        body = json.loads(request.content)
        assert body["id"] == "p-1"
        assert body["date"] == "2026-10-01"
        assert Decimal(body["amount"]) == Decimal("25.5")
        assert body["currencyCode"] == "MAD"
        assert body["workspaceId"] == "ws-1"
        assert stored.amount == Decimal("25.5")

    def test_update_puts_to_payment_url(self):
        store, requests = make_store(lambda request: httpx.Response(200, json=json.loads(request.content)))
        asyncio.run(store.update("p-1", make_payment("p-1", "7")))

        [request] = requests
        assert request.method == "PUT"
        assert request.url.path == "/payments/p-1"

    def test_empty_response_returns_sent_payment(self):
        payment = make_payment("p-1", "7")
        store, _ = make_store(lambda request: httpx.Response(204))
        assert asyncio.run(store.update("p-1", payment)) == payment

    def test_delete(self):
        store, requests = make_store(lambda request: httpx.Response(204))
        asyncio.run(store.delete("p-1"))
        assert requests[0].method == "DELETE"
        assert requests[0].url.path == "/payments/p-1"

    def test_delete_of_missing_payment_is_not_an_error(self):
        store, _ = make_store(lambda request: httpx.Response(404))
        asyncio.run(store.delete("p-1"))

    def test_list_sends_month_query(self):
        remote_payment = make_payment("r-1", "40").model_dump(mode="json", by_alias=True)
        store, requests = make_store(lambda request: httpx.Response(200, json={"payments": [remote_payment]}))

        payments = asyncio.run(store.list_payments("ws-1", 2026, 9))

        params = requests[0].url.params
        assert (params["workspaceId"], params["year"], params["month"]) == ("ws-1", "2026", "9")
        assert [p.id for p in payments] == ["r-1"]

    def test_list_accepts_bare_array(self):
        remote_payment = make_payment("r-1", "40").model_dump(mode="json", by_alias=True)
        store, _ = make_store(lambda request: httpx.Response(200, json=[remote_payment]))
        assert len(asyncio.run(store.list_payments("ws-1", 2026, 9))) == 1

    def test_list_rejects_malformed_payments(self):
        store, _ = make_store(lambda request: httpx.Response(200, json=[{"id": "r-1"}]))
        with pytest.raises(RemoteStoreError):
            asyncio.run(store.list_payments("ws-1", 2026, 9))


class TestErrorMapping:
    """HTTP statuses map onto the remote store error hierarchy."""

    @pytest.mark.parametrize(
        "status, error",
        [
            (401, AuthenticationError),
            (403, AuthenticationError),
            (404, NotFoundError),
            (409, DuplicateError),
            (422, RemoteStoreError),
            (503, StoreConnectionError),
        ],
    )
    def test_status_mapping(self, status, error):
        store, _ = make_store(lambda request: httpx.Response(status))
        with pytest.raises(error):
            asyncio.run(store.create(make_payment()))

    def test_transport_errors_become_connection_errors(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        store, _ = make_store(refuse)
        with pytest.raises(StoreConnectionError):
            asyncio.run(store.create(make_payment()))


class TestRetry:
    """Connection failures are retried, other errors are not."""

    def test_retries_server_errors_then_succeeds(self):
        responses = iter([httpx.Response(503), httpx.Response(502), httpx.Response(204)])
        store, requests = make_store(lambda request: next(responses), max_retries=3)

        asyncio.run(store.delete("p-1"))
        assert len(requests) == 3

    def test_gives_up_after_max_retries(self):
        store, requests = make_store(lambda request: httpx.Response(503), max_retries=2)
        with pytest.raises(StoreConnectionError):
            asyncio.run(store.create(make_payment()))
        assert len(requests) == 2

    def test_client_errors_are_not_retried(self):
        store, requests = make_store(lambda request: httpx.Response(409), max_retries=3)
        with pytest.raises(DuplicateError):
            asyncio.run(store.create(make_payment()))
        assert len(requests) == 1
