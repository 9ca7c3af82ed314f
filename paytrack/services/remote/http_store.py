"""
HTTP Remote Store

Talks to the payments REST API:

    POST   /payments                    create
    PUT    /payments/{id}               update
    DELETE /payments/{id}               delete
    GET    /payments?workspaceId&year&month   list one month

Bodies are camelCase JSON produced from the Payment model aliases.

Status mapping:
- 401/403      -> AuthenticationError
- 404          -> NotFoundError (ignored for DELETE)
- 409          -> DuplicateError
- 5xx, network -> StoreConnectionError (retried with exponential backoff)
- other 4xx    -> RemoteStoreError
"""

from typing import Any, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from paytrack.config import RemoteStoreSettings, get_settings
from paytrack.models.ledger import Payment
from paytrack.services.remote.interface import (
    AuthenticationError,
    DuplicateError,
    NotFoundError,
    RemotePaymentStore,
    RemoteStoreError,
    StoreConnectionError,
)


logger = structlog.get_logger(__name__)


class HttpRemoteStore(RemotePaymentStore):
    """
    RemotePaymentStore over HTTP using httpx.

    Use as an async context manager, or call aclose() when done.
    """

    def __init__(
        self,
        settings: Optional[RemoteStoreSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_wait: Optional[wait_base] = None,
    ):
        self._settings = settings or get_settings().remote_store
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)

        headers = {"Content-Type": "application/json"}
        if self._settings.api_token:
            headers["Authorization"] = f"Bearer {self._settings.api_token}"

        self._client = httpx.AsyncClient(
            base_url=self._settings.base_url,
            headers=headers,
            timeout=self._settings.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "HttpRemoteStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return

        detail = f"{response.request.method} {response.request.url.path} -> {status}"
        if status in (401, 403):
            raise AuthenticationError(detail)
        if status == 404:
            raise NotFoundError(detail)
        if status == 409:
            raise DuplicateError(detail)
        if status >= 500:
            raise StoreConnectionError(detail)
        raise RemoteStoreError(detail)

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise StoreConnectionError(f"{method} {url} failed: {e}") from e

        logger.debug(
            "remote_request",
            method=method,
            url=url,
            status=response.status_code,
        )
        self._raise_for_status(response)
        return response

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, retrying connection-level failures only."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_retries),
            wait=self._retry_wait,
            retry=retry_if_exception_type(StoreConnectionError),
            reraise=True,
        ):
            with attempt:
                return await self._send(method, url, **kwargs)

    @staticmethod
    def _payload(payment: Payment) -> dict:
        return payment.model_dump(mode="json", by_alias=True)

    @staticmethod
    def _parse_payment(response: httpx.Response, fallback: Payment) -> Payment:
        """Stored payment from the response body; the sent snapshot if the body is empty."""
        if not response.content:
            return fallback
        try:
            return Payment.model_validate(response.json())
        except ValueError as e:
            raise RemoteStoreError(f"Malformed payment in response: {e}") from e

    # -------------------------------------------------------------------------
    # RemotePaymentStore
    # -------------------------------------------------------------------------

    async def create(self, payment: Payment) -> Payment:
        response = await self._request("POST", "/payments", json=self._payload(payment))
        return self._parse_payment(response, payment)

    async def update(self, payment_id: str, payment: Payment) -> Payment:
        response = await self._request(
            "PUT",
            f"/payments/{payment_id}",
            json=self._payload(payment),
        )
        return self._parse_payment(response, payment)

    async def delete(self, payment_id: str) -> None:
        try:
            await self._request("DELETE", f"/payments/{payment_id}")
        except NotFoundError:
            logger.info("remote_delete_missing", payment_id=payment_id)

    async def list_payments(
        self,
        workspace_id: str,
        year: int,
        month: int,
    ) -> list[Payment]:
        response = await self._request(
            "GET",
            "/payments",
            params={"workspaceId": workspace_id, "year": year, "month": month},
        )
        try:
            body = response.json()
            items = body.get("payments", []) if isinstance(body, dict) else body
            return [Payment.model_validate(item) for item in items]
        except ValueError as e:
            raise RemoteStoreError(f"Malformed payment list in response: {e}") from e
