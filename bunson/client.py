"""Async HTTP client for JSON-RPC 2.0 servers."""

import logging
from collections.abc import Iterable
from typing import Any, NotRequired, TypedDict

import httpx

from bunson.core.errors import BunsonError
from bunson.rpc.protocol import (
    PROTOCOL_VERSION,
    ParseError,
    parse_batch_response,
    parse_response,
    serialize_request,
)
from bunson.rpc.types import Request, RequestId, Response

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://127.0.0.1:8765"


class ClientError(BunsonError):
    """Exception for client-side errors (connection, timeout, protocol)."""


class MethodNotAllowedError(ClientError):
    """Raised when calling a method that is not in the client's allow-list."""

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Method {method} not found")


class BatchEntry(TypedDict):
    """One call in a batch. Leaving out "id" makes it a notification."""

    method: str
    params: NotRequired[list[Any] | dict[str, Any] | None]
    id: NotRequired[RequestId]


class BunsonClient:
    """Async HTTP client for JSON-RPC 2.0 servers.

    Only methods in the allow-list can be called; anything else fails with
    MethodNotAllowedError before a request is sent.

    Usage:
        async with BunsonClient("http://localhost:8765", methods=["hello"]) as client:
            response = await client.call("hello", {"name": "world"}, id=1)
            print(response.result)
    """

    def __init__(
        self,
        url: str = DEFAULT_URL,
        methods: Iterable[str] | None = None,
        timeout: float = 60.0,
    ) -> None:
        """Initialize the client.

        Args:
            url: URL of the JSON-RPC endpoint.
            methods: Method names the client may call.
            timeout: Request timeout in seconds.
        """
        self.url = url
        self.methods: set[str] = set(methods or ())
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None
        logger.debug("BunsonClient initialized: url=%s, timeout=%s", url, timeout)

    async def __aenter__(self) -> "BunsonClient":
        """Enter async context, create httpx client."""
        self._client = httpx.AsyncClient(timeout=self._timeout)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context, close httpx client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def add_method(self, method: str | Iterable[str]) -> None:
        """Allow one method name, or several."""
        if isinstance(method, str):
            self.methods.add(method)
        else:
            self.methods.update(method)

    def remove_method(self, method: str | Iterable[str]) -> None:
        """Disallow one method name, or several. Unknown names are ignored."""
        if isinstance(method, str):
            self.methods.discard(method)
        else:
            self.methods.difference_update(method)

    def _check_allowed(self, method: str) -> None:
        if method not in self.methods:
            raise MethodNotAllowedError(method)

    async def _post(self, payload: str) -> httpx.Response:
        """POST a serialized payload, mapping transport failures to ClientError."""
        if self._client is None:
            raise ClientError("Client not initialized. Use 'async with' context manager.")

        try:
            return await self._client.post(
                self.url,
                content=payload,
                headers={"Content-Type": "application/json"},
            )
        except httpx.ConnectError as e:
            logger.warning("Connection failed to %s: %s", self.url, e)
            raise ClientError(f"Connection failed: {e}") from e
        except httpx.TimeoutException as e:
            logger.warning("Request timed out: url=%s, timeout=%s", self.url, self._timeout)
            raise ClientError(f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.warning("HTTP error talking to %s: %s", self.url, e)
            raise ClientError(f"HTTP error: {e}") from e

    async def call(
        self,
        method: str,
        params: list[Any] | dict[str, Any] | None = None,
        id: RequestId = None,
    ) -> Response:
        """Call a remote method and return its response envelope.

        Args:
            method: The RPC method name.
            params: Positional or named params. Empty params are not sent.
            id: Request id. Sent as null when not given.

        Returns:
            The parsed Response. JSON-RPC errors are returned, not raised.

        Raises:
            MethodNotAllowedError: If the method is not in the allow-list.
            ClientError: On connection error, timeout, or an invalid response.
        """
        self._check_allowed(method)

        request = Request(jsonrpc=PROTOCOL_VERSION, method=method, params=params, id=id)
        logger.debug("RPC call: method=%s, id=%s", method, id)
        response = await self._post(serialize_request(request))

        if not response.content:
            raise ClientError(f"Server sent no response (HTTP {response.status_code})")
        try:
            return parse_response(response.text)
        except ParseError as e:
            logger.warning("Invalid server response for method=%s: %s", method, e)
            raise ClientError(f"Invalid server response: {e}") from e

    async def notify(
        self,
        method: str,
        params: list[Any] | dict[str, Any] | None = None,
    ) -> None:
        """Send a notification. No response body is read.

        Raises:
            MethodNotAllowedError: If the method is not in the allow-list.
            ClientError: On connection error or timeout.
        """
        self._check_allowed(method)

        request = Request(
            jsonrpc=PROTOCOL_VERSION, method=method, params=params, notification=True
        )
        logger.debug("RPC notify: method=%s", method)
        await self._post(serialize_request(request))

    async def batch(self, requests: Iterable[BatchEntry]) -> list[Response]:
        """Send several calls in one batch.

        Args:
            requests: Entries with "method", optional "params", and optional
                "id". Entries without "id" are notifications.

        Returns:
            The responses sent back by the server; empty when the batch held
            only notifications.

        Raises:
            MethodNotAllowedError: If any method is not in the allow-list.
            ClientError: On connection error, timeout, or an invalid response.
        """
        batch: list[Request] = []
        for entry in requests:
            self._check_allowed(entry["method"])
            batch.append(
                Request(
                    jsonrpc=PROTOCOL_VERSION,
                    method=entry["method"],
                    params=entry.get("params"),
                    id=entry.get("id"),
                    notification="id" not in entry,
                )
            )

        logger.debug("RPC batch: %d requests", len(batch))
        response = await self._post(serialize_request(batch))

        if not response.content:
            return []
        try:
            return parse_batch_response(response.text)
        except ParseError as e:
            logger.warning("Invalid server response for batch: %s", e)
            raise ClientError(f"Invalid server response: {e}") from e
