"""Pure asyncio HTTP server for JSON-RPC 2.0 requests.

This module provides a minimal HTTP/1.1 server that accepts JSON-RPC 2.0
requests over HTTP POST and hands the decoded body to a JsonRpcHandler.
It uses only asyncio streams; one request is served per connection.

Responses:
    - Body is not valid UTF-8 JSON → 200 with a Parse error envelope (id null)
    - Handler returns nothing (notifications) → 204, no body
    - Otherwise → 200 with the JSON response or batch array
    - OPTIONS → 204 (CORS preflight)
    - Any other HTTP method → 405

When a CorsConfig is given, its headers are added to every response.

Example usage:
    server = HTTPServer({"echo": lambda params: params})
    await server.listen(8765)
    ...
    await server.stop()
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass

from bunson.config.schema import CorsConfig
from bunson.core.errors import BunsonError
from bunson.rpc.handler import JsonRpcHandler
from bunson.rpc.protocol import (
    INVALID_REQUEST,
    PARSE_ERROR,
    SERVER_ERROR,
    make_error_response,
    serialize_response,
)
from bunson.rpc.registry import MethodFunc

logger = logging.getLogger(__name__)

# Constants
DEFAULT_PORT = 8765
DEFAULT_HOST = "127.0.0.1"
MAX_BODY_SIZE = 1_048_576  # 1MB
READ_TIMEOUT = 30.0

# HTTP header limits (DoS protection)
MAX_HEADERS_COUNT = 128
MAX_HEADER_NAME_LEN = 1024
MAX_HEADER_VALUE_LEN = 8192
MAX_TOTAL_HEADERS_SIZE = 32 * 1024
MAX_REQUEST_LINE_LEN = 8192

STATUS_MESSAGES = {
    200: "OK",
    204: "No Content",
    400: "Bad Request",
    405: "Method Not Allowed",
    500: "Internal Server Error",
}


@dataclass
class HttpRequest:
    """Parsed HTTP request.

    Attributes:
        method: HTTP method (GET, POST, etc.)
        path: Request path (e.g., "/")
        headers: Dict of lowercase header names to values
        body: Raw request body, decoded later by process_http_request
    """

    method: str
    path: str
    headers: dict[str, str]
    body: bytes


@dataclass
class HttpResponse:
    """HTTP response produced for one request. body is None for 204."""

    status: int
    body: str | None
    headers: dict[str, str]


class HttpParseError(BunsonError):
    """Raised when HTTP request parsing fails."""


async def _readline(reader: asyncio.StreamReader, what: str) -> bytes:
    try:
        return await asyncio.wait_for(reader.readline(), timeout=READ_TIMEOUT)
    except TimeoutError:
        raise HttpParseError(f"{what} timeout") from None


async def read_http_request(reader: asyncio.StreamReader) -> HttpRequest:
    """Read and parse an HTTP request from the stream.

    Args:
        reader: The asyncio StreamReader to read from.

    Returns:
        Parsed HttpRequest object.

    Raises:
        HttpParseError: If the request is malformed or too large.
    """
    request_line = await _readline(reader, "Request")
    if not request_line:
        raise HttpParseError("Empty request")

    if len(request_line) > MAX_REQUEST_LINE_LEN:
        raise HttpParseError(f"Request line too long: {len(request_line)} > {MAX_REQUEST_LINE_LEN}")

    # Parse request line: "POST / HTTP/1.1\r\n"
    try:
        request_line_str = request_line.decode("utf-8").strip()
    except UnicodeDecodeError as e:
        raise HttpParseError(f"Invalid request encoding: {e}") from e
    parts = request_line_str.split(" ")
    if len(parts) != 3:
        raise HttpParseError(f"Invalid request line: {request_line_str}")
    method, path, _version = parts

    headers: dict[str, str] = {}
    total_headers_size = 0

    while True:
        header_line = await _readline(reader, "Header read")
        if not header_line or header_line in (b"\r\n", b"\n"):
            break  # End of headers

        total_headers_size += len(header_line)
        if total_headers_size > MAX_TOTAL_HEADERS_SIZE:
            raise HttpParseError(
                f"Total headers size exceeds limit: {total_headers_size} > {MAX_TOTAL_HEADERS_SIZE}"
            )

        try:
            header_str = header_line.decode("utf-8").strip()
        except UnicodeDecodeError as e:
            raise HttpParseError(f"Invalid header encoding: {e}") from e

        if ":" not in header_str:
            continue  # Skip malformed headers

        name, value = header_str.split(":", 1)
        name = name.strip()
        value = value.strip()

        if len(name) > MAX_HEADER_NAME_LEN:
            raise HttpParseError(f"Header name too long: {len(name)} > {MAX_HEADER_NAME_LEN}")
        if len(value) > MAX_HEADER_VALUE_LEN:
            raise HttpParseError(f"Header value too long: {len(value)} > {MAX_HEADER_VALUE_LEN}")
        if len(headers) >= MAX_HEADERS_COUNT:
            raise HttpParseError(f"Too many headers: exceeds limit of {MAX_HEADERS_COUNT}")

        headers[name.lower()] = value

    content_length_str = headers.get("content-length", "0")
    try:
        content_length = int(content_length_str)
    except ValueError as e:
        raise HttpParseError(f"Invalid Content-Length: {content_length_str}") from e

    if content_length < 0:
        raise HttpParseError(f"Invalid Content-Length: {content_length_str}")
    if content_length > MAX_BODY_SIZE:
        raise HttpParseError(f"Request body too large: {content_length} > {MAX_BODY_SIZE}")

    body = b""
    if content_length > 0:
        try:
            body = await asyncio.wait_for(
                reader.readexactly(content_length),
                timeout=READ_TIMEOUT,
            )
        except TimeoutError:
            raise HttpParseError("Body read timeout") from None
        except asyncio.IncompleteReadError as e:
            raise HttpParseError(
                f"Incomplete body: expected {content_length}, got {len(e.partial)}"
            ) from e

    return HttpRequest(method=method, path=path, headers=headers, body=body)


async def send_http_response(
    writer: asyncio.StreamWriter,
    status: int,
    body: str | None,
    content_type: str = "application/json",
    extra_headers: Mapping[str, str] | None = None,
) -> None:
    """Send an HTTP response.

    Args:
        writer: The asyncio StreamWriter to write to.
        status: HTTP status code (e.g., 200, 204, 400).
        body: Response body, or None to send no body.
        content_type: Content-Type header value, used only with a body.
        extra_headers: Additional headers, e.g. CORS headers.
    """
    status_message = STATUS_MESSAGES.get(status, "Unknown")

    lines = [f"HTTP/1.1 {status} {status_message}"]
    body_bytes = b""
    if body is not None:
        body_bytes = body.encode("utf-8")
        lines.append(f"Content-Type: {content_type}; charset=utf-8")
        lines.append(f"Content-Length: {len(body_bytes)}")
    elif status != 204:
        lines.append("Content-Length: 0")
    for name, value in (extra_headers or {}).items():
        lines.append(f"{name}: {value}")
    lines.append("Connection: close")
    lines.extend(["", ""])

    writer.write("\r\n".join(lines).encode("utf-8") + body_bytes)
    await writer.drain()


def _header_value(value: list[str] | str) -> str:
    if isinstance(value, str):
        return value
    return ", ".join(value)


def cors_headers(cors: CorsConfig | None) -> dict[str, str]:
    """Build the Access-Control-* headers for a CORS config.

    Each option that is set maps to exactly one header; unset options are
    skipped.
    """
    if cors is None:
        return {}

    headers: dict[str, str] = {}
    if cors.origin is not None:
        headers["Access-Control-Allow-Origin"] = cors.origin
    if cors.methods is not None:
        headers["Access-Control-Allow-Methods"] = _header_value(cors.methods)
    if cors.allowed_headers is not None:
        headers["Access-Control-Allow-Headers"] = _header_value(cors.allowed_headers)
    if cors.exposed_headers is not None:
        headers["Access-Control-Expose-Headers"] = _header_value(cors.exposed_headers)
    if cors.credentials is not None:
        headers["Access-Control-Allow-Credentials"] = "true" if cors.credentials else "false"
    if cors.max_age is not None:
        headers["Access-Control-Max-Age"] = str(cors.max_age)
    return headers


async def process_http_request(
    http_request: HttpRequest,
    handler: JsonRpcHandler,
    cors: CorsConfig | None = None,
) -> HttpResponse:
    """Turn a parsed HTTP request into the HTTP response to send.

    Args:
        http_request: The parsed request.
        handler: The JSON-RPC handler to call with the decoded body.
        cors: Optional CORS config whose headers go on every response.

    Returns:
        The HttpResponse to write back.
    """
    headers = cors_headers(cors)

    if http_request.method == "OPTIONS":
        return HttpResponse(204, None, headers)

    if http_request.method != "POST":
        error = make_error_response(
            None, INVALID_REQUEST, f"HTTP method not allowed: {http_request.method}"
        )
        return HttpResponse(405, serialize_response(error), {**headers, "Allow": "POST, OPTIONS"})

    try:
        body = json.loads(http_request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.debug("Rejecting unparsable body: %s", e)
        return HttpResponse(200, serialize_response(make_error_response(None, PARSE_ERROR)), headers)

    result = await handler.handle(body)
    if result is None:
        return HttpResponse(204, None, headers)

    return HttpResponse(200, serialize_response(result), headers)


async def handle_connection(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    handler: JsonRpcHandler,
    cors: CorsConfig | None = None,
) -> None:
    """Handle a single HTTP connection.

    Reads one request, processes it, writes the response, and closes the
    connection.
    """
    try:
        try:
            http_request = await read_http_request(reader)
        except HttpParseError as e:
            logger.debug("Malformed HTTP request: %s", e)
            error = make_error_response(None, PARSE_ERROR, data=e.message)
            await send_http_response(
                writer, 400, serialize_response(error), extra_headers=cors_headers(cors)
            )
            return

        logger.debug("%s %s", http_request.method, http_request.path)
        try:
            response = await process_http_request(http_request, handler, cors)
        except Exception as e:
            logger.error("Unexpected error handling request: %s", e, exc_info=True)
            error = make_error_response(None, SERVER_ERROR)
            response = HttpResponse(500, serialize_response(error), cors_headers(cors))

        await send_http_response(
            writer, response.status, response.body, extra_headers=response.headers
        )

    except ConnectionError as e:
        logger.debug("Client disconnected before response was sent: %s", e)

    finally:
        try:
            writer.close()
            await writer.wait_closed()
        except Exception as close_err:
            logger.debug("Connection close failed (already closed?): %s", close_err)


def _as_handler(target: JsonRpcHandler | Mapping[str, MethodFunc]) -> JsonRpcHandler:
    if isinstance(target, JsonRpcHandler):
        return target
    return JsonRpcHandler(target)


class HTTPServer:
    """JSON-RPC 2.0 server over HTTP.

    Usage:
        server = HTTPServer({"test": lambda params: "test"})
        await server.listen(8765)
        await server.stop()

    Attributes:
        handler: The JsonRpcHandler serving requests.
        cors: Optional CORS config applied to every response.
    """

    def __init__(
        self,
        handler: JsonRpcHandler | Mapping[str, MethodFunc],
        cors: CorsConfig | None = None,
        max_concurrent: int = 32,
    ) -> None:
        """Initialize the server.

        Args:
            handler: A JsonRpcHandler, or a mapping of method names to
                callables that is wrapped in one.
            cors: Optional CORS config.
            max_concurrent: Maximum connections handled at the same time.
        """
        self.handler = _as_handler(handler)
        self.cors = cors
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._server: asyncio.Server | None = None

    @property
    def is_listening(self) -> bool:
        return self._server is not None

    @property
    def port(self) -> int | None:
        """The bound port, or None when not listening."""
        if self._server is None or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    async def _client_handler(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        async with self._semaphore:
            await handle_connection(reader, writer, self.handler, self.cors)

    async def listen(self, port: int = DEFAULT_PORT, host: str = DEFAULT_HOST) -> None:
        """Bind to host:port and start accepting connections.

        Raises:
            RuntimeError: If the server is already listening.
            OSError: If the address cannot be bound.
        """
        if self._server is not None:
            raise RuntimeError("Server is already listening")

        self._server = await asyncio.start_server(self._client_handler, host=host, port=port)
        logger.info("JSON-RPC HTTP server running at http://%s:%s/", host, self.port)

    async def stop(self) -> None:
        """Stop accepting connections. Does nothing if not listening."""
        if self._server is None:
            return
        server, self._server = self._server, None
        server.close()
        await server.wait_closed()
        logger.info("HTTP server stopped")

    async def serve_forever(self) -> None:
        """Serve until cancelled, then stop."""
        if self._server is None:
            raise RuntimeError("Server is not listening; call listen() first")
        try:
            await self._server.serve_forever()
        finally:
            await self.stop()


async def run_http_server(
    handler: JsonRpcHandler | Mapping[str, MethodFunc],
    port: int = DEFAULT_PORT,
    host: str = DEFAULT_HOST,
    cors: CorsConfig | None = None,
    max_concurrent: int = 32,
    started_event: asyncio.Event | None = None,
) -> None:
    """Run the HTTP server for JSON-RPC requests until cancelled.

    Args:
        handler: A JsonRpcHandler or a mapping of methods.
        port: Port to listen on. Defaults to 8765.
        host: Host to bind to. Defaults to 127.0.0.1.
        cors: Optional CORS config.
        max_concurrent: Maximum concurrent connections.
        started_event: Optional asyncio.Event set once the server is bound
            and listening.
    """
    server = HTTPServer(handler, cors=cors, max_concurrent=max_concurrent)
    await server.listen(port, host)

    if started_event:
        started_event.set()

    await server.serve_forever()
