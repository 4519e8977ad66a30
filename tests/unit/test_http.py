"""Unit tests for HTTP request parsing, CORS headers, and request processing."""

import asyncio
import json
from io import BytesIO

import pytest

from bunson.config.schema import CorsConfig
from bunson.rpc.http import (
    MAX_BODY_SIZE,
    MAX_HEADERS_COUNT,
    HttpParseError,
    HttpRequest,
    cors_headers,
    handle_connection,
    process_http_request,
    read_http_request,
)


class MockStreamReader:
    """Mock asyncio.StreamReader for testing HTTP parsing."""

    def __init__(self, data: bytes):
        self._buffer = BytesIO(data)

    async def readline(self) -> bytes:
        return self._buffer.readline()

    async def readexactly(self, n: int) -> bytes:
        data = self._buffer.read(n)
        if len(data) < n:
            raise asyncio.IncompleteReadError(data, n)
        return data


class MockStreamWriter:
    """Mock asyncio.StreamWriter that keeps everything written to it."""

    def __init__(self) -> None:
        self.data = b""
        self.closed = False

    def write(self, data: bytes) -> None:
        self.data += data

    async def drain(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        pass


def _post(body: str | bytes) -> HttpRequest:
    return HttpRequest(
        method="POST",
        path="/",
        headers={"content-type": "application/json"},
        body=body.encode("utf-8") if isinstance(body, str) else body,
    )


class TestReadHttpRequest:
    """Tests for read_http_request."""

    async def test_normal_request(self) -> None:
        request_data = (
            b"POST / HTTP/1.1\r\n"
            b"Content-Type: application/json\r\n"
            b"Content-Length: 14\r\n"
            b"\r\n"
            b'{"test": true}'
        )

        result = await read_http_request(MockStreamReader(request_data))

        assert result.method == "POST"
        assert result.path == "/"
        assert result.headers["content-type"] == "application/json"
        assert result.body == b'{"test": true}'

    async def test_empty_request(self) -> None:
        with pytest.raises(HttpParseError) as exc_info:
            await read_http_request(MockStreamReader(b""))
        assert "empty request" in str(exc_info.value).lower()

    async def test_bad_request_line(self) -> None:
        with pytest.raises(HttpParseError):
            await read_http_request(MockStreamReader(b"POST\r\n\r\n"))

    async def test_too_many_headers(self) -> None:
        lines = [b"POST / HTTP/1.1\r\n"]
        for i in range(MAX_HEADERS_COUNT + 10):
            lines.append(f"X-Header-{i}: value{i}\r\n".encode())
        lines.append(b"\r\n")

        with pytest.raises(HttpParseError) as exc_info:
            await read_http_request(MockStreamReader(b"".join(lines)))

        assert "too many headers" in str(exc_info.value).lower()

    async def test_body_too_large(self) -> None:
        request_data = (
            b"POST / HTTP/1.1\r\n"
            + f"Content-Length: {MAX_BODY_SIZE + 1}\r\n".encode()
            + b"\r\n"
        )
        with pytest.raises(HttpParseError) as exc_info:
            await read_http_request(MockStreamReader(request_data))
        assert "too large" in str(exc_info.value).lower()

    async def test_incomplete_body(self) -> None:
        request_data = b"POST / HTTP/1.1\r\nContent-Length: 50\r\n\r\n{}"
        with pytest.raises(HttpParseError) as exc_info:
            await read_http_request(MockStreamReader(request_data))
        assert "incomplete body" in str(exc_info.value).lower()

    async def test_invalid_content_length(self) -> None:
        request_data = b"POST / HTTP/1.1\r\nContent-Length: abc\r\n\r\n"
        with pytest.raises(HttpParseError):
            await read_http_request(MockStreamReader(request_data))


class TestCorsHeaders:
    """Tests for mapping CorsConfig to response headers."""

    def test_no_config(self):
        assert cors_headers(None) == {}

    def test_empty_config_sets_nothing(self):
        assert cors_headers(CorsConfig()) == {}

    def test_each_option_sets_one_header(self):
        cors = CorsConfig(
            origin="https://example.com",
            methods=["POST", "OPTIONS"],
            allowed_headers=["Content-Type", "X-Trace"],
            exposed_headers="X-Trace",
            credentials=True,
            max_age=600,
        )
        assert cors_headers(cors) == {
            "Access-Control-Allow-Origin": "https://example.com",
            "Access-Control-Allow-Methods": "POST, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type, X-Trace",
            "Access-Control-Expose-Headers": "X-Trace",
            "Access-Control-Allow-Credentials": "true",
            "Access-Control-Max-Age": "600",
        }

    def test_only_origin(self):
        assert cors_headers(CorsConfig(origin="*")) == {"Access-Control-Allow-Origin": "*"}

    def test_camel_case_aliases(self):
        cors = CorsConfig.model_validate({"allowedHeaders": "Content-Type", "maxAge": 5})
        assert cors_headers(cors) == {
            "Access-Control-Allow-Headers": "Content-Type",
            "Access-Control-Max-Age": "5",
        }


class TestProcessHttpRequest:
    """Tests for process_http_request."""

    @pytest.mark.asyncio
    async def test_success(self, handler):
        response = await process_http_request(
            _post('{"jsonrpc":"2.0","method":"test","params":[],"id":1}'), handler
        )
        assert response.status == 200
        assert json.loads(response.body) == {"jsonrpc": "2.0", "result": "test", "id": 1}

    @pytest.mark.asyncio
    async def test_parse_error(self, handler):
        response = await process_http_request(_post("{"), handler)
        assert response.status == 200
        assert json.loads(response.body) == {
            "jsonrpc": "2.0",
            "error": {"code": -32700, "message": "Parse error"},
            "id": None,
        }

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_parse_error(self, handler):
        body = b'{"jsonrpc":"2.0","method":"test","params":["\xff"],"id":1}'

        response = await process_http_request(_post(body), handler)

        assert response.status == 200
        assert response.body == '{"jsonrpc":"2.0","error":{"code":-32700,"message":"Parse error"},"id":null}'

    @pytest.mark.asyncio
    async def test_empty_body_is_parse_error(self, handler):
        response = await process_http_request(_post(""), handler)
        assert json.loads(response.body)["error"]["code"] == -32700

    @pytest.mark.asyncio
    async def test_notification_is_204(self, handler):
        response = await process_http_request(
            _post('{"jsonrpc":"2.0","method":"test","params":[]}'), handler
        )
        assert response.status == 204
        assert response.body is None

    @pytest.mark.asyncio
    async def test_options_preflight(self, handler):
        cors = CorsConfig(origin="*", methods=["POST"])
        request = HttpRequest(method="OPTIONS", path="/", headers={}, body=b"")

        response = await process_http_request(request, handler, cors)

        assert response.status == 204
        assert response.headers == {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "POST",
        }

    @pytest.mark.asyncio
    async def test_get_not_allowed(self, handler):
        request = HttpRequest(method="GET", path="/", headers={}, body=b"")

        response = await process_http_request(request, handler)

        assert response.status == 405
        assert response.headers["Allow"] == "POST, OPTIONS"

    @pytest.mark.asyncio
    async def test_cors_headers_on_success(self, handler):
        response = await process_http_request(
            _post('{"jsonrpc":"2.0","method":"test","id":1}'),
            handler,
            CorsConfig(origin="https://example.com"),
        )
        assert response.headers == {"Access-Control-Allow-Origin": "https://example.com"}


class TestHandleConnection:
    """Tests for handle_connection over mocked streams."""

    @pytest.mark.asyncio
    async def test_invalid_utf8_body_gets_plain_parse_error(self, handler):
        body = b'{"jsonrpc":"2.0","method":"test","p":"\xff"}'
        request_data = (
            b"POST / HTTP/1.1\r\n"
            + f"Content-Length: {len(body)}\r\n".encode()
            + b"\r\n"
            + body
        )
        writer = MockStreamWriter()

        await handle_connection(MockStreamReader(request_data), writer, handler)

        head, _, payload = writer.data.partition(b"\r\n\r\n")
        assert head.startswith(b"HTTP/1.1 200 OK")
        assert payload == b'{"jsonrpc":"2.0","error":{"code":-32700,"message":"Parse error"},"id":null}'
        assert writer.closed

    @pytest.mark.asyncio
    async def test_malformed_request_line_is_400(self, handler):
        writer = MockStreamWriter()

        await handle_connection(MockStreamReader(b"GARBAGE\r\n\r\n"), writer, handler)

        assert writer.data.startswith(b"HTTP/1.1 400 Bad Request")
        assert writer.closed
