"""Integration tests: HTTPServer on a loopback port, driven over real HTTP."""

import asyncio

import httpx
import pytest

from bunson.client import BunsonClient
from bunson.config.schema import CorsConfig
from bunson.rpc.http import HTTPServer, run_http_server

INVALID_REQUEST = {"jsonrpc": "2.0", "error": {"code": -32600, "message": "Invalid Request"}, "id": None}


async def _post(url: str, **kwargs) -> httpx.Response:
    async with httpx.AsyncClient() as client:
        return await client.post(url, headers={"Content-Type": "application/json"}, **kwargs)


class TestServerRequests:
    """Requests sent to a running server."""

    @pytest.mark.asyncio
    async def test_valid_request(self, server_url):
        response = await _post(
            server_url, json={"jsonrpc": "2.0", "method": "test", "params": [], "id": 1}
        )
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.json() == {"jsonrpc": "2.0", "result": "test", "id": 1}

    @pytest.mark.asyncio
    async def test_notification_gets_204(self, server_url):
        response = await _post(server_url, json={"jsonrpc": "2.0", "method": "test", "params": []})
        assert response.status_code == 204
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_batch(self, server_url):
        response = await _post(
            server_url,
            json=[
                {"jsonrpc": "2.0", "method": "withNamedParams", "params": {"a": 1, "b": 2}, "id": 1},
                {"jsonrpc": "2.0", "method": "withPositionalParams", "params": [7]},
                {"jsonrpc": "2.0", "method": "test", "params": [7], "id": 2},
                {"foo": "bar"},
                {"jsonrpc": "2.0", "method": "NoSuchMethod", "params": [42, 23], "id": 3},
            ],
        )
        assert response.json() == [
            {"jsonrpc": "2.0", "result": -1, "id": 1},
            {"jsonrpc": "2.0", "result": "test", "id": 2},
            INVALID_REQUEST,
            {"jsonrpc": "2.0", "error": {"code": -32601, "message": "Method not found"}, "id": 3},
        ]

    @pytest.mark.asyncio
    async def test_invalid_json(self, server_url):
        response = await _post(server_url, content="{")
        assert response.status_code == 200
        assert response.json() == {
            "jsonrpc": "2.0",
            "error": {"code": -32700, "message": "Parse error"},
            "id": None,
        }

    @pytest.mark.asyncio
    async def test_invalid_json_batch(self, server_url):
        body = '[{"jsonrpc": "2.0", "method": "test", "params": [], "id": 1}, {"jsonrpc": "2.0", "method"]'
        response = await _post(server_url, content=body)
        assert response.json()["error"] == {"code": -32700, "message": "Parse error"}

    @pytest.mark.asyncio
    async def test_empty_array(self, server_url):
        response = await _post(server_url, json=[])
        assert response.json() == INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_batch_of_scalars(self, server_url):
        response = await _post(server_url, json=[1, 2, 3])
        assert response.json() == [INVALID_REQUEST, INVALID_REQUEST, INVALID_REQUEST]

    @pytest.mark.asyncio
    async def test_server_error(self, server_url):
        response = await _post(server_url, json={"jsonrpc": "2.0", "method": "fail", "id": 8})
        assert response.json() == {
            "jsonrpc": "2.0",
            "error": {"code": -32000, "message": "Server error", "data": "boom"},
            "id": 8,
        }

    @pytest.mark.asyncio
    async def test_unserializable_result_is_500(self):
        server = HTTPServer({"obj": lambda params: object()})
        await server.listen(0)
        try:
            response = await _post(
                f"http://127.0.0.1:{server.port}/",
                json={"jsonrpc": "2.0", "method": "obj", "id": 1},
            )
        finally:
            await server.stop()

        assert response.status_code == 500
        assert response.json()["error"]["code"] == -32000


class TestServerLifecycle:
    """Listening and stopping."""

    @pytest.mark.asyncio
    async def test_built_from_methods_mapping(self):
        server = HTTPServer({"test": lambda params: "test"})
        await server.listen(0)
        try:
            response = await _post(
                f"http://127.0.0.1:{server.port}/",
                json={"jsonrpc": "2.0", "method": "test", "params": [], "id": 1},
            )
        finally:
            await server.stop()

        assert response.json() == {"jsonrpc": "2.0", "result": "test", "id": 1}

    @pytest.mark.asyncio
    async def test_stop_closes_listener(self):
        server = HTTPServer({"test": lambda params: "test"})
        await server.listen(0)
        port = server.port
        await server.stop()

        assert not server.is_listening
        assert server.port is None
        with pytest.raises(httpx.ConnectError):
            await _post(f"http://127.0.0.1:{port}/", json={})

    @pytest.mark.asyncio
    async def test_stop_without_listen_is_noop(self):
        server = HTTPServer({})
        await server.stop()
        assert not server.is_listening

    @pytest.mark.asyncio
    async def test_listen_twice_raises(self, server):
        with pytest.raises(RuntimeError):
            await server.listen(0)

    @pytest.mark.asyncio
    async def test_cors_headers_sent(self):
        server = HTTPServer(
            {"test": lambda params: "test"},
            cors=CorsConfig(origin="https://example.com", max_age=60),
        )
        await server.listen(0)
        try:
            response = await _post(
                f"http://127.0.0.1:{server.port}/",
                json={"jsonrpc": "2.0", "method": "test", "id": 1},
            )
        finally:
            await server.stop()

        assert response.headers["access-control-allow-origin"] == "https://example.com"
        assert response.headers["access-control-max-age"] == "60"
        assert "access-control-allow-methods" not in response.headers

    @pytest.mark.asyncio
    async def test_run_http_server_until_cancelled(self):
        started = asyncio.Event()
        task = asyncio.create_task(
            run_http_server({"test": lambda params: "test"}, port=0, started_event=started)
        )
        await asyncio.wait_for(started.wait(), timeout=5.0)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


class TestClientAgainstServer:
    """BunsonClient talking to a real server."""

    @pytest.mark.asyncio
    async def test_call_notify_batch(self, server_url):
        async with BunsonClient(server_url, methods=["echo", "test", "missing"]) as client:
            response = await client.call("echo", {"name": "world"}, id=7)
            assert response.result == {"name": "world"}
            assert response.id == 7

            # Empty params are not sent; the server treats that as {}
            response = await client.call("echo", {}, id=0)
            assert response.result == {}
            assert response.id == 0

            assert await client.notify("test", {}) is None

            responses = await client.batch([
                {"method": "test", "id": 1},
                {"method": "test"},
                {"method": "missing", "id": 2},
            ])
            assert [r.id for r in responses] == [1, 2]
            assert responses[0].result == "test"
            assert responses[1].error["code"] == -32601

            assert await client.batch([{"method": "test"}]) == []
