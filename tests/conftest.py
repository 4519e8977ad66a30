"""Shared pytest fixtures for bunson tests."""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import pytest

from bunson.rpc.handler import JsonRpcHandler
from bunson.rpc.http import HTTPServer


def _fail(params: Any) -> Any:
    raise ValueError("boom")


async def _async_add(params: Any) -> Any:
    await asyncio.sleep(0)
    return params["a"] + params["b"]


@pytest.fixture
def methods() -> dict[str, Any]:
    """Methods registered in most handler and server tests."""
    return {
        "test": lambda params: "test",
        "withPositionalParams": lambda params: params[0] - params[1],
        "withNamedParams": lambda params: params["a"] - params["b"],
        "echo": lambda params: params,
        "asyncAdd": _async_add,
        "fail": _fail,
    }


@pytest.fixture
def handler(methods: dict[str, Any]) -> JsonRpcHandler:
    return JsonRpcHandler(methods)


@pytest.fixture
async def server(handler: JsonRpcHandler) -> AsyncIterator[HTTPServer]:
    """A running server on an ephemeral loopback port."""
    http_server = HTTPServer(handler)
    await http_server.listen(0, "127.0.0.1")
    yield http_server
    await http_server.stop()


@pytest.fixture
def server_url(server: HTTPServer) -> str:
    return f"http://127.0.0.1:{server.port}/"
