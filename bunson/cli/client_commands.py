"""CLI commands for calling remote JSON-RPC methods.

Thin wrappers around BunsonClient. Each function prints JSON to stdout and
returns an exit code:
    bunson call [URL] METHOD [--params JSON] [--id ID]
    bunson notify [URL] METHOD [--params JSON]

URL, timeout and the method allow-list default to the client section of
bunson.json. An empty allow-list there lets the command call the method it
was given.
"""

from pathlib import Path
from typing import Any

from bunson.cli.output import print_error, print_info, print_json
from bunson.client import BunsonClient, ClientError
from bunson.config.loader import load_config
from bunson.core.errors import ConfigError
from bunson.rpc.protocol import response_to_dict
from bunson.rpc.types import RequestId


def _make_client(
    method: str,
    url: str | None,
    timeout: float | None,
    config_path: Path | None,
) -> BunsonClient:
    """Build a client from command line values, falling back to config.

    Raises:
        ConfigError: If the config file cannot be loaded.
    """
    client_config = load_config(config_path).client
    return BunsonClient(
        url or client_config.url,
        methods=client_config.methods or [method],
        timeout=timeout if timeout is not None else client_config.timeout,
    )


async def cmd_call(
    method: str,
    params: Any = None,
    request_id: RequestId = 1,
    url: str | None = None,
    timeout: float | None = None,
    config_path: Path | None = None,
) -> int:
    """Call a method and print the response envelope.

    Returns:
        0 on a result, 1 on a JSON-RPC error, config error or client failure.
    """
    try:
        client = _make_client(method, url, timeout, config_path)
    except ConfigError as e:
        print_error(f"Configuration error: {e.message}")
        return 1

    async with client:
        try:
            response = await client.call(method, params, id=request_id)
        except ClientError as e:
            print_error(e.message)
            return 1

    print_json(response_to_dict(response))
    return 1 if response.error is not None else 0


async def cmd_notify(
    method: str,
    params: Any = None,
    url: str | None = None,
    timeout: float | None = None,
    config_path: Path | None = None,
) -> int:
    """Send a notification.

    Returns:
        0 once the server accepted the request, 1 on config error or client failure.
    """
    try:
        client = _make_client(method, url, timeout, config_path)
    except ConfigError as e:
        print_error(f"Configuration error: {e.message}")
        return 1

    async with client:
        try:
            await client.notify(method, params)
        except ClientError as e:
            print_error(e.message)
            return 1

    print_info(f"Notification sent: {method}")
    return 0
