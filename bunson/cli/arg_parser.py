"""Argument parsing for the bunson CLI."""

import argparse
import json
from pathlib import Path
from typing import Any


def _json_params(value: str) -> Any:
    """Parse --params as a JSON array or object."""
    try:
        params = json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"params must be valid JSON: {e}") from e
    if not isinstance(params, (list, dict)):
        raise argparse.ArgumentTypeError("params must be a JSON array or object")
    return params


def _json_id(value: str) -> Any:
    """Parse --id: integers stay integers, "null" is null, anything else is a string."""
    if value == "null":
        return None
    try:
        return int(value)
    except ValueError:
        return value


def add_params_arg(parser: argparse.ArgumentParser) -> None:
    """Add --params argument to a parser."""
    parser.add_argument(
        "--params",
        type=_json_params,
        default=None,
        help="Method params as a JSON array or object",
    )


def add_client_args(parser: argparse.ArgumentParser) -> None:
    """Add the arguments shared by call and notify.

    URL and timeout fall back to the client section of bunson.json.
    """
    parser.add_argument("url", nargs="?", help="Server URL (default: from config)")
    parser.add_argument("method", help="Method name")
    add_params_arg(parser)
    parser.add_argument("--timeout", type=float, help="Timeout in seconds (default: from config, 60)")
    parser.add_argument("--config", "-c", type=Path, help="Path to a bunson.json config file")


def build_parser() -> argparse.ArgumentParser:
    """Build the bunson argument parser."""
    parser = argparse.ArgumentParser(
        prog="bunson",
        description="JSON-RPC 2.0 over HTTP",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # bunson serve MODULE:ATTR
    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve methods over HTTP",
        description="Serve a methods mapping or JsonRpcHandler from an importable module.",
    )
    serve_parser.add_argument(
        "target",
        help="Methods to serve, as 'package.module:attribute'",
    )
    serve_parser.add_argument("--port", "-p", type=int, help="Port (default: from config, 8765)")
    serve_parser.add_argument("--host", help="Host to bind (default: from config, 127.0.0.1)")
    serve_parser.add_argument("--config", "-c", type=Path, help="Path to a bunson.json config file")
    serve_parser.add_argument("--log-file", type=Path, help="Also write logs to this file")
    serve_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable DEBUG logging"
    )

    # bunson call [URL] METHOD
    call_parser = subparsers.add_parser("call", help="Call a remote method and print the response")
    add_client_args(call_parser)
    call_parser.add_argument("--id", type=_json_id, default=1, help="Request id (default: 1)")

    # bunson notify [URL] METHOD
    notify_parser = subparsers.add_parser("notify", help="Send a notification (no response)")
    add_client_args(notify_parser)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)
