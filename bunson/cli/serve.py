"""HTTP server mode for bunson.

Serves a methods mapping (or a ready-made JsonRpcHandler) loaded from an
importable module.

Example:
    bunson serve myapp.rpc:methods --port 8765

    curl -X POST http://localhost:8765 \\
        -H "Content-Type: application/json" \\
        -d '{"jsonrpc":"2.0","method":"subtract","params":[42,23],"id":1}'
"""

import importlib
import logging
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv

from bunson.cli.output import print_error, print_info
from bunson.config.loader import load_config
from bunson.core.errors import BunsonError, LoadError
from bunson.rpc.bootstrap import configure_server_logging
from bunson.rpc.handler import JsonRpcHandler
from bunson.rpc.http import HTTPServer

logger = logging.getLogger(__name__)


def load_target(target: str) -> JsonRpcHandler:
    """Import 'package.module:attribute' and wrap it in a JsonRpcHandler.

    The attribute may be a JsonRpcHandler or a mapping of method names to
    callables.

    Raises:
        LoadError: If the target is malformed, cannot be imported, or is of
            the wrong type.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise LoadError(f"Target must look like 'package.module:attribute', got: {target!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise LoadError(f"Cannot import module {module_name!r}: {e}") from e

    try:
        obj = getattr(module, attr)
    except AttributeError as e:
        raise LoadError(f"Module {module_name!r} has no attribute {attr!r}") from e

    if isinstance(obj, JsonRpcHandler):
        return obj
    if isinstance(obj, Mapping):
        try:
            return JsonRpcHandler(obj)
        except TypeError as e:
            raise LoadError(f"Invalid methods in {target!r}: {e}") from e
    raise LoadError(
        f"{target!r} must be a JsonRpcHandler or a mapping of methods, "
        f"got {type(obj).__name__}"
    )


async def run_serve(
    target: str,
    port: int | None = None,
    host: str | None = None,
    config_path: Path | None = None,
    log_file: Path | None = None,
    verbose: bool = False,
) -> int:
    """Run bunson as an HTTP server until interrupted.

    Args:
        target: Methods to serve, as 'package.module:attribute'.
        port: Port to listen on. If None, uses config.server.port.
        host: Host to bind. If None, uses config.server.host.
        config_path: Explicit config file. If None, ./bunson.json is used
            when present.
        log_file: Optional log file.
        verbose: Enable DEBUG logging.

    Returns:
        Process exit code.
    """
    # Load .env file if present
    load_dotenv()

    try:
        config = load_config(config_path)
    except BunsonError as e:
        print_error(f"Configuration error: {e.message}")
        return 1

    configure_server_logging("DEBUG" if verbose else config.server.log_level, log_file)

    try:
        handler = load_target(target)
    except LoadError as e:
        print_error(e.message)
        return 1

    server = HTTPServer(
        handler,
        cors=config.server.cors,
        max_concurrent=config.server.max_concurrent,
    )
    bind_host = host or config.server.host
    bind_port = port if port is not None else config.server.port
    try:
        await server.listen(bind_port, bind_host)
    except OSError as e:
        print_error(f"Cannot listen on {bind_host}:{bind_port}: {e}")
        return 1

    print_info(
        f"Serving {len(handler.methods)} methods at http://{bind_host}:{server.port}/ "
        "(Ctrl+C to stop)"
    )
    await server.serve_forever()
    return 0
