"""bunson: JSON-RPC 2.0 handler, HTTP server, and client."""

from bunson.client import BunsonClient, ClientError, MethodNotAllowedError
from bunson.config.schema import CorsConfig
from bunson.rpc.handler import JsonRpcHandler
from bunson.rpc.http import HTTPServer
from bunson.rpc.registry import MethodError

__version__ = "0.1.0"

__all__ = [
    "BunsonClient",
    "ClientError",
    "CorsConfig",
    "HTTPServer",
    "JsonRpcHandler",
    "MethodError",
    "MethodNotAllowedError",
]
