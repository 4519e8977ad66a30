"""JSON-RPC 2.0 over HTTP.

Example usage:
    bunson serve myapp.rpc:methods --port 8765
    curl -X POST http://localhost:8765/ \\
        -d '{"jsonrpc":"2.0","method":"subtract","params":[42,23],"id":1}'
"""

from bunson.rpc.handler import JsonRpcHandler
from bunson.rpc.http import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    MAX_BODY_SIZE,
    HttpParseError,
    HttpRequest,
    HttpResponse,
    HTTPServer,
    cors_headers,
    handle_connection,
    process_http_request,
    read_http_request,
    run_http_server,
    send_http_response,
)
from bunson.rpc.protocol import (
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    SERVER_ERROR,
    ParseError,
    is_valid_request,
    make_error_response,
    make_success_response,
    parse_batch_response,
    parse_response,
    response_id_for,
    serialize_request,
    serialize_response,
)
from bunson.rpc.registry import Failure, Method, MethodError, MethodRegistry, Success
from bunson.rpc.types import Request, Response

__all__ = [
    # Types
    "Request",
    "Response",
    "HttpRequest",
    "HttpResponse",
    # Protocol functions (server-side)
    "is_valid_request",
    "response_id_for",
    "serialize_response",
    "make_error_response",
    "make_success_response",
    # Protocol functions (client-side)
    "serialize_request",
    "parse_response",
    "parse_batch_response",
    # Dispatch
    "JsonRpcHandler",
    "Method",
    "MethodRegistry",
    "Success",
    "Failure",
    # HTTP server
    "HTTPServer",
    "run_http_server",
    "handle_connection",
    "process_http_request",
    "read_http_request",
    "send_http_response",
    "cors_headers",
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "MAX_BODY_SIZE",
    # Error codes
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "SERVER_ERROR",
    # Exceptions
    "ParseError",
    "MethodError",
    "HttpParseError",
]
