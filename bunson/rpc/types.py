"""JSON-RPC 2.0 types for bunson."""

from dataclasses import dataclass
from typing import Any

# Request and response ids: integer, string, or null
RequestId = int | str | None


@dataclass
class Request:
    """JSON-RPC 2.0 request, as built by clients.

    Server-side dispatch works on the decoded JSON value directly, since a
    candidate envelope may not be shaped like a request at all.

    Attributes:
        jsonrpc: Protocol version, must be "2.0".
        method: Name of the method to invoke.
        params: Optional positional (list) or named (dict) parameters.
        id: Request identifier. Ignored when notification is True.
        notification: True when the envelope carries no "id" field.
    """

    jsonrpc: str
    method: str
    params: list[Any] | dict[str, Any] | None = None
    id: RequestId = None
    notification: bool = False


@dataclass
class Response:
    """JSON-RPC 2.0 response.

    Attributes:
        jsonrpc: Protocol version, always "2.0".
        id: Request identifier from the original request.
        result: Result of the method call (mutually exclusive with error).
        error: Error object if method failed (mutually exclusive with result).
    """

    jsonrpc: str
    id: RequestId
    result: Any | None = None
    error: dict[str, Any] | None = None
