"""JSON-RPC 2.0 protocol validation and serialization."""

import json
from typing import Any

from bunson.core.errors import BunsonError
from bunson.rpc.types import Request, RequestId, Response


class ParseError(BunsonError):
    """Raised when a JSON-RPC response cannot be parsed."""


PROTOCOL_VERSION = "2.0"

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
SERVER_ERROR = -32000  # Server error range: -32000 to -32099

ERROR_MESSAGES = {
    PARSE_ERROR: "Parse error",
    INVALID_REQUEST: "Invalid Request",
    METHOD_NOT_FOUND: "Method not found",
    SERVER_ERROR: "Server error",
}


# === Server-side functions ===


def is_valid_request(candidate: Any) -> bool:
    """Check a decoded JSON value against the request envelope shape.

    A candidate conforms when it is an object, its "jsonrpc" member is exactly
    the string "2.0", and its "params" member, if present, is an array or an
    object. A missing "params" is accepted and treated as empty named params.

    Args:
        candidate: Any value produced by json.loads().

    Returns:
        True if the candidate is a structurally valid request envelope.
    """
    if not isinstance(candidate, dict):
        return False
    if candidate.get("jsonrpc") != PROTOCOL_VERSION:
        return False
    if "params" in candidate and not isinstance(candidate["params"], (list, dict)):
        return False
    return True


def is_notification(candidate: dict[str, Any]) -> bool:
    """Return True if the envelope has no "id" member at all.

    An explicit "id": null is a regular request, not a notification.
    """
    return "id" not in candidate


def response_id_for(candidate: Any) -> RequestId:
    """Compute the id to echo back in a response.

    Truthy ids are echoed as-is and a numeric zero is kept; anything else
    (missing, null, empty string, false) becomes null.
    """
    if not isinstance(candidate, dict):
        return None
    request_id = candidate.get("id")
    if isinstance(request_id, bool):
        return request_id or None
    if request_id:
        return request_id
    if isinstance(request_id, (int, float)) and request_id == 0:
        return request_id
    return None


def make_error_response(
    request_id: RequestId,
    code: int,
    message: str | None = None,
    data: Any = None,
) -> Response:
    """Create an error response.

    Args:
        request_id: The id to echo back.
        code: JSON-RPC error code.
        message: Human-readable error message. Defaults to the standard
            message for known codes.
        data: Optional additional error data. Omitted from the envelope when None.

    Returns:
        A Response with the error field populated.
    """
    if message is None:
        message = ERROR_MESSAGES.get(code, "Server error")

    error: dict[str, Any] = {
        "code": code,
        "message": message,
    }
    if data is not None:
        error["data"] = data

    return Response(
        jsonrpc=PROTOCOL_VERSION,
        id=request_id,
        error=error,
    )


def make_success_response(request_id: RequestId, result: Any) -> Response:
    """Create a success response.

    Args:
        request_id: The id to echo back.
        result: The result of the method call.

    Returns:
        A Response with the result field populated.
    """
    return Response(
        jsonrpc=PROTOCOL_VERSION,
        id=request_id,
        result=result,
    )


def response_to_dict(response: Response) -> dict[str, Any]:
    """Convert a Response to its wire dict.

    Exactly one of "result" or "error" is emitted: "error" when set,
    otherwise "result" (which may be null).
    """
    data: dict[str, Any] = {"jsonrpc": response.jsonrpc}

    if response.error is not None:
        data["error"] = response.error
    else:
        data["result"] = response.result

    data["id"] = response.id
    return data


def serialize_response(response: Response | list[Response]) -> str:
    """Serialize a Response, or a batch of them, to JSON text.

    Args:
        response: A single Response or a list of Responses.

    Returns:
        Compact JSON text (no trailing newline).
    """
    if isinstance(response, list):
        payload: Any = [response_to_dict(item) for item in response]
    else:
        payload = response_to_dict(response)
    return json.dumps(payload, separators=(",", ":"))


# === Client-side functions ===


def request_to_dict(request: Request) -> dict[str, Any]:
    """Convert a Request to its wire dict.

    Empty params are dropped. The "id" member is dropped only for
    notifications, so an id of None is sent as "id": null.
    """
    data: dict[str, Any] = {
        "jsonrpc": request.jsonrpc,
        "method": request.method,
    }

    if request.params:
        data["params"] = request.params

    if not request.notification:
        data["id"] = request.id

    return data


def serialize_request(request: Request | list[Request]) -> str:
    """Serialize a Request, or a batch of them, to JSON text."""
    if isinstance(request, list):
        payload: Any = [request_to_dict(item) for item in request]
    else:
        payload = request_to_dict(request)
    return json.dumps(payload, separators=(",", ":"))


def _response_from_data(data: Any) -> Response:
    """Validate one decoded response envelope and build a Response."""
    if not isinstance(data, dict):
        raise ParseError("Response must be a JSON object")

    jsonrpc = data.get("jsonrpc")
    if jsonrpc != PROTOCOL_VERSION:
        raise ParseError(f"jsonrpc must be '2.0', got: {jsonrpc!r}")

    # id is required in responses, but can be null
    if "id" not in data:
        raise ParseError("Response must have 'id' field")
    response_id = data.get("id")
    if response_id is not None and not isinstance(response_id, (str, int, float)):
        raise ParseError(f"id must be string, number, or null, got: {type(response_id).__name__}")

    has_result = "result" in data
    has_error = "error" in data

    if has_result and has_error:
        raise ParseError("Response cannot have both 'result' and 'error'")
    if not has_result and not has_error:
        raise ParseError("Response must have either 'result' or 'error'")

    error = data.get("error")
    if has_error:
        if not isinstance(error, dict):
            raise ParseError(f"error must be an object, got: {type(error).__name__}")
        if "code" not in error or "message" not in error:
            raise ParseError("error must have 'code' and 'message' fields")

    return Response(
        jsonrpc=jsonrpc,
        id=response_id,
        result=data.get("result"),
        error=error,
    )


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON: {e}") from e


def parse_response(text: str) -> Response:
    """Parse JSON text into a single JSON-RPC 2.0 Response.

    Args:
        text: The response body.

    Returns:
        A parsed Response object.

    Raises:
        ParseError: If the JSON is invalid or required fields are missing.
    """
    return _response_from_data(_loads(text))


def parse_batch_response(text: str) -> list[Response]:
    """Parse JSON text holding an array of JSON-RPC 2.0 Responses.

    A server rejects a whole batch (parse error, empty array) with a single
    error object rather than an array; that object is returned as a
    one-element list.

    Raises:
        ParseError: If the JSON is invalid, is neither an array nor an
            object, or any element is not a valid response envelope.
    """
    data = _loads(text)
    if isinstance(data, dict):
        return [_response_from_data(data)]
    if not isinstance(data, list):
        raise ParseError(f"Batch response must be a JSON array, got: {type(data).__name__}")
    return [_response_from_data(item) for item in data]
