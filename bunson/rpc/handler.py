"""JSON-RPC 2.0 request handler.

JsonRpcHandler turns a decoded JSON body into a response:
- handle() is the entry point used by the HTTP transport
- dispatch() handles one request envelope
- dispatch_batch() fans a batch out to dispatch() and collects the results

Notifications (envelopes without an "id" member) are executed but never
answered. A batch made only of notifications gets no response at all.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from bunson.rpc.protocol import (
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    SERVER_ERROR,
    is_notification,
    is_valid_request,
    make_error_response,
    make_success_response,
    response_id_for,
)
from bunson.rpc.registry import Failure, MethodFunc, MethodRegistry
from bunson.rpc.types import Response

logger = logging.getLogger(__name__)


class JsonRpcHandler:
    """Routes JSON-RPC requests to registered methods.

    Usage:
        handler = JsonRpcHandler({"subtract": lambda p: p[0] - p[1]})
        response = await handler.handle(
            {"jsonrpc": "2.0", "method": "subtract", "params": [3, 7], "id": 1}
        )

    Attributes:
        methods: The method registry. Fixed for the lifetime of the handler.
    """

    def __init__(self, methods: Mapping[str, MethodFunc] | MethodRegistry | None = None) -> None:
        """Initialize the handler.

        Args:
            methods: Mapping of method name to callable, or a prebuilt
                MethodRegistry. Each callable receives the request params.
        """
        if isinstance(methods, MethodRegistry):
            self.methods = methods
        else:
            self.methods = MethodRegistry(methods)
        logger.debug("Handler created with methods: %s", sorted(self.methods))

    async def handle(self, body: Any) -> Response | list[Response] | None:
        """Handle a decoded JSON-RPC body.

        Args:
            body: The decoded JSON value (object, array, or anything else).

        Returns:
            A Response, a list of Responses for a batch, or None when nothing
            should be sent back.
        """
        if isinstance(body, list):
            return await self.dispatch_batch(body)
        return await self.dispatch(body)

    async def dispatch(self, candidate: Any) -> Response | None:
        """Dispatch a single request envelope.

        Args:
            candidate: One decoded envelope. May be any JSON value.

        Returns:
            The Response, or None for notifications.
        """
        request_id = response_id_for(candidate)

        # Shape errors are reported even for would-be notifications
        if not is_valid_request(candidate):
            return make_error_response(request_id, INVALID_REQUEST)

        method_name = candidate.get("method")
        params = candidate.get("params", {})
        method = self.methods.lookup(method_name)

        if is_notification(candidate):
            if method is not None:
                outcome = await method.invoke(params)
                if isinstance(outcome, Failure):
                    logger.info("Notification '%s' failed: %s", method_name, outcome.detail)
            else:
                logger.debug("Notification for unknown method ignored: %r", method_name)
            return None

        if method is None:
            logger.debug("Method not found: %r", method_name)
            return make_error_response(request_id, METHOD_NOT_FOUND)

        outcome = await method.invoke(params)
        if isinstance(outcome, Failure):
            logger.info("Method '%s' failed: %s", method_name, outcome.detail)
            return make_error_response(request_id, SERVER_ERROR, data=outcome.detail)

        return make_success_response(request_id, outcome.value)

    async def dispatch_batch(self, candidates: list[Any]) -> Response | list[Response] | None:
        """Dispatch a batch of request envelopes concurrently.

        Args:
            candidates: The decoded batch array.

        Returns:
            A single Invalid Request response for an empty batch, None if
            every element was a notification, otherwise the responses in
            request order.
        """
        if not candidates:
            return make_error_response(None, INVALID_REQUEST)

        results = await asyncio.gather(*(self.dispatch(item) for item in candidates))
        responses = [response for response in results if response is not None]

        logger.debug(
            "Batch of %d handled, %d responses", len(candidates), len(responses)
        )
        if not responses:
            return None
        return responses
