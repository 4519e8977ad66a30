"""Method registry for JSON-RPC dispatch.

A registry maps method names to Method objects. Each Method wraps a plain
callable that takes a single parameter container (a list for positional
params, a dict for named params) and returns a value or an awaitable.

Method.invoke() never raises for failures of the wrapped callable. It
returns an explicit outcome instead, Success or Failure, so that the
dispatcher maps failures to JSON-RPC errors in an ordinary branch.

The registry is frozen at construction and safe to share between
concurrent requests.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from bunson.core.errors import BunsonError

logger = logging.getLogger(__name__)

# A registered operation: params -> result, sync or async
MethodFunc = Callable[[Any], Any | Awaitable[Any]]


class MethodError(BunsonError):
    """Raised by a registered method to control the error data it reports.

    The data attribute becomes the "data" member of the Server error
    response. Without it, the message is used.
    """

    def __init__(self, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.data = data if data is not None else message


@dataclass(frozen=True)
class Success:
    """Outcome of a method that returned normally."""

    value: Any


@dataclass(frozen=True)
class Failure:
    """Outcome of a method that raised.

    Attributes:
        detail: JSON-serializable description of the failure.
        exception: The underlying exception, kept for logging.
    """

    detail: Any
    exception: BaseException | None = None


Outcome = Success | Failure


def failure_detail(exc: BaseException) -> Any:
    """Describe an exception in a form that can go on the wire."""
    if isinstance(exc, MethodError):
        return exc.data
    return str(exc) or type(exc).__name__


class Method:
    """A named, invocable operation."""

    def __init__(self, name: str, func: MethodFunc) -> None:
        if not callable(func):
            raise TypeError(f"Method {name!r} is not callable: {func!r}")
        self.name = name
        self._func = func

    def __repr__(self) -> str:
        return f"Method({self.name!r})"

    async def invoke(self, params: Any) -> Outcome:
        """Call the wrapped function and await its result if needed.

        Args:
            params: The request params (list or dict).

        Returns:
            Success with the return value, or Failure if the call (or the
            awaitable it returned) raised.
        """
        try:
            result = self._func(params)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.debug("Method '%s' failed: %s", self.name, e, exc_info=True)
            return Failure(detail=failure_detail(e), exception=e)
        return Success(result)


class MethodRegistry(Mapping[str, Method]):
    """Read-only mapping of method name to Method.

    Usage:
        registry = MethodRegistry({"add": lambda params: params[0] + params[1]})
        method = registry.get("add")
    """

    def __init__(self, methods: Mapping[str, MethodFunc | Method] | None = None) -> None:
        entries: dict[str, Method] = {}
        for name, func in (methods or {}).items():
            if not isinstance(name, str):
                raise TypeError(f"Method names must be strings, got: {type(name).__name__}")
            entries[name] = func if isinstance(func, Method) else Method(name, func)
        self._methods: Mapping[str, Method] = MappingProxyType(entries)

    def __getitem__(self, name: str) -> Method:
        return self._methods[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._methods)

    def __len__(self) -> int:
        return len(self._methods)

    def lookup(self, name: Any) -> Method | None:
        """Find a method by name; non-string names never match."""
        if not isinstance(name, str):
            return None
        return self._methods.get(name)
