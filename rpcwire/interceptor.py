"""Interceptors that wrap unary and streaming RPC functions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Protocol, Tuple

__all__ = [
    "UnaryFunc",
    "StreamingClientFunc",
    "StreamingHandlerFunc",
    "Interceptor",
    "UnaryInterceptorFunc",
    "Chain",
]

# (context, request) -> response
UnaryFunc = Callable[[Any, Any], Any]
# (context, spec) -> client connection
StreamingClientFunc = Callable[[Any, Any], Any]
# (context, handler connection) -> None, raising on failure
StreamingHandlerFunc = Callable[[Any, Any], None]


def _require_callable(next_func: Any, kind: str) -> None:
    if not callable(next_func):
        raise TypeError(f"{kind} must be callable, got {type(next_func).__name__}")


class Interceptor(Protocol):
    """Adds logic around RPCs on the client or the handler side."""

    def wrap_unary(self, next_func: UnaryFunc) -> UnaryFunc:
        """Wrap a unary function."""

    def wrap_streaming_client(self, next_func: StreamingClientFunc) -> StreamingClientFunc:
        """Wrap a client-side streaming function."""

    def wrap_streaming_handler(
        self, next_func: StreamingHandlerFunc
    ) -> StreamingHandlerFunc:
        """Wrap a handler-side streaming function."""


@dataclass(frozen=True)
class UnaryInterceptorFunc:
    """An interceptor that only wraps unary RPCs; streaming RPCs pass through."""

    func: Callable[[UnaryFunc], UnaryFunc]

    def wrap_unary(self, next_func: UnaryFunc) -> UnaryFunc:
        return self.func(next_func)

    def wrap_streaming_client(self, next_func: StreamingClientFunc) -> StreamingClientFunc:
        """Return the streaming client function unchanged."""
        _require_callable(next_func, "streaming client function")
        return next_func

    def wrap_streaming_handler(
        self, next_func: StreamingHandlerFunc
    ) -> StreamingHandlerFunc:
        """Return the streaming handler function unchanged."""
        _require_callable(next_func, "streaming handler function")
        return next_func


class Chain:
    """Composes interceptors so that the first one given acts outermost."""

    def __init__(self, interceptors: Iterable[Optional[Interceptor]]) -> None:
        # Stored in reverse so that wrapping in order leaves the first outermost.
        self.interceptors: Tuple[Interceptor, ...] = tuple(
            interceptor
            for interceptor in reversed(list(interceptors))
            if interceptor is not None
        )

    def wrap_unary(self, next_func: UnaryFunc) -> UnaryFunc:
        for interceptor in self.interceptors:
            next_func = interceptor.wrap_unary(next_func)
        return next_func

    def wrap_streaming_client(self, next_func: StreamingClientFunc) -> StreamingClientFunc:
        for interceptor in self.interceptors:
            next_func = interceptor.wrap_streaming_client(next_func)
        return next_func

    def wrap_streaming_handler(
        self, next_func: StreamingHandlerFunc
    ) -> StreamingHandlerFunc:
        for interceptor in self.interceptors:
            next_func = interceptor.wrap_streaming_handler(next_func)
        return next_func