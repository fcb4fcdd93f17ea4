"""Handler configuration and the specification of a procedure."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from rpcwire.idempotency import IdempotencyLevel
from rpcwire.interceptor import Interceptor

__all__ = [
    "StreamType",
    "Spec",
    "Initializer",
    "MaybeInitializer",
    "HandlerOption",
    "HandlerConfig",
]


class StreamType(enum.IntFlag):
    """Which sides of an RPC stream messages.

    ``BIDI`` is the combination of ``CLIENT`` and ``SERVER``.
    """

    UNARY = 0
    CLIENT = 1
    SERVER = 2
    BIDI = CLIENT | SERVER


@dataclass(frozen=True)
class Spec:
    """A description of a procedure: its path, schema and streaming shape."""

    procedure: str = ""
    schema: Any = None
    stream_type: StreamType = StreamType.UNARY
    idempotency_level: IdempotencyLevel = IdempotencyLevel.UNKNOWN

    @property
    def is_bidi(self) -> bool:
        """Whether both client and server stream messages."""
        return (self.stream_type & StreamType.BIDI) == StreamType.BIDI


# (spec, message) -> None; raises to reject the message.
Initializer = Callable[[Spec, Any], None]


@dataclass(frozen=True)
class MaybeInitializer:
    """Calls an optional message initializer."""

    initializer: Optional[Initializer] = None

    def maybe(self, spec: Spec, message: Any) -> None:
        """Run the initializer on ``message`` if one is configured.

        Any exception raised by the initializer propagates to the caller.
        """
        if self.initializer is not None:
            self.initializer(spec, message)


class HandlerOption(Protocol):
    """Something that configures a handler."""

    def apply_to_handler(self, config: "HandlerConfig") -> None:
        """Apply this option to ``config``."""


@dataclass
class HandlerConfig:
    """The settings a handler is built from."""

    procedure: str = ""
    stream_type: StreamType = StreamType.UNARY
    compression_pools: Dict[str, Any] = field(default_factory=dict)
    compression_names: List[str] = field(default_factory=list)
    codecs: Dict[str, Any] = field(default_factory=dict)
    compress_min_bytes: int = 0
    interceptor: Optional[Interceptor] = None
    schema: Any = None
    initializer: MaybeInitializer = field(default_factory=MaybeInitializer)
    handle_grpc: bool = True
    handle_grpc_web: bool = True
    require_connect_protocol_header: bool = False
    idempotency_level: IdempotencyLevel = IdempotencyLevel.UNKNOWN
    read_max_bytes: int = 0
    send_max_bytes: int = 0

    def new_spec(self) -> Spec:
        """Return the :class:`Spec` described by this configuration."""
        return Spec(
            procedure=self.procedure,
            schema=self.schema,
            stream_type=self.stream_type,
            idempotency_level=self.idempotency_level,
        )