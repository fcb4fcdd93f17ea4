"""Options that configure handlers, and the construction of handler configs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Protocol, Sequence, Tuple

from rpcwire.compression import with_gzip
from rpcwire.config import (
    HandlerConfig,
    HandlerOption,
    Initializer,
    MaybeInitializer,
    Spec,
    StreamType,
)
from rpcwire.idempotency import IdempotencyLevel
from rpcwire.interceptor import Chain, Interceptor
from rpcwire.procedures import extract_proto_path

__all__ = [
    "Codec",
    "new_handler_config",
    "with_handler_options",
    "with_require_connect_protocol_header",
    "with_conditional_handler_options",
    "with_schema",
    "with_request_initializer",
    "with_codec",
    "with_compress_min_bytes",
    "with_read_max_bytes",
    "with_send_max_bytes",
    "with_idempotency",
    "with_interceptors",
    "with_options",
]


class Codec(Protocol):
    """A named serialization method."""

    @property
    def name(self) -> str:
        """The name the codec is registered under, such as ``"proto"``."""


def new_handler_config(
    procedure: str, stream_type: StreamType, options: Iterable[HandlerOption]
) -> HandlerConfig:
    """Build the configuration of a handler for ``procedure``.

    Handlers support gzip by default; the given options are applied in order
    afterwards and may override or remove it.
    """
    config = HandlerConfig(
        procedure=extract_proto_path(procedure),
        stream_type=StreamType(stream_type),
    )
    with_gzip().apply_to_handler(config)
    for option in options:
        option.apply_to_handler(config)
    return config


@dataclass(frozen=True)
class _OptionGroup:
    options: Tuple[HandlerOption, ...]

    def apply_to_handler(self, config: HandlerConfig) -> None:
        for option in self.options:
            option.apply_to_handler(config)


def with_handler_options(*args: HandlerOption) -> HandlerOption:
    """Compose several handler options into one, applied in order."""
    return _OptionGroup(tuple(args))


def with_options(*args: HandlerOption) -> HandlerOption:
    """Compose several options into one, applied in order."""
    return _OptionGroup(tuple(args))


@dataclass(frozen=True)
class _RequireConnectProtocolHeader:
    def apply_to_handler(self, config: HandlerConfig) -> None:
        config.require_connect_protocol_header = True


def with_require_connect_protocol_header() -> HandlerOption:
    """Require Connect requests to carry the Connect-Protocol-Version header."""
    return _RequireConnectProtocolHeader()


@dataclass(frozen=True)
class _ConditionalOptions:
    conditional: Callable[[Spec], Optional[Sequence[HandlerOption]]]

    def apply_to_handler(self, config: HandlerConfig) -> None:
        spec = config.new_spec()
        if not spec.procedure:
            return
        for option in self.conditional(spec) or ():
            option.apply_to_handler(config)


def with_conditional_handler_options(
    conditional: Callable[[Spec], Optional[Sequence[HandlerOption]]],
) -> HandlerOption:
    """Apply the options that ``conditional`` picks after inspecting the spec.

    Returning ``None`` is allowed. Configurations without a procedure are
    left alone.
    """
    return _ConditionalOptions(conditional)


@dataclass(frozen=True)
class _Schema:
    schema: Any

    def apply_to_handler(self, config: HandlerConfig) -> None:
        config.schema = self.schema


def with_schema(schema: Any) -> HandlerOption:
    """Attach a parsed schema, exposed as :attr:`Spec.schema`."""
    return _Schema(schema)


@dataclass(frozen=True)
class _RequestInitializer:
    initializer: Optional[Initializer]

    def apply_to_handler(self, config: HandlerConfig) -> None:
        config.initializer = MaybeInitializer(self.initializer)


def with_request_initializer(initializer: Optional[Initializer]) -> HandlerOption:
    """Initialize each new request message before it is unmarshaled into."""
    return _RequestInitializer(initializer)


@dataclass(frozen=True)
class _CodecOption:
    codec: Optional[Codec]

    def apply_to_handler(self, config: HandlerConfig) -> None:
        if self.codec is None or not self.codec.name:
            return
        config.codecs[self.codec.name] = self.codec


def with_codec(codec: Optional[Codec]) -> HandlerOption:
    """Register a codec under its name; a codec with no name is ignored."""
    return _CodecOption(codec)


@dataclass(frozen=True)
class _CompressMinBytes:
    minimum: int

    def apply_to_handler(self, config: HandlerConfig) -> None:
        config.compress_min_bytes = self.minimum


def with_compress_min_bytes(minimum: int) -> HandlerOption:
    """Send messages smaller than ``minimum`` bytes uncompressed."""
    return _CompressMinBytes(minimum)


@dataclass(frozen=True)
class _ReadMaxBytes:
    maximum: int

    def apply_to_handler(self, config: HandlerConfig) -> None:
        config.read_max_bytes = self.maximum


def with_read_max_bytes(maximum: int) -> HandlerOption:
    """Limit the size of each received message; zero means no limit."""
    return _ReadMaxBytes(maximum)


@dataclass(frozen=True)
class _SendMaxBytes:
    maximum: int

    def apply_to_handler(self, config: HandlerConfig) -> None:
        config.send_max_bytes = self.maximum


def with_send_max_bytes(maximum: int) -> HandlerOption:
    """Limit the size of each sent message; zero means no limit."""
    return _SendMaxBytes(maximum)


@dataclass(frozen=True)
class _Idempotency:
    level: IdempotencyLevel

    def apply_to_handler(self, config: HandlerConfig) -> None:
        config.idempotency_level = self.level


def with_idempotency(level: IdempotencyLevel) -> HandlerOption:
    """Declare how idempotent the procedure is."""
    return _Idempotency(IdempotencyLevel(level))


@dataclass(frozen=True)
class _Interceptors:
    interceptors: Tuple[Interceptor, ...]

    def chain_with(self, current: Optional[Interceptor]) -> Optional[Interceptor]:
        if not self.interceptors:
            return current
        if current is None:
            if len(self.interceptors) == 1:
                return self.interceptors[0]
            return Chain(self.interceptors)
        return Chain((current, *self.interceptors))

    def apply_to_handler(self, config: HandlerConfig) -> None:
        config.interceptor = self.chain_with(config.interceptor)


def with_interceptors(*args: Interceptor) -> HandlerOption:
    """Add interceptors; the first given acts outermost.

    Repeated uses append to the stack, so ``with_interceptors(a)`` followed by
    ``with_interceptors(b, c)`` equals ``with_interceptors(a, b, c)``.
    """
    return _Interceptors(tuple(args))