"""The handler's view of client, server and bidirectional streaming RPCs."""

from __future__ import annotations

from typing import Any, Callable, Generic, Iterator, Optional, Protocol, TypeVar

from rpcwire.config import MaybeInitializer, Spec
from rpcwire.headers import Headers

__all__ = [
    "StreamingHandlerConn",
    "ClientStream",
    "ServerStream",
    "BidiStream",
]

Req = TypeVar("Req")
Res = TypeVar("Res")


class StreamingHandlerConn(Protocol):
    """A handler-side connection carrying the messages of one RPC.

    ``receive`` fills the given message in place and raises
    :class:`EOFError` once the client has finished sending.
    """

    spec: Spec
    peer: Any
    request_header: Headers
    response_header: Headers
    response_trailer: Headers

    def receive(self, msg: Any) -> None:
        """Unmarshal the next message into ``msg``."""

    def send(self, msg: Any) -> None:
        """Send ``msg`` to the client."""


class ClientStream(Generic[Req]):
    """The handler's view of a client streaming RPC.

    Each call to :meth:`receive` allocates a fresh message. Iterating the
    stream yields messages until the client finishes, then raises the first
    error other than end-of-stream, if any.
    """

    def __init__(
        self,
        conn: StreamingHandlerConn,
        message_factory: Callable[[], Req],
        initializer: Optional[MaybeInitializer] = None,
    ) -> None:
        self.conn = conn
        self._factory = message_factory
        self._initializer = initializer or MaybeInitializer()
        self._msg: Optional[Req] = None
        self._error: Optional[BaseException] = None

    @property
    def spec(self) -> Spec:
        return self.conn.spec

    @property
    def peer(self) -> Any:
        return self.conn.peer

    @property
    def request_header(self) -> Headers:
        return self.conn.request_header

    def receive(self) -> bool:
        """Advance to the next message.

        Returns False once the stream stops, either at its end or on an
        error; :attr:`err` then holds any unexpected error.
        """
        if self._error is not None:
            return False
        self._msg = self._factory()
        try:
            self._initializer.maybe(self.spec, self._msg)
            self.conn.receive(self._msg)
        except Exception as exc:  # noqa: BLE001 - kept for err
            self._error = exc
            return False
        return True

    @property
    def msg(self) -> Req:
        """The message most recently received."""
        if self._msg is None:
            self._msg = self._factory()
        return self._msg

    @property
    def err(self) -> Optional[BaseException]:
        """The first error met by :meth:`receive`, ignoring end-of-stream."""
        if self._error is None or isinstance(self._error, EOFError):
            return None
        return self._error

    def __iter__(self) -> Iterator[Req]:
        while self.receive():
            yield self.msg
        error = self.err
        if error is not None:
            raise error


class ServerStream(Generic[Res]):
    """The handler's view of a server streaming RPC."""

    def __init__(self, conn: StreamingHandlerConn) -> None:
        self.conn = conn

    @property
    def response_header(self) -> Headers:
        """Headers sent with the first message."""
        return self.conn.response_header

    @property
    def response_trailer(self) -> Headers:
        """Trailers sent after the handler returns."""
        return self.conn.response_trailer

    def send(self, msg: Optional[Res]) -> None:
        """Send a message; the first send also sends the headers."""
        self.conn.send(msg)


class BidiStream(Generic[Req, Res]):
    """The handler's view of a bidirectional streaming RPC."""

    def __init__(
        self,
        conn: StreamingHandlerConn,
        message_factory: Callable[[], Req],
        initializer: Optional[MaybeInitializer] = None,
    ) -> None:
        self.conn = conn
        self._factory = message_factory
        self._initializer = initializer or MaybeInitializer()

    @property
    def spec(self) -> Spec:
        return self.conn.spec

    @property
    def peer(self) -> Any:
        return self.conn.peer

    @property
    def request_header(self) -> Headers:
        return self.conn.request_header

    @property
    def response_header(self) -> Headers:
        return self.conn.response_header

    @property
    def response_trailer(self) -> Headers:
        return self.conn.response_trailer

    def receive(self) -> Req:
        """Receive a message; raises :class:`EOFError` when the client is done."""
        msg = self._factory()
        self._initializer.maybe(self.spec, msg)
        self.conn.receive(msg)
        return msg

    def send(self, msg: Optional[Res]) -> None:
        """Send a message; the first send also sends the headers."""
        self.conn.send(msg)