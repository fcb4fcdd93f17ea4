from dataclasses import dataclass, field
from typing import Any, List, Optional

import pytest

from rpcwire.config import MaybeInitializer, Spec
from rpcwire.streams import BidiStream, ClientStream, ServerStream


@dataclass
class Message:
    number: int = 0
    tag: str = ""


@dataclass
class FakeConn:
    incoming: Optional[List[int]] = None
    error: Optional[BaseException] = None
    spec: Spec = field(default_factory=Spec)
    peer: Any = "peer"
    request_header: dict = field(default_factory=lambda: {"Foo": ["bar"]})
    response_header: dict = field(default_factory=dict)
    response_trailer: dict = field(default_factory=dict)
    sent: list = field(default_factory=list)

    def receive(self, msg):
        if self.incoming is None:
            return
        if not self.incoming:
            raise self.error if self.error is not None else EOFError()
        msg.number = self.incoming.pop(0)

    def send(self, msg):
        self.sent.append(msg)


def test_client_stream_allocates_new_message_each_iteration():
    stream = ClientStream(FakeConn(), Message)
    assert stream.receive() is True
    first = stream.msg
    assert stream.receive() is True
    second = stream.msg
    assert first is not second
    assert first == second == Message()


def test_client_stream_iterates_until_eof_without_error():
    stream = ClientStream(FakeConn(incoming=[1, 2, 3]), Message)
    assert [m.number for m in stream] == [1, 2, 3]
    assert stream.err is None
    assert stream.receive() is False


def test_client_stream_reports_non_eof_error():
    failure = RuntimeError("boom")
    stream = ClientStream(FakeConn(incoming=[5], error=failure), Message)
    assert stream.receive() is True
    assert stream.msg.number == 5
    assert stream.receive() is False
    assert stream.err is failure


def test_client_stream_iteration_raises_error():
    stream = ClientStream(FakeConn(incoming=[1], error=ValueError("bad")), Message)
    received = []
    with pytest.raises(ValueError, match="bad"):
        for msg in stream:
            received.append(msg.number)
    assert received == [1]


def test_client_stream_msg_before_receive_is_fresh():
    stream = ClientStream(FakeConn(), Message)
    assert stream.msg == Message()


def test_client_stream_initializer_runs_and_errors_stop_stream():
    def init(spec, msg):
        msg.tag = spec.procedure

    conn = FakeConn(incoming=[7], spec=Spec(procedure="/a.B/C"))
    stream = ClientStream(conn, Message, MaybeInitializer(init))
    assert stream.receive()
    assert stream.msg == Message(number=7, tag="/a.B/C")

    def failing(spec, msg):
        raise KeyError("nope")

    stream = ClientStream(FakeConn(incoming=[1]), Message, MaybeInitializer(failing))
    assert stream.receive() is False
    assert isinstance(stream.err, KeyError)


def test_client_stream_exposes_conn_details():
    conn = FakeConn(spec=Spec(procedure="/x.Y/Z"))
    stream = ClientStream(conn, Message)
    assert stream.spec.procedure == "/x.Y/Z"
    assert stream.peer == "peer"
    assert stream.request_header == {"Foo": ["bar"]}
    assert stream.conn is conn


def test_server_stream_send_and_headers():
    conn = FakeConn()
    stream = ServerStream(conn)
    stream.response_header["X-A"] = ["1"]
    stream.response_trailer["X-B"] = ["2"]
    stream.send(Message(number=4))
    stream.send(None)
    assert conn.sent == [Message(number=4), None]
    assert conn.response_header == {"X-A": ["1"]}
    assert conn.response_trailer == {"X-B": ["2"]}


def test_bidi_stream_receive_and_send():
    conn = FakeConn(incoming=[10, 20])
    stream = BidiStream(conn, Message)
    assert stream.receive().number == 10
    assert stream.receive().number == 20
    with pytest.raises(EOFError):
        stream.receive()
    stream.send(Message(number=30))
    assert conn.sent == [Message(number=30)]


def test_bidi_stream_initializer_error_propagates():
    def failing(spec, msg):
        raise RuntimeError("init failed")

    stream = BidiStream(FakeConn(incoming=[1]), Message, MaybeInitializer(failing))
    with pytest.raises(RuntimeError, match="init failed"):
        stream.receive()