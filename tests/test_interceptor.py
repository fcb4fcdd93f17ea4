import pytest

from rpcwire.interceptor import Chain, UnaryInterceptorFunc


def _tracing(events, name):
    def wrap(next_func):
        def call(ctx, request):
            events.append(f"{name} interceptor: before call")
            response = next_func(ctx, request)
            events.append(f"{name} interceptor: after call")
            return response

        return call

    return UnaryInterceptorFunc(wrap)


class _StreamingRecorder:
    def __init__(self, events, name):
        self.events = events
        self.name = name

    def wrap_unary(self, next_func):
        return next_func

    def wrap_streaming_client(self, next_func):
        def call(ctx, spec):
            self.events.append(f"{self.name} client")
            return next_func(ctx, spec)

        return call

    def wrap_streaming_handler(self, next_func):
        def call(ctx, conn):
            self.events.append(f"{self.name} handler")
            return next_func(ctx, conn)

        return call


def _echo(ctx, request):
    return {"number": request["number"]}


def test_logging_unary_interceptor():
    lines = []

    def logging(next_func):
        def call(ctx, request):
            lines.append(f"request: number:{request['number']}")
            response = next_func(ctx, request)
            lines.append(f"response: number:{response['number']}")
            return response

        return call

    interceptor = UnaryInterceptorFunc(logging)
    result = interceptor.wrap_unary(_echo)(None, {"number": 42})
    assert result == {"number": 42}
    assert lines == ["request: number:42", "response: number:42"]


def test_logging_interceptor_sees_errors():
    lines = []

    def failing(ctx, request):
        raise RuntimeError("boom")

    def logging(next_func):
        def call(ctx, request):
            try:
                return next_func(ctx, request)
            except RuntimeError as exc:
                lines.append(f"error: {exc}")
                raise

        return call

    wrapped = UnaryInterceptorFunc(logging).wrap_unary(failing)
    with pytest.raises(RuntimeError, match="boom"):
        wrapped(None, {})
    assert lines == ["error: boom"]


def test_with_interceptors_order():
    events = []
    chain = Chain([_tracing(events, "outer"), _tracing(events, "inner")])
    chain.wrap_unary(_echo)(None, {"number": 0})
    assert events == [
        "outer interceptor: before call",
        "inner interceptor: before call",
        "inner interceptor: after call",
        "outer interceptor: after call",
    ]


def test_chain_skips_none():
    events = []
    chain = Chain([None, _tracing(events, "only"), None])
    assert len(chain.interceptors) == 1
    assert chain.wrap_unary(_echo)(None, {"number": 3}) == {"number": 3}
    assert events == ["only interceptor: before call", "only interceptor: after call"]


def test_unary_interceptor_leaves_streams_alone():
    interceptor = _tracing([], "x")

    def client(ctx, spec):
        return spec

    def handler(ctx, conn):
        return None

    assert interceptor.wrap_streaming_client(client) is client
    assert interceptor.wrap_streaming_handler(handler) is handler


def test_chain_streaming_order():
    events = []
    chain = Chain([_StreamingRecorder(events, "a"), _StreamingRecorder(events, "b")])
    assert chain.wrap_streaming_client(lambda ctx, spec: spec)(None, "spec") == "spec"
    chain.wrap_streaming_handler(lambda ctx, conn: events.append("impl"))(None, None)
    assert events == ["a client", "b client", "a handler", "b handler", "impl"]


def test_empty_chain_is_identity():
    chain = Chain([])
    assert chain.wrap_unary(_echo) is _echo