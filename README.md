# rpcwire

Building blocks for server-side RPC handlers in the style of the Connect,
gRPC and gRPC-Web protocols. It covers binary headers, content-type
canonicalization, compression negotiation, handler options, interceptors
and the handler's view of streaming RPCs. The package has no runtime
dependencies.

## Modules

- `rpcwire.headers`: `encode_binary_header` produces unpadded base64.
  `decode_binary_header` accepts padded or unpadded base64 and raises
  `ValueError` on bad input. Header mappings are `dict[str, list[str]]`,
  and `merge_headers`, `get_header`, `set_header`, `add_header` and
  `del_header` work on them.
- `rpcwire.idempotency`: `IdempotencyLevel` (`UNKNOWN`, `NO_SIDE_EFFECTS`,
  `IDEMPOTENT`). Its `str()` gives `idempotency_unknown`, `no_side_effects`
  or `idempotent`. Other integers are accepted and print as
  `idempotency_<n>`.
- `rpcwire.procedures`: `extract_proto_path` turns a URL or a path into a
  `/package.Service/Method` procedure name.
- `rpcwire.interceptor`: `UnaryInterceptorFunc` wraps only unary functions
  and passes streaming functions through unchanged. `Chain` composes
  interceptors so that the first one given is the outermost.
- `rpcwire.listener`: `MemoryListener` is an in-memory listener. `dial()`
  blocks until `accept()` takes the connection, and each side then holds one
  end of a connected socket pair. Both methods take an optional timeout and
  raise `ListenerClosedError` once the listener is closed.
- `rpcwire.protocol`:
  - `canonicalize_content_type` canonicalizes a content type.
  - `negotiate_compression` picks the request and response compression. It
    raises `UnknownCompressionError` for an unsupported sent encoding.
  - `split_encodings` splits an accept-encoding value.
  - `discard` drains a binary reader, by default up to 4 MiB.
  - `mapped_method_handlers`, `sorted_allow_method_value` and
    `sorted_accept_post_value` build the `Allow` and `Accept-Post` values.
- `rpcwire.config`: `StreamType`, `Spec`, `MaybeInitializer` and
  `HandlerConfig`.
- `rpcwire.compression`: `CompressionPool`, `with_compression` and
  `with_gzip`.
- `rpcwire.options`: `new_handler_config` and the handler options:
  - `with_schema`
  - `with_request_initializer`
  - `with_codec`
  - `with_compress_min_bytes`
  - `with_read_max_bytes`
  - `with_send_max_bytes`
  - `with_idempotency`
  - `with_interceptors`
  - `with_require_connect_protocol_header`
  - `with_conditional_handler_options`
  - `with_handler_options` and `with_options`
- `rpcwire.streams`: `ClientStream`, `ServerStream` and `BidiStream`, the
  handler's view of streaming RPCs. These are built over any object with
  `spec`, `peer`, header attributes, `receive(msg)` and `send(msg)`.

## Examples

```python
from rpcwire.headers import encode_binary_header, decode_binary_header
from rpcwire.procedures import extract_proto_path
from rpcwire.protocol import canonicalize_content_type, negotiate_compression

encoded = encode_binary_header(b"\x00\x01\x02")
assert decode_binary_header(encoded) == b"\x00\x01\x02"

assert extract_proto_path(
    "https://api.example.com/grpc/foo.user.v1.UserService/GetUser"
) == "/foo.user.v1.UserService/GetUser"

assert canonicalize_content_type("application/json; charset=UTF-8") == (
    "application/json; charset=utf-8"
)

assert negotiate_compression({"gzip"}, "", "br, gzip") == ("identity", "gzip")
```

Handler configuration is built from options. Gzip is registered first, and
then the options are applied in order:

```python
from rpcwire.config import StreamType
from rpcwire.options import new_handler_config, with_read_max_bytes

config = new_handler_config(
    "/connect.ping.v1.PingService/Ping",
    StreamType.UNARY,
    [with_read_max_bytes(1024)],
)
assert config.compression_names == ["gzip"]
spec = config.new_spec()
assert spec.procedure == "/connect.ping.v1.PingService/Ping"
```

Interceptors compose like an onion:

```python
from rpcwire.interceptor import Chain, UnaryInterceptorFunc

calls = []

def tagged(name):
    def wrap(next_func):
        def unary(ctx, request):
            calls.append(name)
            return next_func(ctx, request)
        return unary
    return UnaryInterceptorFunc(wrap)

handler = Chain([tagged("outer"), tagged("inner")]).wrap_unary(lambda ctx, req: req)
assert handler(None, 42) == 42
assert calls == ["outer", "inner"]
```

## What it does not do

The package has no HTTP handler, server or client. It does not implement the
wire protocols themselves, such as message envelopes, error encoding or
timeouts. It also has no codecs: `with_codec` only records codec objects by
name in the configuration, and no codec is registered by default.

## Tests

```
pip install -e .[test]
pytest
```