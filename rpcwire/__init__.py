"""Building blocks for RPC handlers: headers, content types, compression, options, interceptors and streams."""

__version__ = "0.1.0"

__all__ = [
    "compression",
    "config",
    "headers",
    "idempotency",
    "interceptor",
    "listener",
    "options",
    "procedures",
    "protocol",
    "streams",
]