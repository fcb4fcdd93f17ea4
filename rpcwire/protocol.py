"""Protocol-agnostic plumbing shared by the RPC protocol implementations.

This covers content-type canonicalization, compression negotiation, the
``Allow`` and ``Accept-Post`` values advertised by handlers, and draining
request bodies.
"""

from __future__ import annotations

import re
from typing import (
    AbstractSet,
    BinaryIO,
    Collection,
    Dict,
    Iterable,
    List,
    Optional,
    Protocol,
    Tuple,
    TypeVar,
)
from urllib.parse import unquote_to_bytes

__all__ = [
    "PROTOCOL_CONNECT",
    "PROTOCOL_GRPC",
    "PROTOCOL_GRPC_WEB",
    "HEADER_CONTENT_TYPE",
    "HEADER_CONTENT_ENCODING",
    "HEADER_CONTENT_LENGTH",
    "HEADER_HOST",
    "HEADER_USER_AGENT",
    "HEADER_TRAILER",
    "DISCARD_LIMIT",
    "COMPRESSION_IDENTITY",
    "ProtocolHandler",
    "UnknownCompressionError",
    "canonicalize_content_type",
    "mapped_method_handlers",
    "sorted_accept_post_value",
    "sorted_allow_method_value",
    "split_encodings",
    "discard",
    "negotiate_compression",
]

PROTOCOL_CONNECT = "connect"
PROTOCOL_GRPC = "grpc"
PROTOCOL_GRPC_WEB = "grpcweb"

HEADER_CONTENT_TYPE = "Content-Type"
HEADER_CONTENT_ENCODING = "Content-Encoding"
HEADER_CONTENT_LENGTH = "Content-Length"
HEADER_HOST = "Host"
HEADER_USER_AGENT = "User-Agent"
HEADER_TRAILER = "Trailer"

DISCARD_LIMIT = 4 * 1024 * 1024  # 4 MiB
COMPRESSION_IDENTITY = "identity"

_DISCARD_CHUNK = 32 * 1024


class ProtocolHandler(Protocol):
    """The server side of a protocol, as far as routing is concerned."""

    @property
    def methods(self) -> AbstractSet[str]:
        """HTTP methods the protocol can handle."""

    @property
    def content_types(self) -> AbstractSet[str]:
        """HTTP Content-Types the protocol can handle."""


H = TypeVar("H", bound=ProtocolHandler)


class UnknownCompressionError(ValueError):
    """The client sent a message compressed with an unsupported algorithm."""

    code = "unimplemented"

    def __init__(self, sent: str, supported: str) -> None:
        self.sent = sent
        self.supported = supported
        super().__init__(
            f'unknown compression "{sent}": supported encodings are {supported}'
        )


def mapped_method_handlers(handlers: Iterable[H]) -> Dict[str, List[H]]:
    """Group handlers by the HTTP methods they accept, keeping their order."""
    by_method: Dict[str, List[H]] = {}
    for handler in handlers:
        for method in sorted(handler.methods):
            by_method.setdefault(method, []).append(handler)
    return by_method


def sorted_accept_post_value(handlers: Iterable[ProtocolHandler]) -> str:
    """Return the sorted, comma-separated union of supported content types."""
    content_types = {ct for handler in handlers for ct in handler.content_types}
    return ", ".join(sorted(content_types))


def sorted_allow_method_value(handlers: Iterable[ProtocolHandler]) -> str:
    """Return the sorted, comma-separated union of supported HTTP methods."""
    methods = {method for handler in handlers for method in handler.methods}
    return ", ".join(sorted(methods))


def split_encodings(accept: str) -> List[str]:
    """Split an accept-encoding value on commas and spaces, dropping empties."""
    return [name for name in re.split(r"[, ]+", accept) if name]


def discard(reader: BinaryIO, limit: Optional[int] = DISCARD_LIMIT) -> int:
    """Read and throw away data from ``reader``, returning the byte count.

    At most ``limit`` bytes are read; with ``limit=None`` the reader is
    drained to the end.
    """
    total = 0
    while limit is None or total < limit:
        size = _DISCARD_CHUNK if limit is None else min(_DISCARD_CHUNK, limit - total)
        chunk = reader.read(size)
        if not chunk:
            break
        total += len(chunk)
    return total


def negotiate_compression(
    available: Collection[str], sent: str, accept: str
) -> Tuple[str, str]:
    """Choose the request and response compression.

    ``available`` holds the names of the supported algorithms, ``sent`` the
    encoding the client used and ``accept`` the encodings it accepts.
    Returns ``(request_compression, response_compression)``; raises
    :class:`UnknownCompressionError` if ``sent`` is not supported.
    """
    request_compression = COMPRESSION_IDENTITY
    if sent and sent != COMPRESSION_IDENTITY:
        if sent not in available:
            raise UnknownCompressionError(sent, ",".join(available))
        request_compression = sent
    response_compression = request_compression
    if response_compression == COMPRESSION_IDENTITY and accept:
        for name in split_encodings(accept):
            if name in available:
                response_compression = name
                break
    return request_compression, response_compression


_FAST_CHARS = frozenset("abcdefghijklmnopqrstuvwxyz.+-/")


def canonicalize_content_type(content_type: str) -> str:
    """Return the canonical form of a Content-Type value.

    The media type and parameter names are lower-cased, parameters are
    sorted and the charset value is lower-cased. Values that cannot be
    parsed are returned unchanged.
    """
    if content_type.count("/") == 1 and all(c in _FAST_CHARS for c in content_type):
        return content_type
    try:
        base, params = _parse_media_type(content_type)
    except ValueError:
        return content_type
    if "charset" in params:
        params["charset"] = params["charset"].lower()
    return _format_media_type(base, params)


# Media-type parsing and formatting (RFC 2045, RFC 2231).

_TSPECIALS = frozenset('()<>@,;:\\"/[]?=')


def _is_tspecial(ch: str) -> bool:
    return ch in _TSPECIALS


def _is_token_char(ch: str) -> bool:
    return 0x20 < ord(ch) < 0x7F and not _is_tspecial(ch)


def _is_token(text: str) -> bool:
    return bool(text) and all(_is_token_char(ch) for ch in text)


def _consume_token(text: str) -> Tuple[str, str]:
    end = 0
    while end < len(text) and _is_token_char(text[end]):
        end += 1
    return text[:end], text[end:]


def _consume_value(text: str) -> Tuple[str, str]:
    if not text or text[0] != '"':
        return _consume_token(text)
    out: List[str] = []
    i = 1
    while i < len(text):
        ch = text[i]
        if ch == '"':
            return "".join(out), text[i + 1:]
        if ch == "\\" and i + 1 < len(text) and _is_tspecial(text[i + 1]):
            out.append(text[i + 1])
            i += 2
            continue
        if ch in "\r\n":
            return "", text
        out.append(ch)
        i += 1
    return "", text


def _consume_media_param(text: str) -> Tuple[str, str, str]:
    rest = text.lstrip()
    if not rest.startswith(";"):
        return "", "", text
    rest = rest[1:].lstrip()
    param, rest = _consume_token(rest)
    param = param.lower()
    if not param:
        return "", "", text
    rest = rest.lstrip()
    if not rest.startswith("="):
        return "", "", text
    rest = rest[1:].lstrip()
    value, after = _consume_value(rest)
    if not value and after == rest:
        return "", "", text
    return param, value, after


def _check_media_type(media_type: str) -> None:
    kind, rest = _consume_token(media_type)
    if not kind:
        raise ValueError("no media type")
    if not rest:
        return
    if not rest.startswith("/"):
        raise ValueError("expected slash after first token")
    subtype, rest = _consume_token(rest[1:])
    if not subtype:
        raise ValueError("expected token after slash")
    if rest:
        raise ValueError("unexpected content after media subtype")


def _percent_unescape(text: str) -> str:
    if re.search(r"%(?![0-9A-Fa-f]{2})", text):
        raise ValueError("invalid percent escape")
    return unquote_to_bytes(text).decode("utf-8", "replace")


def _decode_2231(value: str) -> Optional[str]:
    parts = value.split("'", 2)
    if len(parts) != 3:
        return None
    charset = parts[0].lower()
    if charset not in ("us-ascii", "utf-8"):
        return None
    try:
        return _percent_unescape(parts[2])
    except ValueError:
        return None


def _parse_media_type(value: str) -> Tuple[str, Dict[str, str]]:
    base = value.split(";", 1)[0]
    media_type = base.lower().strip()
    _check_media_type(media_type)

    params: Dict[str, str] = {}
    continuation: Dict[str, Dict[str, str]] = {}
    rest = value[len(base):]
    while rest:
        rest = rest.lstrip()
        if not rest:
            break
        key, param_value, remainder = _consume_media_param(rest)
        if not key:
            if remainder.strip() == ";":
                break  # a trailing semicolon is allowed
            raise ValueError("invalid media parameter")
        target = params
        if "*" in key:
            target = continuation.setdefault(key.split("*", 1)[0], {})
        if key in target and target[key] != param_value:
            raise ValueError("duplicate parameter name")
        target[key] = param_value
        rest = remainder

    for name, pieces in continuation.items():
        single = name + "*"
        if single in pieces:
            decoded = _decode_2231(pieces[single])
            if decoded is not None:
                params[name] = decoded
            continue
        joined: List[str] = []
        valid = False
        n = 0
        while True:
            simple = f"{name}*{n}"
            if simple in pieces:
                valid = True
                joined.append(pieces[simple])
            elif simple + "*" in pieces:
                valid = True
                encoded = pieces[simple + "*"]
                if n == 0:
                    decoded = _decode_2231(encoded)
                    if decoded is not None:
                        joined.append(decoded)
                else:
                    try:
                        joined.append(_percent_unescape(encoded))
                    except ValueError:
                        pass
            else:
                break
            n += 1
        if valid:
            params[name] = "".join(joined)
    return media_type, params


def _needs_encoding(value: str) -> bool:
    return any((ch < " " or ch > "~") and ch != "\t" for ch in value)


def _format_media_type(media_type: str, params: Dict[str, str]) -> str:
    major, slash, sub = media_type.partition("/")
    if slash:
        if not (_is_token(major) and _is_token(sub)):
            return ""
        out = [major.lower(), "/", sub.lower()]
    else:
        if not _is_token(media_type):
            return ""
        out = [media_type.lower()]

    for attribute in sorted(params):
        value = params[attribute]
        if not _is_token(attribute):
            return ""
        out.append("; ")
        out.append(attribute.lower())
        if _needs_encoding(value):
            out.append("*=utf-8''")
            for byte in value.encode("utf-8"):
                ch = chr(byte)
                if (
                    byte <= 0x20
                    or byte >= 0x7F
                    or ch in "*'%"
                    or _is_tspecial(ch)
                ):
                    out.append(f"%{byte:02X}")
                else:
                    out.append(ch)
            continue
        out.append("=")
        if _is_token(value):
            out.append(value)
        else:
            escaped = value.replace("\\", "\\\\").replace('"', '\\"')
            out.append(f'"{escaped}"')
    return "".join(out)