"""HTTP header helpers for multi-valued header maps with canonical keys.

Headers are plain ``dict[str, list[str]]`` mappings whose keys are assumed to
already be in canonical form (for example ``"Content-Type"``).
"""

from __future__ import annotations

import base64
import binascii
from typing import Dict, List, Mapping, MutableMapping, Optional, Sequence

Headers = Dict[str, List[str]]

__all__ = [
    "Headers",
    "encode_binary_header",
    "decode_binary_header",
    "merge_headers",
    "get_header",
    "set_header",
    "add_header",
    "del_header",
]


def encode_binary_header(data: bytes) -> str:
    """Base64-encode ``data`` for a binary ("-Bin") header, without padding."""
    return base64.b64encode(data).decode("ascii").rstrip("=")


def decode_binary_header(data: str) -> bytes:
    """Decode a padded or unpadded base64 binary header value.

    Comma-separated values must be split before decoding. Raises
    :class:`ValueError` if the value is not valid base64.
    """
    if len(data) % 4 != 0:
        # The value definitely isn't padded, so padding characters are invalid.
        if "=" in data:
            raise ValueError(f"illegal base64 data: unexpected padding in {data!r}")
        data = data + "=" * (-len(data) % 4)
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"illegal base64 data: {exc}") from exc


def merge_headers(
    into: MutableMapping[str, List[str]],
    source: Mapping[str, Optional[Sequence[str]]],
) -> None:
    """Append every value in ``source`` to the matching key of ``into``."""
    for key, values in source.items():
        into.setdefault(key, []).extend(values or ())


def get_header(headers: Optional[Mapping[str, Sequence[str]]], key: str) -> str:
    """Return the first value stored under ``key``, or an empty string."""
    if headers is None:
        return ""
    values = headers.get(key)
    if not values:
        return ""
    return values[0]


def set_header(headers: MutableMapping[str, List[str]], key: str, value: str) -> None:
    """Replace all values under ``key`` with ``value``."""
    headers[key] = [value]


def add_header(headers: MutableMapping[str, List[str]], key: str, value: str) -> None:
    """Append ``value`` to the values under ``key``."""
    headers.setdefault(key, []).append(value)


def del_header(headers: MutableMapping[str, List[str]], key: str) -> None:
    """Remove ``key`` and all its values, if present."""
    headers.pop(key, None)