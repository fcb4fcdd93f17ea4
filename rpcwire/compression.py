"""Compression algorithms and the option that registers them on handlers."""

from __future__ import annotations

import gzip
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from rpcwire.config import HandlerConfig

__all__ = [
    "COMPRESSION_GZIP",
    "Compressor",
    "Decompressor",
    "CompressionPool",
    "CompressionOption",
    "with_compression",
    "with_gzip",
]

COMPRESSION_GZIP = "gzip"


class Compressor(Protocol):
    def compress(self, data: bytes) -> bytes:
        """Return ``data`` compressed."""


class Decompressor(Protocol):
    def decompress(self, data: bytes) -> bytes:
        """Return ``data`` decompressed."""


class CompressionPool:
    """Hands out reusable compressors and decompressors of one algorithm."""

    def __init__(
        self,
        new_decompressor: Callable[[], Decompressor],
        new_compressor: Callable[[], Compressor],
    ) -> None:
        self._new_decompressor = new_decompressor
        self._new_compressor = new_compressor
        self._lock = threading.Lock()
        self._compressors: List[Compressor] = []
        self._decompressors: List[Decompressor] = []

    def compress(self, data: bytes) -> bytes:
        """Compress ``data`` with a pooled compressor."""
        with self._lock:
            compressor = (
                self._compressors.pop() if self._compressors else None
            )
        if compressor is None:
            compressor = self._new_compressor()
        result = compressor.compress(data)
        with self._lock:
            self._compressors.append(compressor)
        return result

    def decompress(self, data: bytes) -> bytes:
        """Decompress ``data`` with a pooled decompressor.

        Errors raised by the decompressor propagate, and the decompressor is
        not returned to the pool.
        """
        with self._lock:
            decompressor = (
                self._decompressors.pop() if self._decompressors else None
            )
        if decompressor is None:
            decompressor = self._new_decompressor()
        result = decompressor.decompress(data)
        with self._lock:
            self._decompressors.append(decompressor)
        return result


@dataclass(frozen=True)
class CompressionOption:
    """Registers (or, with no pool, removes) a named compression algorithm."""

    name: str
    pool: Optional[CompressionPool]

    def apply(self, names: List[str], pools: dict) -> None:
        """Update a list of algorithm names and a name-to-pool mapping in place."""
        if not self.name:
            return
        if self.pool is None:
            pools.pop(self.name, None)
            names[:] = [name for name in names if name != self.name]
            return
        pools[self.name] = self.pool
        names.append(self.name)

    def apply_to_handler(self, config: HandlerConfig) -> None:
        self.apply(config.compression_names, config.compression_pools)


def with_compression(
    name: str,
    new_decompressor: Optional[Callable[[], Decompressor]],
    new_compressor: Optional[Callable[[], Compressor]],
) -> CompressionOption:
    """Support a compression algorithm on handlers.

    Passing ``None`` for both constructors removes a previously registered
    algorithm; an empty name makes the option a no-op.
    """
    if new_decompressor is None and new_compressor is None:
        return CompressionOption(name, None)
    if new_decompressor is None or new_compressor is None:
        raise ValueError(
            "compression requires both a decompressor and a compressor constructor"
        )
    return CompressionOption(name, CompressionPool(new_decompressor, new_compressor))


class _GzipCompressor:
    def compress(self, data: bytes) -> bytes:
        return gzip.compress(data, mtime=0)


class _GzipDecompressor:
    def decompress(self, data: bytes) -> bytes:
        return gzip.decompress(data)


def with_gzip() -> CompressionOption:
    """Support gzip at the default compression level."""
    return with_compression(COMPRESSION_GZIP, _GzipDecompressor, _GzipCompressor)