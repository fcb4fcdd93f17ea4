import zlib

import pytest
from hypothesis import given
from hypothesis import strategies as st

from rpcwire.compression import (
    COMPRESSION_GZIP,
    CompressionOption,
    CompressionPool,
    with_compression,
    with_gzip,
)
from rpcwire.config import HandlerConfig


class ZlibCompressor:
    def compress(self, data):
        return zlib.compress(data)


class ZlibDecompressor:
    def decompress(self, data):
        return zlib.decompress(data)


@given(st.binary())
def test_gzip_round_trip(data):
    pool = with_gzip().pool
    assert pool.decompress(pool.compress(data)) == data


def test_gzip_output_has_gzip_magic():
    pool = with_gzip().pool
    assert pool.compress(b"hello")[:2] == b"\x1f\x8b"


def test_gzip_option_name():
    assert with_gzip().name == COMPRESSION_GZIP == "gzip"


def test_pool_reuses_compressors():
    created = []

    def make():
        created.append(1)
        return ZlibCompressor()

    pool = CompressionPool(ZlibDecompressor, make)
    for payload in (b"a", b"bb", b"ccc"):
        assert pool.decompress(pool.compress(payload)) == payload
    assert len(created) == 1


def test_decompress_garbage_raises():
    pool = with_gzip().pool
    with pytest.raises(OSError):
        pool.decompress(b"definitely not gzip")


def test_apply_registers_and_removes():
    config = HandlerConfig()
    option = with_compression("zlib", ZlibDecompressor, ZlibCompressor)
    option.apply_to_handler(config)
    with_gzip().apply_to_handler(config)
    assert config.compression_names == ["zlib", "gzip"]
    assert set(config.compression_pools) == {"zlib", "gzip"}

    with_compression("zlib", None, None).apply_to_handler(config)
    assert config.compression_names == ["gzip"]
    assert set(config.compression_pools) == {"gzip"}


def test_empty_name_is_noop():
    config = HandlerConfig()
    with_compression("", ZlibDecompressor, ZlibCompressor).apply_to_handler(config)
    assert config.compression_names == []
    assert config.compression_pools == {}


def test_removing_unknown_name_keeps_others():
    names = ["gzip"]
    pools = {"gzip": with_gzip().pool}
    CompressionOption("br", None).apply(names, pools)
    assert names == ["gzip"]
    assert list(pools) == ["gzip"]


def test_only_one_constructor_is_rejected():
    with pytest.raises(ValueError):
        with_compression("zlib", ZlibDecompressor, None)
    with pytest.raises(ValueError):
        with_compression("zlib", None, ZlibCompressor)