"""Request body codecs used for compressed event ingestion."""

from __future__ import annotations

import gzip
from typing import Callable, Dict, NamedTuple, Optional, Tuple

import zstandard

from .errors import ConfigurationError

DEFAULT_CODEC = "gzip"


class Codec(NamedTuple):
    name: str
    compress: Callable[[bytes], bytes]


def gzip_compress(data: bytes) -> bytes:
    return gzip.compress(data)


def zstd_compress(data: bytes) -> bytes:
    # ZstdCompressor is not thread-safe, so build one per call
    return zstandard.ZstdCompressor().compress(data)


CODECS: Dict[str, Codec] = {
    "gzip": Codec("gzip", gzip_compress),
    "zstd": Codec("zstd", zstd_compress),
}


def get_codec(name: Optional[str] = None) -> Codec:
    """Look up a codec by its ``Content-Encoding`` name.

    An empty name selects :data:`DEFAULT_CODEC`.
    """
    key = name or DEFAULT_CODEC
    try:
        return CODECS[key]
    except KeyError:
        raise ConfigurationError(f"unsupported compression encoding: {key}") from None


def compress(data: bytes, name: Optional[str] = None) -> Tuple[bytes, str]:
    codec = get_codec(name)
    return codec.compress(data), codec.name


__all__ = ["Codec", "CODECS", "DEFAULT_CODEC", "get_codec", "compress", "gzip_compress", "zstd_compress"]
