"""Block compression of column data with LZ4, LZ4HC or Zstandard."""

from __future__ import annotations

import lz4.block
import zstandard

from .common import CompressionType

_INT_MAX = 2**31 - 1


class CompressionError(Exception):
    """Raised when data cannot be compressed or decompressed."""


def _compress_lz4(level: int, data: bytes) -> bytes:
    if len(data) > _INT_MAX:
        raise CompressionError("input too large for LZ4")
    try:
        return lz4.block.compress(
            data, mode="fast", acceleration=max(1, level), store_size=False
        )
    except lz4.block.LZ4BlockError as exc:
        raise CompressionError(f"LZ4 compression failed: {exc}") from exc


def _compress_lz4hc(level: int, data: bytes) -> bytes:
    if len(data) > _INT_MAX:
        raise CompressionError("input too large for LZ4HC")
    try:
        return lz4.block.compress(
            data, mode="high_compression", compression=level, store_size=False
        )
    except lz4.block.LZ4BlockError as exc:
        raise CompressionError(f"LZ4HC compression failed: {exc}") from exc


def _compress_zstd(level: int, data: bytes) -> bytes:
    level = min(level, zstandard.MAX_COMPRESSION_LEVEL)
    try:
        return zstandard.ZstdCompressor(level=level).compress(data)
    except zstandard.ZstdError as exc:
        raise CompressionError(f"Zstandard compression failed: {exc}") from exc


def _decompress_lz4(data: bytes, size: int) -> bytes:
    if size <= 0:
        raise CompressionError("LZ4 cannot decompress to an empty buffer")
    try:
        result = lz4.block.decompress(data, uncompressed_size=size)
    except lz4.block.LZ4BlockError as exc:
        raise CompressionError(f"LZ4 decompression failed: {exc}") from exc
    if len(result) != size:
        raise CompressionError(
            f"LZ4 decompressed to {len(result)} bytes, expected {size}"
        )
    return result


def _decompress_zstd(data: bytes, size: int) -> bytes:
    try:
        result = zstandard.ZstdDecompressor().decompressobj().decompress(data)
    except zstandard.ZstdError as exc:
        raise CompressionError(f"Zstandard decompression failed: {exc}") from exc
    if len(result) != size:
        raise CompressionError(
            f"Zstandard decompressed to {len(result)} bytes, expected {size}"
        )
    return result


_COMPRESSORS = {
    CompressionType.LZ4: _compress_lz4,
    CompressionType.LZ4HC: _compress_lz4hc,
    CompressionType.ZSTD: _compress_zstd,
}

_DECOMPRESSORS = {
    CompressionType.LZ4: _decompress_lz4,
    CompressionType.LZ4HC: _decompress_lz4,
    CompressionType.ZSTD: _decompress_zstd,
}


def compress(compression, level, data) -> bytes:
    """Compress ``data`` with the given compression type and level."""
    try:
        compressor = _COMPRESSORS[CompressionType(compression)]
    except (KeyError, ValueError):
        raise CompressionError(f"unsupported compression type: {compression!r}") from None
    return compressor(int(level), bytes(data))


def decompress(compression, data, size) -> bytes:
    """Decompress ``data``, which must expand to exactly ``size`` bytes."""
    try:
        decompressor = _DECOMPRESSORS[CompressionType(compression)]
    except (KeyError, ValueError):
        raise CompressionError(f"unsupported compression type: {compression!r}") from None
    return decompressor(bytes(data), int(size))