"""A readable stream that decodes base64 pulled from another stream."""

from __future__ import annotations

import io
from typing import BinaryIO

from b64stream.engine import (
    PAD_BYTE,
    Engine,
    InvalidByteError,
    InvalidLastSymbolError,
)

# Most base64 bytes buffered from the wrapped reader at any one time.
BUF_SIZE = 1024

# 4 symbols of base64 encode 3 bytes of raw data (modulo padding).
_BASE64_CHUNK_SIZE = 4
_DECODED_CHUNK_SIZE = 3


class DecoderReader(io.RawIOBase):
    """Decode base64 read from ``reader`` with ``engine``.

    Decoding errors are raised as the engine's ``DecodeError`` subclasses, with
    offsets counted from the start of the whole stream.
    """

    def __init__(self, reader: BinaryIO, engine: Engine) -> None:
        super().__init__()
        self._inner = reader
        self._engine = engine
        self._b64 = bytearray()
        self._decoded = b""
        self._total_b64_decoded = 0
        self._padding_offset: int | None = None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(buffered_b64={len(self._b64)}, "
            f"buffered_decoded={len(self._decoded)}, "
            f"total_b64_decoded={self._total_b64_decoded}, "
            f"padding_offset={self._padding_offset})"
        )

    def readable(self) -> bool:
        return True

    def into_inner(self) -> BinaryIO:
        """Return the wrapped reader; its position is unspecified due to buffering."""
        return self._inner

    def readinto(self, buffer) -> int:
        """Decode into ``buffer`` and return the number of bytes written; 0 means EOF."""
        target = memoryview(buffer).cast("B")
        size = len(target)
        if size == 0:
            return 0

        if self._decoded:
            return self._flush_decoded(target)

        at_eof = False
        while len(self._b64) < _BASE64_CHUNK_SIZE:
            chunk = self._inner.read(BUF_SIZE - len(self._b64))
            if not chunk:
                at_eof = True
                break
            self._b64 += chunk

        if not self._b64:
            return 0

        if size < _DECODED_CHUNK_SIZE:
            # Too short to hold a decoded chunk: keep the overflow for later.
            self._decoded = self._decode(min(len(self._b64), _BASE64_CHUNK_SIZE))
            if not self._decoded:
                return 0
            return self._flush_decoded(target)

        fits = (size // _DECODED_CHUNK_SIZE) * _BASE64_CHUNK_SIZE
        available = len(self._b64)
        if not at_eof:
            available -= available % _BASE64_CHUNK_SIZE
        decoded = self._decode(min(fits, available))
        target[: len(decoded)] = decoded
        return len(decoded)

    def _flush_decoded(self, target: memoryview) -> int:
        count = min(len(self._decoded), len(target))
        target[:count] = self._decoded[:count]
        self._decoded = self._decoded[count:]
        return count

    def _decode(self, length: int) -> bytes:
        chunk = bytes(self._b64[:length])
        base = self._total_b64_decoded
        try:
            metadata = self._engine.decode_partial(chunk)
        except InvalidByteError as exc:
            raise InvalidByteError(base + exc.offset, exc.byte) from None
        except InvalidLastSymbolError as exc:
            raise InvalidLastSymbolError(base + exc.offset, exc.byte) from None

        if self._padding_offset is not None and metadata.decoded_len > 0:
            # Data after padding that was already seen: blame the first padding byte.
            raise InvalidByteError(self._padding_offset, PAD_BYTE)

        if self._padding_offset is None and metadata.padding_offset is not None:
            self._padding_offset = base + metadata.padding_offset
        self._total_b64_decoded += length
        del self._b64[:length]
        return metadata.data