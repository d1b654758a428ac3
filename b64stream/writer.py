"""A writable stream that base64-encodes data before passing it on."""

from __future__ import annotations

from typing import BinaryIO

from b64stream.engine import Engine

# Largest amount of encoded output produced by a single write.
BUF_SIZE = 1024
# The most input bytes whose encoding fits in BUF_SIZE.
_MAX_INPUT_LEN = BUF_SIZE // 4 * 3
# 3 bytes of input always encode to 4 symbols.
_MIN_ENCODE_CHUNK_SIZE = 3


class EncoderWriter:
    """Base64-encode bytes written to it and write the result to ``delegate``.

    Each ``write`` call makes at most one call to the delegate's ``write``. Any
    output the delegate does not accept is kept and written first by the next
    ``write`` call, which then consumes no input and returns 0.

    Input that does not fill a 3-byte chunk is held back until more arrives or
    ``finish`` is called; ``finish`` encodes it, adds padding as configured and
    returns the delegate. Leaving a ``with`` block without an exception calls
    ``finish``. Writing after ``finish`` raises ``ValueError``.
    """

    def __init__(self, delegate: BinaryIO, engine: Engine) -> None:
        self._delegate: BinaryIO | None = delegate
        self._engine = engine
        # Leftover input that did not fill a complete chunk (fewer than 3 bytes).
        self._extra = b""
        # Encoded output the delegate has not yet accepted.
        self._output = b""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(extra_input={self._extra!r}, "
            f"pending_output={len(self._output)}, finished={self._delegate is None})"
        )

    def __enter__(self) -> "EncoderWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None and self._delegate is not None:
            self.finish()

    @property
    def finished(self) -> bool:
        """Whether ``finish`` has completed or the delegate has been taken."""
        return self._delegate is None

    def _require_delegate(self) -> BinaryIO:
        if self._delegate is None:
            raise ValueError("encoder has already been finished")
        return self._delegate

    def _encode_chunks(self, data: bytes) -> bytes:
        return self._engine.encode(data).encode("ascii")

    def write(self, data) -> int:
        """Encode some of ``data`` and write it; return how many input bytes were consumed."""
        delegate = self._require_delegate()
        data = bytes(data)
        if not data:
            return 0

        if self._output:
            # Pending output goes first; no input is consumed this time.
            self._write_to_delegate(delegate, self._output)
            return 0

        original_extra = self._extra
        extra_read = 0
        encoded = b""
        max_input = _MAX_INPUT_LEN

        if self._extra:
            if len(data) + len(self._extra) >= _MIN_ENCODE_CHUNK_SIZE:
                extra_read = _MIN_ENCODE_CHUNK_SIZE - len(self._extra)
                encoded = self._encode_chunks(self._extra + data[:extra_read])
                data = data[extra_read:]
                self._extra = b""
                max_input = _MAX_INPUT_LEN - _MIN_ENCODE_CHUNK_SIZE
            else:
                # One byte held and one byte offered: still not a full chunk.
                self._extra += data
                return len(data)
        elif len(data) < _MIN_ENCODE_CHUNK_SIZE:
            self._extra = data
            return len(data)

        complete = len(data) - len(data) % _MIN_ENCODE_CHUNK_SIZE
        to_encode = min(complete, max_input)
        encoded += self._encode_chunks(data[:to_encode])

        try:
            self._write_to_delegate(delegate, encoded)
        except BaseException:
            # Nothing was consumed: restore the held-back input.
            self._extra = original_extra
            raise
        return extra_read + to_encode

    def flush(self) -> None:
        """Write all pending encoded output and flush the delegate.

        Held-back input of an incomplete chunk is not encoded and no padding
        is written.
        """
        delegate = self._require_delegate()
        self._write_all_encoded_output(delegate)
        flush = getattr(delegate, "flush", None)
        if flush is not None:
            flush()

    def finish(self) -> BinaryIO:
        """Encode and write everything remaining, with padding, and return the delegate.

        May be retried after an error from the delegate.
        """
        delegate = self._require_delegate()
        self._write_all_encoded_output(delegate)
        if self._extra:
            self._output = self._encode_chunks(self._extra)
            self._extra = b""
            self._write_all_encoded_output(delegate)
        self._delegate = None
        return delegate

    def into_inner(self) -> BinaryIO:
        """Return the delegate without writing anything still buffered."""
        delegate = self._require_delegate()
        self._delegate = None
        return delegate

    def _write_to_delegate(self, delegate: BinaryIO, encoded: bytes) -> None:
        consumed = delegate.write(encoded)
        if consumed is None:
            consumed = len(encoded)
        self._output = encoded[consumed:]

    def _write_all_encoded_output(self, delegate: BinaryIO) -> None:
        while self._output:
            try:
                self._write_to_delegate(delegate, self._output)
            except InterruptedError:
                continue