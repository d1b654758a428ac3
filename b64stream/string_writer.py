"""A writer that base64-encodes bytes and hands the text to a string consumer."""

from __future__ import annotations

import io
from typing import Protocol

from b64stream.engine import Engine
from b64stream.writer import EncoderWriter


class _TextSink(Protocol):
    def consume(self, text: str) -> None: ...


class StrConsumer:
    """Accumulates the base64 text it is given, optionally after some initial text."""

    def __init__(self, initial: str = "") -> None:
        self._parts: list[str] = [initial] if initial else []

    def consume(self, text: str) -> None:
        """Append ``text`` to the accumulated text."""
        self._parts.append(text)

    @property
    def text(self) -> str:
        """Everything accumulated so far."""
        joined = "".join(self._parts)
        self._parts = [joined] if joined else []
        return joined

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.text!r})"


class _SingleCodeUnitWriter(io.RawIOBase):
    """Byte sink that passes ASCII base64 output on to a consumer as text."""

    def __init__(self, consumer: _TextSink) -> None:
        super().__init__()
        self.consumer = consumer

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        self.consumer.consume(bytes(data).decode("ascii"))
        return len(data)


class EncoderStringWriter:
    """Base64-encode written bytes and pass the resulting text to a consumer.

    Without a ``consumer`` the text is gathered internally and ``into_inner``
    returns it as a ``str``. With a ``consumer`` (any object with a
    ``consume(text)`` method) the text goes to it and ``into_inner`` returns
    the consumer.
    """

    def __init__(self, engine: Engine, consumer: _TextSink | None = None) -> None:
        self._owns_consumer = consumer is None
        self._consumer: _TextSink = StrConsumer() if consumer is None else consumer
        self._encoder = EncoderWriter(_SingleCodeUnitWriter(self._consumer), engine)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(encoder={self._encoder!r})"

    def write(self, data) -> int:
        """Encode part of ``data``; return how many input bytes were consumed."""
        return self._encoder.write(data)

    def write_all(self, data) -> None:
        """Consume all of ``data``."""
        view = memoryview(bytes(data))
        while view:
            consumed = self._encoder.write(view)
            view = view[consumed:]

    def flush(self) -> None:
        """Pass on pending output; an incomplete trailing chunk stays held back."""
        self._encoder.flush()

    def into_inner(self):
        """Encode everything remaining, with padding, and return the result.

        Returns the accumulated ``str`` when no consumer was given, otherwise
        the consumer.
        """
        self._encoder.finish()
        if self._owns_consumer:
            return str(self._consumer)
        return self._consumer