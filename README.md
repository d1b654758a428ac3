# b64stream

With b64stream you configure base64 encoding and decoding yourself. You pick
an alphabet, decide whether encoding writes padding, and decide how strict
decoding is about padding and about leftover bits in the last symbol.
Streaming wrappers encode as you write and decode as you read, so the whole
payload never has to sit in memory.

The package has no dependencies beyond the standard library.

## Installation

```
pip install b64stream
```

To run the test suite, install the `test` extra and run `pytest`:

```
pip install "b64stream[test]"
pytest
```

## Engines

Everything described here lives in `b64stream.engine`. An `Engine` combines
an `Alphabet` with a `Config`.

```python
from b64stream.engine import Alphabet, Config, DecodePaddingMode, Engine

alphabet = Alphabet.from_symbols(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
)
engine = Engine(
    alphabet,
    Config(encode_padding=False, decode_padding_mode=DecodePaddingMode.REQUIRE_NONE),
)

engine.encode(b"data")      # 'ZGF0YQ'
engine.decode("ZGF0YQ")     # b'data'
```

### Alphabets

`Alphabet.from_symbols` takes a string or byte string and checks it. It must
hold exactly 64 distinct printable ASCII characters and must not include `=`.
If it does not, you get a `ValueError`.

The module provides these ready-made alphabets:

- `STANDARD_ALPHABET`
- `URL_SAFE_ALPHABET`
- `CRYPT_ALPHABET`
- `BCRYPT_ALPHABET`
- `IMAP_MUTF7_ALPHABET`
- `BIN_HEX_ALPHABET`

### Config

`Config` has three fields:

- `encode_padding` (default `True`): whether `encode` appends `=`.
- `decode_allow_trailing_bits` (default `False`): whether the last symbol may
  carry bits that do not make a whole byte.
- `decode_padding_mode` (default `DecodePaddingMode.REQUIRE_CANONICAL`): one of
  - `INDIFFERENT`: padding may be present or absent.
  - `REQUIRE_CANONICAL`: padding must be present, making the length a multiple
    of 4.
  - `REQUIRE_NONE`: any padding is rejected.

`PAD` is the default config. `NO_PAD` encodes without padding and requires
that there be none when decoding.

### Ready-made engines

- `STANDARD`
- `STANDARD_NO_PAD`
- `URL_SAFE`
- `URL_SAFE_NO_PAD`

They are also available under `BASE64_`-prefixed names such as
`BASE64_STANDARD`.

### Encoding and decoding

`Engine.encode` accepts bytes-like input, or a string, which it encodes as
UTF-8 first. It returns a `str`.

`Engine.decode` returns `bytes`. `Engine.decode_partial` returns a
`DecodeMetadata` with the decoded `data` and the `padding_offset`, which is
the input offset of the first `=` or `None`. Line breaks and other whitespace
are not accepted.

When decoding fails, you get a subclass of `DecodeError`, which itself
subclasses `ValueError`:

- `InvalidByteError` (`offset`, `byte`): a byte that is not in the alphabet,
  or padding in the wrong place.
- `InvalidLengthError`: the input leaves a single symbol that cannot form a
  byte.
- `InvalidLastSymbolError` (`offset`, `byte`): the last symbol has bits set
  that would be discarded.
- `InvalidPaddingError`: the padding does not fit the configured mode.

`encoded_len(input_len, padding)` returns the length of an encoding. It
raises `OverflowError` when the result would not fit in a 64-bit size.

## Decoding a stream

`b64stream.reader.DecoderReader` is an `io.RawIOBase`. It wraps any binary
object with a `read(size)` method that yields base64 text, and reads back the
decoded bytes. Use `read`, `readinto` or `readall`, or wrap it in
`io.BufferedReader`.

```python
import io
from b64stream.engine import STANDARD
from b64stream.reader import DecoderReader

reader = DecoderReader(io.BytesIO(b"YXNkZg=="), STANDARD)
reader.read()  # b'asdf'
```

Invalid input raises a `DecodeError` when it is read. Offsets in the error
count from the start of the stream. Data that follows padding seen earlier is
reported as an `InvalidByteError` at that first padding byte.

`into_inner()` returns the wrapped reader. Because of buffering, its position
is not defined.

## Encoding a stream

`b64stream.writer.EncoderWriter` encodes what you write and passes the base64
on to the writer it wraps.

Each `write` call makes at most one call to the wrapped writer. It returns the
number of input bytes it consumed, which may be fewer than you passed. You
should loop until everything is consumed:

```python
import io
from b64stream.engine import STANDARD
from b64stream.writer import EncoderWriter

sink = io.BytesIO()
with EncoderWriter(sink, STANDARD) as enc:
    data = memoryview(b"asdf")
    while data:
        data = data[enc.write(data):]
sink.getvalue()  # b'YXNkZg=='
```

When the wrapped writer accepts only part of the output, the rest is kept. The
next `write` sends it first and returns 0.

Input that does not yet fill a three-byte group is held back. It stays there
until more input arrives or until `finish()` encodes it, adds padding as
configured and returns the wrapped writer.

- `finish()` and `flush()` retry writes that raise `InterruptedError`.
- Leaving a `with` block without an exception calls `finish()`.
- `flush()` sends pending encoded output and flushes the wrapped writer. It
  does not encode held-back bytes or write padding.
- `into_inner()` returns the wrapped writer without writing anything that is
  still buffered.
- After `finish()` or `into_inner()`, further calls raise `ValueError`. The
  `finished` property reports this state.

## Encoding into text

`b64stream.string_writer.EncoderStringWriter` passes the encoded output on as
text. `write` consumes part of the input, like `EncoderWriter.write`.
`write_all` consumes all of it. `flush` sends pending output. `into_inner`
finishes the encoding, with padding.

If you give no consumer, the text is collected internally and `into_inner`
returns it as a `str`:

```python
from b64stream.engine import STANDARD
from b64stream.string_writer import EncoderStringWriter

enc = EncoderStringWriter(STANDARD)
enc.write_all(b"asdf")
enc.into_inner()  # 'YXNkZg=='
```

If you give a consumer, `into_inner` returns the consumer. Any object with a
`consume(text)` method will do. `StrConsumer` is such an object: it
accumulates text, optionally after some initial text, and exposes it through
its `text` property or `str()`.

```python
from b64stream.string_writer import EncoderStringWriter, StrConsumer

consumer = EncoderStringWriter(STANDARD, StrConsumer("base64: "))
consumer.write_all(b"asdf")
str(consumer.into_inner())  # 'base64: YXNkZg=='
```

## What it does not do

b64stream is a library only: it has no command-line tool. Encoded output is
never wrapped into lines, and the decoder does not skip whitespace or line
breaks.