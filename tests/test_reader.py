import io
import random
from dataclasses import replace

import pytest

from b64stream.engine import (
    ALPHABETS,
    PAD_BYTE,
    STANDARD,
    STANDARD_ALPHABET,
    Config,
    DecodeError,
    DecodePaddingMode,
    Engine,
    InvalidByteError,
)
from b64stream.reader import BUF_SIZE, DecoderReader


def random_config(rng):
    mode = rng.choice(list(DecodePaddingMode))
    if mode is DecodePaddingMode.INDIFFERENT:
        padding = rng.random() < 0.5
    else:
        padding = mode is DecodePaddingMode.REQUIRE_CANONICAL
    return Config(
        encode_padding=padding,
        decode_allow_trailing_bits=rng.random() < 0.5,
        decode_padding_mode=mode,
    )


def random_engine(rng):
    return Engine(rng.choice(ALPHABETS), random_config(rng))


def random_bytes(rng, size):
    return bytes(rng.getrandbits(8) for _ in range(size))


class RandomShortRead:
    """Returns between 1 and 19 bytes per read call."""

    def __init__(self, delegate, rng):
        self.delegate = delegate
        self.rng = rng

    def read(self, size=-1):
        limit = self.rng.randrange(1, 20)
        if size is not None and size >= 0:
            limit = min(limit, size)
        return self.delegate.read(limit)


class ShortRead:
    def __init__(self, delegate, max_read_len):
        self.delegate = delegate
        self.max_read_len = max_read_len

    def read(self, size=-1):
        if size is None or size < 0:
            size = self.max_read_len
        return self.delegate.read(min(size, self.max_read_len))


def consume_with_short_reads_and_validate(rng, expected, reader):
    decoded = bytearray(len(expected) * 3 + 4)
    view = memoryview(decoded)
    total = 0
    while True:
        assert total <= len(expected)
        if total == len(expected):
            assert bytes(decoded[:total]) == expected
            assert reader.readinto(view) == 0
            assert bytes(decoded[:total]) == expected
            break
        length = rng.randrange(1, max(2, len(expected) * 2))
        total += reader.readinto(view[total : total + length])


SIMPLE_CASES = [
    (b"0", b"MA=="),
    (b"01", b"MDE="),
    (b"012", b"MDEy"),
    (b"0123", b"MDEyMw=="),
    (b"01234", b"MDEyMzQ="),
    (b"012345", b"MDEyMzQ1"),
    (b"0123456", b"MDEyMzQ1Ng=="),
    (b"01234567", b"MDEyMzQ1Njc="),
    (b"012345678", b"MDEyMzQ1Njc4"),
    (b"0123456789", b"MDEyMzQ1Njc4OQ=="),
]


@pytest.mark.parametrize("expected, data", SIMPLE_CASES)
def test_simple_every_read_size(expected, data):
    for n in range(1, len(data) + 1):
        decoder = DecoderReader(io.BytesIO(data), STANDARD)
        got = bytearray()
        buffer = bytearray(n)
        while True:
            count = decoder.readinto(buffer)
            if count == 0:
                break
            got += buffer[:count]
        assert bytes(got) == expected


def test_read_to_end_example():
    decoder = DecoderReader(io.BytesIO(b"YXNkZg=="), STANDARD)
    assert decoder.read() == b"asdf"


def test_empty_buffer_reads_nothing():
    decoder = DecoderReader(io.BytesIO(b"YXNkZg=="), STANDARD)
    assert decoder.readinto(bytearray()) == 0
    assert decoder.read() == b"asdf"


def test_empty_input_is_eof():
    decoder = DecoderReader(io.BytesIO(b""), STANDARD)
    assert decoder.read() == b""


def test_readable_and_into_inner():
    inner = io.BytesIO(b"MDEy")
    decoder = DecoderReader(inner, STANDARD)
    assert decoder.readable() is True
    assert decoder.read() == b"012"
    assert decoder.into_inner() is inner


@pytest.mark.parametrize("data", [b"MDEyMzQ1Njc4*!@#$%^&", b"MDEyMzQ1Njc4OQ== "])
def test_trailing_junk(data):
    for n in range(1, len(data) + 1):
        decoder = DecoderReader(io.BytesIO(data), STANDARD)
        buffer = bytearray(n)
        with pytest.raises(DecodeError):
            while decoder.readinto(buffer):
                pass


def test_handles_short_read_from_delegate():
    rng = random.Random(1)
    for _ in range(40):
        size = rng.randrange(0, 10 * BUF_SIZE)
        data = random_bytes(rng, size)
        engine = random_engine(rng)
        b64 = engine.encode(data).encode("ascii")
        short = RandomShortRead(io.BytesIO(b64), rng)
        decoded = DecoderReader(short, engine).read()
        assert len(decoded) == size
        assert decoded == data


def test_read_in_short_increments():
    rng = random.Random(2)
    for _ in range(40):
        size = rng.randrange(0, 10 * BUF_SIZE)
        data = random_bytes(rng, size)
        engine = random_engine(rng)
        b64 = engine.encode(data).encode("ascii")
        decoder = DecoderReader(io.BytesIO(b64), engine)
        consume_with_short_reads_and_validate(rng, data, decoder)


class _ShortReadIntoWrapper:
    """Limits each readinto call on a decoder to a few bytes."""

    def __init__(self, delegate, rng):
        self.delegate = delegate
        self.rng = rng

    def readinto(self, buffer):
        view = memoryview(buffer)
        return self.delegate.readinto(view[: min(self.rng.randrange(1, 20), len(view))])


def test_read_in_short_increments_with_short_delegate_reads():
    rng = random.Random(3)
    for _ in range(40):
        size = rng.randrange(0, 10 * BUF_SIZE)
        data = random_bytes(rng, size)
        engine = random_engine(rng)
        b64 = engine.encode(data).encode("ascii")
        decoder = DecoderReader(io.BytesIO(b64), engine)
        consume_with_short_reads_and_validate(
            rng, data, _ShortReadIntoWrapper(decoder, rng)
        )


def _outcome(func):
    try:
        return ("ok", func())
    except DecodeError as exc:
        return ("error", exc)


def test_reports_invalid_last_symbol_correctly():
    rng = random.Random(4)
    for _ in range(5):
        size = rng.randrange(1, 10 * BUF_SIZE)
        data = random_bytes(rng, size)
        alphabet = rng.choice(ALPHABETS)
        config = replace(random_config(rng), encode_padding=False)
        engine = Engine(alphabet, config)
        b64 = bytearray(engine.encode(data).encode("ascii"))
        for symbol in alphabet.symbols:
            b64[-1] = symbol
            bulk = _outcome(lambda: engine.decode(bytes(b64)))
            stream = _outcome(
                lambda: DecoderReader(io.BytesIO(bytes(b64)), engine).read()
            )
            assert stream == bulk


def test_reports_invalid_byte_correctly():
    rng = random.Random(5)
    for _ in range(60):
        size = rng.randrange(1, 10 * BUF_SIZE)
        data = random_bytes(rng, size)
        engine = Engine(STANDARD_ALPHABET, random_config(rng))
        b64 = bytearray(engine.encode(data).encode("ascii"))
        b64[rng.randrange(len(b64))] = ord("*")
        with pytest.raises(DecodeError) as bulk:
            engine.decode(bytes(b64))
        with pytest.raises(DecodeError) as stream:
            DecoderReader(io.BytesIO(bytes(b64)), engine).read()
        assert stream.value == bulk.value


def test_internal_padding_error_with_short_read_concatenated_texts():
    rng = random.Random(6)
    for _ in range(100):
        size = rng.randrange(2, 10 * BUF_SIZE)
        data = random_bytes(rng, size)
        while True:
            split = rng.randrange(1, size)
            if split % 3:
                break
        first = STANDARD.encode(data[:split])
        assert "=" in first
        b64 = (first + STANDARD.encode(data[split:])).encode("ascii")

        reader = ShortRead(io.BytesIO(b64), rng.randrange(1, 10))
        with pytest.raises(DecodeError) as stream:
            DecoderReader(reader, STANDARD).read()
        with pytest.raises(DecodeError) as bulk:
            STANDARD.decode(b64)

        assert stream.value == bulk.value
        expected_offset = split // 3 * 4 + {1: 2, 2: 3}[split % 3]
        assert stream.value == InvalidByteError(expected_offset, PAD_BYTE)


def test_internal_padding_anywhere_error():
    rng = random.Random(7)
    for _ in range(40):
        data = random_bytes(rng, 10 * BUF_SIZE)
        b64 = bytearray(STANDARD.encode(data).encode("ascii"))
        b64[rng.randrange(0, len(data) - 4)] = PAD_BYTE
        reader = ShortRead(io.BytesIO(bytes(b64)), rng.randrange(1, 10))
        with pytest.raises(DecodeError):
            DecoderReader(reader, STANDARD).read()


def test_invalid_byte_offset_counts_whole_stream():
    data = b"MDEy" * 300 + b"M*Ey"
    with pytest.raises(InvalidByteError) as info:
        DecoderReader(ShortRead(io.BytesIO(data), 7), STANDARD).read()
    assert info.value.offset == 1201
    assert info.value.byte == ord("*")