"""Base64 alphabets, engine configuration, and the general purpose engine."""

from __future__ import annotations

import binascii
import enum
from dataclasses import dataclass, field
from functools import cached_property

PAD_BYTE = ord("=")

# Largest length the encoded-length arithmetic accepts (a 64-bit size).
_SIZE_MAX = 2**64 - 1

_STANDARD_SYMBOLS = b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"

# Input is processed in 8-symbol chunks; only the final chunk may carry padding.
_INPUT_CHUNK_LEN = 8


class DecodeError(ValueError):
    """Base class for all errors raised while decoding base64."""

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.args == other.args

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class InvalidByteError(DecodeError):
    """A byte that is not in the alphabet, or misplaced padding, was found."""

    def __init__(self, offset: int, byte: int) -> None:
        super().__init__(offset, byte)
        self.offset = offset
        self.byte = byte

    def __str__(self) -> str:
        return f"Invalid byte {self.byte}, offset {self.offset}."


class InvalidLengthError(DecodeError):
    """The input length leaves a lone 6-bit symbol that cannot form a byte."""

    def __str__(self) -> str:
        return "Encoded text cannot have a 6-bit remainder."


class InvalidLastSymbolError(DecodeError):
    """The last symbol carries bits that would be discarded (non-canonical input)."""

    def __init__(self, offset: int, byte: int) -> None:
        super().__init__(offset, byte)
        self.offset = offset
        self.byte = byte

    def __str__(self) -> str:
        return f"Invalid last symbol {self.byte}, offset {self.offset}."


class InvalidPaddingError(DecodeError):
    """Padding is missing or present contrary to the configured padding mode."""

    def __str__(self) -> str:
        return "Invalid padding"


class DecodePaddingMode(enum.Enum):
    """How trailing padding is treated when decoding."""

    INDIFFERENT = "indifferent"
    REQUIRE_CANONICAL = "require_canonical"
    REQUIRE_NONE = "require_none"


@dataclass(frozen=True)
class Alphabet:
    """The 64 distinct printable ASCII symbols used for encoding."""

    symbols: bytes

    def __post_init__(self) -> None:
        symbols = self.symbols
        if len(symbols) != 64:
            raise ValueError(f"alphabet must have 64 symbols, got {len(symbols)}")
        seen: set[int] = set()
        for index, byte in enumerate(symbols):
            if not 32 <= byte <= 126:
                raise ValueError(f"unprintable byte {byte} at index {index}")
            if byte == PAD_BYTE:
                raise ValueError(f"reserved padding byte at index {index}")
            if byte in seen:
                raise ValueError(f"duplicated byte {chr(byte)!r} in alphabet")
            seen.add(byte)

    @classmethod
    def from_symbols(cls, symbols: str | bytes) -> "Alphabet":
        """Build an alphabet from a 64 character string or byte string."""
        if isinstance(symbols, str):
            try:
                symbols = symbols.encode("ascii")
            except UnicodeEncodeError as exc:
                raise ValueError("alphabet symbols must be ASCII") from exc
        return cls(bytes(symbols))

    def __str__(self) -> str:
        return self.symbols.decode("ascii")

    @cached_property
    def _decode_table(self) -> tuple[int, ...]:
        table = [-1] * 256
        for value, byte in enumerate(self.symbols):
            table[byte] = value
        return tuple(table)

    @cached_property
    def _invalid_marks(self) -> bytes:
        valid = set(self.symbols)
        return bytes(0 if byte in valid else 1 for byte in range(256))

    @cached_property
    def _from_standard(self) -> bytes:
        return bytes.maketrans(_STANDARD_SYMBOLS, self.symbols)

    @cached_property
    def _to_standard(self) -> bytes:
        return bytes.maketrans(self.symbols, _STANDARD_SYMBOLS)


STANDARD_ALPHABET = Alphabet(_STANDARD_SYMBOLS)
URL_SAFE_ALPHABET = Alphabet(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
)
CRYPT_ALPHABET = Alphabet(
    b"./0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
)
BCRYPT_ALPHABET = Alphabet(
    b"./ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
)
IMAP_MUTF7_ALPHABET = Alphabet(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+,"
)
BIN_HEX_ALPHABET = Alphabet(
    b"!\"#$%&'()*+,-012345689@ABCDEFGHIJKLMNPQRSTUVXYZ[`abcdefhijklmpqr"
)

ALPHABETS = (
    URL_SAFE_ALPHABET,
    STANDARD_ALPHABET,
    CRYPT_ALPHABET,
    BCRYPT_ALPHABET,
    IMAP_MUTF7_ALPHABET,
    BIN_HEX_ALPHABET,
)


@dataclass(frozen=True)
class Config:
    """Encoding and decoding options for an engine."""

    encode_padding: bool = True
    decode_allow_trailing_bits: bool = False
    decode_padding_mode: DecodePaddingMode = DecodePaddingMode.REQUIRE_CANONICAL


PAD = Config()
NO_PAD = Config(
    encode_padding=False, decode_padding_mode=DecodePaddingMode.REQUIRE_NONE
)


@dataclass(frozen=True)
class DecodeMetadata:
    """Decoded bytes plus the input offset of the first padding byte, if any."""

    data: bytes
    padding_offset: int | None = None

    @property
    def decoded_len(self) -> int:
        return len(self.data)


def encoded_len(input_len: int, padding: bool) -> int:
    """Return the length of the base64 encoding of ``input_len`` bytes.

    Raises OverflowError when the result would not fit in a 64-bit size.
    """
    if input_len < 0:
        raise ValueError("input length must not be negative")
    complete = (input_len // 3) * 4
    if complete > _SIZE_MAX:
        raise OverflowError("encoded length overflows")
    remainder = input_len % 3
    if remainder:
        complete += 4 if padding else (2 if remainder == 1 else 3)
    if complete > _SIZE_MAX:
        raise OverflowError("encoded length overflows")
    return complete


def _as_bytes(data: str | bytes | bytearray | memoryview) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


@dataclass(frozen=True)
class Engine:
    """A base64 engine combining an alphabet with a configuration."""

    alphabet: Alphabet
    config: Config = field(default_factory=Config)

    def encode(self, data: str | bytes | bytearray | memoryview) -> str:
        """Encode bytes (or the UTF-8 bytes of a string) as base64 text."""
        raw = _as_bytes(data)
        encoded = binascii.b2a_base64(raw, newline=False).translate(
            self.alphabet._from_standard
        )
        if not self.config.encode_padding:
            encoded = encoded.rstrip(b"=")
        return encoded.decode("ascii")

    def decode(self, data: str | bytes | bytearray | memoryview) -> bytes:
        """Decode base64 input, raising a DecodeError subclass when invalid."""
        return self.decode_partial(data).data

    def decode_partial(self, data: str | bytes | bytearray | memoryview) -> DecodeMetadata:
        """Decode base64 input and report where padding started, if present."""
        raw = _as_bytes(data)
        length = len(raw)
        table = self.alphabet._decode_table

        if length % _INPUT_CHUNK_LEN in (1, 5):
            last = raw[-1]
            if last != PAD_BYTE and table[last] < 0:
                raise InvalidByteError(length - 1, last)
            raise InvalidLengthError()

        start = ((length - 1) // _INPUT_CHUNK_LEN) * _INPUT_CHUNK_LEN if length else 0
        body = raw[:start]
        bad = body.translate(self.alphabet._invalid_marks).find(b"\x01")
        if bad >= 0:
            raise InvalidByteError(bad, body[bad])
        decoded = binascii.a2b_base64(body.translate(self.alphabet._to_standard))

        tail, padding_offset = self._decode_final_chunk(raw, start)
        return DecodeMetadata(decoded + tail, padding_offset)

    def _decode_final_chunk(self, raw: bytes, start: int) -> tuple[bytes, int | None]:
        table = self.alphabet._decode_table
        bits = 0
        morsels = 0
        padding_bytes = 0
        first_padding = 0
        last_symbol = 0

        for i, byte in enumerate(raw[start:]):
            if byte == PAD_BYTE:
                if i % 4 < 2:
                    offset = first_padding if padding_bytes else i
                    raise InvalidByteError(start + offset, byte)
                if padding_bytes == 0:
                    first_padding = i
                padding_bytes += 1
                continue
            if padding_bytes:
                raise InvalidByteError(start + first_padding, PAD_BYTE)
            last_symbol = byte
            morsel = table[byte]
            if morsel < 0:
                raise InvalidByteError(start + i, byte)
            bits = (bits << 6) | morsel
            morsels += 1

        mode = self.config.decode_padding_mode
        if mode is DecodePaddingMode.REQUIRE_CANONICAL:
            if (padding_bytes + morsels) % 4:
                raise InvalidPaddingError()
        elif mode is DecodePaddingMode.REQUIRE_NONE and padding_bytes:
            raise InvalidPaddingError()

        total_bits = morsels * 6
        usable_bits = total_bits // 8 * 8
        trailing_bits = total_bits - usable_bits
        if (
            not self.config.decode_allow_trailing_bits
            and bits & ((1 << trailing_bits) - 1)
        ):
            raise InvalidLastSymbolError(start + morsels - 1, last_symbol)

        tail = (bits >> trailing_bits).to_bytes(usable_bits // 8, "big")
        return tail, (start + first_padding if padding_bytes else None)


STANDARD = Engine(STANDARD_ALPHABET, PAD)
STANDARD_NO_PAD = Engine(STANDARD_ALPHABET, NO_PAD)
URL_SAFE = Engine(URL_SAFE_ALPHABET, PAD)
URL_SAFE_NO_PAD = Engine(URL_SAFE_ALPHABET, NO_PAD)

BASE64_STANDARD = STANDARD
BASE64_STANDARD_NO_PAD = STANDARD_NO_PAD
BASE64_URL_SAFE = URL_SAFE
BASE64_URL_SAFE_NO_PAD = URL_SAFE_NO_PAD