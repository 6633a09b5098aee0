"""Bit-level wire format for LZ77 token sequences.

Layout (MSB first throughout)::

    header   token count, unsigned 32-bit big-endian
    literal  0 | byte:8
    match    1 | varint(distance) | varint(length) | has_literal:1 [| byte:8]

Varints are big-endian groups of 7 bits; every byte except the last has
its high bit set. Values below 128 take one byte and values below 16384
take two, so the common range keeps the classic two-tier layout while
larger windows and look-aheads stay representable.

The frame ends after the last token; the final byte is zero-padded.
"""
import io
import logging
from typing import BinaryIO, Iterable, List, Union

from bitops import BitReader, BitWriter
from errors import ConfigurationError, InvalidTokenError, MalformedFrameError
from lz77 import Token

logger = logging.getLogger(__name__)

MAX_TOKEN_COUNT = 0xFFFFFFFF
#: Longest varint accepted on read (35 bits of payload).
MAX_VARINT_BYTES = 5


def encode_varint(value: int) -> bytes:
    """Return the varint bytes for ``value``.

    :param value: Non-negative integer.
    :type value: int
    :returns: Encoded bytes.
    :rtype: bytes
    :raises ConfigurationError: If ``value`` is negative or longer than
        ``MAX_VARINT_BYTES`` bytes once encoded.
    """
    if value < 0:
        raise ConfigurationError(f"Cannot encode negative varint {value}")
    if value.bit_length() > 7 * MAX_VARINT_BYTES:
        raise ConfigurationError(
            f"Varint {value} needs more than {MAX_VARINT_BYTES} bytes"
        )
    groups = [value & 0x7F]
    value >>= 7
    while value:
        groups.append((value & 0x7F) | 0x80)
        value >>= 7
    return bytes(reversed(groups))


def write_varint(writer: BitWriter, value: int):
    for byte in encode_varint(value):
        writer.write_byte(byte)


def read_varint(reader: BitReader) -> int:
    """Read one varint.

    :raises EOFError: If the source ends inside the varint.
    :raises MalformedFrameError: If the varint is longer than
        ``MAX_VARINT_BYTES``.
    """
    value = 0
    for _ in range(MAX_VARINT_BYTES):
        byte = reader.read_byte()
        value = (value << 7) | (byte & 0x7F)
        if not byte & 0x80:
            return value
    raise MalformedFrameError(
        f"Varint longer than {MAX_VARINT_BYTES} bytes"
    )


def _write_token(writer: BitWriter, token: Token, index: int):
    distance, length, literal = token
    if length == 0:
        if literal is None:
            raise InvalidTokenError(
                f"Literal token {index} has no literal to write", index
            )
        writer.write_bit(0)
        writer.write_byte(literal)
        return

    if distance < 1 or length < 1:
        raise InvalidTokenError(f"Invalid match token {index}: {token}", index)
    writer.write_bit(1)
    write_varint(writer, distance)
    write_varint(writer, length)
    if literal is None:
        writer.write_bit(0)
    else:
        writer.write_bit(1)
        writer.write_byte(literal)


def _read_token(reader: BitReader, index: int) -> Token:
    if not reader.read_bit():
        return Token.from_literal(reader.read_byte())

    distance = read_varint(reader)
    length = read_varint(reader)
    if distance < 1 or length < 1:
        raise InvalidTokenError(
            f"Match token {index} has distance {distance} "
            f"and length {length}",
            index,
        )
    literal = reader.read_byte() if reader.read_bit() else None
    return Token(distance, length, literal)


def write_frame(tokens: Iterable[Token], sink: BinaryIO) -> int:
    """Serialize ``tokens`` into ``sink``.

    The sink is left open; pending bits are flushed to it even when a
    token turns out to be unwritable.

    :param tokens: Token sequence.
    :type tokens: Iterable[Token]
    :param sink: Binary writable stream.
    :type sink: BinaryIO
    :returns: Number of bytes written.
    :rtype: int
    :raises ConfigurationError: If there are more tokens than the header
        can count, or a distance or length needs an overlong varint.
    :raises InvalidTokenError: If a token has an impossible shape.
    """
    tokens = list(tokens)
    if len(tokens) > MAX_TOKEN_COUNT:
        raise ConfigurationError(
            f"Too many tokens for one frame: {len(tokens)}"
        )

    with BitWriter(sink) as writer:
        writer.write_int32(len(tokens))
        for index, token in enumerate(tokens):
            _write_token(writer, token, index)
    logger.debug(
        "Wrote frame with %d tokens in %d bytes",
        len(tokens), writer.bytes_written,
    )
    return writer.bytes_written


def read_frame(source: Union[bytes, bytearray, BinaryIO]) -> List[Token]:
    """Deserialize a frame written by :func:`write_frame`.

    :param source: Frame bytes or a binary readable stream.
    :type source: Union[bytes, bytearray, BinaryIO]
    :returns: Token sequence.
    :rtype: List[Token]
    :raises MalformedFrameError: If the frame ends before its header or
        any declared token is complete.
    :raises InvalidTokenError: If a match token has a zero distance or
        length.
    """
    reader = BitReader(source)
    try:
        count = reader.read_int32()
    except EOFError as e:
        raise MalformedFrameError("Frame header is truncated") from e

    tokens: List[Token] = []
    for index in range(count):
        try:
            tokens.append(_read_token(reader, index))
        except MalformedFrameError as e:
            e.index = index
            raise
        except EOFError as e:
            raise MalformedFrameError(
                f"Frame truncated at token {index} of {count}", index
            ) from e
    logger.debug("Read frame with %d tokens", count)
    return tokens


def dumps(tokens: Iterable[Token]) -> bytes:
    """Serialize ``tokens`` to a bytes object."""
    buf = io.BytesIO()
    write_frame(tokens, buf)
    return buf.getvalue()


def loads(data: bytes) -> List[Token]:
    """Deserialize a bytes object produced by :func:`dumps`."""
    return read_frame(data)
