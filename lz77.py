import logging
from collections import defaultdict
from typing import BinaryIO, Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple

from errors import ConfigurationError, InvalidTokenError

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 4096
DEFAULT_LOOKAHEAD_SIZE = 40
DEFAULT_MIN_MATCH = 3


class Token(NamedTuple):
    """One parse step: a back-reference plus an optional trailing literal.

    A pure literal is ``Token(0, 0, byte)``. A match is
    ``Token(distance, length, byte)``, or ``Token(distance, length, None)``
    when the match runs to the end of the input.
    """

    distance: int
    length: int
    literal: Optional[int]

    @classmethod
    def from_literal(cls, byte: int) -> "Token":
        return cls(0, 0, byte)

    @property
    def has_literal(self) -> bool:
        return self.literal is not None

    @property
    def is_match(self) -> bool:
        return self.length > 0

    def __str__(self) -> str:
        literal = "EOF" if self.literal is None else repr(chr(self.literal))
        return f"<{self.distance},{self.length},{literal}>"


class LZ77Compressor:
    """Greedy LZ77 parser.

    At every position the longest run found in the window is chosen; among
    runs of equal length the nearest one (smallest distance) wins. Runs may
    overlap the look-ahead, so ``distance < length`` is legal.

    Two search strategies select identical tokens:

    - ``"scan"`` tries every distance from 1 up to the window size;
    - ``"hash"`` only visits earlier positions sharing the same
      ``min_match``-byte prefix, newest first.

    :ivar window_size: Maximum backward distance.
    :type window_size: int
    :ivar lookahead_size: Maximum match length.
    :type lookahead_size: int
    :ivar min_match: Shortest run emitted as a match; shorter runs become
        literals.
    :type min_match: int
    :ivar strategy: Match search strategy, ``"hash"`` or ``"scan"``.
    :type strategy: str
    :ivar chains: Maps a ``min_match``-byte prefix to the ascending list of
        positions where it occurs (``"hash"`` strategy only).
    :type chains: Dict[bytes, List[int]]
    """

    STRATEGIES = ("hash", "scan")

    def __init__(
        self,
        window_size: int = DEFAULT_WINDOW_SIZE,
        lookahead_size: int = DEFAULT_LOOKAHEAD_SIZE,
        min_match: int = DEFAULT_MIN_MATCH,
        strategy: str = "hash",
    ):
        """Validate and store the parser configuration.

        :raises ConfigurationError: If a size is not a positive integer or
            the strategy is unknown.
        """
        for name, value in (
            ("window_size", window_size),
            ("lookahead_size", lookahead_size),
            ("min_match", min_match),
        ):
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigurationError(
                    f"{name} must be a positive integer, got {value!r}"
                )
        if strategy not in self.STRATEGIES:
            raise ConfigurationError(
                f"Unknown match strategy {strategy!r}, "
                f"expected one of {', '.join(self.STRATEGIES)}"
            )
        self.window_size = window_size
        self.lookahead_size = lookahead_size
        self.min_match = min_match
        self.strategy = strategy
        self.chains: Dict[bytes, List[int]] = defaultdict(list)
        self._next_insert = 0

    def _scan_match(
        self, data: bytes, pos: int, max_distance: int, max_len: int
    ) -> Tuple[int, int]:
        best_dist = 0
        best_len = 0
        for distance in range(1, max_distance + 1):
            start = pos - distance
            length = 0
            while length < max_len and data[start + length] == data[pos + length]:
                length += 1
            if length > best_len:
                best_len = length
                best_dist = distance
                if best_len == max_len:
                    break
        return best_dist, best_len

    def _index_until(self, data: bytes, pos: int):
        """Add every position before ``pos`` that starts a full prefix."""
        key_len = self.min_match
        last = len(data) - key_len
        while self._next_insert < pos and self._next_insert <= last:
            q = self._next_insert
            self.chains[data[q:q + key_len]].append(q)
            self._next_insert += 1

    def _hash_match(
        self, data: bytes, pos: int, max_distance: int, max_len: int
    ) -> Tuple[int, int]:
        self._index_until(data, pos)
        key_len = self.min_match
        if max_len < key_len:
            return 0, 0

        chain = self.chains.get(data[pos:pos + key_len])
        if not chain:
            return 0, 0

        window_start = pos - max_distance
        best_dist = 0
        best_len = 0
        for i in range(len(chain) - 1, -1, -1):
            prev_pos = chain[i]
            if prev_pos < window_start:
                # the window only moves forward, older entries are dead
                del chain[:i + 1]
                break
            length = key_len
            while (
                length < max_len
                and data[prev_pos + length] == data[pos + length]
            ):
                length += 1
            if length > best_len:
                best_len = length
                best_dist = pos - prev_pos
                if best_len == max_len:
                    break
        return best_dist, best_len

    def find_match(self, data: bytes, pos: int) -> Tuple[int, int]:
        """Find the longest, then nearest, run starting at ``pos``.

        With the ``"hash"`` strategy positions must be visited in
        increasing order, as :meth:`compress` does.

        :param data: Whole input.
        :type data: bytes
        :param pos: Current scan position.
        :type pos: int
        :returns: ``(distance, length)``; ``(0, 0)`` if nothing matches.
            The length may be below ``min_match``.
        :rtype: Tuple[int, int]
        """
        max_distance = min(pos, self.window_size)
        max_len = min(self.lookahead_size, len(data) - pos)
        if max_len <= 0 or max_distance == 0:
            return 0, 0
        if self.strategy == "scan":
            return self._scan_match(data, pos, max_distance, max_len)
        return self._hash_match(data, pos, max_distance, max_len)

    def compress(
        self,
        data: bytes,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> List[Token]:
        """Parse ``data`` into LZ77 tokens.

        :param data: Uncompressed input bytes.
        :type data: bytes
        :param on_progress: Optional callback ``on_progress(pos, total)``
            invoked after every token with the current position and total
            input size.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Token sequence; empty for empty input.
        :rtype: List[Token]
        """
        data = bytes(data)
        self.chains = defaultdict(list)
        self._next_insert = 0
        tokens: List[Token] = []
        pos = 0
        total = len(data)

        while pos < total:
            distance, length = self.find_match(data, pos)

            if length >= self.min_match:
                end = pos + length
                literal = data[end] if end < total else None
                tokens.append(Token(distance, length, literal))
                pos = end + 1
            else:
                tokens.append(Token.from_literal(data[pos]))
                pos += 1

            if on_progress is not None:
                on_progress(min(pos, total), total)

        logger.debug(
            "Encoded %d bytes into %d tokens (window=%d, lookahead=%d, %s)",
            total, len(tokens), self.window_size, self.lookahead_size,
            self.strategy,
        )
        return tokens


class LZ77Decompressor:
    """Replays LZ77 tokens into the original bytes."""

    CHUNK_SIZE = 64 * 1024

    @staticmethod
    def _check(token: Token, index: int, available: int):
        distance, length, literal = token
        if length < 0 or distance < 0:
            raise InvalidTokenError(
                f"Negative distance or length in token {index}: {token}", index
            )
        if length > 0:
            if distance == 0:
                raise InvalidTokenError(
                    f"Token {index} copies {length} bytes from distance 0",
                    index,
                )
            if distance > available:
                raise InvalidTokenError(
                    f"Invalid LZ77 distance {distance} "
                    f"with only {available} bytes available (token {index})",
                    index,
                )
        elif literal is None:
            raise InvalidTokenError(
                f"Literal token {index} has no literal", index
            )
        if literal is not None and not 0 <= literal <= 0xFF:
            raise InvalidTokenError(
                f"Literal out of byte range in token {index}: {literal}", index
            )

    @staticmethod
    def _replay(output: bytearray, token: Token):
        distance, length, literal = token
        match_pos = len(output) - distance
        for _ in range(length):
            output.append(output[match_pos])
            match_pos += 1
        if literal is not None:
            output.append(literal)

    def decompress(self, tokens: Iterable[Token]) -> bytes:
        """Decompress a sequence of LZ77 tokens into raw bytes.

        Copies are done byte by byte so that a run may read bytes it has
        just written (``distance < length``).

        :param tokens: Token stream produced by :meth:`LZ77Compressor.compress`.
        :type tokens: Iterable[Token]
        :returns: Decompressed data.
        :rtype: bytes
        :raises InvalidTokenError: If a match token has an invalid distance.
        """
        output = bytearray()
        for index, token in enumerate(tokens):
            self.apply(output, token, index)
        return bytes(output)

    def apply(self, output: bytearray, token: Token, index: int = 0):
        """Validate ``token`` against ``output`` and append its bytes in place.

        :raises InvalidTokenError: If the token cannot be replayed.
        """
        self._check(token, index, len(output))
        self._replay(output, token)

    def decode_to(
        self, tokens: Iterable[Token], sink: BinaryIO, window_size: int
    ) -> int:
        """Decompress into ``sink`` keeping only the trailing window in memory.

        :param tokens: Token stream.
        :type tokens: Iterable[Token]
        :param sink: Binary writable stream.
        :type sink: BinaryIO
        :param window_size: Largest distance any token may use.
        :type window_size: int
        :returns: Number of bytes written to ``sink``.
        :rtype: int
        :raises ConfigurationError: If ``window_size`` is not positive.
        :raises InvalidTokenError: If a token reaches past the window or
            before the start of the output.
        """
        if window_size < 1:
            raise ConfigurationError(
                f"window_size must be a positive integer, got {window_size!r}"
            )
        history = bytearray()
        written = 0
        for index, token in enumerate(tokens):
            if token.length > 0 and token.distance > window_size:
                raise InvalidTokenError(
                    f"Distance {token.distance} exceeds window {window_size} "
                    f"(token {index})",
                    index,
                )
            self._check(token, index, len(history))
            self._replay(history, token)
            if len(history) >= window_size + self.CHUNK_SIZE:
                cut = len(history) - window_size
                sink.write(bytes(history[:cut]))
                del history[:cut]
                written += cut
        sink.write(bytes(history))
        written += len(history)
        return written


def encode(
    data: bytes,
    window_size: int = DEFAULT_WINDOW_SIZE,
    lookahead_size: int = DEFAULT_LOOKAHEAD_SIZE,
    min_match: int = DEFAULT_MIN_MATCH,
    strategy: str = "hash",
) -> List[Token]:
    """Shortcut for ``LZ77Compressor(...).compress(data)``."""
    return LZ77Compressor(
        window_size, lookahead_size, min_match, strategy
    ).compress(data)


def decode(tokens: Iterable[Token]) -> bytes:
    """Shortcut for ``LZ77Decompressor().decompress(tokens)``."""
    return LZ77Decompressor().decompress(tokens)
