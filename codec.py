import logging
import os
import time
from typing import Callable, List, NamedTuple, Optional

import frame
from lz77 import (
    DEFAULT_LOOKAHEAD_SIZE,
    DEFAULT_MIN_MATCH,
    DEFAULT_WINDOW_SIZE,
    LZ77Compressor,
    LZ77Decompressor,
    Token,
)

logger = logging.getLogger(__name__)


class CodecResult(NamedTuple):
    """Outcome of a file compression or decompression.

    :ivar token_count: Number of tokens encoded or decoded.
    :ivar input_size: Bytes read from the source file.
    :ivar output_size: Bytes written to the destination file.
    :ivar elapsed_ms: Wall-clock time spent, in milliseconds.
    """

    token_count: int
    input_size: int
    output_size: int
    elapsed_ms: float


class LZ77Codec:
    """Main codec combining the LZ77 parser, the decoder and the frame format.

    :ivar compressor: LZ77 parser instance.
    :type compressor: LZ77Compressor
    :ivar decompressor: Token replayer instance.
    :type decompressor: LZ77Decompressor
    """

    def __init__(
        self,
        window_size: int = DEFAULT_WINDOW_SIZE,
        lookahead_size: int = DEFAULT_LOOKAHEAD_SIZE,
        min_match: int = DEFAULT_MIN_MATCH,
        strategy: str = "hash",
    ):
        """Build the parser and decoder.

        :raises ConfigurationError: If the parser configuration is invalid.
        """
        self.compressor = LZ77Compressor(
            window_size, lookahead_size, min_match, strategy
        )
        self.decompressor = LZ77Decompressor()

    @property
    def window_size(self) -> int:
        return self.compressor.window_size

    @property
    def lookahead_size(self) -> int:
        return self.compressor.lookahead_size

    def encode(
        self,
        data: bytes,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> List[Token]:
        return self.compressor.compress(data, on_progress=on_progress)

    def decode(self, tokens: List[Token]) -> bytes:
        return self.decompressor.decompress(tokens)

    def compress(
        self,
        data: bytes,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> bytes:
        """Compress raw ``data`` into a frame.

        :param data: Input bytes to compress.
        :type data: bytes
        :param on_progress: Optional callback ``on_progress(done, total)``
            reporting input bytes parsed so far.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Frame bytes. Empty input gives a 4-byte frame.
        :rtype: bytes
        """
        return frame.dumps(self.encode(data, on_progress=on_progress))

    def decompress(self, data: bytes) -> bytes:
        """Decompress a frame produced by :meth:`compress`.

        :param data: Frame bytes.
        :type data: bytes
        :returns: Original bytes.
        :rtype: bytes
        :raises MalformedFrameError: If the frame is truncated.
        :raises InvalidTokenError: If a token cannot be replayed.
        """
        return self.decode(frame.loads(data))

    def verify_integrity(self, data: bytes) -> bool:
        """Check that ``data`` survives an encode/decode round trip."""
        return self.decode(self.encode(data)) == bytes(data)

    def compress_file(
        self,
        src: str,
        dst: str,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> CodecResult:
        """Compress the file ``src`` into a frame file ``dst``.

        :param src: Path of the file to compress.
        :type src: str
        :param dst: Path of the frame file to create.
        :type dst: str
        :param on_progress: Optional parse progress callback.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Token count, sizes and elapsed time.
        :rtype: CodecResult
        """
        with open(src, "rb") as f:
            data = f.read()

        start = time.perf_counter()
        tokens = self.encode(data, on_progress=on_progress)
        with open(dst, "wb") as out:
            written = frame.write_frame(tokens, out)
        elapsed = (time.perf_counter() - start) * 1000.0

        logger.debug(
            "Compressed %s (%d bytes) to %s (%d bytes) in %.2f ms",
            src, len(data), dst, written, elapsed,
        )
        return CodecResult(len(tokens), len(data), written, elapsed)

    def decompress_file(self, src: str, dst: str) -> CodecResult:
        """Decompress the frame file ``src`` into ``dst``.

        Only the trailing window needed by the frame's largest distance is
        kept in memory while writing ``dst``.

        :param src: Path of the frame file.
        :type src: str
        :param dst: Path of the file to create.
        :type dst: str
        :returns: Token count, sizes and elapsed time.
        :rtype: CodecResult
        :raises MalformedFrameError: If the frame is truncated.
        :raises InvalidTokenError: If a token cannot be replayed.
        """
        start = time.perf_counter()
        with open(src, "rb") as f:
            tokens = frame.read_frame(f)
        window = max((t.distance for t in tokens), default=1) or 1
        with open(dst, "wb") as out:
            written = self.decompressor.decode_to(tokens, out, window)
        elapsed = (time.perf_counter() - start) * 1000.0

        logger.debug(
            "Decompressed %s (%d tokens) to %s (%d bytes) in %.2f ms",
            src, len(tokens), dst, written, elapsed,
        )
        return CodecResult(
            len(tokens), os.path.getsize(src), written, elapsed
        )
