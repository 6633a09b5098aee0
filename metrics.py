import os
from typing import List


class CompressionMetrics:
    """Size figures for one compressed file.

    :ivar original_size: Size of the uncompressed data, in bytes.
    :type original_size: int
    :ivar compressed_size: Size of the frame, in bytes.
    :type compressed_size: int
    """

    CSV_HEADER = [
        "file",
        "original_size",
        "compressed_size",
        "compression_ratio",
        "average_code_length",
        "encoding_ms",
        "decoding_ms",
    ]

    def __init__(self, original_size: int, compressed_size: int):
        self.original_size = int(original_size)
        self.compressed_size = int(compressed_size)

    @classmethod
    def from_sizes(cls, original_size: int, compressed_size: int) -> "CompressionMetrics":
        return cls(original_size, compressed_size)

    @classmethod
    def from_files(cls, original_path: str, compressed_path: str) -> "CompressionMetrics":
        """Measure an original file and its compressed counterpart.

        :raises FileNotFoundError: If either file is missing.
        """
        return cls(os.path.getsize(original_path), os.path.getsize(compressed_path))

    @property
    def compression_ratio(self) -> float:
        """Original size over compressed size (higher is better), 0 if undefined."""
        if self.compressed_size <= 0:
            return 0.0
        return self.original_size / self.compressed_size

    @property
    def average_code_length(self) -> float:
        """Compressed bits spent per original byte, 0 for empty input."""
        if self.original_size <= 0:
            return 0.0
        return self.compressed_size * 8.0 / self.original_size

    def format_results(self, encoding_ms: float, decoding_ms: float) -> str:
        """Render a human-readable multi-line summary.

        :param encoding_ms: Encoding time in milliseconds.
        :type encoding_ms: float
        :param decoding_ms: Decoding time in milliseconds.
        :type decoding_ms: float
        :returns: Summary text ending with a newline.
        :rtype: str
        """
        return (
            f"Original size: {self.original_size} bytes\n"
            f"Compressed size: {self.compressed_size} bytes\n"
            f"Compression ratio: {self.compression_ratio:.4f} (higher is better)\n"
            f"Average code length: {self.average_code_length:.4f} bits/symbol\n"
            f"Encoding time: {encoding_ms:.2f} ms\n"
            f"Decoding time: {decoding_ms:.2f} ms\n"
        )

    def to_csv_row(self, name: str, encoding_ms: float, decoding_ms: float) -> List[str]:
        """Return a row matching ``CSV_HEADER`` for :func:`csv.writer`."""
        return [
            name,
            str(self.original_size),
            str(self.compressed_size),
            f"{self.compression_ratio:.4f}",
            f"{self.average_code_length:.4f}",
            f"{encoding_ms:.2f}",
            f"{decoding_ms:.2f}",
        ]

    def __repr__(self) -> str:
        return (
            f"CompressionMetrics(original_size={self.original_size}, "
            f"compressed_size={self.compressed_size})"
        )
