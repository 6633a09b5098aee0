import csv
import logging
import os
from typing import Callable, Iterable, List, NamedTuple, Optional

from codec import LZ77Codec
from lz77 import DEFAULT_MIN_MATCH
from metrics import CompressionMetrics

logger = logging.getLogger(__name__)

WINDOW_SIZES = (1024, 4096, 8192, 16384)
LOOKAHEAD_SIZES = (16, 32, 64, 128)

SUMMARY_HEADER = (
    CompressionMetrics.CSV_HEADER[:1]
    + ["window_size", "lookahead_size"]
    + CompressionMetrics.CSV_HEADER[1:]
    + ["verified"]
)


class BenchmarkRow(NamedTuple):
    """Result of compressing one corpus file with one configuration."""

    file: str
    window_size: int
    lookahead_size: int
    metrics: CompressionMetrics
    encoding_ms: float
    decoding_ms: float
    verified: bool

    def to_csv_row(self) -> List[str]:
        """Return a row matching ``SUMMARY_HEADER``."""
        name, *figures = self.metrics.to_csv_row(
            self.file, self.encoding_ms, self.decoding_ms
        )
        return (
            [name, str(self.window_size), str(self.lookahead_size)]
            + figures
            + ["yes" if self.verified else "no"]
        )


def _corpus_files(corpus_dir: str) -> List[str]:
    """List regular files directly inside ``corpus_dir``, sorted by name.

    :raises FileNotFoundError: If ``corpus_dir`` is not a directory.
    """
    if not os.path.isdir(corpus_dir):
        raise FileNotFoundError(f"Corpus directory not found: {corpus_dir}")
    return [
        os.path.join(corpus_dir, name)
        for name in sorted(os.listdir(corpus_dir))
        if os.path.isfile(os.path.join(corpus_dir, name))
    ]


def _same_content(path_a: str, path_b: str) -> bool:
    with open(path_a, "rb") as a, open(path_b, "rb") as b:
        return a.read() == b.read()


def benchmark_file(
    path: str, codec: LZ77Codec, work_dir: str
) -> BenchmarkRow:
    """Compress, decompress and verify a single file.

    :param path: File to benchmark.
    :type path: str
    :param codec: Configured codec.
    :type codec: LZ77Codec
    :param work_dir: Directory receiving the ``.lz77`` and ``.decoded`` files.
    :type work_dir: str
    :returns: Measured row.
    :rtype: BenchmarkRow
    """
    name = os.path.basename(path)
    compressed = os.path.join(work_dir, name + ".lz77")
    decoded = os.path.join(work_dir, name + ".decoded")

    enc = codec.compress_file(path, compressed)
    dec = codec.decompress_file(compressed, decoded)
    verified = _same_content(path, decoded)
    if not verified:
        logger.warning("Round trip mismatch for %s", path)

    return BenchmarkRow(
        file=name,
        window_size=codec.window_size,
        lookahead_size=codec.lookahead_size,
        metrics=CompressionMetrics.from_files(path, compressed),
        encoding_ms=enc.elapsed_ms,
        decoding_ms=dec.elapsed_ms,
        verified=verified,
    )


def run_benchmark(
    corpus_dir: str,
    results_dir: str,
    window_sizes: Iterable[int] = WINDOW_SIZES,
    lookahead_sizes: Iterable[int] = LOOKAHEAD_SIZES,
    min_match: int = DEFAULT_MIN_MATCH,
    strategy: str = "hash",
    on_result: Optional[Callable[[BenchmarkRow], None]] = None,
) -> List[BenchmarkRow]:
    """Benchmark every corpus file against every window/look-ahead pair.

    Writes ``summary.csv`` and ``report.md`` into ``results_dir``.

    :param corpus_dir: Directory holding the files to compress.
    :type corpus_dir: str
    :param results_dir: Output directory (created if missing).
    :type results_dir: str
    :param window_sizes: Window sizes to try.
    :type window_sizes: Iterable[int]
    :param lookahead_sizes: Look-ahead sizes to try.
    :type lookahead_sizes: Iterable[int]
    :param min_match: Minimum match length for every run.
    :type min_match: int
    :param strategy: Match search strategy.
    :type strategy: str
    :param on_result: Optional callback invoked with each row as it is
        measured.
    :type on_result: Optional[Callable[[BenchmarkRow], None]]
    :returns: All measured rows.
    :rtype: List[BenchmarkRow]
    :raises FileNotFoundError: If ``corpus_dir`` does not exist.
    :raises ConfigurationError: If a grid value is invalid.
    """
    files = _corpus_files(corpus_dir)
    window_sizes = list(window_sizes)
    lookahead_sizes = list(lookahead_sizes)
    os.makedirs(results_dir, exist_ok=True)

    rows: List[BenchmarkRow] = []
    summary_path = os.path.join(results_dir, "summary.csv")
    with open(summary_path, "w", newline="", encoding="utf-8") as summary:
        writer = csv.writer(summary)
        writer.writerow(SUMMARY_HEADER)
        for window in window_sizes:
            for lookahead in lookahead_sizes:
                codec = LZ77Codec(window, lookahead, min_match, strategy)
                work_dir = os.path.join(results_dir, f"w{window}_l{lookahead}")
                os.makedirs(work_dir, exist_ok=True)
                for path in files:
                    row = benchmark_file(path, codec, work_dir)
                    writer.writerow(row.to_csv_row())
                    rows.append(row)
                    if on_result is not None:
                        on_result(row)

    write_report(
        os.path.join(results_dir, "report.md"),
        rows,
        window_sizes,
        lookahead_sizes,
        corpus_dir,
    )
    logger.debug("Benchmark wrote %d rows to %s", len(rows), results_dir)
    return rows


def _best(rows: List[BenchmarkRow]) -> BenchmarkRow:
    return max(rows, key=lambda r: r.metrics.compression_ratio)


def write_report(
    path: str,
    rows: List[BenchmarkRow],
    window_sizes: List[int],
    lookahead_sizes: List[int],
    corpus_dir: str,
):
    """Write a Markdown summary naming the best configuration per file."""
    lines = [
        "# LZ77 Compression Performance Report",
        "",
        "## Test Configuration",
        "",
        "- Algorithm: LZ77 (greedy, longest then nearest match)",
        f"- Window Sizes: {', '.join(str(w) for w in window_sizes)}",
        f"- Look-ahead Buffer Sizes: {', '.join(str(n) for n in lookahead_sizes)}",
        f"- Corpus: {corpus_dir}",
        "",
        "## Best Configuration per File",
        "",
    ]
    if not rows:
        lines.append("No files were benchmarked.")
    else:
        lines.append("| File | Window | Look-ahead | Ratio | Bits/symbol |")
        lines.append("|------|--------|------------|-------|-------------|")
        for name in sorted({r.file for r in rows}):
            best = _best([r for r in rows if r.file == name])
            lines.append(
                f"| {name} | {best.window_size} | {best.lookahead_size} "
                f"| {best.metrics.compression_ratio:.4f} "
                f"| {best.metrics.average_code_length:.4f} |"
            )

        totals = {}
        for r in rows:
            key = (r.window_size, r.lookahead_size)
            orig, comp = totals.get(key, (0, 0))
            totals[key] = (
                orig + r.metrics.original_size,
                comp + r.metrics.compressed_size,
            )
        (window, lookahead), (orig, comp) = max(
            totals.items(),
            key=lambda kv: CompressionMetrics(*kv[1]).compression_ratio,
        )
        overall = CompressionMetrics(orig, comp)
        failed = sorted({r.file for r in rows if not r.verified})
        lines += [
            "",
            "## Overall",
            "",
            f"Best configuration over the whole corpus: window {window}, "
            f"look-ahead {lookahead} (ratio {overall.compression_ratio:.4f}).",
            "",
            "Round trip verification: "
            + ("all files passed." if not failed else "FAILED for " + ", ".join(failed)),
        ]

    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
