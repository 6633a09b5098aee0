import argparse
import logging
import sys
from typing import List, Optional

from benchmark import LOOKAHEAD_SIZES, WINDOW_SIZES, BenchmarkRow, run_benchmark
from codec import LZ77Codec
from errors import LZ77Error
from lz77 import (
    DEFAULT_LOOKAHEAD_SIZE,
    DEFAULT_MIN_MATCH,
    DEFAULT_WINDOW_SIZE,
    LZ77Compressor,
)
from metrics import CompressionMetrics
from tracing import trace_decoding, trace_encoding


def _int_list(value: str) -> List[int]:
    """Parse a comma-separated list of integers for ``argparse``.

    :param value: Raw option value, e.g. ``"1024,4096"``.
    :type value: str
    :returns: Parsed integers.
    :rtype: List[int]
    :raises argparse.ArgumentTypeError: If an item is not an integer.
    """
    try:
        return [int(item) for item in value.split(",") if item.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"expected comma-separated integers, got {value!r}"
        )


def _add_codec_options(parser: argparse.ArgumentParser, grid: bool = False):
    if not grid:
        parser.add_argument(
            "-w", "--window", type=int, default=DEFAULT_WINDOW_SIZE,
            help=f"Sliding window size (default: {DEFAULT_WINDOW_SIZE})",
        )
        parser.add_argument(
            "-l", "--lookahead", type=int, default=DEFAULT_LOOKAHEAD_SIZE,
            help=f"Look-ahead buffer size (default: {DEFAULT_LOOKAHEAD_SIZE})",
        )
    parser.add_argument(
        "-m", "--min-match", type=int, default=DEFAULT_MIN_MATCH,
        help=f"Shortest run emitted as a match (default: {DEFAULT_MIN_MATCH})",
    )
    parser.add_argument(
        "--strategy", choices=LZ77Compressor.STRATEGIES, default="hash",
        help="Match search: indexed 'hash' or exhaustive 'scan'",
    )


def get_parser():
    """Create and configure the CLI argument parser.

    :returns: Configured argument parser.
    :rtype: argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        description="LZ77 sliding-window compressor"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(
        title="subcommands", dest="cmd", required=True
    )

    compress = subparsers.add_parser(
        "compress", aliases=["c"], help="Compress a file into an LZ77 frame"
    )
    compress.add_argument("input", help="File to compress")
    compress.add_argument(
        "-o", "--output", required=True, help="Output frame file path"
    )
    compress.add_argument(
        "-P",
        "--no-progress",
        action="store_true",
        help="Hide the progress line",
    )
    _add_codec_options(compress)

    decompress = subparsers.add_parser(
        "decompress", aliases=["d"], help="Decompress an LZ77 frame file"
    )
    decompress.add_argument("input", help="Frame file to decompress")
    decompress.add_argument(
        "-o", "--output", required=True, help="Output file path"
    )

    trace = subparsers.add_parser(
        "trace", aliases=["t"], help="Print a step-by-step encode/decode trace"
    )
    trace.add_argument("text", help="Text to encode (UTF-8)")
    _add_codec_options(trace)

    bench = subparsers.add_parser(
        "benchmark", aliases=["b"],
        help="Benchmark every file of a corpus over a grid of settings",
    )
    bench.add_argument("corpus", help="Directory holding the corpus files")
    bench.add_argument(
        "-o", "--output", default="lz77_results",
        help="Results directory (default: lz77_results)",
    )
    bench.add_argument(
        "--windows", type=_int_list, default=list(WINDOW_SIZES),
        help="Comma-separated window sizes",
    )
    bench.add_argument(
        "--lookaheads", type=_int_list, default=list(LOOKAHEAD_SIZES),
        help="Comma-separated look-ahead sizes",
    )
    _add_codec_options(bench, grid=True)

    return parser


def _print_progress(line: str) -> None:
    """Render and flush a single progress line in-place (carriage return).

    :param line: The textual progress line to display.
    :type line: str
    :returns: None
    :rtype: None
    """
    sys.stdout.write("\r" + line)
    sys.stdout.flush()


def _fmt_pct(done: int, total: int) -> str:
    """Format a completion percentage string like ``12.34%``.

    :param done: Units completed.
    :type done: int
    :param total: Total units to complete.
    :type total: int
    :returns: Percentage.
    :rtype: str
    """
    if total <= 0:
        return "0%"
    pct = 100.0 * (done / float(total))
    return f"{pct:6.2f}%"


def _fmt_bytes(n: int) -> str:
    """Format a byte count into a human-readable string.

    :param n: Number of bytes.
    :type n: int
    :returns: Human-readable string.
    :rtype: str
    """
    for unit in ['', 'Ki', 'Mi', 'Gi', 'Ti']:
        if abs(n) < 1024:
            return f"{n:.2f} {unit}B"
        n /= 1024
    return f"{n:.2f} PiB"


class FileProgress:
    """Callable progress reporter redrawing one line per whole percent.

    :ivar label: Action label (e.g., "Compressing").
    :type label: str
    :ivar name: File name displayed on the line.
    :type name: str
    """

    def __init__(self, label: str, name: str) -> None:
        self.label = label
        self.name = name
        self._last_reported = -1

    def __call__(self, done: int, total: int) -> None:
        """Update the progress display.

        :param done: Bytes parsed so far.
        :type done: int
        :param total: Total bytes to parse.
        :type total: int
        :returns: None
        :rtype: None
        """
        if total <= 0:
            return
        percent_bucket = int((done * 100) / total)
        if percent_bucket == self._last_reported:
            return
        self._last_reported = percent_bucket
        _print_progress(f"{self.label} {self.name}  {_fmt_pct(done, total)}")


def compress_file(args) -> None:
    codec = LZ77Codec(args.window, args.lookahead, args.min_match, args.strategy)
    on_prog = None if args.no_progress else FileProgress("Compressing", args.input)
    result = codec.compress_file(args.input, args.output, on_progress=on_prog)
    if on_prog is not None:
        sys.stdout.write("\n")
        sys.stdout.flush()

    metrics = CompressionMetrics.from_sizes(result.input_size, result.output_size)
    print("Tokens: ", result.token_count)
    print(metrics.format_results(result.elapsed_ms, 0), end="")
    print("File successfully compressed to:", args.output)


def decompress_file(args) -> None:
    result = LZ77Codec().decompress_file(args.input, args.output)
    print("Tokens: ", result.token_count)
    print("Size after decompression: ", _fmt_bytes(result.output_size))
    print(f"Decoding time: {result.elapsed_ms:.2f} ms")


def trace_text(args) -> None:
    compressor = LZ77Compressor(
        args.window, args.lookahead, args.min_match, args.strategy
    )
    data = args.text.encode("utf-8")
    tokens = trace_encoding(data, compressor)
    decoded = trace_decoding(tokens)
    print()
    print("Integrity check:", "OK" if decoded == data else "FAILED")


def _print_row(row: BenchmarkRow) -> None:
    print(
        f"{row.file:<20} {row.window_size:<8} {row.lookahead_size:<8} "
        f"{row.metrics.original_size:<12} {row.metrics.compressed_size:<12} "
        f"{row.metrics.compression_ratio:<10.4f} "
        f"{row.encoding_ms:<12.2f} {row.decoding_ms:<12.2f}"
        + ("" if row.verified else "  [!] MISMATCH")
    )


def benchmark_corpus(args) -> None:
    print(
        f"{'File':<20} {'Window':<8} {'Lookahd':<8} {'Original':<12} "
        f"{'Compressed':<12} {'Ratio':<10} {'Enc ms':<12} {'Dec ms':<12}"
    )
    run_benchmark(
        args.corpus,
        args.output,
        args.windows,
        args.lookaheads,
        args.min_match,
        args.strategy,
        on_result=_print_row,
    )
    print(f"Results written to {args.output}")


COMMANDS = {
    "compress": compress_file,
    "c": compress_file,
    "decompress": decompress_file,
    "d": decompress_file,
    "trace": trace_text,
    "t": trace_text,
    "benchmark": benchmark_corpus,
    "b": benchmark_corpus,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI tool.

    :param argv: Arguments without the program name; ``sys.argv`` if None.
    :type argv: Optional[List[str]]
    :returns: Process exit status.
    :rtype: int
    """
    parser = get_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        COMMANDS[args.cmd](args)
    except FileNotFoundError as e:
        print(f"[!] File not found: {e.filename or e}")
        return 1
    except LZ77Error as e:
        print(f"[!] {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
