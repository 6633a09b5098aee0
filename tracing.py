import sys
from typing import List, Optional, TextIO

from lz77 import LZ77Compressor, LZ77Decompressor, Token


def _show(data: bytes) -> str:
    return data.decode("ascii", "backslashreplace")


def _literal(byte: Optional[int]) -> str:
    if byte is None:
        return "EOF"
    return "'" + _show(bytes([byte])) + "'"


def format_tokens(tokens: List[Token]) -> str:
    return " ".join(str(token) for token in tokens)


def trace_encoding(
    data: bytes, compressor: LZ77Compressor, out: TextIO = sys.stdout
) -> List[Token]:
    """Print how ``compressor`` parses ``data``, one token at a time.

    :param data: Input bytes.
    :type data: bytes
    :param compressor: Configured parser.
    :type compressor: LZ77Compressor
    :param out: Text stream receiving the trace.
    :type out: TextIO
    :returns: Tokens produced by the parser.
    :rtype: List[Token]
    """
    data = bytes(data)
    tokens = compressor.compress(data)

    print("=== LZ77 Encoding Trace ===", file=out)
    print(f'Input: "{_show(data)}"', file=out)
    print(f"Window Size: {compressor.window_size}", file=out)
    print(f"Look-ahead Buffer Size: {compressor.lookahead_size}", file=out)
    print(f"Minimum Match: {compressor.min_match}", file=out)
    print(file=out)

    pos = 0
    for token in tokens:
        print(f"Position: {pos}", file=out)
        if pos > 0:
            window = data[max(0, pos - compressor.window_size):pos]
            print(f'Window: "{_show(window)}"', file=out)
        else:
            print("Window: (empty)", file=out)
        lookahead = data[pos:pos + compressor.lookahead_size]
        print(f'Look-ahead: "{_show(lookahead)}"', file=out)

        if token.is_match:
            start = pos - token.distance
            print(
                f"Found match: Length {token.length}, "
                f"Distance {token.distance}",
                file=out,
            )
            print(f'Match: "{_show(data[start:start + token.length])}"', file=out)
        else:
            print("No match found", file=out)

        print(f"Next character: {_literal(token.literal)}", file=out)
        print(f"Output token: {token}", file=out)
        pos += token.length + 1
        print(f"New position: {min(pos, len(data))}", file=out)
        print(file=out)

    print("=== Final Encoded Sequence ===", file=out)
    print(format_tokens(tokens), file=out)
    print(file=out)
    return tokens


def trace_decoding(tokens: List[Token], out: TextIO = sys.stdout) -> bytes:
    """Print the reconstruction of ``tokens`` step by step.

    :param tokens: Token sequence.
    :type tokens: List[Token]
    :param out: Text stream receiving the trace.
    :type out: TextIO
    :returns: Decoded bytes.
    :rtype: bytes
    :raises InvalidTokenError: If a token cannot be replayed.
    """
    decompressor = LZ77Decompressor()

    print("=== LZ77 Decoding Trace ===", file=out)
    print("Input Tokens:", file=out)
    print(format_tokens(tokens), file=out)
    print(file=out)

    output = bytearray()
    for index, token in enumerate(tokens):
        print(f"Processing token {index + 1}: {token}", file=out)
        print(f'Current output: "{_show(bytes(output))}"', file=out)
        before = len(output)
        decompressor.apply(output, token, index)

        if token.is_match:
            print(
                f"Match found: Distance={token.distance}, "
                f"Length={token.length}",
                file=out,
            )
            print(f"Referenced position: {before - token.distance}", file=out)
            added = bytes(output[before:before + token.length])
            print(f'Added match: "{_show(added)}"', file=out)
        else:
            print("No match part", file=out)

        if token.has_literal:
            print(f"Added next character: {_literal(token.literal)}", file=out)
        else:
            print("End of file marker", file=out)
        print(f'Output after this token: "{_show(bytes(output))}"', file=out)
        print(file=out)

    print("=== Final Decoded Text ===", file=out)
    print(_show(bytes(output)), file=out)
    return bytes(output)
