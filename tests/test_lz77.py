import io
import random

import pytest

from errors import ConfigurationError, InvalidTokenError
from lz77 import LZ77Compressor, LZ77Decompressor, Token, decode, encode


def lit(ch):
    return Token(0, 0, ord(ch))


def test_lz77_roundtrip_small_text_and_progress(progress_recorder):
    data = b"abracadabra abracadabra\n"
    lz = LZ77Compressor(window_size=64, lookahead_size=16)
    on_prog, progress_calls = progress_recorder
    tokens = lz.compress(data, on_progress=on_prog)
    out = LZ77Decompressor().decompress(tokens)
    assert out == data
    assert len(progress_calls) == len(tokens)
    assert progress_calls[-1] == (len(data), len(data))


def test_lz77_empty_input():
    assert encode(b"", 16, 16) == []
    assert decode([]) == b""


def test_overlapping_run_expands_itself():
    tokens = encode(b"a" * 10, window_size=16, lookahead_size=16)
    assert tokens == [lit("a"), Token(1, 9, None)]
    assert tokens[1].distance < tokens[1].length
    assert decode(tokens) == b"a" * 10


def test_longest_match_beats_nearest():
    tokens = encode(b"abcdXabcYabcd", window_size=16, lookahead_size=16)
    assert tokens == [
        lit("a"), lit("b"), lit("c"), lit("d"), lit("X"),
        Token(5, 3, ord("Y")),
        Token(9, 4, None),
    ]


@pytest.mark.parametrize("strategy", ["scan", "hash"])
def test_equal_length_tie_picks_smallest_distance(strategy):
    data = b"abcXabcYabc"
    tokens = encode(data, 16, 16, strategy=strategy)
    assert tokens[-1] == Token(4, 3, None)

    lz = LZ77Compressor(16, 16, strategy="scan")
    # distances 4 and 8 both give a 3-byte run at position 8
    assert lz.find_match(data, 8) == (4, 3)


def test_short_match_below_threshold_becomes_literals():
    assert encode(b"abXab", 16, 16, min_match=3) == [
        lit("a"), lit("b"), lit("X"), lit("a"), lit("b"),
    ]
    assert encode(b"abXab", 16, 16, min_match=2) == [
        lit("a"), lit("b"), lit("X"), Token(3, 2, None),
    ]


def test_lookahead_bounds_match_length_and_window_bounds_distance():
    data = b"xyz12345xyz"
    assert encode(data, 16, 16)[-1] == Token(8, 3, None)
    # the first "xyz" is out of reach of a 4-byte window
    narrow = encode(data, 4, 16)
    assert narrow == [lit(ch) for ch in "xyz12345xyz"]
    assert decode(narrow) == data

    tokens = encode(b"a" * 20, window_size=8, lookahead_size=5)
    assert max(t.length for t in tokens) == 5
    assert decode(tokens) == b"a" * 20


def test_nul_bytes_are_ordinary_literals():
    data = b"abcabc\x00"
    tokens = encode(data, 16, 16)
    assert tokens[-1] == Token(3, 3, 0)
    assert tokens[-1].has_literal
    assert decode(tokens) == data

    zeros = b"\x00" * 9 + b"\x01\x00"
    assert decode(encode(zeros, 16, 16)) == zeros


def test_token_string_form():
    assert str(Token(0, 0, ord("A"))) == "<0,0,'A'>"
    assert str(Token(3, 4, None)) == "<3,4,EOF>"
    assert not Token(0, 0, 65).is_match
    assert Token(1, 3, None).is_match


@pytest.mark.parametrize("seed", range(8))
def test_hash_strategy_selects_same_tokens_as_scan(seed):
    rng = random.Random(seed)
    alphabet = b"ab" if seed % 2 else b"abcd\x00"
    data = bytes(rng.choice(alphabet) for _ in range(rng.randint(0, 400)))
    window = rng.choice([1, 2, 7, 32, 64])
    lookahead = rng.choice([1, 3, 9, 20])
    min_match = rng.choice([1, 2, 3, 4])

    scan = encode(data, window, lookahead, min_match, strategy="scan")
    hashed = encode(data, window, lookahead, min_match, strategy="hash")
    assert hashed == scan
    assert decode(hashed) == data


def test_compressor_is_reusable():
    lz = LZ77Compressor(32, 8)
    first = lz.compress(b"hello hello hello")
    assert lz.compress(b"hello hello hello") == first
    assert decode(lz.compress(b"other input")) == b"other input"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"window_size": 0},
        {"lookahead_size": -1},
        {"min_match": 0},
        {"window_size": True},
        {"lookahead_size": 2.5},
        {"strategy": "suffix-tree"},
    ],
)
def test_invalid_configuration_raises(kwargs):
    with pytest.raises(ConfigurationError):
        LZ77Compressor(**kwargs)


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        encode(b"abc", 0, 4)


def test_lz77_decompress_invalid_distance_raises():
    tokens = [lit("A"), Token(5, 3, None)]
    with pytest.raises(InvalidTokenError) as excinfo:
        decode(tokens)
    assert excinfo.value.index == 1


def test_zero_distance_match_raises():
    with pytest.raises(InvalidTokenError):
        decode([lit("A"), Token(0, 2, ord("B"))])


def test_decode_to_keeps_only_window():
    data = (b"The quick brown fox jumps over the lazy dog. " * 8)
    tokens = encode(data, window_size=64, lookahead_size=16)

    decompressor = LZ77Decompressor()
    decompressor.CHUNK_SIZE = 8
    sink = io.BytesIO()
    assert decompressor.decode_to(tokens, sink, 64) == len(data)
    assert sink.getvalue() == data


def test_decode_to_rejects_distance_beyond_window():
    tokens = encode(b"abcdefgh" * 4, window_size=16, lookahead_size=16)
    with pytest.raises(InvalidTokenError):
        LZ77Decompressor().decode_to(tokens, io.BytesIO(), 4)
    with pytest.raises(ConfigurationError):
        LZ77Decompressor().decode_to(tokens, io.BytesIO(), 0)


def test_literal_token_without_literal_raises():
    with pytest.raises(InvalidTokenError) as excinfo:
        decode([lit("A"), Token(0, 0, None)])
    assert excinfo.value.index == 1
    with pytest.raises(InvalidTokenError):
        LZ77Decompressor().decode_to([Token(0, 0, None)], io.BytesIO(), 16)
