import pytest

from codec import LZ77Codec
from errors import ConfigurationError, MalformedFrameError


def test_codec_roundtrip_with_progress(progress_recorder):
    data = b"The quick brown fox jumps over the lazy dog. " * 5
    codec = LZ77Codec(window_size=256, lookahead_size=32)
    on_prog, calls = progress_recorder
    comp = codec.compress(data, on_progress=on_prog)
    assert isinstance(comp, bytes) and len(comp) < len(data)
    assert codec.decompress(comp) == data
    assert calls[-1] == (len(data), len(data))


def test_codec_empty_input():
    codec = LZ77Codec()
    comp = codec.compress(b"")
    assert len(comp) == 4
    assert codec.decompress(comp) == b""


def test_codec_exposes_configuration():
    codec = LZ77Codec(1024, 64)
    assert codec.window_size == 1024
    assert codec.lookahead_size == 64
    with pytest.raises(ConfigurationError):
        LZ77Codec(1024, 0)


def test_verify_integrity():
    codec = LZ77Codec(64, 8, strategy="scan")
    assert codec.verify_integrity(b"banana bandana banana")
    assert codec.verify_integrity(b"")


def test_file_roundtrip(tmp_path):
    src = tmp_path / "input.bin"
    data = bytes(range(256)) * 10 + b"tail\x00"
    src.write_bytes(data)
    comp = tmp_path / "input.lz77"
    out = tmp_path / "input.out"

    codec = LZ77Codec(512, 64)
    enc = codec.compress_file(str(src), str(comp))
    assert enc.input_size == len(data)
    assert enc.output_size == comp.stat().st_size
    assert enc.elapsed_ms >= 0

    # decoding does not depend on the codec's own window
    dec = LZ77Codec(16, 4).decompress_file(str(comp), str(out))
    assert out.read_bytes() == data
    assert dec.token_count == enc.token_count
    assert dec.input_size == enc.output_size
    assert dec.output_size == len(data)


def test_decompress_file_truncated(tmp_path):
    src = tmp_path / "a.txt"
    src.write_bytes(b"hello hello hello hello")
    comp = tmp_path / "a.lz77"
    codec = LZ77Codec()
    codec.compress_file(str(src), str(comp))
    comp.write_bytes(comp.read_bytes()[:-1])
    with pytest.raises(MalformedFrameError):
        codec.decompress_file(str(comp), str(tmp_path / "a.out"))


def test_compress_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        LZ77Codec().compress_file(str(tmp_path / "nope"), str(tmp_path / "x"))
