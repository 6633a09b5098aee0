import argparse

import pytest


def test_fmt_pct_and_bytes(m):
    assert m._fmt_pct(0, 0) == "0%"
    assert m._fmt_pct(50, 100).strip().endswith("%")
    assert m._fmt_pct(10, 10).strip().startswith("100")

    assert m._fmt_bytes(0) == "0.00 B"
    assert m._fmt_bytes(1024).endswith("KiB")


def test_file_progress_calls_bucketed(no_progress, m):
    p = m.FileProgress("Compressing", "x.txt")
    p(0, 100)
    p(0, 100)
    p(10, 100)
    p(10, 100)
    p(19, 100)
    p(19, 100)
    p(5, 0)
    assert len(no_progress) == 3
    assert all("Compressing x.txt" in line for line in no_progress)


def test_int_list(m):
    assert m._int_list("1024, 4096,") == [1024, 4096]
    with pytest.raises(argparse.ArgumentTypeError):
        m._int_list("12,abc")


def test_cli_parser_accepts_subcommands(m):
    parser = m.get_parser()
    ns = parser.parse_args(["compress", "file1", "-o", "out.lz77"])
    assert ns.cmd in ("compress", "c")
    assert (ns.window, ns.lookahead, ns.min_match, ns.strategy) == (4096, 40, 3, "hash")
    ns2 = parser.parse_args(["decompress", "in.lz77", "-o", "dest"])
    assert ns2.cmd in ("decompress", "d")
    ns3 = parser.parse_args(["b", "corpus", "--windows", "8,16"])
    assert ns3.windows == [8, 16]
    assert ns3.lookaheads == [16, 32, 64, 128]


def test_cli_parser_rejects_unknown_strategy(m):
    with pytest.raises(SystemExit):
        m.get_parser().parse_args(["trace", "abc", "--strategy", "bogus"])
