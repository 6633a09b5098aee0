import sys
from pathlib import Path
import importlib
import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture()
def m():
    """Lazily import the main module for tests to avoid module-level import."""
    return importlib.import_module("main")


@pytest.fixture()
def no_progress(monkeypatch, m):
    """Suppress progress rendering in main module during tests."""
    calls = []

    def _stub(line: str):
        calls.append(line)

    monkeypatch.setattr(m, "_print_progress", _stub)
    return calls


@pytest.fixture()
def progress_recorder():
    """Provide a reusable progress callback and its call log."""
    calls = []

    def cb(done, total):
        calls.append((done, total))

    return cb, calls


@pytest.fixture()
def corpus(tmp_path: Path):
    """Create a small corpus directory for benchmark and e2e tests.

    Structure:
        corpus/
            text.txt
            binary.bin
            nested/      (ignored by the benchmark)
    """
    root = tmp_path / "corpus"
    (root / "nested").mkdir(parents=True)
    (root / "text.txt").write_bytes(
        b"It is a truth universally acknowledged, " * 20
    )
    (root / "binary.bin").write_bytes(bytes(range(256)) * 3 + b"\x00" * 50)
    (root / "nested" / "skip.txt").write_bytes(b"not part of the corpus")
    return root
