import random
import sys
from pathlib import Path
import importlib
import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

SAMPLE_ALPHABET = "abcdefghijklmnopqrstuvwxyz \n.,'éλ中😀"


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
def example_frequencies():
    return {"a": 4, "b": 2, "c": 1, "d": 5}


def random_frequencies(seed: int):
    """Seeded random frequency table over a mixed-script alphabet."""
    rng = random.Random(seed)
    size = rng.randint(1, len(SAMPLE_ALPHABET))
    symbols = rng.sample(SAMPLE_ALPHABET, size)
    return {s: rng.randint(1, 50) for s in symbols}


def random_text(freqs, seed: int, length: int = 200):
    rng = random.Random(seed)
    symbols = list(freqs)
    return "".join(rng.choice(symbols) for _ in range(length))


@pytest.fixture()
def random_frequencies_fn():
    return random_frequencies


@pytest.fixture()
def random_text_fn():
    return random_text


@pytest.fixture()
def text_file(tmp_path: Path):
    """A small UTF-8 text file with Windows and Unix line endings."""
    path = tmp_path / "sample.txt"
    path.write_bytes("hello world\r\nsecond línea\n".encode("utf-8"))
    return path
