import pytest

from bitops import BitWriter
from compressor import Compressor
from errors import CorruptStreamError, MalformedSerializationError, TruncatedStreamError


def test_compressor_roundtrip_with_progress(progress_recorder):
    text = "The quick brown fox jumps over the lazy dog. " * 20
    comp = Compressor()
    on_prog, calls = progress_recorder
    data = comp.compress(text, on_progress=on_prog)
    assert isinstance(data, bytes) and len(data) < len(text)

    out = comp.decompress(data, on_progress=on_prog)
    assert out == text
    assert any(d == len(text) and t == len(text) for d, t in calls)


def test_compressor_empty_input():
    comp = Compressor()
    data = comp.compress("")
    assert len(data) == 13
    assert comp.decompress(data) == ""


def test_compressor_single_symbol_and_unicode():
    comp = Compressor()
    for text in ["xxx", "x", "😀 naïve 中文\r\nline\n"]:
        assert comp.decompress(comp.compress(text)) == text


def test_progress_callback_errors_are_ignored():
    def boom(done, total):
        raise RuntimeError("display gone")

    comp = Compressor()
    assert comp.decompress(comp.compress("abcabc", on_progress=boom),
                           on_progress=boom) == "abcabc"


def test_decompress_wrong_version_raises():
    bad = BitWriter()
    bad.write_bits(99, 8)
    bad.write_bits(0, 96)
    with pytest.raises(MalformedSerializationError):
        _ = Compressor().decompress(bad.flush())


def test_decompress_short_header_raises():
    with pytest.raises(MalformedSerializationError):
        _ = Compressor().decompress(b"\x01\x00")


def test_decompress_truncated_tree_raises():
    data = Compressor().compress("hello world")
    with pytest.raises(MalformedSerializationError):
        _ = Compressor().decompress(data[:15])


def test_decompress_truncated_payload_raises():
    data = Compressor().compress("hello world" * 10)
    with pytest.raises(TruncatedStreamError):
        _ = Compressor().decompress(data[:-3])


def test_decompress_symbol_count_mismatch_raises():
    data = bytearray(Compressor().compress("hello world"))
    # symbol count field sits right after the version byte
    data[4] += 1
    with pytest.raises(CorruptStreamError):
        _ = Compressor().decompress(bytes(data))


def test_decompress_trailing_bytes_raise():
    data = Compressor().compress("hello")
    with pytest.raises(MalformedSerializationError):
        _ = Compressor().decompress(data + b"\xff\xff")


def test_decompress_nonzero_payload_padding_raises():
    data = bytearray(Compressor().compress("hello"))
    nbits = int.from_bytes(data[5:9], "big")
    assert nbits % 8
    data[-1] |= 0x01
    with pytest.raises(MalformedSerializationError):
        _ = Compressor().decompress(bytes(data))


def test_decompress_empty_container_with_leftovers_raises():
    data = Compressor().compress("")
    with pytest.raises(MalformedSerializationError):
        _ = Compressor().decompress(data + b"\x00")

    bad = BitWriter()
    bad.write_bits(Compressor.VERSION, 8)
    bad.write_bits(0, 32)
    bad.write_bits(5, 32)
    bad.write_bits(0, 32)
    with pytest.raises(MalformedSerializationError):
        _ = Compressor().decompress(bad.flush())
