def test_count_prints_sorted_table(tmp_path, m, capsys):
    src = tmp_path / "hello.txt"
    src.write_text("hello world\n", encoding="utf-8")
    assert m.main(["count", str(src)]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "Character Frequency:"
    assert out[1:] == [
        "' ': 1", "'d': 1", "'e': 1", "'h': 1",
        "'l': 3", "'o': 2", "'r': 1", "'w': 1",
    ]


def test_codes_prints_every_symbol(text_file, m, capsys):
    assert m.main(["codes", str(text_file)]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Character Codes:")
    assert "'\\n': " in out and "'\\r': " in out
    assert "Average code length:" in out


def test_encode_decode_roundtrip(text_file, tmp_path, no_progress, m):
    packed = tmp_path / "sample.huf"
    restored = tmp_path / "restored.txt"
    assert m.main(["encode", str(text_file), "-o", str(packed)]) == 0
    assert packed.exists() and packed.stat().st_size > 0
    assert m.main(["decode", str(packed), "-o", str(restored), "-P"]) == 0
    assert restored.read_bytes() == text_file.read_bytes()
    assert no_progress and "Encoding" in no_progress[-1]


def test_encode_empty_file(tmp_path, m):
    src = tmp_path / "empty.txt"
    src.write_text("", encoding="utf-8")
    packed = tmp_path / "empty.huf"
    restored = tmp_path / "empty.out"
    assert m.main(["e", str(src), "-o", str(packed), "-P"]) == 0
    assert m.main(["d", str(packed), "-o", str(restored), "-P"]) == 0
    assert restored.read_text(encoding="utf-8") == ""


def test_missing_input_reports_error(tmp_path, m, capsys):
    missing = tmp_path / "nope.txt"
    assert m.main(["count", str(missing)]) == 1
    assert m.main(["encode", str(missing), "-o", str(tmp_path / "x")]) == 1
    assert m.main(["decode", str(missing), "-o", str(tmp_path / "y")]) == 1
    out = capsys.readouterr().out
    assert out.count("[!] File not found") == 3


def test_decode_bad_container_reports_error(tmp_path, m, capsys):
    bad = tmp_path / "bad.huf"
    bad.write_bytes(b"\x63" + b"\x00" * 12)
    out_path = tmp_path / "out.txt"
    assert m.main(["decode", str(bad), "-o", str(out_path), "-P"]) == 1
    assert "[!] Cannot decode" in capsys.readouterr().out
    assert not out_path.exists()


def test_decode_container_with_surrogate_reports_error(tmp_path, m, capsys):
    packed = tmp_path / "surrogate.huf"
    packed.write_bytes(m.Compressor().compress("\ud800a"))
    out_path = tmp_path / "out.txt"
    assert m.main(["decode", str(packed), "-o", str(out_path), "-P"]) == 1
    assert "[!] Cannot decode" in capsys.readouterr().out
    assert not out_path.exists()


def test_non_utf8_input_reports_error(tmp_path, m, capsys):
    src = tmp_path / "binary.txt"
    src.write_bytes(b"\xff\xfeabc")
    assert m.main(["count", str(src)]) == 1
    assert m.main(["codes", str(src)]) == 1
    assert m.main(["encode", str(src), "-o", str(tmp_path / "x"), "-P"]) == 1
    out = capsys.readouterr().out
    assert out.count("[!] Not a UTF-8 text file") == 3
    assert not (tmp_path / "x").exists()
