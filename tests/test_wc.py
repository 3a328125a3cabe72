import io
import sys

from xvkern.wc import WcCounts, count, main


def test_count_simple_text():
    assert count(io.BytesIO(b"hello world\n")) == WcCounts(1, 2, 12)


def test_count_empty():
    assert count(io.BytesIO(b"")) == WcCounts(0, 0, 0)


def test_nul_separates_words():
    assert count(io.BytesIO(b"a\0b")).words == 2


def test_invariants_on_mixed_text():
    data = b"one\ttwo\r\nthree  four\vfive\n\nsix"
    result = count(io.BytesIO(data))
    assert result.chars == len(data)
    assert result.lines == data.count(b"\n")
    assert result.words == 6


def test_word_spanning_chunks_counted_once():
    data = b"x" * 1500
    result = count(io.BytesIO(data))
    assert result.words == 1
    assert result.chars == 1500
    assert result.lines == 0


def test_many_words_across_chunks():
    data = b"ab " * 700
    result = count(io.BytesIO(data))
    assert result.words == 700
    assert result.chars == len(data)


def test_main_reports_each_file(tmp_path, capsys):
    first = tmp_path / "a.txt"
    second = tmp_path / "b.txt"
    first.write_bytes(b"alpha beta\ngamma\n")
    second.write_bytes(b"")
    assert main([str(first), str(second)]) == 0
    out = capsys.readouterr().out.splitlines()
    c1 = count(io.BytesIO(first.read_bytes()))
    assert out == [
        f"{c1.lines} {c1.words} {c1.chars} {first}",
        f"0 0 0 {second}",
    ]


def test_main_stops_at_missing_file(tmp_path, capsys):
    good = tmp_path / "good"
    good.write_bytes(b"z\n")
    missing = tmp_path / "missing"
    assert main([str(missing), str(good)]) == 1
    assert capsys.readouterr().out == f"wc: cannot open {missing}\n"


def test_main_reads_stdin(monkeypatch, capsys):
    data = b"x y\n"
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))
    assert main([]) == 0
    assert capsys.readouterr().out == f"1 2 {len(data)} \n"