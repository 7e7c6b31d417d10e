import sys

import pytest

from localcoder_runner.capture import LogCapture, capture_streams


def test_write_drops_blank_and_whitespace_only_lines() -> None:
    sink = LogCapture()
    sink.write("hello\n\n   \nworld\n")
    assert sink.lines == ["hello", "world"]
    assert sink.text() == "hello\nworld"


def test_write_keeps_fragment_indentation() -> None:
    sink = LogCapture()
    sink.write("  indented\n")
    assert sink.lines == ["  indented"]


def test_write_returns_chunk_length_and_ignores_none() -> None:
    sink = LogCapture()
    assert sink.write("abc\n") == 4
    assert sink.write(None) == 0
    assert sink.lines == ["abc"]


def test_each_chunk_is_split_independently() -> None:
    """Chunks are not joined: `print(..., end="")` followed by print yields two lines."""
    sink = LogCapture()
    sink.write("a")
    sink.write("b\n")
    assert sink.lines == ["a", "b"]


def test_flush_and_writelines() -> None:
    sink = LogCapture()
    sink.writelines(["one\n", "\n", "two\n"])
    sink.flush()
    assert sink.lines == ["one", "two"]
    assert sink.writable()


def test_capture_streams_routes_print_and_stderr() -> None:
    with capture_streams() as sink:
        print("out")
        print("", file=sys.stderr)
        print("err", file=sys.stderr)
    assert sink.lines == ["out", "err"]


def test_capture_streams_restores_streams_after_exception() -> None:
    saved_out, saved_err = sys.stdout, sys.stderr
    with pytest.raises(ZeroDivisionError):
        with capture_streams():
            1 / 0
    assert sys.stdout is saved_out
    assert sys.stderr is saved_err


def test_capture_streams_restores_after_user_reassignment() -> None:
    saved_out = sys.stdout
    with capture_streams():
        sys.stdout = LogCapture()
    assert sys.stdout is saved_out
