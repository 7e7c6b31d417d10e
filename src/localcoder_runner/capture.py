from __future__ import annotations

import contextlib
import io
import sys
from typing import Iterator


class LogCapture(io.TextIOBase):
    """Write sink that records non-blank output lines of one execution.

    Example:
        ```python
        sink = LogCapture()
        sink.write("hello\\n\\nworld\\n")
        assert sink.lines == ["hello", "world"]
        ```
    """

    def __init__(self) -> None:
        """Create an empty log sequence.

        Example:
            ```python
            sink = LogCapture()
            ```
        """
        super().__init__()
        self._lines: list[str] = []

    @property
    def lines(self) -> list[str]:
        """Return a copy of the captured lines in write order.

        Example:
            ```python
            captured = sink.lines
            ```
        """
        return list(self._lines)

    def text(self) -> str:
        """Return captured lines joined with newlines.

        Example:
            ```python
            logs = sink.text()
            ```
        """
        return "\n".join(self._lines)

    def writable(self) -> bool:
        """Report the sink as writable for code that checks before writing.

        Example:
            ```python
            assert sink.writable()
            ```
        """
        return True

    def write(self, s: str | None) -> int:  # type: ignore[override]
        """Split a chunk on line boundaries and keep the non-blank fragments.

        Example:
            ```python
            written = sink.write("a\\n  \\nb")
            ```
        """
        if s is None:
            return 0
        chunk = str(s)
        for line in chunk.splitlines():
            if line.strip():
                self._lines.append(line)
        return len(chunk)

    def flush(self) -> None:
        """Do nothing; the log sequence is the only state.

        Example:
            ```python
            sink.flush()
            ```
        """
        return None


@contextlib.contextmanager
def capture_streams() -> Iterator[LogCapture]:
    """Route `sys.stdout` and `sys.stderr` into one `LogCapture` for a scope.

    The previous streams are restored on every exit path, including
    `SystemExit` and `KeyboardInterrupt` raised from the body.

    Example:
        ```python
        with capture_streams() as sink:
            print("captured")
        assert sink.text() == "captured"
        ```
    """
    sink = LogCapture()
    saved_out, saved_err = sys.stdout, sys.stderr
    sys.stdout = sys.stderr = sink  # type: ignore[assignment]
    try:
        yield sink
    finally:
        sys.stdout, sys.stderr = saved_out, saved_err
