from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from .request import HarnessRequest, Mode

ENTRY_POINT = "solution"
USER_INDENT = " " * 8

# Names introduced by the generated program all carry the `_lc_` prefix.
_PRELUDE = (
    "import json as _lc_json",
    "import sys as _lc_sys",
    "from localcoder_runner.capture import capture_streams as _lc_capture_streams",
    "",
    "_lc_result = None",
    "_lc_error = None",
    "with _lc_capture_streams() as _lc_capture:",
    "    try:",
)

_FAULT_BOUNDARY_EXIT = (
    "    except SystemExit as _lc_exit:",
    "        _lc_result = None",
    "        if _lc_exit.code not in (None, 0):",
    '            _lc_error = f"SystemExit: {_lc_exit.code}"',
    "    except Exception as _lc_exc:",
    "        _lc_result = None",
    '        _lc_error = f"{_lc_exc.__class__.__name__}: {_lc_exc}"',
    "",
)

_EMIT = (
    "_lc_logs = _lc_capture.text()",
    "try:",
    "    _lc_line = _lc_json.dumps(",
    '        {"logs": _lc_logs, "result": _lc_result, "error": _lc_error}, allow_nan=False',
    "    )",
    "except (TypeError, ValueError, RecursionError) as _lc_exc:",
    "    _lc_line = _lc_json.dumps(",
    "        {",
    '            "logs": _lc_logs,',
    '            "result": None,',
    '            "error": f"Result is not JSON serializable: {_lc_exc.__class__.__name__}: {_lc_exc}",',
    "        }",
    "    )",
    '_lc_sys.stdout.write(_lc_line + "\\n")',
    "_lc_sys.stdout.flush()",
)


@dataclass(frozen=True, slots=True)
class WrappedProgram:
    """Generated program text, kept with the untouched user source for diagnostics.

    Example:
        ```python
        program = wrap_executor("print('hi')")
        assert program.source == "print('hi')"
        ```
    """

    text: str
    mode: Mode
    source: str


def indent_code(code: str, prefix: str = USER_INDENT) -> list[str]:
    """Prefix every non-blank line of `code`; emit blank lines empty.

    Only `\\n`, `\\r\\n` and `\\r` end a line, matching the tokenizer; other
    characters `str.splitlines` treats as breaks may sit inside literals.

    Example:
        ```python
        lines = indent_code("if x:\\n    y()\\n\\n", "  ")  # ['  if x:', '      y()', '']
        ```
    """
    lines = code.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if lines[-1] == "":
        lines.pop()
    return [prefix + line if line.strip() else "" for line in lines]


def serialize_input(input_data: Any) -> str:
    """Serialize the test input as a Python string literal holding its JSON text.

    `repr` escapes quotes, backslashes and newlines, so no input value can
    terminate the literal early.

    Example:
        ```python
        literal = serialize_input({"a": 1})
        assert eval(literal) == '{"a": 1}'
        ```
    """
    try:
        input_json = json.dumps(input_data)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Test input is not JSON serializable: {exc}") from exc
    return repr(input_json)


def _assemble(mode: Mode, code: str, tail: tuple[str, ...]) -> WrappedProgram:
    """Join prelude, indented user code, boundary tail and emitter into one program.

    Example:
        ```python
        program = _assemble(Mode.EXECUTOR, "x = 1", ("        _lc_error = None",))
        ```
    """
    lines = [*_PRELUDE, *indent_code(code), *tail, *_FAULT_BOUNDARY_EXIT, *_EMIT]
    return WrappedProgram(text="\n".join(lines) + "\n", mode=mode, source=code)


def wrap_executor(code: str) -> WrappedProgram:
    """Wrap free-form code so it runs inside the capture scope and fault boundary.

    Example:
        ```python
        program = wrap_executor("print('hello')")
        ```
    """
    tail = (
        "        _lc_result = None",
        "        _lc_error = None",
    )
    return _assemble(Mode.EXECUTOR, code, tail)


def wrap_test(code: str, input_data: Any = None) -> WrappedProgram:
    """Wrap code that defines `solution` and call it with the decoded input.

    A missing entry point is not checked here; the call fails inside the
    fault boundary and surfaces as a `NameError`.

    Example:
        ```python
        program = wrap_test("def solution(x):\\n    return x + 1", 41)
        ```
    """
    tail = (
        f"        _lc_input = _lc_json.loads({serialize_input(input_data)})",
        f"        _lc_result = {ENTRY_POINT}(_lc_input)",
        "        _lc_error = None",
    )
    return _assemble(Mode.TEST, code, tail)


def wrap_code(request: HarnessRequest) -> WrappedProgram:
    """Dispatch to the wrapper matching the request mode.

    Example:
        ```python
        program = wrap_code(HarnessRequest(mode=Mode.EXECUTOR, code="print(1)"))
        ```
    """
    if request.mode is Mode.TEST:
        return wrap_test(request.code, request.input_data)
    return wrap_executor(request.code)
