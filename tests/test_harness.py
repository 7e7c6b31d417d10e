import io
import json
import logging
from pathlib import Path
from typing import Any

import pytest

from localcoder_runner import harness


def _invoke(payload: str, argv: list[str] | None = None) -> dict[str, Any]:
    out = io.StringIO()
    code = harness.main(argv or [], stdin=io.StringIO(payload), stdout=out)
    assert code == 0
    text = out.getvalue()
    assert text.endswith("\n")
    assert text.count("\n") == 1
    return json.loads(text)


def _request(mode: str, code: str, **extra: Any) -> str:
    return json.dumps({"mode": mode, "code": code, **extra})


@pytest.mark.parametrize("payload", ['{"mode": "executor", "code": "pri', "[1, 2, 3]", "", "null"])
def test_malformed_payload_yields_decode_failure(payload: str) -> None:
    response = _invoke(payload)
    assert response["logs"] == ""
    assert response["result"] is None
    assert response["error"].startswith("Invalid input JSON:")


def test_executor_drops_blank_lines() -> None:
    response = _invoke(_request("executor", "print('hello')\nprint()\nprint('world')"))
    assert response == {"logs": "hello\nworld", "result": None, "error": None}


def test_test_mode_adds_one() -> None:
    response = _invoke(_request("test", "def solution(x):\n    return x + 1", input=41))
    assert response == {"logs": "", "result": 42, "error": None}


def test_test_mode_missing_entry_point_keeps_prior_logs() -> None:
    response = _invoke(_request("test", "print('loaded')\ndef answer(x):\n    return x", input=1))
    assert response["result"] is None
    assert response["logs"] == "loaded"
    assert "solution" in response["error"]
    assert response["error"].startswith("NameError")


def test_test_mode_absent_input_is_none() -> None:
    response = _invoke(_request("test", "def solution(x):\n    return x is None"))
    assert response == {"logs": "", "result": True, "error": None}


def test_entry_point_exception_is_user_error() -> None:
    code = "def solution(x):\n    print('got', x)\n    return x['missing']"
    response = _invoke(_request("test", code, input={"a": 1}))
    assert response == {"logs": "got {'a': 1}", "result": None, "error": "KeyError: 'missing'"}


def test_whitespace_only_code_is_empty_success() -> None:
    response = _invoke(_request("executor", "   \n\n\t\n  "))
    assert response == {"logs": "", "result": None, "error": None}


def test_result_and_error_are_mutually_exclusive() -> None:
    response = _invoke(_request("test", "def solution(x):\n    raise ValueError('no')", input=0))
    assert response["result"] is None
    assert response["error"] == "ValueError: no"


@pytest.mark.parametrize(
    "value",
    ["'''", "'''; raise SystemExit; '''", '"""', "\\'''\\", {"nested": ["'''", '"""\n']}],
)
def test_delimiter_sequences_in_input_still_decode(value: Any) -> None:
    response = _invoke(_request("test", "def solution(x):\n    return x", input=value))
    assert response == {"logs": "", "result": value, "error": None}


def test_user_syntax_error_is_engine_failure_with_empty_logs() -> None:
    response = _invoke(_request("executor", "print('never')\ndef broken(:\n"))
    assert response["logs"] == ""
    assert response["result"] is None
    assert response["error"].startswith("SyntaxError")


def test_repeated_requests_give_identical_responses() -> None:
    payload = _request("test", "counter = [0]\ndef solution(x):\n    counter[0] += x\n    return counter[0]", input=5)
    assert _invoke(payload) == _invoke(payload)


def test_stdlib_profile_preloads_modules() -> None:
    response = _invoke(_request("executor", "print(math.sqrt(81))"), ["--profile", "stdlib"])
    assert response == {"logs": "9.0", "result": None, "error": None}


def test_unknown_profile_is_reported_as_response() -> None:
    response = _invoke(_request("executor", "print(1)"), ["--profile", "nope"])
    assert response["result"] is None
    assert response["error"].startswith("Unknown runtime profile 'nope'")


def test_custom_profile_file(tmp_path: Path) -> None:
    profile_file = tmp_path / "profiles.toml"
    profile_file.write_text(
        '[profiles.stats]\npreload_modules = ["statistics"]\n',
        encoding="utf-8",
    )
    response = _invoke(
        _request("executor", "print(statistics.mean([1, 2, 3]))"),
        ["--profile", "stats", "--profile-file", str(profile_file)],
    )
    assert response["logs"] == "2"


def test_internal_error_is_still_one_response(monkeypatch: pytest.MonkeyPatch) -> None:
    def _boom(payload: object, engine: object) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr(harness, "execute_payload", _boom)
    response = _invoke(_request("executor", "print(1)"))
    assert response == {"logs": "", "result": None, "error": "Internal harness error: RuntimeError: boom"}


def test_bytes_payload_from_binary_stdin() -> None:
    class _BinaryStdin(io.StringIO):
        def __init__(self, data: bytes) -> None:
            super().__init__()
            self.buffer = io.BytesIO(data)

    out = io.StringIO()
    harness.main([], stdin=_BinaryStdin(b'{"mode": "executor", "code": "print(\\"\xc3\xa9\\")"}'), stdout=out)
    assert json.loads(out.getvalue()) == {"logs": "é", "result": None, "error": None}


@pytest.mark.parametrize("char", ["\u2028", "\x0c", "\x85"])
def test_line_separator_characters_inside_literals_survive_wrapping(char: str) -> None:
    response = _invoke(_request("executor", f's = "a{char}b"\nprint(len(s))'))
    assert response == {"logs": "3", "result": None, "error": None}


def test_deeply_nested_result_keeps_logs() -> None:
    code = (
        "def solution(x):\n"
        "    print('built')\n"
        "    r = []\n"
        "    for _ in range(x):\n"
        "        r = [r]\n"
        "    return r"
    )
    response = _invoke(_request("test", code, input=100000))
    assert response["logs"] == "built"
    assert response["result"] is None
    assert response["error"].startswith("Result is not JSON serializable: RecursionError")


def test_harness_logging_leaves_root_logger_alone() -> None:
    root_handlers = list(logging.getLogger().handlers)
    _invoke(_request("executor", "print(1)"), ["--log-level", "DEBUG"])
    package_logger = logging.getLogger(harness.PACKAGE_LOGGER)
    assert logging.getLogger().handlers == root_handlers
    assert package_logger.propagate is False
    assert len(package_logger.handlers) == 1
    assert package_logger.level == logging.DEBUG
