from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Sequence

from .execution.engine import ExecutionEngine
from .execution.types import ProcessRequest
from .request import Mode
from .response import parse_response

DEFAULT_TIMEOUT_SECONDS = 5


@dataclass(slots=True)
class RunResult:
    """Normalized result of one harness invocation, as seen by the host.

    Example:
        ```python
        result = RunResult(ok=True, result=42)
        ```
    """

    ok: bool
    logs: str = ""
    result: Any = None
    error: str | None = None
    timed_out: bool = False
    exit_code: int = 0


@dataclass(frozen=True, slots=True)
class TestCase:
    """One test-mode input with its expected `solution` return value.

    Example:
        ```python
        case = TestCase(input=41, expected=42)
        ```
    """

    __test__ = False

    input: Any
    expected: Any


@dataclass(slots=True)
class CaseResult:
    """Outcome of running one `TestCase`.

    Example:
        ```python
        outcome = CaseResult(input=41, expected=42, actual=42, passed=True)
        ```
    """

    input: Any
    expected: Any
    actual: Any
    passed: bool
    logs: str = ""
    error: str | None = None


def stable_json(value: Any) -> str:
    """Serialize with sorted keys so equal values compare equal as text.

    Example:
        ```python
        assert stable_json({"b": 1, "a": 2}) == stable_json({"a": 2, "b": 1})
        ```
    """
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def _build_payload(code: str, mode: Mode, input_data: Any) -> dict[str, Any]:
    """Build the harness request payload.

    Example:
        ```python
        payload = _build_payload("print(1)", Mode.EXECUTOR, None)
        ```
    """
    payload: dict[str, Any] = {"mode": mode.value, "code": code}
    if mode is Mode.TEST:
        payload["input"] = input_data
    return payload


def run_code(
    code: str,
    engine: ExecutionEngine,
    *,
    mode: Mode | str = Mode.EXECUTOR,
    input_data: Any = None,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> RunResult:
    """Execute code in a fresh harness process and parse its response line.

    Example:
        ```python
        from localcoder_runner import LocalEngine, run_code
        result = run_code("def solution(x):\\n    return x + 1", LocalEngine(), mode="test", input_data=41)
        ```
    """
    resolved_mode = Mode(mode)
    if timeout_seconds < 1:
        raise ValueError("timeout_seconds must be at least 1")

    outcome = engine.execute(
        ProcessRequest(
            payload=_build_payload(code, resolved_mode, input_data),
            timeout_seconds=timeout_seconds,
        )
    )

    if outcome.timed_out:
        return RunResult(
            ok=False,
            timed_out=True,
            error=outcome.error or f"Execution timed out after {timeout_seconds}s",
            exit_code=outcome.returncode,
        )

    if outcome.error and not outcome.stdout.strip():
        return RunResult(ok=False, error=outcome.error, exit_code=outcome.returncode)

    lines = [line for line in outcome.stdout.splitlines() if line.strip()]
    try:
        if len(lines) != 1:
            raise ValueError(f"expected one response line, got {len(lines)}")
        response = parse_response(lines[0])
    except ValueError:
        return RunResult(
            ok=False,
            error="Runner returned invalid JSON",
            exit_code=outcome.returncode,
        )

    return RunResult(
        ok=response.error is None,
        logs=response.logs,
        result=response.result,
        error=response.error,
        exit_code=outcome.returncode,
    )


def run_tests(
    code: str,
    cases: Sequence[TestCase],
    engine: ExecutionEngine,
    *,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> list[CaseResult]:
    """Run `solution` against every case, one fresh process per case.

    Example:
        ```python
        results = run_tests("def solution(x):\\n    return x * 2", [TestCase(2, 4)], LocalEngine())
        ```
    """
    results: list[CaseResult] = []
    for case in cases:
        run = run_code(
            code,
            engine,
            mode=Mode.TEST,
            input_data=case.input,
            timeout_seconds=timeout_seconds,
        )
        passed = run.error is None and stable_json(run.result) == stable_json(case.expected)
        results.append(
            CaseResult(
                input=case.input,
                expected=case.expected,
                actual=run.result,
                passed=passed,
                logs=run.logs,
                error=run.error,
            )
        )
    return results
