from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, TextIO

from .execution.types import DecodeFailure, EngineFailure, ExecutionOutcome, UserSignaled


@dataclass(slots=True)
class Response:
    """The single structured object emitted per invocation.

    Example:
        ```python
        resp = Response(logs="hello", result=None, error=None)
        ```
    """

    logs: str = ""
    result: Any = None
    error: str | None = None

    def to_json(self) -> str:
        """Serialize to compact single-line JSON.

        Example:
            ```python
            line = Response(error="boom").to_json()
            ```
        """
        return json.dumps(asdict(self), default=str)


def failure_line(message: str) -> str:
    """Build the response line for a failure detected outside user code.

    Example:
        ```python
        line = failure_line("Invalid input JSON: EOF while parsing")
        ```
    """
    return Response(logs="", result=None, error=message).to_json()


def outcome_line(outcome: ExecutionOutcome) -> str:
    """Map any execution outcome to the line that should be written.

    A `UserSignaled` line is forwarded as produced by the wrapped program.

    Example:
        ```python
        line = outcome_line(EngineFailure("SyntaxError: invalid syntax", stage="compile"))
        ```
    """
    if isinstance(outcome, UserSignaled):
        return outcome.line
    if isinstance(outcome, (EngineFailure, DecodeFailure)):
        return failure_line(outcome.message)
    raise TypeError(f"Unsupported execution outcome: {outcome!r}")


def emit_line(stream: TextIO, line: str) -> None:
    """Write exactly one newline-terminated line and flush.

    Example:
        ```python
        emit_line(sys.stdout, failure_line("boom"))
        ```
    """
    stream.write(line.rstrip("\r\n") + "\n")
    stream.flush()


def parse_response(line: str) -> Response:
    """Read a response line back into a `Response`.

    Example:
        ```python
        resp = parse_response('{"logs": "", "result": 42, "error": null}')
        ```
    """
    raw = json.loads(line)
    if not isinstance(raw, dict):
        raise ValueError("Response line must be a JSON object")
    error = raw.get("error")
    return Response(
        logs=str(raw.get("logs") or ""),
        result=raw.get("result"),
        error=None if error is None else str(error),
    )
