from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union

EngineStage = Literal["wrap", "compile", "execute"]


@dataclass(frozen=True, slots=True)
class EngineFailure:
    """The runtime could not run the wrapped program to completion.

    `stage` tells apart a defective generated program (`wrap`), a syntax
    error in the submitted code (`compile`) and a fault while running
    (`execute`).

    Example:
        ```python
        failure = EngineFailure("KeyboardInterrupt: ", stage="execute")
        ```
    """

    message: str
    stage: EngineStage = "execute"


@dataclass(frozen=True, slots=True)
class UserSignaled:
    """The wrapped program finished and printed its own response line.

    Example:
        ```python
        done = UserSignaled('{"logs": "", "result": null, "error": null}')
        ```
    """

    line: str


@dataclass(frozen=True, slots=True)
class DecodeFailure:
    """The request payload was rejected before any code was wrapped.

    Example:
        ```python
        failure = DecodeFailure("Invalid input JSON: missing field `code`")
        ```
    """

    message: str


ExecutionOutcome = Union[EngineFailure, UserSignaled, DecodeFailure]


@dataclass(slots=True)
class ProcessRequest:
    """Payload and wall-clock limit for one harness child process.

    Example:
        ```python
        req = ProcessRequest(payload={"mode": "executor", "code": "print(1)"}, timeout_seconds=5)
        ```
    """

    payload: dict[str, Any]
    timeout_seconds: int


@dataclass(slots=True)
class ProcessOutcome:
    """Raw result of a harness child process.

    Example:
        ```python
        out = ProcessOutcome(stdout="{}", stderr="", returncode=0, timed_out=False)
        ```
    """

    stdout: str
    stderr: str
    returncode: int
    timed_out: bool
    error: str | None = None
