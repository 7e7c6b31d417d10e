from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    """Invocation mode selected by the request's `mode` field.

    Example:
        ```python
        mode = Mode("test")
        ```
    """

    EXECUTOR = "executor"
    TEST = "test"


class RequestDecodeError(ValueError):
    """Raised when a request payload does not match the request schema.

    Example:
        ```python
        raise RequestDecodeError("Invalid input JSON: missing field `code`")
        ```
    """


@dataclass(frozen=True, slots=True)
class HarnessRequest:
    """Decoded request for one harness invocation.

    Example:
        ```python
        req = HarnessRequest(mode=Mode.TEST, code="def solution(x):\\n    return x", input_data=41)
        ```
    """

    mode: Mode
    code: str
    input_data: Any = None


def _invalid(detail: str) -> RequestDecodeError:
    """Build a decode error with the harness-wide message prefix.

    Example:
        ```python
        raise _invalid("missing field `mode`")
        ```
    """
    return RequestDecodeError(f"Invalid input JSON: {detail}")


def _parse_mode(raw: Any) -> Mode:
    """Map the raw `mode` value onto a known `Mode`.

    Only the exact lowercase literals are accepted.

    Example:
        ```python
        mode = _parse_mode("executor")
        ```
    """
    if not isinstance(raw, str):
        raise _invalid(f"`mode` must be a string, got {type(raw).__name__}")
    try:
        return Mode(raw)
    except ValueError:
        expected = ", ".join(f"`{m.value}`" for m in Mode)
        raise _invalid(f"unknown variant `{raw}`, expected one of {expected}") from None


def decode_request(payload: bytes | str) -> HarnessRequest:
    """Parse raw request bytes into a `HarnessRequest`.

    A missing `input` becomes `None`; unknown keys are ignored.

    Example:
        ```python
        req = decode_request(b'{"mode": "executor", "code": "print(1)"}')
        ```
    """
    if isinstance(payload, bytes):
        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise _invalid(f"payload is not valid UTF-8: {exc}") from exc
    else:
        text = payload

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise _invalid(str(exc)) from exc

    if not isinstance(raw, dict):
        raise _invalid(f"expected a JSON object, got {type(raw).__name__}")
    if "mode" not in raw:
        raise _invalid("missing field `mode`")
    if "code" not in raw:
        raise _invalid("missing field `code`")

    mode = _parse_mode(raw["mode"])
    code = raw["code"]
    if not isinstance(code, str):
        raise _invalid(f"`code` must be a string, got {type(code).__name__}")

    request = HarnessRequest(mode=mode, code=code, input_data=raw.get("input"))
    logger.debug("Decoded %s request with %d bytes of code", mode.value, len(code))
    return request
