from __future__ import annotations

import argparse
import contextlib
import logging
import os
import sys
from typing import Iterator, Sequence, TextIO

from .execution.embedded_engine import EmbeddedEngine
from .execution.types import DecodeFailure, EngineFailure, ExecutionOutcome
from .profile import DEFAULT_PROFILE, get_profile
from .request import RequestDecodeError, decode_request
from .response import emit_line, failure_line, outcome_line
from .wrapper import wrap_code

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "localcoder_runner"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the one-shot harness process.

    Example:
        ```python
        args = build_parser().parse_args(["--profile", "stdlib"])
        ```
    """
    parser = argparse.ArgumentParser(
        prog="python -m localcoder_runner",
        description=(
            "Read one JSON request from stdin, run it, and write one JSON response line to stdout."
        ),
    )
    parser.add_argument(
        "--profile",
        default=DEFAULT_PROFILE,
        help=f"Runtime profile name (default: {DEFAULT_PROFILE}).",
    )
    parser.add_argument(
        "--profile-file",
        help="TOML file with [profiles.<name>] tables (default: bundled profiles).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level for diagnostics written to stderr (default: WARNING).",
    )
    return parser


def _read_payload(stdin: TextIO) -> bytes | str:
    """Read the whole request from `stdin`, as bytes when a binary buffer exists.

    Example:
        ```python
        payload = _read_payload(io.StringIO('{"mode": "executor", "code": ""}'))
        ```
    """
    buffer = getattr(stdin, "buffer", None)
    if buffer is not None:
        return buffer.read()
    return stdin.read()


def execute_payload(payload: bytes | str, engine: EmbeddedEngine) -> ExecutionOutcome:
    """Run the decode, wrap and execute stages for one payload.

    Example:
        ```python
        outcome = execute_payload(b'{"mode": "executor", "code": "print(1)"}', EmbeddedEngine())
        ```
    """
    try:
        request = decode_request(payload)
    except RequestDecodeError as exc:
        logger.warning("Rejected request: %s", exc)
        return DecodeFailure(str(exc))

    try:
        program = wrap_code(request)
    except ValueError as exc:
        logger.error("Could not wrap %s request: %s", request.mode.value, exc)
        return EngineFailure(str(exc), stage="wrap")

    logger.debug("Running %s program under profile %s", request.mode.value, engine.profile.name)
    return engine.run(program)


def configure_logging(level: str) -> None:
    """Send harness diagnostics to stderr through the package logger only.

    The root logger is left untouched, so logging done by user code falls
    back to `logging.lastResort` and is written to whatever `sys.stderr` is at
    that moment, which is the capture shim while the program runs.

    Example:
        ```python
        configure_logging("DEBUG")
        ```
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(level)
    package_logger.propagate = False


@contextlib.contextmanager
def reserve_stdout() -> Iterator[TextIO]:
    """Keep fd 1 for the response line and point it at stderr until the line is written.

    Writes to `sys.__stdout__` or straight to fd 1 during the run end up on
    stderr instead of ahead of the response line.

    Example:
        ```python
        with reserve_stdout() as channel:
            emit_line(channel, failure_line("boom"))
        ```
    """
    sys.stdout.flush()
    saved_fd = os.dup(1)
    os.dup2(2, 1)
    channel = open(saved_fd, "w", encoding="utf-8", closefd=False)
    try:
        yield channel
    finally:
        if sys.__stdout__ is not None and not sys.__stdout__.closed:
            sys.__stdout__.flush()
        channel.close()
        os.dup2(saved_fd, 1)
        os.close(saved_fd)


def _respond(args: argparse.Namespace, stdin: TextIO) -> str:
    """Produce the response line for one request, whatever goes wrong.

    Example:
        ```python
        line = _respond(build_parser().parse_args([]), io.StringIO('{"mode": "executor", "code": ""}'))
        ```
    """
    try:
        engine = EmbeddedEngine(get_profile(args.profile, args.profile_file))
        return outcome_line(execute_payload(_read_payload(stdin), engine))
    except ValueError as exc:
        logger.error("Harness configuration error: %s", exc)
        return failure_line(str(exc))
    except Exception as exc:  # noqa: BLE001 - last-resort guard keeps the one-line contract
        logger.exception("Internal harness error")
        return failure_line(f"Internal harness error: {type(exc).__name__}: {exc}")


def main(
    argv: Sequence[str] | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    """Handle exactly one request and write exactly one response line.

    The exit status is always 0; failures travel in the `error` field. Without
    an explicit `stdout`, the line goes to fd 1, which user code cannot reach.

    Example:
        ```python
        code = main([], stdin=io.StringIO('{"mode": "executor", "code": "print(1)"}'), stdout=io.StringIO())
        ```
    """
    args = build_parser().parse_args(list(argv) if argv is not None else None)
    configure_logging(args.log_level)
    in_stream = stdin if stdin is not None else sys.stdin

    if stdout is not None:
        emit_line(stdout, _respond(args, in_stream))
        return 0
    with reserve_stdout() as channel:
        emit_line(channel, _respond(args, in_stream))
    return 0
