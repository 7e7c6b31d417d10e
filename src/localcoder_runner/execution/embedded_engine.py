from __future__ import annotations

import builtins
import contextlib
import importlib
import io
import logging
import sys
from typing import Any, Iterator

from ..profile import RuntimeProfile
from ..wrapper import WrappedProgram
from .types import EngineFailure, UserSignaled

logger = logging.getLogger(__name__)

PROGRAM_FILENAME = "<localcoder>"
USER_CODE_FILENAME = "<user_code>"


def _describe(exc: BaseException) -> str:
    """Format an exception as `<Type>: <message>`.

    Example:
        ```python
        text = _describe(ValueError("bad"))  # 'ValueError: bad'
        ```
    """
    return f"{type(exc).__name__}: {exc}"


def _describe_syntax_error(exc: SyntaxError) -> str:
    """Format a syntax error with its line number.

    Example:
        ```python
        text = _describe_syntax_error(SyntaxError("invalid syntax", ("<x>", 3, 1, "x +")))
        ```
    """
    message = f"{type(exc).__name__}: {exc.msg}"
    if exc.lineno is not None:
        message += f" (line {exc.lineno})"
    return message


def _last_line(text: str) -> str | None:
    """Return the last non-blank line of `text`.

    Example:
        ```python
        line = _last_line('noise\\n{"logs": ""}\\n')  # '{"logs": ""}'
        ```
    """
    for line in reversed(text.splitlines()):
        if line.strip():
            return line
    return None


class EmbeddedEngine:
    """Run wrapped programs in the current interpreter under a runtime profile.

    Example:
        ```python
        engine = EmbeddedEngine(RuntimeProfile(name="minimal"))
        outcome = engine.run(wrap_executor("print('hi')"))
        ```
    """

    def __init__(self, profile: RuntimeProfile | None = None) -> None:
        """Bind the engine to a runtime profile selected at startup.

        Example:
            ```python
            engine = EmbeddedEngine(get_profile("stdlib"))
            ```
        """
        self._profile = profile or RuntimeProfile()

    @property
    def profile(self) -> RuntimeProfile:
        """Return the active runtime profile.

        Example:
            ```python
            name = engine.profile.name
            ```
        """
        return self._profile

    def run(self, program: WrappedProgram) -> UserSignaled | EngineFailure:
        """Compile and execute a wrapped program, forwarding its response line.

        Failures of user code are reported by the program itself; this method
        only reports programs that fail to compile or that do not finish.

        Example:
            ```python
            outcome = engine.run(wrap_test("def solution(x):\\n    return x", 1))
            ```
        """
        try:
            code_obj = compile(program.text, PROGRAM_FILENAME, "exec")
        except SyntaxError as exc:
            return self._compile_failure(program, exc)
        except (ValueError, RecursionError, MemoryError) as exc:
            logger.warning("Runtime could not compile program: %s", _describe(exc))
            return EngineFailure(_describe(exc), stage="compile")

        scope = self._new_scope()
        stdout_buffer = io.StringIO()
        stderr_buffer = io.StringIO()
        try:
            with (
                self._exposed_paths(),
                contextlib.redirect_stdout(stdout_buffer),
                contextlib.redirect_stderr(stderr_buffer),
            ):
                exec(code_obj, scope, scope)
        except BaseException as exc:  # noqa: BLE001 - every escape becomes a response
            logger.warning("Wrapped program did not finish: %s", _describe(exc))
            return EngineFailure(_describe(exc), stage="execute")

        if stderr_buffer.getvalue():
            logger.debug("Wrapped program wrote to stderr: %r", stderr_buffer.getvalue())
        line = _last_line(stdout_buffer.getvalue())
        if line is None:
            logger.error("Wrapped program finished without a response line")
            return EngineFailure("Wrapped program did not emit a response line", stage="execute")
        return UserSignaled(line)

    def _compile_failure(self, program: WrappedProgram, exc: SyntaxError) -> EngineFailure:
        """Attribute a syntax error to the user's code or to the wrapping transform.

        Example:
            ```python
            failure = engine._compile_failure(program, SyntaxError("invalid syntax"))
            ```
        """
        try:
            compile(program.source, USER_CODE_FILENAME, "exec")
        except SyntaxError as user_exc:
            return EngineFailure(_describe_syntax_error(user_exc), stage="compile")
        except (ValueError, RecursionError, MemoryError) as user_exc:
            return EngineFailure(_describe(user_exc), stage="compile")

        message = f"Generated program is invalid: {_describe_syntax_error(exc)}"
        logger.error("%s (mode=%s)", message, program.mode.value)
        return EngineFailure(message, stage="wrap")

    def _new_scope(self) -> dict[str, Any]:
        """Create a fresh global scope with builtins and profile preloads.

        Example:
            ```python
            scope = engine._new_scope()
            ```
        """
        scope: dict[str, Any] = {"__name__": "__main__", "__builtins__": builtins}
        for name in self._profile.preload_modules:
            try:
                importlib.import_module(name)
            except ImportError as exc:
                logger.warning("Skipping preload of %s for profile %s: %s", name, self._profile.name, exc)
                continue
            root = name.partition(".")[0]
            scope[root] = sys.modules[root]
        return scope

    @contextlib.contextmanager
    def _exposed_paths(self) -> Iterator[None]:
        """Prepend profile paths to `sys.path` for the duration of one run.

        Example:
            ```python
            with engine._exposed_paths():
                pass
            ```
        """
        saved = list(sys.path)
        sys.path[:0] = self._profile.exposed_paths
        try:
            yield
        finally:
            sys.path[:] = saved
