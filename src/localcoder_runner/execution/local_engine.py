from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

from ..profile import DEFAULT_PROFILE
from .types import ProcessOutcome, ProcessRequest


def _package_root() -> Path:
    """Return the directory that contains the `localcoder_runner` package.

    Example:
        ```python
        root = _package_root()
        ```
    """
    return Path(__file__).resolve().parents[2]


class LocalEngine:
    """Run each request in a fresh local `python -m localcoder_runner` process.

    Example:
        ```python
        engine = LocalEngine(profile="stdlib")
        ```
    """

    def __init__(
        self,
        *,
        python_executable: str | None = None,
        profile: str = DEFAULT_PROFILE,
        profile_file: str | None = None,
    ) -> None:
        """Configure the interpreter and runtime profile used for child processes.

        Example:
            ```python
            engine = LocalEngine(python_executable="/usr/bin/python3", profile="minimal")
            ```
        """
        executable = (python_executable or sys.executable).strip()
        if not executable:
            raise ValueError("LocalEngine requires a non-empty 'python_executable'")
        if not profile.strip():
            raise ValueError("LocalEngine requires a non-empty 'profile'")
        self._python_executable = executable
        self._profile = profile
        self._profile_file = profile_file

    def execute(self, request: ProcessRequest) -> ProcessOutcome:
        """Execute one request in a new harness process.

        Example:
            ```python
            outcome = engine.execute(ProcessRequest(payload={"mode": "executor", "code": "print(1)"}, timeout_seconds=5))
            ```
        """
        try:
            completed = subprocess.run(
                self._command(),
                input=json.dumps(request.payload),
                capture_output=True,
                text=True,
                timeout=max(1, int(request.timeout_seconds)),
                check=False,
                env=self._env(),
            )
        except subprocess.TimeoutExpired:
            return ProcessOutcome(
                stdout="",
                stderr="",
                returncode=124,
                timed_out=True,
                error=f"Execution timed out after {request.timeout_seconds}s",
            )
        except OSError as exc:
            return ProcessOutcome(
                stdout="",
                stderr="",
                returncode=125,
                timed_out=False,
                error=f"Failed to start harness process: {exc}",
            )
        return ProcessOutcome(
            stdout=completed.stdout,
            stderr=completed.stderr,
            returncode=completed.returncode,
            timed_out=False,
        )

    def _command(self) -> list[str]:
        """Build the harness command line.

        Example:
            ```python
            cmd = engine._command()
            ```
        """
        cmd = [self._python_executable, "-m", "localcoder_runner", "--profile", self._profile]
        if self._profile_file is not None:
            cmd.extend(["--profile-file", self._profile_file])
        return cmd

    def _env(self) -> dict[str, str]:
        """Return the child environment with this package importable.

        Example:
            ```python
            env = engine._env()
            ```
        """
        env = dict(os.environ)
        existing = env.get("PYTHONPATH")
        root = str(_package_root())
        env["PYTHONPATH"] = root if not existing else os.pathsep.join([root, existing])
        return env
