from __future__ import annotations

from typing import Protocol

from .types import ProcessOutcome, ProcessRequest


class ExecutionEngine(Protocol):
    def execute(self, request: ProcessRequest) -> ProcessOutcome:
        """Run one request in a fresh harness process and return its raw outcome.

        Example:
            ```python
            outcome = engine.execute(ProcessRequest(payload={"mode": "executor", "code": "print(1)"}, timeout_seconds=5))
            ```
        """
        ...
